# MIT License
# Copyright 2019-2023 BeamNG GmbH
#
# Permission is hereby granted, free of charge, to any person obtaining a copy of
# this software and associated documentation files (the "Software"), to deal in
# the Software without restriction, including without limitation the rights to
# use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies
# of the Software, and to permit persons to whom the Software is furnished to do
# so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Platform binding emission

For every library and every one of its platforms:

    {Lib}{Platform}Native   DllImport entry points bound to the platform binary
    {Lib}{Platform}         wrapper forwarding to the entry points

then once per library:

    I{Lib}                  facade interface shared by all wrappers
    {Lib}                   public class picking a wrapper from a Platform value

and once per run the Platform enumeration itself.
"""

from .config import Platform
from .csharp import ConstantSpec, MethodSpec, ParameterSpec, escape_identifier


class PlatformBindingEmitter:
    def __init__(self, context, resolver, writer, renderer):
        self.context = context
        self.resolver = resolver
        self.writer = writer
        self.renderer = renderer

    def partition(self, libraries):
        """Returns {library name: functions}, each function in the first library owning its header"""
        partitions = {library.name: [] for library in libraries}
        claimed = set()
        for function in self.context.graph.functions:
            if function.name in claimed:
                continue
            for library in libraries:
                if library.owns(function.header):
                    partitions[library.name].append(function)
                    claimed.add(function.name)
                    break
        return partitions

    def method(self, function) -> MethodSpec:
        parameters = []
        for i, parameter in enumerate(function.parameters):
            name = parameter.name or f"arg{i}"
            parameters.append(
                ParameterSpec(escape_identifier(name), self.resolver.resolve_member(name, parameter.type))
            )
        if function.is_variadic:
            self.context.logger.debug("%s: variadic arguments dropped", function.name)
        return MethodSpec(function.name, tuple(parameters), self.resolver.resolve(function.return_type))

    def constants(self):
        return [
            ConstantSpec(escape_identifier(c.name), c.type_name, c.literal)
            for c in self.context.constants
        ]

    def emit_library(self, library, functions):
        methods = [self.method(f) for f in functions]
        constants = self.constants()
        interface_name = f"I{library.name}"

        written = []
        wrappers = []
        for platform, binary_path in library.platforms.items():
            native_name = f"{library.name}{platform.value}Native"
            wrapper_name = f"{library.name}{platform.value}"
            self.writer.write(native_name, self.renderer.native_class(native_name, binary_path, methods))
            self.writer.write(
                wrapper_name,
                self.renderer.wrapper_class(wrapper_name, interface_name, native_name, methods, constants),
            )
            written += [native_name, wrapper_name]
            wrappers.append((platform.value, wrapper_name))

        self.writer.write(interface_name, self.renderer.interface(interface_name, methods, constants))
        default = library.default_platform.value if library.default_platform else None
        self.writer.write(
            library.name,
            self.renderer.dispatch_class(
                library.name, interface_name, wrappers, methods, constants, default_platform=default
            ),
        )
        written += [interface_name, library.name]
        self.context.logger.info("library %s: %d functions, %d platforms", library.name, len(methods), len(wrappers))
        return written

    def emit_platform_enum(self):
        self.writer.write("Platform", self.renderer.platform_enum([p.value for p in Platform]))
        return "Platform"
