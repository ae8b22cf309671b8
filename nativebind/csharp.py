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
C# code generation

Target type references produced by the resolver and the text renderers for
every artifact kind. Rendering is pure: it only turns already resolved
descriptions into source text.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .constants import CALLING_CONVENTION, CSHARP_KEYWORDS, USINGS


## target type references


@dataclass(frozen=True)
class NamedType:
    name: str


@dataclass(frozen=True)
class PointerTo:
    pointee: "TargetType"


@dataclass(frozen=True)
class FunctionPointer:
    parameters: tuple["TargetType", ...]
    return_type: "TargetType"


@dataclass(frozen=True)
class ArrayOf:
    element: "TargetType"
    length: Optional[int] = None


TargetType = Union[NamedType, PointerTo, FunctionPointer, ArrayOf]


def render_type(t: TargetType) -> str:
    match t:
        case NamedType(name):
            return name
        case PointerTo(pointee):
            return render_type(pointee) + "*"
        case FunctionPointer(parameters, return_type):
            # the return type comes last in the type argument list
            args = [render_type(p) for p in parameters] + [render_type(return_type)]
            return "delegate* unmanaged<" + ", ".join(args) + ">"
        case ArrayOf(element, _):
            return render_type(element) + "[]"
    raise TypeError(f"not a target type: {t!r}")


def is_void(t: TargetType) -> bool:
    return isinstance(t, NamedType) and t.name == "void"


# prevents C# keywords from being used as identifiers
def escape_identifier(name: str) -> str:
    if name in CSHARP_KEYWORDS:
        return "_" + name
    return name


## resolved declarations, ready to be rendered


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: TargetType


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    type: TargetType


@dataclass(frozen=True)
class MethodSpec:
    name: str
    parameters: tuple[ParameterSpec, ...]
    return_type: TargetType

    def signature(self) -> str:
        params = ", ".join(f"{render_type(p.type)} {p.name}" for p in self.parameters)
        return f"{render_type(self.return_type)} {self.name}({params})"

    def call(self, target: str) -> str:
        args = ",".join(p.name for p in self.parameters)
        call = f"{target}.{self.name}({args});"
        if is_void(self.return_type):
            return call
        return "return " + call


@dataclass(frozen=True)
class ConstantSpec:
    name: str
    type_name: str
    literal: str


## code writer


class CodeGen:
    """Code generation helper with indentation support"""

    def __init__(self, indent_str="    "):
        self._lines: list[str] = []
        self._indent = 0
        self._indent_str = indent_str

    def line(self, text=""):
        if text:
            self._lines.append(self._indent_str * self._indent + text)
        else:
            self._lines.append("")

    def indent(self):
        self._indent += 1

    def dedent(self):
        if self._indent > 0:
            self._indent -= 1

    def block(self, header, footer="}"):
        return _BlockContext(self, header, footer)

    def output(self) -> str:
        return "\n".join(self._lines) + "\n"


class _BlockContext:
    def __init__(self, gen, header, footer):
        self._gen = gen
        self._header = header
        self._footer = footer

    def __enter__(self):
        self._gen.line(self._header)
        self._gen.line("{")
        self._gen.indent()
        return self

    def __exit__(self, *args):
        self._gen.dedent()
        self._gen.line(self._footer)


## artifacts


class CSharpRenderer:
    """Renders every artifact of a run inside one namespace"""

    def __init__(self, namespace: str):
        self.namespace = namespace

    def _compilation_unit(self, usings=USINGS):
        gen = CodeGen()
        for using in usings:
            gen.line(f"using {using};")
        if usings:
            gen.line()
        return gen

    def struct(self, name, fields, is_union=False, is_opaque=False) -> str:
        gen = self._compilation_unit()
        with gen.block(f"namespace {self.namespace}"):
            layout = "LayoutKind.Explicit" if is_union else "LayoutKind.Sequential"
            gen.line(f"[StructLayout({layout})]")
            with gen.block(f"public unsafe struct {name}"):
                if is_opaque:
                    gen.line("// opaque, only used through pointers")
                for f in fields:
                    if is_union:
                        gen.line("[FieldOffset(0)]")
                    if isinstance(f.type, ArrayOf) and f.type.length is not None:
                        gen.line(f"[MarshalAs(UnmanagedType.ByValArray, SizeConst = {f.type.length})]")
                    gen.line(f"public {render_type(f.type)} {f.name};")
        return gen.output()

    def enum(self, name, underlying, items) -> str:
        gen = self._compilation_unit()
        with gen.block(f"namespace {self.namespace}"):
            with gen.block(f"public enum {name} : {render_type(underlying)}"):
                for item in items:
                    gen.line(f"{item.name} = {item.value},")
        return gen.output()

    def native_class(self, class_name, binary_path, methods) -> str:
        gen = self._compilation_unit()
        with gen.block(f"namespace {self.namespace}"):
            with gen.block(f"internal static unsafe class {class_name}"):
                for i, method in enumerate(methods):
                    if i:
                        gen.line()
                    gen.line(f"[DllImport({string_literal(binary_path)}, CallingConvention = {CALLING_CONVENTION})]")
                    gen.line(f"public static extern {method.signature()};")
        return gen.output()

    def wrapper_class(self, class_name, interface_name, native_class_name, methods, constants) -> str:
        gen = self._compilation_unit()
        with gen.block(f"namespace {self.namespace}"):
            with gen.block(f"internal unsafe class {class_name} : {interface_name}"):
                for method in methods:
                    with gen.block(f"public {method.signature()}"):
                        gen.line(method.call(native_class_name))
                    gen.line()
                for constant in constants:
                    gen.line(f"public {constant.type_name} {constant.name} => {constant.literal};")
        return gen.output()

    def interface(self, interface_name, methods, constants) -> str:
        gen = self._compilation_unit()
        with gen.block(f"namespace {self.namespace}"):
            with gen.block(f"internal unsafe interface {interface_name}"):
                for method in methods:
                    gen.line(f"{method.signature()};")
                for constant in constants:
                    gen.line(f"{constant.type_name} {constant.name} {{ get; }}")
        return gen.output()

    def dispatch_class(self, class_name, interface_name, platforms, methods, constants,
                       default_platform=None) -> str:
        gen = self._compilation_unit()
        with gen.block(f"namespace {self.namespace}"):
            with gen.block(f"public unsafe class {class_name}"):
                gen.line(f"{interface_name} lib;")
                gen.line()
                if default_platform is not None:
                    gen.line(f"public {class_name}() : this(Platform.{default_platform}) {{ }}")
                    gen.line()
                with gen.block(f"public {class_name}(Platform platform)"):
                    for i, (platform, wrapper_name) in enumerate(platforms):
                        keyword = "if" if i == 0 else "else if"
                        gen.line(f"{keyword} (platform == Platform.{platform})")
                        gen.indent()
                        gen.line(f"lib = new {wrapper_name}();")
                        gen.dedent()
                    gen.line("else")
                    gen.indent()
                    gen.line('throw new System.NotSupportedException("not supported");')
                    gen.dedent()
                for method in methods:
                    gen.line()
                    with gen.block(f"public {method.signature()}"):
                        gen.line(method.call("lib"))
                if constants:
                    gen.line()
                for constant in constants:
                    gen.line(f"public {constant.type_name} {constant.name} => lib.{constant.name};")
        return gen.output()

    def platform_enum(self, platforms) -> str:
        gen = self._compilation_unit(usings=())
        with gen.block(f"namespace {self.namespace}"):
            with gen.block("public enum Platform"):
                for platform in platforms:
                    gen.line(f"{platform},")
        return gen.output()


_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t", "\0": "\\0"}


def _escape(text, quote):
    out = []
    for ch in text:
        if ch == quote:
            out.append("\\" + ch)
        elif ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return "".join(out)


def string_literal(text: str) -> str:
    return '"' + _escape(text, '"') + '"'


def char_literal(ch: str) -> str:
    return "'" + _escape(ch, "'") + "'"
