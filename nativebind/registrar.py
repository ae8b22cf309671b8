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
Declaration registration

Emits every named struct or enum at most once per run. Asking for a name
that only exists in the not-found override table redirects to the override.
"""

from dataclasses import dataclass
from typing import Union

from .csharp import FieldSpec, escape_identifier
from .errors import ConfigurationError, UnknownTypeError


@dataclass(frozen=True)
class Emitted:
    name: str


@dataclass(frozen=True)
class AlreadyEmitted:
    name: str


@dataclass(frozen=True)
class Redirected:
    name: str


RegistrationResult = Union[Emitted, AlreadyEmitted, Redirected]


class Registrar:
    def __init__(self, context, writer, renderer):
        self.context = context
        self.writer = writer
        self.renderer = renderer
        # set once the resolver is built, see generator.create_engine
        self.resolver = None

    def register(self, name: str) -> RegistrationResult:
        return self._register(name, ())

    def _register(self, name, chain) -> RegistrationResult:
        ctx = self.context
        if name in ctx.structs:
            if ctx.is_registered(name):
                return AlreadyEmitted(name)
            # marked before the fields are resolved so self references terminate
            ctx.mark_registered(name)
            self._emit_struct(name, ctx.structs[name])
            return Emitted(name)

        if name in ctx.enums:
            if ctx.is_registered(name):
                return AlreadyEmitted(name)
            ctx.mark_registered(name)
            self._emit_enum(name, ctx.enums[name])
            return Emitted(name)

        target = ctx.not_found_type_overrides.get(name)
        if target is None:
            raise UnknownTypeError(name)
        if target == name or target in chain:
            cycle = " -> ".join(chain + (name, target))
            raise ConfigurationError(f"not-found type overrides form a cycle: {cycle}")
        match self._register(target, chain + (name,)):
            case Redirected(final):
                return Redirected(final)
            case _:
                return Redirected(target)

    def _emit_struct(self, name, struct):
        fields = []
        for i, field in enumerate(struct.fields):
            field_name = field.name or f"field{i}"
            fields.append(
                FieldSpec(
                    name=escape_identifier(field_name),
                    type=self.resolver.resolve_member(field_name, field.type),
                )
            )
        source = self.renderer.struct(name, fields, is_union=struct.is_union, is_opaque=struct.is_opaque)
        self.writer.write(name, source)

    def _emit_enum(self, name, enum):
        underlying = self.resolver.resolve(enum.underlying)
        self.writer.write(name, self.renderer.enum(name, underlying, enum.items))
