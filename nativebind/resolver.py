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
Type resolution

Turns a declared type into a C# type reference. Named structs and enums met
on the way are handed to the registrar, which emits each of them once.
"""

from .config import TypedefStrategy
from .csharp import ArrayOf, FunctionPointer, NamedType, PointerTo, TargetType
from .errors import (
    MissingPrimitiveMappingError,
    UnhandledTypeError,
    UnknownOverrideTargetError,
    UnknownTypeError,
)
from .ir import (
    ArrayType,
    BuiltinType,
    Enumeration,
    FunctionType,
    PointerType,
    TagType,
    Type,
    Typedef,
    TypedefType,
)
from .registrar import AlreadyEmitted, Emitted, Redirected


class TypeResolver:
    def __init__(self, context, register):
        self.context = context
        self._register = register

    def resolve(self, type_: Type) -> TargetType:
        match type_:
            case PointerType(pointee):
                return PointerTo(self.resolve(pointee))
            case BuiltinType(kind):
                target = self.context.primitive_types.get(kind)
                if target is None:
                    raise MissingPrimitiveMappingError(kind)
                return NamedType(target)
            case TagType(declaration):
                return self._resolve_tag(declaration)
            case FunctionType(parameters, return_type):
                return FunctionPointer(
                    tuple(self.resolve(p) for p in parameters),
                    self.resolve(return_type),
                )
            case ArrayType(element, length):
                return ArrayOf(self.resolve(element), length)
            case TypedefType(declaration):
                return self._resolve_typedef(declaration)
            case _:
                raise UnhandledTypeError(type_)

    # struct fields and function parameters: a name override wins over the declared type
    def resolve_member(self, name: str, type_: Type) -> TargetType:
        target = self.context.name_overrides.get(name)
        if target is None:
            return self.resolve(type_)
        declaration = self.context.declarations.get(target)
        if declaration is None:
            raise UnknownOverrideTargetError(name, target)
        return self.resolve(TagType(declaration))

    def _resolve_tag(self, declaration) -> TargetType:
        name = self.context.name_of(declaration)
        if not name:
            raise UnknownTypeError(declaration.describe())
        match self._register(name):
            case Redirected(target):
                return NamedType(target)
            case Emitted() | AlreadyEmitted():
                return NamedType(name)

    def _resolve_typedef(self, typedef: Typedef) -> TargetType:
        strategy = self.context.typedef_strategies.get(typedef.name)
        if strategy is TypedefStrategy.ALIAS_AS_NAMED_ENUM:
            alias = Enumeration(typedef.name, header=typedef.header, line=typedef.line)
            return self.resolve(TagType(alias))

        if strategy is None and typedef.name not in self.context.reported_typedefs:
            self.context.reported_typedefs.add(typedef.name)
            self.context.logger.info("typedef %s unwrapped", typedef.name)
        return self.resolve(typedef.underlying)
