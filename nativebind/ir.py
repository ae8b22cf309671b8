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
Declaration graph

The parsed representation of the structs, enums, typedefs, functions and
macros visible across a set of headers. The header front end produces it,
everything else only reads it.
"""

from dataclasses import KW_ONLY, dataclass, field
from enum import Enum
from typing import Optional, Union

from clang.cindex import TypeKind


## declarations


@dataclass(eq=False)
class Declaration:
    name: Optional[str]
    _: KW_ONLY
    header: str = ""
    line: int = 0

    @property
    def is_anonymous(self) -> bool:
        return not self.name

    def describe(self) -> str:
        if self.name:
            return self.name
        kind = type(self).__name__.lower()
        return f"(anonymous {kind} at {self.header}:{self.line})"


@dataclass(eq=False)
class Field:
    name: str
    type: "Type"


@dataclass(eq=False)
class Struct(Declaration):
    fields: list[Field] = field(default_factory=list)
    is_union: bool = False
    # declared but never defined, e.g. `typedef struct FT_LibraryRec_* FT_Library;`
    is_opaque: bool = False


@dataclass(eq=False)
class EnumItem:
    name: str
    value: int


@dataclass(eq=False)
class Enumeration(Declaration):
    items: list[EnumItem] = field(default_factory=list)
    underlying: "Type" = None

    def __post_init__(self):
        if self.underlying is None:
            self.underlying = BuiltinType(TypeKind.INT)

    @property
    def first_item(self) -> Optional[EnumItem]:
        return self.items[0] if self.items else None


@dataclass(eq=False)
class Typedef(Declaration):
    underlying: "Type" = None


@dataclass(eq=False)
class Parameter:
    name: str
    type: "Type"


@dataclass(eq=False)
class Function(Declaration):
    parameters: list[Parameter] = field(default_factory=list)
    return_type: "Type" = None
    is_variadic: bool = False

    def __post_init__(self):
        if self.return_type is None:
            self.return_type = BuiltinType(TypeKind.VOID)


@dataclass(eq=False)
class Macro(Declaration):
    expression: str = ""


## types


@dataclass(frozen=True)
class BuiltinType:
    kind: TypeKind


@dataclass(frozen=True)
class PointerType:
    pointee: "Type"


@dataclass(frozen=True)
class TagType:
    declaration: Union[Struct, Enumeration]


@dataclass(frozen=True)
class TypedefType:
    declaration: Typedef


@dataclass(frozen=True)
class FunctionType:
    parameters: tuple["Type", ...]
    return_type: "Type"


@dataclass(frozen=True)
class ArrayType:
    element: "Type"
    length: Optional[int] = None


Type = Union[BuiltinType, PointerType, TagType, TypedefType, FunctionType, ArrayType]


## parser output


@dataclass
class DeclarationGraph:
    structs: list[Struct] = field(default_factory=list)
    enums: list[Enumeration] = field(default_factory=list)
    typedefs: list[Typedef] = field(default_factory=list)
    functions: list[Function] = field(default_factory=list)
    macros: list[Macro] = field(default_factory=list)


class Severity(Enum):
    IGNORED = 0
    NOTE = 1
    WARNING = 2
    ERROR = 3
    FATAL = 4


@dataclass(frozen=True)
class Diagnostic:
    file: str
    line: int
    column: int
    message: str
    severity: Severity = Severity.WARNING

    @property
    def is_error(self) -> bool:
        return self.severity in (Severity.ERROR, Severity.FATAL)

    def __str__(self):
        return f"{self.file}:{self.line}:{self.column}: {self.message}"


class ParseResultKind(Enum):
    SUCCESS = "Success"
    ERROR = "Error"
    FILE_NOT_FOUND = "FileNotFound"


@dataclass
class ParseResult:
    kind: ParseResultKind
    graph: Optional[DeclarationGraph] = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.kind is ParseResultKind.SUCCESS and self.graph is not None
