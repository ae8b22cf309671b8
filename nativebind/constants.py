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
Constants and mappings for C# binding generation
"""

from types import MappingProxyType

from clang.cindex import TypeKind


# builtin C type -> C# type
PRIMITIVE_TYPE_MAP = MappingProxyType(
    {
        TypeKind.INT: "int",
        TypeKind.LONG: "int",
        TypeKind.FLOAT: "float",
        TypeKind.DOUBLE: "double",
        TypeKind.BOOL: "bool",
        TypeKind.ULONG: "uint",
        TypeKind.UINT: "uint",
        TypeKind.VOID: "void",
        TypeKind.UCHAR: "byte",
        TypeKind.USHORT: "ushort",
        TypeKind.SHORT: "short",
        TypeKind.SCHAR: "sbyte",
        TypeKind.CHAR_S: "byte",
        TypeKind.CHAR_U: "byte",
        TypeKind.ULONGLONG: "ulong",
        TypeKind.LONGLONG: "long",
    }
)

# C# keywords, escaped with a leading underscore when used as identifiers
CSHARP_KEYWORDS = frozenset(
    {
        "abstract", "as", "base", "bool", "break", "byte", "case", "catch",
        "char", "checked", "class", "const", "continue", "decimal", "default",
        "delegate", "do", "double", "else", "enum", "event", "explicit",
        "extern", "false", "finally", "fixed", "float", "for", "foreach",
        "goto", "if", "implicit", "in", "int", "interface", "internal", "is",
        "lock", "long", "namespace", "new", "null", "object", "operator",
        "out", "override", "params", "private", "protected", "public",
        "readonly", "ref", "return", "sbyte", "sealed", "short", "sizeof",
        "stackalloc", "static", "string", "struct", "switch", "this", "throw",
        "true", "try", "typeof", "uint", "ulong", "unchecked", "unsafe",
        "ushort", "using", "virtual", "void", "volatile", "while",
    }
)

USINGS = ("System.Runtime.InteropServices",)

CALLING_CONVENTION = "CallingConvention.Cdecl"

ARTIFACT_EXTENSION = ".cs"

LOGGER_NAME = "nativebind"
