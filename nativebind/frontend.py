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
libclang header front end

Parses the library headers with clang.cindex and converts the cursor tree
into a DeclarationGraph. Declarations are memoised by USR, so a header
included by several libraries yields a single declaration.
"""

import glob
import logging
import os
import sys

import clang.cindex
from clang.cindex import CursorKind as CK
from clang.cindex import TypeKind as TyK

from .config import GeneratorOptions
from .constants import LOGGER_NAME
from .ir import (
    ArrayType,
    BuiltinType,
    DeclarationGraph,
    Diagnostic,
    EnumItem,
    Enumeration,
    Field,
    Function,
    FunctionType,
    Macro,
    Parameter,
    ParseResult,
    ParseResultKind,
    PointerType,
    Severity,
    Struct,
    TagType,
    Typedef,
    TypedefType,
)

PARSE_OPTIONS = (
    clang.cindex.TranslationUnit.PARSE_DETAILED_PROCESSING_RECORD
    | clang.cindex.TranslationUnit.PARSE_SKIP_FUNCTION_BODIES
)


def libclang_search_paths():
    paths = []
    if sys.platform == "win32":
        paths.append("C:/Program Files/LLVM/bin/libclang.dll")
        paths.append("C:/Program Files (x86)/LLVM/bin/libclang.dll")
    elif sys.platform == "darwin":
        paths.append("/opt/homebrew/opt/llvm/lib/libclang.dylib")
        paths.append("/usr/local/opt/llvm/lib/libclang.dylib")
        paths.append("/Library/Developer/CommandLineTools/usr/lib/libclang.dylib")
    else:
        # versioned LLVM packages, newest first
        paths.extend(sorted(glob.glob("/usr/lib/llvm-*/lib/libclang.so*"), reverse=True))
        paths.extend(sorted(glob.glob("/usr/lib/x86_64-linux-gnu/libclang-*.so*"), reverse=True))
        paths.append("/usr/lib64/libclang.so")
        paths.append("/usr/lib/libclang.so")
        paths.append("/usr/local/lib/libclang.so")
    return paths


_libclang_loaded = None


def configure_libclang() -> bool:
    """Loads libclang, first from the default location then from the usual install paths"""
    global _libclang_loaded
    if _libclang_loaded is not None:
        return _libclang_loaded

    try:
        clang.cindex.Config().lib
        _libclang_loaded = True
        return True
    except clang.cindex.LibclangError:
        pass

    for path in libclang_search_paths():
        if not os.path.isfile(path):
            continue
        clang.cindex.Config.set_library_file(path)
        try:
            clang.cindex.Config().lib
            _libclang_loaded = True
            return True
        except clang.cindex.LibclangError:
            continue

    _libclang_loaded = False
    return False


def find_header(header, include_dirs):
    if os.path.isabs(header):
        return header if os.path.isfile(header) else None
    for directory in include_dirs:
        candidate = os.path.join(directory, header)
        if os.path.isfile(candidate):
            return os.path.abspath(candidate)
    return None


def _diagnostic(d) -> Diagnostic:
    location = d.location
    return Diagnostic(
        location.file.name if location.file else "",
        location.line,
        location.column,
        d.spelling,
        Severity(d.severity),
    )


class ClangHeaderParser:
    def __init__(self, options: GeneratorOptions = None, logger=None):
        self.options = options or GeneratorOptions()
        self.logger = logger or logging.getLogger(LOGGER_NAME)

    def arguments(self, include_dirs):
        args = ["-x", "c++", "-std=gnu++17"]
        args += [f"-I{d}" for d in include_dirs]
        if self.options.no_builtin_includes:
            args.append("-nobuiltininc")
        if self.options.no_standard_includes:
            args += ["-nostdinc", "-nostdinc++"]
        args += list(self.options.clang_args)
        return args

    def parse(self, include_dirs, headers) -> ParseResult:
        if not configure_libclang():
            return ParseResult(
                ParseResultKind.ERROR,
                diagnostics=[Diagnostic("", 0, 0, "libclang could not be loaded", Severity.FATAL)],
            )

        paths = []
        for header in headers:
            path = find_header(header, include_dirs)
            if path is None:
                message = f"{header} not found in {', '.join(include_dirs) or 'no include directories'}"
                return ParseResult(
                    ParseResultKind.FILE_NOT_FOUND,
                    diagnostics=[Diagnostic(header, 0, 0, message, Severity.FATAL)],
                )
            if path not in paths:
                paths.append(path)

        index = clang.cindex.Index.create()
        args = self.arguments(include_dirs)
        builder = GraphBuilder(self.logger)
        diagnostics = []
        for path in paths:
            self.logger.debug("parsing %s %s", path, " ".join(args))
            try:
                tu = index.parse(path, args=args, options=PARSE_OPTIONS)
            except clang.cindex.TranslationUnitLoadError as e:
                diagnostics.append(Diagnostic(path, 0, 0, str(e), Severity.FATAL))
                return ParseResult(ParseResultKind.ERROR, diagnostics=diagnostics)
            diagnostics.extend(_diagnostic(d) for d in tu.diagnostics)
            builder.visit(tu.cursor)

        if any(d.is_error for d in diagnostics):
            return ParseResult(ParseResultKind.ERROR, diagnostics=diagnostics)
        return ParseResult(ParseResultKind.SUCCESS, builder.finish(), diagnostics)


def _location(cursor):
    location = cursor.location
    return (location.file.name if location.file else ""), location.line


def _key(cursor):
    usr = cursor.get_usr()
    if usr:
        return usr
    location = cursor.location
    return f"{location.file.name if location.file else ''}:{location.offset}:{cursor.kind.name}"


# clang spells unnamed tags as "(unnamed struct at a.h:3:1)" or "struct (anonymous at ...)"
def _tag_name(cursor):
    if cursor.is_anonymous():
        return None
    spelling = cursor.spelling
    if not spelling or "(" in spelling or " " in spelling:
        return None
    return spelling


def _is_listed(cursor):
    location = cursor.location
    return location.file is not None and not location.is_in_system_header


class GraphBuilder:
    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.graph = DeclarationGraph()
        self._declarations = {}
        self._functions = set()
        self._macros = set()
        # (parent, field name, anonymous record) named once every parent has a name
        self._nested = []

    def visit(self, root):
        for cursor in root.get_children():
            self._visit(cursor)

    def finish(self) -> DeclarationGraph:
        # innermost records were recorded first
        for parent, field_name, record in reversed(self._nested):
            if record.is_anonymous and parent.name:
                record.name = f"{parent.name}_{field_name}"
        self._nested.clear()
        return self.graph

    def _visit(self, cursor):
        kind = cursor.kind
        if kind in (CK.NAMESPACE, CK.LINKAGE_SPEC, CK.UNEXPOSED_DECL):
            for child in cursor.get_children():
                self._visit(child)
        elif kind in (CK.STRUCT_DECL, CK.UNION_DECL):
            self._record(cursor)
        elif kind == CK.ENUM_DECL:
            self._enum(cursor)
        elif kind == CK.TYPEDEF_DECL:
            self._typedef(cursor)
        elif kind == CK.FUNCTION_DECL:
            self._function(cursor)
        elif kind == CK.MACRO_DEFINITION:
            self._macro(cursor)

    def _record(self, cursor):
        definition = cursor.get_definition()
        if definition is not None:
            cursor = definition
        key = _key(cursor)
        record = self._declarations.get(key)
        if record is not None:
            return record

        header, line = _location(cursor)
        record = Struct(
            _tag_name(cursor),
            header=header,
            line=line,
            is_union=cursor.kind == CK.UNION_DECL,
            is_opaque=definition is None,
        )
        # memoised before the fields so self references find it
        self._declarations[key] = record
        if definition is not None:
            self._fields(record, cursor)
        if _is_listed(cursor):
            self.graph.structs.append(record)
        return record

    def _fields(self, record, cursor):
        """
        Collects the fields of a record definition in declaration order.

        An unnamed record that no field declaration uses is an anonymous
        member, e.g. `struct { int kind; union { int i; float f; }; }`. It
        still takes space in the layout, so it becomes a field of its own.
        """
        pending = None
        for child in cursor.get_children():
            if child.kind in (CK.STRUCT_DECL, CK.UNION_DECL) and _tag_name(child) is None:
                self._anonymous_member(record, pending)
                pending = self._record(child)
            elif child.kind == CK.FIELD_DECL:
                type_ = self.convert(child.type)
                if pending is not None and _innermost(type_) != TagType(pending):
                    self._anonymous_member(record, pending)
                pending = None
                name = child.spelling or f"field{len(record.fields)}"
                inner = _innermost(type_)
                if isinstance(inner, TagType) and inner.declaration.is_anonymous:
                    self._nested.append((record, name, inner.declaration))
                if child.is_bitfield():
                    self.logger.warning(
                        "%s.%s: %d-bit bitfield bound as a whole %s",
                        record.describe(),
                        name,
                        child.get_bitfield_width(),
                        child.type.spelling,
                    )
                record.fields.append(Field(name, type_))
        self._anonymous_member(record, pending)

    def _anonymous_member(self, record, member):
        if member is None:
            return
        name = f"field{len(record.fields)}"
        record.fields.append(Field(name, TagType(member)))
        self._nested.append((record, name, member))

    def _enum(self, cursor):
        definition = cursor.get_definition()
        if definition is not None:
            cursor = definition
        key = _key(cursor)
        enum = self._declarations.get(key)
        if enum is not None:
            return enum

        header, line = _location(cursor)
        enum = Enumeration(
            _tag_name(cursor),
            header=header,
            line=line,
            underlying=self.convert(cursor.enum_type),
        )
        self._declarations[key] = enum
        for child in cursor.get_children():
            if child.kind == CK.ENUM_CONSTANT_DECL:
                enum.items.append(EnumItem(child.spelling, child.enum_value))
        if _is_listed(cursor):
            self.graph.enums.append(enum)
        return enum

    def _typedef(self, cursor):
        key = _key(cursor)
        typedef = self._declarations.get(key)
        if typedef is not None:
            return typedef

        header, line = _location(cursor)
        typedef = Typedef(cursor.spelling, header=header, line=line)
        self._declarations[key] = typedef
        typedef.underlying = self.convert(cursor.underlying_typedef_type)
        # typedef struct { ... } Name;
        if isinstance(typedef.underlying, TagType) and typedef.underlying.declaration.is_anonymous:
            typedef.underlying.declaration.name = typedef.name
        if _is_listed(cursor):
            self.graph.typedefs.append(typedef)
        return typedef

    def _function(self, cursor):
        name = cursor.spelling
        if not _is_listed(cursor) or name in self._functions:
            return
        self._functions.add(name)

        header, line = _location(cursor)
        parameters = [Parameter(arg.spelling, self.convert(arg.type)) for arg in cursor.get_arguments()]
        self.graph.functions.append(
            Function(
                name,
                header=header,
                line=line,
                parameters=parameters,
                return_type=self.convert(cursor.result_type),
                is_variadic=cursor.type.kind == TyK.FUNCTIONPROTO and cursor.type.is_function_variadic(),
            )
        )

    def _macro(self, cursor):
        if not _is_listed(cursor):
            return
        header, line = _location(cursor)
        name = cursor.spelling
        if (name, header, line) in self._macros:
            return

        tokens = list(cursor.get_tokens())
        # no value, e.g. an include guard
        if len(tokens) < 2:
            return
        # function-like: the parenthesis directly follows the name
        if tokens[1].spelling == "(" and tokens[1].extent.start.offset == tokens[0].extent.end.offset:
            return

        self._macros.add((name, header, line))
        expression = " ".join(t.spelling for t in tokens[1:])
        self.graph.macros.append(Macro(name, header=header, line=line, expression=expression))

    def convert(self, clang_type):
        kind = clang_type.kind
        if kind == TyK.ELABORATED:
            return self.convert(clang_type.get_named_type())
        if kind == TyK.TYPEDEF:
            return TypedefType(self._typedef(clang_type.get_declaration()))
        if kind == TyK.RECORD:
            return TagType(self._record(clang_type.get_declaration()))
        if kind == TyK.ENUM:
            return TagType(self._enum(clang_type.get_declaration()))
        if kind in (TyK.POINTER, TyK.LVALUEREFERENCE, TyK.RVALUEREFERENCE):
            pointee = clang_type.get_pointee()
            # function pointers render as a pointer type already
            if pointee.kind in (TyK.FUNCTIONPROTO, TyK.FUNCTIONNOPROTO):
                return self._function_type(pointee)
            return PointerType(self.convert(pointee))
        if kind == TyK.CONSTANTARRAY:
            return ArrayType(self.convert(clang_type.element_type), clang_type.element_count)
        if kind in (TyK.INCOMPLETEARRAY, TyK.VARIABLEARRAY):
            return ArrayType(self.convert(clang_type.element_type))
        if kind in (TyK.FUNCTIONPROTO, TyK.FUNCTIONNOPROTO):
            return self._function_type(clang_type)
        return BuiltinType(kind)

    def _function_type(self, clang_type):
        parameters = ()
        if clang_type.kind == TyK.FUNCTIONPROTO:
            parameters = tuple(self.convert(t) for t in clang_type.argument_types())
        return FunctionType(parameters, self.convert(clang_type.get_result()))


# the type under any pointers and arrays
def _innermost(type_):
    while isinstance(type_, (PointerType, ArrayType)):
        type_ = type_.pointee if isinstance(type_, PointerType) else type_.element
    return type_
