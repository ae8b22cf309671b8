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
Per-run generation state

One GenerationContext is created at the start of a run and dropped at its end.
Nothing in here is shared between runs.
"""

import logging
from types import MappingProxyType
from typing import Optional

from .config import GeneratorOptions
from .constants import LOGGER_NAME, PRIMITIVE_TYPE_MAP
from .errors import DuplicateDeclarationError
from .ir import Declaration, DeclarationGraph, Enumeration, Struct


class GenerationContext:
    def __init__(self, graph: DeclarationGraph, options: GeneratorOptions = None, logger=None):
        self.graph = graph
        self.options = options or GeneratorOptions()
        self.logger = logger or logging.getLogger(LOGGER_NAME)

        # override tables, read-only for the whole run
        if self.options.primitive_types is not None:
            self.primitive_types = MappingProxyType(dict(self.options.primitive_types))
        else:
            self.primitive_types = PRIMITIVE_TYPE_MAP
        self.not_found_type_overrides = MappingProxyType(dict(self.options.not_found_type_overrides))
        self.typedef_strategies = MappingProxyType(dict(self.options.typedef_strategies))
        self.name_overrides = MappingProxyType(dict(self.options.name_overrides))

        self.structs: dict[str, Struct] = {}
        self.enums: dict[str, Enumeration] = {}
        self.declarations: dict[str, Declaration] = {}
        # names given to anonymous declarations by the pre-passes
        self.synthesized_names: dict[Declaration, str] = {}
        self.unreachable: list[Declaration] = []

        self.registered: list[str] = []
        self._registered: set[str] = set()
        self.constants = []
        self.reported_typedefs: set[str] = set()

    # indexes every named struct and enum of the graph
    def index_declarations(self):
        for struct in self.graph.structs:
            if struct.is_anonymous:
                self.unreachable.append(struct)
            else:
                self.add_declaration(struct)
        for enum in self.graph.enums:
            if not enum.is_anonymous:
                self.add_declaration(enum)

    def add_declaration(self, declaration, name=None):
        name = name or declaration.name
        existing = self.declarations.get(name)
        if existing is not None and existing is not declaration:
            raise DuplicateDeclarationError(name, existing, declaration)
        if isinstance(declaration, Struct):
            self.structs[name] = declaration
        elif isinstance(declaration, Enumeration):
            self.enums[name] = declaration
        else:
            raise TypeError(f"only structs and enums are registrable, got {declaration!r}")
        self.declarations[name] = declaration
        if name != declaration.name:
            self.synthesized_names[declaration] = name

    def name_of(self, declaration) -> Optional[str]:
        if declaration in self.synthesized_names:
            return self.synthesized_names[declaration]
        return declaration.name or None

    def is_registered(self, name) -> bool:
        return name in self._registered

    def mark_registered(self, name):
        self._registered.add(name)
        self.registered.append(name)

    # declarations that exist but were never reached from a generation root
    def orphans(self) -> list[str]:
        orphans = [name for name in self.declarations if name not in self._registered]
        orphans.extend(d.describe() for d in self.unreachable)
        return orphans
