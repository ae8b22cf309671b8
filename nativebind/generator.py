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
Binding generation run

    parse headers -> name anonymous enums -> extract macro constants
        -> emit every library -> emit Platform -> emit forced types
        -> report orphans
"""

import logging
from dataclasses import dataclass, field

from .constants import ARTIFACT_EXTENSION, LOGGER_NAME
from .context import GenerationContext
from .csharp import CSharpRenderer
from .emitter import PlatformBindingEmitter
from .enums import register_typedef_aliases, unify_anonymous_enums
from .errors import HeaderParseError
from .macros import extract_macro_constants
from .output import ArtifactWriter
from .registrar import Registrar
from .resolver import TypeResolver


@dataclass
class GenerationReport:
    artifacts: list[str] = field(default_factory=list)
    registered: list[str] = field(default_factory=list)
    orphans: list[str] = field(default_factory=list)
    constants: list = field(default_factory=list)


@dataclass
class Engine:
    context: GenerationContext
    resolver: TypeResolver
    registrar: Registrar
    emitter: PlatformBindingEmitter


def create_engine(context, writer, renderer) -> Engine:
    """Wires the resolver and the registrar, which call each other"""
    registrar = Registrar(context, writer, renderer)
    resolver = TypeResolver(context, registrar.register)
    registrar.resolver = resolver
    emitter = PlatformBindingEmitter(context, resolver, writer, renderer)
    return Engine(context, resolver, registrar, emitter)


def _log_diagnostics(logger, diagnostics):
    for d in diagnostics:
        logger.warning(
            "fileName: %s line: %s column: %s message: %s", d.file, d.line, d.column, d.message
        )


def generate(config, *, parser=None, logger=None) -> GenerationReport:
    logger = logger or logging.getLogger(LOGGER_NAME)
    options = config.options

    if parser is None:
        from .frontend import ClangHeaderParser

        parser = ClangHeaderParser(options, logger=logger)

    headers = [library.header for library in config.libraries]
    result = parser.parse(config.include_dirs, headers)
    _log_diagnostics(logger, result.diagnostics)
    if not result.success:
        raise HeaderParseError(result.kind, result.diagnostics)

    writer = ArtifactWriter(config.output_dir, ARTIFACT_EXTENSION, logger)
    writer.prepare(options.force_clear_output_directory)

    context = GenerationContext(result.graph, options, logger)
    context.index_declarations()
    unify_anonymous_enums(context, options.anonymous_enum_prefixes)
    register_typedef_aliases(context)
    extract_macro_constants(context, options.macro_searches)

    engine = create_engine(context, writer, CSharpRenderer(config.namespace))
    partitions = engine.emitter.partition(config.libraries)
    for library in config.libraries:
        engine.emitter.emit_library(library, partitions[library.name])
    engine.emitter.emit_platform_enum()

    for name in options.forced_types:
        engine.registrar.register(name)

    orphans = context.orphans()
    for name in orphans:
        logger.warning("%s was never referenced, no binding generated", name)

    logger.info("%d files written to %s", len(writer.written), config.output_dir)
    return GenerationReport(
        artifacts=list(writer.written),
        registered=list(context.registered),
        orphans=orphans,
        constants=list(context.constants),
    )
