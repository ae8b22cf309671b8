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

import logging
from collections.abc import Callable
from pathlib import Path

import pytest
from clang.cindex import TypeKind

from nativebind.config import GeneratorConfig, GeneratorOptions, LibraryDescriptor, Platform
from nativebind.context import GenerationContext
from nativebind.csharp import CSharpRenderer
from nativebind.generator import Engine, create_engine
from nativebind.ir import BuiltinType, DeclarationGraph, ParseResult, ParseResultKind
from nativebind.output import ArtifactWriter

HEADERS_DIR = Path(__file__).resolve().parent / "headers"

INT = BuiltinType(TypeKind.INT)
UINT = BuiltinType(TypeKind.UINT)
FLOAT = BuiltinType(TypeKind.FLOAT)
CHAR = BuiltinType(TypeKind.CHAR_S)
VOID = BuiltinType(TypeKind.VOID)


class FakeParser:
    """Returns a prepared result instead of running libclang"""

    def __init__(self, graph=None, kind=ParseResultKind.SUCCESS, diagnostics=()):
        self.result = ParseResult(kind, graph if graph is not None else DeclarationGraph(), list(diagnostics))
        self.calls = []

    def parse(self, include_dirs, headers):
        self.calls.append((list(include_dirs), list(headers)))
        return self.result


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("nativebind.tests")


@pytest.fixture
def make_context(logger) -> Callable[..., GenerationContext]:
    def _make_context(graph: DeclarationGraph, **options: object) -> GenerationContext:
        context = GenerationContext(graph, GeneratorOptions(**options), logger)
        context.index_declarations()
        return context

    return _make_context


@pytest.fixture
def make_engine(output_dir: Path, make_context) -> Callable[..., Engine]:
    def _make_engine(graph: DeclarationGraph, *, namespace: str = "Lib", **options: object) -> Engine:
        writer = ArtifactWriter(output_dir)
        writer.prepare(force_clear=True)
        return create_engine(make_context(graph, **options), writer, CSharpRenderer(namespace))

    return _make_engine


@pytest.fixture
def read_artifact(output_dir: Path) -> Callable[[str], str]:
    def _read_artifact(name: str) -> str:
        return (output_dir / f"{name}.cs").read_text(encoding="utf-8")

    return _read_artifact


@pytest.fixture
def artifacts(output_dir: Path) -> Callable[[], list[str]]:
    def _artifacts() -> list[str]:
        return sorted(p.stem for p in output_dir.glob("*.cs"))

    return _artifacts


@pytest.fixture
def make_library() -> Callable[..., LibraryDescriptor]:
    def _make_library(
        name: str = "Lib",
        header: str = "lib.h",
        platforms: dict | None = None,
        default_platform: Platform | None = None,
    ) -> LibraryDescriptor:
        return LibraryDescriptor(
            name=name,
            header=header,
            platforms=platforms or {Platform.Linux: "lib.so"},
            default_platform=default_platform,
        )

    return _make_library


@pytest.fixture
def make_config(output_dir: Path, make_library) -> Callable[..., GeneratorConfig]:
    def _make_config(
        *, libraries=None, namespace: str = "Lib", out: Path | None = None, include_dirs=("include",), **options
    ) -> GeneratorConfig:
        return GeneratorConfig(
            include_dirs=include_dirs,
            libraries=libraries or [make_library()],
            output_dir=out or output_dir,
            namespace=namespace,
            options=GeneratorOptions(**options),
        )

    return _make_config
