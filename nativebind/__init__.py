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
nativebind generates C# P/Invoke bindings for native C libraries.

Headers are parsed with libclang. For every configured library and platform
it writes DllImport entry points and a wrapper, plus one interface and one
dispatch class per library, and every struct and enum the signatures need.
"""

from .config import (
    GeneratorConfig,
    GeneratorOptions,
    LibraryDescriptor,
    MacroSearch,
    Platform,
    TypedefStrategy,
    config_from_dict,
    load_config,
)
from .errors import GenerationError
from .generator import GenerationReport, generate

__version__ = "0.1.0"

__all__ = [
    "GenerationError",
    "GenerationReport",
    "GeneratorConfig",
    "GeneratorOptions",
    "LibraryDescriptor",
    "MacroSearch",
    "Platform",
    "TypedefStrategy",
    "config_from_dict",
    "generate",
    "load_config",
]
