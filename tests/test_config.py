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

import json
from pathlib import Path

import pytest
from clang.cindex import TypeKind

from nativebind.config import (
    GeneratorConfig,
    LibraryDescriptor,
    MacroSearch,
    Platform,
    TypedefStrategy,
    config_from_dict,
    load_config,
)
from nativebind.errors import ConfigurationError


def _document(**overrides):
    data = {
        "namespace": "FreeType",
        "output_dir": "generated",
        "include_dirs": ["include", "/opt/freetype/include"],
        "libraries": [
            {
                "name": "FreeType",
                "header": "freetype/freetype.h",
                "platforms": {"Windows": "freetype.dll", "Linux": "libfreetype.so"},
            }
        ],
    }
    data.update(overrides)
    return data


def test_document_is_converted(tmp_path: Path) -> None:
    config = config_from_dict(
        _document(
            forced_types=["FT_Vector"],
            not_found_type_overrides={"FT_Error": "FT_Err"},
            macro_searches=["FT_LOAD", ["FT_ENCODING", "FT_ENCODING_NONE"], {"prefix": "FT_FACE_FLAG"}],
            typedef_strategies={"FT_Error": "alias", "FT_Pos": "UNWRAP"},
            name_overrides={"prio": "android_LogPriority"},
            anonymous_enum_prefixes=["FT_LOAD"],
            primitive_types={"int": "int", "char_s": "sbyte"},
            force_clear_output_directory=False,
        ),
        base_dir=tmp_path,
    )

    assert config.namespace == "FreeType"
    assert config.output_dir == tmp_path / "generated"
    assert config.include_dirs == (str(tmp_path / "include"), "/opt/freetype/include")
    (library,) = config.libraries
    assert library.name == "FreeType"
    assert list(library.platforms) == [Platform.Windows, Platform.Linux]
    assert library.default_platform is None

    options = config.options
    assert options.forced_types == ("FT_Vector",)
    assert options.not_found_type_overrides["FT_Error"] == "FT_Err"
    assert options.macro_searches == (
        MacroSearch("FT_LOAD"),
        MacroSearch("FT_ENCODING", "FT_ENCODING_NONE"),
        MacroSearch("FT_FACE_FLAG"),
    )
    assert options.typedef_strategies == {
        "FT_Error": TypedefStrategy.ALIAS_AS_NAMED_ENUM,
        "FT_Pos": TypedefStrategy.UNWRAP,
    }
    assert options.primitive_types == {TypeKind.INT: "int", TypeKind.CHAR_S: "sbyte"}
    assert options.force_clear_output_directory is False


def test_defaults() -> None:
    options = config_from_dict(_document()).options

    assert options.force_clear_output_directory is True
    assert options.primitive_types is None
    assert options.macro_searches == ()
    assert options.no_builtin_includes is False


@pytest.mark.parametrize("key", ["libraries", "namespace", "output_dir"])
def test_missing_required_key(key) -> None:
    data = _document()
    del data[key]

    with pytest.raises(ConfigurationError, match=key):
        config_from_dict(data)


@pytest.mark.parametrize(
    ("library", "message"),
    [
        ({"header": "lib.h", "platforms": {"Linux": "lib.so"}}, "missing key"),
        ({"name": "Lib", "header": "lib.h", "platforms": {"MacOS": "lib.dylib"}}, "unknown platform 'MacOS'"),
        ({"name": "Lib", "header": "lib.h", "platforms": {}}, "no platforms"),
        (
            {"name": "Lib", "header": "lib.h", "platforms": {"Linux": "lib.so"}, "default_platform": "Windows"},
            "default platform Windows",
        ),
    ],
)
def test_invalid_library(library, message) -> None:
    with pytest.raises(ConfigurationError, match=message):
        config_from_dict(_document(libraries=[library]))


def test_library_names_must_be_unique() -> None:
    library = {"name": "Lib", "header": "lib.h", "platforms": {"Linux": "lib.so"}}

    with pytest.raises(ConfigurationError, match="unique: Lib"):
        config_from_dict(_document(libraries=[library, dict(library, header="other.h")]))


@pytest.mark.parametrize(
    "options",
    [
        {"macro_searches": [42]},
        {"typedef_strategies": {"FT_Error": "inline"}},
        {"primitive_types": {"not_a_kind": "int"}},
        {"forced_types": "FT_Face"},
        {"anonymous_enum_prefixes": "FT_"},
        {"clang_args": "-DNDEBUG"},
        {"forced_types": ["FT_Face", 3]},
        {"macro_searches": "FT_LOAD"},
        {"include_dirs": "include"},
    ],
)
def test_invalid_options(options) -> None:
    with pytest.raises(ConfigurationError):
        config_from_dict(_document(**options))


def test_namespace_is_required() -> None:
    with pytest.raises(ConfigurationError, match="namespace"):
        GeneratorConfig(include_dirs=[], libraries=[], output_dir="out", namespace="")


def test_macro_search_exclusion() -> None:
    search = MacroSearch("FT_LOAD", "FT_LOAD_TARGET")

    assert search.matches("FT_LOAD_DEFAULT")
    assert not search.matches("FT_LOAD_TARGET_MONO")
    assert not search.matches("FT_ENCODING_NONE")


@pytest.mark.parametrize(
    ("header_path", "owned"),
    [
        ("multi/headerB.h", True),
        ("/usr/include/multi/headerB.h", True),
        ("C:\\sdk\\include\\multi\\headerB.h", True),
        ("/usr/include/othermulti/headerB.h", False),
        ("/usr/include/multi/headerC.h", False),
        ("", False),
    ],
)
def test_library_owns_header(header_path, owned) -> None:
    library = LibraryDescriptor("Multi", "multi/headerB.h", {Platform.Linux: "libmulti.so"})

    assert library.owns(header_path) is owned


def test_load_config_resolves_paths_against_document(tmp_path: Path) -> None:
    path = tmp_path / "bindings.json"
    path.write_text(json.dumps(_document()), encoding="utf-8")

    config = load_config(path)

    assert config.output_dir == tmp_path / "generated"


def test_load_config_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "bindings.json"
    path.write_text("{ not json", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="invalid JSON"):
        load_config(path)


def test_load_config_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "missing.json")


def test_string_instead_of_list_names_the_key() -> None:
    with pytest.raises(ConfigurationError, match="forced_types: expected a list of strings, got 'FT_Face'"):
        config_from_dict(_document(forced_types="FT_Face"))


def test_load_config_reports_unreadable_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="cannot read config file"):
        load_config(tmp_path)
