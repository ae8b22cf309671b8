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
Run configuration

Library descriptors, generator options and the JSON config document used by
the command line.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Mapping, Optional

from clang.cindex import TypeKind

from .errors import ConfigurationError


class Platform(Enum):
    Android = "Android"
    Windows = "Windows"
    Linux = "Linux"


class TypedefStrategy(Enum):
    # resolve the typedef's underlying type, the typedef itself produces nothing
    UNWRAP = "unwrap"
    # treat the typedef as its own enumeration named after the typedef
    ALIAS_AS_NAMED_ENUM = "alias"


@dataclass(frozen=True)
class MacroSearch:
    prefix: str
    exclude_prefix: Optional[str] = None

    def matches(self, name: str) -> bool:
        if not name.startswith(self.prefix):
            return False
        if self.exclude_prefix and name.startswith(self.exclude_prefix):
            return False
        return True


def _normalize_path(path) -> str:
    return PurePosixPath(str(path).replace("\\", "/")).as_posix()


@dataclass(frozen=True)
class LibraryDescriptor:
    name: str
    header: str
    platforms: Mapping[Platform, str]
    default_platform: Optional[Platform] = None

    def __post_init__(self):
        if not self.platforms:
            raise ConfigurationError(f"library {self.name} has no platforms configured")
        if self.default_platform is not None and self.default_platform not in self.platforms:
            raise ConfigurationError(
                f"default platform {self.default_platform.value} of library {self.name} "
                "has no binary configured"
            )
        object.__setattr__(self, "platforms", MappingProxyType(dict(self.platforms)))

    # a function belongs to this library when its header path ends with the header identifier
    def owns(self, header_path) -> bool:
        if not header_path:
            return False
        path = _normalize_path(header_path)
        header = _normalize_path(self.header)
        return path == header or path.endswith("/" + header.lstrip("/"))


def _frozen(mapping):
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class GeneratorOptions:
    force_clear_output_directory: bool = True
    forced_types: tuple[str, ...] = ()
    not_found_type_overrides: Mapping[str, str] = field(default_factory=dict)
    macro_searches: tuple[MacroSearch, ...] = ()
    # replaces the default map entirely when given
    primitive_types: Optional[Mapping[TypeKind, str]] = None
    typedef_strategies: Mapping[str, TypedefStrategy] = field(default_factory=dict)
    name_overrides: Mapping[str, str] = field(default_factory=dict)
    anonymous_enum_prefixes: tuple[str, ...] = ()
    no_builtin_includes: bool = False
    no_standard_includes: bool = False
    clang_args: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "forced_types", tuple(self.forced_types))
        object.__setattr__(self, "macro_searches", tuple(self.macro_searches))
        object.__setattr__(self, "anonymous_enum_prefixes", tuple(self.anonymous_enum_prefixes))
        object.__setattr__(self, "clang_args", tuple(self.clang_args))
        object.__setattr__(self, "not_found_type_overrides", _frozen(self.not_found_type_overrides))
        object.__setattr__(self, "typedef_strategies", _frozen(self.typedef_strategies))
        object.__setattr__(self, "name_overrides", _frozen(self.name_overrides))
        if self.primitive_types is not None:
            object.__setattr__(self, "primitive_types", _frozen(self.primitive_types))


@dataclass(frozen=True)
class GeneratorConfig:
    include_dirs: tuple[str, ...]
    libraries: tuple[LibraryDescriptor, ...]
    output_dir: Path
    namespace: str
    options: GeneratorOptions = field(default_factory=GeneratorOptions)

    def __post_init__(self):
        object.__setattr__(self, "include_dirs", tuple(str(d) for d in self.include_dirs))
        object.__setattr__(self, "libraries", tuple(self.libraries))
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        if not self.namespace:
            raise ConfigurationError("a target namespace is required")
        names = [lib.name for lib in self.libraries]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"library names must be unique: {', '.join(duplicates)}")


## JSON config documents


def _parse_platform(value, where) -> Platform:
    try:
        return Platform(value)
    except ValueError:
        valid = ", ".join(p.value for p in Platform)
        raise ConfigurationError(f"{where}: unknown platform {value!r} (expected one of {valid})") from None


def _parse_type_kind(value) -> TypeKind:
    kind = getattr(TypeKind, str(value).upper(), None)
    if not isinstance(kind, TypeKind):
        raise ConfigurationError(f"primitive_types: unknown clang type kind {value!r}")
    return kind


def _parse_strategy(name, value) -> TypedefStrategy:
    for strategy in TypedefStrategy:
        if value in (strategy.value, strategy.name, strategy.name.lower()):
            return strategy
    raise ConfigurationError(f"typedef_strategies: unknown strategy {value!r} for {name}")


def _parse_library(data, index) -> LibraryDescriptor:
    where = f"libraries[{index}]"
    try:
        name = data["name"]
        header = data["header"]
        raw_platforms = data["platforms"]
    except (KeyError, TypeError) as e:
        raise ConfigurationError(f"{where}: missing key {e}") from None
    platforms = {}
    for platform, binary in raw_platforms.items():
        platforms[_parse_platform(platform, where)] = str(binary)
    default_platform = data.get("default_platform")
    if default_platform is not None:
        default_platform = _parse_platform(default_platform, where)
    return LibraryDescriptor(
        name=name,
        header=header,
        platforms=platforms,
        default_platform=default_platform,
    )


def _parse_macro_search(data) -> MacroSearch:
    if isinstance(data, str):
        return MacroSearch(data)
    if isinstance(data, (list, tuple)) and 1 <= len(data) <= 2:
        return MacroSearch(*data)
    if isinstance(data, dict) and "prefix" in data:
        return MacroSearch(data["prefix"], data.get("exclude_prefix"))
    raise ConfigurationError(f"macro_searches: invalid entry {data!r}")


# a bare string would otherwise be split into characters
def _list(data, key):
    value = data.get(key, ())
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"{key}: expected a list, got {value!r}")
    return value


def _string_list(data, key):
    value = _list(data, key)
    if not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"{key}: expected a list of strings, got {value!r}")
    return value


def options_from_dict(data) -> GeneratorOptions:
    primitive_types = data.get("primitive_types")
    if primitive_types is not None:
        primitive_types = {_parse_type_kind(k): v for k, v in primitive_types.items()}
    return GeneratorOptions(
        force_clear_output_directory=data.get("force_clear_output_directory", True),
        forced_types=_string_list(data, "forced_types"),
        not_found_type_overrides=data.get("not_found_type_overrides", {}),
        macro_searches=[_parse_macro_search(m) for m in _list(data, "macro_searches")],
        primitive_types=primitive_types,
        typedef_strategies={
            k: _parse_strategy(k, v) for k, v in data.get("typedef_strategies", {}).items()
        },
        name_overrides=data.get("name_overrides", {}),
        anonymous_enum_prefixes=_string_list(data, "anonymous_enum_prefixes"),
        no_builtin_includes=data.get("no_builtin_includes", False),
        no_standard_includes=data.get("no_standard_includes", False),
        clang_args=_string_list(data, "clang_args"),
    )


def config_from_dict(data, base_dir=None) -> GeneratorConfig:
    if not isinstance(data, dict):
        raise ConfigurationError("config document must be a JSON object")
    for key in ("libraries", "namespace", "output_dir"):
        if key not in data:
            raise ConfigurationError(f"config is missing required key {key!r}")
    base = Path(base_dir) if base_dir else Path.cwd()

    def _path(p):
        p = Path(p)
        return p if p.is_absolute() else base / p

    return GeneratorConfig(
        include_dirs=[str(_path(d)) for d in _string_list(data, "include_dirs")],
        libraries=[_parse_library(lib, i) for i, lib in enumerate(data["libraries"])],
        output_dir=_path(data["output_dir"]),
        namespace=data["namespace"],
        options=options_from_dict(data),
    )


# relative paths in the document are relative to the document itself
def load_config(path) -> GeneratorConfig:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"config file not found: {path}") from None
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {path}: {e.strerror or e}") from None
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path}: invalid JSON ({e})") from None
    return config_from_dict(data, base_dir=path.parent)
