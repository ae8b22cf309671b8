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

import random

import pytest
from clang.cindex import TypeKind

from conftest import CHAR, FLOAT, INT
from nativebind.errors import ConfigurationError, UnknownTypeError
from nativebind.ir import (
    ArrayType,
    BuiltinType,
    DeclarationGraph,
    EnumItem,
    Enumeration,
    Field,
    PointerType,
    Struct,
    TagType,
)
from nativebind.registrar import AlreadyEmitted, Emitted, Redirected


def test_registration_is_idempotent(make_engine, artifacts) -> None:
    point = Struct("Point", fields=[Field("x", INT), Field("y", INT)])
    engine = make_engine(DeclarationGraph(structs=[point]))

    assert engine.registrar.register("Point") == Emitted("Point")
    assert engine.registrar.register("Point") == AlreadyEmitted("Point")
    assert artifacts() == ["Point"]
    assert engine.context.registered == ["Point"]


def test_struct_artifact(make_engine, read_artifact) -> None:
    point = Struct("Point", fields=[Field("x", INT), Field("name", PointerType(CHAR))])
    make_engine(DeclarationGraph(structs=[point]), namespace="Geometry").registrar.register("Point")

    assert read_artifact("Point") == (
        "using System.Runtime.InteropServices;\n"
        "\n"
        "namespace Geometry\n"
        "{\n"
        "    [StructLayout(LayoutKind.Sequential)]\n"
        "    public unsafe struct Point\n"
        "    {\n"
        "        public int x;\n"
        "        public byte* name;\n"
        "    }\n"
        "}\n"
    )


def test_self_referencing_struct_terminates(make_engine, read_artifact) -> None:
    node = Struct("Node", fields=[Field("value", INT)])
    node.fields.append(Field("next", PointerType(TagType(node))))
    engine = make_engine(DeclarationGraph(structs=[node]))

    assert engine.registrar.register("Node") == Emitted("Node")
    assert "public Node* next;" in read_artifact("Node")


def test_mutually_referencing_structs_are_emitted_once(make_engine, artifacts) -> None:
    parent = Struct("Parent")
    child = Struct("Child", fields=[Field("parent", PointerType(TagType(parent)))])
    parent.fields.append(Field("first_child", PointerType(TagType(child))))
    engine = make_engine(DeclarationGraph(structs=[parent, child]))

    engine.registrar.register("Parent")
    engine.registrar.register("Child")

    assert artifacts() == ["Child", "Parent"]
    assert engine.context.registered == ["Parent", "Child"]


def test_reserved_field_names_are_escaped(make_engine, read_artifact) -> None:
    event = Struct("Event", fields=[Field("object", PointerType(BuiltinType(TypeKind.VOID))), Field("base", INT)])
    make_engine(DeclarationGraph(structs=[event])).registrar.register("Event")

    text = read_artifact("Event")
    assert "public void* _object;" in text
    assert "public int _base;" in text


def test_union_uses_explicit_layout(make_engine, read_artifact) -> None:
    value = Struct("Value", fields=[Field("i", INT), Field("f", FLOAT)], is_union=True)
    make_engine(DeclarationGraph(structs=[value])).registrar.register("Value")

    text = read_artifact("Value")
    assert "[StructLayout(LayoutKind.Explicit)]" in text
    assert text.count("[FieldOffset(0)]") == 2


def test_opaque_struct_is_marked(make_engine, read_artifact) -> None:
    library = Struct("FT_LibraryRec_", is_opaque=True)
    face = Struct("FT_FaceRec_", fields=[Field("library", PointerType(TagType(library)))])
    make_engine(DeclarationGraph(structs=[library, face])).registrar.register("FT_FaceRec_")

    assert "// opaque, only used through pointers" in read_artifact("FT_LibraryRec_")
    assert "public FT_LibraryRec_* library;" in read_artifact("FT_FaceRec_")
    assert "opaque" not in read_artifact("FT_FaceRec_")


def test_fixed_array_field_is_marshalled_by_value(make_engine, read_artifact) -> None:
    header = Struct("Header", fields=[Field("magic", ArrayType(CHAR, 16))])
    make_engine(DeclarationGraph(structs=[header])).registrar.register("Header")

    text = read_artifact("Header")
    assert "[MarshalAs(UnmanagedType.ByValArray, SizeConst = 16)]" in text
    assert "public byte[] magic;" in text


def test_enum_artifact_keeps_literal_values(make_engine, read_artifact) -> None:
    mode = Enumeration(
        "Mode",
        items=[EnumItem("MODE_READ", 1), EnumItem("MODE_WRITE", 2), EnumItem("MODE_ALL", 3)],
        underlying=BuiltinType(TypeKind.UINT),
    )
    engine = make_engine(DeclarationGraph(enums=[mode]))

    assert engine.registrar.register("Mode") == Emitted("Mode")
    text = read_artifact("Mode")
    assert "public enum Mode : uint" in text
    assert "MODE_READ = 1," in text
    assert "MODE_ALL = 3," in text


class TestNotFoundOverrides:
    def _graph(self):
        return DeclarationGraph(enums=[Enumeration("Prefix", items=[EnumItem("Prefix_A", 0)])])

    def test_unknown_name_redirects_to_override(self, make_engine, artifacts) -> None:
        engine = make_engine(self._graph(), not_found_type_overrides={"FT_Error": "Prefix"})

        assert engine.registrar.register("FT_Error") == Redirected("Prefix")
        assert engine.registrar.register("FT_Error") == Redirected("Prefix")
        assert artifacts() == ["Prefix"]

    def test_redirect_chain_reports_final_target(self, make_engine) -> None:
        engine = make_engine(
            self._graph(),
            not_found_type_overrides={"A": "B", "B": "Prefix"},
        )

        assert engine.registrar.register("A") == Redirected("Prefix")

    def test_redirect_cycle_is_a_configuration_error(self, make_engine) -> None:
        engine = make_engine(self._graph(), not_found_type_overrides={"A": "B", "B": "A"})

        with pytest.raises(ConfigurationError, match="cycle"):
            engine.registrar.register("A")

    def test_unknown_name_without_override_is_fatal(self, make_engine) -> None:
        engine = make_engine(self._graph())

        with pytest.raises(UnknownTypeError, match="not supported type name FT_Error"):
            engine.registrar.register("FT_Error")


def test_orphans_are_known_but_unregistered(make_engine) -> None:
    used = Struct("Used", fields=[Field("x", INT)])
    unused = Struct("Unused")
    anonymous = Struct(None, header="lib.h", line=12)
    engine = make_engine(DeclarationGraph(structs=[used, unused, anonymous]))

    engine.registrar.register("Used")

    assert engine.context.orphans() == ["Unused", "(anonymous struct at lib.h:12)"]


@pytest.mark.parametrize("seed", range(10))
def test_artifact_count_matches_reachable_names(make_engine, artifacts, seed) -> None:
    rng = random.Random(seed)
    structs = [Struct(f"S{i}") for i in range(8)]
    for s in structs:
        for j in range(rng.randint(0, 3)):
            target = rng.choice(structs)
            s.fields.append(Field(f"f{j}", PointerType(TagType(target))))
    engine = make_engine(DeclarationGraph(structs=structs))

    roots = [rng.choice(structs).name for _ in range(5)]
    for name in roots + roots:
        engine.registrar.register(name)

    by_name = {s.name: s for s in structs}
    reachable, pending = set(), list(roots)
    while pending:
        name = pending.pop()
        if name in reachable:
            continue
        reachable.add(name)
        pending.extend(f.type.pointee.declaration.name for f in by_name[name].fields)

    assert artifacts() == sorted(reachable)
    assert sorted(engine.context.registered) == sorted(reachable)
