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
Anonymous enum naming

C headers often declare their constants in unnamed enums, e.g.

    enum { FT_LOAD_DEFAULT = 0, FT_LOAD_NO_SCALE = 1 };

Such an enum can only be referenced once it has a name. An unnamed enum is
named after the longest configured prefix of its first member, and every
unnamed enum landing on the same name is merged into one enumeration.
"""

from .config import TypedefStrategy
from .errors import EnumMemberCollisionError
from .ir import EnumItem, Enumeration, TagType, TypedefType


def longest_prefix(member_name, prefixes):
    """Returns the longest prefix of member_name, the first listed one on ties"""
    matching = [p for p in prefixes if p and member_name.startswith(p)]
    if not matching:
        return None
    return max(matching, key=len)


def unify_anonymous_enums(context, prefixes):
    """Names the unnamed enums of the graph, returns {name: merged enumeration}"""
    merged = {}
    for enum in context.graph.enums:
        if not enum.is_anonymous:
            continue

        first = enum.first_item
        name = longest_prefix(first.name, prefixes) if first else None
        if name is None:
            context.unreachable.append(enum)
            context.logger.debug("%s left unnamed", enum.describe())
            continue

        target = merged.get(name)
        if target is None:
            target = Enumeration(name, underlying=enum.underlying, header=enum.header, line=enum.line)
            context.add_declaration(target)
            merged[name] = target
        _merge_items(target, enum)
        context.synthesized_names[enum] = name
        context.logger.debug("%s named %s", enum.describe(), name)
    return merged


def _merge_items(target, enum):
    known = {item.name: item.value for item in target.items}
    for item in enum.items:
        if item.name not in known:
            target.items.append(EnumItem(item.name, item.value))
            known[item.name] = item.value
        elif known[item.name] != item.value:
            raise EnumMemberCollisionError(target.name, item.name, known[item.name], item.value)


def register_typedef_aliases(context):
    """
    Gives every typedef resolved as a named enum its own enumeration, e.g.

        typedef enum { FT_Err_Ok = 0 } FT_Error;

    becomes `enum FT_Error`. Aliases of anything but an enum are left to the
    not-found type overrides.
    """
    aliases = []
    for typedef in context.graph.typedefs:
        if context.typedef_strategies.get(typedef.name) is not TypedefStrategy.ALIAS_AS_NAMED_ENUM:
            continue
        enum = _aliased_enum(typedef)
        if enum is None or context.declarations.get(typedef.name) is enum:
            continue
        alias = Enumeration(
            typedef.name,
            items=[EnumItem(item.name, item.value) for item in enum.items],
            underlying=enum.underlying,
            header=typedef.header,
            line=typedef.line,
        )
        context.add_declaration(alias)
        aliases.append(alias)
    return aliases


def _aliased_enum(typedef):
    seen = set()
    type_ = typedef.underlying
    while isinstance(type_, TypedefType) and id(type_.declaration) not in seen:
        seen.add(id(type_.declaration))
        type_ = type_.declaration.underlying
    if isinstance(type_, TagType) and isinstance(type_.declaration, Enumeration):
        return type_.declaration
    return None
