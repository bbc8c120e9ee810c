from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Union

from .exceptions import GroupError

Datum = Dict[str, Any]
GroupKey = Union[str, int, float, bool, None]
DataTransformer = Callable[[Sequence[Datum]], Sequence[Datum]]


class GroupKind(Enum):
    LEAF = "leaf"
    INTERNAL = "internal"


@dataclass(frozen=True)
class LeafGroup:
    """
    Terminal node of a group hierarchy. Holds the actual records.
    """

    key: GroupKey
    data: Sequence[Datum] = field(default_factory=list)
    kind: GroupKind = field(default=GroupKind.LEAF, init=False)

    def map(self, transformer: DataTransformer) -> Group:
        return map_group(self, transformer)

    def ungroup(self, key_field: Optional[str] = None) -> Group:
        return ungroup(self, key_field)

    def ungroup_all(self, key_field: Optional[str] = None) -> LeafGroup:
        return ungroup_all(self, key_field)

    def flat_data(self) -> Iterator[Datum]:
        return flat_data(self)

    def leaf_groups(self) -> List[LeafGroup]:
        return leaf_groups(self)

    def depth(self) -> int:
        return depth(self)


@dataclass(frozen=True)
class InternalGroup:
    """
    Non-terminal node of a group hierarchy. Holds ordered subgroups, which are
    expected to be all leaves or all internal groups.
    """

    key: GroupKey
    subgroups: Sequence[Group] = field(default_factory=list)
    kind: GroupKind = field(default=GroupKind.INTERNAL, init=False)

    def has_leaf_children(self) -> bool:
        # All children should be of the same kind. Just check the first child.
        return bool(self.subgroups) and self.subgroups[0].kind is GroupKind.LEAF

    def map(self, transformer: DataTransformer) -> Group:
        return map_group(self, transformer)

    def ungroup(self, key_field: Optional[str] = None) -> Group:
        return ungroup(self, key_field)

    def ungroup_all(self, key_field: Optional[str] = None) -> LeafGroup:
        return ungroup_all(self, key_field)

    def flat_data(self) -> Iterator[Datum]:
        return flat_data(self)

    def leaf_groups(self) -> List[LeafGroup]:
        return leaf_groups(self)

    def depth(self) -> int:
        return depth(self)


Group = Union[LeafGroup, InternalGroup]


def _unknown_kind(group: Any) -> GroupError:
    return GroupError(f"Not a group: {group!r}")


# -------------------------------------------------------------------------
# Structural operations
# -------------------------------------------------------------------------

def map_group(group: Group, transformer: DataTransformer) -> Group:
    """
    Clone the hierarchy and apply the transformer to each leaf's data.

    Keys and shape are preserved and the input hierarchy is left untouched.
    """
    if group.kind is GroupKind.LEAF:
        return LeafGroup(group.key, transformer(group.data))
    if group.kind is GroupKind.INTERNAL:
        return InternalGroup(
            group.key, [map_group(g, transformer) for g in group.subgroups]
        )
    raise _unknown_kind(group)


def ungroup(group: Group, key_field: Optional[str] = None) -> Group:
    """
    Collapse the level of nesting nearest to the leaves.

    An internal group with leaf children becomes a single leaf keyed by the
    internal group's key. The children's keys are lost unless `key_field` is
    given, in which case each record is copied with its former group key
    written into that field.

    An internal group with internal children is rebuilt with each child
    ungrouped, so the root stays internal.

    Raises:
        GroupError: if called on a leaf
    """
    if group.kind is GroupKind.LEAF:
        raise GroupError(f"Cannot ungroup a leaf group (key={group.key!r})")

    if group.kind is GroupKind.INTERNAL:
        if not group.subgroups:
            return LeafGroup(group.key, [])

        if group.has_leaf_children():
            data: List[Datum] = []
            for child in group.subgroups:
                if key_field is None:
                    data.extend(child.data)
                else:
                    data.extend({**datum, key_field: child.key} for datum in child.data)
            return LeafGroup(group.key, data)

        return InternalGroup(
            group.key, [ungroup(child, key_field) for child in group.subgroups]
        )

    raise _unknown_kind(group)


def ungroup_all(group: Group, key_field: Optional[str] = None) -> LeafGroup:
    """
    Ungroup repeatedly until a single leaf remains. Needs at most depth(group)
    applications.
    """
    while group.kind is GroupKind.INTERNAL:
        group = ungroup(group, key_field)
    return group


def leaf_groups(group: Group) -> List[LeafGroup]:
    """Every leaf of the hierarchy in pre-order, depth-first order."""
    if group.kind is GroupKind.LEAF:
        return [group]
    if group.kind is GroupKind.INTERNAL:
        leaves: List[LeafGroup] = []
        for child in group.subgroups:
            leaves.extend(leaf_groups(child))
        return leaves
    raise _unknown_kind(group)


def flat_data(group: Group) -> Iterator[Datum]:
    """
    Lazily yield the records of all leaves, concatenated in subgroup order.

    The returned iterator is single-pass. Call flat_data() again to restart.
    """
    if group.kind is GroupKind.LEAF:
        yield from group.data
    elif group.kind is GroupKind.INTERNAL:
        for child in group.subgroups:
            yield from flat_data(child)
    else:
        raise _unknown_kind(group)


def depth(group: Group) -> int:
    """Number of internal levels above the leaves. A lone leaf has depth 0."""
    if group.kind is GroupKind.LEAF:
        return 0
    if group.kind is GroupKind.INTERNAL:
        if not group.subgroups:
            return 1
        return 1 + max(depth(child) for child in group.subgroups)
    raise _unknown_kind(group)
