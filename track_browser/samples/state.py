from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, List, Sequence, Tuple, Union


class SampleGroupKind(Enum):
    LEAF = "leaf"
    INTERNAL = "internal"


@dataclass(frozen=True)
class SampleLeafGroup:
    """
    Terminal group: holds sample identifiers and nothing else.
    """
    name: str
    samples: Tuple[str, ...] = ()
    kind: SampleGroupKind = field(default=SampleGroupKind.LEAF, init=False)


@dataclass(frozen=True)
class SampleInternalGroup:
    """
    Non-terminal group: holds ordered subgroups.
    """
    name: str
    groups: Tuple[SampleGroup, ...] = ()
    kind: SampleGroupKind = field(default=SampleGroupKind.INTERNAL, init=False)


SampleGroup = Union[SampleLeafGroup, SampleInternalGroup]


@dataclass(frozen=True)
class GroupingStep:
    """
    One level of grouping applied to the hierarchy.

    - name: human-readable name of the attribute
    - attribute: the attribute identifier the grouping was computed from
    """
    name: str
    attribute: Any = None


@dataclass(frozen=True)
class State:
    """
    Whole-state snapshot of the sample hierarchy.

    Snapshots are immutable. A new snapshot shares every node that did not
    change with the snapshot it was derived from.
    """
    grouping_steps: Tuple[GroupingStep, ...]
    root_group: SampleGroup

    def with_root(self, root_group: SampleGroup) -> State:
        return replace(self, root_group=root_group)

    def with_grouping_step(self, step: GroupingStep) -> State:
        return replace(self, grouping_steps=self.grouping_steps + (step,))


ROOT_NAME = "ROOT"


def initial_state(samples: Sequence[str]) -> State:
    return State(grouping_steps=(), root_group=SampleLeafGroup(ROOT_NAME, tuple(samples)))


def flatten_group_hierarchy(root: SampleGroup) -> List[List[SampleGroup]]:
    """
    Returns a flattened group hierarchy: one root-to-leaf path per terminal
    group, in pre-order. The last element of each path is a SampleLeafGroup.
    """
    paths: List[List[SampleGroup]] = []
    path_stack: List[SampleGroup] = []

    def recurse(group: SampleGroup) -> None:
        path_stack.append(group)
        if group.kind is SampleGroupKind.INTERNAL:
            for child in group.groups:
                recurse(child)
        elif group.kind is SampleGroupKind.LEAF:
            paths.append(list(path_stack))
        else:
            raise TypeError(f"Not a sample group: {group!r}")
        path_stack.pop()

    recurse(root)
    return paths


def replace_leaves(root: SampleGroup, fn: Callable[[SampleLeafGroup], SampleGroup]) -> SampleGroup:
    """
    Build a new hierarchy where every terminal group is replaced by fn(leaf).

    The tree is rebuilt bottom-up. Nodes of the input are never modified, and
    an internal group whose children all come back unchanged is reused as is.
    """
    if root.kind is SampleGroupKind.LEAF:
        return fn(root)

    if root.kind is SampleGroupKind.INTERNAL:
        new_groups = tuple(replace_leaves(child, fn) for child in root.groups)
        if all(new is old for new, old in zip(new_groups, root.groups)):
            return root
        return SampleInternalGroup(root.name, new_groups)

    raise TypeError(f"Not a sample group: {root!r}")
