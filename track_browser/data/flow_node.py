from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Datum = Dict[str, Any]


class Behavior(Enum):
    """
    How a node treats the records that flow through it.

    - PASSIVE: never mutates its input records
    - CLONES: always constructs fresh output records
    - MODIFIES: mutates its input records in place
    """
    PASSIVE = "passive"
    CLONES = "clones"
    MODIFIES = "modifies"


class FlowNode:
    """
    A node in the push-based data flow graph.

    Records are pushed in with `handle` and forwarded to every child with
    `_propagate`. A node has at most one parent but may feed many children,
    so one upstream chain can be shared by several independent branches.

    A load cycle is framed by `reset()` (before the first record) and
    `complete()` (after the last one). Both are forwarded to the children.
    """

    #: Short name used in diagnostics and in the transform factory
    type_name: str = "node"

    def __init__(self) -> None:
        self.parent: Optional[FlowNode] = None
        self.children: List[FlowNode] = []
        self.completed = False

    @property
    def behavior(self) -> Behavior:
        return Behavior.PASSIVE

    def add_child(self, child: FlowNode) -> FlowNode:
        """
        Attach a downstream consumer.

        :param child: node that receives everything this node propagates
        :return: the child, so that chains can be built fluently
        """
        if child.parent is not None and child.parent is not self:
            raise ValueError(f"{child.describe()} already has a parent ({child.parent.describe()})")
        child.parent = self
        self.children.append(child)
        return child

    def remove_child(self, child: FlowNode) -> None:
        self.children.remove(child)
        child.parent = None

    def replace_child(self, child: FlowNode, replacement: FlowNode) -> None:
        index = self.children.index(child)
        self.children[index] = replacement
        child.parent = None
        replacement.parent = self

    def excise(self) -> None:
        """
        Remove this node from the graph, connecting its children directly to
        its parent at this node's position.
        """
        parent = self.parent
        if parent is None:
            raise ValueError(f"Cannot excise a root node: {self.describe()}")

        index = parent.children.index(self)
        for child in self.children:
            child.parent = parent
        parent.children[index:index + 1] = self.children
        self.children = []
        self.parent = None

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self.completed = False
        for child in self.children:
            child.reset()

    def handle(self, datum: Datum) -> None:
        """Process one record. The default implementation just forwards it."""
        self._propagate(datum)

    def _propagate(self, datum: Datum) -> None:
        for child in self.children:
            child.handle(datum)

    def complete(self) -> None:
        self.completed = True
        for child in self.children:
            child.complete()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def visit(self, visitor: Callable[[FlowNode], None]) -> None:
        """Visit this node and its descendants in depth-first pre-order."""
        visitor(self)
        for child in self.children:
            child.visit(visitor)

    def ancestors(self) -> List[FlowNode]:
        nodes: List[FlowNode] = []
        node = self.parent
        while node is not None:
            nodes.append(node)
            node = node.parent
        return nodes

    def describe(self) -> str:
        return f"{type(self).__name__}({self.type_name})"

    def __repr__(self) -> str:
        return f"<{self.describe()} children={len(self.children)}>"
