from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from track_browser.core.exceptions import FlowBuildError
from track_browser.core.group import Group
from track_browser.data.collector import Collector
from track_browser.data.data_flow import DataFlow
from track_browser.data.flow_node import Behavior, FlowNode
from track_browser.data.sources import DataSource, create_data_source
from track_browser.data.transforms.clone import CloneTransform
from track_browser.data.transforms.registry import TransformRegistry, default_registry

from .view import UnitView, View

logger = logging.getLogger(__name__)

Edge = Tuple[FlowNode, FlowNode]


class FlowBuilder:
    """
    Turns a view hierarchy into data flow graphs.

    The hierarchy is walked depth-first. The builder keeps its own stack of
    "current nodes", one per ancestor view, so a child view continues the
    chain of its parent and siblings branch off the same upstream node.

    Every transform that modifies records in place gets a CloneTransform in
    front of it, so that the modification never leaks into a sibling branch.
    With `optimize=True` the clones are dropped afterwards where no upstream
    sharing is possible.
    """

    def __init__(
        self,
        data_flow: Optional[DataFlow] = None,
        *,
        optimize: bool = True,
        registry: Optional[TransformRegistry] = None,
    ):
        self.data_flow: DataFlow = data_flow if data_flow is not None else DataFlow()
        self.optimize = optimize
        self.registry = registry or default_registry
        self.edges: List[Edge] = []

        self._stack: List[Optional[FlowNode]] = []
        self._current: Optional[FlowNode] = None
        self._post_process_ops: List[Callable[[], None]] = []
        self._clones: List[CloneTransform] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def build(self, root: View) -> DataFlow:
        """
        :raises FlowBuildError: on unknown transforms or sources, or a unit
            view without an (inherited) data source
        """
        root.visit(self._enter_view, self._exit_view)

        for op in self._post_process_ops:
            op()
        self._post_process_ops = []

        if self.optimize:
            self._remove_redundant_clones()

        logger.info(
            "Built data flow",
            extra={
                "sources": len(self.data_flow.data_sources),
                "collectors": len(self.data_flow.collectors),
                "edges": len(self.edges),
            },
        )
        return self.data_flow

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def _enter_view(self, view: View) -> None:
        self._stack.append(self._current)

        data_params = view.spec.get("data")
        if data_params is not None:
            source = create_data_source(data_params, view.get_base_url())
            self._current = source
            self.data_flow.add_data_source(source, view)

        for params in view.spec.get("transform", []):
            self._append_transform(self.registry.create(params, view), params)

        if isinstance(view, UnitView):
            self._process_unit_view(view)

    def _exit_view(self, view: View) -> None:
        self._current = self._stack.pop()

    def _process_unit_view(self, view: UnitView) -> None:
        if self._current is None:
            raise FlowBuildError(
                f"A unit view ({view.get_path_string()}) has no (inherited) data source.",
                config=view.spec,
            )

        linearization = view.linearize_locus_access()
        rewritten_encoding = None
        if linearization is not None:
            rewritten_encoding = linearization.rewritten_encoding
            # Encodings are rewritten only after the whole hierarchy has been
            # built, so that child views still inherit the original chrom/pos defs.
            self._post_process_ops.append(linearization.rewrite)
            for transform in linearization.transforms:
                self._append_transform(transform)

        collector = Collector(
            {
                "groupby": view.get_facet_fields(),
                "sort": view.get_sort_params(rewritten_encoding),
            }
        )
        self._append_node(collector)
        self.data_flow.add_collector(collector, view)

    # ------------------------------------------------------------------
    # Graph construction
    # ------------------------------------------------------------------
    def _append_node(self, node: FlowNode, params: Optional[Dict[str, Any]] = None) -> FlowNode:
        if self._current is None:
            raise FlowBuildError(
                "Cannot append a transform because no (inherited) data are available!",
                config=params,
            )
        self._current.add_child(node)
        self.edges.append((self._current, node))
        self._current = node
        return node

    def _append_transform(self, transform: FlowNode, params: Optional[Dict[str, Any]] = None) -> FlowNode:
        if transform.behavior is Behavior.MODIFIES:
            clone = CloneTransform()
            self._append_node(clone, params)
            self._clones.append(clone)
        return self._append_node(transform, params)

    def _remove_redundant_clones(self) -> None:
        removed = 0
        for clone in self._clones:
            if not _is_sharing_possible(clone):
                parent = clone.parent
                children = list(clone.children)
                clone.excise()
                self.edges = [e for e in self.edges if clone not in e]
                self.edges.extend((parent, child) for child in children)
                removed += 1
        self._clones = []
        if removed:
            logger.debug("Removed %d redundant clone transforms", removed)


def _is_sharing_possible(clone: CloneTransform) -> bool:
    """
    True unless the records arriving at the clone are provably private to
    its branch: walking upwards, a node that constructs fresh records is
    reached before any node that feeds more than one child.
    """
    node = clone.parent
    while node is not None:
        if len(node.children) > 1:
            return True
        if node.behavior is Behavior.CLONES:
            return False
        node = node.parent
    # Records owned by the source itself
    return True


def build_data_flow(root: View, existing_flow: Optional[DataFlow] = None, *, optimize: bool = True) -> DataFlow:
    """
    Build the data flow graphs of a view hierarchy, optionally adding them to an
    existing DataFlow.
    """
    return FlowBuilder(existing_flow, optimize=optimize).build(root)


# -------------------------------------------------------------------------
# Programmatic chains
# -------------------------------------------------------------------------

@dataclass
class Chain:
    data_source: FlowNode
    collector: Collector
    load_and_collect: Callable[[], Awaitable[Group]]


def create_chain(data_source: FlowNode, *transforms: FlowNode) -> Chain:
    """
    Link a data source (or any other initial node) and transforms into a linear
    flow ending in a collector. A trailing Collector among the transforms is
    used as is.
    """
    node = data_source
    for transform in transforms:
        node = node.add_child(transform)

    if isinstance(node, Collector):
        collector = node
    else:
        collector = Collector()
        node.add_child(collector)

    async def load_and_collect() -> Group:
        if not isinstance(data_source, DataSource):
            raise FlowBuildError("The root node is not derived from DataSource!")
        await data_source.load()
        return collector.get_data()

    return Chain(data_source, collector, load_and_collect)
