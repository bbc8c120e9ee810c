from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from track_browser.core.exceptions import ConfigError, FlowStateError
from track_browser.core.genome import Genome
from track_browser.core.group import Group
from track_browser.data.collector import Collector
from track_browser.data.data_flow import DataFlow
from track_browser.data.flow_node import FlowNode
from track_browser.data.transforms.linearize_genomic_coordinate import LinearizeGenomicCoordinate

from .domain import QUANTITATIVE_TYPES, Domain, create_domain

logger = logging.getLogger(__name__)

#: Don't visit the children of the current view
VISIT_SKIP = "VISIT_SKIP"
#: Stop the whole traversal
VISIT_STOP = "VISIT_STOP"

MARK_TYPES = ("point", "rect", "rule", "link", "text")
CONTAINER_KEYS = ("layer", "concat", "vconcat", "hconcat")
SECONDARY_CHANNELS = {"x": "x2", "y": "y2"}
PRIMARY_CHANNELS = {v: k for k, v in SECONDARY_CHANNELS.items()}

Visitor = Callable[["View"], Optional[str]]


@dataclass
class ViewContext:
    """
    Shared services of a view hierarchy.
    """
    data_flow: DataFlow = field(default_factory=DataFlow)
    genome: Optional[Genome] = None


@dataclass
class LocusLinearization:
    """
    Transforms that turn chrom/pos channel definitions into plain field
    definitions, plus the encoding rewrite to apply once the flow is built.
    """
    transforms: List[FlowNode]
    rewritten_encoding: Dict[str, Dict[str, Any]]
    rewrite: Callable[[], None]


def is_secondary_channel(channel: str) -> bool:
    return channel in PRIMARY_CHANNELS


def primary_channel(channel: str) -> str:
    return PRIMARY_CHANNELS.get(channel, channel)


def create_accessor(channel_def: Any) -> Optional[Callable[[Mapping[str, Any]], Any]]:
    """
    Accessor for a channel definition: {"field": ...} or {"datum": ...}.
    Returns None for {"value": ...} and anything without data.
    """
    if not isinstance(channel_def, Mapping):
        return None
    if "field" in channel_def:
        name = channel_def["field"]
        return lambda datum: datum.get(name)
    if "datum" in channel_def:
        constant = channel_def["datum"]
        return lambda datum: constant
    return None


class View:
    """
    Node of the view hierarchy. Hosts the data, transform and encoding
    configuration that the flow builder turns into a data flow graph.
    """

    def __init__(
        self,
        spec: Dict[str, Any],
        context: ViewContext,
        parent: Optional[ContainerView] = None,
        name: Optional[str] = None,
    ):
        self.spec = spec
        self.context = context
        self.parent = parent
        self.name = spec.get("name") or name or "unnamed"
        self._encoding_overrides: Dict[str, Dict[str, Any]] = {}

    def get_encoding(self) -> Dict[str, Any]:
        """Encoding inherited from the ancestors, overridden by this view's own."""
        inherited = self.parent.get_encoding() if self.parent is not None else {}
        return {**inherited, **self.spec.get("encoding", {}), **self._encoding_overrides}

    def get_base_url(self) -> Optional[str]:
        view: Optional[View] = self
        while view is not None:
            if view.spec.get("baseUrl"):
                return view.spec["baseUrl"]
            view = view.parent
        return None

    def get_ancestors(self) -> List[View]:
        views: List[View] = []
        view: Optional[View] = self
        while view is not None:
            views.append(view)
            view = view.parent
        return views

    def get_path_string(self) -> str:
        return "/".join(v.name for v in reversed(self.get_ancestors()))

    def get_facet_fields(self) -> List[str]:
        """Fields that partition the data into facets, i.e. the sample channel."""
        sample_def = self.get_encoding().get("sample")
        if isinstance(sample_def, Mapping) and "field" in sample_def:
            return [sample_def["field"]]
        return []

    def visit(self, visitor: Visitor, after_children: Optional[Callable[[View], None]] = None) -> Optional[str]:
        """
        Visit this view and its descendants in depth-first order.

        The visitor may return VISIT_SKIP to skip the children of the current
        view or VISIT_STOP to end the traversal. `after_children` is called
        for every view once its subtree has been visited.
        """
        result = visitor(self)
        if result == VISIT_STOP:
            return VISIT_STOP
        if after_children is not None:
            after_children(self)
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.get_path_string()}>"


class UnitView(View):
    """
    Leaf of the view hierarchy: a single mark fed by exactly one collector.
    """

    def __init__(self, spec, context, parent=None, name=None):
        super().__init__(spec, context, parent, name)
        if self.get_mark_type() not in MARK_TYPES:
            raise ConfigError(f"No such mark: {self.get_mark_type()}", config=spec)

    def get_mark_type(self) -> Optional[str]:
        mark = self.spec.get("mark")
        return mark.get("type") if isinstance(mark, Mapping) else mark

    # ------------------------------------------------------------------
    # Data access
    # ------------------------------------------------------------------
    def get_collector(self) -> Optional[Collector]:
        return self.context.data_flow.find_collector_by_host(self)

    def get_data(self) -> Group:
        collector = self.get_collector()
        if collector is None:
            raise FlowStateError(f"No collector has been built for {self.get_path_string()}")
        return collector.get_data()

    def get_sort_params(
        self, rewritten_encoding: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Records are kept sorted by the x field when x is positional data, so
        that ranges along the axis can be located by binary search.

        :param rewritten_encoding: channel definitions that replace the
            configured ones, e.g. linearized chrom/pos channels
        """
        encoding = {**self.get_encoding(), **(rewritten_encoding or {})}
        x_def = encoding.get("x")
        if isinstance(x_def, Mapping) and "field" in x_def and x_def.get("type") in QUANTITATIVE_TYPES:
            return {"field": x_def["field"]}
        return None

    # ------------------------------------------------------------------
    # Domains
    # ------------------------------------------------------------------
    def get_domain(self, channel: str) -> Optional[Domain]:
        """
        Configured domain of the channel, or one extracted from the collected
        data. Secondary channel values (x2, y2) are included in the extraction.

        :raises ValueError: for secondary channels or channels without a type
        """
        if is_secondary_channel(channel):
            raise ValueError(f"get_domain({channel}) must only be called for primary channels!")

        encoding = self.get_encoding()
        channel_def = encoding.get(channel)
        if not isinstance(channel_def, Mapping):
            return None

        data_type = channel_def.get("type")
        if not data_type:
            raise ValueError(f'No data type for channel "{channel}"!')

        configured = (channel_def.get("scale") or {}).get("domain")
        if configured:
            return create_domain(data_type, configured)

        domain = self._extract_domain(channel, data_type)
        if domain is None:
            logger.warning(
                "Cannot extract domain for channel '%s' on %s", channel, self.get_path_string()
            )
            return None

        secondary = SECONDARY_CHANNELS.get(channel)
        if secondary:
            secondary_domain = self._extract_domain(secondary, data_type)
            if secondary_domain is not None:
                domain.extend_domain(secondary_domain)

        return domain

    def _extract_domain(self, channel: str, data_type: str) -> Optional[Domain]:
        accessor = create_accessor(self.get_encoding().get(channel))
        if accessor is None:
            return None
        domain = create_domain(data_type)
        domain.extend_all(accessor(datum) for datum in self.get_data().flat_data())
        return domain

    # ------------------------------------------------------------------
    # Locus channels
    # ------------------------------------------------------------------
    def linearize_locus_access(self) -> Optional[LocusLinearization]:
        """
        Replace {"chrom": ..., "pos": ...} channel definitions with plain field
        definitions backed by LinearizeGenomicCoordinate transforms.

        Positions that share the primary channel and the chromosome field are
        linearized by a single transform.
        """
        own_encoding = self.spec.get("encoding", {})
        grouped: Dict[tuple, List[tuple]] = {}
        for channel, channel_def in self.get_encoding().items():
            if primary_channel(channel) not in SECONDARY_CHANNELS:
                continue
            if isinstance(channel_def, Mapping) and "chrom" in channel_def and "pos" in channel_def:
                key = (primary_channel(channel), channel_def["chrom"])
                grouped.setdefault(key, []).append((channel, channel_def))

        if not grouped:
            return None

        transforms: List[FlowNode] = []
        rewritten: Dict[str, Dict[str, Any]] = {}

        for (primary, chrom), channel_defs in grouped.items():
            pos: List[str] = []
            as_fields: List[str] = []
            offsets: List[float] = []
            for channel, channel_def in channel_defs:
                linearized_field = "_linearized_{}_{}".format(
                    _strip(chrom), _strip(channel_def["pos"])
                )
                new_def = {
                    k: v
                    for k, v in {**own_encoding.get(channel, {}), **channel_def}.items()
                    if k not in ("chrom", "pos", "offset")
                }
                new_def["field"] = linearized_field
                new_def.setdefault("type", "locus")
                rewritten[channel] = new_def

                pos.append(channel_def["pos"])
                as_fields.append(linearized_field)
                offsets.append(channel_def.get("offset", 0))

            params = {
                "type": "linearizeGenomicCoordinate",
                "channel": primary,
                "chrom": chrom,
                "pos": pos,
                "as": as_fields,
                "offset": offsets,
            }
            try:
                transforms.append(LinearizeGenomicCoordinate(params, self.context.genome))
            except ConfigError as e:
                raise ConfigError(
                    f"Cannot linearize locus channels of {self.get_path_string()}: {e}"
                ) from e

        def rewrite() -> None:
            self._encoding_overrides.update(rewritten)

        return LocusLinearization(transforms, rewritten, rewrite)


class ContainerView(View):
    """
    Non-leaf node of the view hierarchy: layer or concatenation of child views.
    """

    def __init__(self, spec, context, parent=None, name=None):
        super().__init__(spec, context, parent, name)

        keys = [key for key in CONTAINER_KEYS if key in spec]
        if len(keys) != 1:
            raise ConfigError(f"A container view needs exactly one of {list(CONTAINER_KEYS)}", config=spec)
        self.container_key = keys[0]

        self.children: List[View] = [
            create_view(child_spec, context, self, f"{self.container_key}{i}")
            for i, child_spec in enumerate(spec[self.container_key])
        ]

    def __iter__(self) -> Iterator[View]:
        return iter(self.children)

    def visit(self, visitor: Visitor, after_children: Optional[Callable[[View], None]] = None) -> Optional[str]:
        result = visitor(self)
        if result == VISIT_STOP:
            return VISIT_STOP

        if result != VISIT_SKIP:
            for child in self.children:
                if child.visit(visitor, after_children) == VISIT_STOP:
                    return VISIT_STOP

        if after_children is not None:
            after_children(self)
        return None

    def find_child_by_name(self, name: str) -> Optional[View]:
        for child in self.children:
            if child.name == name:
                return child
        return None

    def find_descendant_by_path(self, path: List[str]) -> Optional[View]:
        child = self.find_child_by_name(path[0]) if path else None
        if child is None or len(path) == 1:
            return child
        if isinstance(child, ContainerView):
            return child.find_descendant_by_path(path[1:])
        return None


def _strip(value: Any) -> str:
    return re.sub(r"[^A-Za-z0-9_]", "", str(value))


def create_view(
    spec: Dict[str, Any],
    context: ViewContext,
    parent: Optional[ContainerView] = None,
    name: str = "root",
) -> View:
    """
    Instantiate the view hierarchy described by spec.

    :raises ConfigError: if the view spec is neither a unit nor a container view
    """
    if any(key in spec for key in CONTAINER_KEYS):
        return ContainerView(spec, context, parent, name)
    if "mark" in spec:
        return UnitView(spec, context, parent, name)
    raise ConfigError("Cannot figure out the view type: no mark and no child views.", config=spec)
