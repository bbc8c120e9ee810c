from __future__ import annotations

import logging
import math
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from track_browser.core.exceptions import ConfigError, FlowStateError
from track_browser.core.group import Group, InternalGroup, LeafGroup

from .flow_node import Datum, FlowNode

logger = logging.getLogger(__name__)

Comparator = Callable[[Datum, Datum], int]

ROOT_KEY = "root"


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _compare_values(a: Any, b: Any) -> int:
    # Missing values sort last regardless of the order
    a_missing, b_missing = _is_missing(a), _is_missing(b)
    if a_missing or b_missing:
        return int(a_missing) - int(b_missing)
    try:
        return (a > b) - (a < b)
    except TypeError:
        a, b = str(a), str(b)
        return (a > b) - (a < b)


def create_comparator(sort_params: Mapping[str, Any]) -> Comparator:
    """
    Build a record comparator from sort params:

        {"field": "start"}
        {"field": ["chrom", "start"], "order": ["ascending", "descending"]}

    :raises ConfigError: on a missing field or an unknown order
    """
    fields = sort_params.get("field")
    if not fields:
        raise ConfigError("Sort params must name at least one field", config=dict(sort_params))
    if isinstance(fields, str):
        fields = [fields]

    orders = sort_params.get("order", "ascending")
    if isinstance(orders, str):
        orders = [orders] * len(fields)
    if len(orders) != len(fields):
        raise ConfigError("Sort 'order' must match the number of fields", config=dict(sort_params))

    signs: List[int] = []
    for order in orders:
        if order == "ascending":
            signs.append(1)
        elif order == "descending":
            signs.append(-1)
        else:
            raise ConfigError(f"Unknown sort order '{order}'", config=dict(sort_params))

    def compare(a: Datum, b: Datum) -> int:
        for field, sign in zip(fields, signs):
            va, vb = a.get(field), b.get(field)
            if _is_missing(va) or _is_missing(vb):
                result = _compare_values(va, vb)
            else:
                result = sign * _compare_values(va, vb)
            if result:
                return result
        return 0

    return compare


class Collector(FlowNode):
    """
    Terminal node of a flow branch.

    Buffers everything pushed into it during a load cycle. On completion the
    buffer is partitioned by the `groupby` fields (one hierarchy level per
    field, keys in first-seen order) and each partition is sorted with the
    configured comparator. The result is exposed as a Group via `get_data()`.
    """

    type_name = "collect"

    def __init__(self, params: Optional[Mapping[str, Any]] = None):
        super().__init__()
        params = dict(params or {})
        self.params = params

        groupby = params.get("groupby") or []
        if isinstance(groupby, str):
            groupby = [groupby]
        self.groupby: List[str] = list(groupby)

        sort = params.get("sort")
        self._comparator: Optional[Comparator] = create_comparator(sort) if sort else None

        self._buffer: List[Datum] = []
        self._root: Optional[Group] = None
        self._observers: List[Callable[[Collector], None]] = []

    def add_child(self, child: FlowNode) -> FlowNode:
        raise TypeError("A Collector is a terminal node and cannot have children")

    def add_observer(self, observer: Callable[[Collector], None]) -> None:
        """
        Register a callback that is invoked after every completed load cycle.
        """
        self._observers.append(observer)

    def reset(self) -> None:
        super().reset()
        self._buffer = []

    def handle(self, datum: Datum) -> None:
        self._buffer.append(datum)

    def complete(self) -> None:
        self._root = self._build_hierarchy(self._buffer)
        self._buffer = []
        super().complete()

        logger.debug("Collector completed with %d groups", len(self._root.leaf_groups()))

        for observer in self._observers:
            observer(self)

    def get_data(self) -> Group:
        """
        Return the hierarchy accumulated during the latest completed load cycle.

        :raises FlowStateError: if no load cycle has completed yet
        """
        if self._root is None:
            raise FlowStateError("Collector has not completed any load cycle yet")
        return self._root

    # ------------------------------------------------------------------
    # Internal: grouping and sorting
    # ------------------------------------------------------------------
    def _sorted(self, data: List[Datum]) -> List[Datum]:
        if self._comparator is None:
            return data
        return sorted(data, key=cmp_to_key(self._comparator))

    def _build_hierarchy(self, data: List[Datum]) -> Group:
        return self._group_level(ROOT_KEY, data, self.groupby)

    def _group_level(self, key: Any, data: List[Datum], fields: Sequence[str]) -> Group:
        if not fields:
            return LeafGroup(key, self._sorted(data))

        field, rest = fields[0], fields[1:]
        partitions: Dict[Any, List[Datum]] = {}
        for datum in data:
            partitions.setdefault(datum.get(field), []).append(datum)

        return InternalGroup(
            key, [self._group_level(k, v, rest) for k, v in partitions.items()]
        )
