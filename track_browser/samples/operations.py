from __future__ import annotations

import logging
import math
import operator as op
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import numpy as np

from track_browser.core.exceptions import ConfigError

from .attributes import AttributeInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")
Accessor = Callable[[Any], Any]

QUARTILE_P_VALUES = (0.25, 0.5, 0.75)

QUANTITATIVE_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "lt": op.lt,
    "lte": op.le,
    "eq": op.eq,
    "gte": op.ge,
    "gt": op.gt,
}

NOMINAL_ACTIONS = ("retain", "remove")


def is_number(value: Any) -> bool:
    """True for ints and floats (including NaN), False for bools and everything else."""
    return isinstance(value, (int, float, np.number)) and not isinstance(value, (bool, np.bool_))


def is_defined(value: Any) -> bool:
    return value is not None and not (is_number(value) and math.isnan(value))


# -------------------------------------------------------------------------
# Sorting
# -------------------------------------------------------------------------

def wrap_accessor_for_comparison(accessor: Accessor, attribute_info: AttributeInfo) -> Accessor:
    """
    Adapt an accessor so that an ascending sort gives the natural order of
    the attribute:
    - quantitative: largest values first
    - nominal/ordinal with a scale domain: the order of the domain
    """
    if attribute_info.type == "quantitative":
        def negated(sample: Any) -> Any:
            value = accessor(sample)
            return -value if is_defined(value) and is_number(value) else None
        return negated

    domain = (attribute_info.scale or {}).get("domain") if isinstance(attribute_info.scale, dict) else None
    if attribute_info.type in ("nominal", "ordinal") and domain:
        positions = {value: i for i, value in enumerate(domain)}

        def by_domain(sample: Any) -> Any:
            value = accessor(sample)
            return positions.get(value, len(positions)) if is_defined(value) else None
        return by_domain

    return accessor


def _compare(a: Any, b: Any) -> int:
    a_defined, b_defined = is_defined(a), is_defined(b)
    if not a_defined or not b_defined:
        # Undefined values go last
        return int(not a_defined) - int(not b_defined)
    try:
        return (a > b) - (a < b)
    except TypeError:
        return (str(a) > str(b)) - (str(a) < str(b))


def sort(samples: Sequence[T], accessor: Accessor, descending: bool = False) -> List[T]:
    """
    Stable sort by the accessed value. Undefined values are placed last in
    both directions.
    """
    sign = -1 if descending else 1

    def compare(a: T, b: T) -> int:
        va, vb = accessor(a), accessor(b)
        if not is_defined(va) or not is_defined(vb):
            return _compare(va, vb)
        return sign * _compare(va, vb)

    return sorted(samples, key=cmp_to_key(compare))


# -------------------------------------------------------------------------
# Filtering
# -------------------------------------------------------------------------

def retain_first_of_each(samples: Sequence[T], accessor: Accessor) -> List[T]:
    """Keep only the first sample of each distinct attribute value."""
    seen = set()
    result: List[T] = []
    for sample in samples:
        value = accessor(sample)
        key = None if not is_defined(value) else value
        if key not in seen:
            seen.add(key)
            result.append(sample)
    return result


def filter_quantitative(samples: Sequence[T], accessor: Accessor, operator: str, operand: float) -> List[T]:
    """
    :param operator: one of "lt", "lte", "eq", "gte", "gt"
    :raises ConfigError: for unknown operators or an operand that is not a number
    """
    compare = QUANTITATIVE_OPERATORS.get(operator)
    if compare is None:
        raise ConfigError(
            f"Not a valid operator: '{operator}'. Supported: {list(QUANTITATIVE_OPERATORS)}",
            config={"operator": operator, "operand": operand},
        )
    if not is_number(operand) or not is_defined(operand):
        raise ConfigError(
            f"Not a valid operand: '{operand}'.",
            config={"operator": operator, "operand": operand},
        )

    result: List[T] = []
    for sample in samples:
        value = accessor(sample)
        if is_defined(value) and is_number(value) and compare(value, operand):
            result.append(sample)
    return result


def filter_nominal(samples: Sequence[T], accessor: Accessor, action: str, values: Sequence[Any]) -> List[T]:
    """
    :param action: "retain" keeps the samples having one of the values,
        "remove" drops them
    :raises ConfigError: for unknown actions
    """
    if action not in NOMINAL_ACTIONS:
        raise ConfigError(
            f"Not a valid nominal filter action: '{action}'. Supported: {list(NOMINAL_ACTIONS)}",
            config={"action": action, "values": list(values)},
        )

    value_set = set(values)
    retain = action == "retain"
    return [s for s in samples if (accessor(s) in value_set) == retain]


def filter_undefined(samples: Sequence[T], accessor: Accessor) -> List[T]:
    return [s for s in samples if is_defined(accessor(s))]


# -------------------------------------------------------------------------
# Grouping
# -------------------------------------------------------------------------

def group_by_accessor(samples: Sequence[T], accessor: Accessor) -> Dict[Any, List[T]]:
    """
    Partition samples by the accessed value, keys in first-seen order.
    Undefined values (None, NaN) share the None key.
    """
    grouped: Dict[Any, List[T]] = {}
    for sample in samples:
        value = accessor(sample)
        key = value if is_defined(value) else None
        grouped.setdefault(key, []).append(sample)
    return grouped


def extract_quantiles(samples: Sequence[T], accessor: Accessor, p_values: Sequence[float]) -> List[float]:
    """
    Quantiles of the numeric, non-NaN accessed values, using linear
    interpolation between closest ranks. Returns an empty list if there are
    no numeric values.
    """
    values = [accessor(s) for s in samples]
    numeric = np.array([v for v in values if is_number(v) and not math.isnan(v)], dtype=float)

    skipped = len(values) - numeric.size
    if skipped:
        logger.warning("Excluded %d missing or non-numeric values from quantile computation", skipped)

    if numeric.size == 0:
        return []
    return [float(q) for q in np.quantile(numeric, list(p_values))]


def create_quantile_accessor(accessor: Accessor, thresholds: Sequence[float]) -> Callable[[Any], Optional[int]]:
    """
    Returns an accessor that maps a sample to the index of the first threshold
    that its value is strictly less than, or len(thresholds) if none is.
    Missing, non-numeric and NaN values map to None.

    :param thresholds: must be in ascending order
    """

    def quantile_accessor(sample: Any) -> Optional[int]:
        value = accessor(sample)
        if not is_number(value) or math.isnan(value) or not thresholds:
            return None

        for i, threshold in enumerate(thresholds):
            if value < threshold:
                return i
        return len(thresholds)

    return quantile_accessor
