"""
Action vocabulary of the sample command engine.

Actions are plain dicts with a "type" key plus action-specific fields, so the
UI layer can build, log and serialise them freely.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Mapping

Action = Dict[str, Any]


class ActionType(str, Enum):
    UNDO = "UNDO"
    SORT_BY = "SORT_BY"
    RETAIN_FIRST_OF_EACH = "RETAIN_FIRST_OF_EACH"
    FILTER_BY_QUANTITATIVE = "FILTER_BY_QUANTITATIVE"
    FILTER_BY_NOMINAL = "FILTER_BY_NOMINAL"
    REMOVE_UNDEFINED = "REMOVE_UNDEFINED"
    GROUP_BY_NOMINAL = "GROUP_BY_NOMINAL"
    GROUP_TO_QUARTILES = "GROUP_TO_QUARTILES"


def undo() -> Action:
    return {"type": ActionType.UNDO.value}


def sort_by(attribute: Mapping[str, Any]) -> Action:
    return {"type": ActionType.SORT_BY.value, "attribute": dict(attribute)}


def retain_first_of_each(attribute: Mapping[str, Any]) -> Action:
    return {"type": ActionType.RETAIN_FIRST_OF_EACH.value, "attribute": dict(attribute)}


def filter_by_quantitative(attribute: Mapping[str, Any], operator: str, operand: float) -> Action:
    """
    :param operator: one of "lt", "lte", "eq", "gte", "gt"
    """
    return {
        "type": ActionType.FILTER_BY_QUANTITATIVE.value,
        "attribute": dict(attribute),
        "operator": operator,
        "operand": operand,
    }


def filter_by_nominal(attribute: Mapping[str, Any], action: str, values: Iterable[Any]) -> Action:
    """
    :param action: "retain" or "remove"
    """
    return {
        "type": ActionType.FILTER_BY_NOMINAL.value,
        "attribute": dict(attribute),
        "action": action,
        "values": list(values),
    }


def remove_undefined(attribute: Mapping[str, Any]) -> Action:
    return {"type": ActionType.REMOVE_UNDEFINED.value, "attribute": dict(attribute)}


def group_by_nominal(attribute: Mapping[str, Any]) -> Action:
    return {"type": ActionType.GROUP_BY_NOMINAL.value, "attribute": dict(attribute)}


def group_to_quartiles(attribute: Mapping[str, Any]) -> Action:
    return {"type": ActionType.GROUP_TO_QUARTILES.value, "attribute": dict(attribute)}
