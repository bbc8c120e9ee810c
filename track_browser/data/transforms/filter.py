from __future__ import annotations

import math
from typing import Any, Callable, Mapping

import numpy as np

from track_browser.core.exceptions import ConfigError

from ..flow_node import Datum, FlowNode

PREDICATE_KEYS = ("oneOf", "range", "valid")


def _is_valid(value: Any) -> bool:
    return value is not None and not (isinstance(value, float) and math.isnan(value))


def _is_number(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, np.number)) and not math.isnan(value)


class FilterTransform(FlowNode):
    """
    Forwards only the records whose field satisfies the configured predicate.

    Exactly one predicate must be given:
    - {"field": "chrom", "oneOf": ["chr1", "chr2"]}
    - {"field": "score", "range": [0, 10]}   (inclusive, numbers only)
    - {"field": "score", "valid": true}      (not missing, not NaN)
    """

    type_name = "filter"

    def __init__(self, params: Mapping[str, Any]):
        super().__init__()
        self.field = params.get("field")
        if not self.field:
            raise ConfigError("filter needs a 'field'", config=dict(params))

        present = [key for key in PREDICATE_KEYS if key in params]
        if len(present) != 1:
            raise ConfigError(
                f"filter needs exactly one of {list(PREDICATE_KEYS)}", config=dict(params)
            )

        self.predicate: Callable[[Any], bool] = self._build_predicate(present[0], params)

    @staticmethod
    def _build_predicate(kind: str, params: Mapping[str, Any]) -> Callable[[Any], bool]:
        if kind == "oneOf":
            allowed = set(params["oneOf"])
            return lambda value: value in allowed

        if kind == "range":
            bounds = params["range"]
            if not isinstance(bounds, (list, tuple)) or len(bounds) != 2:
                raise ConfigError("filter 'range' must be [min, max]", config=dict(params))
            lo, hi = bounds
            return lambda value: _is_number(value) and lo <= value <= hi

        wanted = bool(params["valid"])
        return lambda value: _is_valid(value) == wanted

    def handle(self, datum: Datum) -> None:
        if self.predicate(datum.get(self.field)):
            self._propagate(datum)
