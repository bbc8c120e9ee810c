from __future__ import annotations

import math
from typing import Any, Iterable, List, Optional, Sequence, Union

import numpy as np

QUANTITATIVE_TYPES = ("quantitative", "locus")
DISCRETE_TYPES = ("nominal", "ordinal")


def _is_numeric(value: Any) -> bool:
    return (
        isinstance(value, (int, float, np.number))
        and not isinstance(value, bool)
        and not math.isnan(value)
    )


class QuantitativeDomain:
    """
    Continuous [min, max] extent. Missing and NaN values are ignored.
    """

    type = "quantitative"

    def __init__(self, initial: Optional[Iterable[Any]] = None):
        self.min: Optional[float] = None
        self.max: Optional[float] = None
        if initial is not None:
            self.extend_all(initial)

    def extend(self, value: Any) -> QuantitativeDomain:
        if not _is_numeric(value):
            return self
        if self.min is None or value < self.min:
            self.min = value
        if self.max is None or value > self.max:
            self.max = value
        return self

    def extend_all(self, values: Iterable[Any]) -> QuantitativeDomain:
        numeric = np.fromiter(
            (float(v) for v in values if _is_numeric(v)), dtype=float
        )
        if numeric.size:
            self.extend(float(numeric.min()))
            self.extend(float(numeric.max()))
        return self

    def extend_domain(self, other: QuantitativeDomain) -> QuantitativeDomain:
        if other.min is not None:
            self.extend(other.min)
            self.extend(other.max)
        return self

    def is_empty(self) -> bool:
        return self.min is None

    def to_list(self) -> List[Any]:
        return [] if self.is_empty() else [self.min, self.max]


class OrdinalDomain:
    """
    Distinct values in first-seen order. Used for nominal and ordinal data.
    """

    def __init__(self, type: str = "nominal", initial: Optional[Iterable[Any]] = None):
        self.type = type
        self._values: dict = {}
        if initial is not None:
            self.extend_all(initial)

    def extend(self, value: Any) -> OrdinalDomain:
        if value is not None:
            self._values.setdefault(value, None)
        return self

    def extend_all(self, values: Iterable[Any]) -> OrdinalDomain:
        for value in values:
            self.extend(value)
        return self

    def extend_domain(self, other: OrdinalDomain) -> OrdinalDomain:
        return self.extend_all(other.to_list())

    def is_empty(self) -> bool:
        return not self._values

    def to_list(self) -> List[Any]:
        return list(self._values)


Domain = Union[QuantitativeDomain, OrdinalDomain]


def create_domain(type: str, initial: Optional[Sequence[Any]] = None) -> Domain:
    """
    :param type: data type of the channel, e.g. "quantitative" or "nominal"
    :param initial: explicitly configured domain values, if any
    :raises ValueError: for unknown types
    """
    if type in QUANTITATIVE_TYPES:
        return QuantitativeDomain(initial)
    if type in DISCRETE_TYPES:
        return OrdinalDomain(type, initial)
    raise ValueError(f"Unknown data type: '{type}'")


def union_domains(domains: Iterable[Domain]) -> Optional[Domain]:
    """
    Combine the domains of views that share a scale. Domains must be of the
    same kind.
    """
    result: Optional[Domain] = None
    for domain in domains:
        if domain is None:
            continue
        if result is None:
            result = create_domain(domain.type)
        if type(result) is not type(domain):
            raise ValueError(f"Cannot combine {result.type} and {domain.type} domains")
        result.extend_domain(domain)
    return result
