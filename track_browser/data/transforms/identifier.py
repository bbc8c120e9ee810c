from __future__ import annotations

from typing import Any, Mapping, Optional

from ..flow_node import Behavior, Datum, FlowNode

DEFAULT_AS = "_uniqueId"


class IdentifierTransform(FlowNode):
    """Assigns a sequential integer id to each record, in place."""

    type_name = "identifier"

    def __init__(self, params: Optional[Mapping[str, Any]] = None):
        super().__init__()
        params = params or {}
        self.as_field = params.get("as", DEFAULT_AS)
        self._next_id = 0

    @property
    def behavior(self) -> Behavior:
        return Behavior.MODIFIES

    def reset(self) -> None:
        self._next_id = 0
        super().reset()

    def handle(self, datum: Datum) -> None:
        datum[self.as_field] = self._next_id
        self._next_id += 1
        self._propagate(datum)
