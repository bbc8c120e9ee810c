from __future__ import annotations

from typing import Any, Mapping

from track_browser.core.exceptions import ConfigError

from ..flow_node import Behavior, Datum, FlowNode


class FlattenSequenceTransform(FlowNode):
    """
    Expands a sequence string into one record per character.

    Params:
    - field: the field holding the sequence, default "sequence"
    - as: [sequence field, position field], default ["sequence", "pos"]

    Each output record is a copy of the input where the sequence field holds a
    single character and the position field its 0-based index.
    """

    type_name = "flattenSequence"

    def __init__(self, params: Mapping[str, Any]):
        super().__init__()
        self.field = params.get("field", "sequence")

        as_fields = params.get("as", ["sequence", "pos"])
        if not isinstance(as_fields, (list, tuple)) or len(as_fields) != 2:
            raise ConfigError(
                "flattenSequence 'as' must have exactly two field names", config=dict(params)
            )
        self.as_sequence, self.as_pos = as_fields

    @property
    def behavior(self) -> Behavior:
        return Behavior.CLONES

    def handle(self, datum: Datum) -> None:
        sequence = datum.get(self.field) or ""
        template = dict(datum)
        for i, char in enumerate(str(sequence)):
            record = dict(template)
            record[self.as_sequence] = char
            record[self.as_pos] = i
            self._propagate(record)
