from __future__ import annotations

from ..flow_node import Behavior, Datum, FlowNode


class CloneTransform(FlowNode):
    """
    Pushes a shallow copy of every record. Inserted in front of transforms
    that modify records in place, so that the modifications stay invisible
    to other branches sharing the same upstream records.
    """

    type_name = "clone"

    def __init__(self, params=None):
        super().__init__()

    @property
    def behavior(self) -> Behavior:
        return Behavior.CLONES

    def handle(self, datum: Datum) -> None:
        self._propagate(dict(datum))
