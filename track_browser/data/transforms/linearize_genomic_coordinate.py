from __future__ import annotations

from typing import Any, List, Mapping, Optional

from track_browser.core.exceptions import ConfigError
from track_browser.core.genome import Genome

from ..flow_node import Behavior, Datum, FlowNode


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class LinearizeGenomicCoordinate(FlowNode):
    """
    Maps (chrom, pos) fields onto the genome's linear coordinate axis.

    Params:
    - chrom: the chromosome field
    - pos: position field(s)
    - as: output field(s), one per pos field
    - offset: number or list of numbers added to each position, default 0

    Records are modified in place.
    """

    type_name = "linearizeGenomicCoordinate"

    def __init__(self, params: Mapping[str, Any], genome: Optional[Genome]):
        super().__init__()
        if genome is None:
            raise ConfigError(
                "linearizeGenomicCoordinate needs a genome, none is configured",
                config=dict(params),
            )
        self.genome = genome

        self.chrom_field = params.get("chrom")
        self.pos_fields = _as_list(params.get("pos"))
        self.as_fields = _as_list(params.get("as"))

        if not self.chrom_field or not self.pos_fields:
            raise ConfigError("linearizeGenomicCoordinate needs 'chrom' and 'pos'", config=dict(params))
        if len(self.pos_fields) != len(self.as_fields):
            raise ConfigError(
                "linearizeGenomicCoordinate 'pos' and 'as' must have the same length",
                config=dict(params),
            )

        offsets = params.get("offset", 0)
        if isinstance(offsets, (list, tuple)):
            if len(offsets) != len(self.pos_fields):
                raise ConfigError(
                    "linearizeGenomicCoordinate 'offset' must match the number of 'pos' fields",
                    config=dict(params),
                )
            self.offsets = [float(o) for o in offsets]
        else:
            self.offsets = [float(offsets)] * len(self.pos_fields)

        self._last_chrom: Any = None
        self._last_offset = 0

    @property
    def behavior(self) -> Behavior:
        return Behavior.MODIFIES

    def handle(self, datum: Datum) -> None:
        chrom = datum.get(self.chrom_field)
        # Records usually arrive sorted by chromosome
        if chrom != self._last_chrom:
            self._last_offset = self.genome.cumulative_offset(chrom)
            self._last_chrom = chrom

        for pos_field, as_field, offset in zip(self.pos_fields, self.as_fields, self.offsets):
            datum[as_field] = self._last_offset + datum[pos_field] + offset

        self._propagate(datum)
