from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from .exceptions import ConfigError, DataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Contig:
    name: str
    size: int


@dataclass
class Genome:
    """
    Assembly used for mapping (chrom, pos) pairs onto a single linear axis.

    Contigs are laid out back to back in the configured order, so the
    linear coordinate of a locus is the cumulative size of all preceding
    contigs plus the position.
    """

    name: str
    contigs: List[Contig]
    _offsets: Dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.contigs:
            raise ConfigError(f"Genome '{self.name}' has no contigs")

        sizes = np.array([c.size for c in self.contigs], dtype=np.int64)
        starts = np.concatenate(([0], np.cumsum(sizes)[:-1]))
        self._offsets = {c.name: int(s) for c, s in zip(self.contigs, starts)}
        self._total_size = int(sizes.sum())

    @property
    def total_size(self) -> int:
        return self._total_size

    def has_contig(self, chrom: str) -> bool:
        return chrom in self._offsets

    def cumulative_offset(self, chrom: str) -> int:
        """
        :param chrom: contig name, e.g. "chr1". A missing "chr" prefix is tolerated.
        :raises DataError: if the contig is not part of this genome
        """
        offset = self._offsets.get(chrom)
        if offset is None and not str(chrom).startswith("chr"):
            offset = self._offsets.get(f"chr{chrom}")
        if offset is None:
            raise DataError(f"Unknown chromosome/contig '{chrom}' in genome '{self.name}'")
        return offset

    def to_linear(self, chrom: str, pos: float) -> float:
        return self.cumulative_offset(chrom) + pos

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_chrom_sizes(cls, path: str | Path, name: str | None = None) -> Genome:
        """
        Load a UCSC-style chrom.sizes file: two tab-separated columns, no header.
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"chrom.sizes file not found at {path}.")

        df = pd.read_csv(path, sep="\t", header=None, usecols=[0, 1], names=["name", "size"])
        contigs = [Contig(str(row.name), int(row.size)) for row in df.itertuples(index=False)]
        logger.info("Loaded %d contigs from %s", len(contigs), path)
        return cls(name=name or path.stem, contigs=contigs)

    @classmethod
    def from_contigs(cls, name: str, contigs: Sequence[Dict[str, Any]]) -> Genome:
        return cls(
            name=name,
            contigs=[Contig(str(c["name"]), int(c["size"])) for c in contigs],
        )

    @classmethod
    def from_config(cls, raw: Dict[str, Any], base_path: Path | None = None) -> Genome:
        """
        Supports both:
        - inline contigs: {"name": "hg38", "contigs": [{"name": "chr1", "size": 248956422}, ...]}
        - chrom sizes:    {"name": "hg38", "chromSizes": "hg38.chrom.sizes"}
        """
        name = raw.get("name", "custom")
        if "contigs" in raw:
            try:
                return cls.from_contigs(name, raw["contigs"])
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigError(f"Invalid contig list in genome config: {e}", config=raw) from e

        if "chromSizes" in raw:
            path = Path(raw["chromSizes"])
            if base_path is not None and not path.is_absolute():
                path = base_path / path
            return cls.from_chrom_sizes(path, name=name)

        raise ConfigError("Genome config needs either 'contigs' or 'chromSizes'", config=raw)
