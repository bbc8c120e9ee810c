from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import anndata as ad
import pandas as pd

from track_browser.config.loader import resolve_data_path
from track_browser.core.exceptions import ConfigError, FlowBuildError, FlowStateError

from .flow_node import Datum, FlowNode

logger = logging.getLogger(__name__)


def frame_to_records(df: pd.DataFrame) -> List[Datum]:
    """
    Convert a DataFrame into a list of plain dict records. Missing values
    (NaN, NA, NaT) become None.
    """
    if df.empty:
        return []
    cleaned = df.astype(object).where(pd.notna(df), None)
    return cleaned.to_dict(orient="records")


class DataSource(FlowNode, ABC):
    """
    Root node of a data flow graph.

    `load()` is the only suspension point of the whole flow. Once the records
    are available they are pushed through the graph synchronously, framed by
    `reset()` and `complete()`.
    """

    type_name = "source"

    @abstractmethod
    async def _fetch(self) -> Iterable[Datum]:
        raise NotImplementedError()

    async def load(self) -> None:
        records = await self._fetch()
        self.push_all(records)

    def push_all(self, records: Iterable[Datum]) -> None:
        if not self.children:
            raise FlowStateError(f"{self.describe()} has no downstream nodes to feed")

        self.reset()
        count = 0
        for datum in records:
            self.handle(datum)
            count += 1
        self.complete()
        logger.debug("%s pushed %d records", self.describe(), count)


class InlineSource(DataSource):
    """
    Records embedded in the view spec:

        {"values": [{"a": 1}, {"a": 2}]}
        {"values": [1, 2, 3]}            -> [{"data": 1}, {"data": 2}, {"data": 3}]
        {"values": {"a": 1}}             -> [{"a": 1}]
    """

    type_name = "inline"

    def __init__(self, params: Mapping[str, Any]):
        super().__init__()
        values = params.get("values")
        if values is None:
            raise ConfigError("Inline data needs 'values'", config=dict(params))

        if isinstance(values, Mapping):
            values = [values]
        elif not isinstance(values, (list, tuple)):
            raise ConfigError("Inline 'values' must be a list or an object", config=dict(params))

        self.values: List[Any] = list(values)

    async def _fetch(self) -> Iterable[Datum]:
        return [
            dict(v) if isinstance(v, Mapping) else {"data": v}
            for v in self.values
        ]


class SequenceSource(DataSource):
    """
    Generates a numeric sequence:

        {"sequence": {"start": 0, "stop": 10, "step": 2, "as": "x"}}
    """

    type_name = "sequence"

    def __init__(self, params: Mapping[str, Any]):
        super().__init__()
        seq = params.get("sequence") or {}
        if "start" not in seq or "stop" not in seq:
            raise ConfigError("Sequence data needs 'start' and 'stop'", config=dict(params))
        step = seq.get("step", 1)
        if step == 0:
            raise ConfigError("Sequence 'step' must not be zero", config=dict(params))

        self.start = seq["start"]
        self.stop = seq["stop"]
        self.step = step
        self.as_field = seq.get("as", "data")

    async def _fetch(self) -> Iterable[Datum]:
        return ({self.as_field: v} for v in range(self.start, self.stop, self.step))


class DataFrameSource(DataSource):
    """Pushes the rows of an in-memory DataFrame."""

    type_name = "dataframe"

    def __init__(self, df: pd.DataFrame):
        super().__init__()
        self.df = df

    async def _fetch(self) -> Iterable[Datum]:
        return frame_to_records(self.df)


def _read_h5ad_obs(path: Path) -> pd.DataFrame:
    adata = ad.read_h5ad(path)
    obs = adata.obs.copy()
    obs.index.name = "_index"
    return obs.reset_index()


READERS: Dict[str, Callable[[Path], pd.DataFrame]] = {
    "csv": lambda path: pd.read_csv(path),
    "tsv": lambda path: pd.read_csv(path, sep="\t"),
    "json": lambda path: pd.read_json(path, orient="records"),
    "h5ad": _read_h5ad_obs,
}

EXTENSIONS = {".csv": "csv", ".tsv": "tsv", ".txt": "tsv", ".json": "json", ".h5ad": "h5ad"}


class UrlSource(DataSource):
    """
    Tabular data read from a file:

        {"url": "genes.tsv"}
        {"url": "cells.h5ad"}                      (the .obs table)
        {"url": "data.txt", "format": {"type": "csv"}}

    Relative urls are resolved against the base url inherited from the view
    hierarchy. Parsing happens in a worker thread.
    """

    type_name = "url"

    def __init__(self, params: Mapping[str, Any], base_url: Optional[str | Path] = None):
        super().__init__()
        url = params.get("url")
        if not url:
            raise ConfigError("Url data needs 'url'", config=dict(params))

        path = resolve_data_path(url, Path(base_url) if base_url is not None else None)
        self.path = path

        fmt = (params.get("format") or {}).get("type") or EXTENSIONS.get(path.suffix.lower())
        if fmt not in READERS:
            raise ConfigError(
                f"Cannot determine a supported format for '{url}'. Supported: {sorted(READERS)}",
                config=dict(params),
            )
        self.format = fmt

    def describe(self) -> str:
        return f"UrlSource({self.path})"

    async def _fetch(self) -> Iterable[Datum]:
        df = await asyncio.to_thread(READERS[self.format], self.path)
        logger.info("Loaded %d rows from %s", len(df), self.path)
        return frame_to_records(df)


def create_data_source(params: Mapping[str, Any], base_url: Optional[str | Path] = None) -> DataSource:
    """
    Pick a data source implementation based on the keys of the data params.

    :raises FlowBuildError: if the params do not describe a known source
    """
    if "values" in params:
        return InlineSource(params)
    if "url" in params:
        return UrlSource(params, base_url)
    if "sequence" in params:
        return SequenceSource(params)

    raise FlowBuildError("Cannot figure out the data source type.", config=dict(params))
