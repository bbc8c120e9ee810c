from __future__ import annotations

import asyncio
import logging
from typing import Dict, Generic, Hashable, List, Optional, TypeVar

from .collector import Collector
from .sources import DataSource

logger = logging.getLogger(__name__)

H = TypeVar("H", bound=Hashable)


class DataFlow(Generic[H]):
    """
    Owns the data flow graphs of a visualization.

    Keeps track of which data source and which collector belongs to which
    host (typically a view), so that consumers can find the collector that
    feeds them once loading has completed.
    """

    def __init__(self) -> None:
        self._data_sources_by_host: Dict[H, DataSource] = {}
        self._collectors_by_host: Dict[H, Collector] = {}

    @property
    def data_sources(self) -> List[DataSource]:
        # A source may be registered for several hosts
        unique: Dict[int, DataSource] = {}
        for source in self._data_sources_by_host.values():
            unique.setdefault(id(source), source)
        return list(unique.values())

    @property
    def collectors(self) -> List[Collector]:
        return list(self._collectors_by_host.values())

    def add_data_source(self, source: DataSource, host: H) -> None:
        self._data_sources_by_host[host] = source

    def add_collector(self, collector: Collector, host: H) -> None:
        self._collectors_by_host[host] = collector

    def find_data_source_by_host(self, host: H) -> Optional[DataSource]:
        return self._data_sources_by_host.get(host)

    def find_collector_by_host(self, host: H) -> Optional[Collector]:
        return self._collectors_by_host.get(host)

    def hosts(self) -> List[H]:
        return list(self._collectors_by_host)

    def remove_host(self, host: H) -> None:
        self._data_sources_by_host.pop(host, None)
        self._collectors_by_host.pop(host, None)

    async def load_all(self) -> None:
        """
        Load every data source. Each source pushes its records through its
        graph synchronously once its own read has finished.
        """
        sources = self.data_sources
        await asyncio.gather(*(source.load() for source in sources))
        logger.info(
            "Data flow loaded",
            extra={"sources": len(sources), "collectors": len(self._collectors_by_host)},
        )
