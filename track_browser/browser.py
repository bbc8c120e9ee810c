from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from track_browser.config.model import BrowserConfig
from track_browser.core.genome import Genome
from track_browser.data.data_flow import DataFlow
from track_browser.samples.attributes import SAMPLE_ATTRIBUTE, SampleMetadata
from track_browser.samples.sample_handler import SampleHandler
from track_browser.view.flow_builder import FlowBuilder
from track_browser.view.view import ContainerView, UnitView, View, ViewContext, create_view

logger = logging.getLogger(__name__)


class TrackBrowser:
    """
    Wires a view spec into a running visualization core:

    - builds the view hierarchy and its data flow graphs
    - owns the sample handler, seeded from the sample metadata if available
    - loads all data sources on launch()
    """

    def __init__(
        self,
        spec: Dict[str, Any],
        *,
        genome: Optional[Genome] = None,
        sample_metadata: Optional[SampleMetadata] = None,
        title: str = "Track Browser",
    ):
        self.title = title
        self.context = ViewContext(data_flow=DataFlow(), genome=genome)
        self.root: View = create_view(spec, self.context)
        FlowBuilder(self.context.data_flow).build(self.root)

        self.sample_handler = SampleHandler()
        self.sample_metadata = sample_metadata
        if sample_metadata is not None:
            self.sample_handler.add_attribute_info_source(
                SAMPLE_ATTRIBUTE, sample_metadata.attribute_info_source
            )
            self.sample_handler.set_samples(sample_metadata.sample_ids)

    @classmethod
    def from_config(cls, config: BrowserConfig) -> TrackBrowser:
        base_path = config.source_path.parent if config.source_path is not None else None
        genome = Genome.from_config(config.genome, base_path=config.data_root or base_path) if config.genome else None
        metadata = (
            SampleMetadata.from_file(config.sample_metadata, config.sample_column)
            if config.sample_metadata is not None
            else None
        )
        return cls(config.spec, genome=genome, sample_metadata=metadata, title=config.title)

    @property
    def data_flow(self) -> DataFlow:
        return self.context.data_flow

    async def launch(self) -> None:
        await self.data_flow.load_all()
        logger.info("Browser '%s' launched", self.title)

    def get_view(self, path: str) -> Optional[View]:
        """
        :param path: slash-separated view names below the root, e.g. "layer0/reads"
        """
        if not path:
            return self.root
        if not isinstance(self.root, ContainerView):
            return None
        return self.root.find_descendant_by_path(path.split("/"))

    def unit_views(self) -> List[UnitView]:
        views: List[UnitView] = []

        def collect(view: View) -> None:
            if isinstance(view, UnitView):
                views.append(view)

        self.root.visit(collect)
        return views

    def collector_summary(self) -> Dict[str, Dict[str, int]]:
        """Number of facets and records collected for each unit view."""
        summary: Dict[str, Dict[str, int]] = {}
        for view in self.unit_views():
            data = view.get_data()
            summary[view.get_path_string()] = {
                "facets": len(data.leaf_groups()),
                "records": sum(len(leaf.data) for leaf in data.leaf_groups()),
            }
        return summary
