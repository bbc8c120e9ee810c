"""
Push-based data flow: flow nodes, data sources, transforms, collectors and
the DataFlow that tracks which collector feeds which view
"""

from .collector import Collector, create_comparator
from .data_flow import DataFlow
from .flow_node import Behavior, FlowNode
from .sources import (
    DataFrameSource,
    DataSource,
    InlineSource,
    SequenceSource,
    UrlSource,
    create_data_source,
)

__all__ = [
    "Behavior",
    "Collector",
    "DataFlow",
    "DataFrameSource",
    "DataSource",
    "FlowNode",
    "InlineSource",
    "SequenceSource",
    "UrlSource",
    "create_comparator",
    "create_data_source",
]
