"""
View hierarchy hosting the data flow, domain extraction, and the builder that
turns views into data flow graphs
"""

from .domain import OrdinalDomain, QuantitativeDomain, create_domain, union_domains
from .flow_builder import FlowBuilder, build_data_flow, create_chain
from .view import ContainerView, UnitView, View, ViewContext, create_view

__all__ = [
    "ContainerView",
    "FlowBuilder",
    "OrdinalDomain",
    "QuantitativeDomain",
    "UnitView",
    "View",
    "ViewContext",
    "build_data_flow",
    "create_chain",
    "create_domain",
    "create_view",
    "union_domains",
]
