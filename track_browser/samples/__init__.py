"""
Sample command engine: an undoable hierarchy of sample identifiers that is
sorted, filtered and grouped by sample attributes
"""

from .actions import ActionType
from .attributes import SAMPLE_ATTRIBUTE, AttributeIdentifier, AttributeInfo, SampleMetadata
from .provenance import Provenance
from .sample_handler import SampleHandler
from .state import GroupingStep, SampleInternalGroup, SampleLeafGroup, State

__all__ = [
    "SAMPLE_ATTRIBUTE",
    "ActionType",
    "AttributeIdentifier",
    "AttributeInfo",
    "GroupingStep",
    "Provenance",
    "SampleHandler",
    "SampleInternalGroup",
    "SampleLeafGroup",
    "SampleMetadata",
    "State",
]
