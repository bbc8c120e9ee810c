"""
Built-in data flow transforms and the factory that creates them from
transform params
"""

from .clone import CloneTransform
from .filter import FilterTransform
from .flatten_sequence import FlattenSequenceTransform
from .identifier import IdentifierTransform
from .linearize_genomic_coordinate import LinearizeGenomicCoordinate
from .regex_extract import RegexExtractTransform
from .registry import TransformRegistry, create_default_registry, create_transform

__all__ = [
    "CloneTransform",
    "FilterTransform",
    "FlattenSequenceTransform",
    "IdentifierTransform",
    "LinearizeGenomicCoordinate",
    "RegexExtractTransform",
    "TransformRegistry",
    "create_default_registry",
    "create_transform",
]
