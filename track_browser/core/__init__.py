"""
Core domain layer: group hierarchy, genome assembly and the exception
hierarchy shared by the data flow and the sample command engine
"""

from .genome import Contig, Genome
from .group import Group, GroupKind, InternalGroup, LeafGroup

__all__ = ["Contig", "Genome", "Group", "GroupKind", "InternalGroup", "LeafGroup"]
