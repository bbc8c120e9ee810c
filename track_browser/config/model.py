from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class BrowserConfig:
    """
    Parsed browser configuration.

    - title: title shown by the host application
    - spec: the declarative view spec (view hierarchy, data, transforms, encodings)
    - data_root: directory that relative data urls resolve against
    - genome: raw genome config ({"name", "contigs"} or {"name", "chromSizes"})
    - sample_metadata: path to the sample metadata table, if any
    - sample_column: metadata column holding the sample ids (default: first column)
    - source_path: the file this config was read from
    """

    title: str
    spec: Dict[str, Any]
    data_root: Optional[Path] = None
    genome: Optional[Dict[str, Any]] = None
    sample_metadata: Optional[Path] = None
    sample_column: Optional[str] = None
    source_path: Optional[Path] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)
