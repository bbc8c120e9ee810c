from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from track_browser.core.exceptions import ConfigError

from .model import BrowserConfig

logger = logging.getLogger(__name__)

DATA_ROOT_ENV = "TRACK_BROWSER_DATA_ROOT"
DEFAULT_TITLE = "Track Browser"


def resolve_data_path(path: str | Path, data_root: Optional[Path]) -> Path:
    """
    Resolve a relative data path against the data root.

    Absolute paths are used as-is. A redundant leading 'data/' is dropped when
    the path only exists without it.
    """
    path = Path(path)
    if path.is_absolute() or data_root is None:
        return path

    resolved = data_root / path
    if not resolved.exists() and path.parts and path.parts[0] == "data":
        alt_path = data_root / Path(*path.parts[1:])
        if alt_path.exists():
            return alt_path
    return resolved


def _resolve_data_root(raw_global: Dict[str, Any], config_dir: Path) -> Optional[Path]:
    # Selection order: env var, config file (relative to the config's directory), none
    env_root = os.environ.get(DATA_ROOT_ENV)
    if env_root:
        return Path(env_root)

    data_root_raw = raw_global.get("data_root")
    if data_root_raw is None:
        return None

    data_root = Path(data_root_raw)
    if data_root.is_absolute():
        return data_root
    return (config_dir / data_root).resolve()


def parse_browser_config(raw: Dict[str, Any], source_path: Optional[Path] = None) -> BrowserConfig:
    """
    Build a BrowserConfig from an already parsed JSON document.

    Expected structure:

        {
            "global": {"title": "...", "data_root": "data"},
            "genome": {"name": "hg38", "chromSizes": "hg38.chrom.sizes"},
            "samples": {"metadata": "samples.tsv", "sample_column": "sample"},
            "spec": { ...view spec... }
        }

    :raises ConfigError: if the view spec is missing or malformed
    """
    spec = raw.get("spec")
    if not isinstance(spec, dict):
        raise ConfigError("Browser config needs a 'spec' object", config=raw)

    raw_global = raw.get("global", {})
    config_dir = source_path.parent if source_path is not None else Path.cwd()
    data_root = _resolve_data_root(raw_global, config_dir)

    genome = raw.get("genome")
    if genome is not None and not isinstance(genome, dict):
        raise ConfigError("'genome' must be an object", config=raw)

    samples = raw.get("samples") or {}
    metadata = samples.get("metadata")

    # Views without their own baseUrl read relative urls from the data root
    if data_root is not None and "baseUrl" not in spec:
        spec = {**spec, "baseUrl": str(data_root)}

    return BrowserConfig(
        title=raw_global.get("title", DEFAULT_TITLE),
        spec=spec,
        data_root=data_root,
        genome=genome,
        sample_metadata=resolve_data_path(metadata, data_root) if metadata else None,
        sample_column=samples.get("sample_column"),
        source_path=source_path,
        raw=raw,
    )


def load_browser_config(path: str | Path) -> BrowserConfig:
    """
    Load a browser config JSON file.

    :raises FileNotFoundError: if the file does not exist
    :raises ConfigError: if the file is not valid JSON or misses required keys
    """
    path = Path(path)
    logger.info("Loading browser config", extra={"config_path": str(path)})

    if not path.is_file():
        raise FileNotFoundError(f"File not found at {path}")

    try:
        raw = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"Browser config {path} is not valid JSON: {e}") from e

    return parse_browser_config(raw, source_path=path)
