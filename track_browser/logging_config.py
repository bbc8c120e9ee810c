"""
Root logging setup for the track browser process.

Config loading, flow construction, data loading and sample dispatch log
through module-level loggers under ``track_browser.*``. Context such as the
config path or node counts goes in ``extra``; the JSON formatter keeps those
fields as separate keys, the plain formatter is meant for a terminal.
"""
from __future__ import annotations

import logging
import os
from typing import Optional, Union

from pythonjsonlogger import jsonlogger

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

FORMAT_ENV = "TRACK_BROWSER_LOG_FORMAT"
LEVEL_ENV = "TRACK_BROWSER_LOG_LEVEL"

# Readers used by the url data sources; their INFO output drowns the flow logs
NOISY_LOGGERS = ("anndata", "h5py", "numexpr")


def resolve_level(level: Optional[Union[int, str]] = None) -> int:
    """
    Numeric level from an int, a level name such as "debug", or
    TRACK_BROWSER_LOG_LEVEL when level is None. Unknown names give INFO.
    """
    if level is None:
        level = os.getenv(LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_formatter(format_mode: str) -> logging.Formatter:
    if format_mode == "plain":
        return logging.Formatter(PLAIN_FORMAT)
    return jsonlogger.JsonFormatter(PLAIN_FORMAT)


def configure_logging(
        level: Optional[Union[int, str]] = None,
        force_format: Optional[str] = None,
) -> None:
    """
    Install a single stream handler on the root logger.

    :param level: root level; falls back to TRACK_BROWSER_LOG_LEVEL, then INFO
    :param force_format: "json" or "plain"; falls back to
        TRACK_BROWSER_LOG_FORMAT, then "json"

    Calling this again replaces the handler instead of adding a second one.
    The anndata/h5py/numexpr loggers used while reading .h5ad sources are
    held at WARNING or above.
    """
    format_mode = (force_format or os.getenv(FORMAT_ENV, "json")).lower()
    level = resolve_level(level)

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(format_mode))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).debug(
        "Logging configured", extra={"format": format_mode, "level": logging.getLevelName(level)}
    )
