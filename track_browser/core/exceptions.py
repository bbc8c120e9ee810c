from __future__ import annotations

import json
from typing import Any, Optional


def _describe_config(config: Any) -> str:
    try:
        return json.dumps(config, default=str, sort_keys=True)
    except (TypeError, ValueError):
        return repr(config)


class TrackBrowserError(Exception):
    """Base exception for all track_browser errors"""
    pass


class ConfigError(TrackBrowserError):
    """
    Invalid or inconsistent configuration: view spec, transform params,
    sample actions or the browser config file.

    The offending configuration is kept on `.config` and appended to the message.
    """

    def __init__(self, message: str, *, config: Optional[Any] = None):
        self.config = config
        if config is not None:
            message = f"{message} {_describe_config(config)}"
        super().__init__(message)


class FlowBuildError(ConfigError):
    """The data flow graph cannot be constructed from the view hierarchy"""
    pass


class UnknownActionError(ConfigError):
    """A sample action with an unrecognised type was dispatched"""
    pass


class AttributeResolutionError(ConfigError):
    """
    No attribute info source is registered for the attribute type, or the
    source does not know the attribute
    """
    pass


class GroupError(TrackBrowserError):
    """Illegal structural operation on a group hierarchy"""
    pass


class FlowStateError(TrackBrowserError):
    """A flow node was used before it was ready (e.g. an uncompleted collector)"""
    pass


class DataError(TrackBrowserError):
    """A record cannot be processed by a transform"""
    pass


class ProvenanceError(TrackBrowserError):
    """The provenance history was used before it was initialised"""
    pass
