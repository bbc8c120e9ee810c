from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

from track_browser.core.exceptions import ConfigError, FlowBuildError

from ..flow_node import FlowNode
from .clone import CloneTransform
from .filter import FilterTransform
from .flatten_sequence import FlattenSequenceTransform
from .identifier import IdentifierTransform
from .linearize_genomic_coordinate import LinearizeGenomicCoordinate
from .regex_extract import RegexExtractTransform

if TYPE_CHECKING:
    from track_browser.view.view import View

logger = logging.getLogger(__name__)

TransformFactory = Callable[[Mapping[str, Any], Optional["View"]], FlowNode]


class TransformRegistry:
    """
    Registry of transform factories keyed by the "type" of the transform params.

    Design Notes:
    - Stores factories, not instances, so each view gets its own nodes
    - Each type is unique across the registry
    - Factories receive the owning view, so transforms needing context
      (e.g. the genome) can pull it from there
    """

    def __init__(self) -> None:
        self._factories: Dict[str, TransformFactory] = {}

    def register(self, type_name: str, factory: TransformFactory) -> None:
        """
        :raises ValueError: if a transform with the same type already exists
        """
        if type_name in self._factories:
            raise ValueError(f"Transform '{type_name}' already registered")
        self._factories[type_name] = factory

    def types(self) -> List[str]:
        return list(self._factories)

    def create(self, params: Mapping[str, Any], view: Optional["View"] = None) -> FlowNode:
        """
        Instantiate the transform described by params.

        :raises FlowBuildError: if the type is unknown or the params are rejected
        """
        type_name = params.get("type")
        factory = self._factories.get(type_name)
        if factory is None:
            raise FlowBuildError(f"Unknown transform: '{type_name}'.", config=dict(params))

        try:
            return factory(params, view)
        except ConfigError as e:
            logger.error("Cannot initialize transform", extra={"transform": type_name})
            raise FlowBuildError(
                f'Cannot initialize "{type_name}" transform: {e}', config=dict(params)
            ) from e


def _genome_of(view: Optional["View"]):
    return view.context.genome if view is not None else None


def create_default_registry() -> TransformRegistry:
    """
    Builds a registry with all built-in transforms.
    """
    registry = TransformRegistry()
    registry.register("clone", lambda params, view: CloneTransform(params))
    registry.register("filter", lambda params, view: FilterTransform(params))
    registry.register("flattenSequence", lambda params, view: FlattenSequenceTransform(params))
    registry.register("identifier", lambda params, view: IdentifierTransform(params))
    registry.register(
        "linearizeGenomicCoordinate",
        lambda params, view: LinearizeGenomicCoordinate(params, _genome_of(view)),
    )
    registry.register("regexExtract", lambda params, view: RegexExtractTransform(params))
    return registry


default_registry = create_default_registry()


def create_transform(params: Mapping[str, Any], view: Optional["View"] = None) -> FlowNode:
    return default_registry.create(params, view)
