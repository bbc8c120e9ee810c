from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from track_browser.core.exceptions import AttributeResolutionError, ConfigError, UnknownActionError

from . import operations
from .actions import ActionType
from .attributes import AttributeIdentifier, AttributeInfo, AttributeInfoSource
from .provenance import Provenance
from .state import (
    GroupingStep,
    SampleGroup,
    SampleInternalGroup,
    SampleLeafGroup,
    State,
    flatten_group_hierarchy,
    initial_state,
    replace_leaves,
)

logger = logging.getLogger(__name__)

UNDEFINED_GROUP_NAME = "undefined"

SampleOperation = Callable[[Sequence[str]], List[str]]


class SampleHandler:
    """
    Sorts, filters and groups the sample hierarchy in response to actions.

    Every successful dispatch pushes one new whole-state snapshot into the
    provenance history. A failing dispatch raises before anything is pushed,
    so the history is left exactly as it was.
    """

    def __init__(self) -> None:
        self._attribute_info_sources: Dict[str, AttributeInfoSource] = {}
        self.provenance: Provenance[State] = Provenance()

    @property
    def state(self) -> Optional[State]:
        return self.provenance.state

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------
    def add_attribute_info_source(self, type: str, source: AttributeInfoSource) -> None:
        self._attribute_info_sources[type] = source

    def get_attribute_info(self, attribute: AttributeIdentifier | Mapping[str, Any]) -> AttributeInfo:
        """
        :raises AttributeResolutionError: if no source is registered for the
            attribute type or the source does not know the attribute
        """
        attribute = self._to_identifier(attribute)

        source = self._attribute_info_sources.get(attribute.type)
        if source is None:
            raise AttributeResolutionError(
                "Cannot find attribute info source for:", config=attribute.to_dict()
            )

        info = source(attribute)
        if info is None:
            raise AttributeResolutionError("Unknown attribute:", config=attribute.to_dict())
        return info

    @staticmethod
    def _to_identifier(attribute: Any) -> AttributeIdentifier:
        if isinstance(attribute, AttributeIdentifier):
            return attribute
        if not isinstance(attribute, Mapping) or "type" not in attribute:
            raise AttributeResolutionError("Not a valid attribute identifier:", config=attribute)
        return AttributeIdentifier.from_dict(attribute)

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------
    def set_samples(self, samples: Sequence[str]) -> None:
        """Sets the samples that we are working with, resets the history."""
        self.provenance.set_initial_state(initial_state(samples))
        logger.info("Sample hierarchy initialised with %d samples", len(samples))

    def _require_state(self, state: Optional[State]) -> State:
        state = state or self.state
        if state is None:
            raise ConfigError("No samples have been set")
        return state

    def get_flattened_group_hierarchy(self, state: Optional[State] = None) -> List[List[SampleGroup]]:
        """
        One path per terminal group, from the root down to the
        SampleLeafGroup that holds the samples.
        """
        return flatten_group_hierarchy(self._require_state(state).root_group)

    def get_sample_groups(self, state: Optional[State] = None) -> List[SampleLeafGroup]:
        return [path[-1] for path in self.get_flattened_group_hierarchy(state)]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch(self, action: Mapping[str, Any]) -> None:
        """
        Apply an action to the current state.

        :raises UnknownActionError: if the action type is not recognised
        :raises AttributeResolutionError: if the attribute cannot be resolved
        :raises ConfigError: for invalid action parameters
        """
        try:
            action_type = ActionType(action.get("type"))
        except (ValueError, AttributeError):
            raise UnknownActionError("Unknown action:", config=action) from None

        if action_type is ActionType.UNDO:
            self.provenance.undo()
            return

        state = self._require_state(None)
        attribute = self._to_identifier(action.get("attribute"))
        attribute_info = self.get_attribute_info(attribute)
        accessor = attribute_info.accessor

        if action_type is ActionType.GROUP_BY_NOMINAL:
            new_state = self._group_state(state, attribute, lambda leaf: _group_by(leaf, accessor))
        elif action_type is ActionType.GROUP_TO_QUARTILES:
            new_state = self._group_state(state, attribute, lambda leaf: _group_to_quartiles(leaf, accessor))
        else:
            operation = self._create_operation(action_type, action, attribute_info)
            new_state = state.with_root(
                replace_leaves(
                    state.root_group,
                    lambda leaf: SampleLeafGroup(leaf.name, tuple(operation(leaf.samples))),
                )
            )

        self.provenance.push(new_state, dict(action))
        logger.debug("Dispatched %s", action_type.value)

    def redo(self) -> None:
        """Re-apply the most recently undone action, if any."""
        self.provenance.redo()

    @staticmethod
    def _create_operation(
        action_type: ActionType, action: Mapping[str, Any], attribute_info: AttributeInfo
    ) -> SampleOperation:
        accessor = attribute_info.accessor

        if action_type is ActionType.SORT_BY:
            comparable = operations.wrap_accessor_for_comparison(accessor, attribute_info)
            return lambda samples: operations.sort(samples, comparable, False)

        if action_type is ActionType.RETAIN_FIRST_OF_EACH:
            return lambda samples: operations.retain_first_of_each(samples, accessor)

        if action_type is ActionType.FILTER_BY_QUANTITATIVE:
            operator, operand = action.get("operator"), action.get("operand")
            if operator not in operations.QUANTITATIVE_OPERATORS:
                raise ConfigError(f"Not a valid operator: '{operator}'.", config=action)
            if not operations.is_number(operand) or not operations.is_defined(operand):
                raise ConfigError(f"Not a valid operand: '{operand}'.", config=action)
            return lambda samples: operations.filter_quantitative(samples, accessor, operator, operand)

        if action_type is ActionType.FILTER_BY_NOMINAL:
            nominal_action, values = action.get("action"), action.get("values") or []
            if nominal_action not in operations.NOMINAL_ACTIONS:
                raise ConfigError(f"Not a valid nominal filter action: '{nominal_action}'.", config=action)
            return lambda samples: operations.filter_nominal(samples, accessor, nominal_action, values)

        if action_type is ActionType.REMOVE_UNDEFINED:
            return lambda samples: operations.filter_undefined(samples, accessor)

        raise UnknownActionError("Unknown action:", config=action)

    @staticmethod
    def _group_state(
        state: State,
        attribute: AttributeIdentifier,
        regroup: Callable[[SampleLeafGroup], SampleGroup],
    ) -> State:
        new_root = replace_leaves(state.root_group, regroup)
        return state.with_root(new_root).with_grouping_step(
            GroupingStep(name=attribute.display_name, attribute=attribute)
        )


def _group_name(key: Any) -> str:
    return UNDEFINED_GROUP_NAME if key is None else str(key)


def _group_by(leaf: SampleLeafGroup, accessor: Callable[[str], Any]) -> SampleInternalGroup:
    grouped = operations.group_by_accessor(leaf.samples, accessor)
    return SampleInternalGroup(
        leaf.name,
        tuple(SampleLeafGroup(_group_name(key), tuple(samples)) for key, samples in grouped.items()),
    )


def _group_to_quartiles(leaf: SampleLeafGroup, accessor: Callable[[str], Any]) -> SampleInternalGroup:
    thresholds = operations.extract_quantiles(leaf.samples, accessor, operations.QUARTILE_P_VALUES)
    return _group_by(leaf, operations.create_quantile_accessor(accessor, thresholds))
