from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar

from track_browser.core.exceptions import ProvenanceError

logger = logging.getLogger(__name__)

S = TypeVar("S")


@dataclass(frozen=True)
class ProvenanceEntry(Generic[S]):
    state: S
    action: Optional[Any] = None


class Provenance(Generic[S]):
    """
    Append-only, cursor-addressed history of immutable state snapshots.

    - set_initial_state() resets the history to a single entry
    - push() drops everything after the cursor (the redo branch) and appends
    - undo()/redo() move the cursor; both are no-ops at the ends of the history

    The cursor is always a valid index once the initial state has been set.
    """

    def __init__(self) -> None:
        self._history: List[ProvenanceEntry[S]] = []
        self._index = -1
        self._listeners: List[Callable[[Provenance[S]], None]] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_listener(self, listener: Callable[[Provenance[S]], None]) -> None:
        """Called after every change of the current state."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    @property
    def state(self) -> Optional[S]:
        """The snapshot at the cursor, or None before the initial state is set."""
        if self._index < 0:
            return None
        return self._history[self._index].state

    @property
    def index(self) -> int:
        return self._index

    def __len__(self) -> int:
        return len(self._history)

    def set_initial_state(self, state: S) -> None:
        self._history = [ProvenanceEntry(state, None)]
        self._index = 0
        self._notify()

    def push(self, state: S, action: Any) -> None:
        """
        :raises ProvenanceError: if no initial state has been set
        """
        if self._index < 0:
            raise ProvenanceError("Cannot push before an initial state has been set")

        discarded = len(self._history) - self._index - 1
        if discarded:
            logger.debug("Discarding %d redoable snapshots", discarded)

        del self._history[self._index + 1:]
        self._history.append(ProvenanceEntry(state, action))
        self._index = len(self._history) - 1
        self._notify()

    def is_undoable(self) -> bool:
        return self._index > 0

    def is_redoable(self) -> bool:
        return 0 <= self._index < len(self._history) - 1

    def undo(self) -> None:
        if self.is_undoable():
            self._index -= 1
            self._notify()

    def redo(self) -> None:
        if self.is_redoable():
            self._index += 1
            self._notify()

    def get_action_history(self) -> List[Any]:
        """Actions that led to the current state, oldest first."""
        return [entry.action for entry in self._history[1:self._index + 1]]
