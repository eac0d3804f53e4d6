"""Load state machine for a report form session.

A session starts IDLE, moves to LOADING when the study is requested, and
ends the load attempt in READY (form merged) or ERROR (study missing,
inactive, or repository failure). READY and ERROR may go back to LOADING to
reload or retry.

Usage:
    >>> from reportform.state_machine import LoadStateMachine
    >>> from reportform.types import LoadState
    >>> sm = LoadStateMachine()
    >>> sm.transition_to(LoadState.LOADING)
    >>> sm.state
    <LoadState.LOADING: 'loading'>
    >>> sm.can_transition_to(LoadState.IDLE)
    False
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from reportform.errors import ReportFormError
from reportform.types import LoadState

logger = logging.getLogger(__name__)


class InvalidLoadTransitionError(ReportFormError):
    """Raised when attempting an invalid load state transition.

    Attributes:
        current_state: The current state before the attempted transition
        target_state: The target state that was attempted
    """

    def __init__(self, current_state: LoadState, target_state: LoadState, message: str):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(message)


# Maps each state to the set of states it can transition to
VALID_TRANSITIONS: Dict[LoadState, Set[LoadState]] = {
    LoadState.IDLE: {
        LoadState.LOADING,
    },
    # A load restarted before the prefill source produced a value
    LoadState.LOADING: {
        LoadState.LOADING,
        LoadState.READY,
        LoadState.ERROR,
    },
    # Prefill emissions re-merge the form while it is ready
    LoadState.READY: {
        LoadState.READY,
        LoadState.LOADING,
    },
    LoadState.ERROR: {
        LoadState.LOADING,
    },
}


@dataclass
class LoadStateMachine:
    """Tracks the load state of one session and enforces valid transitions.

    Attributes:
        state: Current load state
        attempt: Number of load attempts started
    """

    state: LoadState = LoadState.IDLE
    attempt: int = 0
    _history: List[Tuple[LoadState, LoadState]] = field(default_factory=list, init=False, repr=False)

    def can_transition_to(self, target_state: LoadState) -> bool:
        return target_state in VALID_TRANSITIONS.get(self.state, set())

    def transition_to(self, target_state: LoadState) -> None:
        """Transition to ``target_state``.

        Raises:
            InvalidLoadTransitionError: If the transition is not allowed
        """
        if not self.can_transition_to(target_state):
            raise InvalidLoadTransitionError(
                current_state=self.state,
                target_state=target_state,
                message=(
                    f"Invalid load transition: cannot transition from "
                    f"'{self.state.value}' to '{target_state.value}'. "
                    f"Valid transitions from '{self.state.value}' are: "
                    f"{', '.join(sorted(s.value for s in VALID_TRANSITIONS[self.state]))}"
                ),
            )
        if target_state == LoadState.LOADING:
            self.attempt += 1
        old_state = self.state
        self.state = target_state
        self._history.append((old_state, target_state))
        if old_state != target_state:
            logger.debug("Load state %s -> %s (attempt %d)", old_state.value, target_state.value, self.attempt)

    @property
    def is_settled(self) -> bool:
        """Whether the current load attempt has finished."""
        return self.state in (LoadState.READY, LoadState.ERROR)

    def get_history(self) -> List[Tuple[LoadState, LoadState]]:
        """Return the transitions performed so far, oldest first."""
        return list(self._history)


__all__ = [
    "LoadStateMachine",
    "InvalidLoadTransitionError",
    "VALID_TRANSITIONS",
]
