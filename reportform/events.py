"""Event primitives for the report form session engine.

This module provides the one-time event wrapper used for navigation and
dialog actions, and the emitter that notifies observers of new session
state snapshots.

A OneTimeEvent is observed at most once: the first ``consume()`` returns
the wrapped action and every later call returns None. Re-rendering the same
state therefore never re-fires a navigation or dialog.
"""

import logging
import threading
from typing import Any, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OneTimeEvent(Generic[T]):
    """Wraps a value that must be handled exactly once.

    Examples:
        >>> from reportform.types import UiAction
        >>> event = OneTimeEvent(UiAction.SHOW_STUDY_NOT_ACTIVE)
        >>> event.consume()
        <UiAction.SHOW_STUDY_NOT_ACTIVE: 'show_study_not_active'>
        >>> event.consume() is None
        True
        >>> event.peek()
        <UiAction.SHOW_STUDY_NOT_ACTIVE: 'show_study_not_active'>
    """

    def __init__(self, content: T):
        self._content = content
        self._consumed = False
        self._lock = threading.Lock()

    @property
    def has_been_consumed(self) -> bool:
        return self._consumed

    def peek(self) -> T:
        """Return the wrapped value without consuming it."""
        return self._content

    def consume(self) -> Optional[T]:
        """Return the wrapped value on the first call, None afterwards."""
        with self._lock:
            if self._consumed:
                return None
            self._consumed = True
            return self._content

    def __repr__(self) -> str:
        return f"OneTimeEvent({self._content!r}, consumed={self._consumed})"


StateListener = Callable[[Any], None]
"""Type alias for state listener callbacks.

Listeners receive each new SessionState snapshot synchronously, in
registration order.
"""


class StateEmitter:
    """Dispatches state snapshots to registered listeners.

    A listener that raises is logged and skipped; the remaining listeners
    and the caller are unaffected.

    Examples:
        >>> emitter = StateEmitter()
        >>> seen = []
        >>> emitter.on(seen.append)
        >>> emitter.emit("snapshot")
        >>> seen
        ['snapshot']
    """

    def __init__(self):
        self._listeners: List[StateListener] = []

    def on(self, listener: StateListener) -> None:
        """Subscribe to state snapshots."""
        self._listeners.append(listener)

    def off(self, listener: StateListener) -> None:
        """Unsubscribe; unknown listeners are ignored."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, state: Any) -> None:
        """Deliver a snapshot to every listener."""
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener %r failed", listener)

    def clear(self) -> None:
        """Remove all listeners."""
        self._listeners.clear()

    def listener_count(self) -> int:
        return len(self._listeners)


__all__ = [
    "OneTimeEvent",
    "StateListener",
    "StateEmitter",
]
