"""Session controller for the report form.

This module provides the SessionController class that coordinates the field
store, the validation engine, the tab controller and the load state machine.
It owns the authoritative SessionState and publishes a new immutable snapshot
after every command.

The controller is a single logical owner: every command and every prefill
emission is serialized under one re-entrant lock, while reading ``state``
never blocks.

Usage:
    >>> from reportform.repository import InMemorySessionRepository, StudyDetails, StudyForm
    >>> repo = InMemorySessionRepository()
    >>> repo.add_study(
    ...     StudyDetails(
    ...         id="study_1",
    ...         is_active=True,
    ...         form=StudyForm(fields=({"id": "comment", "type": "text_field"},)),
    ...     ),
    ...     select=True,
    ... )
    >>> controller = SessionController(repo)
    >>> state = controller.load()
    >>> state.load_state
    <LoadState.READY: 'ready'>
    >>> [tab.value for tab in state.tabs]
    ['report_link']
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from reportform.config import SessionConfig
from reportform.errors import RepositoryError, SchemaConversionError, SessionNotReadyError
from reportform.events import OneTimeEvent, StateEmitter, StateListener
from reportform.fields import FormFieldList
from reportform.repository import SessionRepository, StudyDetails, Unsubscribe
from reportform.schema import apply_prefill, convert_fields
from reportform.state_machine import LoadStateMachine
from reportform.store import FormFieldStore
from reportform.tabs import TabController, TabSelection, compute_tabs
from reportform.types import LoadState, TabKind, UiAction
from reportform.validation import ValidationEngine, ValidationResult

logger = logging.getLogger(__name__)

FieldConverter = Callable[[Iterable[Mapping[str, Any]]], FormFieldList]

_NOT_MERGED = object()


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of a report form session.

    Attributes:
        load_state: Where the current load attempt stands
        tabs: Available tabs, in display order
        selected_tab: Selected tab, None when there are no tabs
        form_fields: Current field list
        is_recording: Whether a session recording is in progress
        record_session_comments: Free-text comments for a recorded session
        action: Pending one-time action for the presentation layer
    """
    load_state: LoadState = LoadState.IDLE
    tabs: Tuple[TabKind, ...] = ()
    selected_tab: Optional[TabSelection] = None
    form_fields: FormFieldList = ()
    is_recording: bool = False
    record_session_comments: str = ""
    action: Optional[OneTimeEvent[UiAction]] = None

    @property
    def is_loading(self) -> bool:
        return self.load_state == LoadState.LOADING

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization. The action is peeked, not consumed."""
        result: Dict[str, Any] = {
            "loadState": self.load_state.value,
            "tabs": [tab.value for tab in self.tabs],
            "selectedTab": self.selected_tab.to_dict() if self.selected_tab else None,
            "formFields": [field.to_dict() for field in self.form_fields],
            "isRecording": self.is_recording,
            "recordSessionComments": self.record_session_comments,
        }
        if self.action is not None and not self.action.has_been_consumed:
            result["action"] = self.action.peek().value
        return result


class SessionController:
    """Orchestrator for one report form session.

    Attributes:
        repository: Source of the selected study and prefill values
        config: Session-scoped configuration

    Examples:
        >>> from reportform.repository import InMemorySessionRepository
        >>> controller = SessionController(InMemorySessionRepository())
        >>> controller.load().action.consume()
        <UiAction.SHOW_FETCH_STUDY_ERROR: 'show_fetch_study_error'>
    """

    def __init__(
        self,
        repository: SessionRepository,
        config: Optional[SessionConfig] = None,
        converter: Optional[FieldConverter] = None,
    ):
        """Initialize the controller.

        Args:
            repository: Session repository the study and prefill values come from
            config: Session configuration; defaults to ``SessionConfig()``
            converter: Converts the study's raw field schema into field models;
                defaults to ``schema.convert_fields`` with ``config``
        """
        self.repository = repository
        self.config = config or SessionConfig()
        self._converter: FieldConverter = converter or (lambda raw: convert_fields(raw, self.config))
        self._lock = threading.RLock()
        self._store = FormFieldStore()
        self._tabs = TabController()
        self._machine = LoadStateMachine()
        self._validation = ValidationEngine()
        self._emitter = StateEmitter()
        self._state = SessionState()
        self._study: Optional[StudyDetails] = None
        self._converted: FormFieldList = ()
        self._last_prefill: Any = _NOT_MERGED
        self._unsubscribe: Optional[Unsubscribe] = None
        self._subscription_id = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def study(self) -> Optional[StudyDetails]:
        return self._study

    def on_state_change(self, listener: StateListener) -> None:
        """Receive every new SessionState snapshot."""
        self._emitter.on(listener)

    def off_state_change(self, listener: StateListener) -> None:
        self._emitter.off(listener)

    def consume_action(self) -> Optional[UiAction]:
        """Consume the pending action, if any. Returns None once consumed."""
        action = self._state.action
        return action.consume() if action is not None else None

    # Load

    def load(self) -> SessionState:
        """Load the selected study and subscribe to prefill values.

        Failure outcomes end the attempt in ERROR with a one-time action:
        ShowRepositoryError when the repository fails, ShowFetchStudyError
        when no study is selected or its form cannot be converted, and
        ShowStudyNotActive when the study is inactive. Calling ``load`` again
        retries and releases the previous prefill subscription.

        Returns:
            The state after the study lookup; for an active study this is
            already READY when the prefill source replays a value on subscribe
        """
        with self._lock:
            self._release_subscription()
            self._machine.transition_to(LoadState.LOADING)
            self._study = None
            self._converted = ()
            self._store.replace(())
            self._tabs.set_tabs(())
            self._publish(
                load_state=LoadState.LOADING,
                tabs=(),
                selected_tab=None,
                form_fields=(),
            )

            if self.config.complete_onboarding_on_load:
                self._set_onboarding_completed(True)

            try:
                study = self.repository.get_selected_study()
            except RepositoryError as exc:
                logger.warning("Fetching the selected study failed: %s", exc)
                return self._fail(UiAction.SHOW_REPOSITORY_ERROR)

            if study is None:
                logger.info("No study selected; report form not loaded")
                return self._fail(UiAction.SHOW_FETCH_STUDY_ERROR)

            if not study.is_active:
                logger.info("Study %s is not active; report form not loaded", study.id)
                # Deliberately overrides the True written above: an inactive
                # study sends the user back through onboarding to pick another
                self._set_onboarding_completed(False)
                return self._fail(UiAction.SHOW_STUDY_NOT_ACTIVE)

            try:
                converted = self._converter(study.raw_fields)
            except SchemaConversionError as exc:
                logger.warning("Study %s has an invalid form: %s", study.id, exc)
                return self._fail(UiAction.SHOW_FETCH_STUDY_ERROR)

            self._study = study
            self._converted = tuple(converted)
            self._last_prefill = _NOT_MERGED
            self._subscription_id += 1
            subscription_id = self._subscription_id
            self._unsubscribe = self.repository.prefill_values().subscribe(
                lambda value: self._on_prefill_value(subscription_id, value)
            )
            return self._state

    def close(self) -> None:
        """Release the prefill subscription. Later emissions are ignored."""
        with self._lock:
            self._release_subscription()

    def __enter__(self) -> "SessionController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _on_prefill_value(self, subscription_id: int, value: Optional[str]) -> None:
        with self._lock:
            if subscription_id != self._subscription_id or self._study is None:
                logger.debug("Ignoring prefill value from released subscription %d", subscription_id)
                return
            if self._machine.state == LoadState.READY and value == self._last_prefill:
                return

            fields = apply_prefill(self._converted, value, read_only=self.config.prefill_read_only)
            self._store.replace(fields)
            self._tabs.set_tabs(compute_tabs(fields, self._study.supports_recording))
            self._last_prefill = value
            self._machine.transition_to(LoadState.READY)
            logger.info(
                "Report form ready for study %s: %d fields, tabs=%s",
                self._study.id, len(fields), [tab.value for tab in self._tabs.tabs],
            )
            self._publish(
                load_state=LoadState.READY,
                tabs=self._tabs.tabs,
                selected_tab=self._tabs.selected,
                form_fields=self._store.fields,
            )

    def _fail(self, action: UiAction) -> SessionState:
        self._machine.transition_to(LoadState.ERROR)
        return self._publish(load_state=LoadState.ERROR, action=OneTimeEvent(action))

    def _release_subscription(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._subscription_id += 1

    def _set_onboarding_completed(self, completed: bool) -> None:
        try:
            self.repository.set_onboarding_completed(completed)
        except Exception:
            logger.warning("Could not store onboarding completed=%s", completed, exc_info=True)

    # Commands

    def on_tab_selected(self, tab_index: int) -> SessionState:
        """Select a tab. Out-of-range indices keep the current selection."""
        with self._lock:
            return self._publish(selected_tab=self._tabs.select_tab(tab_index))

    def on_form_field_value_changed(self, field_id: str, value: Any) -> SessionState:
        """Set a field value.

        Raises:
            SessionNotReadyError: If the form is not loaded
            FieldNotFoundError: If no field has ``field_id``
            FieldValueTypeError: If ``value`` does not fit the field kind
        """
        with self._lock:
            self._require_ready("on_form_field_value_changed")
            fields = self._store.set_value(field_id, value)
            logger.debug("Field %s changed", field_id)
            return self._publish(form_fields=fields)

    def on_record_session_comments_changed(self, text: str) -> SessionState:
        with self._lock:
            return self._publish(record_session_comments=text)

    def set_is_recording(self, is_recording: bool) -> SessionState:
        with self._lock:
            return self._publish(is_recording=is_recording)

    def on_submit_report(self) -> ValidationResult:
        """Validate the form and, if it is valid, navigate to the submitted screen.

        Errors from a previous submit are cleared first. An invalid form gets
        its errors attached to the offending fields and no action is emitted.

        Raises:
            SessionNotReadyError: If the form is not loaded
        """
        with self._lock:
            self._require_ready("on_submit_report")
            self._store.clear_errors()
            result = self._validation.check(self._store.fields)
            if not result.is_valid:
                logger.info("Report not submitted: invalid fields %s", result.field_ids)
                self._publish(form_fields=self._store.apply_errors(result.errors))
                return result

            logger.info("Report submitted for study %s", self._study.id if self._study else None)
            self._publish(
                form_fields=self._store.fields,
                action=OneTimeEvent(UiAction.GO_TO_REPORT_SUBMITTED_SCREEN),
            )
            return result

    def on_cancel_report(self) -> SessionState:
        """Discard all edits and errors, restoring the form as loaded.

        Raises:
            SessionNotReadyError: If the form is not loaded
        """
        with self._lock:
            self._require_ready("on_cancel_report")
            return self._publish(form_fields=self._store.restore_snapshot())

    def _require_ready(self, command: str) -> None:
        if self._machine.state != LoadState.READY:
            raise SessionNotReadyError(command, self._machine.state, [LoadState.READY])

    def _publish(self, **changes: Any) -> SessionState:
        # Fields not named in changes, including a pending action, carry over
        self._state = replace(self._state, **changes)
        self._emitter.emit(self._state)
        return self._state


__all__ = [
    "SessionState",
    "SessionController",
    "FieldConverter",
]
