"""Session repository contract and an in-memory implementation.

The controller does not fetch studies or persist flags itself. It talks to a
SessionRepository, which supplies the selected study, a stream of prefill
values (for example a link shared into the app), and a sink for the
"onboarding completed" flag.

The in-memory implementation keeps the selected study id per instance, so
every session is configured explicitly instead of through process-wide
state.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from reportform.errors import RepositoryError

logger = logging.getLogger(__name__)

PrefillListener = Callable[[Optional[str]], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class StudyForm:
    """The report form a study declares.

    Attributes:
        id: Form identifier
        name: Display name
        fields: Raw field schema, in render order
    """
    id: str = ""
    name: str = ""
    fields: Tuple[Mapping[str, Any], ...] = ()

    def __post_init__(self):
        if not isinstance(self.fields, tuple):
            object.__setattr__(self, "fields", tuple(self.fields))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudyForm":
        """Create StudyForm from dict."""
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            fields=tuple(data.get("fields", [])),
        )


@dataclass(frozen=True)
class StudyDetails:
    """A study as far as the report form is concerned.

    Attributes:
        id: Study identifier
        name: Display name
        is_active: Inactive studies do not accept reports
        supports_recording: Whether the RecordSession tab is offered
        form: The study's report form, if it has one
    """
    id: str
    name: str = ""
    is_active: bool = True
    supports_recording: bool = False
    form: Optional[StudyForm] = None

    @property
    def raw_fields(self) -> Tuple[Mapping[str, Any], ...]:
        return self.form.fields if self.form is not None else ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudyDetails":
        """Create StudyDetails from dict (camelCase keys)."""
        form = data.get("form")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            is_active=data.get("isActive", True),
            supports_recording=data.get("supportsRecording", False),
            form=StudyForm.from_dict(form) if form is not None else None,
        )


class PrefillSource(Protocol):
    """A restartable stream of optional prefill values."""

    def subscribe(self, listener: PrefillListener) -> Unsubscribe:
        ...


class SessionRepository(Protocol):
    """What the session controller needs from the outside world."""

    def get_selected_study(self) -> Optional[StudyDetails]:
        """Return the selected study, or None if none is selected or found.

        Raises:
            RepositoryError: If the study could not be fetched
        """
        ...

    def prefill_values(self) -> PrefillSource:
        ...

    def set_onboarding_completed(self, completed: bool) -> None:
        ...


class PrefillValueStream:
    """Holds the latest prefill value and pushes every new one to subscribers.

    A new subscriber immediately receives the latest value, which is None
    until a value has been emitted. Unsubscribing and subscribing again
    restarts delivery from the latest value.

    Examples:
        >>> stream = PrefillValueStream()
        >>> seen = []
        >>> unsubscribe = stream.subscribe(seen.append)
        >>> stream.emit("https://www.tiktok.com/@user/video/1")
        >>> unsubscribe()
        >>> stream.emit("https://www.tiktok.com/@user/video/2")
        >>> seen
        [None, 'https://www.tiktok.com/@user/video/1']
    """

    def __init__(self, initial: Optional[str] = None):
        self._latest = initial
        self._listeners: List[PrefillListener] = []
        self._lock = threading.Lock()

    @property
    def latest(self) -> Optional[str]:
        return self._latest

    def subscribe(self, listener: PrefillListener) -> Unsubscribe:
        with self._lock:
            self._listeners.append(listener)
            latest = self._latest

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        listener(latest)
        return unsubscribe

    def emit(self, value: Optional[str]) -> None:
        with self._lock:
            self._latest = value
            listeners = list(self._listeners)
        for listener in listeners:
            listener(value)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._listeners)


@dataclass
class InMemorySessionRepository:
    """Session repository backed by plain dictionaries.

    Attributes:
        studies: Known studies keyed by id
        selected_study_id: Id of the study this session reports against
        prefill: Prefill value stream
        onboarding_completed: Last value written by the controller
        fail_with: If set, ``get_selected_study`` raises it as a RepositoryError
    """
    studies: Dict[str, StudyDetails] = field(default_factory=dict)
    selected_study_id: Optional[str] = None
    prefill: PrefillValueStream = field(default_factory=PrefillValueStream)
    onboarding_completed: Optional[bool] = None
    fail_with: Optional[str] = None

    def add_study(self, study: StudyDetails, select: bool = False) -> None:
        self.studies[study.id] = study
        if select:
            self.selected_study_id = study.id

    def get_selected_study(self) -> Optional[StudyDetails]:
        if self.fail_with is not None:
            raise RepositoryError(self.fail_with)
        if not self.selected_study_id:
            return None
        return self.studies.get(self.selected_study_id)

    def prefill_values(self) -> PrefillValueStream:
        return self.prefill

    def set_onboarding_completed(self, completed: bool) -> None:
        logger.debug("Onboarding completed set to %s", completed)
        self.onboarding_completed = completed


__all__ = [
    "StudyForm",
    "StudyDetails",
    "PrefillSource",
    "SessionRepository",
    "PrefillValueStream",
    "InMemorySessionRepository",
]
