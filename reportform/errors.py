"""Exception types for the report form session engine.

Field-level validation problems are not exceptions: they are data
(FieldErrorKind) attached to the offending field. The exceptions here cover
programming errors at the command boundary (unknown field, wrong value type,
command issued before the form is loaded), schema conversion failures, and
failures reported by the session repository.

Study-not-found, inactive-study and repository failures during a load are
caught by the controller and surfaced as one-time UiActions instead.
"""

from typing import Any, List, Optional, Union

from reportform.types import FieldKind, LoadState


class ReportFormError(Exception):
    """Base class for all report form engine errors."""


class FieldNotFoundError(ReportFormError, LookupError):
    """Raised when a field id or index does not address a field in the list.

    Attributes:
        key: The field id or index that was looked up
    """

    def __init__(self, key: Union[str, int]):
        self.key = key
        if isinstance(key, int):
            message = f"No form field at index {key}"
        else:
            message = f"No form field with id '{key}'"
        super().__init__(message)


class FieldValueTypeError(ReportFormError, TypeError):
    """Raised when an edit carries a value of the wrong type for the field kind.

    Attributes:
        field_id: Id of the edited field
        kind: Kind of the edited field
        expected: Name of the expected value type
        received: Name of the received value type
    """

    def __init__(self, field_id: str, kind: FieldKind, expected: str, value: Any):
        self.field_id = field_id
        self.kind = kind
        self.expected = expected
        self.received = type(value).__name__
        super().__init__(
            f"Field '{field_id}' ({kind.value}) expects a value of type {expected}, "
            f"got {self.received}"
        )


class SchemaConversionError(ReportFormError, ValueError):
    """Raised when a raw field schema cannot be converted to a field model.

    Attributes:
        index: Position of the offending raw field in the study form
        path: Dot-notation path inside the raw field (may be empty)
        reason: Human-readable description
    """

    def __init__(self, index: int, reason: str, path: str = ""):
        self.index = index
        self.path = path
        self.reason = reason
        location = f"fields[{index}]" + (f".{path}" if path else "")
        super().__init__(f"Invalid field schema at {location}: {reason}")


class RepositoryError(ReportFormError):
    """Raised by a session repository when the study cannot be fetched.

    Network and storage failures are not distinguished further at this layer.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class SessionNotReadyError(ReportFormError):
    """Raised when a form command is issued before the form is loaded.

    Attributes:
        command: Name of the rejected command
        state: Load state at the time of the command
        allowed: Load states in which the command is accepted
    """

    def __init__(self, command: str, state: LoadState, allowed: List[LoadState]):
        self.command = command
        self.state = state
        self.allowed = allowed
        super().__init__(
            f"Cannot run '{command}' while the session is '{state.value}'. "
            f"Allowed in: {', '.join(s.value for s in allowed)}"
        )


__all__ = [
    "ReportFormError",
    "FieldNotFoundError",
    "FieldValueTypeError",
    "SchemaConversionError",
    "RepositoryError",
    "SessionNotReadyError",
]
