"""Core type definitions for the report form session engine.

This module defines the fundamental types used throughout the engine:
- FieldKind: The variants a form field can take
- FieldErrorKind: Field-level validation errors attached to a field
- TabKind: The mutually exclusive report tabs
- UiAction: One-time actions consumed by the presentation layer
- LoadState: Lifecycle states of a session load

It also holds the reserved ids a study uses to couple a drop down's
"other" option to a free-text category field.
"""

from enum import Enum

OTHER_CATEGORY_TEXT_FIELD_ID = "other_category_text_field"
OTHER_DROP_DOWN_OPTION_ID = "other_drop_down_option"


class FieldKind(str, Enum):
    """Form field variants."""
    TEXT_FIELD = "text_field"
    DROP_DOWN = "drop_down"
    SLIDER = "slider"


class FieldErrorKind(str, Enum):
    """Validation errors attached to individual fields.

    EMPTY_CATEGORY is placed on the free-text "other" field when the drop
    down that controls it selects the other option and the text is empty.
    """
    EMPTY = "empty"
    EMPTY_CATEGORY = "empty_category"


class TabKind(str, Enum):
    """Report tabs. ReportLink submits a link, RecordSession records a session."""
    REPORT_LINK = "report_link"
    RECORD_SESSION = "record_session"


class UiAction(str, Enum):
    """One-time actions emitted to the presentation layer.

    Each action is terminal with respect to the load attempt or submission
    that produced it.
    """
    GO_TO_REPORT_SUBMITTED_SCREEN = "go_to_report_submitted_screen"
    SHOW_FETCH_STUDY_ERROR = "show_fetch_study_error"
    SHOW_STUDY_NOT_ACTIVE = "show_study_not_active"
    SHOW_REPOSITORY_ERROR = "show_repository_error"


class LoadState(str, Enum):
    """Session load lifecycle.

    IDLE -> LOADING -> READY | ERROR. READY and ERROR may go back to
    LOADING when the session is reloaded.
    """
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


__all__ = [
    "OTHER_CATEGORY_TEXT_FIELD_ID",
    "OTHER_DROP_DOWN_OPTION_ID",
    "FieldKind",
    "FieldErrorKind",
    "TabKind",
    "UiAction",
    "LoadState",
]
