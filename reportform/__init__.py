"""Report form session engine.

The engine keeps the authoritative state of a server-described report form:
- Typed form fields (text, drop down, slider) with values, visibility and errors
- Cross-field validation with field-level errors instead of exceptions
- Tab selection between reporting a link and recording a session
- One-time navigation and dialog actions, observed exactly once
- A load state machine driven by the selected study and a prefill stream

Rendering, transport and persistence are left to the caller, which plugs in
through a SessionRepository.

Basic usage:
    >>> from reportform import SessionController
    >>> from reportform.repository import InMemorySessionRepository, StudyDetails
    >>> repo = InMemorySessionRepository()
    >>> repo.add_study(StudyDetails(id="s1", supports_recording=True), select=True)
    >>> state = SessionController(repo).load()
    >>> state.selected_tab.kind.value
    'record_session'
"""

__version__ = "0.1.0"

# Version info
VERSION = (0, 1, 0)

# Core exports
from reportform.config import SessionConfig
from reportform.session import SessionController, SessionState

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "SessionConfig",
    "SessionController",
    "SessionState",
]
