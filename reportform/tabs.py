"""Tab selection for the report form session engine."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from reportform.types import TabKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TabSelection:
    """The selected tab and its position in the tab list.

    ``index`` always equals the position of ``kind`` in the current tabs.
    """
    kind: TabKind
    index: int

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "index": self.index}


def compute_tabs(fields: Sequence[Any], supports_recording: bool) -> Tuple[TabKind, ...]:
    """Tabs available for a loaded form.

    ReportLink is offered when the form has fields, RecordSession when the
    study supports recording, in that order.

    Examples:
        >>> compute_tabs([], supports_recording=True)
        (<TabKind.RECORD_SESSION: 'record_session'>,)
    """
    tabs: List[TabKind] = []
    if fields:
        tabs.append(TabKind.REPORT_LINK)
    if supports_recording:
        tabs.append(TabKind.RECORD_SESSION)
    return tuple(tabs)


class TabController:
    """Owns the available tabs and the current selection."""

    def __init__(self, tabs: Iterable[TabKind] = ()):
        self._tabs: Tuple[TabKind, ...] = ()
        self._selected: Optional[TabSelection] = None
        self.set_tabs(tabs)

    @property
    def tabs(self) -> Tuple[TabKind, ...]:
        return self._tabs

    @property
    def selected(self) -> Optional[TabSelection]:
        return self._selected

    def set_tabs(self, tabs: Iterable[TabKind]) -> None:
        """Replace the tab list and select the first tab, if any."""
        self._tabs = tuple(tabs)
        self._selected = TabSelection(self._tabs[0], 0) if self._tabs else None

    def select_tab(self, index: int) -> Optional[TabSelection]:
        """Select the tab at ``index``.

        Out-of-range indices leave the current selection unchanged.

        Returns:
            The selection after the call
        """
        if 0 <= index < len(self._tabs):
            self._selected = TabSelection(self._tabs[index], index)
        else:
            logger.debug("Ignoring selection of tab %d; %d tabs available", index, len(self._tabs))
        return self._selected


__all__ = [
    "TabSelection",
    "TabController",
    "compute_tabs",
]
