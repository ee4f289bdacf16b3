"""Undo/redo history mixin for PlayModel.

Mutations ask for a snapshot; requests arriving within the debounce window
collapse into one history entry committed when the timer fires.
"""

from __future__ import annotations

from typing import Callable, List, TYPE_CHECKING

from PySide6.QtCore import QTimer, Signal, Slot

from .constants import HISTORY_DEBOUNCE_MS, HISTORY_LIMIT
from .types import Snapshot

if TYPE_CHECKING:
    from .model import PlayModel


class HistoryMixin:
    """Mixin providing a bounded, debounced undo/redo stack.

    Note: Properties (canUndo, canRedo, historyLength) are defined in
    PlayModel since they need access to signals defined there.
    """

    # Signals (will be defined in PlayModel)
    historyChanged: Signal

    # Attributes expected from PlayModel
    _history: List[Snapshot]
    _history_index: int
    _history_timer: QTimer
    _history_limit: int
    _restoring_history: bool
    snapshot: Callable[[], Snapshot]
    restore_snapshot: Callable[[Snapshot], None]

    def _init_history(self) -> None:
        """Initialize history state. Call from PlayModel.__init__ after the collections exist."""
        self._history = []
        self._history_index = -1
        self._history_limit = HISTORY_LIMIT
        self._restoring_history = False
        self._history_timer = QTimer(self)
        self._history_timer.setSingleShot(True)
        self._history_timer.setInterval(HISTORY_DEBOUNCE_MS)
        self._history_timer.timeout.connect(self._commit_snapshot)
        self.resetHistory()

    def _can_undo(self) -> bool:
        return self._history_index > 0

    def _can_redo(self) -> bool:
        return self._history_index < len(self._history) - 1

    @Slot()
    def requestSnapshot(self) -> None:
        """Schedule a snapshot; restarts the debounce window."""
        if self._restoring_history:
            return
        self._history_timer.start()

    @Slot()
    def flushHistory(self) -> None:
        """Commit a pending snapshot immediately."""
        if self._history_timer.isActive():
            self._history_timer.stop()
            self._commit_snapshot()

    def _commit_snapshot(self) -> None:
        del self._history[self._history_index + 1:]
        self._history.append(self.snapshot())
        if len(self._history) > self._history_limit:
            # Evict the oldest entry; the cursor keeps pointing at the newest.
            self._history.pop(0)
        else:
            self._history_index += 1
        self.historyChanged.emit()

    @Slot(result=bool)
    def undo(self) -> bool:
        self.flushHistory()
        if not self._can_undo():
            return False
        self._history_index -= 1
        self._restore_history_entry()
        return True

    @Slot(result=bool)
    def redo(self) -> bool:
        self.flushHistory()
        if not self._can_redo():
            return False
        self._history_index += 1
        self._restore_history_entry()
        return True

    def _restore_history_entry(self) -> None:
        self._restoring_history = True
        try:
            self.restore_snapshot(self._history[self._history_index])
        finally:
            self._restoring_history = False
        self.historyChanged.emit()

    @Slot()
    def resetHistory(self) -> None:
        """Drop all entries and start over from the current state."""
        self._history_timer.stop()
        self._history = [self.snapshot()]
        self._history_index = 0
        self.historyChanged.emit()
