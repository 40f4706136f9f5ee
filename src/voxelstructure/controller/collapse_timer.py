"""
Collapse Countdown
==================
Counts a collapse warning down in real time and collapses the unstable cubes
when it runs out.

The timer never trusts its own copy of the countdown: each tick reads the
store's current collapse state first, so a tick that was already queued when
the warning got cancelled does nothing.
"""
from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from voxelstructure.app.state import Store
from voxelstructure.config import COLLAPSE_TICK_INTERVAL_MS

logger = logging.getLogger(__name__)


class CollapseTimer(QObject):
    ticked = Signal(int)
    collapsed = Signal()

    def __init__(self, store: Store, interval_ms: int = COLLAPSE_TICK_INTERVAL_MS,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.store = store

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_tick)

        store.warning_raised.connect(self._on_warning_raised)
        store.warning_cleared.connect(self.cancel)

        if store.collapse_state.warning_active:
            self._timer.start()

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def is_running(self) -> bool:
        return self._timer.isActive()

    def cancel(self) -> None:
        """Drop any pending tick."""
        if self._timer.isActive():
            logger.debug("Collapse countdown stopped")
        self._timer.stop()

    def _on_warning_raised(self, unstable_ids: object) -> None:
        # A fresh warning restarts the full interval
        logger.debug(f"Collapse countdown started for {list(unstable_ids)}")
        self._timer.start()

    def _on_tick(self) -> None:
        state = self.store.collapse_state
        if not state.warning_active:
            return

        remaining = max(state.countdown - 1, 0)
        self.store.update_countdown(remaining)
        self.ticked.emit(remaining)
        logger.debug(f"Collapse in {remaining}s")

        if remaining > 0:
            self._timer.start()
            return

        logger.warning(f"Countdown expired, collapsing {len(state.unstable_ids)} cube(s)")
        if self.store.collapse().ok:
            self.collapsed.emit()
