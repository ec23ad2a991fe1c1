"""
Normalises OS sleep/wake and lock/unlock notifications into two signals.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, Signal, Slot

from breather import logger as app_logger


class SystemEventBridge(QObject):
    """
    Receives the raw platform signals and re-emits them as
    ``systemBecameInactive`` / ``systemBecameActive``.

    Platform hooks emit the raw signals (``willSleep``, ``didWake``,
    ``screenLocked``, ``screenUnlocked``) from whatever thread they run on;
    Qt queues those emissions onto the thread that owns the bridge, which is
    the scheduler's thread. A second inactive signal while already inactive
    (and likewise for active) is dropped.
    """

    willSleep = Signal()
    didWake = Signal()
    screenLocked = Signal()
    screenUnlocked = Signal()

    systemBecameInactive = Signal()
    systemBecameActive = Signal()

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger("system-events")
        self._inactive = False

        self.willSleep.connect(self._on_will_sleep)
        self.didWake.connect(self._on_did_wake)
        self.screenLocked.connect(self._on_screen_locked)
        self.screenUnlocked.connect(self._on_screen_unlocked)

    @property
    def is_system_inactive(self) -> bool:
        return self._inactive

    def reset(self) -> None:
        """Forget the current state without emitting anything."""
        self._inactive = False

    @Slot()
    def _on_will_sleep(self) -> None:
        self._mark_inactive("system will sleep")

    @Slot()
    def _on_did_wake(self) -> None:
        self._mark_active("system did wake")

    @Slot()
    def _on_screen_locked(self) -> None:
        self._mark_inactive("screen locked")

    @Slot()
    def _on_screen_unlocked(self) -> None:
        self._mark_active("screen unlocked")

    def _mark_inactive(self, source: str) -> None:
        if self._inactive:
            self._logger.debug("Duplicate inactive signal dropped ({}).", source)
            return
        self._inactive = True
        self._logger.info("System inactive: {}.", source)
        self.systemBecameInactive.emit()

    def _mark_active(self, source: str) -> None:
        if not self._inactive:
            self._logger.debug("Duplicate active signal dropped ({}).", source)
            return
        self._inactive = False
        self._logger.info("System active: {}.", source)
        self.systemBecameActive.emit()
