"""
Entry point for the Breather tray application.
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Iterable, Tuple

from PySide6.QtCore import QDir, QLockFile
from PySide6.QtWidgets import QApplication

from breather import logger as app_logger
from breather.app import APP_NAME, AppCoordinator

_LOGGER = app_logger.get_logger("main")
_LOCK_FILE_NAME = "breather.lock"


class _InstanceGuard:
    """Lock-file guard preventing concurrent instances."""

    def __init__(self, path: Path) -> None:
        self._lock = QLockFile(str(path))
        self._lock.setStaleLockTime(0)

    def acquire(self) -> bool:
        return self._lock.tryLock(100)

    def release(self) -> None:
        if self._lock.isLocked():
            self._lock.unlock()


def _run_application_once(argv: Iterable[str]) -> Tuple[int, bool]:
    """Start the Qt application once and report whether shutdown was intentional."""
    app = QApplication.instance() or QApplication(list(argv))
    app.setApplicationName(APP_NAME)
    app.setQuitOnLastWindowClosed(False)
    coordinator = AppCoordinator()
    coordinator.start()
    exit_code = app.exec()
    manual_shutdown = coordinator.manual_shutdown_requested
    coordinator.deleteLater()
    return exit_code, bool(manual_shutdown)


def main() -> int:
    """Launch the application with single-instance + recovery safeguards."""
    guard = _InstanceGuard(Path(QDir.tempPath()) / _LOCK_FILE_NAME)
    if not guard.acquire():
        _LOGGER.debug("Breather instance already running; exiting silently.")
        return 0

    backoff_seconds = 2
    max_backoff = 30

    try:
        while True:
            try:
                exit_code, manual = _run_application_once(sys.argv)
            except Exception:  # pragma: no cover - crash guard
                _LOGGER.exception("Breather crashed; attempting automatic recovery.")
                exit_code = 1
                manual = False

            if manual:
                return exit_code

            _LOGGER.warning(
                "Breather exited unexpectedly (code={}). Restarting in {} seconds.",
                exit_code,
                backoff_seconds,
            )
            time.sleep(backoff_seconds)
            backoff_seconds = min(backoff_seconds * 2, max_backoff)
    finally:
        guard.release()


if __name__ == "__main__":
    raise SystemExit(main())
