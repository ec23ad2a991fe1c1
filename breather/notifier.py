"""
System tray front-end: shows break prompts and relays user actions.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QApplication, QMenu, QStyle, QSystemTrayIcon

from breather import logger as app_logger
from breather.types import BreakPhase, SchedulerSnapshot, format_minutes, format_mmss

APP_NAME = "Breather"
BREAK_MESSAGE_MS = 10000
PRE_NOTICE_MESSAGE_MS = 10000
ADJUST_STEP_SECONDS = 60

NOTICE_BREAK = "break"
NOTICE_PRE_BREAK = "pre_break"


class TrayNotifier(QObject):
    """
    Receives show/hide commands from the scheduler and turns tray menu
    clicks into request signals. It never touches scheduler state itself.
    """

    breakNowRequested = Signal()
    skipRequested = Signal()
    postponeRequested = Signal()
    breakEndRequested = Signal()
    adjustRequested = Signal(int)
    enabledToggled = Signal(bool)
    exitRequested = Signal()

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger("tray")
        self._notice: Optional[str] = None

        self._tray = QSystemTrayIcon(self)
        tray_icon = QApplication.style().standardIcon(QStyle.StandardPixmap.SP_ComputerIcon)
        self._tray.setIcon(tray_icon)
        self._tray.setToolTip(APP_NAME)

        self._menu = QMenu()
        self._status_action = QAction("Next break: --:--", self._menu)
        self._status_action.setEnabled(False)
        self._break_now_action = QAction("Take a break now", self._menu)
        self._skip_action = QAction("Skip this break", self._menu)
        self._postpone_action = QAction("Postpone 5 minutes", self._menu)
        self._end_break_action = QAction("End break", self._menu)
        self._add_time_action = QAction("+1 minute", self._menu)
        self._remove_time_action = QAction("-1 minute", self._menu)
        self._enabled_action = QAction("Breaks enabled", self._menu)
        self._enabled_action.setCheckable(True)
        self._enabled_action.setChecked(True)
        exit_action = QAction("Exit", self._menu)

        self._menu.addAction(self._status_action)
        self._menu.addSeparator()
        self._menu.addAction(self._break_now_action)
        self._menu.addAction(self._skip_action)
        self._menu.addAction(self._postpone_action)
        self._menu.addSeparator()
        self._menu.addAction(self._end_break_action)
        self._menu.addAction(self._add_time_action)
        self._menu.addAction(self._remove_time_action)
        self._menu.addSeparator()
        self._menu.addAction(self._enabled_action)
        self._menu.addAction(exit_action)
        self._tray.setContextMenu(self._menu)

        self._break_now_action.triggered.connect(self.breakNowRequested)
        self._skip_action.triggered.connect(self.skipRequested)
        self._postpone_action.triggered.connect(self.postponeRequested)
        self._end_break_action.triggered.connect(self.breakEndRequested)
        self._add_time_action.triggered.connect(
            lambda: self.adjustRequested.emit(ADJUST_STEP_SECONDS)
        )
        self._remove_time_action.triggered.connect(
            lambda: self.adjustRequested.emit(-ADJUST_STEP_SECONDS)
        )
        # triggered (not toggled) so programmatic setChecked does not echo back.
        self._enabled_action.triggered.connect(self.enabledToggled)
        exit_action.triggered.connect(self.exitRequested)

    @property
    def current_notice(self) -> Optional[str]:
        return self._notice

    @property
    def status_text(self) -> str:
        return self._status_action.text()

    def show(self) -> None:
        if not QSystemTrayIcon.isSystemTrayAvailable():
            self._logger.warning("System tray unavailable; notifications will only be logged.")
            return
        self._tray.show()

    def hide(self) -> None:
        self._tray.hide()

    def set_postpone_seconds(self, seconds: int) -> None:
        minutes = max(1, round(seconds / 60))
        unit = "minute" if minutes == 1 else "minutes"
        self._postpone_action.setText(f"Postpone {minutes} {unit}")

    def show_break_window(self) -> None:
        self._notice = NOTICE_BREAK
        self._logger.info("Showing break reminder.")
        self._show_message(
            "Time for a break",
            "Step away from the screen, stretch and rest your eyes.",
            BREAK_MESSAGE_MS,
        )

    def show_pre_break_notice(self) -> None:
        self._notice = NOTICE_PRE_BREAK
        self._logger.info("Showing pre-break notice.")
        self._show_message(
            "Break coming up",
            "A break starts soon. Skip or postpone it from the tray menu.",
            PRE_NOTICE_MESSAGE_MS,
        )

    def hide_all_notifications(self) -> None:
        if self._notice is not None:
            self._logger.debug("Hiding {} notification.", self._notice)
        self._notice = None

    def refresh(self, snapshot: SchedulerSnapshot) -> None:
        if snapshot.phase is BreakPhase.BREAK_ACTIVE:
            status = f"On break: {format_mmss(snapshot.break_countdown)}"
            tooltip = f"{APP_NAME} - on break"
        elif not snapshot.enabled:
            status = "Breaks disabled"
            tooltip = f"{APP_NAME} - disabled"
        else:
            status = f"Next break: {format_mmss(snapshot.time_until_break)}"
            tooltip = f"{APP_NAME} - next break in {format_minutes(snapshot.time_until_break)}"
        self._status_action.setText(status)
        self._tray.setToolTip(tooltip)

        on_break = snapshot.phase is BreakPhase.BREAK_ACTIVE
        pre_notice = snapshot.phase is BreakPhase.PRE_NOTICE_SHOWING
        self._break_now_action.setEnabled(snapshot.enabled and not on_break)
        self._skip_action.setEnabled(pre_notice)
        self._postpone_action.setEnabled(pre_notice)
        self._end_break_action.setEnabled(on_break)
        self._add_time_action.setEnabled(on_break)
        self._remove_time_action.setEnabled(on_break)
        self._enabled_action.setChecked(snapshot.enabled)

    def _show_message(self, title: str, message: str, timeout_ms: int) -> None:
        if not self._tray.isVisible():
            self._logger.debug("Tray hidden; message '{}' not displayed.", title)
            return
        self._tray.showMessage(title, message, QSystemTrayIcon.MessageIcon.Information, timeout_ms)
