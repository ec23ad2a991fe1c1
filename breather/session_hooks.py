"""
Windows sleep/wake and lock/unlock notifications fed into SystemEventBridge.
"""

from __future__ import annotations

import ctypes
import sys
from typing import Optional

from PySide6.QtCore import QAbstractNativeEventFilter, QByteArray, QCoreApplication, Qt
from PySide6.QtWidgets import QWidget

from breather import logger as app_logger
from breather.system_events import SystemEventBridge

WM_POWERBROADCAST = 0x0218
WM_WTSSESSION_CHANGE = 0x02B1

PBT_APMSUSPEND = 0x0004
PBT_APMRESUMESUSPEND = 0x0007
PBT_APMRESUMEAUTOMATIC = 0x0012

WTS_SESSION_LOCK = 0x7
WTS_SESSION_UNLOCK = 0x8

NOTIFY_FOR_THIS_SESSION = 0

_WINDOWS_EVENT_TYPES = {b"windows_generic_MSG", b"windows_dispatcher_MSG"}


class _POINT(ctypes.Structure):
    _fields_ = [("x", ctypes.c_long), ("y", ctypes.c_long)]


class _MSG(ctypes.Structure):
    _fields_ = [
        ("hwnd", ctypes.c_void_p),
        ("message", ctypes.c_uint),
        ("wParam", ctypes.c_size_t),
        ("lParam", ctypes.c_ssize_t),
        ("time", ctypes.c_uint32),
        ("pt", _POINT),
    ]


class WindowsSessionEventFilter(QAbstractNativeEventFilter):
    """
    Native event filter translating Win32 power and session messages into
    the bridge's raw signals.

    Power broadcasts reach every top-level window; session changes only
    reach windows registered through ``WTSRegisterSessionNotification``,
    so ``install`` creates a hidden native window for that purpose.
    Messages are always passed on to Qt.
    """

    def __init__(self, bridge: SystemEventBridge) -> None:
        super().__init__()
        self._bridge = bridge
        self._logger = app_logger.get_logger("session-hooks")
        self._window: Optional[QWidget] = None
        self._registered_hwnd: Optional[int] = None
        self._installed = False

    @property
    def is_installed(self) -> bool:
        return self._installed

    def install(self, app: QCoreApplication) -> None:
        if self._installed:
            return
        app.installNativeEventFilter(self)
        self._installed = True
        if sys.platform == "win32":
            self._register_session_notifications()
        else:
            self._logger.info("No native sleep/lock source on {}; bridge stays idle.", sys.platform)

    def uninstall(self, app: QCoreApplication) -> None:
        if not self._installed:
            return
        app.removeNativeEventFilter(self)
        self._installed = False
        if self._registered_hwnd is not None:
            wtsapi32 = ctypes.windll.wtsapi32  # type: ignore[attr-defined]
            wtsapi32.WTSUnRegisterSessionNotification(ctypes.c_void_p(self._registered_hwnd))
            self._registered_hwnd = None
        if self._window is not None:
            self._window.deleteLater()
            self._window = None

    def nativeEventFilter(self, eventType, message):  # noqa: N802 (Qt override)
        if _event_type_name(eventType) not in _WINDOWS_EVENT_TYPES:
            return False, 0
        msg = _MSG.from_address(int(message))
        self.handle_message(msg.message, msg.wParam)
        return False, 0

    def handle_message(self, message_id: int, wparam: int) -> bool:
        """Dispatch one Win32 message; returns True when it was a sleep/lock event."""
        if message_id == WM_POWERBROADCAST:
            if wparam == PBT_APMSUSPEND:
                self._logger.debug("WM_POWERBROADCAST: suspend.")
                self._bridge.willSleep.emit()
                return True
            if wparam in (PBT_APMRESUMESUSPEND, PBT_APMRESUMEAUTOMATIC):
                self._logger.debug("WM_POWERBROADCAST: resume (0x{:x}).", wparam)
                self._bridge.didWake.emit()
                return True
        elif message_id == WM_WTSSESSION_CHANGE:
            if wparam == WTS_SESSION_LOCK:
                self._logger.debug("WM_WTSSESSION_CHANGE: lock.")
                self._bridge.screenLocked.emit()
                return True
            if wparam == WTS_SESSION_UNLOCK:
                self._logger.debug("WM_WTSSESSION_CHANGE: unlock.")
                self._bridge.screenUnlocked.emit()
                return True
        return False

    def _register_session_notifications(self) -> None:
        self._window = QWidget()
        self._window.setAttribute(Qt.WidgetAttribute.WA_NativeWindow)
        self._window.setAttribute(Qt.WidgetAttribute.WA_DontShowOnScreen)
        hwnd = int(self._window.winId())

        wtsapi32 = ctypes.windll.wtsapi32  # type: ignore[attr-defined]
        if not wtsapi32.WTSRegisterSessionNotification(
            ctypes.c_void_p(hwnd), NOTIFY_FOR_THIS_SESSION
        ):
            error = ctypes.WinError()  # type: ignore[attr-defined]
            self._logger.warning(
                "WTSRegisterSessionNotification failed ({}); lock/unlock will not pause breaks.",
                error,
            )
            return
        self._registered_hwnd = hwnd
        self._logger.info("Registered for session lock/unlock notifications.")


def _event_type_name(event_type) -> bytes:
    if isinstance(event_type, QByteArray):
        return event_type.data()
    return bytes(event_type)
