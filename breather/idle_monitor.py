"""
Idle monitoring: classifies the user as idle or active from input recency.
"""

from __future__ import annotations

import ctypes
import sys
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from breather import logger as app_logger
from breather.types import IdleProbe

DEFAULT_IDLE_THRESHOLD_SECONDS = 120.0
DEFAULT_POLL_INTERVAL_MS = 5000
_TICK_MASK = 0xFFFFFFFF


class IdleMonitor(QObject):
    """
    Periodically samples the time since the last keyboard or mouse input and
    emits a signal on every idle/active flip. Repeated samples on the same
    side of the threshold emit nothing.
    """

    userBecameIdle = Signal()
    userBecameActive = Signal()

    def __init__(
        self,
        threshold_seconds: float = DEFAULT_IDLE_THRESHOLD_SECONDS,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        *,
        probe: Optional[IdleProbe] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        if threshold_seconds < 0:
            raise ValueError("threshold_seconds must not be negative")
        if poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be greater than zero")

        self._logger = app_logger.get_logger("idle-monitor")
        self._threshold = float(threshold_seconds)
        self._poll_interval_ms = poll_interval_ms
        self._probe: IdleProbe = probe or default_idle_probe
        self._last_observed_idle = 0.0
        self._is_idle = False

        self._timer = QTimer(self)
        self._timer.setInterval(self._poll_interval_ms)
        self._timer.timeout.connect(self.poll)  # type: ignore[arg-type]

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def poll_interval_ms(self) -> int:
        return self._poll_interval_ms

    @property
    def last_observed_idle_duration(self) -> float:
        return self._last_observed_idle

    @property
    def is_idle(self) -> bool:
        return self._is_idle

    @property
    def is_monitoring(self) -> bool:
        return self._timer.isActive()

    def start_monitoring(self) -> None:
        """Begin sampling; the first sample is taken immediately."""
        self._timer.stop()
        self._logger.info(
            "Idle monitoring started (threshold={}s, poll={}ms).",
            self._threshold,
            self._poll_interval_ms,
        )
        self._timer.start()
        self.poll()

    def stop_monitoring(self) -> None:
        if not self._timer.isActive():
            return
        self._timer.stop()
        self._logger.info("Idle monitoring stopped.")

    def update_threshold(self, threshold_seconds: float) -> None:
        """
        Change the idle threshold. If the new value reclassifies the last
        observed sample, the transition is emitted right away instead of
        waiting for the next poll.
        """
        new_threshold = max(0.0, float(threshold_seconds))
        if new_threshold == self._threshold:
            return
        self._logger.info(
            "Idle threshold changed from {}s to {}s.", self._threshold, new_threshold
        )
        self._threshold = new_threshold
        self._classify(self._last_observed_idle, reason="threshold change")

    def reset_idle_state(self) -> None:
        """Force the active classification, e.g. when idle detection is turned off."""
        self._last_observed_idle = 0.0
        if self._is_idle:
            self._logger.info("Idle state reset to active.")
            self._is_idle = False
            self.userBecameActive.emit()

    def poll(self) -> None:
        try:
            sample = self._probe()
        except OSError as exc:
            self._logger.warning("Idle probe failed ({}); assuming user is active.", exc)
            sample = None

        # Missing data never forces an idle transition.
        idle_seconds = 0.0 if sample is None else max(0.0, float(sample))
        self._last_observed_idle = idle_seconds
        self._classify(idle_seconds, reason="poll")

    def _classify(self, idle_seconds: float, *, reason: str) -> None:
        now_idle = idle_seconds > self._threshold
        if now_idle == self._is_idle:
            return
        self._is_idle = now_idle
        if now_idle:
            self._logger.info(
                "User became idle after {:.1f}s without input ({}).", idle_seconds, reason
            )
            self.userBecameIdle.emit()
        else:
            self._logger.info("User became active ({}).", reason)
            self.userBecameActive.emit()


def default_idle_probe() -> Optional[float]:
    """Seconds since the last input event, or None where it cannot be sampled."""
    if sys.platform != "win32":
        return None
    return idle_ms_between(_get_tick_count_ms(), _get_last_input_info()) / 1000.0


def idle_ms_between(tick_ms: int, last_input_ms: int) -> int:
    """
    Milliseconds from ``last_input_ms`` to ``tick_ms`` on the 32-bit tick counter.

    Both values wrap every ~49.7 days, so the difference is taken modulo 2**32.
    An input stamped after the tick sample shows up in the upper half of
    that range and counts as no idle time at all.
    """
    elapsed = (tick_ms - last_input_ms) & _TICK_MASK
    return 0 if elapsed > _TICK_MASK // 2 else elapsed


def _get_last_input_info() -> int:
    class LASTINPUTINFO(ctypes.Structure):
        _fields_ = [("cbSize", ctypes.c_uint), ("dwTime", ctypes.c_uint)]

    user32 = ctypes.windll.user32  # type: ignore[attr-defined]
    last_input = LASTINPUTINFO()
    last_input.cbSize = ctypes.sizeof(LASTINPUTINFO)

    if not user32.GetLastInputInfo(ctypes.byref(last_input)):
        raise ctypes.WinError()  # type: ignore[attr-defined]

    return last_input.dwTime


def _get_tick_count_ms() -> int:
    kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
    # Unsigned like LASTINPUTINFO.dwTime; the default c_int restype goes negative after ~24.8 days.
    kernel32.GetTickCount.restype = ctypes.c_uint32
    return int(kernel32.GetTickCount())
