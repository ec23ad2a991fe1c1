"""
Break scheduling state machine.

The scheduler is the single authority on break timing. It owns the work
countdown and the break countdown, reacts to ticks, settings, idle and
system events, and tells the UI what to show through Qt signals. All
calls are expected on the thread that owns the scheduler; producers on
other threads must reach it through queued signal connections.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal, SignalInstance, Slot

from breather import logger as app_logger
from breather.types import (
    BreakPhase,
    SchedulerConfig,
    SchedulerSnapshot,
    format_minutes,
    format_mmss,
)

TICK_INTERVAL_MS = 1000


class BreakScheduler(QObject):
    """
    Decides whether the user is working, about to break, or on break.

    Each outward command is emitted once per transition, after the
    internal state has been updated, so a failing receiver can never
    leave the state machine half way through a transition.
    """

    breakTime = Signal()
    preBreakNotification = Signal()
    hideNotifications = Signal()
    breakCountdownFinished = Signal()

    def __init__(
        self,
        config: Optional[SchedulerConfig] = None,
        *,
        tick_interval_ms: int = TICK_INTERVAL_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        if tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be greater than zero")

        self._logger = app_logger.get_logger("scheduler")
        self._config = config or SchedulerConfig()
        self._latched_config: Optional[SchedulerConfig] = None

        self._phase = BreakPhase.WORKING
        self._time_until_break = self._config.work_interval_seconds
        self._break_countdown = 0
        self._pre_notice_shown = False

        self._system_inactive = False
        self._pending_resume_after_wake = False
        self._hide_owed = False
        self._user_idle = False
        self._timer_was_running_before_idle = False
        self._idle_snapshot_time_until_break = 0

        self._work_timer = QTimer(self)
        self._work_timer.setInterval(tick_interval_ms)
        self._work_timer.timeout.connect(self.tick)  # type: ignore[arg-type]

        self._break_timer = QTimer(self)
        self._break_timer.setInterval(tick_interval_ms)
        self._break_timer.timeout.connect(self.tick)  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    @property
    def latched_config(self) -> Optional[SchedulerConfig]:
        return self._latched_config

    @property
    def phase(self) -> BreakPhase:
        return self._phase

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def work_interval(self) -> int:
        return self._config.work_interval_seconds

    @property
    def pre_notice_lead_time(self) -> int:
        return self._config.pre_notice_lead_seconds

    @property
    def time_until_break(self) -> int:
        return self._time_until_break

    @property
    def break_countdown(self) -> int:
        return self._break_countdown

    @property
    def system_inactive(self) -> bool:
        return self._system_inactive

    @property
    def pending_resume_after_wake(self) -> bool:
        return self._pending_resume_after_wake

    @property
    def user_idle(self) -> bool:
        return self._user_idle

    @property
    def idle_snapshot_time_until_break(self) -> int:
        return self._idle_snapshot_time_until_break

    @property
    def is_work_timer_active(self) -> bool:
        return self._work_timer.isActive()

    @property
    def is_break_countdown_active(self) -> bool:
        return self._break_timer.isActive()

    def snapshot(self) -> SchedulerSnapshot:
        return SchedulerSnapshot(
            phase=self._phase,
            time_until_break=self._time_until_break,
            break_countdown=self._break_countdown,
            enabled=self._config.enabled,
            system_inactive=self._system_inactive,
            user_idle=self._user_idle,
            work_timer_active=self._work_timer.isActive(),
            break_countdown_active=self._break_timer.isActive(),
        )

    def formatted_time_until_break(self) -> str:
        return format_mmss(self._time_until_break)

    def formatted_time_until_break_minutes(self) -> str:
        return format_minutes(self._time_until_break)

    def formatted_break_countdown(self) -> str:
        return format_mmss(self._break_countdown)

    # ------------------------------------------------------------------
    # Timer control
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the work countdown from its current value."""
        if not self._config.enabled:
            self._logger.debug("Start ignored; breaks are disabled.")
            return
        if self._phase is not BreakPhase.WORKING:
            self._logger.debug("Start ignored in phase {}.", self._phase.value)
            return
        self._run_work_timer(reset_time=False)

    def stop(self) -> None:
        """Cancel both countdowns without changing the phase."""
        self._work_timer.stop()
        self._break_timer.stop()

    @Slot()
    def tick(self) -> None:
        if self._system_inactive:
            return
        if self._phase is BreakPhase.BREAK_ACTIVE:
            self._tick_break_countdown()
        elif self._work_timer.isActive():
            self._tick_work_countdown()

    def _tick_work_countdown(self) -> None:
        self._time_until_break = max(0, self._time_until_break - 1)
        if self._time_until_break == 0:
            # Reaching zero wins over a pending or showing pre-notice.
            self._enter_break("work interval elapsed")
            return

        lead = self._config.pre_notice_lead_seconds
        if (
            self._phase is BreakPhase.WORKING
            and not self._pre_notice_shown
            and 0 < self._time_until_break <= lead
        ):
            self._pre_notice_shown = True
            self._set_phase(BreakPhase.PRE_NOTICE_SHOWING, "pre-notice window reached")
            self._send(self.preBreakNotification, "preBreakNotification")

    def _tick_break_countdown(self) -> None:
        if not self._break_timer.isActive():
            return
        self._break_countdown = max(0, self._break_countdown - 1)
        if self._break_countdown == 0:
            self._break_timer.stop()
            self._logger.info("Break countdown finished.")
            self._send(self.breakCountdownFinished, "breakCountdownFinished")

    def _may_run_work_timer(self) -> bool:
        return (
            self._config.enabled
            and self._phase is not BreakPhase.BREAK_ACTIVE
            and not self._system_inactive
            and not self._user_idle
        )

    def _run_work_timer(self, *, reset_time: bool) -> None:
        """(Re)start the work countdown if nothing currently forbids it."""
        self._work_timer.stop()
        if reset_time:
            self._time_until_break = self._config.work_interval_seconds
            self._pre_notice_shown = False

        if not self._may_run_work_timer():
            if not self._config.enabled or self._phase is BreakPhase.BREAK_ACTIVE:
                return
            if self._system_inactive:
                self._pending_resume_after_wake = True
                self._logger.debug("System inactive; work timer start deferred until wake.")
            else:
                self._timer_was_running_before_idle = True
                self._logger.debug("User idle; work timer start deferred until activity.")
            return

        self._break_timer.stop()
        self._work_timer.start()

    # ------------------------------------------------------------------
    # User requests
    # ------------------------------------------------------------------

    def request_skip_break(self) -> None:
        if self._phase is not BreakPhase.PRE_NOTICE_SHOWING:
            self._ignored("skip break")
            return
        self._enter_working("break skipped")
        self._run_work_timer(reset_time=True)
        self._send(self.hideNotifications, "hideNotifications")

    def request_break_now(self) -> None:
        if self._phase is BreakPhase.BREAK_ACTIVE:
            self._ignored("break now")
            return
        if not self._config.enabled or self._system_inactive:
            self._logger.debug("Break now ignored; breaks disabled or system inactive.")
            return
        self._enter_break("break requested by user")

    def request_postpone(self, extend_by: int) -> None:
        if self._phase is not BreakPhase.PRE_NOTICE_SHOWING:
            self._ignored("postpone")
            return
        extension = max(0, int(extend_by))
        self._enter_working(f"break postponed by {extension}s")
        self._time_until_break += extension
        self._pre_notice_shown = False
        self._run_work_timer(reset_time=False)
        self._send(self.hideNotifications, "hideNotifications")

    def request_break_end(self) -> None:
        if self._phase is not BreakPhase.BREAK_ACTIVE:
            self._ignored("break end")
            return
        self._break_timer.stop()
        self._break_countdown = 0
        self._enter_working("break ended")
        self._run_work_timer(reset_time=True)

    def adjust_break_countdown(self, delta_seconds: int) -> None:
        if self._phase is not BreakPhase.BREAK_ACTIVE:
            self._ignored("adjust break countdown")
            return
        self._break_countdown = max(0, self._break_countdown + int(delta_seconds))
        self._logger.debug(
            "Break countdown adjusted by {}s to {}s.", delta_seconds, self._break_countdown
        )
        if self._break_countdown == 0:
            if self._break_timer.isActive():
                self._break_timer.stop()
                self._send(self.breakCountdownFinished, "breakCountdownFinished")
        elif not self._break_timer.isActive():
            self._break_timer.start()

    # ------------------------------------------------------------------
    # External events
    # ------------------------------------------------------------------

    def on_configuration_changed(self, config: SchedulerConfig) -> None:
        if not config.enabled:
            self._disable(config)
            return

        if self._phase is BreakPhase.WORKING:
            self._config = config
            self._latched_config = None
            self._logger.info(
                "Configuration applied: interval={}s lead={}s break={}s",
                config.work_interval_seconds,
                config.pre_notice_lead_seconds,
                config.break_duration_seconds,
            )
            self._run_work_timer(reset_time=True)
            return

        self._latched_config = config
        self._logger.info(
            "Configuration latched until the next work period (phase={}).",
            self._phase.value,
        )

    def _disable(self, config: SchedulerConfig) -> None:
        was_enabled = self._config.enabled
        previous_phase = self._phase

        self._config = config
        self._latched_config = None
        self.stop()
        self._pending_resume_after_wake = False
        self._timer_was_running_before_idle = False
        self._break_countdown = 0
        self._time_until_break = config.work_interval_seconds
        self._pre_notice_shown = False
        self._set_phase(BreakPhase.WORKING, "breaks disabled")

        if was_enabled or previous_phase is not BreakPhase.WORKING:
            self._send(self.hideNotifications, "hideNotifications")

    @Slot()
    def on_system_inactive(self) -> None:
        if self._system_inactive:
            return

        if self._phase is BreakPhase.PRE_NOTICE_SHOWING:
            self._enter_working("pre-notice cancelled by system sleep/lock")

        if self._phase is BreakPhase.WORKING:
            self._work_timer.stop()
            self._system_inactive = True
            self._logger.info("System inactive; work timer stopped.")
            # Part of the transition itself, so it bypasses suppression.
            self._emit(self.hideNotifications, "hideNotifications")
            self._hide_owed = False
            return

        self._system_inactive = True
        self._logger.info("System inactive during break; break window left in place.")

    @Slot()
    def on_system_active(self) -> None:
        if not self._system_inactive:
            return
        self._system_inactive = False

        if self._hide_owed:
            self._hide_owed = False
            self._logger.info("System active; delivering hide suppressed while inactive.")
            self._emit(self.hideNotifications, "hideNotifications")

        if self._phase is not BreakPhase.WORKING:
            self._logger.info("System active; break countdown resumes.")
            return

        pending = self._pending_resume_after_wake
        self._pending_resume_after_wake = False
        if not self._config.enabled:
            return
        self._logger.info(
            "System active; restarting work countdown from full interval (pending={}).",
            pending,
        )
        self._run_work_timer(reset_time=True)

    @Slot()
    def on_user_idle(self) -> None:
        if self._user_idle:
            return
        self._user_idle = True

        if self._phase is not BreakPhase.WORKING:
            self._logger.debug("User idle during {}; no action.", self._phase.value)
            return

        self._timer_was_running_before_idle = self._work_timer.isActive()
        self._idle_snapshot_time_until_break = self._time_until_break
        self._work_timer.stop()
        self._logger.info(
            "User idle; work timer paused at {} (was running={}).",
            format_mmss(self._time_until_break),
            self._timer_was_running_before_idle,
        )
        self._send(self.hideNotifications, "hideNotifications")

    @Slot()
    def on_user_active(self) -> None:
        if not self._user_idle:
            return
        self._user_idle = False

        resume = self._timer_was_running_before_idle
        self._timer_was_running_before_idle = False
        if not resume or self._phase is not BreakPhase.WORKING:
            return
        if not self._config.enabled:
            return

        self._logger.info("User active; restarting work countdown from full interval.")
        self._run_work_timer(reset_time=True)

    def shutdown(self) -> None:
        self.stop()
        self._logger.info("Break scheduler shut down.")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enter_break(self, reason: str) -> None:
        self._work_timer.stop()
        self._timer_was_running_before_idle = False
        self._pre_notice_shown = False
        self._set_phase(BreakPhase.BREAK_ACTIVE, reason)

        self._break_countdown = self._config.break_duration_seconds
        if self._break_countdown > 0:
            self._break_timer.start()
        self._send(self.breakTime, "breakTime")

    def _enter_working(self, reason: str) -> None:
        self._set_phase(BreakPhase.WORKING, reason)
        if self._latched_config is not None:
            self._config = self._latched_config
            self._latched_config = None
            self._logger.info(
                "Latched configuration applied: interval={}s lead={}s enabled={}",
                self._config.work_interval_seconds,
                self._config.pre_notice_lead_seconds,
                self._config.enabled,
            )

    def _set_phase(self, phase: BreakPhase, reason: str) -> None:
        if phase is self._phase:
            return
        self._logger.info("Phase {} -> {} ({}).", self._phase.value, phase.value, reason)
        self._phase = phase

    def _ignored(self, request: str) -> None:
        self._logger.debug("Request '{}' ignored in phase {}.", request, self._phase.value)

    def _send(self, signal: SignalInstance, name: str) -> None:
        if self._system_inactive:
            self._logger.debug("Command {} suppressed while system is inactive.", name)
            if name == "hideNotifications":
                # Windows shown before the sleep/lock must still close on wake.
                self._hide_owed = True
            return
        self._emit(signal, name)

    def _emit(self, signal: SignalInstance, name: str) -> None:
        # Qt reports exceptions raised by receivers itself; they never reach here.
        self._logger.debug("Emitting {}.", name)
        signal.emit()
