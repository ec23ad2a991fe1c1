"""
Application coordinator wiring settings, the break scheduler and its sources.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from PySide6.QtCore import QCoreApplication, QObject, QTimer

from breather import logger as app_logger
from breather.idle_monitor import IdleMonitor
from breather.notifier import TrayNotifier
from breather.scheduler import BreakScheduler
from breather.session_hooks import WindowsSessionEventFilter
from breather.settings import BreakSettings, BreakSettingsManager
from breather.system_events import SystemEventBridge
from breather.types import SchedulerConfig

APP_NAME = "Breather"
APP_VERSION = "1.0.0"
SETTINGS_REFRESH_INTERVAL_MS = 15000
STATUS_REFRESH_INTERVAL_MS = 1000


class AppCoordinator(QObject):
    """
    Owns every long-lived component and connects them on the GUI thread.

    Settings are re-read periodically; a change in the scheduler-relevant
    part is delivered to the scheduler as one configuration event, while
    idle settings go to the idle monitor.
    """

    def __init__(
        self,
        *,
        settings_manager: Optional[BreakSettingsManager] = None,
        idle_monitor: Optional[IdleMonitor] = None,
        notifier: Optional[TrayNotifier] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger("app")
        self.settings_manager = settings_manager or BreakSettingsManager()

        self._settings = self.settings_manager.read_settings()
        self._scheduler_config: SchedulerConfig = self._settings.to_scheduler_config()
        self._manual_shutdown_requested = False

        self.scheduler = BreakScheduler(self._scheduler_config, parent=self)
        self.idle_monitor = idle_monitor or IdleMonitor(
            threshold_seconds=self._settings.idle_threshold_seconds
        )
        self.idle_monitor.setParent(self)
        self.system_events = SystemEventBridge(self)
        self.session_hooks = WindowsSessionEventFilter(self.system_events)
        self.notifier = notifier or TrayNotifier(self)

        self.scheduler.breakTime.connect(self.notifier.show_break_window)
        self.scheduler.preBreakNotification.connect(self.notifier.show_pre_break_notice)
        self.scheduler.hideNotifications.connect(self.notifier.hide_all_notifications)
        self.scheduler.breakCountdownFinished.connect(self._on_break_countdown_finished)

        self.idle_monitor.userBecameIdle.connect(self.scheduler.on_user_idle)
        self.idle_monitor.userBecameActive.connect(self.scheduler.on_user_active)
        self.system_events.systemBecameInactive.connect(self.scheduler.on_system_inactive)
        self.system_events.systemBecameActive.connect(self.scheduler.on_system_active)

        self.notifier.breakNowRequested.connect(self.scheduler.request_break_now)
        self.notifier.skipRequested.connect(self.scheduler.request_skip_break)
        self.notifier.postponeRequested.connect(self._on_postpone_requested)
        self.notifier.breakEndRequested.connect(self.scheduler.request_break_end)
        self.notifier.adjustRequested.connect(self.scheduler.adjust_break_countdown)
        self.notifier.enabledToggled.connect(self.set_enabled)
        self.notifier.exitRequested.connect(self.shutdown)

        self._settings_timer = QTimer(self)
        self._settings_timer.setInterval(SETTINGS_REFRESH_INTERVAL_MS)
        self._settings_timer.timeout.connect(self._reload_settings)

        self._status_timer = QTimer(self)
        self._status_timer.setInterval(STATUS_REFRESH_INTERVAL_MS)
        self._status_timer.timeout.connect(self.refresh_status)

    @property
    def settings(self) -> BreakSettings:
        return self._settings

    @property
    def manual_shutdown_requested(self) -> bool:
        return self._manual_shutdown_requested

    def start(self) -> None:
        self._logger.info("Starting {} v{}.", APP_NAME, APP_VERSION)
        self.notifier.show()
        app = QCoreApplication.instance()
        if app is not None:
            self.session_hooks.install(app)
        self._apply_settings(self._settings, initial=True)
        self.scheduler.start()
        self._settings_timer.start()
        self._status_timer.start()
        self.refresh_status()

    def shutdown(self) -> None:
        self._logger.info("Shutting down application on user request.")
        self._manual_shutdown_requested = True
        self._settings_timer.stop()
        self._status_timer.stop()
        self.idle_monitor.stop_monitoring()
        self.scheduler.shutdown()
        self.notifier.hide_all_notifications()
        self.notifier.hide()
        app = QCoreApplication.instance()
        if app is not None:
            self.session_hooks.uninstall(app)
            app.quit()

    def set_enabled(self, enabled: bool) -> None:
        """Persist the enabled flag and apply it immediately."""
        if enabled == self._settings.enabled:
            return
        self._logger.info("Breaks {} from tray menu.", "enabled" if enabled else "disabled")
        updated = replace(self._settings, enabled=enabled)
        self.settings_manager.write_settings(updated)
        self._apply_settings(updated)
        self.refresh_status()

    def refresh_status(self) -> None:
        self.notifier.refresh(self.scheduler.snapshot())

    def _reload_settings(self) -> None:
        new_settings = self.settings_manager.read_settings()
        if new_settings != self._settings:
            self._logger.info("Detected settings change. Applying updates.")
            self._apply_settings(new_settings)

    def _apply_settings(self, settings: BreakSettings, *, initial: bool = False) -> None:
        previous = self._settings
        self._settings = settings
        self.notifier.set_postpone_seconds(settings.postpone_seconds)

        config = settings.to_scheduler_config()
        if config != self._scheduler_config:
            self._scheduler_config = config
            self.scheduler.on_configuration_changed(config)

        if settings.enabled and settings.idle_detection_enabled:
            if initial or previous.idle_threshold_seconds != settings.idle_threshold_seconds:
                self.idle_monitor.update_threshold(settings.idle_threshold_seconds)
            if not self.idle_monitor.is_monitoring:
                self.idle_monitor.start_monitoring()
        else:
            if self.idle_monitor.is_monitoring:
                reason = "breaks disabled" if not settings.enabled else "idle detection off"
                self._logger.info("Stopping idle monitor ({}).", reason)
            self.idle_monitor.reset_idle_state()
            self.idle_monitor.stop_monitoring()

    def _on_postpone_requested(self) -> None:
        self.scheduler.request_postpone(self._settings.postpone_seconds)

    def _on_break_countdown_finished(self) -> None:
        self._logger.info("Break time is up; ending the break.")
        self.scheduler.request_break_end()
        self.notifier.hide_all_notifications()
