"""
Tests for the application wiring (breather/app.py, breather/notifier.py).
"""

from __future__ import annotations

import pytest

from breather.app import AppCoordinator
from breather.idle_monitor import IdleMonitor
from breather.notifier import NOTICE_BREAK, NOTICE_PRE_BREAK, TrayNotifier
from breather.settings import BreakSettings
from breather.types import BreakPhase


class FakeProbe:
    def __init__(self, value=None):
        self.value = value

    def __call__(self):
        return self.value


@pytest.fixture()
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture()
def coordinator(settings_manager, probe):
    instance = AppCoordinator(
        settings_manager=settings_manager,
        idle_monitor=IdleMonitor(probe=probe),
    )
    yield instance
    instance.shutdown()
    instance.deleteLater()


class TestStartup:
    def test_start_runs_work_timer_and_idle_monitor(self, coordinator):
        coordinator.start()
        assert coordinator.scheduler.is_work_timer_active
        assert coordinator.idle_monitor.is_monitoring
        assert coordinator.notifier.status_text == "Next break: 25:00"

    def test_disabled_at_startup(self, settings_manager, probe):
        settings_manager.write_settings(BreakSettings(enabled=False))
        coordinator = AppCoordinator(
            settings_manager=settings_manager,
            idle_monitor=IdleMonitor(probe=probe),
        )
        try:
            coordinator.start()
            assert not coordinator.scheduler.enabled
            assert not coordinator.scheduler.is_work_timer_active
            assert not coordinator.idle_monitor.is_monitoring
            assert coordinator.notifier.status_text == "Breaks disabled"
        finally:
            coordinator.shutdown()
            coordinator.deleteLater()

    def test_idle_detection_off(self, settings_manager, probe):
        settings_manager.write_settings(BreakSettings(idle_detection_enabled=False))
        coordinator = AppCoordinator(
            settings_manager=settings_manager,
            idle_monitor=IdleMonitor(probe=probe),
        )
        try:
            coordinator.start()
            assert coordinator.scheduler.is_work_timer_active
            assert not coordinator.idle_monitor.is_monitoring
        finally:
            coordinator.shutdown()
            coordinator.deleteLater()


class TestSettingsReload:
    def test_changed_interval_restarts_countdown(self, coordinator, settings_manager):
        coordinator.start()
        for _ in range(100):
            coordinator.scheduler.tick()

        settings_manager.write_settings(BreakSettings(work_interval_seconds=600))
        coordinator._reload_settings()

        assert coordinator.scheduler.work_interval == 600
        assert coordinator.scheduler.time_until_break == 600

    def test_unchanged_settings_keep_countdown(self, coordinator, settings_manager):
        coordinator.start()
        for _ in range(100):
            coordinator.scheduler.tick()

        settings_manager.write_settings(BreakSettings())
        coordinator._reload_settings()

        assert coordinator.scheduler.time_until_break == 1400

    def test_idle_threshold_change_reaches_monitor(self, coordinator, settings_manager):
        coordinator.start()
        settings_manager.write_settings(BreakSettings(idle_threshold_seconds=300))
        coordinator._reload_settings()
        assert coordinator.idle_monitor.threshold == 300

    def test_set_enabled_persists_and_applies(self, coordinator, settings_manager):
        coordinator.start()
        coordinator.set_enabled(False)

        assert not coordinator.scheduler.enabled
        assert not coordinator.idle_monitor.is_monitoring
        assert settings_manager.read_settings().enabled is False

        coordinator.set_enabled(True)
        assert coordinator.scheduler.is_work_timer_active
        assert coordinator.idle_monitor.is_monitoring


class TestEventRouting:
    def test_sleep_pauses_scheduler(self, coordinator):
        coordinator.start()
        coordinator.system_events.willSleep.emit()
        assert coordinator.scheduler.system_inactive
        assert not coordinator.scheduler.is_work_timer_active

        coordinator.system_events.didWake.emit()
        assert coordinator.scheduler.is_work_timer_active

    def test_disable_while_locked_closes_break_on_unlock(self, coordinator):
        coordinator.start()
        coordinator.notifier.breakNowRequested.emit()
        coordinator.system_events.screenLocked.emit()
        coordinator.set_enabled(False)
        assert coordinator.notifier.current_notice == NOTICE_BREAK

        coordinator.system_events.screenUnlocked.emit()
        assert coordinator.notifier.current_notice is None
        assert coordinator.scheduler.phase is BreakPhase.WORKING

    def test_user_idle_pauses_scheduler(self, coordinator, probe):
        coordinator.start()
        probe.value = 500
        coordinator.idle_monitor.poll()
        assert coordinator.scheduler.user_idle
        assert not coordinator.scheduler.is_work_timer_active

        probe.value = 1
        coordinator.idle_monitor.poll()
        assert not coordinator.scheduler.user_idle
        assert coordinator.scheduler.is_work_timer_active

    def test_pre_notice_reaches_notifier(self, coordinator):
        coordinator.start()
        for _ in range(1485):
            coordinator.scheduler.tick()
        assert coordinator.notifier.current_notice == NOTICE_PRE_BREAK

    def test_break_now_shows_break(self, coordinator):
        coordinator.start()
        coordinator.notifier.breakNowRequested.emit()
        assert coordinator.scheduler.phase is BreakPhase.BREAK_ACTIVE
        assert coordinator.notifier.current_notice == NOTICE_BREAK

        coordinator.refresh_status()
        assert coordinator.notifier.status_text == "On break: 00:30"

    def test_postpone_uses_configured_extension(self, coordinator, settings_manager):
        settings_manager.write_settings(BreakSettings(postpone_seconds=120))
        coordinator._reload_settings()
        coordinator.start()
        for _ in range(1490):
            coordinator.scheduler.tick()

        coordinator.notifier.postponeRequested.emit()
        assert coordinator.scheduler.phase is BreakPhase.WORKING
        assert coordinator.scheduler.time_until_break == 130
        assert coordinator.notifier.current_notice is None

    def test_break_ends_when_countdown_finishes(self, coordinator, settings_manager):
        settings_manager.write_settings(BreakSettings(break_duration_seconds=1))
        coordinator._reload_settings()
        coordinator.start()

        coordinator.notifier.breakNowRequested.emit()
        coordinator.scheduler.tick()

        assert coordinator.scheduler.phase is BreakPhase.WORKING
        assert coordinator.scheduler.time_until_break == 1500
        assert coordinator.notifier.current_notice is None

    def test_adjust_from_menu(self, coordinator):
        coordinator.start()
        coordinator.notifier.breakNowRequested.emit()
        coordinator.notifier.adjustRequested.emit(60)
        assert coordinator.scheduler.break_countdown == 90

    def test_shutdown_is_flagged(self, coordinator):
        coordinator.start()
        coordinator.shutdown()
        assert coordinator.manual_shutdown_requested
        assert not coordinator.scheduler.is_work_timer_active
        assert not coordinator.idle_monitor.is_monitoring


class TestTrayNotifier:
    @pytest.fixture()
    def notifier(self):
        instance = TrayNotifier()
        yield instance
        instance.deleteLater()

    def test_menu_actions_emit_requests(self, notifier):
        seen = []
        notifier.breakNowRequested.connect(lambda: seen.append("break_now"))
        notifier.adjustRequested.connect(lambda delta: seen.append(delta))
        notifier.enabledToggled.connect(lambda enabled: seen.append(enabled))

        notifier._break_now_action.trigger()
        notifier._add_time_action.trigger()
        notifier._remove_time_action.trigger()
        notifier._enabled_action.trigger()

        assert seen == ["break_now", 60, -60, False]

    def test_postpone_label(self, notifier):
        notifier.set_postpone_seconds(60)
        assert notifier._postpone_action.text() == "Postpone 1 minute"
        notifier.set_postpone_seconds(600)
        assert notifier._postpone_action.text() == "Postpone 10 minutes"

    def test_notices_are_tracked_without_tray(self, notifier):
        notifier.show_pre_break_notice()
        assert notifier.current_notice == NOTICE_PRE_BREAK
        notifier.hide_all_notifications()
        assert notifier.current_notice is None
