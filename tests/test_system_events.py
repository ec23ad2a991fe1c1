"""
Tests for sleep/lock normalisation (breather/system_events.py).
"""

from __future__ import annotations

import pytest

from breather.system_events import SystemEventBridge
from breather.types import BreakPhase


@pytest.fixture()
def bridge():
    instance = SystemEventBridge()
    instance.events = []
    instance.systemBecameInactive.connect(lambda: instance.events.append("inactive"))
    instance.systemBecameActive.connect(lambda: instance.events.append("active"))
    yield instance
    instance.deleteLater()


class TestNormalisation:
    def test_sleep_and_wake(self, bridge):
        bridge.willSleep.emit()
        assert bridge.is_system_inactive
        bridge.didWake.emit()
        assert not bridge.is_system_inactive
        assert bridge.events == ["inactive", "active"]

    def test_lock_and_unlock(self, bridge):
        bridge.screenLocked.emit()
        bridge.screenUnlocked.emit()
        assert bridge.events == ["inactive", "active"]

    def test_duplicate_inactive_signals_dropped(self, bridge):
        bridge.screenLocked.emit()
        bridge.willSleep.emit()
        bridge.screenLocked.emit()
        assert bridge.events == ["inactive"]

    def test_duplicate_active_signals_dropped(self, bridge):
        bridge.didWake.emit()
        bridge.willSleep.emit()
        bridge.didWake.emit()
        bridge.screenUnlocked.emit()
        assert bridge.events == ["inactive", "active"]

    def test_reset_is_silent(self, bridge):
        bridge.willSleep.emit()
        bridge.reset()
        assert not bridge.is_system_inactive
        assert bridge.events == ["inactive"]


class TestSchedulerWiring:
    def test_lock_cycle_restarts_work_countdown(self, bridge, scheduler, advance):
        bridge.systemBecameInactive.connect(scheduler.on_system_inactive)
        bridge.systemBecameActive.connect(scheduler.on_system_active)
        scheduler.start()
        advance(300)

        bridge.screenLocked.emit()
        assert scheduler.system_inactive
        assert not scheduler.is_work_timer_active

        bridge.screenUnlocked.emit()
        assert scheduler.phase is BreakPhase.WORKING
        assert scheduler.time_until_break == scheduler.work_interval
        assert scheduler.is_work_timer_active
