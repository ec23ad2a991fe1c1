"""
Shared pytest fixtures and configuration.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault(
    "BREATHER_LOG_PATH",
    str(Path(tempfile.gettempdir()) / "breather-tests" / "breather.log"),
)

import pytest  # noqa: E402
from PySide6.QtCore import QSettings  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from breather.scheduler import BreakScheduler  # noqa: E402
from breather.settings import BreakSettingsManager  # noqa: E402
from breather.types import SchedulerConfig  # noqa: E402


class CommandRecorder:
    """Records scheduler commands in emission order."""

    def __init__(self, scheduler: BreakScheduler) -> None:
        self.commands: list[str] = []
        scheduler.breakTime.connect(lambda: self.commands.append("break"))
        scheduler.preBreakNotification.connect(lambda: self.commands.append("pre"))
        scheduler.hideNotifications.connect(lambda: self.commands.append("hide"))
        scheduler.breakCountdownFinished.connect(lambda: self.commands.append("finished"))

    def count(self, name: str) -> int:
        return self.commands.count(name)

    def clear(self) -> None:
        self.commands.clear()


def run_ticks(scheduler: BreakScheduler, count: int) -> None:
    for _ in range(count):
        scheduler.tick()


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """Qt timers and widgets need a live application object."""
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture()
def config() -> SchedulerConfig:
    return SchedulerConfig(
        work_interval_seconds=1500,
        pre_notice_lead_seconds=15,
        break_duration_seconds=30,
        enabled=True,
    )


@pytest.fixture()
def scheduler(config):
    instance = BreakScheduler(config)
    yield instance
    instance.shutdown()
    instance.deleteLater()


@pytest.fixture()
def recorder(scheduler) -> CommandRecorder:
    return CommandRecorder(scheduler)


@pytest.fixture()
def settings_manager(tmp_path: Path) -> BreakSettingsManager:
    """Settings manager backed by a throwaway INI file."""
    qsettings = QSettings(str(tmp_path / "breather.ini"), QSettings.Format.IniFormat)
    return BreakSettingsManager(qsettings=qsettings)


@pytest.fixture()
def advance(scheduler):
    """Deliver ``count`` one-second ticks to the scheduler fixture."""

    def _advance(count: int) -> None:
        run_ticks(scheduler, count)

    return _advance
