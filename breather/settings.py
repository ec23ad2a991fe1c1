"""
QSettings-backed configuration for Breather.

On Windows QSettings stores values in the registry under
HKCU\\Software\\Breather; on other platforms it uses the native format.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from PySide6.QtCore import QSettings

from breather import logger as app_logger
from breather.types import SchedulerConfig

_LOGGER = app_logger.get_logger("settings")

ORGANIZATION_NAME = "Breather"
APPLICATION_NAME = "Breather"

DEFAULT_WORK_INTERVAL_SECONDS = 25 * 60
DEFAULT_PRE_NOTICE_LEAD_SECONDS = 15
DEFAULT_BREAK_DURATION_SECONDS = 30
DEFAULT_POSTPONE_SECONDS = 5 * 60
DEFAULT_IDLE_THRESHOLD_SECONDS = 120

_WORK_INTERVAL_BOUNDS = (60, 4 * 60 * 60)
_PRE_NOTICE_LEAD_BOUNDS = (0, 10 * 60)
_BREAK_DURATION_BOUNDS = (0, 60 * 60)
_POSTPONE_BOUNDS = (60, 60 * 60)
_IDLE_THRESHOLD_BOUNDS = (10, 60 * 60)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


@dataclass(eq=True)
class BreakSettings:
    enabled: bool = True
    work_interval_seconds: int = DEFAULT_WORK_INTERVAL_SECONDS
    pre_notice_lead_seconds: int = DEFAULT_PRE_NOTICE_LEAD_SECONDS
    break_duration_seconds: int = DEFAULT_BREAK_DURATION_SECONDS
    postpone_seconds: int = DEFAULT_POSTPONE_SECONDS
    idle_detection_enabled: bool = True
    idle_threshold_seconds: int = DEFAULT_IDLE_THRESHOLD_SECONDS

    def to_scheduler_config(self) -> SchedulerConfig:
        """The part of the settings the break scheduler cares about."""
        return SchedulerConfig(
            work_interval_seconds=self.work_interval_seconds,
            pre_notice_lead_seconds=self.pre_notice_lead_seconds,
            break_duration_seconds=self.break_duration_seconds,
            enabled=self.enabled,
        )


class BreakSettingsManager:
    """Loads persisted settings and clamps invalid data."""

    def __init__(self, *, qsettings: Optional[QSettings] = None) -> None:
        self._settings = qsettings or QSettings(ORGANIZATION_NAME, APPLICATION_NAME)

    def read_settings(self) -> BreakSettings:
        self._settings.sync()
        return BreakSettings(
            enabled=self._read_bool("IsEnabled", True),
            work_interval_seconds=self._read_seconds(
                "WorkIntervalSeconds", DEFAULT_WORK_INTERVAL_SECONDS, _WORK_INTERVAL_BOUNDS
            ),
            pre_notice_lead_seconds=self._read_seconds(
                "PreNoticeLeadSeconds", DEFAULT_PRE_NOTICE_LEAD_SECONDS, _PRE_NOTICE_LEAD_BOUNDS
            ),
            break_duration_seconds=self._read_seconds(
                "BreakDurationSeconds", DEFAULT_BREAK_DURATION_SECONDS, _BREAK_DURATION_BOUNDS
            ),
            postpone_seconds=self._read_seconds(
                "PostponeSeconds", DEFAULT_POSTPONE_SECONDS, _POSTPONE_BOUNDS
            ),
            idle_detection_enabled=self._read_bool("IdleDetectionEnabled", True),
            idle_threshold_seconds=self._read_seconds(
                "IdleThresholdSeconds", DEFAULT_IDLE_THRESHOLD_SECONDS, _IDLE_THRESHOLD_BOUNDS
            ),
        )

    def write_settings(self, settings: BreakSettings) -> None:
        self._settings.setValue("IsEnabled", settings.enabled)
        self._settings.setValue("WorkIntervalSeconds", settings.work_interval_seconds)
        self._settings.setValue("PreNoticeLeadSeconds", settings.pre_notice_lead_seconds)
        self._settings.setValue("BreakDurationSeconds", settings.break_duration_seconds)
        self._settings.setValue("PostponeSeconds", settings.postpone_seconds)
        self._settings.setValue("IdleDetectionEnabled", settings.idle_detection_enabled)
        self._settings.setValue("IdleThresholdSeconds", settings.idle_threshold_seconds)
        self._settings.sync()

    def _read_bool(self, name: str, default: bool) -> bool:
        raw = self._settings.value(name)
        if raw is None:
            return default
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, int):
            return bool(raw)
        if isinstance(raw, str):
            lowered = raw.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        _LOGGER.warning("Setting {} has unexpected value {!r}; using default.", name, raw)
        return default

    def _read_seconds(self, name: str, default: int, bounds: tuple[int, int]) -> int:
        raw = self._settings.value(name)
        if raw is None:
            return default
        value = _coerce_int(raw)
        if value is None:
            _LOGGER.warning("Setting {} has unexpected value {!r}; using default.", name, raw)
            return default
        low, high = bounds
        if value < low or value > high:
            _LOGGER.warning(
                "Invalid value {} for {}. Clamping to [{}, {}].", value, name, low, high
            )
        return max(low, min(high, value))


def _coerce_int(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return int(raw)
    if isinstance(raw, str):
        try:
            return int(float(raw.strip()))
        except ValueError:
            return None
    return None
