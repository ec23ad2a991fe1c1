"""
Shared value types for the break scheduler and its collaborators.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

IdleProbe = Callable[[], Optional[float]]


class BreakPhase(Enum):
    WORKING = "Working"
    PRE_NOTICE_SHOWING = "PreNoticeShowing"
    BREAK_ACTIVE = "BreakActive"


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    """
    Atomic configuration payload delivered to the scheduler.

    A pre-notice lead time of 0 disables the pre-break notice.
    """

    work_interval_seconds: int = 25 * 60
    pre_notice_lead_seconds: int = 15
    break_duration_seconds: int = 30
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.work_interval_seconds <= 0:
            raise ValueError("work_interval_seconds must be greater than zero")
        if self.pre_notice_lead_seconds < 0:
            raise ValueError("pre_notice_lead_seconds must not be negative")
        if self.break_duration_seconds < 0:
            raise ValueError("break_duration_seconds must not be negative")


@dataclass(frozen=True, slots=True)
class SchedulerSnapshot:
    """Read-only view of the scheduler exposed to display code."""

    phase: BreakPhase
    time_until_break: int
    break_countdown: int
    enabled: bool
    system_inactive: bool
    user_idle: bool
    work_timer_active: bool
    break_countdown_active: bool

    @property
    def is_break_active(self) -> bool:
        return self.phase is BreakPhase.BREAK_ACTIVE


def format_mmss(total_seconds: float) -> str:
    seconds = max(0, int(total_seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def format_minutes(total_seconds: float) -> str:
    """Compact tray text, rounded up so "0m" only shows once time is up."""
    return f"{max(0, math.ceil(total_seconds / 60.0))}m"
