"""
Breather: a tray break reminder driven by a single scheduling state machine.
"""

from .idle_monitor import IdleMonitor  # noqa: F401
from .scheduler import BreakScheduler  # noqa: F401
from .system_events import SystemEventBridge  # noqa: F401
from .types import BreakPhase, SchedulerConfig, SchedulerSnapshot  # noqa: F401
