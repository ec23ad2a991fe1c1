"""
Logging setup for Breather.

Every component logs through the shared loguru logger bound to its own
``component`` name, so the file log shows which part of the app made a
decision (scheduler, idle monitor, system events, tray, ...).
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

_LOG_INITIALISED = False
LOG_DIR = Path.home() / ".breather" / "logs"
DEFAULT_LOG_PATH = LOG_DIR / "breather.log"
LOG_PATH_ENV = "BREATHER_LOG_PATH"
DEFAULT_COMPONENT = "app"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | {message}"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component]: <14} | "
    "{name}:{function}:{line} | {message}"
)


def resolve_log_path(log_path: Optional[Path] = None) -> Path:
    """Explicit path first, then ``BREATHER_LOG_PATH``, then the home directory."""
    if log_path is not None:
        return log_path
    env_path = os.environ.get(LOG_PATH_ENV)
    return Path(env_path) if env_path else DEFAULT_LOG_PATH


def configure(log_path: Optional[Path] = None) -> None:
    """
    Configure loguru for the application.

    Only the first call has an effect; later calls keep the sinks that are
    already installed.
    """
    global _LOG_INITIALISED
    if _LOG_INITIALISED:
        return
    target = resolve_log_path(log_path)
    target.parent.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    # Records logged without a bound component still render.
    _logger.configure(extra={"component": DEFAULT_COMPONENT})
    if sys.stderr is not None:
        _logger.add(sys.stderr, level="INFO", format=CONSOLE_FORMAT, enqueue=True)
    _logger.add(
        target,
        level="DEBUG",
        format=FILE_FORMAT,
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    _LOG_INITIALISED = True


def get_logger(component: Optional[str] = None):
    """Return the shared logger, bound to ``component`` when one is given."""
    configure()
    if component is None:
        return _logger
    return _logger.bind(component=component)
