"""
Console logging for rosmsgc.

A small leveled logger in the style of ROS2 node loggers. Every message is
rendered through a shared Rich console on stderr so generated code written
to stdout stays clean.

Copyright 2025 Chen Yu <chenyu@u.northwestern.edu>
Licensed under the Apache License, Version 2.0
"""

import time
from enum import Enum
from typing import Union

from rich.console import Console

console = Console(stderr=True, highlight=False, soft_wrap=True)


class LogLevel(Enum):
    """Log levels."""
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    FATAL = 50


_LEVEL_STYLES = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "blue",
    LogLevel.WARN: "yellow",
    LogLevel.ERROR: "red",
    LogLevel.FATAL: "bold red",
}


def parse_level(level: Union[str, int, LogLevel]) -> LogLevel:
    """Convert a config value ("INFO", 20, LogLevel.INFO) to a LogLevel."""
    if isinstance(level, LogLevel):
        return level
    if isinstance(level, int):
        return LogLevel(level)
    name = str(level).strip().upper()
    if name == "WARNING":
        name = "WARN"
    try:
        return LogLevel[name]
    except KeyError:
        raise ValueError(f"Unknown log level: {level}") from None


class NodeLogger:
    """Logger for a component (similar to ROS2 logging)."""

    _level = LogLevel.INFO

    def __init__(self, name: str):
        self._name = name

    @classmethod
    def set_level(cls, level: Union[str, int, LogLevel]) -> None:
        """Set global log level."""
        cls._level = parse_level(level)

    @classmethod
    def get_level(cls) -> LogLevel:
        return cls._level

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level.value >= self._level.value

    def _log(self, level: LogLevel, msg: str) -> None:
        if self.is_enabled_for(level):
            timestamp = time.strftime('%H:%M:%S')
            console.print(
                f"[{timestamp}] [{level.name}] [{self._name}]: {msg}",
                style=_LEVEL_STYLES[level],
                markup=False,
            )

    def debug(self, msg: str) -> None:
        self._log(LogLevel.DEBUG, msg)

    def info(self, msg: str) -> None:
        self._log(LogLevel.INFO, msg)

    def warn(self, msg: str) -> None:
        self._log(LogLevel.WARN, msg)

    def error(self, msg: str) -> None:
        self._log(LogLevel.ERROR, msg)

    def fatal(self, msg: str) -> None:
        self._log(LogLevel.FATAL, msg)


def get_logger(name: str) -> NodeLogger:
    return NodeLogger(f"rosmsgc.{name}")


__all__ = ["LogLevel", "NodeLogger", "console", "get_logger", "parse_level"]
