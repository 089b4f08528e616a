"""
Configuration class for the logging system.

LogConfig is immutable: the daemon configures logging once at startup and
every forked child inherits the same settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .constants import LogConstants
from .exceptions import InvalidLogLevelError


def resolve_level(level: str | int | bool) -> int | bool:
    """
    Resolve log level from string, numeric value, or boolean.

    True means the default level and False disables logging.

    Raises:
        InvalidLogLevelError: If the log level is invalid
    """
    if isinstance(level, bool):
        return logging.INFO if level else False
    if isinstance(level, int):
        return level

    name = str(level).strip().lower()
    if name.isnumeric():
        return int(name)
    if name in LogConstants.LEVEL_NAMES:
        return LogConstants.LEVEL_NAMES[name]
    raise InvalidLogLevelError(level)


@dataclass(frozen=True)
class LogConfig:
    """
    Immutable logger configuration.

    Attributes:
        level: Numeric level, or False to disable logging
        location: Number of caller frames to show as [file:line]
        micros: Whether to show microsecond precision
        colors: Whether to emit ANSI colors
    """

    level: int | bool = logging.INFO
    location: int = 0
    micros: bool = False
    colors: bool = True

    @classmethod
    def from_params(
        cls,
        level: str | int | bool,
        location: bool | int = 0,
        micros: bool = False,
        colors: bool = True,
    ) -> LogConfig:
        """
        Create LogConfig from individual parameters.

        Args:
            level: Log level (string name, numeric value, or False to disable logging)
            location: Location display level (bool or int)
            micros: Whether to show microsecond precision
            colors: Whether to enable colored output

        Returns:
            LogConfig instance

        Raises:
            InvalidLogLevelError: If the level name is unknown
        """
        resolved_location = (
            1 if location is True else (0 if location is False else int(location))
        )
        return cls(
            level=resolve_level(level),
            location=resolved_location,
            micros=bool(micros),
            colors=bool(colors),
        )

    @classmethod
    def from_config(cls, config_dict: dict[str, Any], section: str = "logging") -> LogConfig:
        """
        Create LogConfig from a configuration dictionary.

        Args:
            config_dict: Configuration dictionary (e.g., from load_config)
            section: Configuration section to use (default: "logging")

        Returns:
            LogConfig instance
        """
        current = config_dict.get(section) or {}

        level = current.get("level")
        if level is None:
            level = "info"

        return cls.from_params(
            level=level,
            location=current.get("location", 0) or 0,
            micros=current.get("microseconds", current.get("micros", False)),
            colors=current.get("colors", True),
        )
