"""
Log formatters for the logging system.

A log line has four parts: the timestamp/level/message head, a padded column
of [key:value] extra fields, the [pid] [logger] metadata and an optional
[file:line] location.
"""

import logging
import os
import re
from typing import Any

from .colors import ColorManager
from .config import LogConfig
from .constants import LogConstants

# Pattern to match ANSI escape sequences
_ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def _visual_len(text: str) -> int:
    """Calculate visual width of text, excluding ANSI escape codes."""
    if "\x1b" not in text:
        return len(text)
    return len(_ANSI_PATTERN.sub("", text))


def _escape(text: str) -> str:
    """Escape % so field values survive the %-style format pass."""
    return text.replace("%", "%%")


def _render_value(value: Any) -> str:
    if isinstance(value, BaseException):
        return f"{value.__class__.__name__}: {value}"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def _get_extra(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "__netcatd__extra", None) or {}


def _rule(config: LogConfig) -> int:
    return LogConstants.MICRO_RULE_WIDTH if config.micros else LogConstants.DEFAULT_RULE_WIDTH


class PreFormatter(logging.Formatter):
    """
    Formatter that optionally adds microsecond precision to timestamps.
    """

    def __init__(self, fmt: str, micros: bool) -> None:
        self._micros = micros
        super().__init__(fmt)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        s = super().formatTime(record, "%H:%M:%S")
        s += f",{int(record.msecs):03d}"
        if self._micros:
            micros = int((record.created % 1) * 1000000) % 1000
            s += f".{micros:03d}"
        return s


class FieldFormatter:
    """Renders bracketed fields with optional colors."""

    def __init__(self, config: LogConfig):
        self._config = config

    def format_field(
        self, value: Any, col: str = "", bold: str = "", name: str = "", quote: bool = False
    ) -> str:
        """
        Format a single field as [name:value] or [value].

        Args:
            value: The value to format
            col: Color escape sequence for brackets and name
            bold: Bold color escape sequence for the value
            name: Field name (empty for anonymous fields)
            quote: Whether to escape % characters for logging safety
        """
        head = f"{name}:" if name else ""
        text = _render_value(value)
        if quote:
            text = _escape(text)
        if not self._config.colors:
            return f"[{head}{text}]"
        reset = ColorManager.RESET
        return f"{reset}{col}[{head}{reset}{bold}{text}{reset}{col}]"

    def format_fields(self, fields: dict[str, Any], col: str = "", bold: str = "") -> str:
        """Format a dictionary of fields, sorted by key."""
        return " ".join(
            self.format_field(fields[k], col, bold, k, quote=True) for k in sorted(fields)
        )


class LocationRenderer:
    """Handles file location display in log messages."""

    def __init__(self, config: LogConfig):
        self._config = config

    def render_location(self, record: logging.LogRecord) -> str:
        if not self._config.location:
            return ""

        name = "./" + os.path.relpath(record.pathname, os.getcwd())
        text = _escape(f"[{name}:{record.lineno}]")
        if not self._config.colors:
            return " " + text
        return " " + ColorManager.RESET + ColorManager.create_gray_level(6) + "m" + text


class LogFormatter(logging.Formatter):
    """
    Console log formatter with colored output and structured field formatting.

    Example output (colors stripped):
        [12:34:56,789] [I] connected          [peer:203.0.113.5] [pid:4321] [1200] [/server]
    """

    def __init__(self, config: LogConfig):
        super().__init__()
        self._config = config
        self._field_formatter = FieldFormatter(config)
        self._location_renderer = LocationRenderer(config)
        self._pre_formatter = PreFormatter(LogConstants.DEFAULT_FORMAT, config.micros)

    def format(self, record: logging.LogRecord) -> str:
        fmt = self._build_format(record)
        self._pre_formatter._fmt = fmt
        self._pre_formatter._style._fmt = fmt
        return self._pre_formatter.format(record)

    def _calculate_width(self, record: logging.LogRecord) -> int:
        """Width of "[HH:MM:SS,mmm] [L] message"."""
        timestamp_len = 16 if self._config.micros else 12
        return timestamp_len + 7 + _visual_len(record.getMessage())

    def _build_format(self, record: logging.LogRecord) -> str:
        pad = " " * max(1, _rule(self._config) - self._calculate_width(record))
        extra = _get_extra(record)

        if not self._config.colors:
            fmt = LogConstants.DEFAULT_FORMAT + pad
            if extra:
                fmt += self._field_formatter.format_fields(extra) + " "
            fmt += "[%(process)d] [%(name)s]"
            return fmt + self._location_renderer.render_location(record)

        col = ColorManager.get_color_for_level(record.levelno) or ColorManager.DEFAULT
        bold = ColorManager.create_bold_color(col)
        col += "m"

        fields = self._field_formatter
        fmt = col + fields.format_field("%(asctime)s", col)
        fmt += " " + fields.format_field("%(levelname).1s", col, bold)
        fmt += " " + bold + "%(message)s" + ColorManager.RESET + pad
        if extra:
            fmt += fields.format_fields(extra, col, bold) + " "

        gray = ColorManager.create_gray_level(9)
        fmt += fields.format_field("%(process)d", gray + "m", gray + ";1m")
        fmt += " " + fields.format_field("%(name)s", gray + "m", gray + ";1m")
        fmt += self._location_renderer.render_location(record)
        return fmt + ColorManager.RESET
