"""
Color management for the logging system.

ANSI color codes for each log level plus the gray ramp used for the
pid/logger-name metadata section.
"""

import logging

from .constants import LogConstants


class ColorManager:
    """Centralized ANSI color code management."""

    RED = "\x1b[31"
    GREEN = "\x1b[32"
    YELLOW = "\x1b[33"
    BLUE = "\x1b[34"
    MAGENTA = "\x1b[35"
    CYAN = "\x1b[36"
    DEFAULT = "\x1b[38"

    RESET = LogConstants.RESET

    # Populated with the custom trace levels by add_custom_level_colors()
    COLORS: dict[int, str] = {
        logging.DEBUG: "\x1b[38;5;32",
        logging.INFO: CYAN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: MAGENTA,
    }

    @staticmethod
    def get_color_for_level(level: int) -> str | None:
        """Return the color escape sequence for a log level, or None."""
        return ColorManager.COLORS.get(level)

    @staticmethod
    def create_gray_level(level: int) -> str:
        """
        Create gray color for metadata and trace levels.

        Args:
            level: Gray level, clamped to the 0-23 range

        Returns:
            Gray color escape sequence (without the trailing "m")
        """
        level = max(0, min(level, LogConstants.GRAY_MAX_LEVELS - 1))
        return f"\x1b[38;5;{LogConstants.GRAY_BASE + level}"

    @staticmethod
    def create_color_256(color_code: int) -> str:
        """Create 256-color escape sequence."""
        return f"\x1b[38;5;{color_code}"

    @staticmethod
    def create_bold_color(base_color: str) -> str:
        """Create bold version of a color."""
        return f"{base_color};1m"

    @staticmethod
    def add_custom_level_colors() -> None:
        """Add colors for custom log levels after they are defined."""
        ColorManager.COLORS.update(
            {
                LogConstants.CUSTOM_LEVELS["TRACE2"]: ColorManager.create_gray_level(7),
                LogConstants.CUSTOM_LEVELS["TRACE"]: ColorManager.create_color_256(24),
            }
        )
