"""
Constants for the logging system.

Format strings, rule widths and custom level numbers shared by the
formatter, the logger and the color table.
"""

import logging


class LogConstants:
    """Constants for the logging system."""

    DEFAULT_FORMAT: str = "[%(asctime)s] [%(levelname).1s] %(message)s"

    # Column where extra fields start
    DEFAULT_RULE_WIDTH: int = 60
    MICRO_RULE_WIDTH: int = 64

    CUSTOM_LEVELS: dict[str, int] = {"TRACE": 5, "TRACE2": 4}

    # Populated with the custom levels by netcatd.log on import
    LEVEL_NAMES: dict[str, int | bool] = {
        "critical": logging.CRITICAL,
        "error": logging.ERROR,
        "warning": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
        "false": False,  # Special value to disable all logging
    }

    RESET: str = "\x1b[0m"

    # Gray level range for metadata and trace logging
    GRAY_BASE: int = 232
    GRAY_MAX_LEVELS: int = 24
