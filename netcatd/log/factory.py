"""
Factory for creating and configuring loggers.

The daemon owns one root logger with a single console handler; every
component logs through a derived "view" logger that shares that handler.
"""

import logging
import sys
from typing import IO, Any, cast

from .config import LogConfig
from .formatters import LogFormatter
from .logger import Logger


class LoggerFactory:
    """Factory for creating and configuring loggers."""

    @staticmethod
    def create_root(
        config: LogConfig,
        logger_class: type[Logger] = Logger,
        stream: IO[str] | None = None,
    ) -> Logger:
        """
        Create a root logger with the specified configuration.

        Args:
            config: Logger configuration
            logger_class: Logger class to use
            stream: Output stream (default: sys.stderr, since stdout may be
                handed to a connection)

        Returns:
            Configured root logger

        Example:
            >>> config = LogConfig.from_params(level="info", colors=False)
            >>> lg = LoggerFactory.create_root(config)
            >>> lg.info("now accepting connections")
            [12:34:56,789] [I] now accepting connections     [1234] [/]
        """
        return LoggerFactory.create("/", config, logger_class, stream=stream)

    @staticmethod
    def create(
        name: str,
        config: LogConfig,
        logger_class: type[Logger] = Logger,
        extra: dict[str, Any] | None = None,
        stream: IO[str] | None = None,
    ) -> Logger:
        """
        Create a logger with its own console handler.

        Creating a logger under a name that already exists replaces it, so a
        second call (tests, re-configuration) never stacks handlers.
        """
        lg = logger_class(name, config, extra)
        level = logging.CRITICAL + 1 if config.level is False else config.level

        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(LogFormatter(config))
        lg.addHandler(handler)
        lg.propagate = False
        lg.parent = logging.root

        logging.root.manager.loggerDict[name] = lg

        lg.trace2(
            "created logger",
            extra={"level": logging.getLevelName(level), "location": config.location},
        )
        return lg

    @staticmethod
    def derive(parent: Logger, tags: str | list[str]) -> Logger:
        """
        Derive a "view" logger that delegates to root's handlers.

        Examples:
            >>> derived = LoggerFactory.derive(root, "server")
            >>> derived.name
            '/server'
            >>> LoggerFactory.derive(root, ["process", "launcher"]).name
            '/process/launcher'

        Args:
            parent: Parent logger instance
            tags: Single tag string OR list of tag strings to form hierarchy

        Returns:
            Derived logger instance sharing the root's handlers
        """
        if isinstance(tags, str):
            tags = [tags]

        prefix = parent.name if parent.name == "/" else parent.name + "/"
        name = prefix + "/".join(tags)

        root = parent._root_logger or parent
        existing = logging.root.manager.loggerDict.get(name)
        if isinstance(existing, Logger) and existing._root_logger is root:
            return existing

        lg = parent.__class__(name, parent.config)
        lg.setLevel(parent.level)
        lg._root_logger = cast(Logger, root)
        lg.parent = parent
        lg.propagate = False

        logging.root.manager.loggerDict[name] = lg
        lg.trace2("derived logger", extra={"root": root.name})
        return lg
