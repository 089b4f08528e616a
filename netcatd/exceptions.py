"""
Unified exception hierarchy for netcatd.

Every error raised by the server derives from NetcatdError so the CLI can
tell fatal startup problems apart from programming errors with a single
except clause.
"""

from typing import Any


class NetcatdError(Exception):
    """
    Base exception for all netcatd errors.

    Example:
        try:
            listener = provision(config)
        except NetcatdError as e:
            lg.error("startup failed", extra={"exception": e})
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(NetcatdError):
    """
    Configuration-related errors.

    Only ever raised at startup, before the listener exists.

    Examples:
        - Missing command template
        - Unparsable bind address
        - Config file not found or not a mapping
        - Invalid value type in a config section
    """

    pass


class ServerError(NetcatdError):
    """
    Server-related errors.

    Raised when the listening socket cannot be provisioned or a connection
    cannot be handed to a new process.

    Examples:
        - Port already in use
        - Socket activation misconfigured
        - fork() failed
    """

    pass


class LaunchError(ServerError):
    """Raised in the parent when a child process could not be created."""

    pass
