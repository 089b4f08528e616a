"""Per-connection processes: command templates, launching and bookkeeping."""

from .launcher import (
    EXEC_FAILURE_STATUS,
    FORK_BLOCKED_SIGNALS,
    RESERVED_STDERR_FD,
    Connection,
    ProcessLauncher,
)
from .registry import ChildRegistry, LaunchedProcess
from .template import CommandTemplate, render_token

__all__ = [
    "ChildRegistry",
    "CommandTemplate",
    "Connection",
    "EXEC_FAILURE_STATUS",
    "FORK_BLOCKED_SIGNALS",
    "LaunchedProcess",
    "ProcessLauncher",
    "RESERVED_STDERR_FD",
    "render_token",
]
