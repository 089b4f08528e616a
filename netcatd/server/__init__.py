"""Accept loop and signal coordination."""

from .acceptor import INTERRUPTED_STATUS, Acceptor
from .signals import INTERPRETER_IGNORED_SIGNALS, SHUTDOWN_SIGNALS, SignalCoordinator

__all__ = [
    "Acceptor",
    "INTERPRETER_IGNORED_SIGNALS",
    "INTERRUPTED_STATUS",
    "SHUTDOWN_SIGNALS",
    "SignalCoordinator",
]
