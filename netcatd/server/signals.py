"""
Signal coordination for the accept loop.

Signal handlers never touch the child registry. SIGCHLD only wakes the
acceptor through a pipe registered with signal.set_wakeup_fd(); the acceptor
drains the pipe and reaps children itself. SIGINT and SIGTERM raise
KeyboardInterrupt so the loop unwinds and the listener gets closed.
"""

from __future__ import annotations

import os
import signal
from types import FrameType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..log import Logger

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# Ignored by the interpreter at startup; ignored dispositions survive exec
INTERPRETER_IGNORED_SIGNALS = (signal.SIGPIPE, signal.SIGXFSZ)


class SignalCoordinator:
    """
    Owns the signal dispositions of the daemon process.

    Usage:
        signals = SignalCoordinator(lg)
        signals.install()
        try:
            ...  # select() on signals.fileno(), then signals.drain()
        finally:
            signals.restore()
    """

    def __init__(self, lg: Logger) -> None:
        self._lg = lg
        self._rfd: int | None = None
        self._wfd: int | None = None
        self._old_wakeup_fd: int = -1
        self._original_handlers: dict[signal.Signals, Any] = {}
        self._shutting_down = False
        self._shutdown_signal: int | None = None

    @property
    def installed(self) -> bool:
        return self._rfd is not None

    @property
    def shutdown_signal(self) -> int | None:
        """Signal that triggered shutdown, if any."""
        return self._shutdown_signal

    def fileno(self) -> int:
        """Read end of the wakeup pipe."""
        if self._rfd is None:
            raise RuntimeError("signal coordinator is not installed")
        return self._rfd

    def install(self) -> None:
        """Create the wakeup pipe and register handlers."""
        if self.installed:
            return

        # os.pipe() descriptors are close-on-exec already
        rfd, wfd = os.pipe()
        os.set_blocking(rfd, False)
        os.set_blocking(wfd, False)
        self._rfd, self._wfd = rfd, wfd

        self._old_wakeup_fd = signal.set_wakeup_fd(wfd, warn_on_full_buffer=False)
        self._original_handlers[signal.SIGCHLD] = signal.signal(
            signal.SIGCHLD, self._handle_child
        )
        for signum in SHUTDOWN_SIGNALS:
            self._original_handlers[signum] = signal.signal(signum, self._handle_shutdown)

        self._lg.trace("signal handlers installed", extra={"wakeup_fd": wfd})

    def drain(self) -> set[int]:
        """Read every pending signal number from the wakeup pipe."""
        received: set[int] = set()
        if self._rfd is None:
            return received

        while True:
            try:
                data = os.read(self._rfd, 512)
            except (BlockingIOError, InterruptedError):
                break
            if not data:
                break
            received.update(data)
        return received

    def _handle_child(self, signum: int, frame: FrameType | None) -> None:
        """No-op; the wakeup byte written before this runs is the notification."""

    def _handle_shutdown(self, signum: int, frame: FrameType | None) -> None:
        """
        Handle shutdown signal by raising KeyboardInterrupt.

        A second signal while shutting down is ignored.
        """
        if self._shutting_down:
            return

        self._shutting_down = True
        self._shutdown_signal = signum
        raise KeyboardInterrupt()

    def restore(self) -> None:
        """Put the original handlers back and close the wakeup pipe."""
        if not self.installed:
            return

        for signum, handler in self._original_handlers.items():
            signal.signal(signum, handler)
        self._original_handlers.clear()
        signal.set_wakeup_fd(self._old_wakeup_fd)
        self._close_pipe()

    def reset_in_child(self) -> None:
        """
        Give a freshly forked child default signal handling.

        Runs before exec so an interrupt aimed at the daemon's process group
        cannot run the daemon's handlers inside the child, and so the launched
        program dies on a write to a connection its client has closed.
        """
        defaults = (signal.SIGCHLD, *SHUTDOWN_SIGNALS, *INTERPRETER_IGNORED_SIGNALS)
        for signum in defaults:
            signal.signal(signum, signal.SIG_DFL)
        signal.set_wakeup_fd(-1)
        self._close_pipe()

    def _close_pipe(self) -> None:
        for fd in (self._rfd, self._wfd):
            if fd is not None:
                os.close(fd)
        self._rfd = self._wfd = None
