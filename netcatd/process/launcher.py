"""
Process launcher.

Forks one child per connection, wires the connection socket onto the
selected standard streams and replaces the child's image with the rendered
command. The parent only gets the pid back; registering the child and
closing the parent's copy of the socket is the acceptor's job.
"""

from __future__ import annotations

import os
import signal
import socket
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, NoReturn

from ..config import Passthrough
from ..exceptions import LaunchError
from ..net.address import PeerAddress

if TYPE_CHECKING:
    from ..log import Logger
    from .template import CommandTemplate

# Original stderr is kept here (close-on-exec) while fd 2 may be the socket
RESERVED_STDERR_FD = 200

# Exit status of a child whose exec failed
EXEC_FAILURE_STATUS = 1

# Held back across fork() and delivered once the child has default handlers
FORK_BLOCKED_SIGNALS = (signal.SIGCHLD, signal.SIGINT, signal.SIGTERM)


@dataclass(frozen=True)
class Connection:
    """An accepted connection waiting to be handed to a process."""

    sock: socket.socket
    peer: PeerAddress
    passthrough: Passthrough

    def fileno(self) -> int:
        return self.sock.fileno()


class ProcessLauncher:
    """
    Starts a process per connection.

    Example:
        launcher = ProcessLauncher(lg, CommandTemplate.parse("cat"))
        pid = launcher.launch(connection)
    """

    def __init__(
        self,
        lg: Logger,
        template: CommandTemplate,
        child_setup: Callable[[], None] | None = None,
    ) -> None:
        """
        Args:
            lg: Logger, also used by the child until exec
            template: Parsed command template, rendered inside the child
            child_setup: Called first thing in the child (e.g. to restore
                default signal handling)
        """
        self._lg = lg
        self._template = template
        self._child_setup = child_setup

    @property
    def template(self) -> CommandTemplate:
        return self._template

    def launch(self, connection: Connection) -> int:
        """
        Fork a child serving connection and return its pid.

        Raises:
            LaunchError: If the child could not be created
        """
        # Buffered output would otherwise be written twice
        for stream in (sys.stdout, sys.stderr):
            if stream is not None:
                stream.flush()

        # Until the child has reset its handlers, a signal must not run the
        # daemon's handlers in it
        old_mask = signal.pthread_sigmask(signal.SIG_BLOCK, FORK_BLOCKED_SIGNALS)
        try:
            pid = self._fork()
            if pid == 0:
                self._run_child(connection, old_mask)
        finally:
            signal.pthread_sigmask(signal.SIG_SETMASK, old_mask)
        return pid

    def _fork(self) -> int:
        try:
            return os.fork()
        except OSError as e:
            raise LaunchError("fork failed", error=e.strerror) from e

    def _run_child(self, connection: Connection, old_mask: set[signal.Signals]) -> NoReturn:
        """Child side of launch(); never returns into the caller."""
        try:
            self._exec_child(connection, old_mask)
        except Exception as e:
            self._lg.error("child setup failed", extra={"exception": e})
        finally:
            os._exit(EXEC_FAILURE_STATUS)

    def _exec_child(self, connection: Connection, old_mask: set[signal.Signals]) -> None:
        if self._child_setup is not None:
            self._child_setup()
        signal.pthread_sigmask(signal.SIG_SETMASK, old_mask)

        # The pid is only known now, after the fork
        argv = self._template.render(connection.peer)
        self._lg.debug("calling", extra={"argv": " ".join(argv)})

        os.dup2(2, RESERVED_STDERR_FD, inheritable=False)
        for fd in connection.passthrough.streams():
            os.dup2(connection.fileno(), fd)

        try:
            os.execvp(argv[0], argv)
        except (OSError, ValueError) as e:
            # ValueError: embedded null byte in an argument
            os.dup2(RESERVED_STDERR_FD, 2)
            error = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            self._lg.error("exec", extra={"argv": argv[0], "error": error})
