"""
Connection acceptor: the main service loop.

Waits on the listening socket and the signal wakeup pipe. A readable
listener means a connection to hand to a new process; a readable wakeup
pipe means children may have exited and need reaping. All child registry
updates happen here, on the one thread that runs the loop.
"""

from __future__ import annotations

import os
import selectors
import signal
from typing import TYPE_CHECKING

from ..exceptions import LaunchError
from ..process.launcher import Connection
from ..process.registry import ChildRegistry, LaunchedProcess
from .signals import SignalCoordinator

if TYPE_CHECKING:
    from ..config import Passthrough
    from ..log import Logger
    from ..net.listener import Listener
    from ..process.launcher import ProcessLauncher

# Exit status after an interrupt-triggered shutdown
INTERRUPTED_STATUS = 2


class Acceptor:
    """
    Accepts connections and launches one process per connection.

    Example:
        acceptor = Acceptor(lg, listener, launcher, config.passthrough, signals)
        sys.exit(acceptor.serve())
    """

    def __init__(
        self,
        lg: Logger,
        listener: Listener,
        launcher: ProcessLauncher,
        passthrough: Passthrough,
        signals: SignalCoordinator | None = None,
        registry: ChildRegistry | None = None,
    ) -> None:
        self._lg = lg
        self._listener = listener
        self._launcher = launcher
        self._passthrough = passthrough
        self._signals = signals if signals is not None else SignalCoordinator(lg)
        self._registry = registry if registry is not None else ChildRegistry()

    @property
    def registry(self) -> ChildRegistry:
        return self._registry

    @property
    def signals(self) -> SignalCoordinator:
        return self._signals

    def serve(self) -> int:
        """
        Run the loop until a shutdown signal arrives.

        Returns:
            INTERRUPTED_STATUS once interrupted; the listener is closed by then
        """
        self._signals.install()
        try:
            self.run()
        except KeyboardInterrupt:
            signum = self._signals.shutdown_signal or signal.SIGINT
            self._lg.warning(
                "caught signal, shutting down",
                extra={"signal": signal.Signals(signum).name, "children": len(self._registry)},
            )
        finally:
            self._listener.close()
            self._signals.restore()
        return INTERRUPTED_STATUS

    def run(self) -> None:
        """Wait for and dispatch events forever."""
        with selectors.DefaultSelector() as selector:
            selector.register(self._listener, selectors.EVENT_READ, self.accept_one)
            selector.register(self._signals, selectors.EVENT_READ, self._on_wakeup)
            self._lg.info("now accepting connections")

            while True:
                for key, _ in selector.select():
                    key.data()

    def _on_wakeup(self) -> None:
        received = self._signals.drain()
        self._lg.trace("woken by signals", extra={"signals": sorted(received)})
        self.reap_children()

    def accept_one(self) -> int | None:
        """
        Accept one connection and launch its process.

        Failures are logged and never propagate: a failed accept or launch
        must not end the service.

        Returns:
            pid of the launched process, or None if nothing was launched
        """
        while True:
            try:
                sock, peer = self._listener.accept()
                break
            except InterruptedError:
                continue
            except BlockingIOError:
                # Connection went away between select() and accept()
                return None
            except OSError as e:
                self._lg.error("accept", extra={"error": e.strerror or str(e)})
                return None

        connection = Connection(sock, peer, self._passthrough)
        try:
            pid = self._launch(connection)
        finally:
            sock.close()

        if pid is not None:
            self._lg.info("connected", extra={"peer": peer.display, "pid": pid})
        return pid

    def _launch(self, connection: Connection) -> int | None:
        try:
            pid = self._launcher.launch(connection)
        except LaunchError as e:
            self._lg.error(
                "launch failed", extra={"peer": connection.peer.display, "exception": e}
            )
            return None

        self._registry.add(LaunchedProcess(pid=pid, peer=connection.peer))
        return pid

    def reap_children(self) -> list[int]:
        """
        Collect every exited child and drop its registry entry.

        Returns:
            pids reaped by this call
        """
        reaped = []
        while True:
            try:
                pid, status = os.waitpid(-1, os.WNOHANG)
            except ChildProcessError:
                break
            if pid == 0:
                break
            self._child_exited(pid, status)
            reaped.append(pid)
        return reaped

    def _child_exited(self, pid: int, status: int) -> None:
        child = self._registry.pop(pid)
        if child is None:
            self._lg.warning("unknown connection lost", extra={"pid": pid})
            return

        self._lg.info(
            "connection lost",
            extra={
                "peer": child.peer.display,
                "pid": pid,
                "status": os.waitstatus_to_exitcode(status),
                "after": f"{child.uptime():.3f}s",
            },
        )
