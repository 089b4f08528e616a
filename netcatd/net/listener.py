"""
Listening socket provisioning.

Produces the one descriptor the acceptor waits on, either by binding it
directly or by taking it over from socket activation. Both paths log the
bound address as queried from the descriptor itself.

Example Usage:
    listener = provision(config, lg)
    lg.info("bound", extra={"address": listener.display})
    conn, peer = listener.accept()
"""

from __future__ import annotations

import socket
from typing import TYPE_CHECKING

from .activation import SD_LISTEN_FDS_START, listen_fds
from .address import PeerAddress, parse_bind_address
from .exceptions import ActivationError, SocketSetupError

if TYPE_CHECKING:
    from ..config import ServerConfig
    from ..log import Logger


class Listener:
    """
    Ready-to-accept listening socket.

    The socket is close-on-exec and non-blocking: the acceptor only calls
    accept() after the selector reported it readable, and a connection that
    vanished in between must not block the loop.
    """

    def __init__(self, sock: socket.socket, activated: bool = False) -> None:
        sock.set_inheritable(False)
        sock.setblocking(False)
        self._sock = sock
        self._activated = activated
        self._closed = False
        self.address = PeerAddress.from_sockaddr(sock.family, sock.getsockname())

    @property
    def sock(self) -> socket.socket:
        return self._sock

    @property
    def activated(self) -> bool:
        """Whether the socket came from socket activation."""
        return self._activated

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def display(self) -> str:
        """Bound address as host:port, IPv6 bracketed."""
        return str(self.address)

    def fileno(self) -> int:
        return self._sock.fileno()

    def accept(self) -> tuple[socket.socket, PeerAddress]:
        """
        Accept one pending connection.

        The returned socket is blocking regardless of the listener's mode,
        since it becomes a child's standard stream.

        Raises:
            OSError: Propagated from accept(), including BlockingIOError and
                InterruptedError
        """
        conn, sockaddr = self._sock.accept()
        conn.setblocking(True)
        return conn, PeerAddress.from_sockaddr(conn.family, sockaddr)

    def close(self) -> None:
        """Close the listening socket. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._sock.close()

    def __enter__(self) -> Listener:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def bind_listener(config: ServerConfig) -> Listener:
    """
    Create, bind and listen on a socket from configuration.

    Raises:
        ConfigError: If the bind literal is invalid
        SocketSetupError: If socket(), bind() or listen() fails
    """
    family, host = parse_bind_address(config.bind, config.ipv6)

    try:
        sock = socket.socket(family, socket.SOCK_STREAM)
    except OSError as e:
        raise SocketSetupError("socket", e) from e

    try:
        sock.set_inheritable(False)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, config.port))
        except OSError as e:
            raise SocketSetupError("bind", e) from e
        try:
            sock.listen(config.backlog)
        except OSError as e:
            raise SocketSetupError("listen", e) from e
    except BaseException:
        sock.close()
        raise

    return Listener(sock)


def activation_listener(unset_environment: bool = True) -> Listener:
    """
    Take over the listening socket passed by socket activation.

    Raises:
        ActivationError: If not exactly one descriptor was passed
    """
    count = listen_fds(unset_environment)
    if count < 1:
        raise ActivationError("no descriptors received, check activation configuration")
    if count > 1:
        raise ActivationError("too many descriptors received", count=count)

    try:
        sock = socket.socket(fileno=SD_LISTEN_FDS_START)
    except OSError as e:
        raise ActivationError(
            "activation descriptor is not a socket", fd=SD_LISTEN_FDS_START
        ) from e
    return Listener(sock, activated=True)


def provision(config: ServerConfig, lg: Logger) -> Listener:
    """
    Produce the listening socket selected by configuration.

    Args:
        config: Server configuration
        lg: Logger for provisioning progress

    Returns:
        Listener ready to accept connections

    Raises:
        ConfigError: If the bind literal is invalid
        SocketSetupError: If the direct-bind path fails
        ActivationError: If the activation handoff is unusable
    """
    if config.systemd:
        lg.info("getting socket from activation...")
        listener = activation_listener()
    else:
        lg.info("opening listening socket...")
        listener = bind_listener(config)

    lg.info(
        "bound",
        extra={"address": listener.display, "activated": listener.activated},
    )
    return listener
