"""
Socket address helpers.

Converts between bind literals, socket addresses and the display text used
in log lines and the %a placeholder.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Any

from ..exceptions import ConfigError


def display_host(host: str, family: int) -> str:
    """
    Return host as display text, bracketing IPv6 addresses.

    Examples:
        >>> display_host("::1", socket.AF_INET6)
        '[::1]'
        >>> display_host("203.0.113.5", socket.AF_INET)
        '203.0.113.5'
    """
    if family == socket.AF_INET6:
        return f"[{host}]"
    return host


@dataclass(frozen=True)
class PeerAddress:
    """Resolved address of one end of a connection."""

    host: str
    port: int
    family: int

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: Any) -> PeerAddress:
        """
        Build from the address tuple returned by accept() or getsockname().

        IPv4 addresses are (host, port), IPv6 addresses (host, port, flowinfo,
        scope_id). Anything else (e.g. an activated AF_UNIX socket) keeps its
        raw text with port 0.
        """
        if family in (socket.AF_INET, socket.AF_INET6):
            return cls(host=sockaddr[0], port=sockaddr[1], family=family)
        return cls(host=str(sockaddr or "unnamed"), port=0, family=family)

    @property
    def display(self) -> str:
        """Host text as substituted for %a."""
        return display_host(self.host, self.family)

    def __str__(self) -> str:
        if self.family in (socket.AF_INET, socket.AF_INET6):
            return f"{self.display}:{self.port}"
        return self.display


def parse_bind_address(literal: str | None, ipv6: bool = False) -> tuple[int, str]:
    """
    Select the address family and host to bind to.

    A bracketed literal forces IPv6 and has its brackets stripped. An empty
    literal binds the wildcard address of the selected family.

    Args:
        literal: Address literal ("127.0.0.1", "[::1]") or None
        ipv6: Force IPv6 even for an unbracketed literal

    Returns:
        Tuple of (address family, host text)

    Raises:
        ConfigError: If the literal is not a valid address of the selected family

    Examples:
        >>> parse_bind_address("[::1]")
        (<AddressFamily.AF_INET6: 10>, '::1')
        >>> parse_bind_address(None)
        (<AddressFamily.AF_INET: 2>, '0.0.0.0')
    """
    host = (literal or "").strip()
    if len(host) >= 2 and host.startswith("[") and host.endswith("]"):
        ipv6 = True
        host = host[1:-1]

    family = socket.AF_INET6 if ipv6 else socket.AF_INET
    if not host:
        return family, "::" if ipv6 else "0.0.0.0"

    try:
        socket.inet_pton(family, host)
    except (OSError, ValueError) as e:
        raise ConfigError(
            "invalid bind address",
            address=literal,
            family="ipv6" if ipv6 else "ipv4",
        ) from e
    return family, host
