"""
Tests for address parsing and peer display text.
"""

import socket

import pytest

from netcatd.exceptions import ConfigError
from netcatd.net import PeerAddress, display_host, parse_bind_address

# =============================================================================
# Test display_host / PeerAddress
# =============================================================================


@pytest.mark.unit
class TestPeerAddress:
    def test_ipv4_not_bracketed(self):
        assert display_host("203.0.113.5", socket.AF_INET) == "203.0.113.5"

    def test_ipv6_bracketed(self):
        assert display_host("::1", socket.AF_INET6) == "[::1]"

    def test_from_ipv4_sockaddr(self):
        peer = PeerAddress.from_sockaddr(socket.AF_INET, ("198.51.100.7", 40000))

        assert peer.host == "198.51.100.7"
        assert peer.port == 40000
        assert peer.display == "198.51.100.7"
        assert str(peer) == "198.51.100.7:40000"

    def test_from_ipv6_sockaddr(self):
        peer = PeerAddress.from_sockaddr(socket.AF_INET6, ("::1", 5000, 0, 0))

        assert peer.display == "[::1]"
        assert str(peer) == "[::1]:5000"

    def test_ipv4_mapped_ipv6_keeps_brackets(self):
        peer = PeerAddress.from_sockaddr(socket.AF_INET6, ("::ffff:127.0.0.1", 1, 0, 0))
        assert peer.display == "[::ffff:127.0.0.1]"

    def test_unix_socket_name(self):
        peer = PeerAddress.from_sockaddr(socket.AF_UNIX, "/run/netcatd.sock")

        assert peer.display == "/run/netcatd.sock"
        assert peer.port == 0
        assert str(peer) == "/run/netcatd.sock"

    def test_unnamed_unix_socket(self):
        assert PeerAddress.from_sockaddr(socket.AF_UNIX, "").display == "unnamed"


# =============================================================================
# Test parse_bind_address
# =============================================================================


@pytest.mark.unit
class TestParseBindAddress:
    def test_ipv4_literal(self):
        assert parse_bind_address("127.0.0.1") == (socket.AF_INET, "127.0.0.1")

    def test_bracketed_literal_forces_ipv6(self):
        assert parse_bind_address("[::1]") == (socket.AF_INET6, "::1")

    def test_ipv6_flag_with_plain_literal(self):
        assert parse_bind_address("::1", ipv6=True) == (socket.AF_INET6, "::1")

    def test_wildcards(self):
        assert parse_bind_address(None) == (socket.AF_INET, "0.0.0.0")
        assert parse_bind_address("", ipv6=True) == (socket.AF_INET6, "::")
        assert parse_bind_address("[]") == (socket.AF_INET6, "::")

    @pytest.mark.parametrize(
        "literal,ipv6",
        [
            ("localhost", False),
            ("256.0.0.1", False),
            ("::1", False),
            ("127.0.0.1", True),
            ("[127.0.0.1]", False),
            ("[::1", False),
        ],
    )
    def test_invalid_literal(self, literal, ipv6):
        with pytest.raises(ConfigError, match="invalid bind address") as exc_info:
            parse_bind_address(literal, ipv6)

        assert exc_info.value.context["address"] == literal
