"""Listening socket provisioning and address helpers."""

from .activation import SD_LISTEN_FDS_START, listen_fds
from .address import PeerAddress, display_host, parse_bind_address
from .exceptions import ActivationError, SocketSetupError
from .listener import Listener, activation_listener, bind_listener, provision

__all__ = [
    # Provisioning
    "Listener",
    "provision",
    "bind_listener",
    "activation_listener",
    "listen_fds",
    "SD_LISTEN_FDS_START",
    # Addresses
    "PeerAddress",
    "display_host",
    "parse_bind_address",
    # Exceptions
    "ActivationError",
    "SocketSetupError",
]
