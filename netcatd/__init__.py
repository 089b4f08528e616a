"""
netcatd - launch a program for every connection to a TCP port.

The connection socket can be handed to the program as its standard input,
output or error stream, and the listening socket can come from systemd
socket activation.
"""

from importlib.metadata import PackageNotFoundError, version

from .exceptions import ConfigError, LaunchError, NetcatdError, ServerError

try:
    __version__ = version("netcatd")
except PackageNotFoundError:
    # Package not installed (running from source)
    __version__ = "0.1.0-dev"

__all__ = [
    "ConfigError",
    "LaunchError",
    "NetcatdError",
    "ServerError",
    "__version__",
]
