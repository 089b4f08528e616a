"""
Socket activation handoff.

A service manager that pre-binds the listening socket starts us with
LISTEN_PID set to our pid and LISTEN_FDS set to the number of descriptors it
passed, starting at descriptor 3.
"""

import os
from collections.abc import MutableMapping

from .exceptions import ActivationError

# The first passed file descriptor is fd 3
SD_LISTEN_FDS_START = 3

LISTEN_PID = "LISTEN_PID"
LISTEN_FDS = "LISTEN_FDS"


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def listen_fds(
    unset_environment: bool = True,
    environ: MutableMapping[str, str] | None = None,
) -> int:
    """
    Return how many descriptors were passed by socket activation.

    The handoff is ignored (0 is returned) when LISTEN_PID is missing or names
    another process, or when LISTEN_FDS is missing or unparsable. Passed
    descriptors are marked close-on-exec so they never leak into children.

    Args:
        unset_environment: Remove LISTEN_PID and LISTEN_FDS afterwards so
            launched processes never see stale activation state
        environ: Environment mapping (default: os.environ)

    Returns:
        Number of descriptors found at SD_LISTEN_FDS_START onwards

    Raises:
        ActivationError: If a passed descriptor is not open
    """
    environ = os.environ if environ is None else environ

    try:
        pid = _parse_int(environ.get(LISTEN_PID))
        if pid is None or pid != os.getpid():
            return 0

        count = _parse_int(environ.get(LISTEN_FDS))
        if count is None or count < 0:
            return 0

        for fd in range(SD_LISTEN_FDS_START, SD_LISTEN_FDS_START + count):
            try:
                os.set_inheritable(fd, False)
            except OSError as e:
                raise ActivationError(
                    "activation descriptor is not open", fd=fd, error=e.strerror
                ) from e

        return count
    finally:
        if unset_environment:
            environ.pop(LISTEN_PID, None)
            environ.pop(LISTEN_FDS, None)
