"""
Custom exceptions for the netcatd.net package.

Both are fatal at startup: the CLI reports them and exits with status 1.
"""

from ..exceptions import ServerError


class SocketSetupError(ServerError):
    """Raised when socket(), bind() or listen() fails."""

    def __init__(self, operation: str, error: OSError) -> None:
        self.operation = operation
        self.error = error
        super().__init__(f"{operation}: {error.strerror or error}", errno=error.errno)


class ActivationError(ServerError):
    """Raised when socket activation did not hand over exactly one descriptor."""

    pass
