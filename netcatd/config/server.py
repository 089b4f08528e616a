"""
Server configuration.

ServerConfig is built once at startup from the merged YAML, environment and
command-line values and never changes afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import ConfigError
from .constants import DEFAULT_BACKLOG, DEFAULT_PORT

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")


def _to_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str) and value.strip().lower() in _TRUE + _FALSE:
        return value.strip().lower() in _TRUE
    raise ConfigError("expected a boolean", key=name, value=value)


def _to_int(name: str, value: Any, low: int, high: int) -> int:
    if isinstance(value, bool):
        raise ConfigError("expected an integer", key=name, value=value)
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError("expected an integer", key=name, value=value) from e
    if not low <= number <= high:
        raise ConfigError(f"must be between {low} and {high}", key=name, value=number)
    return number


@dataclass(frozen=True)
class Passthrough:
    """Which standard streams of a child are replaced with the connection socket."""

    stdin: bool = False
    stdout: bool = False
    stderr: bool = False

    def streams(self) -> Iterator[int]:
        """Yield the selected standard descriptor numbers in order."""
        for fd, selected in enumerate((self.stdin, self.stdout, self.stderr)):
            if selected:
                yield fd

    def __str__(self) -> str:
        names = [n for n in ("stdin", "stdout", "stderr") if getattr(self, n)]
        return ",".join(names) or "none"


@dataclass(frozen=True)
class ServerConfig:
    """
    Immutable server configuration.

    Attributes:
        exec: Raw command template string, shell-quoted
        bind: Address literal (dotted IPv4 or bracketed IPv6), None for wildcard
        port: TCP port for the direct-bind path
        ipv6: Force IPv6 (also inferred from a bracketed bind literal)
        systemd: Take the listening socket from socket activation
        passthrough: Streams wired to the connection socket
        backlog: listen() backlog
    """

    exec: str
    bind: str | None = None
    port: int = DEFAULT_PORT
    ipv6: bool = False
    systemd: bool = False
    passthrough: Passthrough = field(default_factory=Passthrough)
    backlog: int = DEFAULT_BACKLOG

    @classmethod
    def from_config(
        cls,
        config_dict: dict[str, Any],
        section: str = "server",
        overrides: dict[str, Any] | None = None,
    ) -> ServerConfig:
        """
        Create ServerConfig from a configuration dictionary.

        Args:
            config_dict: Configuration dictionary (e.g., from load_config)
            section: Configuration section to use (default: "server")
            overrides: Values that win over the section (command-line flags);
                None values are ignored

        Returns:
            ServerConfig instance

        Raises:
            ConfigError: If a value has the wrong type or "exec" is missing
        """
        current = config_dict.get(section) or {}
        if not isinstance(current, dict):
            raise ConfigError("configuration section must be a mapping", section=section)

        values = dict(current)
        values.update({k: v for k, v in (overrides or {}).items() if v is not None})

        command = values.get("exec")
        if command is None or not str(command).strip():
            raise ConfigError("missing required value", key="exec")

        bind = values.get("bind")
        bind = None if bind is None or str(bind).strip() == "" else str(bind).strip()

        return cls(
            exec=str(command),
            bind=bind,
            port=_to_int("port", values.get("port", DEFAULT_PORT), 0, 65535),
            ipv6=_to_bool("ipv6", values.get("ipv6", False)),
            systemd=_to_bool("systemd", values.get("systemd", False)),
            passthrough=Passthrough(
                stdin=_to_bool("stdin", values.get("stdin", False)),
                stdout=_to_bool("stdout", values.get("stdout", False)),
                stderr=_to_bool("stderr", values.get("stderr", False)),
            ),
            backlog=_to_int("backlog", values.get("backlog", DEFAULT_BACKLOG), 1, 65535),
        )
