"""
Registry of live child processes.

Maps pid to the connection it serves from successful launch until the child
is reaped. Only the acceptor loop touches it; signal handlers never do.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass, field

from ..net.address import PeerAddress


@dataclass(frozen=True)
class LaunchedProcess:
    """A child serving one connection."""

    pid: int
    peer: PeerAddress
    started: float = field(default_factory=time.monotonic)

    def uptime(self) -> float:
        """Seconds since launch."""
        return time.monotonic() - self.started


class ChildRegistry:
    """Mapping from pid to LaunchedProcess with unique keys."""

    def __init__(self) -> None:
        self._children: dict[int, LaunchedProcess] = {}

    def add(self, child: LaunchedProcess) -> None:
        """
        Record a launched child.

        Raises:
            ValueError: If the pid is already registered
        """
        if child.pid in self._children:
            raise ValueError(f"pid {child.pid} is already registered")
        self._children[child.pid] = child

    def pop(self, pid: int) -> LaunchedProcess | None:
        """Remove and return the entry for pid, or None if unknown."""
        return self._children.pop(pid, None)

    def get(self, pid: int) -> LaunchedProcess | None:
        return self._children.get(pid)

    def __contains__(self, pid: object) -> bool:
        return pid in self._children

    def __len__(self) -> int:
        return len(self._children)

    def __iter__(self) -> Iterator[LaunchedProcess]:
        return iter(list(self._children.values()))
