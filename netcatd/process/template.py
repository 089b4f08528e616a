"""
Command template parsing and per-connection rendering.

The configured command line is split once at startup, shell style. Each
connection renders the tokens into a fresh argument vector, substituting:

    %a  peer address (IPv6 in brackets, e.g. [::1])
    %p  pid of the launched process

Any other %x sequence is kept as is.
"""

from __future__ import annotations

import os
import re
import shlex
from collections.abc import Iterator, Sequence

from ..exceptions import ConfigError
from ..net.address import PeerAddress

# A percent sign and the one (non-percent) character after it
_PLACEHOLDER = re.compile(r"%([^%])")


def render_token(token: str, peer: str, pid: int) -> str:
    """
    Substitute placeholders in one token, left to right, in a single pass.

    Args:
        token: Template token
        peer: Peer address display text
        pid: Process id for %p

    Returns:
        Newly built string; substituted text is never re-scanned

    Examples:
        >>> render_token("%a:%p", "[::1]", 42)
        '[::1]:42'
        >>> render_token("100%z", "[::1]", 42)
        '100%z'
    """

    def expand(match: re.Match[str]) -> str:
        key = match.group(1)
        if key == "a":
            return peer
        if key == "p":
            return str(pid)
        return match.group(0)

    return _PLACEHOLDER.sub(expand, token)


class CommandTemplate:
    """
    Ordered argument tokens of the command to launch per connection.

    Example:
        >>> tpl = CommandTemplate.parse("/bin/echo hello %a %p")
        >>> tpl.render("203.0.113.5", pid=4321)
        ['/bin/echo', 'hello', '203.0.113.5', '4321']
    """

    def __init__(self, tokens: Sequence[str]) -> None:
        if not tokens:
            raise ConfigError("command template is empty")
        self._tokens = tuple(tokens)

    @classmethod
    def parse(cls, text: str) -> CommandTemplate:
        """
        Split a command string like a POSIX shell word split.

        Single and double quotes group words and backslash escapes the next
        character; no other shell syntax (variables, globbing, comments) is
        interpreted.

        Raises:
            ConfigError: If quoting is unbalanced or the result is empty
        """
        try:
            tokens = shlex.split(text)
        except ValueError as e:
            raise ConfigError("cannot parse command template", template=text, error=str(e)) from e
        return cls(tokens)

    def render(self, peer: PeerAddress | str, pid: int | None = None) -> list[str]:
        """
        Render the argument vector for one connection.

        Args:
            peer: Peer address (or its display text)
            pid: Process id for %p (default: the calling process, which is the
                forked child when called from the launcher)

        Returns:
            A new list; no element is shared with other renders
        """
        peer_text = peer.display if isinstance(peer, PeerAddress) else peer
        pid = os.getpid() if pid is None else pid
        return [render_token(token, peer_text, pid) for token in self._tokens]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __repr__(self) -> str:
        return f"CommandTemplate({list(self._tokens)!r})"
