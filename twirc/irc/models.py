"""Shared IRC data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


class ConnectionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    HANDSHAKING = auto()
    CONNECTED = auto()


class OutgoingKind(Enum):
    """Admission class of a queued line.

    CONTROL entries are always admitted; CHAT entries count against the
    queue's capacity and are dropped once it is reached.
    """

    CONTROL = auto()
    CHAT = auto()


@dataclass(frozen=True, slots=True)
class Source:
    """Who sent a line: ``nick!login@hostname`` split into its parts."""

    nick: str = ""
    login: str = ""
    hostname: str = ""

    @property
    def is_user(self) -> bool:
        return bool(self.login or self.hostname)

    def __str__(self) -> str:
        if self.is_user:
            return f"{self.nick}!{self.login}@{self.hostname}"
        return self.nick


@dataclass(slots=True)
class IRCLine:
    """One tokenized protocol line.

    ``params`` holds the middle parameters; ``trailing`` is the text after
    the first `` :`` (None when the line has none). ``body`` is everything
    after the command token, verbatim, as numeric handlers report it.
    """

    raw: str
    command: str
    source: Source | None = None
    params: list[str] = field(default_factory=list)
    trailing: str | None = None
    tags: dict[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def args(self) -> list[str]:
        if self.trailing is None:
            return list(self.params)
        return [*self.params, self.trailing]

    @property
    def target(self) -> str:
        """First parameter, falling back to the trailing text (``JOIN :#chan``)."""
        if self.params:
            return self.params[0]
        return self.trailing or ""

    @property
    def is_numeric(self) -> bool:
        return len(self.command) == 3 and self.command.isdigit()

    @property
    def code(self) -> int:
        return int(self.command) if self.is_numeric else -1

    def arg(self, index: int, default: str = "") -> str:
        args = self.args
        return args[index] if 0 <= index < len(args) else default
