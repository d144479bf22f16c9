"""Channel and user records kept by the directory."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from ..constants import AFK_THRESHOLD_SECONDS, KNOWN_BOT_ACCOUNTS


def irc_lower(text: str) -> str:
    return text.lower()


def is_bot(nick: str) -> bool:
    """Return True for automated accounts that are never considered AFK."""
    return irc_lower(nick) in KNOWN_BOT_ACCOUNTS


@dataclass(eq=False)
class User:
    """A nick as seen in one channel (or channel-less, for private messages).

    ``nick`` keeps the server's casing; ``key`` is the canonical form used in
    membership maps. Tag attributes are filled opportunistically from tagged
    lines and keep their defaults until a server sends them.
    """

    nick: str
    channel: str | None = None
    last_message: float = field(default_factory=time.time)
    afk: bool = False
    op: bool = False
    voice: bool = False
    previous_message: str = ""
    display_name: str = ""
    color: str = ""
    subscriber: bool = False
    turbo: bool = False
    mod: bool = False
    user_type: str = ""
    emote_sets: str = ""
    emotes: str = ""
    badges: str = ""
    msg_id: str = ""
    message_id: str = ""
    system_msg: str = ""
    user_login: str = ""
    user_id: int = 0
    room_id: int = 0
    consecutive_months: int = 0
    bits: int = 0
    target_user_id: int = 0
    tmi_sent_ts: int = 0

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.nick

    @property
    def key(self) -> str:
        return irc_lower(self.nick)

    def rename(self, new_nick: str) -> None:
        if self.display_name == self.nick:
            self.display_name = new_nick
        self.nick = new_nick

    def touch(self, now: float | None = None) -> None:
        self.last_message = time.time() if now is None else now

    def is_afk(self, now: float | None = None) -> bool:
        """Explicitly marked, or idle past the threshold; bots never are."""
        if is_bot(self.nick):
            return False
        if self.afk:
            return True
        now = time.time() if now is None else now
        self.afk = now - self.last_message > AFK_THRESHOLD_SECONDS
        return self.afk

    @property
    def prefix(self) -> str:
        if self.op:
            return "@"
        if self.voice:
            return "+"
        return ""

    def __lt__(self, other: User) -> bool:
        return self.key < other.key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self.key == other.key and self.channel == other.channel

    def __hash__(self) -> int:
        return hash((self.key, self.channel))

    def __str__(self) -> str:
        return self.prefix + self.nick


@dataclass(eq=False)
class Channel:
    """Room state plus the membership map keyed by lowercased nick."""

    name: str
    server: str | None = None
    broadcaster_language: str = ""
    r9k: bool = False
    slow: int = 0
    subs_only: bool = False
    emote_only: bool = False
    room_id: int = 0
    emotes: list[str] = field(default_factory=list)
    users: dict[str, User] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return irc_lower(self.name)

    @property
    def is_slow(self) -> bool:
        return self.slow > 0

    def get_user(self, nick: str) -> User | None:
        return self.users.get(irc_lower(nick))

    def add_user(self, user: User) -> None:
        self.users[user.key] = user

    def remove_user(self, nick: str) -> User | None:
        return self.users.pop(irc_lower(nick), None)

    def contains_user(self, nick: str) -> bool:
        return irc_lower(nick) in self.users

    def user_list(self) -> list[User]:
        return sorted(self.users.values())

    @property
    def user_count(self) -> int:
        return len(self.users)

    def set_emotes(self, emotes: list[str]) -> None:
        self.emotes = list(emotes)

    def add_emote(self, emote: str) -> None:
        self.emotes.append(emote)

    def remove_emote(self, emote: str) -> None:
        if emote in self.emotes:
            self.emotes.remove(emote)

    def is_emote(self, emote: str) -> bool:
        return emote in self.emotes

    def __iter__(self):
        return iter(self.user_list())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Channel):
            return NotImplemented
        return self.key == other.key and self.server == other.server

    def __hash__(self) -> int:
        return hash((self.key, self.server))

    def __str__(self) -> str:
        return self.name
