"""Numeric reply handling (LIST, TOPIC/TOPICINFO, NAMES)."""

from __future__ import annotations

import threading
from collections.abc import Callable

from ..directory import ChannelDirectory, User
from .models import IRCLine

RPL_WELCOME = 1
RPL_MYINFO = 4
RPL_LIST = 322
RPL_TOPIC = 332
RPL_TOPICINFO = 333
RPL_NAMREPLY = 353
RPL_ENDOFNAMES = 366
ERR_NICKNAMEINUSE = 433
ERR_TARGETTOOFAST = 439

OP_PREFIX = "@"
VOICE_PREFIX = "+"
STATUS_PREFIXES = "@+%&~."


def split_status(token: str) -> tuple[str, bool, bool]:
    """``"@+alice"`` -> ``("alice", op, voice)``."""
    nick = token.lstrip(STATUS_PREFIXES)
    status = token[: len(token) - len(nick)]
    return nick, OP_PREFIX in status, VOICE_PREFIX in status


class NumericReplyHandler:
    """Turns multi-line numeric replies into single events.

    RPL_TOPIC is cached per channel until RPL_TOPICINFO supplies the setter
    and timestamp; a topic never followed by TOPICINFO is never emitted.
    """

    def __init__(
        self, directory: ChannelDirectory, emit: Callable[..., None]
    ) -> None:
        self.directory = directory
        self.emit = emit
        self._topics: dict[str, str] = {}
        self._lock = threading.Lock()
        self._handlers: dict[int, Callable[[IRCLine], None]] = {
            RPL_LIST: self._on_list,
            RPL_TOPIC: self._on_topic,
            RPL_TOPICINFO: self._on_topic_info,
            RPL_NAMREPLY: self._on_names,
            RPL_ENDOFNAMES: self._on_end_of_names,
        }

    def handle(self, line: IRCLine) -> None:
        handler = self._handlers.get(line.code)
        if handler is not None:
            handler(line)
        self.emit("on_server_response", line.code, line.body)

    def reset(self) -> None:
        with self._lock:
            self._topics.clear()

    def _on_list(self, line: IRCLine) -> None:
        # <me> <channel> <count> :<topic>
        channel = line.arg(1)
        try:
            user_count = int(line.arg(2))
        except ValueError:
            user_count = 0
        topic = line.trailing if line.trailing is not None and len(line.params) >= 3 else ""
        self.emit("on_channel_info", channel, user_count, topic)

    def _on_topic(self, line: IRCLine) -> None:
        # <me> <channel> :<topic>
        with self._lock:
            self._topics[line.arg(1).lower()] = line.trailing or ""

    def _on_topic_info(self, line: IRCLine) -> None:
        # <me> <channel> <setter> <unix seconds>
        channel = line.arg(1)
        with self._lock:
            topic = self._topics.pop(channel.lower(), None)
        if topic is None:
            return
        try:
            date = int(line.arg(3)) * 1000
        except ValueError:
            date = 0
        self.emit("on_topic", channel, topic, line.arg(2), date, False)

    def _on_names(self, line: IRCLine) -> None:
        # <me> <=|*|@> <channel> :<nick> <nick> ...
        channel = line.params[-1] if line.params else ""
        with self.directory.lock:
            if channel not in self.directory:
                return
            for token in (line.trailing or "").split():
                nick, op, voice = split_status(token)
                if not nick:
                    continue
                user = self.directory.get_user(channel, nick)
                if user is None:
                    user = User(nick=nick)
                    self.directory.add_user(channel, user)
                user.op = op
                user.voice = voice

    def _on_end_of_names(self, line: IRCLine) -> None:
        # <me> <channel> :End of /NAMES list.
        channel = line.arg(1)
        users = self.directory.users(channel) or []
        self.emit("on_user_list", channel, users)
