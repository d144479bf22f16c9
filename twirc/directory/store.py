"""Thread-safe channel/user directory.

The reader loop is the only writer; host code on other threads may read at
any time. Every access goes through one re-entrant lock, which hosts can also
hold (``with directory.lock:``) to read several records consistently.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from .models import Channel, User, irc_lower


class ChannelDirectory:
    def __init__(self, server: str | None = None) -> None:
        self.lock = threading.RLock()
        self.server = server
        self._channels: dict[str, Channel] = {}

    @contextmanager
    def locked(self) -> Iterator[ChannelDirectory]:
        with self.lock:
            yield self

    # Channels -------------------------------------------------------------

    def add_channel(self, name: str) -> Channel:
        """Return the channel record, creating it on first use."""
        with self.lock:
            key = irc_lower(name)
            channel = self._channels.get(key)
            if channel is None:
                channel = Channel(name=name, server=self.server)
                self._channels[key] = channel
            return channel

    def get_channel(self, name: str) -> Channel | None:
        with self.lock:
            return self._channels.get(irc_lower(name))

    def remove_channel(self, name: str) -> Channel | None:
        with self.lock:
            return self._channels.pop(irc_lower(name), None)

    def clear(self) -> None:
        with self.lock:
            self._channels.clear()

    def channel_names(self) -> list[str]:
        with self.lock:
            return [c.name for c in self._channels.values()]

    def channels(self) -> list[Channel]:
        with self.lock:
            return list(self._channels.values())

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        with self.lock:
            return irc_lower(name) in self._channels

    def __len__(self) -> int:
        with self.lock:
            return len(self._channels)

    # Users ----------------------------------------------------------------

    def users(self, channel: str) -> list[User] | None:
        """Sorted member list, or None for a channel we are not in."""
        with self.lock:
            chan = self._channels.get(irc_lower(channel))
            return None if chan is None else chan.user_list()

    def get_user(self, channel: str, nick: str) -> User | None:
        with self.lock:
            chan = self._channels.get(irc_lower(channel))
            return None if chan is None else chan.get_user(nick)

    def resolve_user(self, channel: Channel | None, nick: str) -> User:
        """Existing member of ``channel`` or a fresh, unattached record."""
        with self.lock:
            if channel is not None:
                user = channel.get_user(nick)
                if user is not None:
                    return user
                return User(nick=nick, channel=channel.name)
            return User(nick=nick)

    def add_user(self, channel: str, user: User) -> bool:
        with self.lock:
            chan = self._channels.get(irc_lower(channel))
            if chan is None:
                return False
            user.channel = chan.name
            chan.add_user(user)
            return True

    def remove_user(self, channel: str, nick: str) -> User | None:
        with self.lock:
            chan = self._channels.get(irc_lower(channel))
            if chan is None:
                return None
            return chan.remove_user(nick)

    def remove_user_everywhere(self, nick: str) -> int:
        """Drop ``nick`` from every channel; returns how many held it."""
        with self.lock:
            return sum(
                1 for chan in self._channels.values() if chan.remove_user(nick)
            )

    def rename_user(self, old_nick: str, new_nick: str) -> int:
        """Re-key ``old_nick`` as ``new_nick`` in every channel it is in."""
        renamed = 0
        with self.lock:
            for chan in self._channels.values():
                user = chan.remove_user(old_nick)
                if user is None:
                    continue
                user.rename(new_nick)
                chan.add_user(user)
                renamed += 1
        return renamed

    def set_user_flags(
        self,
        channel: str,
        nick: str,
        *,
        op: bool | None = None,
        voice: bool | None = None,
    ) -> User | None:
        with self.lock:
            user = self.get_user(channel, nick)
            if user is None:
                return None
            if op is not None:
                user.op = op
            if voice is not None:
                user.voice = voice
            return user

    def note_message(self, channel: str, nick: str, message: str) -> None:
        """Record a channel message: clears AFK and remembers the text."""
        with self.lock:
            user = self.get_user(channel, nick)
            if user is None:
                return
            user.previous_message = message
            user.afk = False
