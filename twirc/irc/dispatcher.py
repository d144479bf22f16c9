"""Line dispatch: parse, update the directory, fire callbacks."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..constants import TAG_INT_SENTINEL
from ..directory import Channel, ChannelDirectory, User, irc_lower
from ..logs.logger import logger
from .modes import ModeDecoder
from .models import IRCLine, Source
from .numerics import NumericReplyHandler
from .parser import ctcp_payload, format_ctcp, is_channel_name, parse_irc_line
from .tags import CHANNEL_TAG_COMMANDS, apply_tags, integer, user_table_for

if TYPE_CHECKING:  # pragma: no cover
    from ..session import IRCSession

Handler = Callable[[IRCLine, "Channel | None", User, Source], None]

# Tagged lines describing the session's own user rather than the prefix.
SELF_STATE_COMMANDS = frozenset({"USERSTATE", "GLOBALUSERSTATE"})


class IRCDispatcher:
    """Runs every inbound line through parse -> directory -> callbacks.

    Called only from the reader thread (or the handshake on the connecting
    thread), so lines are handled strictly one at a time and in order.
    """

    def __init__(self, client: IRCSession, directory: ChannelDirectory):
        self.client = client
        self.directory = directory
        self.numerics = NumericReplyHandler(directory, self.emit)
        self.modes = ModeDecoder(directory, self.emit)
        self._handlers: dict[str, Handler] = {
            "PRIVMSG": self._handle_privmsg,
            "WHISPER": self._handle_whisper,
            "HOSTTARGET": self._handle_host_target,
            "JOIN": self._handle_join,
            "PART": self._handle_part,
            "NICK": self._handle_nick,
            "QUIT": self._handle_quit,
            "KICK": self._handle_kick,
            "NOTICE": self._handle_notice,
            "MODE": self._handle_mode,
            "TOPIC": self._handle_topic,
            "INVITE": self._handle_invite,
            "CLEARCHAT": self._handle_clear_chat,
            "ROOMSTATE": self._handle_room_state,
            "USERSTATE": self._handle_user_state,
            "GLOBALUSERSTATE": self._handle_global_user_state,
            "USERNOTICE": self._handle_user_notice,
        }
        self._ctcp_replies: dict[str, Callable[[], str]] = {
            "VERSION": lambda: self.client.config.version,
            "TIME": time.ctime,
            "FINGER": lambda: self.client.config.finger,
        }

    # Entry point -----------------------------------------------------------

    def dispatch(self, raw_line: str) -> IRCLine:
        if self.client.config.verbose:
            logger.log_event(
                "irc", "raw_in", level=logging.DEBUG, user=self.client.nick, raw=raw_line
            )
        line = parse_irc_line(raw_line)
        if not line.command:
            self.emit("on_unknown", line.raw)
            return line

        if line.command == "PING":
            self.client.send_raw_line(f"PONG {line.body}")
            self.emit("on_server_ping", line.body)
            return line

        if line.is_numeric:
            self.numerics.handle(line)
            return line

        source = line.source or Source()
        with self.directory.lock:
            channel = self._resolve_channel(line)
            user = self._resolve_user(line, channel, source)
            user.touch()
            self._merge_tags(line, channel, user)

        handler = self._handlers.get(line.command)
        if handler is None:
            logger.log_event(
                "dispatch", "unknown", level=logging.DEBUG, command=line.command
            )
            self.emit("on_unknown", line.raw)
            return line
        handler(line, channel, user, source)
        return line

    def emit(self, name: str, *args: Any) -> None:
        """Invoke a host callback; its exceptions are logged, never propagated."""
        callback = getattr(self.client.callbacks, name, None)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "dispatch",
                "callback_error",
                level=logging.ERROR,
                user=self.client.nick,
                exc_info=True,
                event=name,
                error=str(e),
                error_type=type(e).__name__,
            )

    # Resolution ------------------------------------------------------------

    def _is_channel(self, target: str) -> bool:
        return is_channel_name(target, self.client.config.channel_prefixes)

    def _is_self(self, nick: str) -> bool:
        return irc_lower(nick) == irc_lower(self.client.nick)

    def _resolve_channel(self, line: IRCLine) -> Channel | None:
        target = line.target
        if not self._is_channel(target):
            return None
        return self.directory.get_channel(target)

    def _resolve_user(
        self, line: IRCLine, channel: Channel | None, source: Source
    ) -> User:
        if line.command in SELF_STATE_COMMANDS:
            nick = self.client.nick
        elif line.command == "USERNOTICE":
            nick = line.tags.get("login") or source.nick
        else:
            nick = source.nick
        return self.directory.resolve_user(channel, nick)

    def _merge_tags(self, line: IRCLine, channel: Channel | None, user: User) -> None:
        if not line.tags:
            return
        channel_table = CHANNEL_TAG_COMMANDS.get(line.command)
        if channel_table is not None:
            if channel is not None:
                apply_tags(channel, channel_table, line.tags)
            return
        user_table = user_table_for(line.command)
        if user_table is not None:
            apply_tags(user, user_table, line.tags)

    # Messages --------------------------------------------------------------

    def _handle_privmsg(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        target = line.target
        message = line.arg(1)
        request = ctcp_payload(message)
        if request is not None:
            self._handle_ctcp(line, target, user, source, request)
            return
        if self._is_channel(target):
            self.directory.note_message(target, source.nick, message)
            logger.log_event(
                "irc",
                "privmsg",
                level=logging.DEBUG,
                user=self.client.nick,
                channel=target,
                human=f"{source.nick}: {message}",
                author=source.nick,
                chat_message=message,
            )
            self.emit("on_message", target, user, message)
        else:
            self.emit("on_private_message", user, message)

    def _handle_ctcp(
        self, line: IRCLine, target: str, user: User, source: Source, request: str
    ) -> None:
        verb, _, rest = request.partition(" ")
        verb = verb.upper()
        if verb == "ACTION":
            if self._is_channel(target):
                self.directory.note_message(target, source.nick, rest)
            self.emit("on_action", user, target, rest)
        elif verb == "PING":
            self._reply_ctcp(source.nick, f"PING {rest}")
            self.emit("on_ping", user, target, rest)
        elif verb in self._ctcp_replies:
            self._reply_ctcp(source.nick, f"{verb} {self._ctcp_replies[verb]()}")
            self.emit(f"on_{verb.lower()}", user, target)
        elif verb == "DCC":
            if not self.client.dcc.process_request(source, request):
                self.emit("on_unknown", line.raw)
        else:
            self.emit("on_unknown", line.raw)

    def _reply_ctcp(self, nick: str, payload: str) -> None:
        self.client.send_raw_line(f"NOTICE {nick} :{format_ctcp(payload)}")

    def _handle_whisper(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        self.emit("on_whisper", user, line.target, line.arg(1))

    def _handle_notice(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        self.emit("on_notice", user, line.target, line.arg(1))

    def _handle_user_notice(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        self.emit("on_user_notice", line.target, user, line.arg(1))

    def _handle_host_target(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        # HOSTTARGET #hosting :<target|-> [viewers]
        parts = line.arg(1).split()
        target = parts[0] if parts else "-"
        viewers = integer(parts[1]) if len(parts) > 1 else TAG_INT_SENTINEL
        self.emit("on_host_target", line.target, target, viewers)

    # Membership ------------------------------------------------------------

    def _handle_join(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        name = line.target
        with self.directory.lock:
            if self._is_self(source.nick):
                self.directory.add_channel(name)
            self.directory.add_user(name, user)
        self.emit("on_join", name, user)

    def _handle_part(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        name = line.target
        with self.directory.lock:
            if self._is_self(source.nick):
                self.directory.remove_channel(name)
            else:
                self.directory.remove_user(name, source.nick)
        self.emit("on_part", name, user)

    def _handle_nick(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        new_nick = line.target
        self.directory.rename_user(source.nick, new_nick)
        if self._is_self(source.nick):
            self.client.nick_changed(new_nick)
        self.emit("on_nick_change", source.nick, new_nick, source)

    def _handle_quit(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        if self._is_self(source.nick):
            self.directory.clear()
        else:
            self.directory.remove_user_everywhere(source.nick)
        self.emit("on_quit", user, line.trailing or "")

    def _handle_kick(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        name, recipient = line.arg(0), line.arg(1)
        with self.directory.lock:
            if self._is_self(recipient):
                self.directory.remove_channel(name)
            else:
                self.directory.remove_user(name, recipient)
        reason = line.trailing if len(line.params) >= 2 and line.trailing else ""
        self.emit("on_kick", name, source, recipient, reason)

    def _handle_invite(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        self.emit("on_invite", line.target, source, line.arg(1))

    # Channel state ---------------------------------------------------------

    def _handle_mode(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        target = line.target
        mode = " ".join(line.args[1:])
        if self._is_channel(target):
            self.modes.handle(target, source, mode)
        else:
            self.emit("on_user_mode", target, source, mode)

    def _handle_topic(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        self.emit(
            "on_topic",
            line.target,
            line.arg(1),
            source.nick,
            int(time.time() * 1000),
            True,
        )

    def _handle_clear_chat(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        # CLEARCHAT <#channel> [:<nick>]
        name, nick = line.arg(0), line.arg(1)
        if not nick:
            self.emit("on_chat_cleared", name)
            return
        duration = integer(line.tags.get("ban-duration", str(TAG_INT_SENTINEL)))
        reason = line.tags.get("ban-reason", "")
        with self.directory.lock:
            target = self.directory.resolve_user(channel, nick)
        self.emit("on_user_timed_out", target, name, duration, reason)

    def _handle_room_state(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        if channel is None:
            self.emit("on_unknown", line.raw)
            return
        self.emit("on_room_state", channel)

    def _handle_user_state(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        self.emit("on_user_state", user, line.target)

    def _handle_global_user_state(
        self, line: IRCLine, channel: Channel | None, user: User, source: Source
    ) -> None:
        self.emit("on_global_user_state", user)
