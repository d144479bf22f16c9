"""Host callback capability set.

Subclass ``IRCCallbacks`` and override the events you care about; every
method defaults to a no-op. Callbacks run synchronously on the reader
thread, in line-arrival order: a slow callback delays the next line. Wrap
an implementation in ``AsyncCallbacks`` to hand events to an asyncio loop
instead.

Channel-scoped events receive the channel *name*; look the record up with
``IRCSession.get_channel`` when room state is needed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from ..dcc.chat import DccChat
    from ..dcc.transfer import DccFileTransfer
    from ..directory import Channel, User
    from ..errors import DCCTransferError
    from .models import Source


class IRCCallbacks:
    # Connection -----------------------------------------------------------

    def on_connect(self) -> None:
        pass

    def on_disconnect(self) -> None:
        pass

    def on_server_ping(self, response: str) -> None:
        pass

    def on_server_response(self, code: int, response: str) -> None:
        pass

    def on_unknown(self, line: str) -> None:
        pass

    # Messages -------------------------------------------------------------

    def on_message(self, channel: str, user: User, message: str) -> None:
        pass

    def on_private_message(self, user: User, message: str) -> None:
        pass

    def on_action(self, user: User, target: str, action: str) -> None:
        pass

    def on_notice(self, user: User, target: str, notice: str) -> None:
        pass

    def on_whisper(self, user: User, target: str, message: str) -> None:
        pass

    # Membership -----------------------------------------------------------

    def on_join(self, channel: str, user: User) -> None:
        pass

    def on_part(self, channel: str, user: User) -> None:
        pass

    def on_nick_change(self, old_nick: str, new_nick: str, source: Source) -> None:
        pass

    def on_kick(self, channel: str, kicker: Source, recipient: str, reason: str) -> None:
        pass

    def on_quit(self, user: User, reason: str) -> None:
        pass

    def on_invite(self, target_nick: str, source: Source, channel: str) -> None:
        pass

    # Channel info ---------------------------------------------------------

    def on_topic(
        self, channel: str, topic: str, set_by: str, date: int, changed: bool
    ) -> None:
        pass

    def on_channel_info(self, channel: str, user_count: int, topic: str) -> None:
        pass

    def on_user_list(self, channel: str, users: list[User]) -> None:
        pass

    # Tagged dialect -------------------------------------------------------

    def on_room_state(self, channel: Channel) -> None:
        pass

    def on_user_state(self, user: User, channel: str) -> None:
        pass

    def on_global_user_state(self, user: User) -> None:
        pass

    def on_user_notice(self, channel: str, user: User, message: str) -> None:
        pass

    def on_host_target(self, hosting: str, target: str, viewers: int) -> None:
        pass

    def on_chat_cleared(self, channel: str) -> None:
        pass

    def on_user_timed_out(
        self, user: User, channel: str, duration: int, reason: str
    ) -> None:
        pass

    # CTCP (replies are sent automatically before these fire) --------------

    def on_version(self, user: User, target: str) -> None:
        pass

    def on_ping(self, user: User, target: str, value: str) -> None:
        pass

    def on_time(self, user: User, target: str) -> None:
        pass

    def on_finger(self, user: User, target: str) -> None:
        pass

    # Modes ----------------------------------------------------------------

    def on_mode(self, channel: str, source: Source, mode: str) -> None:
        pass

    def on_user_mode(self, target_nick: str, source: Source, mode: str) -> None:
        pass

    def on_op(self, channel: str, source: Source, recipient: str) -> None:
        pass

    def on_deop(self, channel: str, source: Source, recipient: str) -> None:
        pass

    def on_voice(self, channel: str, source: Source, recipient: str) -> None:
        pass

    def on_devoice(self, channel: str, source: Source, recipient: str) -> None:
        pass

    def on_set_channel_key(self, channel: str, source: Source, key: str) -> None:
        pass

    def on_remove_channel_key(self, channel: str, source: Source, key: str) -> None:
        pass

    def on_set_channel_limit(self, channel: str, source: Source, limit: int) -> None:
        pass

    def on_remove_channel_limit(self, channel: str, source: Source) -> None:
        pass

    def on_set_channel_ban(self, channel: str, source: Source, hostmask: str) -> None:
        pass

    def on_remove_channel_ban(
        self, channel: str, source: Source, hostmask: str
    ) -> None:
        pass

    def on_set_topic_protection(self, channel: str, source: Source) -> None:
        pass

    def on_remove_topic_protection(self, channel: str, source: Source) -> None:
        pass

    def on_set_no_external_messages(self, channel: str, source: Source) -> None:
        pass

    def on_remove_no_external_messages(self, channel: str, source: Source) -> None:
        pass

    def on_set_invite_only(self, channel: str, source: Source) -> None:
        pass

    def on_remove_invite_only(self, channel: str, source: Source) -> None:
        pass

    def on_set_moderated(self, channel: str, source: Source) -> None:
        pass

    def on_remove_moderated(self, channel: str, source: Source) -> None:
        pass

    def on_set_private(self, channel: str, source: Source) -> None:
        pass

    def on_remove_private(self, channel: str, source: Source) -> None:
        pass

    def on_set_secret(self, channel: str, source: Source) -> None:
        pass

    def on_remove_secret(self, channel: str, source: Source) -> None:
        pass

    # DCC ------------------------------------------------------------------

    def on_incoming_file_transfer(self, transfer: DccFileTransfer) -> None:
        pass

    def on_file_transfer_finished(
        self, transfer: DccFileTransfer, error: DCCTransferError | None
    ) -> None:
        pass

    def on_incoming_chat_request(self, chat: DccChat) -> None:
        pass


CALLBACK_NAMES = frozenset(name for name in vars(IRCCallbacks) if name.startswith("on_"))
