"""twirc: a threaded IRC client library with Twitch tag support and DCC."""

from .config import SessionConfig  # noqa: F401
from .constants import LIBRARY_VERSION as __version__  # noqa: F401
from .directory import Channel, ChannelDirectory, User  # noqa: F401
from .errors import (  # noqa: F401
    AlreadyConnectedError,
    ConnectionSetupError,
    DCCError,
    DCCProtocolError,
    DCCTransferError,
    NickInUseError,
    NotConnectedError,
    ProtocolRejectedError,
    TwircError,
)
from .irc import AsyncCallbacks, ConnectionState, IRCCallbacks, OutgoingKind, Source  # noqa: F401
from .session import IRCSession  # noqa: F401

__all__ = [
    "AlreadyConnectedError",
    "AsyncCallbacks",
    "Channel",
    "ChannelDirectory",
    "ConnectionSetupError",
    "ConnectionState",
    "DCCError",
    "DCCProtocolError",
    "DCCTransferError",
    "IRCCallbacks",
    "IRCSession",
    "NickInUseError",
    "NotConnectedError",
    "OutgoingKind",
    "ProtocolRejectedError",
    "SessionConfig",
    "Source",
    "TwircError",
    "User",
]
