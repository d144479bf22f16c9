"""IRC subsystem package.

Contains parsing, tag tables, the outgoing queue, the reader/writer loops,
the dispatcher and its numeric/mode helpers, and the callback surface.
"""

from .async_callbacks import AsyncCallbacks  # noqa: F401
from .callbacks import IRCCallbacks  # noqa: F401
from .dispatcher import IRCDispatcher  # noqa: F401
from .listener import IRCListener, LineReader  # noqa: F401
from .modes import ModeChange, ModeDecoder, decode_modes  # noqa: F401
from .models import ConnectionState, IRCLine, OutgoingKind, Source  # noqa: F401
from .numerics import NumericReplyHandler  # noqa: F401
from .parser import parse_irc_line, parse_source, parse_tags  # noqa: F401
from .queue import OutgoingQueue  # noqa: F401
from .sender import IRCSender  # noqa: F401

__all__ = [
    "AsyncCallbacks",
    "ConnectionState",
    "IRCCallbacks",
    "IRCDispatcher",
    "IRCLine",
    "IRCListener",
    "IRCSender",
    "LineReader",
    "ModeChange",
    "ModeDecoder",
    "NumericReplyHandler",
    "OutgoingKind",
    "OutgoingQueue",
    "Source",
    "decode_modes",
    "parse_irc_line",
    "parse_source",
    "parse_tags",
]
