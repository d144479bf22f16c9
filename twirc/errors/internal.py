"""Centralized error hierarchy.

Connection establishment is the only place the library raises to the host;
after the handshake everything is reported through callbacks. These classes
give connect failures and DCC failures semantic categories.

Classes:
  TwircError             – Base for all library errors.
  ConnectionSetupError   – Base for failures surfaced by ``connect``.
  AlreadyConnectedError  – ``connect`` called while a session is active.
  NickInUseError         – Server answered 433 and auto nick change is off.
  ProtocolRejectedError  – Server answered the handshake with a 4xx/5xx numeric.
  NotConnectedError      – ``reconnect`` without a previous server.
  DCCError               – Base for DCC negotiation/transfer failures.
  DCCProtocolError       – Malformed DCC CTCP payload.
  DCCTransferError       – A transfer or chat failed mid-flight.
"""

from __future__ import annotations

from collections.abc import Mapping


class TwircError(Exception):
    """Base class for all library errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class ConnectionSetupError(TwircError):
    """Raised synchronously from ``connect`` when a session cannot be established."""


class AlreadyConnectedError(ConnectionSetupError):
    """The session is not in the DISCONNECTED state."""


class NickInUseError(ConnectionSetupError):
    """The requested nick is taken and automatic nick changes are disabled.

    Args:
        nick: The nick the server rejected.
        line: Raw 433 line as received.
    """

    def __init__(self, nick: str, line: str) -> None:
        super().__init__(
            f"Nick already in use: {nick}", data={"nick": nick, "line": line}
        )
        self.nick = nick
        self.line = line


class ProtocolRejectedError(ConnectionSetupError):
    """The server refused the login with an error numeric.

    Args:
        code: Three digit numeric the server replied with.
        line: Raw line as received.
    """

    def __init__(self, code: str, line: str) -> None:
        super().__init__(
            f"Could not log into the IRC server: {line}",
            data={"code": code, "line": line},
        )
        self.code = code
        self.line = line


class NotConnectedError(TwircError):
    """An operation needs a server that was never connected to."""


class DCCError(TwircError):
    """Base exception for DCC operations."""


class DCCProtocolError(DCCError):
    """Failed to parse a DCC CTCP payload."""


class DCCTransferError(DCCError):
    """A DCC file transfer or chat failed; stored on the session, never raised across it."""


__all__ = [
    "TwircError",
    "ConnectionSetupError",
    "AlreadyConnectedError",
    "NickInUseError",
    "ProtocolRejectedError",
    "NotConnectedError",
    "DCCError",
    "DCCProtocolError",
    "DCCTransferError",
]
