"""Error hierarchy package."""

from .internal import (  # noqa: F401
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
