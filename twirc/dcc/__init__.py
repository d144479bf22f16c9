"""DCC file transfer and chat."""

from .chat import ChatState, DccChat  # noqa: F401
from .manager import DccManager  # noqa: F401
from .protocol import DccRequest, ip_to_long, long_to_ip, parse_dcc_request  # noqa: F401
from .transfer import DccFileTransfer, TransferState  # noqa: F401

__all__ = [
    "ChatState",
    "DccChat",
    "DccFileTransfer",
    "DccManager",
    "DccRequest",
    "TransferState",
    "ip_to_long",
    "long_to_ip",
    "parse_dcc_request",
]
