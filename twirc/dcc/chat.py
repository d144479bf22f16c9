"""DCC CHAT: a line-oriented duplex socket with one peer."""

from __future__ import annotations

import logging
import socket
import threading
from enum import Enum, auto
from typing import TYPE_CHECKING

from ..constants import DCC_DEFAULT_TIMEOUT_SECONDS
from ..errors import DCCError
from ..irc.listener import LineReader
from ..logs.logger import logger
from .protocol import format_chat_offer

if TYPE_CHECKING:  # pragma: no cover
    from .manager import DccManager


class ChatState(Enum):
    REQUESTED = auto()
    LISTENING = auto()
    CONNECTED = auto()
    CLOSED = auto()


class DccChat:
    """Either side of a DCC chat.

    Incoming requests start REQUESTED and connect on ``accept``. Outgoing
    requests are completed by ``DccManager.request_chat`` through
    ``listen``. Neither raises on failure; they return False and leave the
    chat CLOSED.
    """

    def __init__(
        self,
        manager: DccManager,
        nick: str,
        *,
        incoming: bool,
        address: str | None = None,
        port: int = 0,
    ) -> None:
        self.manager = manager
        self.nick = nick
        self.incoming = incoming
        self.address = address
        self.port = port
        self.state = ChatState.REQUESTED
        self.sock: socket.socket | None = None
        self._reader: LineReader | None = None
        self._send_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<DccChat {self.nick} {self.state.name}>"

    @property
    def is_connected(self) -> bool:
        return self.state is ChatState.CONNECTED

    def accept(self, timeout: float = DCC_DEFAULT_TIMEOUT_SECONDS) -> bool:
        """Connect to the peer that offered this chat."""
        if not self.incoming or self.state is not ChatState.REQUESTED:
            return False
        try:
            sock = socket.create_connection((self.address, self.port), timeout)
        except OSError as e:
            self._fail(e)
            return False
        sock.settimeout(None)
        self._attach(sock)
        return True

    def listen(self, timeout: float = DCC_DEFAULT_TIMEOUT_SECONDS) -> bool:
        """Offer a chat and wait for the peer; the listener never outlives this call."""
        try:
            address = self.manager.local_address()
            listener = self.manager.open_listener()
        except (OSError, DCCError) as e:
            self._fail(e)
            return False
        try:
            self.port = listener.getsockname()[1]
            self.state = ChatState.LISTENING
            self.manager.send_ctcp(self.nick, format_chat_offer(address, self.port))
            listener.settimeout(timeout)
            sock, _ = listener.accept()
        except OSError as e:
            self._fail(e)
            return False
        finally:
            listener.close()
        sock.settimeout(None)
        self._attach(sock)
        return True

    def read_line(self) -> str | None:
        """Block for the next line; None once the peer or we closed the chat."""
        if self._reader is None or self.state is not ChatState.CONNECTED:
            return None
        try:
            line = self._reader.read_line()
        except OSError:
            line = None
        if line is None:
            self.close()
        return line

    def send_line(self, line: str) -> bool:
        if self.sock is None or self.state is not ChatState.CONNECTED:
            return False
        data = (line + "\r\n").encode(self.manager.encoding)
        try:
            with self._send_lock:
                self.sock.sendall(data)
        except OSError as e:
            self._fail(e)
            return False
        return True

    def close(self) -> None:
        if self.state is ChatState.CLOSED:
            return
        self.state = ChatState.CLOSED
        if self.sock is not None:
            try:
                self.sock.close()
            except OSError:
                logger.log_event("dcc", "close_ignored", level=logging.DEBUG, user=self.nick)
        logger.log_event("dcc", "chat_closed", level=logging.DEBUG, user=self.nick)

    def _attach(self, sock: socket.socket) -> None:
        self.sock = sock
        self._reader = LineReader(sock, self.manager.encoding)
        self.state = ChatState.CONNECTED
        logger.log_event("dcc", "chat_connected", user=self.nick, port=self.port)

    def _fail(self, error: Exception) -> None:
        logger.log_event(
            "dcc",
            "chat_failed",
            level=logging.WARNING,
            user=self.nick,
            error=str(error),
            error_type=type(error).__name__,
        )
        self.close()
