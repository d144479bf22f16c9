"""Reader loop: owns the inbound side of the socket."""

from __future__ import annotations

import logging
import socket
import threading
from typing import TYPE_CHECKING

from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from ..session import IRCSession


class LineReader:
    """Buffers ``recv`` chunks and hands out decoded lines.

    Shared by the handshake and the reader loop so bytes read past the
    welcome numeric are not lost. Accepts both CRLF and bare LF endings.
    """

    def __init__(self, sock: socket.socket, encoding: str = "utf-8") -> None:
        self.sock = sock
        self.encoding = encoding
        self._buffer = b""

    def read_line(self) -> str | None:
        """Next non-empty line, or None at EOF. Socket errors propagate."""
        while True:
            newline = self._buffer.find(b"\n")
            if newline >= 0:
                raw, self._buffer = self._buffer[:newline], self._buffer[newline + 1 :]
                line = raw.rstrip(b"\r").decode(self.encoding, errors="replace")
                if line:
                    return line
                continue
            data = self.sock.recv(4096)
            if not data:
                return None
            self._buffer += data


class IRCListener:
    """Reads one line at a time and dispatches it on a dedicated thread.

    The loop ends on EOF, on a read timeout (a dead connection, not a
    retry) or on ``dispose``; in every case the session is told once.
    """

    def __init__(self, client: IRCSession, reader: LineReader):
        self.client = client
        self.reader = reader
        self.thread: threading.Thread | None = None
        self._disposed = threading.Event()

    def start(self) -> None:
        self.thread = threading.Thread(
            target=self.listen, name=f"twirc-reader-{self.client.nick}", daemon=True
        )
        self.thread.start()

    def listen(self) -> None:
        logger.log_event("irc", "listener_start", level=logging.DEBUG, user=self.client.nick)
        try:
            while not self._disposed.is_set():
                if not self._process_read_cycle():
                    break
        finally:
            self.client.handle_reader_exit()

    def _process_read_cycle(self) -> bool:
        try:
            line = self.reader.read_line()
        except TimeoutError:
            logger.log_event(
                "irc",
                "read_timeout",
                level=logging.WARNING,
                user=self.client.nick,
                timeout=self.client.config.read_timeout,
            )
            return False
        except OSError as e:
            if not self._disposed.is_set():
                logger.log_event(
                    "irc",
                    "connection_reset",
                    level=logging.WARNING,
                    user=self.client.nick,
                    error=str(e),
                )
            return False
        if line is None:
            if not self._disposed.is_set():
                logger.log_event(
                    "irc", "connection_lost", level=logging.WARNING, user=self.client.nick
                )
            return False
        self.client.dispatcher.dispatch(line)
        return True

    def dispose(self) -> None:
        """Stop reading; shutting the socket down unblocks a pending ``recv``."""
        self._disposed.set()
        try:
            self.reader.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            logger.log_event("irc", "shutdown_ignored", level=logging.DEBUG)

    def join(self, timeout: float | None = None) -> None:
        if self.thread is not None and self.thread is not threading.current_thread():
            self.thread.join(timeout)
