"""DCC file transfer sessions (both directions)."""

from __future__ import annotations

import logging
import os
import socket
import threading
import time
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING

from ..constants import (
    DCC_BUFFER_SIZE,
    DCC_DEFAULT_TIMEOUT_SECONDS,
    DCC_RESUME_TIMEOUT_SECONDS,
)
from ..errors import DCCError, DCCTransferError
from ..logs.logger import logger
from .protocol import ACK, UNKNOWN_SIZE, format_resume, format_send_offer

if TYPE_CHECKING:  # pragma: no cover
    from .manager import DccManager


class TransferState(Enum):
    OFFERED = auto()
    CONNECTING = auto()
    TRANSFERRING = auto()
    COMPLETED = auto()
    FAILED = auto()


def _recv_exact(sock: socket.socket, size: int) -> bytes | None:
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            return None
        data += chunk
    return data


class DccFileTransfer:
    """One file moving to or from a peer over its own socket.

    Runs on its own thread once started. Failures never raise out of the
    transfer: the state becomes FAILED, ``error`` is set and the session's
    ``on_file_transfer_finished`` callback receives it.
    """

    def __init__(
        self,
        manager: DccManager,
        nick: str,
        filename: str,
        *,
        incoming: bool,
        path: Path | None = None,
        address: str | None = None,
        port: int = 0,
        size: int = UNKNOWN_SIZE,
        timeout: float = DCC_DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.manager = manager
        self.nick = nick
        self.filename = filename
        self.incoming = incoming
        self.path = path
        self.address = address
        self.port = port
        self.size = size
        self.timeout = timeout
        self.state = TransferState.OFFERED
        self.progress = 0
        self.packet_delay = 0.0
        self.start_time = 0.0
        self.end_time = 0.0
        self.error: DCCTransferError | None = None
        self.thread: threading.Thread | None = None
        self._resume_accepted = threading.Event()
        self._finished = threading.Event()

    def __repr__(self) -> str:
        direction = "from" if self.incoming else "to"
        return f"<DccFileTransfer {self.filename!r} {direction} {self.nick} {self.state.name}>"

    # Progress --------------------------------------------------------------

    @property
    def transfer_rate(self) -> float:
        """Average bytes per second since the data connection opened."""
        if not self.start_time:
            return 0.0
        elapsed = (self.end_time or time.time()) - self.start_time
        return self.progress / elapsed if elapsed > 0 else 0.0

    @property
    def progress_percentage(self) -> float:
        if self.size <= 0:
            return 0.0
        return 100.0 * self.progress / self.size

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._finished.wait(timeout)

    # Outgoing --------------------------------------------------------------

    def send(self) -> None:
        """Offer the file and stream it from a background thread."""
        self._spawn(self.run_send)

    def run_send(self) -> None:
        try:
            self._send()
        except (OSError, DCCError) as e:
            self._finish(e)
        else:
            self._finish(None)

    def _send(self) -> None:
        if self.path is None or not self.path.is_file():
            raise DCCTransferError(f"No file to send: {self.path}")
        address = self.manager.local_address()
        listener = self.manager.open_listener()
        try:
            self.port = listener.getsockname()[1]
            self.manager.register_send(self)
            self.manager.send_ctcp(
                self.nick, format_send_offer(self.filename, address, self.port, self.size)
            )
            self.state = TransferState.CONNECTING
            listener.settimeout(self.timeout)
            try:
                sock, _ = listener.accept()
            except TimeoutError as e:
                raise DCCTransferError(
                    f"{self.nick} did not connect within {self.timeout}s"
                ) from e
        finally:
            listener.close()
            self.manager.forget(self)
        with sock:
            sock.settimeout(self.timeout)
            self._stream_out(sock)

    def _stream_out(self, sock: socket.socket) -> None:
        with open(self.path, "rb") as f:
            f.seek(self.progress)
            self._begin()
            while True:
                chunk = f.read(DCC_BUFFER_SIZE)
                if not chunk:
                    break
                sock.sendall(chunk)
                self.progress += len(chunk)
                if self.packet_delay:
                    time.sleep(self.packet_delay)
        expected = self.progress & 0xFFFFFFFF
        while True:
            ack = _recv_exact(sock, ACK.size)
            if ack is None or ACK.unpack(ack)[0] == expected:
                break

    def resume_requested(self, position: int) -> bool:
        """Peer asked to resume at ``position``; valid only before connecting."""
        if self.state not in (TransferState.OFFERED, TransferState.CONNECTING):
            return False
        if not 0 <= position <= self.size:
            return False
        self.progress = position
        return True

    # Incoming --------------------------------------------------------------

    def receive(self, path: str | os.PathLike[str], resume: bool = False) -> None:
        """Accept the offer into ``path`` on a background thread.

        With ``resume`` and an existing partial file, asks the peer to
        continue from its size and appends instead of truncating.
        """
        self.path = Path(path)
        self._spawn(lambda: self.run_receive(resume))

    def run_receive(self, resume: bool = False) -> None:
        try:
            self._receive(resume)
        except (OSError, DCCError) as e:
            self._finish(e)
        else:
            self._finish(None)

    def _receive(self, resume: bool) -> None:
        if self.path is None or self.address is None:
            raise DCCTransferError("Transfer has no destination or peer address")
        mode = "wb"
        existing = self.path.stat().st_size if resume and self.path.exists() else 0
        if existing > 0:
            self._request_resume(existing)
            mode = "ab"
        self.state = TransferState.CONNECTING
        with socket.create_connection((self.address, self.port), self.timeout) as sock:
            with open(self.path, mode) as f:
                self._begin()
                while self.size < 0 or self.progress < self.size:
                    chunk = sock.recv(DCC_BUFFER_SIZE)
                    if not chunk:
                        break
                    f.write(chunk)
                    self.progress += len(chunk)
                    sock.sendall(ACK.pack(self.progress & 0xFFFFFFFF))
                    if self.packet_delay:
                        time.sleep(self.packet_delay)
        if self.size >= 0 and self.progress != self.size:
            raise DCCTransferError(
                f"Size mismatch: expected {self.size} bytes, got {self.progress}"
            )

    def _request_resume(self, position: int) -> None:
        self.progress = position
        self.manager.register_resume(self)
        self.manager.send_ctcp(self.nick, format_resume(self.filename, self.port, position))
        if not self._resume_accepted.wait(DCC_RESUME_TIMEOUT_SECONDS):
            raise DCCTransferError(f"{self.nick} did not accept the resume request")

    def resume_accepted(self, position: int) -> None:
        self.progress = position
        self._resume_accepted.set()

    # Lifecycle -------------------------------------------------------------

    def _spawn(self, target) -> None:
        self.thread = threading.Thread(
            target=target, name=f"twirc-dcc-{self.nick}", daemon=True
        )
        self.thread.start()

    def _begin(self) -> None:
        self.state = TransferState.TRANSFERRING
        self.start_time = time.time()
        logger.log_event(
            "dcc",
            "transfer_start",
            level=logging.DEBUG,
            user=self.nick,
            filename=self.filename,
            position=self.progress,
        )

    def _finish(self, error: Exception | None) -> None:
        self.end_time = time.time()
        if error is None:
            self.state = TransferState.COMPLETED
        else:
            self.state = TransferState.FAILED
            self.error = (
                error
                if isinstance(error, DCCTransferError)
                else DCCTransferError(str(error), data={"error_type": type(error).__name__})
            )
        try:
            self.manager.transfer_finished(self, self.error)
        finally:
            self._finished.set()
