"""DCC negotiation: offers, resume bookkeeping and listening ports."""

from __future__ import annotations

import logging
import os
import socket
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from ..constants import DCC_DEFAULT_TIMEOUT_SECONDS
from ..errors import DCCProtocolError, DCCTransferError
from ..irc.models import Source
from ..logs.logger import logger
from .chat import DccChat
from .protocol import DccRequest, format_accept, ip_to_long, parse_dcc_request
from .transfer import DccFileTransfer

if TYPE_CHECKING:  # pragma: no cover
    from ..session import IRCSession


class DccManager:
    """Turns DCC CTCP requests into transfer/chat objects and back.

    Keeps two short-lived registries keyed by port: our outgoing offers
    (a peer may ask to RESUME them) and incoming transfers waiting for the
    peer's ACCEPT. Both are emptied as soon as the data connection opens.
    """

    def __init__(self, client: IRCSession):
        self.client = client
        self._lock = threading.Lock()
        self._offered: list[DccFileTransfer] = []
        self._awaiting_accept: list[DccFileTransfer] = []

    @property
    def encoding(self) -> str:
        return self.client.config.encoding

    # Inbound requests -------------------------------------------------------

    def process_request(self, source: Source, request: str) -> bool:
        """Handle the CTCP ``DCC ...`` payload; False if it is not understood."""
        try:
            parsed = parse_dcc_request(request)
        except DCCProtocolError as e:
            logger.log_event(
                "dcc", "parse_failed", level=logging.WARNING, user=source.nick, error=str(e)
            )
            return False
        handler = {
            "SEND": self._on_send,
            "CHAT": self._on_chat,
            "RESUME": self._on_resume,
            "ACCEPT": self._on_accept,
        }[parsed.kind]
        return handler(source, parsed)

    def _on_send(self, source: Source, req: DccRequest) -> bool:
        transfer = DccFileTransfer(
            self,
            source.nick,
            req.argument,
            incoming=True,
            address=req.address,
            port=req.port,
            size=req.size,
        )
        logger.log_event(
            "dcc", "incoming_file", user=source.nick, filename=req.argument, size=req.size
        )
        self.client.dispatcher.emit("on_incoming_file_transfer", transfer)
        return True

    def _on_chat(self, source: Source, req: DccRequest) -> bool:
        chat = DccChat(self, source.nick, incoming=True, address=req.address, port=req.port)
        logger.log_event("dcc", "incoming_chat", user=source.nick, port=req.port)
        self.client.dispatcher.emit("on_incoming_chat_request", chat)
        return True

    def _on_resume(self, source: Source, req: DccRequest) -> bool:
        with self._lock:
            transfer = self._find(self._offered, source.nick, req.port)
        if transfer is None or not transfer.resume_requested(req.position):
            return False
        self.send_ctcp(source.nick, format_accept(transfer.filename, req.port, req.position))
        logger.log_event(
            "dcc", "resume_accepted", user=source.nick, filename=transfer.filename, position=req.position
        )
        return True

    def _on_accept(self, source: Source, req: DccRequest) -> bool:
        with self._lock:
            transfer = self._find(self._awaiting_accept, source.nick, req.port)
            if transfer is not None:
                self._awaiting_accept.remove(transfer)
        if transfer is None:
            return False
        transfer.resume_accepted(req.position)
        return True

    @staticmethod
    def _find(
        transfers: list[DccFileTransfer], nick: str, port: int
    ) -> DccFileTransfer | None:
        for transfer in transfers:
            if transfer.port == port and transfer.nick.lower() == nick.lower():
                return transfer
        return None

    # Outbound ---------------------------------------------------------------

    def send_file(
        self,
        path: str | os.PathLike[str],
        nick: str,
        timeout: float = DCC_DEFAULT_TIMEOUT_SECONDS,
        packet_delay: float = 0.0,
    ) -> DccFileTransfer:
        """Offer ``path`` to ``nick``; the returned transfer runs in the background.

        A missing file fails the transfer before any offer reaches the peer.
        ``packet_delay`` seconds are slept after every packet sent.
        """
        file_path = Path(path)
        size = file_path.stat().st_size if file_path.is_file() else 0
        transfer = DccFileTransfer(
            self,
            nick,
            file_path.name,
            incoming=False,
            path=file_path,
            size=size,
            timeout=timeout,
        )
        transfer.packet_delay = packet_delay
        transfer.send()
        return transfer

    def request_chat(
        self, nick: str, timeout: float = DCC_DEFAULT_TIMEOUT_SECONDS
    ) -> DccChat | None:
        """Offer a chat and block until the peer connects; None on failure."""
        chat = DccChat(self, nick, incoming=False)
        return chat if chat.listen(timeout) else None

    def send_ctcp(self, nick: str, payload: str) -> None:
        self.client.send_ctcp_command(nick, payload)

    def open_listener(self) -> socket.socket:
        """Bind the first free whitelisted port, or an ephemeral one."""
        ports = self.client.config.dcc_ports or [0]
        last_error: OSError | None = None
        for port in ports:
            listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            try:
                listener.bind(("", port))
                listener.listen(1)
            except OSError as e:
                listener.close()
                last_error = e
                continue
            return listener
        raise OSError(f"No DCC port available from {ports}: {last_error}")

    def local_address(self) -> int:
        """Address advertised in offers, as the DCC uint32.

        Raises:
            DCCTransferError: The session has no IPv4 address to advertise
                (e.g. it connected over IPv6) and no ``dcc_address`` is set.
        """
        address = self.client.config.dcc_address or self.client.local_address
        try:
            return ip_to_long(address or "127.0.0.1")
        except DCCProtocolError as e:
            raise DCCTransferError(
                f"DCC needs an IPv4 address to advertise, got {address}; set dcc_address",
                data={"address": address},
            ) from e

    # Registries -------------------------------------------------------------

    def register_send(self, transfer: DccFileTransfer) -> None:
        with self._lock:
            self._offered.append(transfer)

    def register_resume(self, transfer: DccFileTransfer) -> None:
        with self._lock:
            self._awaiting_accept.append(transfer)

    def forget(self, transfer: DccFileTransfer) -> None:
        with self._lock:
            for registry in (self._offered, self._awaiting_accept):
                if transfer in registry:
                    registry.remove(transfer)

    def transfer_finished(
        self, transfer: DccFileTransfer, error: DCCTransferError | None
    ) -> None:
        self.forget(transfer)
        if error is None:
            logger.log_event(
                "dcc", "transfer_complete", user=transfer.nick, filename=transfer.filename, size=transfer.progress
            )
        else:
            logger.log_event(
                "dcc",
                "transfer_failed",
                level=logging.WARNING,
                user=transfer.nick,
                filename=transfer.filename,
                error=str(error),
            )
        self.client.dispatcher.emit("on_file_transfer_finished", transfer, error)
