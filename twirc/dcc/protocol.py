"""DCC (Direct Client-to-Client) payload helpers.

Offers travel inside CTCP requests:
    DCC SEND <file> <ip-as-uint32> <port> [size]
    DCC CHAT chat <ip-as-uint32> <port>
    DCC RESUME <file> <port> <position>
    DCC ACCEPT <file> <port> <position>
Filenames containing spaces are double-quoted.
"""

from __future__ import annotations

import socket
import struct
from dataclasses import dataclass

from ..errors import DCCProtocolError

ACK = struct.Struct("!I")  # 4-byte big-endian byte counter
UNKNOWN_SIZE = -1


@dataclass(frozen=True, slots=True)
class DccRequest:
    """A parsed DCC sub-request."""

    kind: str
    argument: str
    address: str | None = None
    port: int = 0
    size: int = UNKNOWN_SIZE
    position: int = 0


def ip_to_long(address: str) -> int:
    """Dotted IPv4 to the unsigned 32-bit form, most significant octet first."""
    try:
        return ACK.unpack(socket.inet_aton(address))[0]
    except OSError as e:
        raise DCCProtocolError(f"Invalid IPv4 address: {address}") from e


def long_to_ip(value: int) -> str:
    if not 0 <= value <= 0xFFFFFFFF:
        raise DCCProtocolError(f"Address out of range: {value}")
    return socket.inet_ntoa(ACK.pack(value))


def quote_filename(filename: str) -> str:
    return f'"{filename}"' if " " in filename else filename


def split_filename(argument_str: str) -> tuple[str, str]:
    """Return ``(filename, rest)`` for a possibly quoted leading filename."""
    argument_str = argument_str.strip()
    if not argument_str:
        raise DCCProtocolError("Missing DCC argument")
    if argument_str.startswith('"'):
        end = argument_str.find('"', 1)
        if end < 0:
            raise DCCProtocolError(f"Unmatched quote in DCC argument: {argument_str}")
        return argument_str[1:end], argument_str[end + 1 :].strip()
    filename, _, rest = argument_str.partition(" ")
    return filename, rest.strip()


def _int(value: str, what: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise DCCProtocolError(f"Invalid DCC {what}: {value}") from e


def parse_dcc_request(request: str) -> DccRequest:
    """Parse ``DCC <KIND> ...`` (the CTCP payload). Raises DCCProtocolError."""
    verb, _, rest = request.strip().partition(" ")
    if verb.upper() != "DCC":
        raise DCCProtocolError(f"Not a DCC request: {request[:100]}")
    kind, _, rest = rest.strip().partition(" ")
    kind = kind.upper()
    argument, rest = split_filename(rest)
    fields = rest.split()

    if kind in ("SEND", "CHAT"):
        if len(fields) < 2:
            raise DCCProtocolError(f"Incomplete DCC {kind}: {request[:100]}")
        size = _int(fields[2], "size") if kind == "SEND" and len(fields) > 2 else UNKNOWN_SIZE
        return DccRequest(
            kind=kind,
            argument=argument,
            address=long_to_ip(_int(fields[0], "address")),
            port=_int(fields[1], "port"),
            size=size,
        )
    if kind in ("RESUME", "ACCEPT"):
        if len(fields) < 2:
            raise DCCProtocolError(f"Incomplete DCC {kind}: {request[:100]}")
        return DccRequest(
            kind=kind,
            argument=argument,
            port=_int(fields[0], "port"),
            position=_int(fields[1], "position"),
        )
    raise DCCProtocolError(f"Unsupported DCC request: {kind}")


def format_send_offer(filename: str, address: int, port: int, size: int) -> str:
    return f"DCC SEND {quote_filename(filename)} {address} {port} {size}"


def format_chat_offer(address: int, port: int) -> str:
    return f"DCC CHAT chat {address} {port}"


def format_resume(filename: str, port: int, position: int) -> str:
    return f"DCC RESUME {quote_filename(filename)} {port} {position}"


def format_accept(filename: str, port: int, position: int) -> str:
    return f"DCC ACCEPT {quote_filename(filename)} {port} {position}"
