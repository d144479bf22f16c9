from __future__ import annotations

import codecs
import ipaddress
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..constants import (
    DEFAULT_CHANNEL_PREFIXES,
    DEFAULT_FINGER_REPLY,
    DEFAULT_LOGIN,
    DEFAULT_NAME,
    DEFAULT_VERSION_REPLY,
    MAX_LINE_LENGTH,
    MESSAGE_DELAY_SECONDS,
    READ_TIMEOUT_SECONDS,
)


def _normalize_ports(ports: list[int] | Any) -> list[int]:
    """Deduplicate a DCC port whitelist preserving the caller's order.

    Order matters: the first port that binds wins.
    """
    if ports is None:
        return []
    if not isinstance(ports, (list, tuple)):
        raise ValueError("dcc_ports must be a list of port numbers")
    normalized: list[int] = []
    for p in ports:
        port = int(p)
        if not 1 <= port <= 65535:
            raise ValueError(f"invalid DCC port: {port}")
        normalized.append(port)
    return list(dict.fromkeys(normalized))


class SessionConfig(BaseModel):
    """Represents everything a session needs before it connects.

    Attributes:
        name: Nick requested during the handshake.
        login: Username sent in the USER command.
        version: Reply to CTCP VERSION (also used as the USER realname).
        finger: Reply to CTCP FINGER.
        password: Optional server password (PASS), e.g. a Twitch oauth token.
        auto_nick_change: Append an increasing suffix when the nick is taken.
        message_delay: Minimum seconds between two queued sends.
        max_queued_messages: Capacity for chat-class entries, None for unbounded.
        max_line_length: Outgoing lines are cut to this length (CRLF included).
        encoding: Text encoding of the connection.
        channel_prefixes: Characters that mark a target as a channel.
        read_timeout: Seconds of inbound silence treated as a dead connection.
        dcc_ports: Listening port whitelist for DCC offers; empty means ephemeral.
        dcc_address: IPv4 address advertised in DCC offers instead of the local one.
        verbose: Log every raw line at DEBUG.
    """

    name: str = Field(default=DEFAULT_NAME, min_length=1)
    login: str = Field(default=DEFAULT_LOGIN, min_length=1)
    version: str = DEFAULT_VERSION_REPLY
    finger: str = DEFAULT_FINGER_REPLY
    password: str | None = None
    auto_nick_change: bool = False
    message_delay: float = Field(default=MESSAGE_DELAY_SECONDS, ge=0)
    max_queued_messages: int | None = Field(default=None, ge=1)
    max_line_length: int = Field(default=MAX_LINE_LENGTH, ge=16)
    encoding: str = "utf-8"
    channel_prefixes: str = Field(default=DEFAULT_CHANNEL_PREFIXES, min_length=1)
    read_timeout: float = Field(default=READ_TIMEOUT_SECONDS, gt=0)
    dcc_ports: list[int] = Field(default_factory=list)
    dcc_address: str | None = None
    verbose: bool = False

    @field_validator("name", "login")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Nick and login travel as single IRC parameters."""
        v = v.strip()
        if not v or any(c in v for c in " \r\n\x00"):
            raise ValueError("must be a single non-empty word")
        return v

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"unknown encoding: {v}") from e
        return v

    @field_validator("dcc_ports", mode="before")
    @classmethod
    def validate_dcc_ports(cls, v: Any) -> list[int]:
        return _normalize_ports(v)

    @field_validator("dcc_address")
    @classmethod
    def validate_dcc_address(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            ipaddress.IPv4Address(v)
        except ValueError as e:
            raise ValueError(f"dcc_address must be an IPv4 address: {v}") from e
        return v

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SessionConfig:
        """Create SessionConfig from a dictionary.

        Args:
            data: Dictionary containing session configuration data.

        Returns:
            SessionConfig instance.
        """
        norm_data = dict(data)
        if "name" in norm_data:
            norm_data["name"] = str(norm_data["name"]).strip()
        return cls.model_validate(norm_data)

    def to_dict(self) -> dict[str, Any]:
        """Convert SessionConfig to a dictionary.

        Returns:
            Dictionary representation of the SessionConfig.
        """
        return self.model_dump(exclude_none=True)
