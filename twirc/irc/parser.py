"""IRC line parsing utilities."""

from __future__ import annotations

from .models import IRCLine, Source

CTCP_DELIMITER = "\x01"

_TAG_ESCAPES = {":": ";", "s": " ", "\\": "\\", "r": "\r", "n": "\n"}


def parse_irc_line(raw_line: str) -> IRCLine:
    """Tokenize one line into tags, source, command, params and trailing text.

    Never raises: a line with no command token yields ``command == ""``.
    """
    original = raw_line = raw_line.rstrip("\r\n")
    tags: dict[str, str] = {}
    source: Source | None = None

    if raw_line.startswith("@"):
        tags_part, _, raw_line = raw_line.partition(" ")
        tags = parse_tags(tags_part[1:])
        raw_line = raw_line.lstrip(" ")

    if raw_line.startswith(":"):
        prefix, _, raw_line = raw_line[1:].partition(" ")
        source = parse_source(prefix)
        raw_line = raw_line.lstrip(" ")

    command, _, body = raw_line.partition(" ")
    body = body.lstrip(" ")

    trailing: str | None = None
    middle = body
    if body.startswith(":"):
        middle, trailing = "", body[1:]
    elif " :" in body:
        middle, trailing = body.split(" :", 1)

    return IRCLine(
        raw=original,
        command=command.upper(),
        source=source,
        params=middle.split(),
        trailing=trailing,
        tags=tags,
        body=body,
    )


def parse_tags(raw_tags: str) -> dict[str, str]:
    """Parse ``k=v;k2;k3=v3`` into an ordered dict (valueless keys map to "")."""
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        k, _, v = tag.partition("=")
        tags[k] = unescape_tag_value(v)
    return tags


def unescape_tag_value(value: str) -> str:
    """Undo IRCv3 tag escaping (``\\s`` space, ``\\:`` semicolon, ...)."""
    if "\\" not in value:
        return value
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        out.append(_TAG_ESCAPES.get(nxt, nxt))
    return "".join(out)


def parse_source(prefix: str) -> Source:
    """Split ``nick!login@host``; anything else is a bare nick/server name."""
    excl = prefix.find("!")
    at = prefix.find("@")
    if 0 < excl < at:
        return Source(
            nick=prefix[:excl], login=prefix[excl + 1 : at], hostname=prefix[at + 1 :]
        )
    return Source(nick=prefix)


def ctcp_payload(text: str | None) -> str | None:
    """Return the request inside ``\\x01...\\x01``, or None for plain text."""
    if (
        text is None
        or len(text) < 2
        or not text.startswith(CTCP_DELIMITER)
        or not text.endswith(CTCP_DELIMITER)
    ):
        return None
    return text[1:-1]


def format_ctcp(payload: str) -> str:
    return f"{CTCP_DELIMITER}{payload}{CTCP_DELIMITER}"


def is_channel_name(target: str, prefixes: str) -> bool:
    return bool(target) and target[0] in prefixes
