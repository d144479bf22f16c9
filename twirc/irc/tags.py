"""Declarative tag-to-attribute tables for the tagged (Twitch) dialect.

Each table maps a tag key to ``(attribute, converter)``. ``apply_tags``
walks a tag block once and sets every mapped attribute; keys missing from
the table are left alone.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from ..constants import TAG_INT_SENTINEL

Converter = Callable[[str], Any]
TagTable = Mapping[str, tuple[str, Converter]]


def text(value: str) -> str:
    return value


def flag(value: str) -> bool:
    return value == "1"


def integer(value: str) -> int:
    """Parse an integer tag; unparsable values become the sentinel."""
    try:
        return int(value)
    except ValueError:
        return TAG_INT_SENTINEL


ROOM_STATE_TAGS: TagTable = {
    "broadcaster-lang": ("broadcaster_language", text),
    "r9k": ("r9k", flag),
    "slow": ("slow", integer),
    "subs-only": ("subs_only", flag),
    "emote-only": ("emote_only", flag),
    "room-id": ("room_id", integer),
}

USER_STATE_TAGS: TagTable = {
    "display-name": ("display_name", text),
    "color": ("color", text),
    "subscriber": ("subscriber", flag),
    "turbo": ("turbo", flag),
    "mod": ("mod", flag),
    "user-type": ("user_type", text),
    "emote-sets": ("emote_sets", text),
    "badges": ("badges", text),
}

MESSAGE_TAGS: TagTable = {
    **USER_STATE_TAGS,
    "msg-id": ("msg_id", text),
    "emotes": ("emotes", text),
    "msg-param-months": ("consecutive_months", integer),
    "room-id": ("room_id", integer),
    "user-id": ("user_id", integer),
    "system-msg": ("system_msg", text),
    "login": ("user_login", text),
    "id": ("message_id", text),
    "bits": ("bits", integer),
    "target-user-id": ("target_user_id", integer),
    "tmi-sent-ts": ("tmi_sent_ts", integer),
}

# Lines whose tags describe the room rather than a user.
CHANNEL_TAG_COMMANDS: Mapping[str, TagTable] = {"ROOMSTATE": ROOM_STATE_TAGS}

# Lines whose tags describe a user; anything not listed uses MESSAGE_TAGS.
USER_TAG_COMMANDS: Mapping[str, TagTable] = {
    "USERSTATE": USER_STATE_TAGS,
    "GLOBALUSERSTATE": USER_STATE_TAGS,
}

# Tags on these lines are read by their own handlers, not merged.
UNMERGED_TAG_COMMANDS = frozenset({"CLEARCHAT", "NOTICE", "HOSTTARGET"})


def user_table_for(command: str) -> TagTable | None:
    if command in UNMERGED_TAG_COMMANDS or command in CHANNEL_TAG_COMMANDS:
        return None
    return USER_TAG_COMMANDS.get(command, MESSAGE_TAGS)


def apply_tags(target: object, table: TagTable, tags: Mapping[str, str]) -> int:
    """Set mapped attributes on ``target``; returns how many were applied."""
    applied = 0
    for key, value in tags.items():
        mapping = table.get(key)
        if mapping is None:
            continue
        attr, convert = mapping
        setattr(target, attr, convert(value))
        applied += 1
    return applied
