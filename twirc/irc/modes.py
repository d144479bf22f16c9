"""Channel MODE decoding.

``decode_modes`` is a pure tokenizer pairing each flag letter with its
parameter; ``ModeDecoder`` turns the result into callback events through
the ``MODE_EVENTS`` table.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..constants import TAG_INT_SENTINEL
from ..directory import ChannelDirectory
from .models import Source

# Letters that take a parameter whatever the sign; "l" takes one only on "+".
PARAM_LETTERS = frozenset("ovkb")

# letter -> (event when added, event when removed, parameter kind)
MODE_EVENTS: dict[str, tuple[str, str, str | None]] = {
    "o": ("on_op", "on_deop", "nick"),
    "v": ("on_voice", "on_devoice", "nick"),
    "k": ("on_set_channel_key", "on_remove_channel_key", "text"),
    "l": ("on_set_channel_limit", "on_remove_channel_limit", "limit"),
    "b": ("on_set_channel_ban", "on_remove_channel_ban", "text"),
    "t": ("on_set_topic_protection", "on_remove_topic_protection", None),
    "n": ("on_set_no_external_messages", "on_remove_no_external_messages", None),
    "i": ("on_set_invite_only", "on_remove_invite_only", None),
    "m": ("on_set_moderated", "on_remove_moderated", None),
    "p": ("on_set_private", "on_remove_private", None),
    "s": ("on_set_secret", "on_remove_secret", None),
}


@dataclass(frozen=True, slots=True)
class ModeChange:
    sign: str  # "+", "-" or "" before any sign was seen
    letter: str
    param: str | None = None


def takes_param(sign: str, letter: str) -> bool:
    return letter in PARAM_LETTERS or (letter == "l" and sign == "+")


def decode_modes(mode: str) -> list[ModeChange]:
    """Split ``"+oo-b a b mask"`` into one ModeChange per flag letter.

    Parameters are consumed left to right by the letters that take one;
    a missing parameter leaves ``param`` as None.
    """
    tokens = mode.split()
    if not tokens:
        return []
    flags, params = tokens[0], iter(tokens[1:])
    sign = ""
    changes: list[ModeChange] = []
    for letter in flags:
        if letter in "+-":
            sign = letter
            continue
        param = next(params, None) if takes_param(sign, letter) else None
        changes.append(ModeChange(sign, letter, param))
    return changes


def parse_limit(value: str | None) -> int:
    try:
        return int(value) if value is not None else TAG_INT_SENTINEL
    except ValueError:
        return TAG_INT_SENTINEL


class ModeDecoder:
    def __init__(
        self, directory: ChannelDirectory, emit: Callable[..., None]
    ) -> None:
        self.directory = directory
        self.emit = emit

    def handle(self, channel: str, source: Source, mode: str) -> None:
        """Fire one event per recognised letter, then the generic ``on_mode``."""
        for change in decode_modes(mode):
            self._apply(channel, source, change)
        self.emit("on_mode", channel, source, mode)

    def _apply(self, channel: str, source: Source, change: ModeChange) -> None:
        spec = MODE_EVENTS.get(change.letter)
        if spec is None or not change.sign:
            return
        added = change.sign == "+"
        event = spec[0] if added else spec[1]
        kind = spec[2]
        args: tuple[Any, ...] = (channel, source)
        if kind == "nick":
            if change.param is None:
                return
            if change.letter == "o":
                self.directory.set_user_flags(channel, change.param, op=added)
            else:
                self.directory.set_user_flags(channel, change.param, voice=added)
            args += (change.param,)
        elif kind == "text":
            args += (change.param or "",)
        elif kind == "limit" and added:
            args += (parse_limit(change.param),)
        self.emit(event, *args)
