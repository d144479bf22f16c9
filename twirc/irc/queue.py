"""Flood-controlled outgoing line queue."""

from __future__ import annotations

import logging
import threading
from collections import deque

from ..logs.logger import logger
from .models import OutgoingKind


class OutgoingQueue:
    """Thread-safe FIFO of raw lines with two admission classes.

    CHAT entries are capped at ``max_chat`` (None for unbounded); a CHAT
    entry offered at capacity is dropped and logged. CONTROL entries are
    always admitted. ``next`` blocks until an entry arrives or the queue is
    closed, which is how the writer loop is interrupted.
    """

    def __init__(self, max_chat: int | None = None) -> None:
        self._entries: deque[tuple[str, OutgoingKind]] = deque()
        self._cond = threading.Condition()
        self._chat_count = 0
        self._closed = False
        self.max_chat = max_chat

    def add(self, line: str, kind: OutgoingKind = OutgoingKind.CHAT) -> bool:
        """Append ``line``; returns False when a CHAT entry was dropped."""
        with self._cond:
            if kind is OutgoingKind.CHAT:
                if self.max_chat is not None and self._chat_count >= self.max_chat:
                    logger.log_event(
                        "queue",
                        "drop",
                        level=logging.WARNING,
                        capacity=self.max_chat,
                        line=line,
                    )
                    return False
                self._chat_count += 1
            self._entries.append((line, kind))
            self._cond.notify()
            return True

    def next(self, timeout: float | None = None) -> str | None:
        """Pop the oldest line, waiting for one; None once closed or timed out."""
        with self._cond:
            while not self._entries and not self._closed:
                if not self._cond.wait(timeout):
                    return None
            if self._closed:
                return None
            line, kind = self._entries.popleft()
            if kind is OutgoingKind.CHAT:
                self._chat_count -= 1
            return line

    def close(self) -> None:
        """Wake every waiter; pending entries are kept for a later reopen."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def reopen(self) -> None:
        with self._cond:
            self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def clear(self) -> None:
        with self._cond:
            self._entries.clear()
            self._chat_count = 0

    def contains(self, line: str) -> bool:
        with self._cond:
            return any(entry == line for entry, _ in self._entries)

    @property
    def chat_count(self) -> int:
        with self._cond:
            return self._chat_count

    def __len__(self) -> int:
        with self._cond:
            return len(self._entries)

    def __bool__(self) -> bool:
        return True
