"""Writer loop: drains the outgoing queue at a bounded rate."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from ..logs.logger import logger
from .queue import OutgoingQueue

if TYPE_CHECKING:  # pragma: no cover
    from ..session import IRCSession


class IRCSender:
    def __init__(self, client: IRCSession, queue: OutgoingQueue, delay: float):
        self.client = client
        self.queue = queue
        self.delay = delay
        self.thread: threading.Thread | None = None
        self._stopped = threading.Event()

    def start(self) -> None:
        self.queue.reopen()
        self.thread = threading.Thread(
            target=self.run, name=f"twirc-writer-{self.client.nick}", daemon=True
        )
        self.thread.start()

    def run(self) -> None:
        """Send one line, then wait ``delay`` seconds; order is never changed."""
        logger.log_event("irc", "sender_start", level=logging.DEBUG, user=self.client.nick)
        while not self._stopped.is_set():
            line = self.queue.next()
            if line is None:
                break
            self.client.send_raw_line(line)
            if self._stopped.wait(self.delay):
                break
        logger.log_event("irc", "sender_stop", level=logging.DEBUG, user=self.client.nick)

    def stop(self, timeout: float | None = None) -> None:
        self._stopped.set()
        self.queue.close()
        thread = self.thread
        if thread is None or thread.ident is None or thread is threading.current_thread():
            return
        thread.join(timeout)
