"""
Unit tests for the writer loop.
"""

import threading
import time
from unittest.mock import Mock

from twirc.irc.models import OutgoingKind
from twirc.irc.queue import OutgoingQueue
from twirc.irc.sender import IRCSender


class TestIRCSender:
    def setup_method(self):
        self.client = Mock()
        self.client.nick = "me"
        self.sent = []
        self.all_sent = threading.Event()

        def record(line):
            self.sent.append(line)
            if len(self.sent) == 3:
                self.all_sent.set()

        self.client.send_raw_line.side_effect = record
        self.queue = OutgoingQueue()

    def test_stop_before_start_is_harmless(self):
        sender = IRCSender(self.client, self.queue, 0)
        sender.thread = threading.Thread(target=sender.run)
        sender.stop(0.1)
        assert self.queue.closed

    def test_drains_in_order_with_delay(self):
        for i in range(3):
            self.queue.add(f"PRIVMSG #a :{i}", OutgoingKind.CHAT)
        sender = IRCSender(self.client, self.queue, 0.05)
        started = time.monotonic()
        sender.start()
        assert self.all_sent.wait(2)
        elapsed = time.monotonic() - started
        sender.stop(1)
        assert self.sent == ["PRIVMSG #a :0", "PRIVMSG #a :1", "PRIVMSG #a :2"]
        assert elapsed >= 0.09

    def test_stop_wakes_idle_writer(self):
        sender = IRCSender(self.client, self.queue, 0)
        sender.start()
        sender.stop(1)
        assert not sender.thread.is_alive()
