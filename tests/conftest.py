import logging
import threading
from unittest.mock import Mock

import pytest

from twirc.config import SessionConfig
from twirc.irc.callbacks import IRCCallbacks
from twirc.logs.logger import logger as library_logger
from twirc.session import IRCSession


class FakeSocket:
    """In-memory stand-in for a connected TCP socket.

    Lines given up front (or fed later) are returned by ``recv``. With
    ``hold_open`` the socket blocks at end of data until more is fed or it
    is shut down, like a live server that has gone quiet. With ``fail_with``
    that exception is raised once the scripted data runs out.
    """

    def __init__(self, lines=(), hold_open=False, fail_with=None):
        self._incoming = bytearray()
        self._cond = threading.Condition()
        self.hold_open = hold_open
        self.fail_with = fail_with
        self.sent: list[bytes] = []
        self.closed = False
        self.timeout = None
        for line in lines:
            self._incoming += line.encode("utf-8") + b"\r\n"

    def feed(self, *lines):
        with self._cond:
            for line in lines:
                self._incoming += line.encode("utf-8") + b"\r\n"
            self._cond.notify_all()

    def recv(self, size):
        with self._cond:
            if not self._incoming and self.fail_with is not None and not self.closed:
                raise self.fail_with
            while not self._incoming and self.hold_open and not self.closed:
                self._cond.wait()
            if self.closed and not self._incoming:
                return b""
            chunk = bytes(self._incoming[:size])
            del self._incoming[:size]
            return chunk

    def sendall(self, data):
        if self.closed:
            raise OSError("socket closed")
        self.sent.append(data)

    def settimeout(self, timeout):
        self.timeout = timeout

    def getsockname(self):
        return ("127.0.0.1", 40000)

    def shutdown(self, how):
        self.close()

    def close(self):
        with self._cond:
            self.closed = True
            self._cond.notify_all()

    @property
    def sent_lines(self):
        return [d.decode("utf-8").rstrip("\r\n") for d in self.sent]


@pytest.fixture
def fake_socket_class():
    return FakeSocket


@pytest.fixture
def callbacks():
    return Mock(spec=IRCCallbacks)


@pytest.fixture
def session(callbacks):
    """Unconnected session whose raw sends land in ``session.sock``."""
    sess = IRCSession(SessionConfig(name="me", login="melogin"), callbacks=callbacks)
    sess.sock = FakeSocket()
    return sess


@pytest.fixture
def debug_logs():
    """Let library DEBUG events through to caplog."""
    previous = library_logger.logger.level
    library_logger.set_level(logging.DEBUG)
    yield
    library_logger.set_level(previous)
