"""
IRC session controller: connection lifecycle plus the public command API
"""

from __future__ import annotations

import logging
import os
import socket
import threading
from collections.abc import Callable

from .config import SessionConfig
from .constants import (
    DCC_DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_PORT,
    TWITCH_WHISPER_CHANNEL,
    WRITER_JOIN_TIMEOUT_SECONDS,
)
from .dcc import DccChat, DccFileTransfer, DccManager
from .directory import Channel, ChannelDirectory, User
from .errors import (
    AlreadyConnectedError,
    NickInUseError,
    NotConnectedError,
    ProtocolRejectedError,
)
from .irc.callbacks import IRCCallbacks
from .irc.dispatcher import IRCDispatcher
from .irc.listener import IRCListener, LineReader
from .irc.models import ConnectionState, OutgoingKind
from .irc.numerics import ERR_NICKNAMEINUSE, ERR_TARGETTOOFAST, RPL_MYINFO
from .irc.parser import format_ctcp
from .irc.queue import OutgoingQueue
from .irc.sender import IRCSender
from .logs.logger import logger

SocketFactory = Callable[[tuple[str, int]], socket.socket]


class IRCSession:
    """One connection to one IRC server.

    ``connect`` performs the handshake on the calling thread and raises on
    failure. Afterwards a reader thread dispatches inbound lines to
    ``callbacks`` and a writer thread drains the outgoing queue; nothing
    else raises to the host.
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        callbacks: IRCCallbacks | None = None,
        directory: ChannelDirectory | None = None,
        socket_factory: SocketFactory | None = None,
    ):
        self.config = config or SessionConfig()
        self.callbacks = callbacks or IRCCallbacks()
        self.directory = directory or ChannelDirectory()
        self._socket_factory = socket_factory or socket.create_connection
        self.queue = OutgoingQueue(self.config.max_queued_messages)
        self.dispatcher = IRCDispatcher(self, self.directory)
        self.dcc = DccManager(self)

        self.server: str | None = None
        self.port = DEFAULT_PORT
        self.password: str | None = None
        self.sock: socket.socket | None = None
        self.local_address: str | None = None

        self._nick = self.config.name
        self._state = ConnectionState.DISCONNECTED
        self._state_lock = threading.RLock()
        self._send_lock = threading.Lock()
        self._listener: IRCListener | None = None
        self._sender: IRCSender | None = None

    def __repr__(self) -> str:
        return (
            f"<IRCSession nick={self._nick!r} server={self.server!r} "
            f"port={self.port} state={self._state.name}>"
        )

    # Accessors --------------------------------------------------------------

    @property
    def nick(self) -> str:
        return self._nick

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def login(self) -> str:
        return self.config.login

    @property
    def state(self) -> ConnectionState:
        with self._state_lock:
            return self._state

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def outgoing_queue_size(self) -> int:
        return len(self.queue)

    def get_channel(self, name: str) -> Channel | None:
        return self.directory.get_channel(name)

    def get_channels(self) -> list[str]:
        return self.directory.channel_names()

    def get_users(self, channel: str) -> list[User]:
        return self.directory.users(channel) or []

    def nick_changed(self, new_nick: str) -> None:
        self._nick = new_nick

    def _set_state(self, state: ConnectionState) -> None:
        with self._state_lock:
            self._state = state

    # Lifecycle --------------------------------------------------------------

    def connect(
        self, host: str, port: int = DEFAULT_PORT, password: str | None = None
    ) -> None:
        """Open the socket, log in and start the reader/writer threads.

        Raises:
            AlreadyConnectedError: The session is not disconnected.
            NickInUseError: The nick is taken and auto nick change is off.
            ProtocolRejectedError: The server refused the login.
            OSError: The socket could not be opened or failed mid-handshake.
        """
        with self._state_lock:
            if self._state is not ConnectionState.DISCONNECTED:
                raise AlreadyConnectedError(
                    f"The session is already connected to {self.server}",
                    data={"server": self.server, "state": self._state.name},
                )
            self._state = ConnectionState.CONNECTING

        self.server, self.port, self.password = host, port, password
        self.directory.clear()
        self.directory.server = host
        self.dispatcher.numerics.reset()
        self._nick = self.config.name
        logger.log_event("irc", "connecting", user=self.config.name, server=host, port=port)

        try:
            self.sock = self._socket_factory((host, port))
            self.sock.settimeout(self.config.read_timeout)
            self.local_address = self._sock_address(self.sock)
            reader = LineReader(self.sock, self.config.encoding)
            self._set_state(ConnectionState.HANDSHAKING)
            self._handshake(reader)
        except BaseException as e:
            logger.log_event(
                "irc",
                "connect_failed",
                level=logging.ERROR,
                user=self.config.name,
                server=host,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._close_socket()
            self._set_state(ConnectionState.DISCONNECTED)
            raise

        self._set_state(ConnectionState.CONNECTED)
        self._listener = IRCListener(self, reader)
        self._sender = IRCSender(self, self.queue, self.config.message_delay)
        # The reader starts last: its exit tears down the writer.
        self._sender.start()
        logger.log_event("irc", "connected", user=self._nick, server=host, port=port)
        self.dispatcher.emit("on_connect")
        self._listener.start()

    def _handshake(self, reader: LineReader) -> None:
        if self.password:
            self.send_raw_line(f"PASS {self.password}")
        nick = self.config.name
        self.send_raw_line(f"NICK {nick}")
        self.send_raw_line(f"USER {self.config.login} 8 * :{self.config.version}")

        tries = 1
        while True:
            raw = reader.read_line()
            if raw is None:
                raise ConnectionError("Server closed the connection during login")
            line = self.dispatcher.dispatch(raw)
            if not line.is_numeric:
                continue
            code = line.code
            if code == RPL_MYINFO:
                break
            if code == ERR_NICKNAMEINUSE:
                if not self.config.auto_nick_change:
                    raise NickInUseError(nick, raw)
                tries += 1
                nick = f"{self.config.name}{tries}"
                self._nick = nick
                logger.log_event("irc", "nick_retry", level=logging.WARNING, user=nick)
                self.send_raw_line(f"NICK {nick}")
            elif code == ERR_TARGETTOOFAST:
                continue
            elif 400 <= code < 600:
                raise ProtocolRejectedError(line.command, raw)
        self._nick = nick

    def handle_reader_exit(self) -> None:
        """Called once by the reader thread when it stops for any reason."""
        with self._state_lock:
            if self._state is ConnectionState.DISCONNECTED:
                return
            self._state = ConnectionState.DISCONNECTED
        try:
            if self._sender is not None:
                self._sender.stop(WRITER_JOIN_TIMEOUT_SECONDS)
        finally:
            self._close_socket()
            logger.log_event("irc", "disconnected", user=self._nick, server=self.server)
            self.dispatcher.emit("on_disconnect")

    def reconnect(self) -> None:
        if self.server is None:
            raise NotConnectedError(
                "Cannot reconnect to an IRC server because we were never connected to one previously!"
            )
        self.connect(self.server, self.port, self.password)

    def disconnect(self) -> None:
        self.quit_server()

    def dispose(self) -> None:
        """Stop both threads; surfaces as a normal disconnect."""
        if self._sender is not None:
            self._sender.stop(WRITER_JOIN_TIMEOUT_SECONDS)
        listener = self._listener
        if listener is not None:
            listener.dispose()
            listener.join(WRITER_JOIN_TIMEOUT_SECONDS)
        self._close_socket()

    def _close_socket(self) -> None:
        sock, self.sock = self.sock, None
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.log_event("irc", "close_failed", level=logging.DEBUG, error=str(e))

    @staticmethod
    def _sock_address(sock: socket.socket) -> str | None:
        try:
            return sock.getsockname()[0]
        except OSError:
            return None

    # Sending ----------------------------------------------------------------

    def send_raw_line(self, line: str) -> bool:
        """Write ``line`` now, bypassing the queue. Cut to ``max_line_length``."""
        sock = self.sock
        if sock is None:
            return False
        limit = self.config.max_line_length - 2
        if len(line) > limit:
            line = line[:limit]
        data = (line + "\r\n").encode(self.config.encoding, errors="replace")
        try:
            with self._send_lock:
                sock.sendall(data)
        except OSError as e:
            logger.log_event(
                "irc", "send_failed", level=logging.WARNING, user=self._nick, error=str(e)
            )
            return False
        if self.config.verbose:
            logger.log_event("irc", "raw_out", level=logging.DEBUG, user=self._nick, raw=line)
        return True

    def send_raw_line_via_queue(
        self, line: str, kind: OutgoingKind = OutgoingKind.CONTROL
    ) -> bool:
        if not line:
            raise ValueError("Cannot queue an empty line")
        return self.queue.add(line, kind)

    def check_queue(self, line: str) -> bool:
        return self.queue.contains(line)

    def send_message(self, target: str, message: str) -> bool:
        return self.queue.add(f"PRIVMSG {target} :{message}", OutgoingKind.CHAT)

    def send_action(self, target: str, action: str) -> bool:
        return self.send_ctcp_command(target, f"ACTION {action}")

    def send_ctcp_command(self, target: str, command: str) -> bool:
        return self.queue.add(f"PRIVMSG {target} :{format_ctcp(command)}", OutgoingKind.CHAT)

    def send_notice(self, target: str, notice: str) -> bool:
        return self.queue.add(f"NOTICE {target} :{notice}", OutgoingKind.CONTROL)

    def send_whisper(self, target: str, message: str) -> bool:
        return self.send_message(TWITCH_WHISPER_CHANNEL, f"/w {target} {message}")

    # Channel operations -----------------------------------------------------

    def join_channel(self, channel: str, key: str | None = None) -> Channel:
        self.send_raw_line(f"JOIN {channel} {key}" if key else f"JOIN {channel}")
        return self.directory.add_channel(channel)

    def part_channel(self, channel: str, reason: str | None = None) -> None:
        self.send_raw_line(f"PART {channel} :{reason}" if reason else f"PART {channel}")
        self.directory.remove_channel(channel)

    def quit_server(self, reason: str = "") -> None:
        self.send_raw_line(f"QUIT :{reason}")
        self.directory.clear()

    def change_nick(self, new_nick: str) -> None:
        self.send_raw_line(f"NICK {new_nick}")

    def identify(self, password: str) -> None:
        self.send_raw_line(f"NICKSERV IDENTIFY {password}")

    def list_channels(self, parameters: str | None = None) -> None:
        self.send_raw_line(f"LIST {parameters}" if parameters else "LIST")

    def set_mode(self, channel: str, mode: str) -> None:
        self.send_raw_line(f"MODE {channel} {mode}")

    def send_invite(self, nick: str, channel: str) -> None:
        self.send_raw_line(f"INVITE {nick} :{channel}")

    def ban(self, channel: str, hostmask: str) -> None:
        self.set_mode(channel, f"+b {hostmask}")

    def unban(self, channel: str, hostmask: str) -> None:
        self.set_mode(channel, f"-b {hostmask}")

    def op(self, channel: str, nick: str) -> None:
        self.set_mode(channel, f"+o {nick}")

    def deop(self, channel: str, nick: str) -> None:
        self.set_mode(channel, f"-o {nick}")

    def voice(self, channel: str, nick: str) -> None:
        self.set_mode(channel, f"+v {nick}")

    def devoice(self, channel: str, nick: str) -> None:
        self.set_mode(channel, f"-v {nick}")

    def set_topic(self, channel: str, topic: str) -> None:
        self.send_raw_line(f"TOPIC {channel} :{topic}")

    def kick(self, channel: str, nick: str, reason: str = "") -> None:
        self.send_raw_line(f"KICK {channel} {nick} :{reason}")

    # DCC --------------------------------------------------------------------

    def dcc_send_file(
        self,
        path: str | os.PathLike[str],
        nick: str,
        timeout: float = DCC_DEFAULT_TIMEOUT_SECONDS,
        packet_delay: float = 0.0,
    ) -> DccFileTransfer:
        return self.dcc.send_file(path, nick, timeout, packet_delay)

    def dcc_send_chat_request(
        self, nick: str, timeout: float = DCC_DEFAULT_TIMEOUT_SECONDS
    ) -> DccChat | None:
        return self.dcc.request_chat(nick, timeout)
