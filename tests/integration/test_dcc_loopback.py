"""
Loopback DCC tests: two managers talk to each other on 127.0.0.1, with the
CTCP leg short-circuited in memory.
"""

import threading
from unittest.mock import Mock

import pytest

from twirc.config import SessionConfig
from twirc.constants import DCC_BUFFER_SIZE
from twirc.dcc import DccManager
from twirc.dcc.chat import ChatState
from twirc.dcc.transfer import TransferState
from twirc.errors import DCCTransferError
from twirc.irc.models import Source


def make_peer(nick):
    client = Mock()
    client.config = SessionConfig(name=nick, dcc_address="127.0.0.1")
    client.local_address = "127.0.0.1"
    return DccManager(client)


def link(sender, sender_nick, receiver):
    """Route ``sender``'s CTCP requests straight into ``receiver``."""
    source = Source(sender_nick, sender_nick, "localhost")
    sender.client.send_ctcp_command.side_effect = lambda nick, payload: receiver.process_request(
        source, payload
    )


@pytest.fixture
def peers():
    alice, bob = make_peer("alice"), make_peer("bob")
    link(alice, "alice", bob)
    link(bob, "bob", alice)
    return alice, bob


def accept_offers(manager, destination, resume=False):
    offers = []

    def on_emit(name, *args):
        if name == "on_incoming_file_transfer":
            transfer = args[0]
            offers.append(transfer)
            transfer.receive(destination, resume=resume)

    manager.client.dispatcher.emit.side_effect = on_emit
    return offers


class TestFileTransfer:
    def test_send_and_receive(self, peers, tmp_path):
        alice, bob = peers
        payload = bytes(range(256)) * 100
        source = tmp_path / "data file.bin"
        source.write_bytes(payload)
        destination = tmp_path / "received.bin"
        offers = accept_offers(bob, destination)

        outgoing = alice.send_file(source, "bob", timeout=5)
        assert outgoing.wait(5)
        (incoming,) = offers
        assert incoming.wait(5)

        assert outgoing.state is TransferState.COMPLETED
        assert incoming.state is TransferState.COMPLETED
        assert incoming.filename == "data file.bin"
        assert incoming.size == len(payload)
        assert destination.read_bytes() == payload
        assert incoming.progress_percentage == 100.0
        alice.client.dispatcher.emit.assert_any_call(
            "on_file_transfer_finished", outgoing, None
        )

    def test_resume_appends(self, peers, tmp_path):
        alice, bob = peers
        payload = b"0123456789" * 1000
        source = tmp_path / "log.txt"
        source.write_bytes(payload)
        destination = tmp_path / "partial.txt"
        destination.write_bytes(payload[:4000])
        offers = accept_offers(bob, destination, resume=True)

        outgoing = alice.send_file(source, "bob", timeout=5)
        assert outgoing.wait(5)
        (incoming,) = offers
        assert incoming.wait(5)

        assert incoming.error is None
        assert destination.read_bytes() == payload
        assert incoming.progress == len(payload)

    def test_packet_delay_throttles_sender(self, peers, tmp_path):
        alice, bob = peers
        payload = b"z" * (DCC_BUFFER_SIZE * 4)
        source = tmp_path / "slow.bin"
        source.write_bytes(payload)
        destination = tmp_path / "slow-copy.bin"
        offers = accept_offers(bob, destination)

        outgoing = alice.send_file(source, "bob", timeout=5, packet_delay=0.05)
        assert outgoing.wait(5)
        (incoming,) = offers
        assert incoming.wait(5)

        assert destination.read_bytes() == payload
        elapsed = outgoing.end_time - outgoing.start_time
        assert elapsed >= 0.15
        assert outgoing.transfer_rate == pytest.approx(len(payload) / elapsed)
        assert outgoing.transfer_rate <= len(payload) / 0.15

    def test_unanswered_offer_times_out(self, tmp_path):
        alice = make_peer("alice")
        source = tmp_path / "f.txt"
        source.write_bytes(b"x")
        outgoing = alice.send_file(source, "nobody", timeout=0.2)
        assert outgoing.wait(5)
        assert outgoing.state is TransferState.FAILED
        assert isinstance(outgoing.error, DCCTransferError)
        alice.client.dispatcher.emit.assert_called_with(
            "on_file_transfer_finished", outgoing, outgoing.error
        )

    def test_receive_from_closed_port_fails(self, tmp_path):
        bob = make_peer("bob")
        bob.process_request(Source("alice", "a", "h"), "DCC SEND f.txt 2130706433 1 10")
        (call,) = bob.client.dispatcher.emit.call_args_list
        transfer = call.args[1]
        transfer.receive(tmp_path / "f.txt")
        assert transfer.wait(5)
        assert transfer.state is TransferState.FAILED

    def test_resume_for_unknown_offer_refused(self):
        alice = make_peer("alice")
        assert alice.process_request(Source("bob", "b", "h"), "DCC RESUME f 5000 1") is False
        assert alice.process_request(Source("bob", "b", "h"), "DCC ACCEPT f 5000 1") is False


class TestChat:
    def test_chat_round_trip(self, peers):
        alice, bob = peers
        incoming = []
        accepted = threading.Event()

        def on_emit(name, *args):
            if name == "on_incoming_chat_request":
                chat = args[0]
                incoming.append(chat)
                threading.Thread(target=lambda: chat.accept(5) and accepted.set()).start()

        bob.client.dispatcher.emit.side_effect = on_emit

        outgoing = alice.request_chat("bob", timeout=5)
        assert outgoing is not None and outgoing.is_connected
        assert accepted.wait(5)
        (chat,) = incoming

        assert outgoing.send_line("hello bob")
        assert chat.read_line() == "hello bob"
        assert chat.send_line("hi alice")
        assert outgoing.read_line() == "hi alice"

        outgoing.close()
        assert chat.read_line() is None
        assert chat.state is ChatState.CLOSED
        assert chat.send_line("too late") is False

    def test_unanswered_chat_returns_none(self):
        alice = make_peer("alice")
        assert alice.request_chat("nobody", timeout=0.2) is None

    def test_accept_twice_refused(self, peers):
        _, bob = peers
        bob.process_request(Source("alice", "a", "h"), "DCC CHAT chat 2130706433 1")
        chat = bob.client.dispatcher.emit.call_args.args[1]
        assert chat.accept(1) is False
        assert chat.state is ChatState.CLOSED
        assert chat.accept(1) is False
