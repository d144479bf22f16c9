"""
Unit tests for MODE decoding.
"""

from unittest.mock import Mock, call

from twirc.constants import TAG_INT_SENTINEL
from twirc.directory import ChannelDirectory, User
from twirc.irc.modes import ModeChange, ModeDecoder, decode_modes
from twirc.irc.models import Source

SRC = Source("op", "oplogin", "ophost")


class TestDecodeModes:
    def test_parameters_consumed_in_flag_order(self):
        assert decode_modes("+oo-b alice bob *!*@bad") == [
            ModeChange("+", "o", "alice"),
            ModeChange("+", "o", "bob"),
            ModeChange("-", "b", "*!*@bad"),
        ]

    def test_limit_only_consumes_when_added(self):
        assert decode_modes("+l-l+k 10 secret") == [
            ModeChange("+", "l", "10"),
            ModeChange("-", "l", None),
            ModeChange("+", "k", "secret"),
        ]

    def test_parameterless_flags(self):
        changes = decode_modes("+tn-m")
        assert [(c.sign, c.letter, c.param) for c in changes] == [
            ("+", "t", None),
            ("+", "n", None),
            ("-", "m", None),
        ]

    def test_letters_before_sign_have_no_sign(self):
        assert decode_modes("ov+t a b") == [
            ModeChange("", "o", "a"),
            ModeChange("", "v", "b"),
            ModeChange("+", "t", None),
        ]

    def test_missing_parameter_is_none(self):
        assert decode_modes("+ov alice") == [
            ModeChange("+", "o", "alice"),
            ModeChange("+", "v", None),
        ]

    def test_empty(self):
        assert decode_modes("") == []

    def test_unknown_letters_do_not_consume(self):
        assert decode_modes("+xo alice") == [
            ModeChange("+", "x", None),
            ModeChange("+", "o", "alice"),
        ]


class TestModeDecoder:
    def setup_method(self):
        self.directory = ChannelDirectory()
        self.directory.add_channel("#c")
        self.directory.add_user("#c", User("alice"))
        self.emit = Mock()
        self.decoder = ModeDecoder(self.directory, self.emit)

    def test_op_and_ban_events_then_generic(self):
        self.decoder.handle("#c", SRC, "+o-b alice *!*@x")
        assert self.emit.call_args_list == [
            call("on_op", "#c", SRC, "alice"),
            call("on_remove_channel_ban", "#c", SRC, "*!*@x"),
            call("on_mode", "#c", SRC, "+o-b alice *!*@x"),
        ]
        assert self.directory.get_user("#c", "alice").op is True

    def test_devoice_updates_directory(self):
        self.directory.set_user_flags("#c", "alice", voice=True)
        self.decoder.handle("#c", SRC, "-v alice")
        assert self.directory.get_user("#c", "alice").voice is False
        self.emit.assert_any_call("on_devoice", "#c", SRC, "alice")

    def test_limit_events(self):
        self.decoder.handle("#c", SRC, "+l 25")
        self.emit.assert_any_call("on_set_channel_limit", "#c", SRC, 25)
        self.decoder.handle("#c", SRC, "-l")
        self.emit.assert_any_call("on_remove_channel_limit", "#c", SRC)

    def test_bad_limit_is_sentinel(self):
        self.decoder.handle("#c", SRC, "+l lots")
        self.emit.assert_any_call("on_set_channel_limit", "#c", SRC, TAG_INT_SENTINEL)

    def test_flag_pairs(self):
        self.decoder.handle("#c", SRC, "+tnimps")
        self.decoder.handle("#c", SRC, "-tnimps")
        names = [c.args[0] for c in self.emit.call_args_list]
        for letter_event in (
            "topic_protection",
            "no_external_messages",
            "invite_only",
            "moderated",
            "private",
            "secret",
        ):
            assert f"on_set_{letter_event}" in names
            assert f"on_remove_{letter_event}" in names

    def test_unsigned_and_unknown_letters_only_fire_generic(self):
        self.decoder.handle("#c", SRC, "o+x alice")
        assert self.emit.call_args_list == [call("on_mode", "#c", SRC, "o+x alice")]

    def test_key_events(self):
        self.decoder.handle("#c", SRC, "+k-k hunter2 hunter2")
        self.emit.assert_any_call("on_set_channel_key", "#c", SRC, "hunter2")
        self.emit.assert_any_call("on_remove_channel_key", "#c", SRC, "hunter2")
