"""
Unit tests for IRCDispatcher: directory mutation and callback routing.
"""

import logging
from unittest.mock import ANY

import pytest

from twirc.constants import TAG_INT_SENTINEL
from twirc.irc.models import Source


@pytest.fixture
def dispatch(session):
    return session.dispatcher.dispatch


@pytest.fixture
def joined(session, dispatch):
    """Session in #test with alice and bob present."""
    session.join_channel("#test")
    dispatch(":alice!a@h JOIN #test")
    dispatch(":bob!b@h JOIN #test")
    session.sock.sent.clear()
    return session


class TestPingAndCtcp:
    def test_server_ping_answered(self, session, dispatch, callbacks):
        dispatch("PING :tmi.twitch.tv")
        assert session.sock.sent_lines == ["PONG :tmi.twitch.tv"]
        callbacks.on_server_ping.assert_called_once_with(":tmi.twitch.tv")
        callbacks.on_unknown.assert_not_called()

    def test_version_reply(self, session, dispatch, callbacks):
        dispatch(":carol!c@h PRIVMSG me :\x01VERSION\x01")
        assert session.sock.sent_lines == [
            f"NOTICE carol :\x01VERSION {session.config.version}\x01"
        ]
        callbacks.on_version.assert_called_once()

    def test_ping_echo(self, session, dispatch, callbacks):
        dispatch(":carol!c@h PRIVMSG me :\x01PING 12345\x01")
        assert session.sock.sent_lines == ["NOTICE carol :\x01PING 12345\x01"]
        callbacks.on_ping.assert_called_once_with(ANY, "me", "12345")

    def test_finger_and_time(self, session, dispatch, callbacks):
        dispatch(":carol!c@h PRIVMSG me :\x01FINGER\x01")
        dispatch(":carol!c@h PRIVMSG me :\x01TIME\x01")
        sent = session.sock.sent_lines
        assert sent[0] == f"NOTICE carol :\x01FINGER {session.config.finger}\x01"
        assert sent[1].startswith("NOTICE carol :\x01TIME ")
        callbacks.on_finger.assert_called_once()
        callbacks.on_time.assert_called_once()

    def test_action_in_channel(self, joined, dispatch, callbacks):
        dispatch(":alice!a@h PRIVMSG #test :\x01ACTION waves\x01")
        user, target, action = callbacks.on_action.call_args.args
        assert (user.nick, target, action) == ("alice", "#test", "waves")
        assert joined.get_channel("#test").get_user("alice").previous_message == "waves"

    def test_unknown_ctcp_is_unknown_line(self, dispatch, callbacks):
        raw = ":carol!c@h PRIVMSG me :\x01CLIENTINFO\x01"
        dispatch(raw)
        callbacks.on_unknown.assert_called_once_with(raw)

    def test_malformed_dcc_is_unknown_line(self, dispatch, callbacks):
        raw = ":carol!c@h PRIVMSG me :\x01DCC SEND\x01"
        dispatch(raw)
        callbacks.on_unknown.assert_called_once_with(raw)


class TestMessages:
    def test_channel_message(self, joined, dispatch, callbacks):
        dispatch(":alice!a@h PRIVMSG #test :hello")
        channel, user, message = callbacks.on_message.call_args.args
        assert (channel, user.nick, message) == ("#test", "alice", "hello")
        assert user is joined.get_channel("#test").get_user("alice")
        assert user.previous_message == "hello"

    def test_message_clears_afk(self, joined, dispatch):
        alice = joined.get_channel("#test").get_user("alice")
        alice.afk = True
        dispatch(":alice!a@h PRIVMSG #test :back")
        assert alice.afk is False

    def test_private_message(self, dispatch, callbacks):
        dispatch(":carol!c@h PRIVMSG me :psst")
        user, message = callbacks.on_private_message.call_args.args
        assert user.nick == "carol" and user.channel is None
        assert message == "psst"

    def test_tagged_privmsg_updates_user(self, joined, dispatch, callbacks):
        dispatch(
            "@color=#FF0000;subscriber=1;turbo=0;badges=subscriber/12 "
            ":alice!a@h PRIVMSG #test :tagged"
        )
        user = callbacks.on_message.call_args.args[1]
        assert user.color == "#FF0000"
        assert user.subscriber is True
        assert user.turbo is False
        assert user.badges == "subscriber/12"
        assert joined.get_channel("#test").get_user("alice").color == "#FF0000"

    def test_bad_integer_tag_does_not_abort(self, joined, dispatch, callbacks):
        dispatch("@bits=lots;user-id=x :alice!a@h PRIVMSG #test :cheer")
        user = callbacks.on_message.call_args.args[1]
        assert user.bits == TAG_INT_SENTINEL
        assert user.user_id == TAG_INT_SENTINEL

    def test_notice(self, dispatch, callbacks):
        dispatch(":tmi.twitch.tv NOTICE * :Login unsuccessful")
        user, target, notice = callbacks.on_notice.call_args.args
        assert (user.nick, target, notice) == ("tmi.twitch.tv", "*", "Login unsuccessful")

    def test_whisper(self, dispatch, callbacks):
        dispatch("@color=#00FF00 :carol!c@c.tmi.twitch.tv WHISPER me :secret")
        user, target, message = callbacks.on_whisper.call_args.args
        assert (user.nick, user.color, target, message) == ("carol", "#00FF00", "me", "secret")

    def test_unknown_command(self, dispatch, callbacks):
        dispatch(":srv WALLOPS :hi all")
        callbacks.on_unknown.assert_called_once_with(":srv WALLOPS :hi all")


class TestMembership:
    def test_self_join_creates_channel(self, session, dispatch, callbacks):
        dispatch(":me!m@h JOIN #new")
        assert session.get_channel("#new") is not None
        assert [u.nick for u in session.get_users("#new")] == ["me"]
        callbacks.on_join.assert_called_once()

    def test_other_join_adds_member(self, joined):
        assert [u.nick for u in joined.get_users("#test")] == ["alice", "bob"]

    def test_part(self, joined, dispatch, callbacks):
        dispatch(":alice!a@h PART #test")
        assert [u.nick for u in joined.get_users("#test")] == ["bob"]
        channel, user = callbacks.on_part.call_args.args
        assert (channel, user.nick) == ("#test", "alice")

    def test_self_part_removes_channel(self, joined, dispatch):
        dispatch(":me!m@h PART #test")
        assert joined.get_channel("#test") is None

    def test_nick_change_renames_everywhere(self, joined, dispatch, callbacks):
        joined.join_channel("#other")
        dispatch(":alice!a@h JOIN #other")
        dispatch(":alice!a@h NICK :alice2")
        for name in ("#test", "#other"):
            channel = joined.get_channel(name)
            assert not channel.contains_user("alice")
            assert channel.get_user("alice2").nick == "alice2"
        callbacks.on_nick_change.assert_called_once_with(
            "alice", "alice2", Source("alice", "a", "h")
        )
        assert joined.nick == "me"

    def test_own_nick_change_updates_session(self, session, dispatch):
        dispatch(":me!m@h NICK :me2")
        assert session.nick == "me2"

    def test_quit(self, joined, dispatch, callbacks):
        dispatch(":bob!b@h QUIT :Leaving")
        assert [u.nick for u in joined.get_users("#test")] == ["alice"]
        user, reason = callbacks.on_quit.call_args.args
        assert (user.nick, reason) == ("bob", "Leaving")

    def test_own_quit_clears_channels(self, joined, dispatch):
        dispatch(":me!m@h QUIT :bye")
        assert joined.get_channels() == []

    def test_kick(self, joined, dispatch, callbacks):
        dispatch(":op!o@h KICK #test bob :spam")
        assert [u.nick for u in joined.get_users("#test")] == ["alice"]
        callbacks.on_kick.assert_called_once_with("#test", Source("op", "o", "h"), "bob", "spam")

    def test_self_kick_removes_channel(self, joined, dispatch):
        dispatch(":op!o@h KICK #test me :bye")
        assert joined.get_channel("#test") is None

    def test_invite(self, dispatch, callbacks):
        dispatch(":carol!c@h INVITE me :#party")
        callbacks.on_invite.assert_called_once_with("me", Source("carol", "c", "h"), "#party")


class TestChannelState:
    def test_channel_mode_routes_to_decoder(self, joined, dispatch, callbacks):
        dispatch(":op!o@h MODE #test +o alice")
        callbacks.on_op.assert_called_once_with("#test", Source("op", "o", "h"), "alice")
        callbacks.on_mode.assert_called_once_with("#test", Source("op", "o", "h"), "+o alice")
        assert joined.get_channel("#test").get_user("alice").op

    def test_user_mode(self, dispatch, callbacks):
        dispatch(":me!m@h MODE me :+i")
        callbacks.on_user_mode.assert_called_once_with("me", Source("me", "m", "h"), "+i")
        callbacks.on_mode.assert_not_called()

    def test_live_topic_change(self, dispatch, callbacks):
        dispatch(":alice!a@h TOPIC #test :new topic")
        channel, topic, setter, date, changed = callbacks.on_topic.call_args.args
        assert (channel, topic, setter, changed) == ("#test", "new topic", "alice", True)
        assert date > 0

    def test_numeric_routed(self, dispatch, callbacks):
        dispatch(":srv 001 me :Welcome")
        callbacks.on_server_response.assert_called_once_with(1, "me :Welcome")


class TestTaggedDialect:
    def test_clearchat_whole_channel(self, joined, dispatch, callbacks):
        dispatch(":tmi.twitch.tv CLEARCHAT #test")
        callbacks.on_chat_cleared.assert_called_once_with("#test")
        callbacks.on_user_timed_out.assert_not_called()

    def test_clearchat_single_user(self, joined, dispatch, callbacks):
        dispatch(r"@ban-duration=600;ban-reason=being\srude :tmi.twitch.tv CLEARCHAT #test :alice")
        user, channel, duration, reason = callbacks.on_user_timed_out.call_args.args
        assert (user.nick, channel, duration, reason) == ("alice", "#test", 600, "being rude")
        callbacks.on_chat_cleared.assert_not_called()

    def test_clearchat_duration_defaults(self, joined, dispatch, callbacks):
        dispatch(":tmi.twitch.tv CLEARCHAT #test :alice")
        assert callbacks.on_user_timed_out.call_args.args[2] == -1
        dispatch("@ban-duration=soon :tmi.twitch.tv CLEARCHAT #test :bob")
        assert callbacks.on_user_timed_out.call_args.args[2] == -1

    def test_roomstate(self, joined, dispatch, callbacks):
        dispatch("@broadcaster-lang=en;r9k=1;slow=10;subs-only=1;emote-only=0 :tmi.twitch.tv ROOMSTATE #test")
        channel = joined.get_channel("#test")
        assert channel.broadcaster_language == "en"
        assert channel.r9k and channel.subs_only and not channel.emote_only
        assert channel.slow == 10
        callbacks.on_room_state.assert_called_once_with(channel)

    def test_roomstate_unknown_channel(self, dispatch, callbacks):
        dispatch("@slow=0 :tmi.twitch.tv ROOMSTATE #nowhere")
        callbacks.on_room_state.assert_not_called()
        callbacks.on_unknown.assert_called_once()

    def test_userstate_describes_own_user(self, joined, dispatch, callbacks):
        dispatch("@display-name=Me;mod=1;color=#123456 :tmi.twitch.tv USERSTATE #test")
        user, channel = callbacks.on_user_state.call_args.args
        assert (user.nick, user.display_name, user.mod, user.color) == ("me", "Me", True, "#123456")
        assert channel == "#test"

    def test_global_userstate(self, dispatch, callbacks):
        dispatch("@emote-sets=0,33 :tmi.twitch.tv GLOBALUSERSTATE")
        user = callbacks.on_global_user_state.call_args.args[0]
        assert user.emote_sets == "0,33"

    def test_usernotice(self, joined, dispatch, callbacks):
        dispatch(
            r"@login=alice;msg-id=resub;msg-param-months=6;system-msg=alice\ssubscribed "
            ":tmi.twitch.tv USERNOTICE #test :Great stream"
        )
        channel, user, message = callbacks.on_user_notice.call_args.args
        assert (channel, user.nick, message) == ("#test", "alice", "Great stream")
        assert user.msg_id == "resub"
        assert user.consecutive_months == 6
        assert user.system_msg == "alice subscribed"

    def test_hosttarget(self, dispatch, callbacks):
        dispatch(":tmi.twitch.tv HOSTTARGET #host :target 12")
        callbacks.on_host_target.assert_called_once_with("#host", "target", 12)
        dispatch(":tmi.twitch.tv HOSTTARGET #host :- 0")
        callbacks.on_host_target.assert_called_with("#host", "-", 0)


class TestCallbackIsolation:
    def test_callback_error_is_logged_and_dispatch_continues(
        self, joined, dispatch, callbacks, caplog
    ):
        caplog.set_level(logging.ERROR)
        callbacks.on_message.side_effect = RuntimeError("host bug")
        dispatch(":alice!a@h PRIVMSG #test :boom")
        dispatch(":bob!b@h PART #test")
        callbacks.on_part.assert_called_once()
        assert any("host bug" in r.message for r in caplog.records)
