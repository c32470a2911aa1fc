from shared.chat.lines import ChatLine, parse_username, split_prefix_and_command, split_tags


def test_privmsg_with_tags():
    raw = (
        "@badge-info=;display-name=Alice;mod=0 "
        ":alice!alice@alice.tmi.twitch.tv PRIVMSG #streamer :hello there"
    )
    line = ChatLine.from_irc(raw, sequence_index=3)
    assert line == ChatLine("alice", "hello there", 3)


def test_username_is_lowercased():
    line = ChatLine.from_irc(":BobTheBuilder!bob@bob.tmi.twitch.tv PRIVMSG #chan :Hi")
    assert line.username == "bobthebuilder"


def test_non_privmsg_is_ignored():
    assert ChatLine.from_irc("PING :tmi.twitch.tv") is None
    assert ChatLine.from_irc(":tmi.twitch.tv 001 bot :Welcome, GLHF!") is None


def test_log_line_round_trip():
    line = ChatLine("alice", "gg: well played")
    assert line.to_log_line() == "alice: gg: well played"
    assert ChatLine.from_log_line(line.to_log_line()) == line


def test_log_line_without_username():
    assert ChatLine.from_log_line("no separator here").username == "unknown"


def test_helpers():
    tags, rest = split_tags("@a=1;b=2 PING :x")
    assert tags == {"a": "1", "b": "2"}
    assert split_prefix_and_command(rest) == ("", "PING", ("x",))
    assert parse_username("nick!nick@nick.tmi.twitch.tv") == "nick"
