"""Chat line model and IRC PRIVMSG parsing helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class ChatLine:
    """
    A single chat message as seen by the moderation heuristics.

    ``sequence_index`` is the receipt order assigned by the chat window.
    """

    username: str
    content: str
    sequence_index: int = 0

    def to_log_line(self) -> str:
        return f"{self.username}: {self.content}"

    @classmethod
    def from_irc(cls, raw: str, *, sequence_index: int = 0) -> Optional["ChatLine"]:
        """
        Parse a raw ``PRIVMSG`` line. Returns None for any other command.
        """
        tags, remainder = split_tags(raw)
        prefix, command, params = split_prefix_and_command(remainder)

        if command != "PRIVMSG" or len(params) < 2:
            return None

        username = parse_username(prefix) or tags.get("display-name") or "unknown"
        return cls(
            username=username.lower(),
            content=params[1],
            sequence_index=sequence_index,
        )

    @classmethod
    def from_log_line(cls, line: str, *, sequence_index: int = 0) -> "ChatLine":
        """
        Parse the ``username: content`` form produced by ``to_log_line``.
        """
        if line.startswith(":") and " PRIVMSG " in line:
            parsed = cls.from_irc(line, sequence_index=sequence_index)
            if parsed:
                return parsed

        username, sep, content = line.partition(":")
        if not sep or not username.strip():
            return cls(username="unknown", content=line.strip(), sequence_index=sequence_index)
        return cls(
            username=username.strip().lower(),
            content=content.strip(),
            sequence_index=sequence_index,
        )


# ---------------------------------------------------------------------- #
# IRC helpers
# ---------------------------------------------------------------------- #

def split_tags(raw: str) -> Tuple[Dict[str, str], str]:
    if raw.startswith("@") and " " in raw:
        tags_part, remainder = raw.split(" ", 1)
        tags = {}
        for pair in tags_part[1:].split(";"):
            if "=" in pair:
                k, v = pair.split("=", 1)
                tags[k] = v
        return tags, remainder

    return {}, raw


def split_prefix_and_command(raw: str) -> Tuple[str, str, Tuple[str, ...]]:
    prefix = ""
    rest = raw
    if raw.startswith(":"):
        if " " in raw:
            prefix, rest = raw[1:].split(" ", 1)
        else:
            prefix = raw[1:]
            rest = ""

    if " :" in rest:
        middle, trailing = rest.split(" :", 1)
        parts = middle.split()
        if not parts:
            return prefix, "", tuple()
        command = parts[0]
        params = tuple(parts[1:] + [trailing])
    else:
        parts = rest.split()
        if not parts:
            return prefix, "", tuple()
        command = parts[0]
        params = tuple(parts[1:])

    return prefix, command, params


def parse_username(prefix: str) -> str:
    # Prefix example: nickname!nickname@nickname.tmi.twitch.tv
    if "!" in prefix:
        return prefix.split("!", 1)[0]
    return prefix or ""


__all__ = [
    "ChatLine",
    "split_tags",
    "split_prefix_and_command",
    "parse_username",
]
