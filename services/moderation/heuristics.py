"""
Chat moderation heuristics.

Keyword-driven guesses for vague tool arguments (timeout length from a
reason, target user from a descriptor) plus the plain-text chat summary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from services.moderation.keywords import (
    DEFAULT_TIMEOUT_SECONDS,
    STOPWORDS,
    TIMEOUT_TIERS,
    keywords_for,
)
from shared.chat.lines import ChatLine
from shared.logging.logger import get_logger
from shared.runtime.chat_window import ChatWindow

log = get_logger("moderation.heuristics")

NO_MESSAGES_TEXT = "No recent chat messages to analyze."
TOP_WORD_LIMIT = 5

_USERNAME_PATTERN = re.compile(r"[a-zA-Z0-9_]{3,25}")
_USER_NAMED_PATTERN = re.compile(r".*user named ", re.IGNORECASE | re.DOTALL)


def classify_duration(reason: Optional[str]) -> int:
    """
    Map a free-text reason to a timeout length in seconds.

    Tiers are checked in a fixed order and the first hit wins, so
    "toxic and severe" is a toxic (1800s) timeout, not a severe one.
    """
    lowered = (reason or "").lower()
    for terms, seconds in TIMEOUT_TIERS:
        if any(term in lowered for term in terms):
            return seconds
    return DEFAULT_TIMEOUT_SECONDS


@dataclass
class ChatAnalysis:
    total_messages: int = 0
    average_words: float = 0.0
    top_words: List[Tuple[str, int]] = field(default_factory=list)

    def render(self) -> str:
        if not self.total_messages:
            return NO_MESSAGES_TEXT

        lines = [
            "Chat Analysis:",
            f"- Total messages: {self.total_messages}",
            f"- Average words per message: {self.average_words:.1f}",
        ]
        if self.top_words:
            topics = ", ".join(
                f"{word} ({count} mentions)" for word, count in self.top_words
            )
        else:
            topics = "No significant topics detected"
        lines.append(f"- Top topics: {topics}")
        return "\n".join(lines)


class ModerationHeuristics:
    """
    Keyword and frequency heuristics over the chat window.

    Pure logic:
    - No I/O
    - Reads the window through snapshots only
    - Ties always go to whichever candidate was seen first in the window
    """

    def __init__(self, window: ChatWindow):
        self.window = window

    # ------------------------------------------------------------
    # Target resolution
    # ------------------------------------------------------------

    def resolve_target(self, target: Optional[str]) -> Optional[str]:
        """
        Turn a username-ish input into a concrete username.

        Returns None for free-text descriptors ("the toxic one") so the
        caller can hand the chat log back for a human or LLM decision.
        """
        if not target or not target.strip():
            return None

        lowered = target.lower()
        if "user named" not in lowered and not _USERNAME_PATTERN.fullmatch(target):
            return None

        candidate = _USER_NAMED_PATTERN.sub("", target, count=1).strip()
        if not candidate:
            return None

        match = self.find_user_in_chat(candidate)
        resolved = match or candidate
        log.debug(f"Resolved moderation target '{target}' -> '{resolved}'")
        return resolved

    def find_user_in_chat(self, partial: str) -> Optional[str]:
        needle = (partial or "").lower()
        if not needle:
            return None

        activity = self._activity_by_user(self.window.snapshot())

        best_match: Optional[str] = None
        best_count = 0
        for username, count in activity.items():
            if needle in username and count > best_count:
                best_match = username
                best_count = count
        return best_match

    def find_user_by_descriptor(self, descriptor: str) -> Optional[str]:
        keywords = [k for k in keywords_for(descriptor) if k]
        if not keywords:
            return None

        scores: Dict[str, int] = {}
        for line in self.window.snapshot():
            content = line.content.lower()
            if any(keyword in content for keyword in keywords):
                username = line.username.lower()
                scores[username] = scores.get(username, 0) + 1

        best_user: Optional[str] = None
        best_score = 0
        for username, score in scores.items():
            if score > best_score:
                best_user = username
                best_score = score
        return best_user

    # ------------------------------------------------------------
    # Severity
    # ------------------------------------------------------------

    @staticmethod
    def classify_duration(reason: Optional[str]) -> int:
        return classify_duration(reason)

    # ------------------------------------------------------------
    # Chat summaries
    # ------------------------------------------------------------

    def analyze(self) -> ChatAnalysis:
        lines = self.window.snapshot()
        if not lines:
            return ChatAnalysis()

        frequency: Dict[str, int] = {}
        total_words = 0
        for line in lines:
            words = line.content.lower().split()
            total_words += len(words)
            for word in words:
                if len(word) > 3 and word not in STOPWORDS:
                    frequency[word] = frequency.get(word, 0) + 1

        # sorted() is stable, so equal counts keep first-seen order
        top_words = sorted(frequency.items(), key=lambda item: item[1], reverse=True)

        return ChatAnalysis(
            total_messages=len(lines),
            average_words=total_words / len(lines),
            top_words=top_words[:TOP_WORD_LIMIT],
        )

    def recent_chat_log(self, n: int = 20) -> List[str]:
        return [line.to_log_line() for line in self.window.last_n(n)]

    # ------------------------------------------------------------

    @staticmethod
    def _activity_by_user(lines: Tuple[ChatLine, ...]) -> Dict[str, int]:
        activity: Dict[str, int] = {}
        for line in lines:
            username = line.username.lower()
            activity[username] = activity.get(username, 0) + 1
        return activity


__all__ = [
    "ChatAnalysis",
    "ModerationHeuristics",
    "NO_MESSAGES_TEXT",
    "classify_duration",
]
