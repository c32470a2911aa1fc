from services.moderation.heuristics import (
    ChatAnalysis,
    ModerationHeuristics,
    NO_MESSAGES_TEXT,
    classify_duration,
)
from services.moderation.keywords import DESCRIPTOR_KEYWORDS

__all__ = [
    "ChatAnalysis",
    "ModerationHeuristics",
    "NO_MESSAGES_TEXT",
    "classify_duration",
    "DESCRIPTOR_KEYWORDS",
]
