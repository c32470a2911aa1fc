"""
Shared pytest fixtures for the Twitch MCP server tests.
"""

import os

# Keep test runs from writing log files; must be set before any project import.
os.environ.setdefault("TWITCH_MCP_LOG_FILE", "0")

import pytest  # noqa: E402

from services.mcp.envelopes import ConfigurationSnapshot  # noqa: E402
from services.moderation import ModerationHeuristics  # noqa: E402
from services.twitch.api.helix import HelixResult  # noqa: E402
from shared.runtime.chat_window import ChatWindow  # noqa: E402

CONFIG_PARAMS = {
    "twitch.channel": "streamer",
    "twitch.auth": "oauth:abc123",
    "twitch.clientId": "client-1",
    "twitch.broadcasterId": "42",
}


class RecordingHelix:
    """Stand-in for HelixClient that records every call."""

    def __init__(self):
        self.calls = []

    def _record(self, name, *args):
        self.calls.append((name,) + args)

    def create_poll(self, creds, title, choices, duration):
        self._record("create_poll", title, choices, duration)
        return HelixResult(True, "Poll created successfully!", 200)

    def create_prediction(self, creds, title, outcomes, duration):
        self._record("create_prediction", title, outcomes, duration)
        return HelixResult(True, "Prediction created successfully!", 200)

    def create_clip(self, creds):
        self._record("create_clip")
        return HelixResult(True, "Clip created successfully!", 202)

    def timeout_user(self, creds, username, reason, duration):
        self._record("timeout_user", username, reason, duration)
        return HelixResult(
            True,
            f"Successfully timed out {username} for {duration} seconds. Reason: {reason}",
            200,
        )

    def ban_user(self, creds, username, reason):
        self._record("ban_user", username, reason)
        return HelixResult(True, f"Successfully banned {username}. Reason: {reason}", 200)

    def update_title(self, creds, title):
        self._record("update_title", title)
        return HelixResult(True, f"Successfully updated stream title to: {title}", 204)

    def update_category(self, creds, name):
        self._record("update_category", name)
        return HelixResult(True, f"Successfully updated stream category to: {name}", 204)


class RecordingSender:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send_message(self, text, *, channel=None):
        if self.error:
            raise self.error
        self.sent.append((text, channel))


@pytest.fixture
def window():
    return ChatWindow(capacity=100)


@pytest.fixture
def heuristics(window):
    return ModerationHeuristics(window)


@pytest.fixture
def helix():
    return RecordingHelix()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def config_params():
    return dict(CONFIG_PARAMS)


@pytest.fixture
def creds():
    return ConfigurationSnapshot.from_params(CONFIG_PARAMS)
