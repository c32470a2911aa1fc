import asyncio
import time

import pytest

from services.twitch.api.chat import ChatAuthenticationFailed
from services.twitch.workers.chat_worker import (
    CONNECTION_MESSAGE,
    ChatTransportUnavailable,
    TwitchChatWorker,
)
from shared.chat.lines import ChatLine


class FakeChatClient:
    """Yields canned chat lines, then idles until cancelled."""

    def __init__(self, lines):
        self.lines = lines
        self.sent = []
        self.closed = 0
        self._connected = False

    @property
    def connected(self):
        return self._connected

    async def connect(self):
        self._connected = True

    async def close(self):
        self._connected = False
        self.closed += 1

    async def send_message(self, text, *, channel=None):
        self.sent.append((text, channel))

    async def iter_messages(self):
        for line in self.lines:
            yield line
        await asyncio.Event().wait()


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate() and time.monotonic() < deadline:
        time.sleep(0.01)
    return predicate()


def test_requires_credentials(window):
    with pytest.raises(RuntimeError):
        TwitchChatWorker(window=window, oauth_token="", channel="chan")
    with pytest.raises(RuntimeError):
        TwitchChatWorker(window=window, oauth_token="oauth:x", channel="")


def test_send_before_start(window):
    worker = TwitchChatWorker(
        window=window, oauth_token="oauth:x", channel="chan", client=FakeChatClient([])
    )
    with pytest.raises(ChatTransportUnavailable):
        worker.send_message("hi")


def test_feeds_window_and_sends(window):
    client = FakeChatClient([ChatLine("alice", "hello"), ChatLine("bob", "hey")])
    worker = TwitchChatWorker(
        window=window,
        oauth_token="oauth:x",
        channel="chan",
        announce=True,
        client=client,
    )

    worker.start()
    try:
        assert _wait_for(lambda: len(window) == 2)
        worker.send_message("hi there", channel="chan")
    finally:
        worker.stop()

    assert [line.to_log_line() for line in window.snapshot()] == ["alice: hello", "bob: hey"]
    assert client.sent == [(CONNECTION_MESSAGE, None), ("hi there", "chan")]
    assert client.closed >= 1

    with pytest.raises(ChatTransportUnavailable):
        worker.send_message("after stop")


class RejectedChatClient(FakeChatClient):
    async def iter_messages(self):
        raise ChatAuthenticationFailed("Login authentication failed")
        yield  # pragma: no cover


def test_rejected_login_stops_worker(window):
    worker = TwitchChatWorker(
        window=window,
        oauth_token="oauth:bad",
        channel="chan",
        client=RejectedChatClient([]),
    )
    worker.start()
    try:
        assert _wait_for(lambda: not worker._thread.is_alive())
    finally:
        worker.stop()
    assert len(window) == 0
