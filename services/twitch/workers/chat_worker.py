import asyncio
import threading
from typing import Optional

from services.twitch.api.chat import ChatAuthenticationFailed, TwitchChatClient
from shared.chat.lines import ChatLine
from shared.logging.logger import get_logger
from shared.runtime.chat_window import ChatWindow

log = get_logger("twitch.chat_worker")

CONNECTION_MESSAGE = "Twitch MCP Server connected"
RECONNECT_DELAY_SECONDS = 5.0
SEND_TIMEOUT_SECONDS = 10.0


class ChatTransportUnavailable(RuntimeError):
    """Raised when a send is attempted without a live chat connection."""


class TwitchChatWorker:
    """
    Background Twitch chat worker (IRC over TLS).

    Responsibilities:
    - Own the TwitchChatClient lifecycle on a private asyncio loop
    - Feed every PRIVMSG into the shared ChatWindow
    - Accept sends from request threads (``send_message`` is thread-safe)
    """

    def __init__(
        self,
        *,
        window: ChatWindow,
        oauth_token: str,
        channel: str,
        nickname: Optional[str] = None,
        announce: bool = False,
        client: Optional[TwitchChatClient] = None,
    ):
        if not oauth_token:
            raise RuntimeError("Twitch oauth_token is required")
        if not channel:
            raise RuntimeError("Twitch channel is required")

        self.window = window
        self.channel = channel
        self.nickname = nickname or channel
        self.announce = announce
        self._client = client or TwitchChatClient(
            token=oauth_token,
            nickname=self.nickname,
            channel=self.channel,
        )

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._ready = threading.Event()

    # ------------------------------------------------------------------ #
    # Thread lifecycle
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return

        self._thread = threading.Thread(
            target=self._thread_main, name="twitch-chat-worker", daemon=True
        )
        self._thread.start()
        self._ready.wait(timeout=5)

    def stop(self, timeout: float = 5.0) -> None:
        loop = self._loop
        if not loop or not self._stop_event:
            return

        loop.call_soon_threadsafe(self._stop_event.set)
        if self._thread:
            self._thread.join(timeout=timeout)
        log.info(f"[#{self.channel}] Twitch chat worker stopped")

    def _thread_main(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._stop_event = asyncio.Event()
        self._ready.set()
        try:
            loop.run_until_complete(self.run())
        finally:
            loop.close()
            self._loop = None

    # ------------------------------------------------------------------ #
    # Async body
    # ------------------------------------------------------------------ #

    async def run(self) -> None:
        if self._stop_event is None:
            self._stop_event = asyncio.Event()

        log.info(f"[#{self.channel}] Twitch chat worker starting")
        while not self._stop_event.is_set():
            reader = asyncio.ensure_future(self._read_once())
            stopper = asyncio.ensure_future(self._stop_event.wait())
            try:
                await asyncio.wait(
                    {reader, stopper}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                for task in (reader, stopper):
                    if not task.done():
                        task.cancel()
                await asyncio.gather(reader, stopper, return_exceptions=True)
                await self._client.close()

            error = reader.exception() if reader.done() and not reader.cancelled() else None
            if isinstance(error, ChatAuthenticationFailed):
                log.error(f"[#{self.channel}] Chat login rejected, not retrying: {error}")
                break
            if error:
                log.error(f"[#{self.channel}] Twitch chat worker error: {error}")

            if self._stop_event.is_set():
                break

            log.info(
                f"[#{self.channel}] Reconnecting in {RECONNECT_DELAY_SECONDS:.0f}s"
            )
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=RECONNECT_DELAY_SECONDS
                )
            except asyncio.TimeoutError:
                pass

    async def _read_once(self) -> None:
        await self._client.connect()
        if self.announce:
            await self._client.send_message(CONNECTION_MESSAGE)

        async for message in self._client.iter_messages():
            self._handle_message(message)

    def _handle_message(self, message: ChatLine) -> None:
        self.window.record(message.username, message.content)

    # ------------------------------------------------------------------ #
    # Sending (called from request threads)
    # ------------------------------------------------------------------ #

    def send_message(self, text: str, *, channel: Optional[str] = None) -> None:
        loop = self._loop
        if not loop or not self._client.connected:
            raise ChatTransportUnavailable("Twitch chat is not connected")

        future = asyncio.run_coroutine_threadsafe(
            self._client.send_message(text, channel=channel), loop
        )
        future.result(timeout=SEND_TIMEOUT_SECONDS)


__all__ = ["TwitchChatWorker", "ChatTransportUnavailable", "CONNECTION_MESSAGE"]
