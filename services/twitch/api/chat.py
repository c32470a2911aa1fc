import asyncio
from typing import AsyncGenerator, Optional

from shared.chat.lines import ChatLine, split_prefix_and_command, split_tags
from shared.logging.logger import get_logger

log = get_logger("twitch.chat")

IRC_HOST = "irc.chat.twitch.tv"
IRC_PORT = 6697
MAX_MESSAGE_LENGTH = 500
AUTH_FAILURE_NOTICES = ("Login authentication failed", "Improperly formatted auth")


class ChatAuthenticationFailed(RuntimeError):
    """Twitch rejected the chat token during the IRC handshake."""


class TwitchChatClient:
    """
    Twitch chat over IRC/TLS, one channel per client.

    - Nothing touches the network until ``connect``.
    - ``iter_messages`` only yields PRIVMSG lines; PING, RECONNECT and
      authentication NOTICEs are handled in place.
    """

    def __init__(
        self,
        token: str,
        nickname: str,
        channel: str,
        *,
        request_tags: bool = True,
        host: str = IRC_HOST,
        port: int = IRC_PORT,
    ):
        self.token = self.normalize_token(token)
        self.nickname = nickname.strip().lower()
        self.channel = self.normalize_channel(channel)
        self.request_tags = request_tags
        self.endpoint = (host, port)

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    # ------------------------------------------------------------------ #
    # Connection
    # ------------------------------------------------------------------ #

    def handshake(self) -> list:
        lines = [f"PASS {self.token}", f"NICK {self.nickname}"]
        if self.request_tags:
            lines.append("CAP REQ :twitch.tv/tags twitch.tv/commands")
        lines.append(f"JOIN #{self.channel}")
        return lines

    async def connect(self) -> None:
        if self._connected:
            return

        host, port = self.endpoint
        log.info(f"[#{self.channel}] Opening IRC session to {host}:{port} as {self.nickname}")
        self._reader, self._writer = await asyncio.open_connection(host, port, ssl=True)

        await self._write(*self.handshake())
        self._connected = True

    async def close(self) -> None:
        writer = self._writer
        if writer is None:
            return

        if self._connected:
            try:
                await self._write(f"PART #{self.channel}")
            except (OSError, RuntimeError) as e:
                log.debug(f"[#{self.channel}] PART skipped: {e}")

        try:
            writer.close()
            await writer.wait_closed()
        except OSError as e:
            log.debug(f"[#{self.channel}] Socket close error ignored: {e}")
        finally:
            self._reader = None
            self._writer = None
            self._connected = False
            log.info(f"[#{self.channel}] IRC session closed")

    # ------------------------------------------------------------------ #
    # Chat I/O
    # ------------------------------------------------------------------ #

    async def send_message(self, text: str, *, channel: Optional[str] = None) -> None:
        text = " ".join(text.split())
        if not text:
            return
        if len(text) > MAX_MESSAGE_LENGTH:
            log.warning(f"Chat message truncated to {MAX_MESSAGE_LENGTH} chars")
            text = text[:MAX_MESSAGE_LENGTH]

        target = self.normalize_channel(channel) if channel else self.channel
        await self._write(f"PRIVMSG #{target} :{text}")
        log.info(f"[#{target}] Sent chat message ({len(text)} chars)")

    async def iter_messages(self) -> AsyncGenerator[ChatLine, None]:
        """
        Yield ChatLine objects until the server closes the stream.

        Raises ChatAuthenticationFailed when Twitch rejects the token.
        """
        if self._reader is None:
            raise RuntimeError("Chat client is not connected")

        async for raw in self._lines():
            if await self._handle_control(raw):
                if not self._connected:
                    return
                continue

            line = ChatLine.from_irc(raw)
            if line is not None:
                yield line

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    async def _lines(self) -> AsyncGenerator[str, None]:
        while self._reader is not None:
            data = await self._reader.readline()
            if not data:
                log.warning(f"[#{self.channel}] IRC stream closed by server")
                self._connected = False
                return
            raw = data.decode("utf-8", errors="replace").strip()
            if raw:
                yield raw

    async def _handle_control(self, raw: str) -> bool:
        """Return True when ``raw`` was a control line, not chat."""
        _, remainder = split_tags(raw)
        _, command, params = split_prefix_and_command(remainder)

        if command == "PING":
            await self._write(f"PONG :{params[-1] if params else 'tmi.twitch.tv'}")
            return True

        if command == "RECONNECT":
            log.info(f"[#{self.channel}] Server requested reconnect")
            self._connected = False
            return True

        if command == "NOTICE" and params:
            notice = params[-1]
            if any(marker in notice for marker in AUTH_FAILURE_NOTICES):
                self._connected = False
                raise ChatAuthenticationFailed(notice)
            log.info(f"[#{self.channel}] NOTICE: {notice}")
            return True

        return False

    async def _write(self, *lines: str) -> None:
        if self._writer is None:
            raise RuntimeError("Chat client is not connected")
        self._writer.write("".join(f"{line}\r\n" for line in lines).encode("utf-8"))
        await self._writer.drain()

    @staticmethod
    def normalize_token(token: str) -> str:
        token = token.strip()
        return token if token.startswith("oauth:") else f"oauth:{token}"

    @staticmethod
    def normalize_channel(channel: str) -> str:
        return channel.lstrip("#").strip().lower()


__all__ = ["TwitchChatClient", "ChatAuthenticationFailed", "MAX_MESSAGE_LENGTH"]
