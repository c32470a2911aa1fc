import asyncio
import signal
import sys
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from services.mcp import RequestDispatcher, ToolExecutor, ToolRegistry
from services.mcp_api import McpApiConfig, McpApiServer
from services.moderation import ModerationHeuristics
from services.twitch.api.helix import HelixClient
from services.twitch.workers.chat_worker import TwitchChatWorker
from shared.config.bridge import BridgeConfig, load_bridge_config
from shared.logging.logger import get_logger
from shared.runtime.chat_window import ChatWindow

log = get_logger("core.app")


@dataclass
class BridgeRuntime:
    """Everything one server process owns, wired together."""

    config: BridgeConfig
    window: ChatWindow
    heuristics: ModerationHeuristics
    helix: HelixClient
    registry: ToolRegistry
    executor: ToolExecutor
    dispatcher: RequestDispatcher
    server: McpApiServer
    chat_worker: Optional[TwitchChatWorker] = None


def build_runtime(
    config: BridgeConfig,
    *,
    helix: Optional[HelixClient] = None,
    chat_worker: Optional[TwitchChatWorker] = None,
) -> BridgeRuntime:
    window = ChatWindow(capacity=config.server.chat_capacity)
    heuristics = ModerationHeuristics(window)
    helix = helix or HelixClient()

    if chat_worker is None and config.chat.enabled:
        chat_worker = TwitchChatWorker(
            window=window,
            oauth_token=config.chat.auth,
            channel=config.chat.channel,
            nickname=config.chat.nickname or None,
            announce=config.chat.show_connection_message,
        )
    elif chat_worker is None:
        log.warning(
            "Chat feed disabled; missing "
            + ", ".join(config.chat.missing())
            + ". Chat-dependent tools will report an empty window."
        )

    registry = ToolRegistry()
    executor = ToolExecutor(heuristics=heuristics, helix=helix, chat_sender=chat_worker)
    dispatcher = RequestDispatcher(registry=registry, executor=executor)
    server = McpApiServer(
        McpApiConfig(
            enabled=True,
            host=config.server.host,
            port=config.server.port,
            allow_origins=config.server.allow_origins,
        ),
        dispatcher=dispatcher,
        window=window,
    )

    return BridgeRuntime(
        config=config,
        window=window,
        heuristics=heuristics,
        helix=helix,
        registry=registry,
        executor=executor,
        dispatcher=dispatcher,
        server=server,
        chat_worker=chat_worker,
    )


async def main(stop_event: asyncio.Event, config: Optional[BridgeConfig] = None):
    # --------------------------------------------------
    # ENV / CONFIG
    # --------------------------------------------------
    load_dotenv()
    log.info("Environment variables loaded")

    if config is None:
        config = load_bridge_config()
    if config.source_path:
        log.info(f"Config file loaded from {config.source_path}")

    runtime = build_runtime(config)
    log.info(f"Twitch MCP Server booting ({len(runtime.registry.names())} tools)")

    # --------------------------------------------------
    # START COMPONENTS
    # --------------------------------------------------
    if runtime.chat_worker:
        runtime.chat_worker.start()
        log.info(f"[#{config.chat.channel}] Chat feed started")

    runtime.server.start()

    # --------------------------------------------------
    # BLOCK UNTIL SHUTDOWN SIGNAL
    # --------------------------------------------------
    await stop_event.wait()

    log.info("Shutdown initiated")

    # --------------------------------------------------
    # ORDERLY SHUTDOWN, HTTP FIRST
    # --------------------------------------------------
    try:
        runtime.server.stop()
    except OSError as e:
        log.warning(f"MCP API server shutdown error ignored: {e}")

    if runtime.chat_worker:
        runtime.chat_worker.stop()

    log.info("Twitch MCP Server stopped")


# ----------------------------------------------------------------------
# SIGNAL HANDLING (WINDOWS-SAFE)
# ----------------------------------------------------------------------

def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    stop_event: asyncio.Event,
):
    """
    Windows-safe Ctrl+C handler.
    Uses signal.signal + asyncio.Event to unwind cleanly.
    """

    def _handler(signum, frame):
        try:
            loop.call_soon_threadsafe(stop_event.set)
        except RuntimeError:
            stop_event.set()

    try:
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except (ValueError, OSError):
        # Not on the main thread, or the platform lacks SIGTERM.
        pass


# ----------------------------------------------------------------------
# ENTRYPOINT
# ----------------------------------------------------------------------

def run(config: Optional[BridgeConfig] = None):
    stop_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    _install_signal_handlers(loop, stop_event)

    try:
        loop.run_until_complete(main(stop_event, config))

    except KeyboardInterrupt:
        log.info("KeyboardInterrupt received, shutdown initiated")
        stop_event.set()

    finally:
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()

        if pending:
            loop.run_until_complete(
                asyncio.gather(*pending, return_exceptions=True)
            )

        loop.run_until_complete(loop.shutdown_asyncgens())
        asyncio.set_event_loop(None)
        loop.close()


if __name__ == "__main__":
    run()
    sys.exit(0)
