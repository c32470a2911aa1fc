"""
======================================================================
 Twitch MCP Server - Version 1.0.0
 Tool-invocation bridge between MCP clients and a Twitch channel
======================================================================
"""

import argparse
import sys

from dotenv import load_dotenv

from core.app import run
from runtime import version
from shared.config.bridge import load_bridge_config
from shared.logging.logger import get_logger

log = get_logger("twitch_mcp_server")


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=version.DESCRIPTION)
    parser.add_argument("--channel", help="Twitch channel to read (without #)")
    parser.add_argument("--auth", help="OAuth token for the chat feed (with or without oauth: prefix)")
    parser.add_argument("--nick", dest="nickname", help="Bot nickname (defaults to channel name)")
    parser.add_argument("--host", help="Bind address for the HTTP endpoint")
    parser.add_argument("--port", type=int, help="Port for the HTTP endpoint")
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument(
        "--show-connection-message",
        action="store_true",
        default=None,
        help="Announce the connection in chat once joined",
    )
    parser.add_argument("--version", action="version", version=version.as_string())
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    load_dotenv()

    overrides = {
        key: value
        for key, value in vars(args).items()
        if key != "config" and value is not None
    }
    config = load_bridge_config(overrides, config_path=args.config)

    log.info(
        f"{version.as_string()} listening on "
        f"{config.server.host}:{config.server.port}"
    )
    run(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
