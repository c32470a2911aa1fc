"""
======================================================================
 Twitch MCP Server - Version 1.0.0
======================================================================

Configuration validation script.

Resolves the server configuration exactly as the server would (CLI-less:
config file, then environment) and reports what is missing.

Design rules:
- No side effects on import
- No runtime startup
- Validation only (no mutation)
- Missing chat credentials are a warning, not a failure
"""

import json
import sys
from typing import List, Optional

from dotenv import load_dotenv

from shared.config.bridge import BridgeConfig, load_bridge_config, resolve_config_path


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------

def _error(msg: str):
    print(f"[CONFIG ERROR] {msg}", file=sys.stderr)


def _warn(msg: str):
    print(f"[CONFIG WARNING] {msg}", file=sys.stderr)


# ------------------------------------------------------------
# Validators
# ------------------------------------------------------------

def validate_config_file(explicit: Optional[str] = None) -> bool:
    """
    The config file is optional. When present it must be a JSON object.
    """

    path = resolve_config_path(explicit)
    if path is None:
        return True

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        _error(f"{path}: invalid JSON ({e})")
        return False

    if not isinstance(data, dict):
        _error(f"{path}: root JSON value must be an object")
        return False

    port = data.get("port")
    if port is not None and not isinstance(port, int):
        _error(f"{path}: 'port' must be an integer")
        return False

    return True


def collect_warnings(config: BridgeConfig) -> List[str]:
    warnings = []
    for item in config.chat.missing():
        warnings.append(f"chat feed disabled, missing {item}")
    if not config.client_id:
        warnings.append(
            "no default client id (TWITCH_CLIENT_ID); clients must pass twitch.clientId"
        )
    if not config.broadcaster_id:
        warnings.append(
            "no default broadcaster id (TWITCH_BROADCASTER_ID); "
            "clients must pass twitch.broadcasterId"
        )
    return warnings


def validate_server_settings(config: BridgeConfig) -> bool:
    port = config.server.port
    if not 0 <= port <= 65535:
        _error(f"port {port} is out of range")
        return False
    return True


# ------------------------------------------------------------
# Entry point
# ------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    explicit = argv[0] if argv else None

    load_dotenv()
    ok = validate_config_file(explicit)

    config = load_bridge_config(config_path=explicit)
    if not validate_server_settings(config):
        ok = False

    for warning in collect_warnings(config):
        _warn(warning)

    if not ok:
        print("Configuration validation failed.", file=sys.stderr)
        return 1

    print("Configuration validation passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
