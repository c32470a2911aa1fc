from __future__ import annotations

import json
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from shared.logging.logger import get_logger

log = get_logger("shared.config.bridge")

APP_DIR_NAME = "twitch-mcp"
CONFIG_FILE_NAME = "config.json"


@dataclass
class ChatFeedSettings:
    channel: str = ""
    auth: str = ""
    nickname: str = ""
    show_connection_message: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.channel and self.auth)

    def missing(self) -> List[str]:
        missing = []
        if not self.channel:
            missing.append("channel (TWITCH_CHANNEL)")
        if not self.auth:
            missing.append("auth (TWITCH_AUTH)")
        return missing


@dataclass
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 8080
    allow_origins: List[str] = field(default_factory=lambda: ["*"])
    chat_capacity: int = 100


@dataclass
class BridgeConfig:
    server: ServerSettings = field(default_factory=ServerSettings)
    chat: ChatFeedSettings = field(default_factory=ChatFeedSettings)
    # File/env only. Reported by scripts/validate_config.py; requests always
    # carry their own twitch.* parameters.
    client_id: str = ""
    broadcaster_id: str = ""
    source_path: Optional[Path] = None


# ----------------------------------------------------------------------
# Config file discovery
# ----------------------------------------------------------------------

def default_config_path() -> Path:
    system = platform.system()
    home = Path.home()
    if system == "Windows":
        base = Path(os.getenv("APPDATA") or home / "AppData" / "Roaming")
        return base / APP_DIR_NAME / CONFIG_FILE_NAME
    if system == "Darwin":
        return home / "Library" / "Application Support" / APP_DIR_NAME / CONFIG_FILE_NAME
    return home / ".config" / APP_DIR_NAME / CONFIG_FILE_NAME


def resolve_config_path(explicit: Optional[str] = None) -> Optional[Path]:
    if explicit:
        path = Path(explicit)
        if not path.is_absolute():
            path = Path.cwd() / path
        if path.exists():
            return path
        log.warning(f"Config file not found at {path}; ignoring")
        return None

    path = default_config_path()
    return path if path.exists() else None


def _load_json(path: Optional[Path]) -> Dict[str, Any]:
    if not path:
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        log.warning(f"Failed to read config file at {path} ({e}); ignoring")
        return {}

    if not isinstance(data, dict):
        log.warning(f"Config file at {path} is not a JSON object; ignoring")
        return {}
    return data


# ----------------------------------------------------------------------
# Value helpers
# ----------------------------------------------------------------------

def _first(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


def _as_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: Any, default: int, name: str) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        log.warning(f"{name} must be an integer; defaulting to {default}")
        return default


def _as_list(value: Any, default: List[str]) -> List[str]:
    if value is None or value == "":
        return list(default)
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _file_value(data: Mapping[str, Any], *keys: str) -> Any:
    # Accept camelCase, snake_case and env-style keys.
    for key in keys:
        if key in data and data[key] not in (None, ""):
            return data[key]
    return None


# ----------------------------------------------------------------------
# Loader
# ----------------------------------------------------------------------

def load_bridge_config(
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    config_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> BridgeConfig:
    """
    Resolve process configuration.

    Priority: overrides (CLI) > JSON config file > environment.
    Missing chat credentials are not fatal; the server then runs without a
    chat feed.
    """
    overrides = overrides or {}
    env = os.environ if env is None else env

    path = resolve_config_path(config_path)
    data = _load_json(path)

    channel = _first(
        overrides.get("channel"),
        _file_value(data, "channel", "twitchChannel", "TWITCH_CHANNEL"),
        env.get("TWITCH_CHANNEL"),
    )
    auth = _first(
        overrides.get("auth"),
        _file_value(data, "auth", "twitchAuth", "TWITCH_AUTH"),
        env.get("TWITCH_AUTH"),
    )
    nickname = _first(
        overrides.get("nickname"),
        _file_value(data, "nickname", "botNick", "TWITCH_BOT_NICK"),
        env.get("TWITCH_BOT_NICK"),
        channel,
    )
    show_message = _first(
        overrides.get("show_connection_message"),
        _file_value(data, "showConnectionMessage", "TWITCH_SHOW_CONNECTION_MESSAGE"),
        env.get("TWITCH_SHOW_CONNECTION_MESSAGE"),
    )

    server = ServerSettings(
        host=str(
            _first(
                overrides.get("host"),
                _file_value(data, "host"),
                env.get("TWITCH_MCP_HOST"),
                ServerSettings.host,
            )
        ),
        port=_as_int(
            _first(overrides.get("port"), _file_value(data, "port"), env.get("TWITCH_MCP_PORT")),
            ServerSettings.port,
            "port",
        ),
        allow_origins=_as_list(
            _first(
                overrides.get("allow_origins"),
                _file_value(data, "allowOrigins", "allow_origins"),
                env.get("TWITCH_MCP_ALLOW_ORIGINS"),
            ),
            ["*"],
        ),
        chat_capacity=_as_int(
            _first(
                overrides.get("chat_capacity"),
                _file_value(data, "chatCapacity", "chat_capacity"),
                env.get("TWITCH_MCP_CHAT_CAPACITY"),
            ),
            ServerSettings.chat_capacity,
            "chat_capacity",
        ),
    )
    if server.chat_capacity <= 0:
        log.warning("chat_capacity must be positive; defaulting to 100")
        server.chat_capacity = ServerSettings.chat_capacity

    chat = ChatFeedSettings(
        channel=str(channel or "").lstrip("#").strip(),
        auth=str(auth or "").strip(),
        nickname=str(nickname or "").lstrip("#").strip(),
        show_connection_message=_as_bool(show_message),
    )

    return BridgeConfig(
        server=server,
        chat=chat,
        client_id=str(
            _first(
                _file_value(data, "clientId", "client_id", "TWITCH_CLIENT_ID"),
                env.get("TWITCH_CLIENT_ID"),
            )
            or ""
        ),
        broadcaster_id=str(
            _first(
                _file_value(data, "broadcasterId", "broadcaster_id", "TWITCH_BROADCASTER_ID"),
                env.get("TWITCH_BROADCASTER_ID"),
            )
            or ""
        ),
        source_path=path,
    )


__all__ = [
    "BridgeConfig",
    "ChatFeedSettings",
    "ServerSettings",
    "default_config_path",
    "load_bridge_config",
    "resolve_config_path",
]
