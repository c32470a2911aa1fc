"""
Static catalog of the tools exposed to MCP clients.

The same ToolSpec entries drive:
  - the GET discovery document (human-readable parameter strings)
  - the JSON-RPC ``tools/list`` result (JSON Schema ``inputSchema``)
  - argument validation before a tool executes (jsonschema, Draft 7)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from jsonschema import Draft7Validator

from runtime import version
from services.mcp.errors import ToolValidationError


@dataclass(frozen=True)
class ArgSpec:
    type: str
    required: bool = False
    description: str = ""
    hint: Optional[str] = None
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    def schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.type, "description": self.description}
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        return schema

    def describe(self) -> str:
        """Discovery form, e.g. ``integer (required - seconds)``."""
        label = "required" if self.required else "optional"
        if self.hint:
            label = f"{label} - {self.hint}"
        return f"{self.type} ({label})"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    arguments: Mapping[str, ArgSpec] = field(default_factory=dict)

    @property
    def required(self) -> List[str]:
        return [name for name, arg in self.arguments.items() if arg.required]

    def input_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": {
                name: arg.schema() for name, arg in self.arguments.items()
            },
        }
        if self.required:
            schema["required"] = self.required
        return schema

    def to_mcp(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }

    def to_discovery(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                name: arg.describe() for name, arg in self.arguments.items()
            },
        }


# Helix rejects timeouts longer than two weeks.
MAX_TIMEOUT_SECONDS = 1_209_600

_TARGET_ARG = ArgSpec("string", True, "Username or descriptor")

TOOLS: Tuple[ToolSpec, ...] = (
    ToolSpec(
        "sendMessageToChat",
        "Send message to the Twitch Chat",
        {"message": ArgSpec("string", True, "The message to send")},
    ),
    ToolSpec(
        "createTwitchPoll",
        "Create a Twitch Poll",
        {
            "title": ArgSpec("string", True, "Poll title"),
            "choices": ArgSpec("string", True, "Comma-separated choices", "comma-separated"),
            "duration": ArgSpec("integer", True, "Duration in seconds", "seconds"),
        },
    ),
    ToolSpec(
        "createTwitchPrediction",
        "Create a Twitch Prediction",
        {
            "title": ArgSpec("string", True, "Prediction title"),
            "outcomes": ArgSpec("string", True, "Comma-separated outcomes", "comma-separated"),
            "duration": ArgSpec("integer", True, "Duration in seconds", "seconds"),
        },
    ),
    ToolSpec("createTwitchClip", "Create a Twitch clip of the current stream"),
    ToolSpec("analyzeChat", "Analyze recent Twitch chat messages and provide a summary"),
    ToolSpec("getRecentChatLog", "Get the last 20 chat messages for moderation context"),
    ToolSpec(
        "timeoutUser",
        "Timeout a user in the Twitch chat",
        {
            "usernameOrDescriptor": _TARGET_ARG,
            "reason": ArgSpec("string", False, "Reason for timeout"),
            "duration": ArgSpec(
                "integer",
                False,
                "Timeout length in seconds (guessed from reason when omitted)",
                "seconds",
                minimum=1,
                maximum=MAX_TIMEOUT_SECONDS,
            ),
        },
    ),
    ToolSpec(
        "banUser",
        "Ban a user from the Twitch chat",
        {
            "usernameOrDescriptor": _TARGET_ARG,
            "reason": ArgSpec("string", False, "Reason for ban"),
        },
    ),
    ToolSpec(
        "updateStreamTitle",
        "Update the stream title",
        {"title": ArgSpec("string", True, "New stream title")},
    ),
    ToolSpec(
        "updateStreamCategory",
        "Update the game category of the stream",
        {"category": ArgSpec("string", True, "Game category name")},
    ),
)


class ToolRegistry:
    """
    Read-only lookup over ToolSpec entries.

    Discovery never touches credentials; ``validate`` is only called on the
    execution path.
    """

    def __init__(self, tools: Tuple[ToolSpec, ...] = TOOLS):
        self._tools: Mapping[str, ToolSpec] = MappingProxyType(
            {tool.name: tool for tool in tools}
        )
        self._validators = {
            tool.name: Draft7Validator(tool.input_schema()) for tool in tools
        }

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def names(self) -> List[str]:
        return list(self._tools)

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def mcp_tools(self) -> List[Dict[str, Any]]:
        return [tool.to_mcp() for tool in self._tools.values()]

    def discovery_document(self) -> Dict[str, Any]:
        return {
            "server": version.PROJECT_NAME,
            "version": version.VERSION,
            "description": version.DESCRIPTION,
            "authentication": {
                "required": True,
                "type": "oauth",
                "description": (
                    "Twitch OAuth token and client credentials required for "
                    "tool execution"
                ),
                "lazy_loading": True,
                "parameters": [
                    "twitch.channel",
                    "twitch.auth",
                    "twitch.clientId",
                    "twitch.broadcasterId",
                ],
            },
            "tools": [tool.to_discovery() for tool in self._tools.values()],
        }

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, name: Optional[str], arguments: Any) -> Dict[str, Any]:
        """
        Return a normalized copy of ``arguments`` for tool ``name``.

        Raises ToolValidationError for unknown tools, non-object arguments,
        or schema violations (missing required args, wrong types).
        """
        if not name or not isinstance(name, str):
            raise ToolValidationError("Tool name is required")

        tool = self._tools.get(name)
        if tool is None:
            raise ToolValidationError(f"Unknown tool: {name}")

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolValidationError(f"Arguments for {name} must be an object")

        normalized = self._coerce(tool, arguments)

        errors = sorted(
            self._validators[name].iter_errors(normalized),
            key=lambda e: list(e.path),
        )
        if errors:
            first = errors[0]
            loc = "/".join(str(p) for p in first.path)
            where = f" ({loc})" if loc else ""
            raise ToolValidationError(f"Invalid arguments for {name}{where}: {first.message}")

        return normalized

    @staticmethod
    def _coerce(tool: ToolSpec, arguments: Dict[str, Any]) -> Dict[str, Any]:
        normalized = dict(arguments)
        for name, arg in tool.arguments.items():
            value = normalized.get(name)
            if value is None and name in normalized and not arg.required:
                del normalized[name]
            elif arg.type == "integer" and isinstance(value, str):
                stripped = value.strip()
                if stripped.lstrip("-").isdigit():
                    normalized[name] = int(stripped)
            elif arg.type == "integer" and isinstance(value, float) and value.is_integer():
                normalized[name] = int(value)
        return normalized


__all__ = ["ArgSpec", "ToolSpec", "ToolRegistry", "TOOLS", "MAX_TIMEOUT_SECONDS"]
