"""Runtime version metadata for the Twitch MCP server.

This module is import-safe and exposes the identifiers reported by the
discovery document and the JSON-RPC ``initialize`` handshake.
"""

from __future__ import annotations

PROJECT_NAME = "Twitch MCP Server"
VERSION = "1.0.0"
DESCRIPTION = (
    "AI integration for Twitch chat moderation, stream management, "
    "and viewer engagement"
)
PROTOCOL_VERSION = "2025-06-18"

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "DESCRIPTION",
    "PROTOCOL_VERSION",
    "as_dict",
    "as_string",
]


def as_dict() -> dict[str, str]:
    """Return version metadata as a dictionary."""

    return {
        "name": PROJECT_NAME,
        "version": VERSION,
    }


def as_string() -> str:
    """Return a concise version string."""

    return f"{PROJECT_NAME} {VERSION} (MCP {PROTOCOL_VERSION})"
