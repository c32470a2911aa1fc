"""Per-request Twitch credentials."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

CONFIG_KEYS = (
    ("channel", "twitch.channel", "Missing required parameter: twitch.channel"),
    ("auth_token", "twitch.auth", "Missing required parameter: twitch.auth (OAuth token)"),
    ("client_id", "twitch.clientId", "Missing required parameter: twitch.clientId"),
    ("broadcaster_id", "twitch.broadcasterId", "Missing required parameter: twitch.broadcasterId"),
)


class MissingCredentialError(ValueError):
    """A required ``twitch.*`` parameter is absent or blank."""


@dataclass(frozen=True)
class ConfigurationSnapshot:
    """
    Twitch credentials for exactly one request.

    Built from the request's query parameters, validated right before a tool
    executes, and dropped when the request finishes.
    """

    channel: str = ""
    auth_token: str = ""
    client_id: str = ""
    broadcaster_id: str = ""

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ConfigurationSnapshot":
        values = {}
        for attr, key, _ in CONFIG_KEYS:
            raw = params.get(key)
            values[attr] = str(raw).strip() if raw is not None else ""
        return cls(**values)

    def missing(self) -> list[str]:
        return [message for attr, _, message in CONFIG_KEYS if not getattr(self, attr)]

    def validate(self) -> "ConfigurationSnapshot":
        missing = self.missing()
        if missing:
            raise MissingCredentialError(missing[0])
        return self

    @property
    def bearer_token(self) -> str:
        token = self.auth_token
        if token.startswith("oauth:"):
            token = token[len("oauth:"):]
        return token

    def __repr__(self) -> str:
        return (
            f"ConfigurationSnapshot(channel={self.channel!r}, "
            f"client_id={self.client_id!r}, broadcaster_id={self.broadcaster_id!r}, "
            f"auth_token={'***' if self.auth_token else ''!r})"
        )


__all__ = ["CONFIG_KEYS", "ConfigurationSnapshot", "MissingCredentialError"]
