"""Twitch Helix REST client used by the tool executor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from shared.config.credentials import ConfigurationSnapshot
from shared.logging.logger import get_logger

log = get_logger("twitch.helix")

HELIX_BASE_URL = "https://api.twitch.tv/helix"
DEFAULT_TIMEOUT = 10


@dataclass
class HelixResult:
    """
    Outcome of one Helix call.

    ``ok`` is False for any non-2xx status; ``message`` is always a
    human-readable sentence that can be handed straight back to the caller.
    """

    ok: bool
    message: str
    status_code: Optional[int] = None
    data: Optional[Dict[str, Any]] = None


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


class HelixClient:
    """
    Minimal Helix client.

    - Credentials are passed per call; the client itself holds none.
    - JSON bodies are always built from dicts and serialized by httpx.
    - Non-2xx responses are reported as HelixResult(ok=False), never raised.
      Transport failures (httpx.HTTPError) propagate to the caller.
    """

    def __init__(
        self,
        *,
        base_url: str = HELIX_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------ #
    # Engagement
    # ------------------------------------------------------------------ #

    def create_poll(
        self, creds: ConfigurationSnapshot, title: str, choices: str, duration: int
    ) -> HelixResult:
        body = {
            "broadcaster_id": creds.broadcaster_id,
            "title": title,
            "choices": [{"title": choice} for choice in _split_csv(choices)],
            "duration": duration,
        }
        resp = self._request(creds, "POST", "/polls", json=body)
        if resp.status_code in (200, 201):
            return HelixResult(True, "Poll created successfully!", resp.status_code)
        return self._failure("Failed to create poll", resp)

    def create_prediction(
        self, creds: ConfigurationSnapshot, title: str, outcomes: str, duration: int
    ) -> HelixResult:
        body = {
            "broadcaster_id": creds.broadcaster_id,
            "title": title,
            "outcomes": [{"title": outcome} for outcome in _split_csv(outcomes)],
            "prediction_window": duration,
        }
        resp = self._request(creds, "POST", "/predictions", json=body)
        if resp.status_code in (200, 201):
            return HelixResult(True, "Prediction created successfully!", resp.status_code)
        return self._failure("Failed to create prediction", resp)

    def create_clip(self, creds: ConfigurationSnapshot) -> HelixResult:
        resp = self._request(
            creds, "POST", "/clips", params={"broadcaster_id": creds.broadcaster_id}
        )
        if resp.status_code not in (200, 201, 202):
            return self._failure("Failed to create clip", resp)

        clip = self._first_entry(resp)
        edit_url = (clip or {}).get("edit_url")
        if edit_url:
            return HelixResult(
                True,
                f"Clip created successfully! You can view it at: {edit_url}",
                resp.status_code,
                clip,
            )
        return HelixResult(True, "Clip created successfully!", resp.status_code, clip)

    # ------------------------------------------------------------------ #
    # Moderation
    # ------------------------------------------------------------------ #

    def get_user_id(self, creds: ConfigurationSnapshot, username: str) -> Optional[str]:
        resp = self._request(creds, "GET", "/users", params={"login": username})
        if resp.status_code != 200:
            log.warning(
                f"User lookup for '{username}' failed: HTTP {resp.status_code}"
            )
            return None
        user = self._first_entry(resp)
        return (user or {}).get("id")

    def timeout_user(
        self,
        creds: ConfigurationSnapshot,
        username: str,
        reason: str,
        duration: int,
    ) -> HelixResult:
        return self._ban(creds, username, reason, duration)

    def ban_user(
        self, creds: ConfigurationSnapshot, username: str, reason: str
    ) -> HelixResult:
        return self._ban(creds, username, reason, None)

    # ------------------------------------------------------------------ #
    # Channel metadata
    # ------------------------------------------------------------------ #

    def update_title(self, creds: ConfigurationSnapshot, title: str) -> HelixResult:
        if not title:
            return HelixResult(False, "No title provided.")

        resp = self._patch_channel(creds, {"title": title})
        if resp.status_code == 204:
            return HelixResult(True, f"Successfully updated stream title to: {title}", 204)
        return HelixResult(
            False,
            f"Failed to update stream title: HTTP {resp.status_code}\nResponse: {resp.text}",
            resp.status_code,
        )

    def search_category(
        self, creds: ConfigurationSnapshot, name: str
    ) -> Optional[Dict[str, Any]]:
        """
        Return the best matching category entry, or None.

        An exact (case-insensitive) name match wins over search ranking.
        Raises HelixSearchError when the search call itself fails.
        """
        resp = self._request(creds, "GET", "/search/categories", params={"query": name})
        if resp.status_code != 200:
            raise HelixSearchError(
                f"Failed to search for category '{name}': HTTP {resp.status_code}"
            )

        entries = self._entries(resp)
        for entry in entries:
            if str(entry.get("name", "")).lower() == name.lower():
                return entry
        return entries[0] if entries else None

    def update_category(self, creds: ConfigurationSnapshot, name: str) -> HelixResult:
        if not name:
            return HelixResult(False, "No category provided.")

        try:
            category = self.search_category(creds, name)
        except HelixSearchError as e:
            return HelixResult(False, str(e))

        if not category or not category.get("id"):
            return HelixResult(False, f"Could not find a Twitch category named '{name}'.")

        resp = self._patch_channel(creds, {"game_id": category["id"]})
        if resp.status_code == 204:
            return HelixResult(True, f"Successfully updated stream category to: {name}", 204)
        return HelixResult(
            False,
            f"Failed to update stream category: HTTP {resp.status_code}\nResponse: {resp.text}",
            resp.status_code,
        )

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _ban(
        self,
        creds: ConfigurationSnapshot,
        username: str,
        reason: str,
        duration: Optional[int],
    ) -> HelixResult:
        action = "timeout user" if duration else "ban user"
        if not username:
            return HelixResult(False, f"No username provided for {action.split()[0]}.")

        user_id = self.get_user_id(creds, username)
        if not user_id:
            return HelixResult(False, f"Could not resolve user ID for username: {username}")

        data: Dict[str, Any] = {"user_id": user_id, "reason": reason}
        if duration:
            data["duration"] = duration

        resp = self._request(
            creds,
            "POST",
            "/moderation/bans",
            params={
                "broadcaster_id": creds.broadcaster_id,
                "moderator_id": creds.broadcaster_id,
            },
            json={"data": data},
        )
        if resp.status_code in (200, 201):
            if duration:
                message = (
                    f"Successfully timed out {username} for {duration} seconds. "
                    f"Reason: {reason}"
                )
            else:
                message = f"Successfully banned {username}. Reason: {reason}"
            return HelixResult(True, message, resp.status_code)

        return HelixResult(
            False,
            f"Failed to {action}: HTTP {resp.status_code}\n{resp.text}",
            resp.status_code,
        )

    def _patch_channel(
        self, creds: ConfigurationSnapshot, body: Dict[str, Any]
    ) -> httpx.Response:
        return self._request(
            creds,
            "PATCH",
            "/channels",
            params={"broadcaster_id": creds.broadcaster_id},
            json=body,
        )

    def _request(
        self,
        creds: ConfigurationSnapshot,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {creds.bearer_token}",
            "Client-Id": creds.client_id,
        }
        with httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=headers,
            transport=self._transport,
        ) as client:
            resp = client.request(method, path, params=params, json=json)

        log.debug(f"Helix {method} {path} -> {resp.status_code}")
        return resp

    @staticmethod
    def _entries(resp: httpx.Response) -> List[Dict[str, Any]]:
        try:
            payload = resp.json()
        except ValueError:
            log.warning("Helix returned a non-JSON payload")
            return []
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            return []
        return [entry for entry in data if isinstance(entry, dict)]

    @classmethod
    def _first_entry(cls, resp: httpx.Response) -> Optional[Dict[str, Any]]:
        entries = cls._entries(resp)
        return entries[0] if entries else None

    @staticmethod
    def _failure(prefix: str, resp: httpx.Response) -> HelixResult:
        log.warning(f"{prefix}: HTTP {resp.status_code}")
        return HelixResult(False, f"{prefix}: HTTP {resp.status_code}", resp.status_code)


class HelixSearchError(RuntimeError):
    """Raised when the category search endpoint returns a non-200 status."""


__all__ = ["HelixClient", "HelixResult", "HelixSearchError", "HELIX_BASE_URL"]
