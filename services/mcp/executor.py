"""Tool execution: routes a validated invocation to Helix, chat or the moderation heuristics."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol

import httpx

from services.mcp.envelopes import ConfigurationSnapshot, ToolInvocation
from services.mcp.errors import ToolValidationError
from services.moderation.heuristics import ModerationHeuristics
from services.moderation.keywords import match_descriptor
from services.twitch.api.helix import HelixClient
from shared.logging.logger import get_logger

log = get_logger("mcp.executor")

CHAT_LOG_SIZE = 20
DEFAULT_TIMEOUT_REASON = "inappropriate behavior"
DEFAULT_BAN_REASON = "severe violation of chat rules"
NO_CHAT_TEXT = "No recent chat messages available."


class ChatSender(Protocol):
    def send_message(self, text: str, *, channel: Optional[str] = None) -> None:
        ...


class ToolExecutor:
    """
    Runs one validated ToolInvocation and returns an outcome string.

    Platform failures never raise to callers: Helix errors, transport errors
    and unresolvable targets all come back as descriptive text so an LLM
    client can decide what to do next.
    """

    def __init__(
        self,
        *,
        heuristics: ModerationHeuristics,
        helix: HelixClient,
        chat_sender: Optional[ChatSender] = None,
    ) -> None:
        self.heuristics = heuristics
        self.helix = helix
        self.chat_sender = chat_sender
        self._handlers: Dict[str, Callable[[Dict[str, Any], ConfigurationSnapshot], str]] = {
            "sendMessageToChat": self._send_message,
            "createTwitchPoll": self._create_poll,
            "createTwitchPrediction": self._create_prediction,
            "createTwitchClip": self._create_clip,
            "analyzeChat": self._analyze_chat,
            "getRecentChatLog": self._recent_chat_log,
            "timeoutUser": self._timeout_user,
            "banUser": self._ban_user,
            "updateStreamTitle": self._update_title,
            "updateStreamCategory": self._update_category,
        }

    # ------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------

    def execute(self, invocation: ToolInvocation, creds: ConfigurationSnapshot) -> str:
        handler = self._handlers.get(invocation.tool_name)
        if handler is None:
            raise ToolValidationError(f"Unknown tool: {invocation.tool_name}")

        log.info(f"[#{creds.channel}] Executing tool {invocation.tool_name}")
        result = handler(invocation.arguments, creds)
        log.debug(f"[#{creds.channel}] {invocation.tool_name} -> {result!r}")
        return result

    # ------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------

    def _send_message(self, args: Dict[str, Any], creds: ConfigurationSnapshot) -> str:
        message = args["message"]
        if not self.chat_sender:
            return f"Chat transport is not connected; message not sent: {message}"
        try:
            self.chat_sender.send_message(message, channel=creds.channel)
        except Exception as e:
            log.warning(f"[#{creds.channel}] Chat send failed: {e}")
            return f"Error sending message: {e}"
        return f"Successfully sent message: {message}"

    def _analyze_chat(self, args: Dict[str, Any], creds: ConfigurationSnapshot) -> str:
        return self.heuristics.analyze().render()

    def _recent_chat_log(self, args: Dict[str, Any], creds: ConfigurationSnapshot) -> str:
        lines = self.heuristics.recent_chat_log(CHAT_LOG_SIZE)
        return "\n".join(lines) if lines else NO_CHAT_TEXT

    # ------------------------------------------------------------
    # Engagement
    # ------------------------------------------------------------

    def _create_poll(self, args: Dict[str, Any], creds: ConfigurationSnapshot) -> str:
        try:
            return self.helix.create_poll(
                creds, args["title"], args["choices"], args["duration"]
            ).message
        except httpx.HTTPError as e:
            return f"Error creating poll: {e}"

    def _create_prediction(self, args: Dict[str, Any], creds: ConfigurationSnapshot) -> str:
        try:
            return self.helix.create_prediction(
                creds, args["title"], args["outcomes"], args["duration"]
            ).message
        except httpx.HTTPError as e:
            return f"Error creating prediction: {e}"

    def _create_clip(self, args: Dict[str, Any], creds: ConfigurationSnapshot) -> str:
        try:
            return self.helix.create_clip(creds).message
        except httpx.HTTPError as e:
            return f"Error creating clip: {e}"

    # ------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------

    def _timeout_user(self, args: Dict[str, Any], creds: ConfigurationSnapshot) -> str:
        target = args.get("usernameOrDescriptor")
        username = self.heuristics.resolve_target(target)
        if username is None:
            return self._chat_log_fallback(target)

        reason = args.get("reason") or DEFAULT_TIMEOUT_REASON
        if "duration" in args:
            duration = args["duration"]
        else:
            duration = self.heuristics.classify_duration(reason)
        try:
            return self.helix.timeout_user(creds, username, reason, duration).message
        except httpx.HTTPError as e:
            return f"Error timing out user: {e}"

    def _ban_user(self, args: Dict[str, Any], creds: ConfigurationSnapshot) -> str:
        target = args.get("usernameOrDescriptor")
        username = self.heuristics.resolve_target(target)
        if username is None:
            return self._chat_log_fallback(target)

        reason = args.get("reason") or DEFAULT_BAN_REASON
        try:
            return self.helix.ban_user(creds, username, reason).message
        except httpx.HTTPError as e:
            return f"Error banning user: {e}"

    def _chat_log_fallback(self, target: Optional[str]) -> str:
        """
        No platform action; hand the recent chat back so the caller can
        retry with an explicit username.
        """
        lines = self.heuristics.recent_chat_log(CHAT_LOG_SIZE)
        if target:
            header = f"Could not resolve user. Here are the last {CHAT_LOG_SIZE} chat messages:"
        else:
            header = f"No explicit username provided. Here are the last {CHAT_LOG_SIZE} chat messages:"

        parts = [header, *lines] if lines else [header, NO_CHAT_TEXT]

        suggestion = (
            self.heuristics.find_user_by_descriptor(match_descriptor(target))
            if target
            else None
        )
        if suggestion:
            parts.append(f"Most likely match for '{target}' based on recent chat: {suggestion}")
        return "\n".join(parts)

    # ------------------------------------------------------------
    # Channel metadata
    # ------------------------------------------------------------

    def _update_title(self, args: Dict[str, Any], creds: ConfigurationSnapshot) -> str:
        try:
            return self.helix.update_title(creds, args["title"]).message
        except httpx.HTTPError as e:
            return f"Failed to update stream title: {e}"

    def _update_category(self, args: Dict[str, Any], creds: ConfigurationSnapshot) -> str:
        try:
            return self.helix.update_category(creds, args["category"]).message
        except httpx.HTTPError as e:
            return f"Failed to update stream category: {e}"


__all__ = ["ToolExecutor", "ChatSender", "CHAT_LOG_SIZE", "NO_CHAT_TEXT"]
