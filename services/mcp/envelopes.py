"""
Inbound request decoding for the /mcp endpoint.

Raw HTTP input (verb, query string, JSON body) is decoded exactly once into
one of the request variants below; nothing downstream looks at raw dicts for
routing decisions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from shared.config.credentials import ConfigurationSnapshot


@dataclass(frozen=True)
class ToolInvocation:
    tool_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


# ----------------------------------------------------------------------
# Request variants
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class DiscoveryRequest:
    pass


@dataclass(frozen=True)
class CleanupRequest:
    pass


@dataclass(frozen=True)
class CustomCall:
    tool: Optional[str]
    params: Dict[str, Any]
    config_params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class JsonRpcCall:
    id: Any
    method: Any
    params: Optional[Dict[str, Any]]
    config_params: Mapping[str, Any] = field(default_factory=dict)
    has_id: bool = True

    @property
    def is_notification(self) -> bool:
        return not self.has_id


InboundRequest = Union[DiscoveryRequest, CleanupRequest, CustomCall, JsonRpcCall]


def decode_request(
    verb: str,
    body: Optional[Mapping[str, Any]] = None,
    query: Optional[Mapping[str, Any]] = None,
) -> InboundRequest:
    """
    Classify an HTTP request for the dispatcher.

    - GET (or anything read-only)   -> DiscoveryRequest
    - DELETE                        -> CleanupRequest
    - POST with a ``method`` key    -> JsonRpcCall
    - any other POST                -> CustomCall
    """
    verb = (verb or "").upper()
    body = body or {}
    config_params = dict(query or {})

    if verb == "DELETE":
        return CleanupRequest()
    if verb != "POST":
        return DiscoveryRequest()

    if "method" in body:
        params = body.get("params")
        return JsonRpcCall(
            id=body.get("id"),
            method=body.get("method"),
            params=params if isinstance(params, dict) else None,
            config_params=config_params,
            has_id="id" in body,
        )

    tool = body.get("tool")
    params = body.get("params")
    return CustomCall(
        tool=tool if isinstance(tool, str) and tool else None,
        params=params if isinstance(params, dict) else {},
        config_params=config_params,
    )


__all__ = [
    "ConfigurationSnapshot",
    "ToolInvocation",
    "DiscoveryRequest",
    "CleanupRequest",
    "CustomCall",
    "JsonRpcCall",
    "InboundRequest",
    "decode_request",
]
