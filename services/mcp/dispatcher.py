"""
Request dispatcher for the /mcp endpoint.

Per request:
  1. Receive   - the HTTP layer decodes a request variant (envelopes.py)
  2. Discovery - answered from the registry, no credentials involved
  3. Validate  - execution paths only: per-request ConfigurationSnapshot
  4. Route     - JSON-RPC method or custom ``tool`` -> ToolInvocation
  5. Execute   - ToolExecutor, always yields an outcome string
  6. Format    - envelope matching the inbound protocol

Every failure is scoped to the request that caused it.
"""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Dict, Optional

from runtime import version
from services.mcp.envelopes import (
    CleanupRequest,
    ConfigurationSnapshot,
    CustomCall,
    DiscoveryRequest,
    InboundRequest,
    JsonRpcCall,
    ToolInvocation,
)
from services.mcp.errors import (
    INTERNAL_ERROR,
    AuthenticationError,
    InvalidParamsError,
    InvalidRequestError,
    McpError,
    MethodNotFoundError,
)
from services.mcp.executor import ToolExecutor
from services.mcp.registry import ToolRegistry
from shared.config.credentials import MissingCredentialError
from shared.logging.logger import get_logger

log = get_logger("mcp.dispatcher")

JSONRPC_VERSION = "2.0"


@dataclass
class DispatchResponse:
    status: int
    payload: Optional[Dict[str, Any]] = None


class RequestDispatcher:
    def __init__(self, *, registry: ToolRegistry, executor: ToolExecutor) -> None:
        self.registry = registry
        self.executor = executor

    def dispatch(self, request: InboundRequest) -> DispatchResponse:
        if isinstance(request, DiscoveryRequest):
            return DispatchResponse(HTTPStatus.OK, self.registry.discovery_document())

        if isinstance(request, CleanupRequest):
            return DispatchResponse(HTTPStatus.OK, {"message": "Cleanup completed"})

        if isinstance(request, JsonRpcCall):
            return self._dispatch_jsonrpc(request)

        if isinstance(request, CustomCall):
            return self._dispatch_custom(request)

        raise TypeError(f"Unsupported request type: {type(request).__name__}")

    # ------------------------------------------------------------------
    # Custom protocol
    # ------------------------------------------------------------------

    def _dispatch_custom(self, request: CustomCall) -> DispatchResponse:
        try:
            if not request.tool:
                raise InvalidParamsError("Tool name is required")
            result = self._run_tool(request.tool, request.params, request.config_params)
        except McpError as e:
            log.info(f"Custom request rejected: {e.message}")
            return DispatchResponse(HTTPStatus.BAD_REQUEST, {"error": e.message})
        except Exception as e:
            log.exception(f"Custom request failed: {e}")
            return DispatchResponse(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                {"error": f"Failed to process request: {e}"},
            )

        return DispatchResponse(HTTPStatus.OK, {"result": result})

    # ------------------------------------------------------------------
    # JSON-RPC
    # ------------------------------------------------------------------

    def _dispatch_jsonrpc(self, request: JsonRpcCall) -> DispatchResponse:
        method = request.method
        if (
            request.is_notification
            and isinstance(method, str)
            and method.startswith("notifications/")
        ):
            log.debug(f"JSON-RPC notification acknowledged: {method}")
            return DispatchResponse(HTTPStatus.ACCEPTED)

        try:
            result = self._route_jsonrpc(request)
        except McpError as e:
            log.info(f"JSON-RPC {method!r} rejected ({e.code}): {e.message}")
            return self._jsonrpc_error(HTTPStatus.BAD_REQUEST, request.id, e.code, e.message)
        except Exception as e:
            log.exception(f"JSON-RPC {method!r} failed: {e}")
            return self._jsonrpc_error(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                request.id,
                INTERNAL_ERROR,
                f"Failed to process request: {e}",
            )

        return DispatchResponse(
            HTTPStatus.OK,
            {"jsonrpc": JSONRPC_VERSION, "id": request.id, "result": result},
        )

    def _route_jsonrpc(self, request: JsonRpcCall) -> Dict[str, Any]:
        method = request.method
        if not isinstance(method, str) or not method:
            raise InvalidRequestError("Invalid Request: method must be a string")

        if method == "initialize":
            return {
                "protocolVersion": version.PROTOCOL_VERSION,
                "serverInfo": version.as_dict(),
                "capabilities": {"tools": {"listChanged": True}},
            }

        if method == "tools/list":
            return {"tools": self.registry.mcp_tools()}

        if method == "tools/call":
            if request.params is None:
                raise InvalidParamsError("Invalid params")
            text = self._run_tool(
                request.params.get("name"),
                request.params.get("arguments"),
                request.config_params,
            )
            return {"content": [{"type": "text", "text": text}]}

        raise MethodNotFoundError(f"Method not found: {method}")

    @staticmethod
    def _jsonrpc_error(status: int, request_id: Any, code: int, message: str) -> DispatchResponse:
        return DispatchResponse(
            status,
            {
                "jsonrpc": JSONRPC_VERSION,
                "id": request_id,
                "error": {"code": code, "message": message},
            },
        )

    # ------------------------------------------------------------------
    # Shared execution path
    # ------------------------------------------------------------------

    def _run_tool(self, name: Any, arguments: Any, config_params) -> str:
        # Credentials are validated before the tool name and arguments.
        try:
            creds = ConfigurationSnapshot.from_params(config_params).validate()
        except MissingCredentialError as e:
            raise AuthenticationError(str(e)) from e
        validated = self.registry.validate(name, arguments)
        return self.executor.execute(ToolInvocation(name, validated), creds)


__all__ = ["RequestDispatcher", "DispatchResponse", "JSONRPC_VERSION"]
