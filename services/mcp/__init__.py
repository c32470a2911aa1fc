"""Tool dispatch for MCP (JSON-RPC) and custom-protocol clients."""

from services.mcp.errors import (
    AuthenticationError,
    InvalidParamsError,
    InvalidRequestError,
    McpError,
    MethodNotFoundError,
    ToolValidationError,
)
from services.mcp.envelopes import ConfigurationSnapshot, ToolInvocation, decode_request
from services.mcp.registry import ToolRegistry, ToolSpec
from services.mcp.executor import ToolExecutor
from services.mcp.dispatcher import DispatchResponse, RequestDispatcher

__all__ = [
    "AuthenticationError",
    "InvalidParamsError",
    "InvalidRequestError",
    "McpError",
    "MethodNotFoundError",
    "ToolValidationError",
    "ConfigurationSnapshot",
    "ToolInvocation",
    "decode_request",
    "ToolRegistry",
    "ToolSpec",
    "ToolExecutor",
    "DispatchResponse",
    "RequestDispatcher",
]
