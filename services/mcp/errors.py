"""
Protocol error codes and the exceptions that carry them.

Codes follow JSON-RPC 2.0, plus -32001 for missing or incomplete Twitch
credentials on a tool call.
"""

from __future__ import annotations

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
AUTHENTICATION_FAILED = -32001


# ======================================================================
# Exceptions
# ======================================================================

class McpError(Exception):
    """
    Request-scoped failure that maps onto a protocol error response.

    JSON-RPC callers see ``code``; custom-protocol callers only see the
    message with a client-error status.
    """

    code = INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(McpError):
    code = INVALID_REQUEST


class MethodNotFoundError(McpError):
    code = METHOD_NOT_FOUND


class InvalidParamsError(McpError):
    code = INVALID_PARAMS


class ToolValidationError(InvalidParamsError):
    """Unknown tool, or arguments that do not satisfy the tool schema."""


class AuthenticationError(McpError):
    """Per-request Twitch configuration is missing or blank."""

    code = AUTHENTICATION_FAILED
