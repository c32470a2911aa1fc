"""HTTP front end for the MCP tool dispatcher."""

from .server import CLEAR_CHAT_PATH, MCP_PATH, McpApiConfig, McpApiServer

__all__ = ["McpApiServer", "McpApiConfig", "MCP_PATH", "CLEAR_CHAT_PATH"]
