"""HTTP server exposing the /mcp tool endpoint."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from services.mcp.dispatcher import DispatchResponse, RequestDispatcher
from services.mcp.envelopes import decode_request
from shared.logging.logger import get_logger
from shared.runtime.chat_window import ChatWindow

log = get_logger("services.mcp_api")

MCP_PATH = "/mcp"
CLEAR_CHAT_PATH = "/mcp/chat/clear"


@dataclass
class McpApiConfig:
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8080
    allow_origins: List[str] = field(default_factory=lambda: ["*"])


class InvalidJsonBody(ValueError):
    pass


class McpApiServer:
    """
    Thread-per-request HTTP front end for the RequestDispatcher.

    - GET    /mcp             discovery (no credentials)
    - POST   /mcp             custom protocol or JSON-RPC
    - DELETE /mcp             cleanup acknowledgment
    - POST   /mcp/chat/clear  empty the chat window
    """

    def __init__(
        self,
        config: McpApiConfig,
        *,
        dispatcher: RequestDispatcher,
        window: ChatWindow,
    ) -> None:
        self._config = config
        self._dispatcher = dispatcher
        self._window = window
        self._thread: Optional[threading.Thread] = None
        self._server: Optional[ThreadingHTTPServer] = None

    @property
    def server_address(self):
        return self._server.server_address if self._server else None

    def start(self) -> None:
        if not self._config.enabled:
            log.info("MCP API server disabled via config")
            return
        if self._thread and self._thread.is_alive():
            return

        handler = self._build_handler()
        self._server = ThreadingHTTPServer(
            (self._config.host, int(self._config.port)),
            handler,
        )
        self._server.daemon_threads = True
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        host, port = self._server.server_address[:2]
        log.info("MCP API server running on %s:%s", host, port)

    def stop(self) -> None:
        if not self._server:
            return
        self._server.shutdown()
        self._server.server_close()
        self._server = None
        log.info("MCP API server stopped")

    def _build_handler(self):
        config = self._config
        dispatcher = self._dispatcher
        window = self._window

        class Handler(BaseHTTPRequestHandler):
            protocol_version = "HTTP/1.1"

            def _send_json(self, status: int, payload: Optional[Dict[str, Any]]) -> None:
                body = json.dumps(payload).encode("utf-8") if payload is not None else b""
                self.send_response(status)
                if payload is not None:
                    self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self._apply_cors()
                self.end_headers()
                if body:
                    self.wfile.write(body)

            def _send_dispatch(self, response: DispatchResponse) -> None:
                self._send_json(int(response.status), response.payload)

            def _apply_cors(self) -> None:
                origins = config.allow_origins
                if not origins:
                    return
                origin = self.headers.get("Origin")
                if "*" in origins:
                    self.send_header("Access-Control-Allow-Origin", "*")
                elif origin and origin in origins:
                    self.send_header("Access-Control-Allow-Origin", origin)
                self.send_header(
                    "Access-Control-Allow-Headers",
                    "Authorization, Content-Type, Mcp-Session-Id",
                )
                self.send_header(
                    "Access-Control-Allow-Methods", "GET, POST, DELETE, OPTIONS"
                )

            def _query(self, parsed) -> Dict[str, str]:
                # Only the first value of a repeated key is used.
                return {
                    key: values[0]
                    for key, values in parse_qs(parsed.query).items()
                    if values
                }

            def _content_length(self) -> int:
                raw = (self.headers.get("Content-Length") or "0").strip()
                try:
                    length = int(raw)
                except ValueError as e:
                    raise InvalidJsonBody(f"Invalid Content-Length: {raw!r}") from e
                if length < 0:
                    raise InvalidJsonBody(f"Invalid Content-Length: {raw!r}")
                return length

            def _read_body(self) -> bytes:
                length = self._content_length()
                return self.rfile.read(length) if length else b""

            def _discard_body(self) -> bool:
                # Keep-alive connections must not carry unread bytes into
                # the next request.
                try:
                    self._read_body()
                except InvalidJsonBody as e:
                    self.close_connection = True
                    self._send_json(HTTPStatus.BAD_REQUEST, {"error": str(e)})
                    return False
                return True

            def _read_json_body(self) -> Dict[str, Any]:
                raw = self._read_body()
                if not raw:
                    return {}
                try:
                    payload = json.loads(raw.decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError) as e:
                    raise InvalidJsonBody(f"Invalid JSON body: {e}") from e
                if not isinstance(payload, dict):
                    raise InvalidJsonBody("Request body must be a JSON object")
                return payload

            def _is_mcp_path(self, parsed) -> bool:
                return parsed.path.rstrip("/") == MCP_PATH

            def do_OPTIONS(self) -> None:  # noqa: N802 - stdlib signature
                if not self._discard_body():
                    return None
                self.send_response(HTTPStatus.NO_CONTENT)
                self.send_header("Content-Length", "0")
                self._apply_cors()
                self.end_headers()

            def do_GET(self) -> None:  # noqa: N802 - stdlib signature
                if not self._discard_body():
                    return None
                parsed = urlparse(self.path)
                if not self._is_mcp_path(parsed):
                    return self._send_json(HTTPStatus.NOT_FOUND, {"error": "Unknown endpoint"})
                request = decode_request("GET", query=self._query(parsed))
                return self._send_dispatch(dispatcher.dispatch(request))

            def do_DELETE(self) -> None:  # noqa: N802 - stdlib signature
                if not self._discard_body():
                    return None
                parsed = urlparse(self.path)
                if not self._is_mcp_path(parsed):
                    return self._send_json(HTTPStatus.NOT_FOUND, {"error": "Unknown endpoint"})
                request = decode_request("DELETE", query=self._query(parsed))
                return self._send_dispatch(dispatcher.dispatch(request))

            def do_POST(self) -> None:  # noqa: N802 - stdlib signature
                parsed = urlparse(self.path)

                try:
                    payload = self._read_json_body()
                except InvalidJsonBody as e:
                    self.close_connection = True
                    return self._send_json(HTTPStatus.BAD_REQUEST, {"error": str(e)})

                if parsed.path.rstrip("/") == CLEAR_CHAT_PATH:
                    window.clear()
                    log.info("Chat window cleared via %s", CLEAR_CHAT_PATH)
                    return self._send_json(HTTPStatus.OK, {"message": "Chat history cleared"})

                if not self._is_mcp_path(parsed):
                    return self._send_json(HTTPStatus.NOT_FOUND, {"error": "Unknown endpoint"})

                request = decode_request("POST", payload, self._query(parsed))
                return self._send_dispatch(dispatcher.dispatch(request))

            def log_message(self, format: str, *args: Any) -> None:
                # Query strings carry credentials; log the path only.
                line = format % args
                log.info("%s - %s", self.address_string(), line.split("?", 1)[0])

        return Handler


__all__ = ["McpApiServer", "McpApiConfig", "MCP_PATH", "CLEAR_CHAT_PATH"]
