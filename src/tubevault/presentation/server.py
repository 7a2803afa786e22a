"""
Newline-delimited JSON request/response loop over stdio.

Requests:  {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": ..., "arguments": {...}}}
Responses: {"jsonrpc": "2.0", "id": 1, "result": {...}}
           {"jsonrpc": "2.0", "id": 1, "error": {"code": ..., "message": ...}}

A request without an id is a notification and never gets a response, errors included.

Only responses are written to stdout; logging goes to stderr.
"""

import json
import sys
from typing import Any, Dict, Optional, TextIO

from tubevault import __version__
from tubevault.presentation.tools import ToolService
from tubevault.shared.logging import get_logger

logger = get_logger(__name__)

SERVER_NAME = "tubevault"
JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class StdioServer:
    """Serves a ToolService one JSON line at a time."""

    def __init__(
        self,
        tools: ToolService,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None
    ):
        self._tools = tools
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    def serve_forever(self) -> None:
        """Read requests until stdin closes."""
        logger.info(f"{SERVER_NAME} {__version__} listening on stdio")
        for line in self._stdin:
            response = self.handle_line(line)
            if response is not None:
                self._stdout.write(response + "\n")
                self._stdout.flush()
        logger.info("stdin closed, shutting down")

    def handle_line(self, line: str) -> Optional[str]:
        """Handle one raw line; returns the serialized response, if any."""
        if not line.strip():
            return None

        try:
            request = json.loads(line)
        except json.JSONDecodeError as e:
            return json.dumps(_error(None, PARSE_ERROR, f"Parse error: {e}"))

        response = self.handle_request(request)
        return json.dumps(response) if response is not None else None

    def handle_request(self, request: Any) -> Optional[Dict[str, Any]]:
        """Dispatch a decoded request. Requests without an id get no response."""
        if not isinstance(request, dict):
            return _error(None, INVALID_REQUEST, "Invalid request")

        response = self._dispatch(request)
        if request.get("id") is None:
            if "error" in response:
                logger.debug(f"Dropping error for notification: {response['error']['message']}")
            return None
        return response

    def _dispatch(self, request: Dict[str, Any]) -> Dict[str, Any]:
        request_id = request.get("id")
        if not isinstance(request.get("method"), str):
            return _error(request_id, INVALID_REQUEST, "Invalid request")

        method = request["method"]
        params = request.get("params") or {}

        try:
            if method == "initialize":
                result = {
                    "serverInfo": {"name": SERVER_NAME, "version": __version__},
                    "capabilities": {"tools": {}},
                }
            elif method == "tools/list":
                result = {"tools": self._tools.list_tools()}
            elif method == "tools/call":
                if not isinstance(params, dict) or not isinstance(params.get("name"), str):
                    return _error(request_id, INVALID_PARAMS, "tools/call requires a tool name")
                arguments = params.get("arguments") or {}
                if not isinstance(arguments, dict):
                    return _error(request_id, INVALID_PARAMS, "Tool arguments must be an object")
                result = self._tools.call_tool(params["name"], arguments)
            else:
                return _error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")
        except Exception as e:
            logger.exception(f"Request {method} failed: {e}")
            return _error(request_id, INTERNAL_ERROR, str(e))

        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def _error(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": {"code": code, "message": message}}
