"""
MCP server bridging tool calls to WeChat Developer Tools automation.

This module provides the main entry point and protocol handling.
Tool dispatch is handled via registry pattern in server/registry.py.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import IO, Any

from .config import DevtoolsConfig
from .connection import ConnectionManager
from .server.contract import (
    DEFAULT_PROTOCOL_VERSION,
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    initialize_result,
    select_protocol,
    tools_list,
)
from .server.registry import create_default_registry
from .server.types import ToolResult

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("mcp.wechat")

__all__ = [
    "SUPPORTED_PROTOCOL_VERSIONS",
    "LATEST_PROTOCOL_VERSION",
    "DEFAULT_PROTOCOL_VERSION",
    "McpServer",
    "main",
]

_MAX_LOGGED_ARG_CHARS = 200

# Binary stream reserved for JSON-RPC frames once stdout is redirected.
_rpc_out: IO[bytes] | None = None


def redirect_stdout() -> IO[bytes]:
    """Keep the real stdout for RPC frames and send every other print to stderr."""
    global _rpc_out
    if _rpc_out is None:
        _rpc_out = sys.stdout.buffer
        sys.stdout = sys.stderr
    return _rpc_out


def _dump_frame(marker: bytes, line: bytes) -> None:
    if dump_path := os.environ.get("MCP_DUMP_FRAMES"):
        if dump_dir := os.path.dirname(dump_path):
            os.makedirs(dump_dir, exist_ok=True)
        with open(dump_path, "ab") as fp:
            fp.write(marker)
            fp.write(line if line.endswith(b"\n") else line + b"\n")


def _write_message(payload: dict[str, Any]) -> None:
    """Write JSON-RPC message to stdout."""
    data = json.dumps(payload, ensure_ascii=False)
    line = (data + "\n").encode()
    _dump_frame(b"--out--\n", line)
    out = _rpc_out or sys.stdout.buffer
    out.write(line)
    out.flush()


def _read_message() -> dict[str, Any] | None:
    """Read JSON-RPC message from stdin.

    Returns None at EOF, {} for blank lines, and raises ValueError for lines
    that are not a JSON object.
    """
    line = sys.stdin.buffer.readline()
    if not line:
        return None
    line = line.strip()
    if not line:
        return {}
    _dump_frame(b"--in--\n", line)
    msg = json.loads(line.decode())
    if not isinstance(msg, dict):
        raise ValueError("JSON-RPC message must be an object")
    if os.environ.get("MCP_TRACE"):
        logger.info("recv %s", msg)
    return msg


def _sanitize_arguments(arguments: Any) -> Any:
    if not isinstance(arguments, dict):
        return arguments
    safe: dict[str, Any] = {}
    for key, value in arguments.items():
        if isinstance(value, str) and len(value) > _MAX_LOGGED_ARG_CHARS:
            value = value[:_MAX_LOGGED_ARG_CHARS] + f"… <truncated len={len(value)}>"
        safe[key] = value
    return safe


class McpServer:
    """MCP Server with registry-based tool dispatch."""

    def __init__(self, manager: ConnectionManager | None = None) -> None:
        self.config = manager.config if manager is not None else DevtoolsConfig.from_env()
        self.manager = manager or ConnectionManager(self.config)
        self.registry = create_default_registry()

    def handle_initialize(self, request_id: Any, params: dict[str, Any] | None = None) -> None:
        """Handle initialize request."""
        requested = (params or {}).get("protocolVersion") if isinstance(params, dict) else None
        _write_message({"jsonrpc": "2.0", "id": request_id, "result": initialize_result(select_protocol(requested))})

    def handle_list_tools(self, request_id: Any) -> None:
        """Handle tools/list request."""
        _write_message({"jsonrpc": "2.0", "id": request_id, "result": {"tools": tools_list()}})

    def _log_call(self, name: str, arguments: Any) -> None:
        logger.info("tool=%s args=%s", name, _sanitize_arguments(arguments))

    def handle_call_tool(self, request_id: Any, name: str, arguments: Any) -> None:
        """Handle tool call; the registry always returns an envelope."""
        self._log_call(name, arguments)
        if not name:
            result = ToolResult.error("Missing tool name")
        else:
            result = self.registry.dispatch(name, self.config, self.manager, arguments)

        _write_message({"jsonrpc": "2.0", "id": request_id, "result": result.to_payload()})

    def dispatch(self, message: dict[str, Any]) -> None:
        """Dispatch incoming JSON-RPC message to appropriate handler."""
        if not message:
            return

        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params")
        if not isinstance(params, dict):
            params = {}

        if method == "initialize":
            self.handle_initialize(request_id, params)
        elif method in ("notifications/initialized", "notifications/cancelled"):
            return
        elif method in ("tools/list", "list_tools"):
            self.handle_list_tools(request_id)
        elif method in ("tools/call", "call_tool"):
            name = params.get("name")
            arguments = params.get("arguments")
            if arguments is None:
                arguments = params.get("args")
            self.handle_call_tool(request_id, name if isinstance(name, str) else "", arguments)
        elif method == "ping":
            _write_message({"jsonrpc": "2.0", "id": request_id, "result": {"pong": True}})
        elif request_id is None:
            # Unknown notification: nothing to answer.
            return
        else:
            _write_message(
                {
                    "jsonrpc": "2.0",
                    "id": request_id,
                    "error": {"code": -32601, "message": f"Method {method} not found"},
                }
            )

    def serve(self) -> None:
        """Read-dispatch loop until stdin closes."""
        logger.info("WeChat DevTools MCP Server running on stdio (port=%s)", self.config.port)
        try:
            while True:
                try:
                    message = _read_message()
                except ValueError as exc:
                    logger.info("parse_error %s", exc)
                    _write_message({"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}})
                    continue
                if message is None:
                    break
                try:
                    self.dispatch(message)
                except Exception as exc:  # noqa: BLE001
                    logger.exception("dispatch_failed method=%s", message.get("method"))
                    if message.get("id") is not None:
                        _write_message(
                            {
                                "jsonrpc": "2.0",
                                "id": message.get("id"),
                                "error": {"code": -32603, "message": f"Internal error: {exc}"},
                            }
                        )
        finally:
            self.manager.shutdown()


def main() -> None:
    """Main entry point for MCP server."""
    try:
        redirect_stdout()
        server = McpServer()
    except Exception:
        logger.critical("Fatal error during startup", exc_info=True)
        sys.exit(1)
    try:
        server.serve()
    except OSError:
        logger.critical("Fatal error: stdio transport closed", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
