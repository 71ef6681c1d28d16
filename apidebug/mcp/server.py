#!/usr/bin/env python3
"""
API Debug MCP server
====================

JSON-RPC 2.0 over stdio, one message per line. stdout carries the protocol
only; logs go to stderr (and ``LOG_FILE`` when set).

Methods:
- initialize / notifications/initialized
- tools/list, tools/call
- resources/list, prompts/list (always empty)
- ping, shutdown
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

from .. import __version__
from ..config import get_settings
from ..services.catalog_store import CatalogStore
from ..utils.central_logging import setup_logging
from ..utils.errors import ApiDebugError, IndexOutOfRange, MethodNotAllowed, ValidationError, sanitize_error_message
from .handlers import HandlerRegistry, build_registry
from .tools import get_all_tools

logger = logging.getLogger("apidebug.mcp")

DEFAULT_PROTOCOL_VERSION = "2025-06-18"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Caller mistakes; everything else is reported as an internal error
CALLER_ERRORS = (ValidationError, MethodNotAllowed, IndexOutOfRange)


def rpc_result(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def rpc_error(request_id: Any, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": request_id, "error": error}


def text_content(result: Any) -> Dict[str, Any]:
    """Wrap a tool result as MCP text content."""
    return {"content": [{"type": "text", "text": json.dumps(result, indent=2, ensure_ascii=False)}]}


class MCPServer:
    """Dispatches JSON-RPC requests to the tool registry."""

    SERVER_NAME = "apidebug-mcp"
    SERVER_VERSION = __version__

    def __init__(
        self,
        store: Optional[CatalogStore] = None,
        registry: Optional[HandlerRegistry] = None,
    ) -> None:
        self.store = store or CatalogStore()
        self.registry = registry or build_registry(self.store)
        self.initialized = False
        self.shutdown_requested = False
        self.client_info: Dict[str, Any] = {}

    def get_capabilities(self, protocol_version: Optional[str] = None) -> Dict[str, Any]:
        return {
            "protocolVersion": protocol_version or DEFAULT_PROTOCOL_VERSION,
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {},
                "prompts": {},
            },
            "serverInfo": {"name": self.SERVER_NAME, "version": self.SERVER_VERSION},
        }

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        result = await self.registry.call(name, arguments)
        return text_content(result)

    async def handle_request(self, request: Any) -> Optional[Dict[str, Any]]:
        """Process one JSON-RPC message. Returns None for notifications."""
        if not isinstance(request, dict) or request.get("jsonrpc") != "2.0":
            request_id = request.get("id") if isinstance(request, dict) else None
            return rpc_error(request_id, INVALID_REQUEST, "Invalid Request")

        method = request.get("method", "")
        params = request.get("params") or {}
        request_id = request.get("id")
        logger.debug("Request: %s", method)

        # Notifications don't need a response
        if request_id is None:
            if method == "notifications/initialized":
                self.initialized = True
                logger.info("Client initialized")
            return None

        try:
            if method == "initialize":
                self.client_info = params.get("clientInfo", {})
                logger.info("Initialize from: %s", self.client_info.get("name", "unknown"))
                return rpc_result(request_id, self.get_capabilities(params.get("protocolVersion")))

            elif method == "tools/list":
                return rpc_result(request_id, {"tools": get_all_tools()})

            elif method == "tools/call":
                name = params.get("name", "")
                logger.info("Tool call: %s", name)
                return rpc_result(request_id, await self.call_tool(name, params.get("arguments")))

            elif method == "resources/list":
                return rpc_result(request_id, {"resources": []})

            elif method == "prompts/list":
                return rpc_result(request_id, {"prompts": []})

            elif method == "ping":
                return rpc_result(request_id, {"pong": True})

            elif method == "shutdown":
                self.shutdown_requested = True
                logger.info("Shutdown requested")
                return rpc_result(request_id, {})

            logger.warning("Unknown method: %s", method)
            return rpc_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        except CALLER_ERRORS as exc:
            logger.warning("%s rejected: %s", method, sanitize_error_message(exc.message))
            return rpc_error(request_id, INVALID_PARAMS, exc.message, {"code": exc.code})
        except ApiDebugError as exc:
            logger.error("%s failed: %s", method, sanitize_error_message(exc.message))
            return rpc_error(request_id, INTERNAL_ERROR, exc.message, {"code": exc.code})
        except Exception as exc:
            logger.exception("Unhandled error in %s", method)
            return rpc_error(request_id, INTERNAL_ERROR, f"Internal error: {exc}")

    async def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        line = line.strip()
        if not line:
            return None
        try:
            request = json.loads(line)
        except ValueError as exc:
            logger.warning("Parse error: %s", exc)
            return rpc_error(None, PARSE_ERROR, "Parse error", str(exc))
        return await self.handle_request(request)


def write_message(response: Dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
    sys.stdout.flush()


async def main(server: Optional[MCPServer] = None) -> None:
    """Read requests from stdin until EOF or shutdown."""
    server = server or MCPServer()
    settings = get_settings()
    logger.info("API Debug MCP server %s starting (catalog: %s)", __version__, settings.catalog_path)

    loop = asyncio.get_running_loop()
    while not server.shutdown_requested:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            break
        response = await server.handle_line(line)
        if response:
            write_message(response)

    logger.info("Shutting down...")


def run() -> None:
    """Console entry point."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    run()
