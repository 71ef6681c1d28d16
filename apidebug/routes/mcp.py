from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from ..mcp.server import PARSE_ERROR, MCPServer, rpc_error
from ..services.auth_session import auth_state
from ..utils.errors import api_error

logger = logging.getLogger("apidebug.mcp.routes")

router = APIRouter()

_server: Dict[str, MCPServer] = {}


def get_mcp_server() -> MCPServer:
    if "default" not in _server:
        _server["default"] = MCPServer()
    return _server["default"]


@router.get("/mcp/status", tags=["MCP"], summary="Health check for the API debug MCP server")
async def mcp_status(server: MCPServer = Depends(get_mcp_server)) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"status": "ok"}
    try:
        catalog = server.store.get()
        payload["api_count"] = len(catalog.entries)
        payload["auth_state"] = auth_state(catalog).value
    except Exception as exc:  # pragma: no cover - reported, not raised
        payload = {"status": "degraded", "error": str(exc)}

    payload.update(
        {
            "methods": ["initialize", "tools/list", "tools/call", "resources/list", "prompts/list", "ping", "shutdown"],
            "tools": server.registry.names(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )
    return payload


@router.post("/mcp", tags=["MCP"], summary="JSON-RPC endpoint for the API debug tools")
async def mcp_endpoint(request: Request, server: MCPServer = Depends(get_mcp_server)):
    try:
        body = await request.json()
    except ValueError as exc:
        return JSONResponse(
            content=rpc_error(None, PARSE_ERROR, "Parse error", str(exc)),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(body, list):
        if not body:
            raise api_error("Empty JSON-RPC batch", code="invalid_request")
        responses = []
        for item in body:
            response = await server.handle_request(item)
            if response is not None:
                responses.append(response)
        if not responses:
            return Response(status_code=status.HTTP_202_ACCEPTED)
        return JSONResponse(content=responses)

    response = await server.handle_request(body)
    if response is None:
        return Response(status_code=status.HTTP_202_ACCEPTED)  # Notification acknowledged
    return JSONResponse(content=response)
