"""Test helpers for building canned upstream responses."""

import json
from typing import Any, Dict, Optional

import httpx


def json_response(status_code: int, payload: Any, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    """Build a JSON response the way an upstream API would send it."""
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode("utf-8"),
        headers={"content-type": "application/json", **(headers or {})},
    )


def text_response(status_code: int, text: str) -> httpx.Response:
    return httpx.Response(status_code, text=text, headers={"content-type": "text/plain"})


def tool_payload(response: Dict[str, Any]) -> Any:
    """Unwrap the JSON text of an MCP ``tools/call`` result."""
    return json.loads(response["result"]["content"][0]["text"])
