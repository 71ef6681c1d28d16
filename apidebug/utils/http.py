from __future__ import annotations

from typing import Any, Dict

from httpx import Response


def is_success_status(status_code: int | None) -> bool:
    return status_code is not None and 200 <= status_code < 300


def decode_response_body(response: Response) -> Any:
    """Return parsed JSON for JSON responses, the text body otherwise."""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


def response_headers(response: Response) -> Dict[str, str]:
    return {key: value for key, value in response.headers.items()}


def status_text(response: Response) -> str:
    return response.reason_phrase or ""


def describe_http_error(response: Response) -> str:
    """Short ``HTTP <status>: <reason>`` label for a non-2xx response."""
    reason = status_text(response)
    return f"HTTP {response.status_code}: {reason}".rstrip(": ")
