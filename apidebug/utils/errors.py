from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import HTTPException, status

logger = logging.getLogger("apidebug.errors")

# Patterns that might leak credentials into logs or error payloads
SENSITIVE_PATTERNS = [
    r"api[_-]?key[=:\s]+\S+",
    r"password[=:\s]+\S+",
    r"token[=:\s]+\S+",
    r"secret[=:\s]+\S+",
    r"bearer\s+\S+",
]


class ApiDebugError(Exception):
    """Base class for failures that abort a tool call."""

    code = "internal_error"

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


class ValidationError(ApiDebugError):
    """Missing or invalid parameter."""

    code = "validation_error"


class MethodNotAllowed(ApiDebugError):
    code = "method_not_allowed"

    def __init__(self, method: str, allowed: list[str]) -> None:
        super().__init__(
            f"HTTP method '{method}' is not allowed. Allowed methods: {', '.join(allowed)}"
        )
        self.method = method
        self.allowed = list(allowed)


class IndexOutOfRange(ApiDebugError):
    code = "index_out_of_range"

    def __init__(self, index: int, size: int) -> None:
        if size:
            message = f"Invalid index: {index}. Must be between 0 and {size - 1}"
        else:
            message = f"Invalid index: {index}. The API list is empty"
        super().__init__(message)
        self.index = index
        self.size = size


class PersistenceError(ApiDebugError):
    """Reading or writing the catalog document failed."""

    code = "persistence_error"


def sanitize_error_message(message: str) -> str:
    """Remove credentials from a message before it is logged or echoed.

    Bearer tokens end up in shared headers after a login, so anything that
    dumps headers or upstream errors goes through here first.
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    if len(sanitized) > 500:
        sanitized = sanitized[:500] + "... [truncated]"

    return sanitized


def api_error(
    message: str,
    *,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    code: str = "bad_request",
    internal_message: Optional[str] = None,
    sanitize: bool = True,
) -> HTTPException:
    """Create an HTTP error for misuse of the HTTP surface.

    Args:
        message: The error message to show to callers
        status_code: HTTP status code
        code: Error code for programmatic handling
        internal_message: Optional detailed message for logging only
        sanitize: Whether to sanitize the message (default True)
    """
    if internal_message:
        logger.error("[%s] Internal: %s", code, sanitize_error_message(internal_message))

    user_message = sanitize_error_message(message) if sanitize else message

    return HTTPException(
        status_code=status_code,
        detail={"error": {"message": user_message, "code": code}},
    )
