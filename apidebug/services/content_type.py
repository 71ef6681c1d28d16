"""Wire-format detection for request bodies.

Rules run in order and the first match wins. A form-looking string that
also parses as JSON is JSON; callers who need form encoding for a
structured body pass an explicit ``contentType``.
"""
from __future__ import annotations

import json
from typing import Any

JSON = "application/json"
XML = "application/xml"
HTML = "text/html"
FORM = "application/x-www-form-urlencoded"
TEXT = "text/plain"


def _parses_as_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def infer_content_type(body: Any) -> str:
    if not isinstance(body, str):
        return JSON

    text = body.strip()

    if text.startswith("<") and text.endswith(">"):
        return XML

    if "<html" in text or "<!DOCTYPE html" in text:
        return HTML

    if _parses_as_json(text):
        return JSON

    if "=" in text and "&" in text:
        return FORM

    if "\n" in text or "\r" in text:
        return TEXT

    return TEXT
