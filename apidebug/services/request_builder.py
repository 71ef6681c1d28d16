"""
Request construction: stored entry + per-run overrides + catalog -> wire request.

Header precedence (low to high): catalog shared headers, entry ``header``,
override ``headers``. Bodies are only encoded for POST, PUT and PATCH.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from urllib.parse import urlencode

from ..schemas.catalog import ApiEntry, Catalog, ExecutionOverrides
from . import content_type as mime

BODY_METHODS = ("POST", "PUT", "PATCH")


@dataclass
class TextBody:
    """A string payload sent as-is."""
    text: str
    mime_type: str

    def encode(self) -> str:
        return self.text


@dataclass
class StructuredBody:
    """An object payload, serialized according to its mime type."""
    value: Any
    mime_type: str

    def encode(self) -> str:
        if self.mime_type == mime.FORM and isinstance(self.value, dict):
            pairs = [(key, _form_value(val)) for key, val in self.value.items() if val is not None]
            return urlencode(pairs)
        return json.dumps(self.value, ensure_ascii=False)


RequestBody = Union[TextBody, StructuredBody]


@dataclass
class ResolvedRequest:
    url: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    query: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "method": self.method,
            "headers": dict(self.headers),
            "body": self.body,
        }


@dataclass
class MalformedBody:
    """A string body that looks like JSON but does not parse."""
    url: str
    method: str
    body: str
    reason: str

    def to_dict(self, index: Optional[int] = None) -> Dict[str, Any]:
        if index is not None:
            hint = (
                f"Fix the body of API {index} with api_config action 'addApi' "
                f"(same url) and rerun it with api_execute index {index}."
            )
        else:
            hint = (
                "Store the request with api_config action 'addApi' using a valid JSON "
                "object (or a valid JSON string) as body, then run it with api_execute."
            )
        result: Dict[str, Any] = {
            "success": False,
            "needsCorrection": True,
            "message": f"Request body looks like JSON but is not valid JSON: {self.reason}",
            "suggestion": hint,
            "request": {"url": self.url, "method": self.method, "body": self.body},
        }
        if index is not None:
            result["index"] = index
        return result


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def is_absolute_url(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")


def resolve_url(url: str, base_url: str) -> str:
    if is_absolute_url(url):
        return url
    return (base_url or "") + url


def merge_headers(*layers: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Merge header dicts left to right; later layers win on the same name."""
    merged: Dict[str, str] = {}
    for layer in layers:
        if not layer:
            continue
        for name, value in layer.items():
            if value is None:
                continue
            merged[name] = str(value)
    return merged


def append_query(url: str, query: Optional[Dict[str, Any]]) -> str:
    if not query:
        return url
    pairs = [(key, _form_value(val)) for key, val in query.items() if val is not None]
    if not pairs:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(pairs)}"


def check_json_like(text: str) -> Optional[str]:
    """Return a parse error when ``text`` starts like a JSON object but is not one."""
    stripped = text.strip()
    if not stripped.startswith("{"):
        return None
    try:
        json.loads(stripped)
    except ValueError as exc:
        return str(exc)
    return None


def resolve_body(body: Any, content_type: Optional[str]) -> RequestBody:
    """Classify a loosely-typed body once into a tagged variant."""
    if isinstance(body, str):
        return TextBody(body, content_type or mime.infer_content_type(body))
    if content_type == mime.FORM:
        return StructuredBody(body, mime.FORM)
    return StructuredBody(body, content_type or mime.JSON)


def _set_content_type(headers: Dict[str, str], value: str) -> None:
    for name in [h for h in headers if h.lower() == "content-type"]:
        del headers[name]
    headers["Content-Type"] = value


def build_request(
    entry: ApiEntry,
    overrides: Optional[ExecutionOverrides],
    catalog: Catalog,
    *,
    force_content_type: Optional[str] = None,
) -> Union[ResolvedRequest, MalformedBody]:
    overrides = overrides or ExecutionOverrides()

    url = overrides.url if overrides.url is not None else entry.url
    method = (overrides.method or entry.method or "GET").upper()
    query = overrides.query if overrides.query is not None else entry.query
    body = overrides.body if overrides.body is not None else entry.body
    content_type = force_content_type or (
        overrides.content_type if overrides.content_type is not None else entry.content_type
    )

    full_url = append_query(resolve_url(url, catalog.base_url), query)
    headers = merge_headers(catalog.headers, entry.header, overrides.headers)

    encoded: Optional[str] = None
    if body is not None and body != "" and method in BODY_METHODS:
        if isinstance(body, str):
            problem = check_json_like(body)
            if problem:
                return MalformedBody(url=full_url, method=method, body=body, reason=problem)
        resolved = resolve_body(body, content_type)
        encoded = resolved.encode()
        _set_content_type(headers, resolved.mime_type)
    elif force_content_type:
        _set_content_type(headers, force_content_type)

    return ResolvedRequest(url=full_url, method=method, headers=headers, body=encoded, query=query)
