from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_HEADERS: Dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

# Fields written by the executor after a run
HISTORY_FIELDS = (
    "data",
    "status",
    "statusText",
    "responseHeaders",
    "lastExecuted",
    "success",
    "error",
)


class ApiEntry(BaseModel):
    """One reusable API call definition. Unique by ``url`` within a catalog."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    url: str = Field(..., min_length=1, description="Absolute URL or path relative to baseUrl")
    method: str = Field("GET", description="HTTP method, stored upper-case")
    description: Optional[Any] = None
    query: Optional[Dict[str, Any]] = None
    body: Optional[Any] = None
    content_type: Optional[str] = Field(None, alias="contentType")
    header: Optional[Dict[str, Any]] = None

    # Execution history; any JSON value is kept as written
    data: Optional[Any] = None
    status: Optional[Any] = None
    status_text: Optional[Any] = Field(None, alias="statusText")
    response_headers: Optional[Dict[str, Any]] = Field(None, alias="responseHeaders")
    last_executed: Optional[Any] = Field(None, alias="lastExecuted")
    success: Optional[Any] = None
    error: Optional[Any] = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if value is None:
            return "GET"
        if isinstance(value, str):
            return value.strip().upper() or "GET"
        return value

    def to_document(self) -> Dict[str, Any]:
        """Serialize only the fields that were provided, with wire names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class Catalog(BaseModel):
    """Root persisted document: shared base URL, shared headers, entries."""

    model_config = ConfigDict(populate_by_name=True)

    base_url: str = Field("", alias="baseUrl")
    headers: Dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_HEADERS))
    entries: List[ApiEntry] = Field(default_factory=list, alias="list")

    @field_validator("base_url", mode="before")
    @classmethod
    def _none_base_url(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("headers", mode="before")
    @classmethod
    def _none_headers(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("entries", mode="before")
    @classmethod
    def _drop_urlless(cls, value: Any) -> Any:
        # Entries without a url cannot be addressed and are dropped on load
        if isinstance(value, list):
            return [item for item in value if not isinstance(item, dict) or item.get("url")]
        return value

    @classmethod
    def default(cls) -> "Catalog":
        return cls()

    def to_document(self) -> Dict[str, Any]:
        return {
            "baseUrl": self.base_url,
            "headers": dict(self.headers),
            "list": [entry.to_document() for entry in self.entries],
        }


class ExecutionOverrides(BaseModel):
    """Per-run replacements for a stored entry. Never persisted on their own."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: Optional[str] = None
    method: Optional[str] = None
    headers: Optional[Dict[str, Any]] = None
    query: Optional[Dict[str, Any]] = None
    body: Optional[Any] = None
    content_type: Optional[str] = Field(None, alias="contentType")

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper() or None
        return value
