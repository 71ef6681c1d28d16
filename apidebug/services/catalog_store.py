"""
Catalog Store - CRUD and URL-keyed deduplication over the API list.

Mutation logic lives in pure functions over an in-memory ``Catalog``;
``CatalogStore`` loads, applies one of them and persists. The document is
re-read for every operation, nothing is cached between calls.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError as SchemaError

from ..schemas.catalog import ApiEntry, Catalog
from ..utils.errors import IndexOutOfRange, ValidationError
from .persistence import CatalogFile

logger = logging.getLogger("apidebug.catalog")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_entry(data: Any) -> ApiEntry:
    if isinstance(data, ApiEntry):
        return data
    if not isinstance(data, Mapping) or not data.get("url"):
        raise ValidationError("Missing or invalid api parameter. API must have url property")
    try:
        return ApiEntry.model_validate(dict(data))
    except SchemaError as exc:
        raise ValidationError(f"Invalid API entry: {exc.errors()[0].get('msg', exc)}") from exc


def merge_entry(existing: ApiEntry, incoming: ApiEntry) -> ApiEntry:
    """Shallow merge: fields set on ``incoming`` win, everything else is kept."""
    merged = {**existing.to_document(), **incoming.to_document()}
    return ApiEntry.model_validate(merged)


def find_index(entries: List[ApiEntry], url: str) -> int:
    for position, entry in enumerate(entries):
        if entry.url == url:
            return position
    return -1


def dedupe_entries(*sources: Iterable[ApiEntry]) -> List[ApiEntry]:
    """Keep one entry per url. Later sources replace earlier ones in place."""
    by_url: Dict[str, ApiEntry] = {}
    for source in sources:
        for entry in source:
            if entry.url:
                by_url[entry.url] = entry
    return list(by_url.values())


def upsert_entry(catalog: Catalog, entry: ApiEntry) -> Tuple[int, bool]:
    """Merge ``entry`` into the catalog. Returns ``(index, created)``."""
    position = find_index(catalog.entries, entry.url)
    if position >= 0:
        catalog.entries[position] = merge_entry(catalog.entries[position], entry)
        return position, False
    catalog.entries.append(entry)
    return len(catalog.entries) - 1, True


def apply_partial(catalog: Catalog, partial: Mapping[str, Any]) -> Catalog:
    """Merge a partial catalog document (``baseUrl``, ``headers``, ``list``)."""
    base_url = partial.get("baseUrl")
    headers = partial.get("headers") or {}
    if not isinstance(headers, Mapping):
        raise ValidationError("Invalid headers in config: must be an object")
    incoming_raw = partial.get("list") or []
    if not isinstance(incoming_raw, list):
        raise ValidationError("Invalid list in config: must be an array")

    incoming = [parse_entry(item) for item in incoming_raw if isinstance(item, Mapping) and item.get("url")]

    return Catalog(
        baseUrl=base_url if base_url is not None else catalog.base_url,
        headers={**catalog.headers, **headers},
        list=dedupe_entries(catalog.entries, incoming),
    )


def search_entries(catalog: Catalog, keyword: str) -> List[Dict[str, Any]]:
    needle = keyword.lower()
    results = []
    for position, entry in enumerate(catalog.entries):
        url_match = needle in (entry.url or "").lower()
        desc_match = needle in str(entry.description or "").lower()
        if url_match or desc_match:
            results.append({**entry.to_document(), "index": position})
    return results


def indexed_entries(catalog: Catalog) -> List[Dict[str, Any]]:
    return [{**entry.to_document(), "index": position} for position, entry in enumerate(catalog.entries)]


def check_index(catalog: Catalog, index: Any) -> int:
    if isinstance(index, bool) or not isinstance(index, (int, float)):
        raise ValidationError("Invalid index parameter. Must be a non-negative number")
    if isinstance(index, float):
        if not index.is_integer():
            raise ValidationError("Invalid index parameter. Must be a non-negative integer")
        index = int(index)
    if index < 0 or index >= len(catalog.entries):
        raise IndexOutOfRange(index, len(catalog.entries))
    return index


class CatalogStore:
    """Load/apply/persist wrapper around the catalog document."""

    def __init__(self, catalog_file: Optional[CatalogFile] = None) -> None:
        self.file = catalog_file or CatalogFile()

    def get(self) -> Catalog:
        return self.file.load()

    def save(self, catalog: Catalog) -> Catalog:
        self.file.save(catalog)
        return catalog

    def set(self, partial: Mapping[str, Any]) -> Catalog:
        if not isinstance(partial, Mapping):
            raise ValidationError("Missing or invalid config parameter for set action")
        merged = apply_partial(self.get(), partial)
        self.save(merged)
        logger.info("Catalog replaced: %d APIs", len(merged.entries))
        return merged

    def add_or_update(self, data: Any) -> Tuple[int, ApiEntry, bool]:
        entry = parse_entry(data)
        catalog = self.get()
        position, created = upsert_entry(catalog, entry)
        self.save(catalog)
        logger.info("%s API %s at index %d", "Added" if created else "Updated", entry.url, position)
        return position, catalog.entries[position], created

    def delete(self, index: Any) -> ApiEntry:
        catalog = self.get()
        position = check_index(catalog, index)
        removed = catalog.entries.pop(position)
        self.save(catalog)
        logger.info("Deleted API %s (index %d)", removed.url, position)
        return removed

    def entry(self, index: Any) -> Tuple[Catalog, int, ApiEntry]:
        catalog = self.get()
        position = check_index(catalog, index)
        return catalog, position, catalog.entries[position]

    def search(self, keyword: str) -> List[Dict[str, Any]]:
        if not keyword or not isinstance(keyword, str):
            raise ValidationError("Missing keyword parameter for search action")
        return search_entries(self.get(), keyword)

    def list(self) -> Tuple[Catalog, List[Dict[str, Any]]]:
        catalog = self.get()
        return catalog, indexed_entries(catalog)

    def update_base_url(self, base_url: str) -> Catalog:
        if not base_url or not isinstance(base_url, str):
            raise ValidationError("Missing baseUrl parameter for updateBaseUrl action")
        catalog = self.get()
        catalog.base_url = base_url
        return self.save(catalog)

    def update_headers(self, headers: Mapping[str, Any]) -> Catalog:
        if not headers or not isinstance(headers, Mapping):
            raise ValidationError("Missing or invalid headers parameter for updateHeaders action")
        catalog = self.get()
        catalog.headers = {**catalog.headers, **headers}
        return self.save(catalog)

    def delete_header(self, name: str) -> Tuple[bool, Catalog]:
        if not name or not isinstance(name, str):
            raise ValidationError("Missing headerName parameter for deleteHeader action")
        catalog = self.get()
        if name not in catalog.headers:
            return False, catalog
        del catalog.headers[name]
        self.save(catalog)
        return True, catalog

    def record_execution(self, catalog: Catalog, index: int, outcome: Mapping[str, Any]) -> ApiEntry:
        """Write history fields onto ``catalog.entries[index]`` and persist."""
        current = catalog.entries[index]
        updated = ApiEntry.model_validate({**current.to_document(), **outcome})
        catalog.entries[index] = updated
        # Keep the url invariant even if the stored list was edited by hand
        catalog.entries = dedupe_entries(catalog.entries)
        self.save(catalog)
        return updated
