"""Pydantic schema exports."""

from .catalog import ApiEntry, Catalog, ExecutionOverrides, DEFAULT_HEADERS, HISTORY_FIELDS

__all__ = ["ApiEntry", "Catalog", "ExecutionOverrides", "DEFAULT_HEADERS", "HISTORY_FIELDS"]
