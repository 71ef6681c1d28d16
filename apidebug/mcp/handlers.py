"""
Tool handlers and the registry that dispatches ``tools/call``.

Every handler takes the tool arguments as a dict and returns a
JSON-serializable dict, or raises an ``ApiDebugError``.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from ..services.auth_session import AuthSession, auth_state
from ..services.catalog_store import CatalogStore, utc_timestamp
from ..services.executor import Executor
from ..utils.errors import ValidationError
from .help import get_help

logger = logging.getLogger("apidebug.mcp")

Handler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class HandlerRegistry:
    """Tool name -> async handler."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}

    async def call(self, tool_name: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        handler = self._handlers.get(tool_name)
        if not handler:
            raise ValidationError(f"Unknown tool: {tool_name}", code="unknown_tool")
        if params is not None and not isinstance(params, Mapping):
            raise ValidationError("Tool arguments must be an object")
        return await handler(dict(params or {}))

    def register(self, name: str, handler: Handler) -> None:
        self._handlers[name] = handler

    def register_many(self, handlers: Dict[str, Handler]) -> int:
        for name, handler in handlers.items():
            self.register(name, handler)
        return len(handlers)

    def names(self) -> List[str]:
        return sorted(self._handlers)


class ApiConfigActions:
    """The ``api_config`` tool: one method per action."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store
        self._actions: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            "get": self.get,
            "set": self.set,
            "list": self.list,
            "search": self.search,
            "addApi": self.add_api,
            "deleteApi": self.delete_api,
            "updateBaseUrl": self.update_base_url,
            "updateHeaders": self.update_headers,
            "deleteHeader": self.delete_header,
        }

    async def __call__(self, params: Dict[str, Any]) -> Dict[str, Any]:
        action = params.get("action")
        if not action:
            raise ValidationError(f"Missing action parameter. Must be one of: {', '.join(self._actions)}")
        handler = self._actions.get(action)
        if handler is None:
            raise ValidationError(f"Unknown action: {action}. Must be one of: {', '.join(self._actions)}")
        logger.debug("api_config action=%s", action)
        return handler(params)

    def get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        catalog = self.store.get()
        document = catalog.to_document()
        document["authState"] = auth_state(catalog).value
        return document

    def set(self, params: Dict[str, Any]) -> Dict[str, Any]:
        catalog = self.store.set(params.get("config"))
        total = len(catalog.entries)
        return {
            "success": True,
            "message": f"Successfully updated API config. Total APIs: {total}",
            "totalApis": total,
            "timestamp": utc_timestamp(),
        }

    def list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        catalog, apis = self.store.list()
        return {
            "success": True,
            "baseUrl": catalog.base_url,
            "headers": catalog.headers,
            "apis": apis,
            "total": len(apis),
            "timestamp": utc_timestamp(),
        }

    def search(self, params: Dict[str, Any]) -> Dict[str, Any]:
        keyword = params.get("keyword")
        results = self.store.search(keyword)
        return {
            "success": True,
            "message": f"Found {len(results)} APIs matching '{keyword}'",
            "keyword": keyword,
            "results": results,
            "total": len(results),
            "timestamp": utc_timestamp(),
        }

    def add_api(self, params: Dict[str, Any]) -> Dict[str, Any]:
        index, entry, created = self.store.add_or_update(params.get("api"))
        verb = "added" if created else "updated"
        return {
            "success": True,
            "message": f"Successfully {verb} API at index {index}",
            "index": index,
            "created": created,
            "api": entry.to_document(),
            "timestamp": utc_timestamp(),
        }

    def delete_api(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if params.get("index") is None:
            raise ValidationError("Missing index parameter for deleteApi action")
        removed = self.store.delete(params["index"])
        return {
            "success": True,
            "message": f"Successfully deleted API at index {params['index']}",
            "deleted": removed.to_document(),
            "timestamp": utc_timestamp(),
        }

    def update_base_url(self, params: Dict[str, Any]) -> Dict[str, Any]:
        catalog = self.store.update_base_url(params.get("baseUrl"))
        return {
            "success": True,
            "message": f"Successfully updated base URL to {catalog.base_url}",
            "baseUrl": catalog.base_url,
            "timestamp": utc_timestamp(),
        }

    def update_headers(self, params: Dict[str, Any]) -> Dict[str, Any]:
        catalog = self.store.update_headers(params.get("headers"))
        return {
            "success": True,
            "message": "Successfully updated headers",
            "headers": catalog.headers,
            "timestamp": utc_timestamp(),
        }

    def delete_header(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("headerName")
        deleted, catalog = self.store.delete_header(name)
        return {
            "success": True,
            "message": f"Successfully deleted header: {name}" if deleted else f"Header not found: {name}",
            "deleted": deleted,
            "headers": catalog.headers,
            "timestamp": utc_timestamp(),
        }


def create_handlers(
    store: CatalogStore,
    executor: Executor,
    auth: AuthSession,
) -> Dict[str, Handler]:
    async def handle_api_execute(params: Dict[str, Any]) -> Dict[str, Any]:
        if params.get("index") is None:
            raise ValidationError("Missing index parameter")
        return await executor.execute_index(params["index"], params.get("overrides"))

    async def handle_api_debug(params: Dict[str, Any]) -> Dict[str, Any]:
        return await executor.execute_adhoc(params)

    async def handle_api_login(params: Dict[str, Any]) -> Dict[str, Any]:
        return await auth.login(params.get("baseUrl"))

    async def handle_api_help(params: Dict[str, Any]) -> Dict[str, Any]:
        return get_help(params.get("tool"))

    return {
        "api_config": ApiConfigActions(store),
        "api_execute": handle_api_execute,
        "api_debug": handle_api_debug,
        "api_login": handle_api_login,
        "api_help": handle_api_help,
    }


def build_registry(
    store: Optional[CatalogStore] = None,
    executor: Optional[Executor] = None,
) -> HandlerRegistry:
    store = store or CatalogStore()
    executor = executor or Executor(store)
    registry = HandlerRegistry()
    count = registry.register_many(create_handlers(store, executor, executor.auth))
    logger.debug("Registered %d tool handlers", count)
    return registry
