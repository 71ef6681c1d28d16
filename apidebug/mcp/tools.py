"""
Tool definitions advertised over ``tools/list``.

Five tools:
- api_config: catalog management (get, set, list, search, addApi, ...)
- api_execute: run a stored API by index
- api_debug: run an ad hoc request
- api_login: log in with the configured endpoint
- api_help: usage documentation
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..config import Settings, get_settings

API_ENTRY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "url": {"type": "string", "description": "Absolute URL or path relative to baseUrl"},
        "method": {"type": "string", "description": "HTTP method (default GET)"},
        "description": {"type": "string", "description": "What the API does"},
        "query": {"type": "object", "description": "Query parameters"},
        "body": {"description": "Request body, object or string"},
        "contentType": {"type": "string", "description": "Body content type, detected when omitted"},
        "header": {"type": "object", "description": "Headers for this API only"},
    },
    "required": ["url"],
}

LOGIN_FIELDS = {"login_url", "login_method_raw", "allowed_methods_raw"}

CONFIG_ACTIONS = ["get", "set", "list", "search", "addApi", "deleteApi", "updateBaseUrl", "updateHeaders", "deleteHeader"]

API_CONFIG_TOOL: Dict[str, Any] = {
    "name": "api_config",
    "description": "Manage the API catalog: base URL, shared headers and the list of stored APIs",
    "inputSchema": {
        "type": "object",
        "properties": {
            "action": {"type": "string", "enum": CONFIG_ACTIONS, "description": "Operation to perform"},
            "config": {
                "type": "object",
                "description": "Partial catalog for 'set': baseUrl, headers, list",
                "properties": {
                    "baseUrl": {"type": "string"},
                    "headers": {"type": "object"},
                    "list": {"type": "array", "items": API_ENTRY_SCHEMA},
                },
            },
            "api": {**API_ENTRY_SCHEMA, "description": "API to add or update for 'addApi' (matched by url)"},
            "index": {"type": "number", "description": "API index for 'deleteApi'"},
            "keyword": {"type": "string", "description": "Keyword matched against url and description for 'search'"},
            "baseUrl": {"type": "string", "description": "New base URL for 'updateBaseUrl'"},
            "headers": {"type": "object", "description": "Headers to merge for 'updateHeaders'"},
            "headerName": {"type": "string", "description": "Header to remove for 'deleteHeader'"},
        },
        "required": ["action"],
    },
}

API_EXECUTE_TOOL: Dict[str, Any] = {
    "name": "api_execute",
    "description": "Execute a stored API by index. Overrides apply to this run only and are not saved",
    "inputSchema": {
        "type": "object",
        "properties": {
            "index": {"type": "number", "description": "Index of the API in the catalog list"},
            "overrides": {
                "type": "object",
                "description": "Per-run overrides",
                "properties": {
                    "url": {"type": "string"},
                    "method": {"type": "string"},
                    "headers": {"type": "object"},
                    "query": {"type": "object"},
                    "body": {},
                    "contentType": {"type": "string"},
                },
            },
        },
        "required": ["index"],
    },
}

API_LOGIN_TOOL: Dict[str, Any] = {
    "name": "api_login",
    "description": (
        "Log in with the endpoint configured through API_DEBUG_LOGIN_* variables. "
        "A returned token is saved as 'Authorization: Bearer <token>' in the shared headers"
    ),
    "inputSchema": {
        "type": "object",
        "properties": {
            "baseUrl": {"type": "string", "description": "Base URL to use instead of the catalog baseUrl"},
        },
    },
}

API_HELP_TOOL: Dict[str, Any] = {
    "name": "api_help",
    "description": "Documentation and examples for the API debugging tools",
    "inputSchema": {
        "type": "object",
        "properties": {
            "tool": {
                "type": "string",
                "enum": ["api_config", "api_execute", "api_debug", "api_login"],
                "description": "Tool to describe, all tools when omitted",
            },
        },
    },
}


def debug_tool_description(settings: Optional[Settings] = None) -> str:
    """Describe api_debug, including login configuration when it is customized."""
    settings = settings or get_settings()
    text = "API debugging tool: execute a request directly from url, method, headers, query and body"

    # Only fields loaded from the environment or .env end up in model_fields_set
    if not settings.model_fields_set & LOGIN_FIELDS:
        return text

    lines = [
        text,
        "",
        "Login configuration:",
        f"- Login URL: {settings.login_url}",
        f"- Login method: {settings.login_method}",
        f"- Login description: {settings.login_description}",
        f"- Allowed methods: {', '.join(settings.allowed_methods)}",
        "",
        "Usage:",
        "- Requests to the login URL are sent through api_login with the configured body",
        "- Other requests must use an allowed method",
        "- Shared headers are updated with the token after a successful login",
    ]
    return "\n".join(lines)


def debug_tool(settings: Optional[Settings] = None) -> Dict[str, Any]:
    return {
        "name": "api_debug",
        "description": debug_tool_description(settings),
        "inputSchema": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "Absolute URL or path relative to baseUrl"},
                "method": {"type": "string", "description": "HTTP method (default GET)"},
                "headers": {"type": "object", "description": "Headers for this request"},
                "query": {"type": "object", "description": "Query parameters"},
                "body": {"description": "Request body: object, JSON, form, XML, HTML or plain text"},
                "contentType": {"type": "string", "description": "Content type, detected when omitted"},
                "description": {"type": "string", "description": "Saved with the API when the call succeeds"},
            },
            "required": ["url"],
        },
    }


def get_all_tools(settings: Optional[Settings] = None) -> List[Dict[str, Any]]:
    return [API_CONFIG_TOOL, API_EXECUTE_TOOL, debug_tool(settings), API_LOGIN_TOOL, API_HELP_TOOL]
