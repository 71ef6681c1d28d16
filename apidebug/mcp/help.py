"""Static documentation returned by the api_help tool."""
from __future__ import annotations

from typing import Any, Dict, Optional

from ..services import content_type as mime
from ..services.catalog_store import utc_timestamp
from ..utils.errors import ValidationError

HELP_CONTENT: Dict[str, Dict[str, Any]] = {
    "api_debug": {
        "name": "api_debug",
        "description": "Execute an API request directly from url and parameters",
        "usage": "Pass url, method, headers, query and body. Successful calls are saved to the catalog",
        "supportedFormats": [
            'JSON object: {"username": "admin", "password": "123456"}',
            'Form data: "username=admin&password=123456"',
            'Plain text: "Hello World"',
            'XML: "<user><name>John</name></user>"',
            'HTML: "<html><body>Content</body></html>"',
        ],
        "autoContentTypeDetection": {
            "JSON object": mime.JSON,
            "Form data": mime.FORM,
            "XML": mime.XML,
            "HTML": mime.HTML,
            "Plain text": mime.TEXT,
        },
        "examples": [
            {
                "description": "Simple GET request",
                "request": {"url": "/api/users", "method": "GET", "query": {"page": 1, "limit": 10}},
            },
            {
                "description": "PUT request with form data",
                "request": {
                    "url": "/api/users/123",
                    "method": "PUT",
                    "body": "name=John&email=john@example.com",
                    "contentType": mime.FORM,
                },
            },
            {
                "description": "Request with an explicit token",
                "request": {"url": "/api/profile", "headers": {"Authorization": "Bearer token123"}},
            },
        ],
        "bestPractices": [
            "Use relative URLs and set baseUrl through api_config",
            "Let the tool detect the content type unless the server needs a specific one",
            "Use query parameters for GET requests instead of a body",
            "Only methods in API_DEBUG_ALLOWED_METHODS can be executed",
        ],
    },
    "api_login": {
        "name": "api_login",
        "description": "Log in using the endpoint configured through environment variables",
        "usage": "No parameters required. baseUrl replaces the catalog base URL for this login",
        "environmentVariables": {
            "API_DEBUG_LOGIN_URL": "Login URL or path (default: /api/login)",
            "API_DEBUG_LOGIN_METHOD": "Login method (default: POST)",
            "API_DEBUG_LOGIN_BODY": "Login body template, JSON or string",
            "API_DEBUG_LOGIN_DESCRIPTION": "Login description shown in the api_debug tool",
        },
        "features": [
            "Body is always sent as application/json",
            "The first of token, access_token, accessToken, authToken, jwt found in the response is used",
            "A found token is saved as 'Authorization: Bearer <token>' in the shared headers",
        ],
        "examples": [
            {"description": "Login with the configured endpoint", "request": {}},
            {"description": "Login against another host", "request": {"baseUrl": "https://api.example.com"}},
        ],
    },
    "api_config": {
        "name": "api_config",
        "description": "Manage the API catalog",
        "usage": "Select the operation with the action parameter",
        "actions": {
            "get": "Get the whole catalog",
            "set": "Merge a partial catalog (baseUrl, headers, list)",
            "list": "List all APIs with their index",
            "search": "Search APIs by url or description",
            "addApi": "Add an API, or update the one with the same url",
            "deleteApi": "Delete the API at index",
            "updateBaseUrl": "Update the base URL",
            "updateHeaders": "Merge shared headers",
            "deleteHeader": "Delete one shared header",
        },
        "examples": [
            {"description": "Get configuration", "request": {"action": "get"}},
            {
                "description": "Update base URL",
                "request": {"action": "updateBaseUrl", "baseUrl": "https://api.example.com"},
            },
            {"description": "Search APIs", "request": {"action": "search", "keyword": "user"}},
            {
                "description": "Add API",
                "request": {
                    "action": "addApi",
                    "api": {"url": "/api/users", "method": "GET", "description": "Get user list"},
                },
            },
        ],
    },
    "api_execute": {
        "name": "api_execute",
        "description": "Execute a stored API by index",
        "usage": "index selects the API, overrides change this run only",
        "parameters": {
            "index": "API index (required, non-negative integer)",
            "overrides": "Per-run overrides (optional object)",
        },
        "overrides": {
            "url": "Override URL",
            "method": "Override HTTP method",
            "headers": "Add or replace request headers",
            "query": "Override query parameters",
            "body": "Override request body",
            "contentType": "Override content type",
        },
        "examples": [
            {"description": "Execute API 0", "request": {"index": 0}},
            {
                "description": "Execute API 2 with another body",
                "request": {"index": 2, "overrides": {"method": "PUT", "body": {"name": "New Name"}}},
            },
        ],
    },
}

QUICK_START = {
    "1. Configure": "Use api_config to set baseUrl and shared headers",
    "2. Add APIs": "Use api_config action addApi, or run api_debug to save a working request",
    "3. Log in": "Use api_login when the API needs a token",
    "4. Execute": "Use api_execute with an index, or api_debug for one-off requests",
    "5. Help": "Use api_help with tool for detailed documentation",
}


def get_help(tool: Optional[str] = None) -> Dict[str, Any]:
    if tool:
        if tool not in HELP_CONTENT:
            raise ValidationError(f"Unknown tool: {tool}. Available: {', '.join(HELP_CONTENT)}")
        return {"success": True, "tool": HELP_CONTENT[tool], "timestamp": utc_timestamp()}
    return {
        "success": True,
        "message": "API debugging tools help",
        "tools": HELP_CONTENT,
        "quickStart": QUICK_START,
        "timestamp": utc_timestamp(),
    }
