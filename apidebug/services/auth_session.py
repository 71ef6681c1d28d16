"""
Auth Session Manager - login request + bearer token propagation.

Two states: unauthenticated (no bearer token in shared headers) and
authenticated. A successful login that yields a token writes
``Authorization: Bearer <token>`` into the catalog's shared headers, which
every later request inherits. There is no logout; clearing or overwriting
the header is the reset.
"""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx

from ..config import Settings, get_settings
from ..schemas.catalog import ApiEntry, Catalog
from ..utils.errors import sanitize_error_message
from ..utils.http import decode_response_body, describe_http_error, is_success_status, response_headers, status_text
from ..utils.http_client import TrustPolicy, client
from . import content_type as mime
from .catalog_store import CatalogStore, utc_timestamp
from .request_builder import MalformedBody, build_request, resolve_url

logger = logging.getLogger("apidebug.auth")

TOKEN_FIELDS = ("token", "access_token", "accessToken", "authToken", "jwt")


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


def auth_state(catalog: Catalog) -> AuthState:
    for name, value in catalog.headers.items():
        if name.lower() == "authorization" and str(value).startswith("Bearer ") and str(value)[7:].strip():
            return AuthState.AUTHENTICATED
    return AuthState.UNAUTHENTICATED


def extract_token(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    for name in TOKEN_FIELDS:
        value = data.get(name)
        if value:
            return str(value)
    return None


class AuthSession:
    def __init__(
        self,
        store: Optional[CatalogStore] = None,
        settings_provider: Callable[[], Settings] = get_settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.store = store or CatalogStore()
        self._settings = settings_provider
        self._transport = transport

    def login_url(self, catalog: Catalog, base_url: Optional[str] = None) -> str:
        settings = self._settings()
        return resolve_url(settings.login_url, base_url or catalog.base_url or "")

    def is_login_target(self, url: str, catalog: Catalog) -> bool:
        """True when ``url`` (relative or absolute, query ignored) is the login endpoint."""
        settings = self._settings()
        path = url.split("?", 1)[0]
        if path == settings.login_url:
            return True
        return resolve_url(path, catalog.base_url) == self.login_url(catalog)

    async def login(self, base_url: Optional[str] = None) -> Dict[str, Any]:
        settings = self._settings()
        catalog = self.store.get()
        entry = ApiEntry(
            url=self.login_url(catalog, base_url),
            method=settings.login_method,
            body=settings.login_body_raw,
        )
        built = build_request(entry, None, catalog, force_content_type=mime.JSON)
        if isinstance(built, MalformedBody):
            logger.warning("Login body template is not valid JSON: %s", built.reason)
            result = built.to_dict()
            result["message"] = f"Login body template is not valid JSON: {built.reason}"
            result["suggestion"] = "Fix API_DEBUG_LOGIN_BODY and retry api_login."
            result["timestamp"] = utc_timestamp()
            return result

        request_info = built.to_dict()
        logger.info("Login %s %s", built.method, built.url)

        started = time.perf_counter()
        try:
            async with client(
                trust_policy=TrustPolicy(verify_tls=settings.verify_tls),
                timeout=settings.request_timeout,
                transport=self._transport,
            ) as http:
                response = await http.send(built.method, built.url, headers=built.headers, content=built.body)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            error = str(exc) or exc.__class__.__name__
            logger.error("Login request failed: %s", sanitize_error_message(error))
            return {
                "success": False,
                "message": f"Login request failed: {error}",
                "request": request_info,
                "error": error,
                "timestamp": utc_timestamp(),
            }
        duration_ms = int((time.perf_counter() - started) * 1000)

        data = decode_response_body(response)
        response_info = {
            "status": response.status_code,
            "statusText": status_text(response),
            "headers": response_headers(response),
            "data": data,
        }

        if not is_success_status(response.status_code):
            error = describe_http_error(response)
            logger.warning("Login failed: %s", error)
            return {
                "success": False,
                "message": f"Login failed: {error}",
                "request": request_info,
                "response": response_info,
                "error": error,
                "timing": {"duration": duration_ms, "timestamp": utc_timestamp()},
            }

        token = extract_token(data)
        if token:
            catalog.headers = {**catalog.headers, "Authorization": f"Bearer {token}"}
            self.store.save(catalog)
            logger.info("Login succeeded, Authorization header updated")
        else:
            logger.info("Login succeeded without a recognized token field")

        return {
            "success": True,
            "message": "Login successful" if token else "Login successful, no token found in response",
            "request": request_info,
            "response": response_info,
            "token": token,
            "autoUpdatedHeaders": bool(token),
            "authState": auth_state(catalog).value,
            "timing": {"duration": duration_ms, "timestamp": utc_timestamp()},
        }
