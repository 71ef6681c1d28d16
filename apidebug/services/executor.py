"""
Executor - sends built requests, classifies outcomes, records history.

Only 2xx is a successful outcome. A 4xx/5xx response is still a completed
send and comes back as ``success: False`` with the status and body; network
failures come back as ``success: False`` with an ``error`` message. Neither
raises.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError as SchemaError

from ..config import Settings, get_settings
from ..schemas.catalog import HISTORY_FIELDS, ApiEntry, Catalog, ExecutionOverrides
from ..utils.errors import MethodNotAllowed, ValidationError, sanitize_error_message
from ..utils.http import decode_response_body, describe_http_error, is_success_status, response_headers, status_text
from ..utils.http_client import TrustPolicy, client
from .auth_session import AuthSession
from .catalog_store import CatalogStore, parse_entry, upsert_entry, utc_timestamp
from .request_builder import MalformedBody, ResolvedRequest, build_request

logger = logging.getLogger("apidebug.executor")

ADHOC_FIELDS = ("url", "method", "description", "query", "body", "contentType")


@dataclass
class ExecutionOutcome:
    request: ResolvedRequest
    response: Optional[httpx.Response] = None
    data: Any = None
    error: Optional[str] = None
    duration_ms: int = 0
    timestamp: str = ""

    @property
    def success(self) -> bool:
        return self.response is not None and is_success_status(self.response.status_code)

    def response_dict(self) -> Optional[Dict[str, Any]]:
        if self.response is None:
            return None
        return {
            "status": self.response.status_code,
            "statusText": status_text(self.response),
            "headers": response_headers(self.response),
            "data": self.data,
        }

    def history(self) -> Dict[str, Any]:
        """Fields written back onto the catalog entry."""
        if self.response is None:
            values = (None, None, None, None, self.timestamp, False, self.error)
        else:
            values = (
                self.data,
                self.response.status_code,
                status_text(self.response),
                response_headers(self.response),
                self.timestamp,
                self.success,
                None if self.success else self.error,
            )
        return dict(zip(HISTORY_FIELDS, values))

    def to_result(self, entry: ApiEntry, index: Optional[int] = None) -> Dict[str, Any]:
        label = entry.description or entry.url
        if self.success:
            message = f"Successfully executed API: {label}"
        elif self.response is not None:
            message = f"API {label} responded with {self.error}"
        else:
            message = f"Failed to execute API: {label}"

        result: Dict[str, Any] = {"success": self.success, "message": message}
        if index is not None:
            result["index"] = index
        result["api"] = {"url": entry.url, "method": entry.method, "description": entry.description}
        request = self.request.to_dict()
        request["query"] = self.request.query
        result["request"] = request
        response = self.response_dict()
        if response is not None:
            result["response"] = response
        result["error"] = None if self.success else self.error
        result["timing"] = {"duration": self.duration_ms, "timestamp": self.timestamp}
        return result


class Executor:
    def __init__(
        self,
        store: Optional[CatalogStore] = None,
        auth: Optional[AuthSession] = None,
        settings_provider: Callable[[], Settings] = get_settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.store = store or CatalogStore()
        self._settings = settings_provider
        self._transport = transport
        self.auth = auth or AuthSession(self.store, settings_provider=settings_provider, transport=transport)

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------
    def _check_method(self, method: str, url: str, catalog: Catalog) -> bool:
        """Return True when the call must be rerouted through login.

        Raises MethodNotAllowed for disallowed methods on non-login targets.
        """
        allowed = self._settings().allowed_methods
        if method.upper() in allowed:
            return False
        if self.auth.is_login_target(url, catalog):
            logger.info("Method %s not allowed, %s is the login endpoint: rerouting to login", method, url)
            return True
        raise MethodNotAllowed(method, allowed)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    async def _send(self, request: ResolvedRequest) -> ExecutionOutcome:
        settings = self._settings()
        outcome = ExecutionOutcome(request=request)
        started = time.perf_counter()
        try:
            async with client(
                trust_policy=TrustPolicy(verify_tls=settings.verify_tls),
                timeout=settings.request_timeout,
                transport=self._transport,
            ) as http:
                response = await http.send(request.method, request.url, headers=request.headers, content=request.body)
            outcome.response = response
            outcome.data = decode_response_body(response)
            if not is_success_status(response.status_code):
                outcome.error = describe_http_error(response)
                logger.warning("%s %s -> %s", request.method, request.url, outcome.error)
            else:
                logger.info("%s %s -> %d", request.method, request.url, response.status_code)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            outcome.error = str(exc) or exc.__class__.__name__
            logger.error(
                "%s %s failed: %s", request.method, request.url, sanitize_error_message(outcome.error)
            )
        outcome.duration_ms = int((time.perf_counter() - started) * 1000)
        outcome.timestamp = utc_timestamp()
        return outcome

    async def _login_reroute(self, index: Optional[int] = None) -> Dict[str, Any]:
        result = await self.auth.login()
        result["routedToLogin"] = True
        if index is not None:
            result["index"] = index
        return result

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def execute_index(self, index: Any, overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Run the stored entry at ``index``; overrides apply to this run only."""
        if overrides is not None and not isinstance(overrides, Mapping):
            raise ValidationError("Invalid overrides parameter. Must be an object")
        try:
            run_overrides = ExecutionOverrides.model_validate(dict(overrides or {}))
        except SchemaError as exc:
            raise ValidationError(f"Invalid overrides: {exc.errors()[0].get('msg', exc)}") from exc

        catalog, position, entry = self.store.entry(index)
        method = run_overrides.method or entry.method
        url = run_overrides.url if run_overrides.url is not None else entry.url

        if self._check_method(method, url, catalog):
            return await self._login_reroute(position)

        built = build_request(entry, run_overrides, catalog)
        if isinstance(built, MalformedBody):
            logger.warning("API %d has a malformed JSON body: %s", position, built.reason)
            return built.to_dict(index=position)

        outcome = await self._send(built)
        self.store.record_execution(catalog, position, outcome.history())
        return outcome.to_result(entry, index=position)

    async def execute_adhoc(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Run a request straight from caller parameters.

        Nothing is stored unless the call succeeds; a successful call is
        upserted into the catalog (by url) so it can be replayed by index.
        """
        if not isinstance(params, Mapping) or not params.get("url"):
            raise ValidationError("Missing url parameter")

        definition = {key: params[key] for key in ADHOC_FIELDS if params.get(key) is not None}
        if params.get("headers") is not None:
            if not isinstance(params["headers"], Mapping):
                raise ValidationError("Invalid headers parameter. Must be an object")
            definition["header"] = dict(params["headers"])
        entry = parse_entry(definition)

        catalog = self.store.get()
        if self._check_method(entry.method, entry.url, catalog):
            return await self._login_reroute()

        built = build_request(entry, None, catalog)
        if isinstance(built, MalformedBody):
            logger.warning("Ad hoc request to %s has a malformed JSON body: %s", entry.url, built.reason)
            return built.to_dict()

        outcome = await self._send(built)
        if not outcome.success:
            return outcome.to_result(entry)

        latest = self.store.get()
        stored = ApiEntry.model_validate({**entry.to_document(), **outcome.history()})
        position, created = upsert_entry(latest, stored)
        self.store.save(latest)
        logger.info("%s ad hoc API %s at index %d", "Saved" if created else "Updated", entry.url, position)

        result = outcome.to_result(entry, index=position)
        result["saved"] = True
        result["message"] += f". Saved to catalog; replay with api_execute index {position}"
        return result
