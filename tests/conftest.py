"""
Test configuration and fixtures for the API debug MCP tests.

Every test gets its own catalog directory through ``CONFIG_DIR`` and a clean
set of ``API_DEBUG_*`` variables, so nothing leaks between tests or from the
developer's shell.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx
import pytest

from apidebug.services.catalog_store import CatalogStore
from apidebug.services.executor import Executor
from apidebug.services.persistence import CatalogFile

ENV_VARS = (
    "API_DEBUG_ALLOWED_METHODS",
    "API_DEBUG_LOGIN_URL",
    "API_DEBUG_LOGIN_METHOD",
    "API_DEBUG_LOGIN_BODY",
    "API_DEBUG_LOGIN_DESCRIPTION",
    "API_DEBUG_VERIFY_TLS",
    "API_DEBUG_REQUEST_TIMEOUT",
    "TOOL_PREFIX",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point the catalog at a temp dir and clear tool configuration."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config_dir = tmp_path / "setting"
    monkeypatch.setenv("CONFIG_DIR", str(config_dir))
    # Keep a stray .env in the working directory out of the settings
    monkeypatch.chdir(tmp_path)
    return config_dir


@pytest.fixture
def catalog_path(isolated_env) -> Path:
    return isolated_env / "api.json"


@pytest.fixture
def store() -> CatalogStore:
    return CatalogStore(CatalogFile())


@pytest.fixture
def write_catalog(catalog_path) -> Callable[[Dict[str, Any]], None]:
    """Write a raw catalog document to disk."""
    def _write(document: Dict[str, Any]) -> None:
        catalog_path.parent.mkdir(parents=True, exist_ok=True)
        catalog_path.write_text(json.dumps(document), encoding="utf-8")
    return _write


@pytest.fixture
def read_catalog(catalog_path) -> Callable[[], Dict[str, Any]]:
    def _read() -> Dict[str, Any]:
        return json.loads(catalog_path.read_text(encoding="utf-8"))
    return _read


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def make_executor(store) -> Callable[[httpx.AsyncBaseTransport], Executor]:
    def _make(transport: httpx.AsyncBaseTransport) -> Executor:
        return Executor(store, transport=transport)
    return _make


def pytest_configure(config):
    """Configure custom test markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that run the full tool pipeline"
    )
