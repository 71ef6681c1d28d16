"""Tests for the login flow and bearer token propagation."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from apidebug.services.auth_session import AuthSession, AuthState, auth_state, extract_token
from apidebug.utils.http_client import HttpClient
from tests._helpers import json_response, text_response


@pytest.fixture
def base_catalog(write_catalog):
    write_catalog({"baseUrl": "https://h", "headers": {"Accept": "application/json"}, "list": []})


class TestHelpers:

    @pytest.mark.parametrize(
        "data, expected",
        [
            ({"token": "t1", "jwt": "j"}, "t1"),
            ({"access_token": "a"}, "a"),
            ({"accessToken": "abc"}, "abc"),
            ({"authToken": "x"}, "x"),
            ({"jwt": "j"}, "j"),
            ({"token": "", "jwt": "j"}, "j"),
            ({"user": "u"}, None),
            ("token", None),
        ],
    )
    def test_extract_token_order(self, data, expected):
        assert extract_token(data) == expected


class TestLogin:

    @pytest.mark.asyncio
    async def test_token_becomes_bearer_header(self, base_catalog, store, make_transport, read_catalog):
        transport = make_transport(lambda request: json_response(200, {"accessToken": "abc"}))
        session = AuthSession(store, transport=transport)
        result = await session.login()

        assert result["success"] is True
        assert result["token"] == "abc"
        assert result["autoUpdatedHeaders"] is True
        assert result["authState"] == AuthState.AUTHENTICATED.value

        sent = transport.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == "https://h/api/login"
        assert sent.headers["content-type"] == "application/json"
        assert json.loads(sent.content) == {"username": "", "password": ""}

        headers = read_catalog()["headers"]
        assert headers["Authorization"] == "Bearer abc"
        assert headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_no_token_leaves_headers(self, base_catalog, store, make_transport, read_catalog):
        transport = make_transport(lambda request: json_response(200, {"ok": True}))
        result = await AuthSession(store, transport=transport).login()

        assert result["success"] is True
        assert result["token"] is None
        assert result["autoUpdatedHeaders"] is False
        assert read_catalog()["headers"] == {"Accept": "application/json"}

    @pytest.mark.asyncio
    async def test_http_failure_is_structured(self, base_catalog, store, make_transport, read_catalog):
        transport = make_transport(lambda request: text_response(401, "bad credentials"))
        result = await AuthSession(store, transport=transport).login()

        assert result["success"] is False
        assert result["error"] == "HTTP 401: Unauthorized"
        assert result["response"]["data"] == "bad credentials"
        assert "Authorization" not in read_catalog()["headers"]

    @pytest.mark.asyncio
    async def test_transport_error_is_structured(self, base_catalog, store):
        with patch.object(HttpClient, "send", new_callable=AsyncMock) as mock_send:
            mock_send.side_effect = httpx.ConnectTimeout("timed out")
            result = await AuthSession(store).login()

        assert result["success"] is False
        assert result["error"] == "timed out"

    @pytest.mark.asyncio
    async def test_string_body_is_sent_as_json(self, base_catalog, store, monkeypatch, make_transport):
        monkeypatch.setenv("API_DEBUG_LOGIN_BODY", "username=a&password=b")
        monkeypatch.setenv("API_DEBUG_LOGIN_METHOD", "put")
        transport = make_transport(lambda request: json_response(200, {"token": "t"}))
        await AuthSession(store, transport=transport).login()

        sent = transport.requests[0]
        assert sent.method == "PUT"
        assert sent.content == b"username=a&password=b"
        assert sent.headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_json_template_is_sent_as_written(self, base_catalog, store, monkeypatch, make_transport):
        template = '{"username":"admin",  "password": "pw"}'
        monkeypatch.setenv("API_DEBUG_LOGIN_BODY", template)
        transport = make_transport(lambda request: json_response(200, {"token": "t"}))
        await AuthSession(store, transport=transport).login()

        sent = transport.requests[0]
        assert sent.content == template.encode("utf-8")
        assert sent.headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_broken_json_template_is_not_sent(self, base_catalog, store, monkeypatch, make_transport):
        monkeypatch.setenv("API_DEBUG_LOGIN_BODY", '{"username": ')
        transport = make_transport(lambda request: json_response(200, {"token": "t"}))
        result = await AuthSession(store, transport=transport).login()

        assert result["success"] is False
        assert "API_DEBUG_LOGIN_BODY" in result["suggestion"]
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_base_url_override_and_absolute_login_url(self, base_catalog, store, monkeypatch, make_transport):
        transport = make_transport(lambda request: json_response(200, {}))
        session = AuthSession(store, transport=transport)

        await session.login("https://other")
        monkeypatch.setenv("API_DEBUG_LOGIN_URL", "https://auth.example.com/token")
        await session.login("https://other")

        assert [str(r.url) for r in transport.requests] == [
            "https://other/api/login",
            "https://auth.example.com/token",
        ]

    def test_auth_state(self, base_catalog, store):
        catalog = store.get()
        assert auth_state(catalog) is AuthState.UNAUTHENTICATED
        catalog.headers["Authorization"] = "Bearer xyz"
        assert auth_state(catalog) is AuthState.AUTHENTICATED
        catalog.headers["Authorization"] = "Basic abc"
        assert auth_state(catalog) is AuthState.UNAUTHENTICATED
