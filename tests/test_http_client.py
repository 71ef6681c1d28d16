"""
Tests for HttpClient.

Covers the trust policy, timeouts and the no-retry, no-raise contract.
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch
import httpx

from apidebug.utils.http import decode_response_body, describe_http_error, is_success_status
from apidebug.utils.http_client import INSECURE, STRICT, HttpClient, TrustPolicy, client


class TestTrustPolicy:

    def test_default_skips_verification(self):
        assert TrustPolicy() == INSECURE
        assert INSECURE.name == "insecure-skip-verify"
        assert STRICT.name == "verify"

    @pytest.mark.parametrize("policy", [INSECURE, STRICT])
    def test_policy_is_passed_to_httpx(self, policy):
        with patch("apidebug.utils.http_client.httpx.AsyncClient") as mock_cls:
            HttpClient(trust_policy=policy)
        assert mock_cls.call_args.kwargs["verify"] is policy.verify_tls

    def test_timeout_only_set_when_configured(self):
        with patch("apidebug.utils.http_client.httpx.AsyncClient") as mock_cls:
            HttpClient()
            HttpClient(timeout=5.0)
        first, second = mock_cls.call_args_list
        assert "timeout" not in first.kwargs
        assert second.kwargs["timeout"] == httpx.Timeout(5.0)


class TestHttpClient:

    @pytest.fixture
    def http_client(self):
        return HttpClient()

    @pytest.mark.asyncio
    async def test_send_encodes_content(self, http_client):
        with patch.object(http_client, '_client', new_callable=AsyncMock) as mock_client:
            mock_response = Mock()
            mock_response.status_code = 201
            mock_client.request.return_value = mock_response

            response = await http_client.send("POST", "https://h/api", headers={"A": "1"}, content="hé")

            assert response.status_code == 201
            mock_client.request.assert_called_once_with(
                "POST", "https://h/api", headers={"A": "1"}, content="hé".encode("utf-8")
            )

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        async with client(transport=transport) as http:
            response = await http.send("GET", "https://h/down")
        assert response.status_code == 503
        assert not is_success_status(response.status_code)
        assert describe_http_error(response) == "HTTP 503: Service Unavailable"

    @pytest.mark.asyncio
    async def test_network_error_is_not_retried(self, http_client):
        with patch.object(http_client, '_client', new_callable=AsyncMock) as mock_client:
            mock_client.request.side_effect = httpx.ConnectError("Connection refused")

            with pytest.raises(httpx.ConnectError):
                await http_client.send("GET", "https://h/api")

            assert mock_client.request.call_count == 1


def test_decode_response_body():
    assert decode_response_body(httpx.Response(200, json={"a": 1})) == {"a": 1}
    assert decode_response_body(httpx.Response(200, text="plain")) == "plain"
    broken = httpx.Response(200, content=b"{oops", headers={"content-type": "application/json"})
    assert decode_response_body(broken) == "{oops"
