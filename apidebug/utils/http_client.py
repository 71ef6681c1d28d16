from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

logger = logging.getLogger("apidebug.http")


@dataclass(frozen=True)
class TrustPolicy:
    """TLS trust settings for outbound calls.

    The debug tool targets internal and self-signed environments, so the
    default is to skip certificate verification.
    """
    verify_tls: bool = False

    @property
    def name(self) -> str:
        return "verify" if self.verify_tls else "insecure-skip-verify"


INSECURE = TrustPolicy(verify_tls=False)
STRICT = TrustPolicy(verify_tls=True)


class HttpClient:
    """
    Thin wrapper over httpx.AsyncClient for single-shot debug requests.

    No retries and no status raising: callers inspect the status code and
    decide what a failure is.
    """

    def __init__(
        self,
        trust_policy: TrustPolicy = INSECURE,
        timeout: Optional[float] = None,
        follow_redirects: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.trust_policy = trust_policy
        self.follow_redirects = follow_redirects

        kwargs: Dict[str, object] = {
            "verify": trust_policy.verify_tls,
            "follow_redirects": follow_redirects,
        }
        # Without an explicit timeout httpx's default applies
        if timeout is not None:
            kwargs["timeout"] = httpx.Timeout(timeout)
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**kwargs)

    async def close(self) -> None:
        await self._client.aclose()

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[str] = None,
    ) -> httpx.Response:
        logger.debug("%s %s (tls=%s)", method, url, self.trust_policy.name)
        return await self._client.request(
            method,
            url,
            headers=headers or {},
            content=content.encode("utf-8") if content is not None else None,
        )


@asynccontextmanager
async def client(
    trust_policy: TrustPolicy = INSECURE,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
):
    hc = HttpClient(trust_policy=trust_policy, timeout=timeout, transport=transport)
    try:
        yield hc
    finally:
        await hc.close()


__all__ = ["HttpClient", "TrustPolicy", "INSECURE", "STRICT", "client"]
