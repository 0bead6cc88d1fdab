"""
HTTP transport for the AI/ML API.

Thin wrapper over httpx: one POST with a JSON body, one GET. It knows the
base origin and the timeout, nothing about chats. Status codes are handed
back untouched; only connection-level failures become TransportError.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass

import httpx

from aimlchat.errors import TransportError

logger = logging.getLogger(__name__)

BASE_API_URL = "https://api.aimlapi.com"


@dataclass
class HttpResponse:
    """Status and raw body of one HTTP exchange."""
    status_code: int
    text: str = ""
    latency_ms: float = 0.0

    def json(self):
        """Decode the body. Raises ValueError on invalid JSON."""
        return json.loads(self.text)


class HttpTransport:
    """
    Sends requests to a fixed base origin.
    Tests point base_url at a mock endpoint.
    """

    def __init__(self, base_url: str = BASE_API_URL, timeout: float = 60):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg: dict) -> "HttpTransport":
        api_cfg = cfg.get("api", {})
        return cls(
            base_url=api_cfg.get("base_url", BASE_API_URL),
            timeout=api_cfg.get("timeout", 60),
        )

    async def post(self, path: str, json_body: dict, headers: dict | None = None) -> HttpResponse:
        """POST a JSON body to base_url + path."""
        return await self._request("POST", path, json_body=json_body, headers=headers)

    async def get(self, path: str, headers: dict | None = None) -> HttpResponse:
        """GET base_url + path."""
        return await self._request("GET", path, headers=headers)

    async def _request(
        self,
        method: str,
        path: str,
        json_body: dict | None = None,
        headers: dict | None = None,
    ) -> HttpResponse:
        url = f"{self.base_url}{path}"
        t0 = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                if method == "POST":
                    resp = await client.post(url, json=json_body, headers=headers or {})
                else:
                    resp = await client.get(url, headers=headers or {})
        except httpx.TimeoutException as e:
            latency = (time.monotonic() - t0) * 1000
            logger.warning("%s %s timed out after %.0fms", method, url, latency)
            raise TransportError(f"Timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise TransportError(str(e)) from e

        latency = (time.monotonic() - t0) * 1000
        logger.debug("%s %s -> %d in %.0fms", method, url, resp.status_code, latency)
        return HttpResponse(status_code=resp.status_code, text=resp.text, latency_ms=latency)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} base_url={self.base_url!r} timeout={self.timeout}>"
