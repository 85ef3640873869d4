from __future__ import annotations

from typing import Any, Dict, Optional, Type
from types import TracebackType

import httpx

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "couponpay",
}


class AsyncHttpClient:
    """Async JSON-over-HTTP client shared by the ledger and merchant clients.

    Paths are resolved against ``base_url``; an empty path targets the base
    URL itself (JSON-RPC endpoints). Non-2xx responses raise
    ``httpx.HTTPStatusError`` with the response attached so callers can read
    an error body before giving up.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout, transport=transport, headers=DEFAULT_HEADERS
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        if not path:
            return self._base_url
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        resp = await self._client.request(method, self._url(path), **kwargs)
        resp.raise_for_status()
        return resp

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self._send("GET", path, **kwargs)

    async def post(
        self,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        return await self._send("POST", path, json=json, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHttpClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
