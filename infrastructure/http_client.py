"""Async HTTP transport for the siteverify endpoint."""

from typing import Any, Optional

import httpx


class HttpClient:
    """Wrapper around httpx.AsyncClient shared by every challenge of the app.

    Built once in the lifespan from ClientSettings. Each call is a single
    attempt; a failed call settles the challenge as unverified.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        http2: bool = False,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"User-Agent": user_agent} if user_agent else None
        self._client = httpx.AsyncClient(
            timeout=timeout,
            http2=http2,
            headers=headers,
            transport=transport,
        )

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.post(url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
