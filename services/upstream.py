"""HTTP proxying utilities for upstream requests."""

import httpx

from core.exceptions import UpstreamConnectionError, UpstreamTimeoutError
from core.headers import HeaderBuilder
from core.request_types import ParsedRequest

BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "DELETE", "TRACE"})


class UpstreamClient:
    """Open streamed requests against the layout service host."""

    def __init__(self, client: httpx.AsyncClient, header_builder: HeaderBuilder) -> None:
        self._client = client
        self._headers = header_builder

    async def open(
        self,
        request: ParsedRequest,
        path: str,
        body: bytes | None = None,
    ) -> httpx.Response:
        """Send ``request`` to ``path`` and return the unread streamed response.

        The caller owns the response and must close it.
        """
        content = body if body or request.method.upper() not in BODYLESS_METHODS else None
        upstream_request = self._client.build_request(
            request.method,
            path,
            headers=self._headers.build_upstream_headers(request.headers),
            content=content,
        )
        try:
            return await self._client.send(upstream_request, stream=True)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Upstream timeout: {e}") from e
        except httpx.RequestError as e:
            raise UpstreamConnectionError(f"Upstream connection error: {e}") from e

    async def close(self, response: httpx.Response) -> None:
        """Release streaming resources."""
        await response.aclose()
