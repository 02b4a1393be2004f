"""Outgoing (client-facing) response under construction."""

from collections.abc import AsyncIterable
from types import MappingProxyType

import httpx
from fastapi import Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from core.request_types import ServerResponseSnapshot


class OutgoingResponse:
    """Mutable status and headers of the response sent back to the client.

    Hooks such as ``set_headers`` receive this object and may change it
    until the body is written.
    """

    def __init__(self, status_code: int = 200, headers: httpx.Headers | None = None) -> None:
        self.status_code = status_code
        self.headers = headers if headers is not None else httpx.Headers()
        self.headers_sent = False

    def set_header(self, name: str, value: str | int | list[str]) -> None:
        """Replace every value of ``name``; a list sets a multi-valued header."""
        key = name.lower()
        values = value if isinstance(value, list) else [value]
        items = [(k, v) for k, v in self.headers.multi_items() if k != key]
        items.extend((key, str(item)) for item in values)
        self.headers = httpx.Headers(items)

    def get_header(self, name: str) -> str | None:
        return self.headers.get(name)

    def remove_header(self, name: str) -> None:
        if name in self.headers:
            del self.headers[name]

    def snapshot(self) -> ServerResponseSnapshot:
        """Read-only copy for user hooks."""
        return ServerResponseSnapshot(
            status_code=self.status_code,
            headers=MappingProxyType(dict(self.headers.items())),
            headers_sent=self.headers_sent,
        )

    def raw_headers(self) -> list[tuple[bytes, bytes]]:
        return [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in self.headers.multi_items()
        ]

    def to_response(self, content: str | bytes) -> Response:
        """Write status and body; the response can only be written once."""
        self._mark_sent()
        body = content.encode("utf-8") if isinstance(content, str) else content
        response = Response(content=body, status_code=self.status_code)
        response.raw_headers = self.raw_headers()
        return response

    def to_streaming_response(
        self,
        stream: AsyncIterable[bytes],
        background: BackgroundTask | None = None,
    ) -> StreamingResponse:
        """Relay ``stream`` with the current status and headers."""
        self._mark_sent()
        response = StreamingResponse(stream, status_code=self.status_code, background=background)
        response.raw_headers = self.raw_headers()
        return response

    def _mark_sent(self) -> None:
        if self.headers_sent:
            raise RuntimeError("Response has already been written")
        self.headers_sent = True
