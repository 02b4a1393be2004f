"""Test doubles and builders shared across the suite."""

from typing import Any

import httpx

from core.config import DEFAULT_MAX_RESPONSE_SIZE_BYTES, ProxyHooks, ResolvedConfig
from core.request_types import ParsedRequest

LAYOUT_ROUTE = "/sitecore/api/layout/render/jss"


class RecordingLogger:
    """ProxyLogger that keeps everything it is given."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, Any, tuple[Any, ...]]] = []
        self.requests: list[tuple[str, str, str, int]] = []
        self.errors: list[tuple[str, int, str]] = []

    def log(self, level: str, message: Any, *args: Any) -> None:
        self.messages.append((level, message, args))

    def log_request(self, strategy: str, method: str, url: str, status: int) -> None:
        self.requests.append((strategy, method, url, status))

    def log_error(self, route: str, status: int, message: str) -> None:
        self.errors.append((route, status, message))

    def levels(self, level: str) -> list[Any]:
        return [message for lvl, message, _ in self.messages if lvl == level]


def make_config(**overrides: Any) -> ResolvedConfig:
    """Resolved config pointing at a fake layout service."""
    hooks = overrides.pop("hooks", ProxyHooks())
    values: dict[str, Any] = {
        "api_host": "http://layout.test",
        "layout_service_route": LAYOUT_ROUTE,
        "api_key": "{GUID}",
        "max_response_size_bytes": DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    }
    values.update(overrides)
    return ResolvedConfig(hooks=hooks, **values)


def make_request(url: str = "/", method: str = "GET", **kwargs: Any) -> ParsedRequest:
    path = url.split("?", 1)[0]
    return ParsedRequest(method=method, url=url, path=path, **kwargs)


def upstream_response(
    status_code: int = 200,
    body: bytes = b"",
    headers: list[tuple[str, str]] | None = None,
) -> httpx.Response:
    """Streamed-style response whose body has not been read yet."""
    items = list(headers or [])
    items.append(("content-length", str(len(body))))
    return httpx.Response(status_code, headers=items, stream=httpx.ByteStream(body))


