"""Shared request and response data types."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import httpx


@dataclass(frozen=True)
class ParsedRequest:
    """Inbound client request as seen by the pipeline.

    ``url`` is the path and query exactly as the client sent them
    (still percent-encoded); ``query`` holds the parsed query string with
    repeated keys collected into lists.
    """

    method: str
    url: str
    path: str
    query: Mapping[str, str | list[str]] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    client_host: str | None = None


@dataclass(frozen=True)
class RouteRewriteResult:
    """Result of a user route parser."""

    sitecore_route: str | None = None
    lang: str | None = None
    qs_params: str | None = None

    @classmethod
    def from_value(cls, value: Any) -> "RouteRewriteResult | None":
        """Accept a RouteRewriteResult, a mapping, or None."""
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(
                sitecore_route=value.get("sitecore_route"),
                lang=value.get("lang"),
                qs_params=value.get("qs_params"),
            )
        raise TypeError(f"Route parser returned unsupported value: {value!r}")


@dataclass(frozen=True)
class RenderResult:
    """Output a renderer passes to its completion callback."""

    html: str
    status: int | None = None
    redirect: str | None = None

    @classmethod
    def from_value(cls, value: Any) -> "RenderResult":
        """Accept a RenderResult or a mapping with the same keys."""
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(
                html=value.get("html") or "",
                status=value.get("status"),
                redirect=value.get("redirect"),
            )
        raise TypeError(f"Renderer returned unsupported result: {value!r}")


@dataclass
class ResponseInfo:
    """Uniform output of every response strategy."""

    content: str
    status_code: int
    headers: dict[str, str] | None = None


@dataclass(frozen=True)
class ProxyResponseSnapshot:
    """Read-only copy of the upstream response, taken once per request."""

    status_code: int | None = None
    status_message: str | None = None
    http_version: str | None = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    set_cookie: tuple[str, ...] = ()

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        set_cookie: list[str] | None = None,
    ) -> "ProxyResponseSnapshot":
        """Copy status and headers; ``set_cookie`` overrides the upstream cookies."""
        headers = {
            key: value
            for key, value in response.headers.items()
            if key != "set-cookie"
        }
        cookies = set_cookie if set_cookie is not None else response.headers.get_list("set-cookie")
        return cls(
            status_code=response.status_code,
            status_message=response.reason_phrase,
            http_version=response.http_version,
            headers=MappingProxyType(headers),
            set_cookie=tuple(cookies),
        )


@dataclass(frozen=True)
class ServerResponseSnapshot:
    """Read-only copy of the outgoing response at a point in time."""

    status_code: int
    headers: Mapping[str, str]
    headers_sent: bool = False
