"""Header handling between the client, the proxy and the upstream service."""

from collections.abc import Mapping

import httpx

ANALYTICS_COOKIE = "SC_ANALYTICS_GLOBAL_COOKIE"

# RFC 7230 section 6.1 plus the legacy proxy headers
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


class HeaderBuilder:
    """Build upstream request headers and outgoing response headers."""

    def build_upstream_headers(self, headers: Mapping[str, str]) -> dict[str, str]:
        """Pass through end-to-end client headers.

        ``host`` is dropped so the upstream sees its own host name, and
        ``content-length`` is recomputed by the HTTP client.
        """
        upstream: dict[str, str] = {}
        connection_tokens = _connection_tokens(headers.get("connection", ""))
        for key, value in headers.items():
            key_lower = key.lower()
            if key_lower in HOP_BY_HOP_HEADERS or key_lower in connection_tokens:
                continue
            if key_lower in ("host", "content-length"):
                continue
            upstream[key] = str(value)
        return upstream

    def build_response_headers(
        self,
        upstream: httpx.Headers,
        set_cookie: list[str],
    ) -> httpx.Headers:
        """Copy upstream response headers minus hop-by-hop headers.

        ``set_cookie`` replaces the upstream cookies (already scrubbed).
        """
        connection_tokens = _connection_tokens(upstream.get("connection", ""))
        items = [
            (key, value)
            for key, value in upstream.multi_items()
            if key not in HOP_BY_HOP_HEADERS
            and key not in connection_tokens
            and key != "set-cookie"
        ]
        items.extend(("set-cookie", cookie) for cookie in set_cookie)
        return httpx.Headers(items)


def remove_empty_analytics_cookie(cookies: list[str]) -> list[str]:
    """Drop the analytics cookie when the upstream sent it with an empty value.

    The backend intermittently answers with ``SC_ANALYTICS_GLOBAL_COOKIE=``,
    which would wipe the visitor's existing cookie in the browser.
    Non-empty values are kept.
    """
    for index, cookie in enumerate(cookies):
        name, value = parse_set_cookie(cookie)
        if name == ANALYTICS_COOKIE:
            if value == "":
                return cookies[:index] + cookies[index + 1:]
            break
    return list(cookies)


def parse_set_cookie(header: str) -> tuple[str, str]:
    """Return ``(name, value)`` of a single Set-Cookie header value."""
    pair = header.split(";", 1)[0]
    name, sep, value = pair.partition("=")
    if not sep:
        return "", name.strip()
    return name.strip(), value.strip()


def is_compressed_encoding(content_encoding: str | None) -> bool:
    """True when the content-encoding mentions gzip or deflate."""
    if not content_encoding:
        return False
    encoding = content_encoding.lower()
    return "gzip" in encoding or "deflate" in encoding


def _connection_tokens(value: str) -> set[str]:
    return {token.strip().lower() for token in value.split(",") if token.strip()}
