"""FastAPI route handlers."""

from collections.abc import Callable
from urllib.parse import parse_qsl

from fastapi import Request, Response

from core.config import ResolvedConfig
from core.hooks import call_sync_hook
from core.protocols import ProxyLogger, RouteUrlParser
from core.request_types import ParsedRequest
from core.rewriter import rewrite_request_path
from services.response_service import ResponseService
from services.upstream import UpstreamClient


def parse_request(request: Request) -> ParsedRequest:
    """Snapshot the inbound Starlette request, keeping the path as sent."""
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    query_string = request.scope.get("query_string", b"").decode("latin-1")
    url = f"{path}?{query_string}" if query_string else path

    query: dict[str, str | list[str]] = {}
    for key, value in parse_qsl(query_string, keep_blank_values=True):
        existing = query.get(key)
        if existing is None:
            query[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            query[key] = [existing, value]

    return ParsedRequest(
        method=request.method,
        url=url,
        path=path,
        query=query,
        headers=dict(request.headers),
        client_host=request.client.host if request.client else None,
    )


async def handle_proxy(
    request: Request,
    config: ResolvedConfig,
    logger: ProxyLogger,
    route_url_parser: RouteUrlParser | None = None,
    request_path_rewriter: Callable[..., str] | None = None,
) -> Response:
    """Rewrite, proxy and post-process a single request.

    ``request_path_rewriter`` replaces the built-in rewrite and is called with
    the same arguments as ``rewrite_request_path``.
    """
    parsed = parse_request(request)
    response_service: ResponseService = request.app.state.response_service
    upstream: UpstreamClient = request.app.state.upstream_client

    try:
        if request_path_rewriter is None:
            path = rewrite_request_path(parsed.url, parsed, config, route_url_parser, logger)
        else:
            path = call_sync_hook(
                "request_path_rewriter",
                request_path_rewriter,
                parsed.url,
                parsed,
                config,
                route_url_parser,
                logger,
            )
        logger.log("debug", f"proxying {parsed.method} {parsed.url} -> {path}")
        body = await request.body()
        upstream_response = await upstream.open(parsed, path, body)
    except Exception as e:
        return await response_service.respond_with_error(e, parsed)

    return await response_service.handle(parsed, upstream_response)
