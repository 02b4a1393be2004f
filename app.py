"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_proxy
from core.config import Config, resolve_config
from core.headers import HeaderBuilder
from core.protocols import AppRenderer, ProxyLogger, RouteUrlParser
from core.router import ResponseClassifier
from services.response_service import ResponseService
from services.strategies import HookResponseHandler
from services.upstream import UpstreamClient

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def create_app(
    config: Config,
    logger: ProxyLogger,
    renderer: AppRenderer | None = None,
    route_url_parser: RouteUrlParser | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Configuration is resolved here, so invalid settings fail before the
    first request. ``renderer`` and ``route_url_parser`` default to the
    callables named in ``config.app``, which also carries the optional
    pipeline stage overrides (path rewriter, strategy selector, handlers).
    """
    resolved = resolve_config(config)
    renderer = renderer or config.app.renderer
    route_url_parser = route_url_parser or config.app.route_url_parser
    stages = config.app
    logger.log(
        "debug",
        f"Final proxy config: api_host={resolved.api_host} "
        f"layout_service_route={resolved.layout_service_route} exclusion={resolved.exclusion}",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(max_connections=100, max_keepalive_connections=20)
        client = httpx.AsyncClient(
            base_url=resolved.api_host,
            timeout=resolved.upstream_timeout,
            limits=limits,
            transport=transport,
        )
        header_builder = HeaderBuilder()
        upstream = UpstreamClient(client, header_builder)
        app.state.upstream_client = upstream
        app.state.response_service = ResponseService(
            config=resolved,
            logger=logger,
            classifier=ResponseClassifier(resolved, stages.response_strategy_selector),
            header_builder=header_builder,
            upstream=upstream,
            renderer=renderer,
            layout_handler=_hook_handler("layout_data_handler", stages.layout_data_handler),
            render_handler=_hook_handler("render_handler", stages.render_handler),
            pipeable_handler=stages.pipeable_handler,
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="Layout Render Proxy", version="0.1.0", lifespan=lifespan)

    @app.api_route("/{path:path}", methods=PROXY_METHODS)
    async def proxy(path: str, request: Request):
        return await handle_proxy(
            request, resolved, logger, route_url_parser, stages.request_path_rewriter
        )

    return app


def _hook_handler(name: str, handler) -> HookResponseHandler | None:
    return HookResponseHandler(name, handler) if handler is not None else None
