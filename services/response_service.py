"""Orchestrate the handling of upstream responses."""

from collections.abc import AsyncIterable, Callable
from typing import Any

import httpx
from fastapi import Response
from starlette.background import BackgroundTask

from core.collector import ResponseBodyCollector
from core.config import ResolvedConfig
from core.error_response import get_error_response_info
from core.exceptions import HookError
from core.extractor import get_layout_service_data
from core.finalize import finalize_server_response, prepare_modified_content_response
from core.headers import HeaderBuilder, remove_empty_analytics_cookie
from core.hooks import call_hook
from core.protocols import AppRenderer, ProxyLogger
from core.request_types import ParsedRequest, ProxyResponseSnapshot, ResponseInfo
from core.response import OutgoingResponse
from core.router import ResponseClassifier, ResponseStrategy
from services.strategies import LayoutDataHandler, RenderHandler, ResponseInfoArgs, ResponseInfoHandler
from services.upstream import UpstreamClient

# Upstream headers that must not describe a proxy-generated error body
ERROR_DROPPED_HEADERS = ("server", "location", "content-type")


class ResponseService:
    """Turn an upstream response into the client response.

    Pipeable responses are streamed through untouched; everything else is
    buffered, decoded and handed to the layout data or render strategy.
    Every path finalizes and writes the response exactly once.

    ``pipeable_handler(body, request, server_response)`` may replace the
    relayed byte stream and adjust ``server_response`` before it is sent.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        logger: ProxyLogger,
        classifier: ResponseClassifier,
        header_builder: HeaderBuilder,
        upstream: UpstreamClient,
        renderer: AppRenderer | None = None,
        layout_handler: ResponseInfoHandler | None = None,
        render_handler: ResponseInfoHandler | None = None,
        pipeable_handler: Callable[..., Any] | None = None,
    ) -> None:
        self._config = config
        self._logger = logger
        self._classifier = classifier
        self._headers = header_builder
        self._upstream = upstream
        self._layout = layout_handler or LayoutDataHandler(config, logger)
        self._render = render_handler or RenderHandler(config, logger, renderer)
        self._pipeable_handler = pipeable_handler

    async def handle(self, request: ParsedRequest, upstream_response: httpx.Response) -> Response:
        """Handle the response to ``request`` once its upstream headers arrived."""
        self._log_exchange(request, upstream_response)

        set_cookie = remove_empty_analytics_cookie(upstream_response.headers.get_list("set-cookie"))
        server_response = OutgoingResponse(
            upstream_response.status_code,
            self._headers.build_response_headers(upstream_response.headers, set_cookie),
        )
        proxy_response = ProxyResponseSnapshot.from_response(upstream_response, set_cookie)

        try:
            strategy = self._classifier.classify(request.url, request)
        except Exception as e:
            await self._upstream.close(upstream_response)
            return await self.respond_with_error(e, request, proxy_response, server_response)
        self._logger.log("debug", f"response strategy for '{request.url}': {strategy.value}")

        if strategy is ResponseStrategy.PIPEABLE:
            return await self._pipe(request, upstream_response, server_response, proxy_response)
        return await self._respond_with_modified_content(
            strategy, request, upstream_response, server_response, proxy_response
        )

    async def respond_with_error(
        self,
        error: BaseException,
        request: ParsedRequest,
        proxy_response: ProxyResponseSnapshot | None = None,
        server_response: OutgoingResponse | None = None,
    ) -> Response:
        """Write a failure response.

        Finalize runs here too, unless the failure came from finalize itself.
        """
        info = await get_error_response_info(error, proxy_response, self._config, self._logger)
        server_response = server_response or OutgoingResponse()
        for name in ERROR_DROPPED_HEADERS:
            server_response.remove_header(name)
        server_response.status_code = info.status_code
        prepare_modified_content_response(info.content, server_response, info.headers)

        if not _failed_in_finalize(error):
            try:
                finalize_server_response(
                    server_response, proxy_response, request, self._config, self._logger
                )
            except Exception as e:
                # The error response is already prepared; report and send it as is
                self._logger.log("error", e)

        self._logger.log_error(request.url, server_response.status_code, str(error))
        return server_response.to_response(info.content)

    async def _pipe(
        self,
        request: ParsedRequest,
        upstream_response: httpx.Response,
        server_response: OutgoingResponse,
        proxy_response: ProxyResponseSnapshot,
    ) -> Response:
        """Relay the raw (possibly still compressed) upstream body."""
        body: AsyncIterable[bytes] = upstream_response.aiter_raw()
        try:
            if self._pipeable_handler is not None:
                body = await call_hook(
                    "pipeable_handler", self._pipeable_handler, body, request, server_response
                )
            finalize_server_response(
                server_response, proxy_response, request, self._config, self._logger
            )
        except Exception as e:
            await self._upstream.close(upstream_response)
            return await self.respond_with_error(e, request, proxy_response, server_response)

        self._logger.log_request(
            ResponseStrategy.PIPEABLE.value, request.method, request.url, server_response.status_code
        )
        return server_response.to_streaming_response(
            body,
            background=BackgroundTask(self._upstream.close, upstream_response),
        )

    async def _respond_with_modified_content(
        self,
        strategy: ResponseStrategy,
        request: ParsedRequest,
        upstream_response: httpx.Response,
        server_response: OutgoingResponse,
        proxy_response: ProxyResponseSnapshot,
    ) -> Response:
        server_snapshot = server_response.snapshot()
        try:
            collector = ResponseBodyCollector(self._config.max_response_size_bytes)
            try:
                body = await collector.collect(upstream_response.aiter_raw())
            finally:
                await self._upstream.close(upstream_response)

            layout_service_data = await get_layout_service_data(
                body, proxy_response, request, self._config, self._logger
            )
            handler = self._layout if strategy is ResponseStrategy.TRANSFORMABLE_LAYOUT_DATA else self._render
            info = await handler.get_response_info(
                ResponseInfoArgs(layout_service_data, proxy_response, server_snapshot, request)
            )
        except Exception as e:
            return await self.respond_with_error(e, request, proxy_response, server_response)

        return await self._complete(strategy, info, request, server_response, proxy_response)

    async def _complete(
        self,
        strategy: ResponseStrategy,
        info: ResponseInfo,
        request: ParsedRequest,
        server_response: OutgoingResponse,
        proxy_response: ProxyResponseSnapshot,
    ) -> Response:
        try:
            prepare_modified_content_response(info.content, server_response, info.headers)
            server_response.status_code = info.status_code
            finalize_server_response(
                server_response, proxy_response, request, self._config, self._logger
            )
        except Exception as e:
            return await self.respond_with_error(e, request, proxy_response, server_response)

        self._logger.log_request(strategy.value, request.method, request.url, server_response.status_code)
        return server_response.to_response(info.content)

    def _log_exchange(self, request: ParsedRequest, upstream_response: httpx.Response) -> None:
        self._logger.log("debug", "request url", request.url)
        self._logger.log("debug", "request query", dict(request.query))
        self._logger.log("debug", "proxied request response code", upstream_response.status_code)
        self._logger.log("debug", "RAW request headers", dict(request.headers))
        self._logger.log(
            "debug", "RAW headers from the proxied response", dict(upstream_response.headers.items())
        )


def _failed_in_finalize(error: BaseException) -> bool:
    return isinstance(error, HookError) and error.hook == "set_headers"
