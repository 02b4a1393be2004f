"""Response strategies: layout data passthrough and server-side rendering."""

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from core.config import ResolvedConfig
from core.exceptions import HookError, RenderContractViolation
from core.hooks import call_hook
from core.protocols import AppRenderer, ProxyLogger
from core.render import render_app
from core.request_types import (
    ParsedRequest,
    ProxyResponseSnapshot,
    ResponseInfo,
    ServerResponseSnapshot,
)


@dataclass(frozen=True)
class ResponseInfoArgs:
    """Everything a strategy needs to build its ResponseInfo."""

    layout_service_data: Any
    proxy_response: ProxyResponseSnapshot
    server_response: ServerResponseSnapshot
    request: ParsedRequest


class ResponseInfoHandler(Protocol):
    async def get_response_info(self, args: ResponseInfoArgs) -> ResponseInfo: ...


class LayoutDataHandler:
    """Respond with (transformed) layout service JSON."""

    def __init__(self, config: ResolvedConfig, logger: ProxyLogger) -> None:
        self._config = config
        self._logger = logger

    async def get_response_info(self, args: ResponseInfoArgs) -> ResponseInfo:
        self._logger.log(
            "debug",
            f"layout service request was transformed, returning transformed data for URL "
            f"'{args.request.url}'",
        )
        data = args.layout_service_data
        content = "" if data is None else json.dumps(data, separators=(",", ":"), ensure_ascii=False)
        return ResponseInfo(
            content=content,
            status_code=args.proxy_response.status_code or 200,
        )


class RenderHandler:
    """Respond with the server-rendered app."""

    def __init__(
        self,
        config: ResolvedConfig,
        logger: ProxyLogger,
        renderer: AppRenderer | None,
    ) -> None:
        self._config = config
        self._logger = logger
        self._renderer = renderer

    async def get_response_info(self, args: ResponseInfoArgs) -> ResponseInfo:
        if self._renderer is None:
            raise RenderContractViolation("No renderer configured; cannot render app routes.")
        outcome = await render_app(
            args.layout_service_data,
            args.proxy_response,
            args.request,
            args.server_response,
            self._renderer,
            self._config,
            self._logger,
        )
        html = outcome.rendering_result.html
        transform = self._config.hooks.transform_ssr_content
        if transform is not None:
            html = await call_hook(
                "transform_ssr_content",
                transform,
                outcome.rendering_result,
                args.request,
                args.server_response,
            )
        return ResponseInfo(
            content=html,
            status_code=outcome.status_code,
            headers=outcome.headers,
        )


class HookResponseHandler:
    """User-supplied ``handler(args)`` standing in for a built-in strategy."""

    def __init__(self, name: str, handler: Callable[..., Any]) -> None:
        self._name = name
        self._handler = handler

    async def get_response_info(self, args: ResponseInfoArgs) -> ResponseInfo:
        info = await call_hook(self._name, self._handler, args)
        if not isinstance(info, ResponseInfo):
            raise HookError(self._name, TypeError(f"expected ResponseInfo, got {type(info).__name__}"))
        return info
