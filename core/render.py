"""Invoke the external app renderer and derive the HTTP response from it."""

import asyncio
import inspect
from dataclasses import dataclass, replace
from typing import Any

from core.config import ResolvedConfig
from core.exceptions import RenderContractViolation, RenderTimeoutError
from core.hooks import call_hook
from core.protocols import AppRenderer, ProxyLogger
from core.request_types import (
    ParsedRequest,
    ProxyResponseSnapshot,
    RenderResult,
    ServerResponseSnapshot,
)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


@dataclass(frozen=True)
class RenderOutcome:
    """Validated renderer output plus the derived status and headers."""

    rendering_result: RenderResult
    status_code: int
    headers: dict[str, str]


async def render_app(
    layout_service_data: Any,
    proxy_response: ProxyResponseSnapshot,
    request: ParsedRequest,
    server_response: ServerResponseSnapshot,
    renderer: AppRenderer,
    config: ResolvedConfig,
    logger: ProxyLogger,
) -> RenderOutcome:
    """Render the app for ``request`` using ``layout_service_data``.

    The renderer is called as ``renderer(complete, route, data, view_bag)``
    and must call ``complete(error, result)`` exactly once, from any thread.

    Raises:
        RenderContractViolation: completion carried neither an error nor html.
        RenderTimeoutError: ``render_timeout`` elapsed before completion.
    """
    logger.log("debug", "rendering app")
    view_bag = await create_view_bag(
        layout_service_data, proxy_response, request, server_response, config
    )

    loop = asyncio.get_running_loop()
    completion: asyncio.Future[RenderResult] = loop.create_future()

    def settle(error: BaseException | None, result: Any | None) -> None:
        if completion.cancelled():
            # The renderer raised after completing; that error is reported instead
            return
        if completion.done():
            logger.log("warn", "Render function completed more than once; ignoring extra result.")
            return
        try:
            rendering_result = validate_rendering_result(error, result)
        except Exception as e:
            completion.set_exception(e)
        else:
            completion.set_result(rendering_result)

    def complete(error: BaseException | None, result: Any | None = None) -> None:
        loop.call_soon_threadsafe(settle, error, result)

    try:
        outcome = renderer(complete, request.url, layout_service_data, view_bag)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception:
        if not completion.done():
            completion.cancel()
        raise

    try:
        rendering_result = await asyncio.wait_for(completion, timeout=config.render_timeout)
    except asyncio.TimeoutError as e:
        raise RenderTimeoutError(
            f"Render function did not complete within {config.render_timeout} seconds."
        ) from e

    headers = {"content-type": HTML_CONTENT_TYPE}
    if rendering_result.redirect:
        if not rendering_result.status:
            rendering_result = replace(rendering_result, status=302)
        headers["location"] = rendering_result.redirect

    status_code = rendering_result.status or proxy_response.status_code or 200
    return RenderOutcome(rendering_result, status_code, headers)


def validate_rendering_result(error: BaseException | None, result: Any | None) -> RenderResult:
    """Turn a completion call into a RenderResult or the error to raise."""
    if error is None and result is None:
        raise RenderContractViolation("Render function did not return a result or an error!")
    if error is not None:
        if isinstance(error, Exception):
            raise error
        raise RenderContractViolation(f"Render function failed: {error!r}")
    rendering_result = RenderResult.from_value(result)
    if not rendering_result.html:
        raise RenderContractViolation(
            "Render function result was returned but html property was falsy."
        )
    return rendering_result


async def create_view_bag(
    layout_service_data: Any,
    proxy_response: ProxyResponseSnapshot,
    request: ParsedRequest,
    server_response: ServerResponseSnapshot,
    config: ResolvedConfig,
) -> dict[str, Any]:
    """Default view bag merged with the ``create_view_bag`` hook (hook wins)."""
    default_view_bag: dict[str, Any] = {
        "status_code": proxy_response.status_code,
        "dictionary": {},
    }
    hook = config.hooks.create_view_bag
    if hook is None:
        return default_view_bag
    custom_view_bag = await call_hook(
        "create_view_bag",
        hook,
        request,
        server_response,
        proxy_response,
        layout_service_data,
    )
    return {**default_view_bag, **(custom_view_bag or {})}
