"""Uniform failure responses."""

from collections.abc import Mapping

from core.config import ResolvedConfig
from core.exceptions import UpstreamError
from core.hooks import call_hook
from core.protocols import ProxyLogger
from core.request_types import ProxyResponseSnapshot, ResponseInfo

DEFAULT_ERROR_STATUS = 500
DEFAULT_ERROR_CONTENT = "Internal Server Error"
ERROR_CONTENT_TYPE = "text/plain; charset=utf-8"


async def get_error_response_info(
    error: BaseException,
    proxy_response: ProxyResponseSnapshot | None,
    config: ResolvedConfig,
    logger: ProxyLogger,
) -> ResponseInfo:
    """Build the client-facing response for a failed request.

    Defaults to the upstream status and reason when the upstream itself
    failed, the transport status for unreachable upstreams, else 500.
    An ``on_error`` hook may override ``status_code`` and ``content`` and
    add ``headers`` (e.g. an HTML content type for a custom error page).
    """
    logger.log("error", error)

    status_code = DEFAULT_ERROR_STATUS
    content = DEFAULT_ERROR_CONTENT
    if proxy_response is not None and (proxy_response.status_code or 0) >= 400:
        status_code = proxy_response.status_code
        content = proxy_response.status_message or content
    elif isinstance(error, UpstreamError) and error.status_code:
        status_code = error.status_code

    error_response = ResponseInfo(
        content=content,
        status_code=status_code,
        headers={"content-type": ERROR_CONTENT_TYPE},
    )
    if config.hooks.on_error is None:
        return error_response

    try:
        overrides = await call_hook(
            "on_error",
            config.hooks.on_error,
            error,
            proxy_response,
            logger,
        )
    except Exception as e:
        logger.log("error", e)
        return error_response

    if isinstance(overrides, Mapping):
        if overrides.get("status_code") is not None:
            error_response.status_code = int(overrides["status_code"])
        if overrides.get("content") is not None:
            error_response.content = str(overrides["content"])
        if isinstance(overrides.get("headers"), Mapping):
            error_response.headers.update(
                {str(name).lower(): str(value) for name, value in overrides["headers"].items()}
            )
    return error_response
