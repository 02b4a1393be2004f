"""Decode buffered upstream bytes into layout service data."""

import json
import zlib
from json import JSONDecodeError
from typing import Any

from starlette.concurrency import run_in_threadpool

from core.config import ResolvedConfig
from core.exceptions import PayloadTooLarge, UpstreamDecodeError
from core.headers import is_compressed_encoding
from core.hooks import call_hook
from core.protocols import ProxyLogger
from core.request_types import ParsedRequest, ProxyResponseSnapshot

# zlib window bits accepting both gzip and zlib (deflate) headers
_AUTO_DETECT_WBITS = zlib.MAX_WBITS | 32


async def extract_json_from_response_data(
    response_data: bytes,
    logger: ProxyLogger,
    content_encoding: str | None = None,
    max_size: int | None = None,
) -> Any:
    """Return the parsed JSON body, or None when it is not valid JSON.

    Raises:
        UpstreamDecodeError: gzip/deflate body that fails to decompress.
        PayloadTooLarge: the decompressed body exceeds ``max_size``.
    """
    if is_compressed_encoding(content_encoding):
        logger.log("debug", "Layout service response is compressed; decompressing.")
        try:
            response_data = await run_in_threadpool(decompress, response_data, max_size)
        except zlib.error as e:
            raise UpstreamDecodeError(f"Could not decompress layout service response: {e}") from e
    return try_parse_json(response_data.decode("utf-8", errors="replace"))


def decompress(data: bytes, max_size: int | None = None) -> bytes:
    """Inflate gzip or zlib data, producing at most ``max_size`` bytes."""
    decompressor = zlib.decompressobj(_AUTO_DETECT_WBITS)
    if max_size is None:
        output = decompressor.decompress(data)
    else:
        output = decompressor.decompress(data, max_size + 1)
        if len(output) > max_size:
            raise PayloadTooLarge(max_size, len(output))
    output += decompressor.flush()
    if max_size is not None and len(output) > max_size:
        raise PayloadTooLarge(max_size, len(output))
    if not decompressor.eof:
        raise zlib.error("incomplete or truncated stream")
    return output


def try_parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (JSONDecodeError, ValueError):
        return None


async def get_layout_service_data(
    response_data: bytes,
    proxy_response: ProxyResponseSnapshot,
    request: ParsedRequest,
    config: ResolvedConfig,
    logger: ProxyLogger,
) -> Any:
    """Extract layout data and apply ``transform_layout_service_data``.

    The transformed value is the single source of truth for both the
    layout-data response and the render path.
    """
    layout_service_data = await extract_json_from_response_data(
        response_data,
        logger,
        proxy_response.headers.get("content-encoding"),
        config.max_response_size_bytes,
    )
    if layout_service_data is None:
        raise UpstreamDecodeError(
            "Could not extract Layout Service data from proxy response. Proxy response status: "
            f"(code: {proxy_response.status_code}): {proxy_response.status_message}",
            status_code=proxy_response.status_code,
            status_message=proxy_response.status_message,
        )

    transform = config.hooks.transform_layout_service_data
    if transform is not None:
        layout_service_data = await call_hook(
            "transform_layout_service_data",
            transform,
            layout_service_data,
            request,
            proxy_response,
        )
    return layout_service_data
