"""Post-processing shared by every response strategy."""

import json

from core.config import ResolvedConfig
from core.headers import is_compressed_encoding
from core.hooks import call_sync_hook
from core.protocols import ProxyLogger
from core.request_types import ParsedRequest, ProxyResponseSnapshot
from core.response import OutgoingResponse


def finalize_server_response(
    server_response: OutgoingResponse,
    proxy_response: ProxyResponseSnapshot | None,
    request: ParsedRequest,
    config: ResolvedConfig,
    logger: ProxyLogger,
) -> None:
    """Last chance to change the outgoing response; runs for all responses.

    Removes the ``server`` header and calls the ``set_headers`` hook, which
    may change any part of ``server_response``. ``proxy_response`` is None
    when the upstream could not be reached.
    """
    # Don't advertise the backend web server
    server_response.remove_header("server")

    if config.hooks.set_headers is not None:
        call_sync_hook(
            "set_headers",
            config.hooks.set_headers,
            request,
            server_response,
            proxy_response,
        )

    logger.log(
        "debug",
        "FINAL response headers for client",
        json.dumps(dict(server_response.headers.items()), indent=2),
    )
    logger.log("debug", "FINAL status code for client", server_response.status_code)


def prepare_modified_content_response(
    content: str | bytes,
    server_response: OutgoingResponse,
    headers: dict[str, str] | None = None,
) -> None:
    """Header changes for responses whose body was replaced by the proxy."""
    if headers:
        for name, value in headers.items():
            server_response.set_header(name, value)

    # Byte count, not character count
    content_length = len(content.encode("utf-8")) if isinstance(content, str) else len(content)
    server_response.set_header("content-length", content_length)

    # The body was decompressed for processing and is sent back uncompressed
    if is_compressed_encoding(server_response.get_header("content-encoding")):
        server_response.remove_header("content-encoding")
