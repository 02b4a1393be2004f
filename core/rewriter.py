"""Rewrite application routes into layout service requests."""

from collections.abc import Mapping
from urllib.parse import quote, unquote, urlencode

from core.config import ResolvedConfig
from core.hooks import call_sync_hook
from core.protocols import ProxyLogger, RouteUrlParser
from core.request_types import ParsedRequest, RouteRewriteResult


def rewrite_request_path(
    req_path: str,
    request: ParsedRequest,
    config: ResolvedConfig,
    parse_route_url: RouteUrlParser | None = None,
    logger: ProxyLogger | None = None,
) -> str:
    """Return the backend path for ``req_path``.

    Excluded URLs and URLs already targeting the layout service are returned
    verbatim (still percent-encoded). Everything else becomes::

        <layout route>?item=<route>&sc_apikey=<key>[&sc_lang=<lang>][&<query>]
    """
    # Decode once: exclusions are written unencoded, and the route is
    # re-encoded for the item parameter below.
    decoded_req_path = unquote(req_path)

    if url_should_not_be_rewritten(decoded_req_path, config):
        _debug(
            logger,
            f"URL {decoded_req_path} matched the rewrite exclude rule, so it will be proxied "
            "directly and the response will be served verbatim as received.",
        )
        return req_path

    if config.layout_service_route in decoded_req_path:
        return req_path

    _debug(
        logger,
        f"URL {decoded_req_path} did not match the rewrite exclude rule, so it will be "
        "re-written as a layout service request and the response rendered.",
    )

    final_req_path = decoded_req_path
    query_parts: list[str] = []
    qs_index = final_req_path.find("?")
    if qs_index > -1:
        query = build_query_string(request.query)
        if query:
            query_parts.append(query)
        final_req_path = final_req_path[:qs_index]

    if config.qs_params:
        query_parts.append(config.qs_params)

    lang = None
    if parse_route_url:
        _debug(logger, f"Parsing route URL using {decoded_req_path} URL...")
        route_params = RouteRewriteResult.from_value(
            call_sync_hook("route_url_parser", parse_route_url, decoded_req_path)
        )
        if route_params:
            final_req_path = route_params.sitecore_route or "/"
            if not final_req_path.startswith("/"):
                final_req_path = f"/{final_req_path}"
            lang = route_params.lang
            if route_params.qs_params:
                query_parts.append(route_params.qs_params)
            _debug(logger, "route_url_parser() result", route_params)

    path = f"{config.layout_service_route}?item={quote(final_req_path)}&sc_apikey={config.api_key}"
    if lang:
        path = f"{path}&sc_lang={lang}"
    if query_parts:
        path = f"{path}&{'&'.join(query_parts)}"
    return path


def url_should_not_be_rewritten(url: str, config: ResolvedConfig) -> bool:
    """True when the exclusion rule says ``url`` must be proxied verbatim."""
    if config.exclusion is None:
        return False
    return config.exclusion.matches(url)


def build_query_string(params: Mapping[str, str | list[str]]) -> str:
    """Serialize parsed query parameters; repeated keys are kept in order."""
    return urlencode(params, doseq=True)


def _debug(logger: ProxyLogger | None, message: str, *args: object) -> None:
    if logger is not None:
        logger.log("debug", message, *args)
