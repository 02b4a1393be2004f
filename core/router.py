"""Response classification - pipe, transform layout data, or render."""

from collections.abc import Callable
from enum import Enum
from typing import Any

from core.config import ResolvedConfig
from core.hooks import call_sync_hook
from core.request_types import ParsedRequest
from core.rewriter import url_should_not_be_rewritten


class ResponseStrategy(str, Enum):
    """How an upstream response is turned into the client response."""

    PIPEABLE = "pipeable"
    TRANSFORMABLE_LAYOUT_DATA = "layout-data"
    RENDER_TARGET = "render"


class ResponseClassifier:
    """Decide which strategy handles a request/response pair.

    A ``selector(request, config)`` may pick the strategy itself; returning
    None falls back to the built-in rules.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        selector: Callable[[ParsedRequest, ResolvedConfig], Any] | None = None,
    ):
        self.config = config
        self.selector = selector

    def classify(self, url: str, request: ParsedRequest | None = None) -> ResponseStrategy:
        """Return the strategy for the URL the client requested."""
        if self.selector is not None and request is not None:
            selected = call_sync_hook("response_strategy_selector", self.selector, request, self.config)
            if selected is not None:
                return ResponseStrategy(selected)
        if is_pipeable_response(url, self.config):
            return ResponseStrategy.PIPEABLE
        if is_transformable_layout_service_request(url, self.config):
            return ResponseStrategy.TRANSFORMABLE_LAYOUT_DATA
        return ResponseStrategy.RENDER_TARGET


def is_pipeable_response(url: str, config: ResolvedConfig) -> bool:
    """Excluded URLs are relayed as-is unless their layout data can be transformed."""
    # Transformable requests never reach the exclusion predicate
    return not is_transformable_layout_service_request(url, config) and url_should_not_be_rewritten(
        url, config
    )


def is_transformable_layout_service_request(url: str, config: ResolvedConfig) -> bool:
    """Layout service URL (case-insensitive) with a layout data transform configured."""
    return (
        config.layout_service_route.lower() in url.lower()
        and config.hooks.transform_layout_service_data is not None
    )
