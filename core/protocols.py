"""Shared protocol definitions."""

from typing import Any, Protocol


class ProxyLogger(Protocol):
    """Protocol for proxy diagnostics (ConsoleLogger, Dashboard)."""

    def log(self, level: str, message: Any, *args: Any) -> None: ...
    def log_request(self, strategy: str, method: str, url: str, status: int) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...


class RenderComplete(Protocol):
    """Completion callback handed to the renderer."""

    def __call__(self, error: BaseException | None, result: Any | None) -> None: ...


class AppRenderer(Protocol):
    """External renderer: must call ``complete`` exactly once."""

    def __call__(
        self,
        complete: RenderComplete,
        route_path: str,
        layout_data: Any,
        view_bag: dict[str, Any],
    ) -> Any: ...


class RouteUrlParser(Protocol):
    """Translate an application URL into a backend route."""

    def __call__(self, url: str) -> Any: ...
