"""Custom exception hierarchy for the layout render proxy."""


class ProxyError(Exception):
    """Base exception for all proxy errors."""


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class PayloadTooLarge(ProxyError):
    """Upstream response body exceeds the configured size limit."""

    def __init__(self, limit: int, size: int) -> None:
        super().__init__(
            f"Response data from proxy target exceeded the max_response_size_bytes "
            f"configuration setting ({size} > {limit} bytes)."
        )
        self.limit = limit
        self.size = size


class UpstreamDecodeError(ProxyError):
    """Raised when an upstream body cannot be interpreted as layout data.

    Attributes:
        status_code: HTTP status code from upstream (optional)
        status_message: HTTP reason phrase from upstream (optional)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        status_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_message = status_message


class RenderContractViolation(ProxyError):
    """Renderer completed without an error and without usable output."""


class RenderTimeoutError(ProxyError):
    """Renderer did not complete within the configured render timeout."""


class HookError(ProxyError):
    """A user-supplied hook raised.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, hook: str, error: BaseException) -> None:
        super().__init__(f"{hook} hook failed: {error}")
        self.hook = hook


class UpstreamError(ProxyError):
    """Raised when the upstream content service cannot be reached.

    Attributes:
        message: Error message
        status_code: HTTP status code to report to the client
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamTimeoutError(UpstreamError):
    """Raised when an upstream request times out."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=504)


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to connect to the upstream content service."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=502)
