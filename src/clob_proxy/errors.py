"""Error types raised while handling proxied requests."""


class ProxyError(Exception):
    """Base class for per-request failures turned into JSON error responses."""

    status_code = 500
    error = "Internal error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.error)
        self.detail = detail


class AuthorizationError(ProxyError):
    """Write request without a matching shared-secret header."""

    status_code = 401
    error = "Unauthorized — invalid X-Proxy-Key"


class UpstreamTransportError(ProxyError):
    """The upstream could not be reached or did not answer in time."""

    status_code = 502
    error = "Proxy error"


class PayloadTooLargeError(ProxyError):
    """Inbound body exceeds the configured limit."""

    status_code = 413
    error = "Payload too large"


class ClientDisconnectedError(ProxyError):
    """The caller went away before the upstream answered."""

    status_code = 499
    error = "Client closed request"


class BootstrapError(Exception):
    """The listener could not be started."""
