"""Shared-secret check for state-changing requests."""

import hmac
from enum import Enum
from typing import Mapping

import structlog

from ..errors import AuthorizationError

logger = structlog.get_logger(__name__)

PROXY_KEY_HEADER = "X-Proxy-Key"
# Read traffic is never gated
SAFE_METHODS = frozenset({"GET", "HEAD"})


class Decision(str, Enum):
    """Outcome of a gatekeeper check."""

    AUTHORIZED = "authorized"
    REJECTED = "rejected"


class Gatekeeper:
    """Decide whether an inbound request may be forwarded."""

    def __init__(self, secret: str, header_name: str = PROXY_KEY_HEADER):
        self.secret = secret
        self.header_name = header_name
        self.logger = logger.bind(component="Gatekeeper")

    def check(self, method: str, headers: Mapping[str, str]) -> Decision:
        """Check a request.

        ``headers`` must be a case-insensitive mapping (Starlette or httpx headers).
        """
        if not self.secret or method.upper() in SAFE_METHODS:
            return Decision.AUTHORIZED

        provided = headers.get(self.header_name)
        if provided is not None and hmac.compare_digest(
            provided.encode("utf-8"), self.secret.encode("utf-8")
        ):
            return Decision.AUTHORIZED

        self.logger.warning(
            "Rejected request",
            method=method,
            reason="missing key" if provided is None else "invalid key",
        )
        return Decision.REJECTED

    def enforce(self, method: str, headers: Mapping[str, str]) -> None:
        """Raise AuthorizationError unless the request is authorized."""
        if self.check(method, headers) is Decision.REJECTED:
            raise AuthorizationError()
