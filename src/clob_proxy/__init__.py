"""CLOB Proxy - transparent HTTP forwarding proxy."""

__version__ = "0.1.0"

from .app import app, create_app
from .config import Settings
from .errors import (
    AuthorizationError,
    BootstrapError,
    PayloadTooLargeError,
    ProxyError,
    UpstreamTransportError,
)
from .services import Forwarder, Gatekeeper

__all__ = [
    "Settings",
    "Forwarder",
    "Gatekeeper",
    "ProxyError",
    "AuthorizationError",
    "UpstreamTransportError",
    "PayloadTooLargeError",
    "BootstrapError",
    "app",
    "create_app",
]
