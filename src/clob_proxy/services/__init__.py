"""Services module for the CLOB proxy."""

from .body import decode_body, read_body
from .forwarder import Forwarder
from .gatekeeper import PROXY_KEY_HEADER, Decision, Gatekeeper

__all__ = [
    "Forwarder",
    "Gatekeeper",
    "Decision",
    "PROXY_KEY_HEADER",
    "decode_body",
    "read_body",
]
