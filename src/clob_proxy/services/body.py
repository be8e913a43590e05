"""Inbound body reading and decoding."""

import json

import structlog
from starlette.requests import Request

from ..errors import PayloadTooLargeError
from ..models import JsonBody, RawBody

logger = structlog.get_logger(__name__)


def is_json_content_type(content_type: str | None) -> bool:
    """Check for ``application/json`` or a ``+json`` structured suffix."""
    if not content_type:
        return False
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime == "application/json" or mime.endswith("+json")


async def read_body(request: Request, limit: int) -> bytes:
    """Read the whole request body, refusing anything larger than ``limit`` bytes."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(f"Request body exceeds {limit} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLargeError(f"Request body exceeds {limit} bytes")
    return bytes(body)


def decode_body(
    data: bytes, content_type: str | None, normalize_json: bool = False
) -> RawBody | JsonBody:
    """Wrap body bytes, decoding JSON only when it re-encodes to the same value."""
    if not (normalize_json and data and is_json_content_type(content_type)):
        return RawBody(data=data)

    try:
        decoded = JsonBody(value=json.loads(data))
        # NaN, Infinity and out-of-range numbers do not survive re-encoding
        if json.loads(decoded.encode()) != decoded.value:
            raise ValueError("JSON value changed on re-encoding")
    except ValueError as e:
        logger.debug("Forwarding JSON body unchanged", reason=str(e))
        return RawBody(data=data)
    return decoded
