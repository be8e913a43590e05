"""Catch-all proxy endpoint."""

from fastapi import APIRouter, Request
from starlette.responses import StreamingResponse
from starlette.types import Scope

from ..headers import decode_raw
from ..models import InboundRequest
from ..services import decode_body, read_body

router = APIRouter(tags=["proxy"])

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def raw_path_and_query(scope: Scope) -> str:
    """Path and query exactly as the caller sent them, without re-encoding."""
    raw_path = scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else scope["path"]
    query = scope.get("query_string", b"")
    return f"{path}?{query.decode('latin-1')}" if query else path


@router.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def proxy(request: Request) -> StreamingResponse:
    """Forward any request to the upstream and relay its response."""
    state = request.app.state
    settings = state.settings

    # Checked before the body is read, so rejected writes cost nothing
    state.gatekeeper.enforce(request.method, request.headers)

    data = await read_body(request, settings.body_limit)
    inbound = InboundRequest(
        method=request.method,
        path=raw_path_and_query(request.scope),
        headers=decode_raw(request.headers.raw),
        body=decode_body(
            data, request.headers.get("content-type"), settings.normalize_json_bodies
        ),
    )
    return await state.forwarder.forward(inbound, receive=request.receive)
