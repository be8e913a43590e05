"""Relay authorized requests to the upstream and stream the response back."""

import asyncio
import time
from typing import AsyncIterator

import httpx
import structlog
from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from ..config import Settings
from ..errors import ClientDisconnectedError, UpstreamTransportError
from ..headers import HOP_BY_HOP_HEADERS, HeaderFilter, decode_raw, encode_raw
from ..models import InboundRequest
from .gatekeeper import PROXY_KEY_HEADER, SAFE_METHODS

logger = structlog.get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"


async def wait_for_disconnect(receive: Receive) -> None:
    """Return once the ASGI server reports that the caller has gone away."""
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return


def describe_failure(exc: Exception) -> str:
    # Some httpx errors carry an empty message
    message = str(exc)
    name = type(exc).__name__
    return f"{name}: {message}" if message else name


class RelayResponse(StreamingResponse):
    """Streaming response that closes its upstream response however it ends.

    Starlette skips both the body iterator and background tasks when the
    caller is already gone at ``http.response.start``.
    """

    def __init__(self, content, upstream: httpx.Response, status_code: int = 200):
        super().__init__(content, status_code=status_code)
        self.upstream = upstream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.upstream.aclose()


class Forwarder:
    """Forwards requests to the fixed upstream over a shared httpx client."""

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient,
        secret_header: str = PROXY_KEY_HEADER,
    ):
        self.settings = settings
        self.client = client
        self.logger = logger.bind(component="Forwarder")

        # Content-Length is recomputed by httpx from the body actually sent
        self._request_filter = HeaderFilter(
            HOP_BY_HOP_HEADERS | {"content-length", secret_header}
        )
        if settings.decode_responses:
            self._response_filter = HeaderFilter(
                HOP_BY_HOP_HEADERS | {"content-encoding", "content-length"}
            )
        else:
            self._response_filter = HeaderFilter(HOP_BY_HOP_HEADERS)

    def target_url(self, inbound: InboundRequest) -> str:
        return f"{self.settings.clob_target}{inbound.path}"

    def build_request(self, inbound: InboundRequest) -> httpx.Request:
        """Build the outbound request.

        The request is constructed directly instead of through
        ``client.build_request`` so the client's default headers (User-Agent,
        Accept, Connection ...) are never mixed into what the caller sent.
        """
        headers = httpx.Headers(encode_raw(self._request_filter.apply(inbound.headers)))
        headers["host"] = self.settings.upstream_authority

        content = None
        if inbound.method not in SAFE_METHODS and not inbound.body.is_empty():
            content = inbound.body.encode()
            if "content-type" not in headers:
                headers["content-type"] = DEFAULT_CONTENT_TYPE

        return httpx.Request(
            inbound.method, self.target_url(inbound), headers=headers, content=content
        )

    async def forward(
        self, inbound: InboundRequest, receive: Receive | None = None
    ) -> StreamingResponse:
        """Send ``inbound`` upstream and return a response relaying the result.

        When ``receive`` is given, the caller's connection is watched while
        waiting for the upstream and the outbound call is abandoned if the
        caller disconnects.
        """
        outbound = self.build_request(inbound)
        started = time.monotonic()
        self.logger.info("Forwarding request", method=outbound.method, url=str(outbound.url))

        try:
            upstream = await self._send(outbound, receive)
        except httpx.HTTPError as e:
            self.logger.error(
                "Proxy fetch failed",
                method=outbound.method,
                url=str(outbound.url),
                error=describe_failure(e),
            )
            raise UpstreamTransportError(describe_failure(e)) from e

        self.logger.info(
            "Upstream responded",
            method=outbound.method,
            url=str(outbound.url),
            status=upstream.status_code,
            redirects=len(upstream.history),
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return self._relay(upstream)

    async def _send(
        self, outbound: httpx.Request, receive: Receive | None
    ) -> httpx.Response:
        timeout = self.settings.upstream_timeout
        send_task = asyncio.ensure_future(self.client.send(outbound, stream=True))
        waiters = {send_task}
        disconnect_task = None
        if receive is not None:
            disconnect_task = asyncio.ensure_future(wait_for_disconnect(receive))
            waiters.add(disconnect_task)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            send_task.cancel()
            raise
        finally:
            if disconnect_task is not None:
                disconnect_task.cancel()

        if send_task in done:
            return send_task.result()

        await self._abandon(send_task)
        if disconnect_task is not None and disconnect_task in done:
            self.logger.info(
                "Caller disconnected, upstream call abandoned",
                method=outbound.method,
                url=str(outbound.url),
            )
            raise ClientDisconnectedError()
        raise httpx.TimeoutException(
            f"Upstream did not respond within {timeout}s", request=outbound
        )

    async def _abandon(self, send_task: "asyncio.Future[httpx.Response]") -> None:
        send_task.cancel()
        try:
            response = await send_task
        except (asyncio.CancelledError, httpx.HTTPError):
            return
        # The send finished before the cancellation landed
        await response.aclose()

    def _relay(self, upstream: httpx.Response) -> StreamingResponse:
        response = RelayResponse(
            self._stream_body(upstream), upstream, status_code=upstream.status_code
        )
        # Appended as raw pairs so repeated names such as Set-Cookie survive
        response.raw_headers.extend(
            encode_raw(self._response_filter.apply(decode_raw(upstream.headers.raw)))
        )
        return response

    async def _stream_body(self, upstream: httpx.Response) -> AsyncIterator[bytes]:
        if self.settings.decode_responses:
            chunks = upstream.aiter_bytes()
        else:
            chunks = upstream.aiter_raw()
        try:
            async for chunk in chunks:
                yield chunk
        except httpx.HTTPError as e:
            self.logger.error(
                "Upstream body relay failed",
                url=str(upstream.request.url),
                error=describe_failure(e),
            )
            raise
        finally:
            await upstream.aclose()
