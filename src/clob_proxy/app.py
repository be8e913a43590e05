"""FastAPI application factory for the CLOB proxy."""

import logging
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .config import Settings
from .config import settings as default_settings
from .errors import ProxyError
from .models import ErrorResponse
from .routers import health_router, proxy_router
from .services import Forwarder, Gatekeeper

logger = structlog.get_logger(__name__)


def configure_logging(settings: Settings) -> None:
    """Set up structured logging."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
            if settings.debug
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper())
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


async def handle_proxy_error(request: Request, exc: ProxyError) -> JSONResponse:
    """Render a per-request failure as a JSON error body."""
    body = ErrorResponse(error=exc.error, detail=exc.detail)
    return JSONResponse(
        status_code=exc.status_code, content=body.model_dump(exclude_none=True)
    )


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``transport`` replaces the network transport of the upstream client, which
    lets tests put a double in place of the real upstream.
    """
    settings = settings or default_settings
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(settings.upstream_timeout),
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
            follow_redirects=True,
        ) as client:
            app.state.forwarder = Forwarder(settings, client)
            logger.info(
                "CLOB proxy ready",
                target=settings.clob_target,
                auth_enabled=settings.auth_enabled,
            )
            yield
        logger.info("CLOB proxy stopped")

    # Docs routes are disabled: every path other than /health belongs upstream
    app = FastAPI(
        title="CLOB Proxy",
        description="Transparent forwarding proxy for the CLOB API",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.gatekeeper = Gatekeeper(settings.api_key)

    app.add_exception_handler(ProxyError, handle_proxy_error)

    # Health first so GET /health is never proxied
    app.include_router(health_router)
    app.include_router(proxy_router)

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clob_proxy.app:app",
        host=default_settings.listen_host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )
