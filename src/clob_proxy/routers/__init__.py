"""API routers for the CLOB proxy."""

from .health import router as health_router
from .proxy import router as proxy_router

__all__ = ["health_router", "proxy_router"]
