"""Health check endpoint."""

from fastapi import APIRouter, Request

from ..models import HealthStatus

router = APIRouter(tags=["health"])


@router.api_route("/health", methods=["GET", "HEAD"], response_model=HealthStatus)
async def health_check(request: Request) -> HealthStatus:
    """Report liveness and the configured upstream. Never gated."""
    settings = request.app.state.settings
    return HealthStatus(region=settings.region, target=settings.clob_target)
