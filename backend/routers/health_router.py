"""Health check router."""

from fastapi import APIRouter, Request

from helpers.time_utils import format_iso8601, utc_now
from models.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Liveness probe. No side effects."""
    return HealthResponse(
        status="OK",
        timestamp=format_iso8601(utc_now()),
        service=request.app.state.settings.SERVICE_NAME,
    )
