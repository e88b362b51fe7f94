"""Health check endpoint for monitoring service status."""

from fastapi import APIRouter, Request, status
from pydantic import BaseModel

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    active_connections: int


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check(request: Request) -> HealthResponse:
    """
    Report relay liveness and the number of open signaling connections.

    The relay has no backing services, so it is healthy whenever it can
    answer this request.

    Returns:
        HealthResponse: Status and current connection registry size.
    """
    registry = request.app.state.registry
    return HealthResponse(status="healthy", active_connections=len(registry))
