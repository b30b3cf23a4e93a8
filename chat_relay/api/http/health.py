"""Health check endpoint for monitoring service status."""

from fastapi import APIRouter, status

from chat_relay.dependencies import RegistryDep
from chat_relay.schemas.response import HealthResponse

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check(registry: RegistryDep) -> HealthResponse:
    """
    Check health status of the relay.

    The relay has no external dependencies, so a response means the event
    loop is serving requests. The current online count is included.

    Returns:
        HealthResponse: Health status and online user count.
    """
    return HealthResponse(status="healthy", online=registry.current_count())
