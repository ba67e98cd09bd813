"""
Health check endpoint for the gateway.

Reports whether the gateway can serve tool requests: registry loaded and
completion API credential present.
"""
from fastapi import APIRouter, Request
from loguru import logger

from medsuite import __version__
from medsuite.models import HealthCheckResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(request: Request) -> HealthCheckResponse:
    """
    Check the health status of the gateway.

    Returns:
        HealthCheckResponse with credential presence and registered tool count
    """
    logger.debug("Health check requested")

    api_key_configured = request.app.state.settings.api_key_configured
    tool_count = len(request.app.state.registry)

    response = HealthCheckResponse(
        status="healthy" if api_key_configured and tool_count else "unhealthy",
        api_key_configured=api_key_configured,
        tool_count=tool_count,
        version=__version__
    )

    logger.info(f"Health check complete: api_key={api_key_configured}, tools={tool_count}")
    return response
