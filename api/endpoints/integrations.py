"""Game integration API endpoints for GameMarks.

Endpoints:
    GET  /api/v1/integrations/ - List registered integrations and their state
    GET  /api/v1/integrations/running - List game IDs with a running integration
    POST /api/v1/integrations/{game_id}/start - Start (or restart) an integration
    POST /api/v1/integrations/{game_id}/stop - Stop an integration
"""

from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Request

from core.integration_service import IntegrationService
from models.integration import IntegrationInfo

router = APIRouter(
    prefix="/api/v1/integrations",
    tags=["Integrations"],
    responses={
        503: {"description": "Service unavailable - integration service not initialized"},
    },
)


async def get_integration_service(request: Request) -> IntegrationService:
    """Dependency to get the IntegrationService instance from app state.

    Raises:
        HTTPException: If the integration service is not initialized (503).
    """
    service = getattr(request.app.state, "integration_service", None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail="Integration service not initialized. Server may be starting up.",
        )
    return service


# Type alias for dependency injection
IntegrationServiceDep = Annotated[IntegrationService, Depends(get_integration_service)]


def _info_for(service: IntegrationService, game_id: str) -> IntegrationInfo:
    for info in service.list_integrations():
        if info.id == game_id:
            return info
    raise HTTPException(
        status_code=404,
        detail=f"Integration not found: {game_id}",
    )


@router.get(
    "/",
    response_model=List[IntegrationInfo],
    summary="List Integrations",
    description="Get information about all registered game integrations.",
)
async def list_integrations(service: IntegrationServiceDep) -> List[IntegrationInfo]:
    """List all registered game integrations.

    Example Response:
        ```json
        [
            {
                "id": "cs2",
                "name": "Counter-Strike 2",
                "version": "1.0.0",
                "source": "push",
                "process_names": ["cs2.exe"],
                "description": "Counter-Strike 2 Game State Integration listener",
                "state": "running"
            }
        ]
        ```
    """
    return service.list_integrations()


@router.get(
    "/running",
    response_model=List[str],
    summary="Get Running Integrations",
    description="Get the game IDs whose integration is currently running.",
)
async def get_running_integrations(service: IntegrationServiceDep) -> List[str]:
    return service.running_game_ids()


@router.post(
    "/{game_id}/start",
    response_model=IntegrationInfo,
    summary="Start Integration",
    description="Start the integration for a game, replacing a running one.",
    responses={
        404: {"description": "Integration not found"},
        500: {"description": "Integration failed to start"},
    },
)
async def start_integration(service: IntegrationServiceDep, game_id: str) -> IntegrationInfo:
    """Start the integration for ``game_id``.

    Raises:
        HTTPException: If the game is unknown (404) or startup failed (500).
    """
    _info_for(service, game_id)

    if not await service.start_integration(game_id):
        raise HTTPException(
            status_code=500,
            detail=f"Integration failed to start: {game_id}",
        )

    return _info_for(service, game_id)


@router.post(
    "/{game_id}/stop",
    response_model=IntegrationInfo,
    summary="Stop Integration",
    description="Stop the integration for a game if it is running.",
    responses={
        404: {"description": "Integration not found"},
    },
)
async def stop_integration(service: IntegrationServiceDep, game_id: str) -> IntegrationInfo:
    _info_for(service, game_id)
    await service.stop_integration(game_id)
    return _info_for(service, game_id)
