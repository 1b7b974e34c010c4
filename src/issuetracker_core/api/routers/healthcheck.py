"""Health check endpoint."""
from fastapi import APIRouter, Depends

from ... import __version__
from ...config import Settings
from ..dependencies import get_app_settings

router = APIRouter(tags=["healthcheck"])


@router.get("/healthcheck")
async def healthcheck(settings: Settings = Depends(get_app_settings)):
    """Report service status, environment and version."""
    return {
        "status": "available",
        "system_info": {
            "environment": settings.environment,
            "version": __version__,
        },
    }
