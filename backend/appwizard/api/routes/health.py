"""Health Probe — liveness endpoint for container orchestration.

Invariants:
    - GET /api/v1/health/ always returns 200 if the process is up
    - Reports whether platform and blob-store clients are initialized; never
      calls the external services
"""

import logging

from fastapi import APIRouter, status

import appwizard.infrastructure.clients as clients
from appwizard import __version__

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "appwizard-export",
        "version": __version__,
        "clients_ready": (
            clients.model_platform is not None and clients.blob_store is not None
        ),
    }
