"""
Health Check Module
===================
Liveness and status endpoints. They never call the workflow engine, so a
slow upstream cannot make the gateway look dead.
"""

import time

from fastapi import APIRouter
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: float


def create_health_router(service_name: str, version: str = "1.0.0") -> APIRouter:
    """
    Create a health router.

    Returns:
        FastAPI router with /health and /health/live endpoints
    """
    router = APIRouter(tags=["Health"])

    @router.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service=service_name,
            version=version,
            timestamp=time.time(),
        )

    @router.get("/health/live")
    async def liveness_probe():
        """Liveness probe - always returns 200 if the process is serving."""
        return {"status": "alive"}

    return router
