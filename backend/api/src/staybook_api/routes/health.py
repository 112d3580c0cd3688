"""Health check endpoint."""

import datetime as dt
from typing import Any

from fastapi import APIRouter

from staybook_shared.config import get_settings

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    summary="Service health",
    description="Liveness check used by load balancers and deploy smoke tests.",
)
async def health() -> dict[str, Any]:
    settings = get_settings()
    return {
        "status": "healthy",
        "service": "staybook-refunds-api",
        "environment": settings.environment,
        "timestamp": dt.datetime.now(dt.UTC).isoformat(),
    }
