"""Health check endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from reelgate.api.schemas import HealthResponse
from reelgate.app_version import get_app_version
from reelgate.config import effective_video_provider_mode, settings

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> dict[str, Any]:
    """Liveness probe plus a summary of which vendors are usable."""

    services = getattr(request.app.state, "video_services", None)
    configured = (
        [p.value for p in services.orchestrator.configured_providers] if services is not None else []
    )
    return {
        "status": "healthy",
        "version": get_app_version(),
        "provider_mode": effective_video_provider_mode(settings),
        "configured_providers": configured,
        "storage_backend": settings.storage_backend,
        "relocation_host_policy": settings.relocation_host_policy,
    }
