"""Common FastAPI dependencies for the Reelgate API."""

from __future__ import annotations

from fastapi import Request

from reelgate.services.orchestrator import TaskOrchestrator
from reelgate.services.proxy_gateway import ProxyGateway
from reelgate.services.runtime import VideoServices

__all__ = ["get_video_services", "get_orchestrator", "get_proxy_gateway"]


def get_video_services(request: Request) -> VideoServices:
    """Return the service bundle built during application startup."""

    services = getattr(request.app.state, "video_services", None)
    if services is None:
        raise RuntimeError("Video services are not initialized (lifespan did not run)")
    return services


def get_orchestrator(request: Request) -> TaskOrchestrator:
    return get_video_services(request).orchestrator


def get_proxy_gateway(request: Request) -> ProxyGateway:
    return get_video_services(request).gateway
