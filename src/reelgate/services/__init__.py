"""Reelgate services: orchestration, relocation and proxying."""

from reelgate.services.orchestrator import TaskOrchestrator
from reelgate.services.proxy_gateway import ProxiedResponse, ProxyGateway
from reelgate.services.relocator import AssetRelocator
from reelgate.services.runtime import VideoServices, build_video_services

__all__ = [
    "AssetRelocator",
    "ProxiedResponse",
    "ProxyGateway",
    "TaskOrchestrator",
    "VideoServices",
    "build_video_services",
]
