"""Prometheus exposition for the HTTP, video task, relocation and proxy collectors."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from reelgate.observability import metrics as collectors

router = APIRouter(tags=["Metrics"])

# Task, relocation and proxy series live in `collectors`; importing it registers them.
VIDEO_SERIES = (
    collectors.VIDEO_TASKS_SUBMITTED,
    collectors.VIDEO_TASK_POLLS,
    collectors.RELOCATIONS,
    collectors.PROXY_REQUESTS,
)


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Render the default registry in the Prometheus text format."""
    return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


__all__ = ["VIDEO_SERIES", "router"]
