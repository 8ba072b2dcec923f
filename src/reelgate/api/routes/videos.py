"""Video generation endpoints: submit a task, poll its status."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from reelgate.api.dependencies import get_orchestrator
from reelgate.api.rate_limit import limiter
from reelgate.api.schemas import ErrorResponse, TaskHandleResponse, TaskStatusResponse
from reelgate.config import settings
from reelgate.models import GenerationRequest
from reelgate.services.orchestrator import TaskOrchestrator

router = APIRouter(prefix="/v1/videos", tags=["videos"])

_ERRORS = {
    400: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


@router.post("", response_model=TaskHandleResponse, responses=_ERRORS)
@limiter.limit(lambda: settings.submit_rate_limit)
async def submit_video(
    request: Request,
    body: GenerationRequest,
    orchestrator: TaskOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Submit a generation task to the requested vendor.

    Returns immediately with the vendor task id; poll for the result.
    """
    handle = await orchestrator.submit(body)
    return handle.to_dict()


@router.get(
    "/{provider}/{task_id}",
    response_model=TaskStatusResponse,
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def poll_video(
    provider: str,
    task_id: str,
    orchestrator: TaskOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Poll a task. Succeeded tasks carry a relocated `videoUrl`."""
    status = await orchestrator.poll(provider, task_id)
    return status.to_dict()
