"""Deterministic video adapter for fake-provider runs."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, List

from reelgate.errors import ValidationError
from reelgate.models import GenerationRequest, TaskHandle, TaskStatus, VideoMode
from reelgate.providers.modes import PROMPT_REQUIRED_MODES, ModeTable


@dataclass
class FakeVideoAdapter:
    """Minimal stand-in for a vendor adapter with deterministic outputs.

    Task ids are derived from the request, and every poll reports success
    with `video_url_template` filled in with the task id.
    """

    family: str
    mode_table: ModeTable
    video_url_template: str
    submitted_jobs: List[Dict[str, Any]] = field(default_factory=list)

    def infer_mode(self, request: GenerationRequest) -> VideoMode:
        return self.mode_table.infer(request)

    def cache_key(self, task_id: str) -> str:
        return f"{self.family}-{task_id}"

    async def submit(self, request: GenerationRequest) -> TaskHandle:
        mode = self.infer_mode(request)
        if mode in PROMPT_REQUIRED_MODES and not request.has_prompt:
            raise ValidationError(f"{self.family}: prompt is required for {mode.value}")
        seed = "|".join([self.family, request.prompt, *request.reference_images, request.reference_video or ""])
        task_id = f"fake_{hashlib.sha256(seed.encode()).hexdigest()[:24]}"
        self.submitted_jobs.append({"task_id": task_id, "mode": mode.value, "prompt": request.prompt})
        return TaskHandle(task_id=task_id)

    async def poll(self, task_id: str) -> TaskStatus:
        return TaskStatus.succeeded(self.video_url_template.format(task_id=task_id))

    async def aclose(self) -> None:
        """Parity with real adapters."""
        return None


__all__ = ["FakeVideoAdapter"]
