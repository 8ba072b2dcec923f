"""Doubao Seedance video adapter (Volcengine Ark content generation tasks)."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from reelgate.models import GenerationRequest, TaskStatus, VideoMode
from reelgate.observability.logging import get_logger
from reelgate.providers.base import (
    DEFAULT_DURATION_S,
    VendorAccepted,
    VendorRejected,
    VendorSubmission,
    VideoProviderAdapter,
    clamp,
    extract_error_message,
    parse_json_body,
)
from reelgate.providers.modes import DOUBAO_MODES

logger = get_logger(__name__)

_TASKS_PATH = "/api/v3/contents/generations/tasks"
_DOUBAO_FAILED = {"failed", "cancelled", "expired"}


def _flag(value: bool) -> str:
    return "true" if value else "false"


class DoubaoAdapter(VideoProviderAdapter):
    """Seedance takes generation parameters as `--flag value` suffixes on the prompt."""

    family = "doubao"
    mode_table = DOUBAO_MODES
    endpoints = {
        VideoMode.TEXT_TO_VIDEO: _TASKS_PATH,
        VideoMode.IMAGE_TO_VIDEO: _TASKS_PATH,
        VideoMode.FIRST_LAST_FRAME: _TASKS_PATH,
        VideoMode.MULTI_REFERENCE: _TASKS_PATH,
    }
    default_allowed_hosts = ("ark.cn-beijing.volces.com", "ark.ap-southeast.bytepluses.com")

    def __init__(
        self,
        *,
        model: str = "doubao-seedance-1-5-pro-251215",
        reference_model: str = "doubao-seedance-1-0-lite-i2v-250428",
        **kwargs: Any,
    ) -> None:
        self._model = model
        self._reference_model = reference_model
        super().__init__(**kwargs)

    def clamp_duration(self, duration: int | None) -> int:
        return clamp(DEFAULT_DURATION_S if duration is None else duration, 3, 12)

    def prompt_text(self, request: GenerationRequest) -> str:
        params: list[str] = []
        if request.aspect_ratio:
            params.append(f"--ratio {request.aspect_ratio}")
        params.append(f"--dur {self.clamp_duration(request.duration)}")
        if request.resolution:
            params.append(f"--resolution {request.resolution}")
        if request.camera_fixed is not None:
            params.append(f"--camerafixed {_flag(request.camera_fixed)}")
        if request.watermark is not None:
            params.append(f"--watermark {_flag(request.watermark)}")
        return " ".join([request.prompt.strip(), *params]).strip()

    def build_payload(self, request: GenerationRequest, mode: VideoMode) -> dict[str, Any]:
        content: list[dict[str, Any]] = [{"type": "text", "text": self.prompt_text(request)}]
        images = self.reference_images(request)

        if mode is VideoMode.IMAGE_TO_VIDEO:
            content.append({"type": "image_url", "image_url": {"url": images[0]}, "role": "first_frame"})
        elif mode is VideoMode.FIRST_LAST_FRAME:
            content.append({"type": "image_url", "image_url": {"url": images[0]}, "role": "first_frame"})
            content.append({"type": "image_url", "image_url": {"url": images[1]}, "role": "last_frame"})
        elif mode is VideoMode.MULTI_REFERENCE:
            content.extend(
                {"type": "image_url", "image_url": {"url": image}, "role": "reference_image"}
                for image in images
            )

        model = self._reference_model if mode is VideoMode.MULTI_REFERENCE else self._model
        return {"model": model, "content": content}

    def decode_submission(self, response: httpx.Response) -> VendorSubmission:
        body = parse_json_body(response)
        if response.is_success and isinstance(body, Mapping) and not body.get("error"):
            task_id = body.get("id") or body.get("platform_id")
            if task_id:
                return VendorAccepted(task_id=str(task_id), body=body)
        return VendorRejected(extract_error_message(response, body), response.status_code)

    async def poll(self, task_id: str) -> TaskStatus:
        response, body = await self._get_status(f"{_TASKS_PATH}/{task_id}")
        if not response.is_success or not isinstance(body, Mapping):
            self._raise_poll_error(response, body)

        state = str(body.get("status") or "").lower()
        logger.info("vendor_task_polled", provider=self.family, task_id=task_id, state=state)

        if state == "succeeded":
            content = body.get("content") if isinstance(body.get("content"), Mapping) else {}
            url = content.get("video_url")
            if not url:
                return TaskStatus.failed("vendor reported success without a video url")
            thumbnail = content.get("last_frame_url")
            return TaskStatus.succeeded(str(url), thumbnail_url=str(thumbnail) if thumbnail else None)
        if state in _DOUBAO_FAILED:
            error = body.get("error")
            message = error.get("message") if isinstance(error, Mapping) else error
            return TaskStatus.failed(str(message or body.get("reason") or "generation failed"))
        if state == "queued":
            return TaskStatus.queued()
        return TaskStatus.processing()


__all__ = ["DoubaoAdapter"]
