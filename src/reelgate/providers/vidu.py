"""Vidu video adapter (enterprise v2 API via the Kapon gateway)."""

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
from reelgate.providers.modes import VIDU_MODES

logger = get_logger(__name__)

_VIDU_QUEUED = {"created", "queueing", "queued"}


class ViduAdapter(VideoProviderAdapter):
    family = "vidu"
    mode_table = VIDU_MODES
    endpoints = {
        VideoMode.TEXT_TO_VIDEO: "/ent/v2/text2video",
        VideoMode.IMAGE_TO_VIDEO: "/ent/v2/img2video",
        VideoMode.FIRST_LAST_FRAME: "/ent/v2/start-end2video",
        VideoMode.MULTI_REFERENCE: "/ent/v2/reference2video",
    }
    default_allowed_hosts = ("models.kapon.cloud", "api.vidu.cn", "api.vidu.com")

    def __init__(
        self,
        *,
        text_model: str = "viduq2",
        image_model: str = "viduq2-turbo",
        **kwargs: Any,
    ) -> None:
        self._text_model = text_model
        self._image_model = image_model
        super().__init__(**kwargs)

    def clamp_duration(self, duration: int | None) -> int:
        return clamp(DEFAULT_DURATION_S if duration is None else duration, 1, 10)

    def build_payload(self, request: GenerationRequest, mode: VideoMode) -> dict[str, Any]:
        uses_images = mode is not VideoMode.TEXT_TO_VIDEO
        payload: dict[str, Any] = {
            "model": self._image_model if mode in (VideoMode.IMAGE_TO_VIDEO, VideoMode.FIRST_LAST_FRAME) else self._text_model,
            "duration": self.clamp_duration(request.duration),
            "resolution": request.resolution or "720p",
            "off_peak": bool(request.off_peak),
        }
        if request.has_prompt:
            payload["prompt"] = request.prompt
        if mode in (VideoMode.TEXT_TO_VIDEO, VideoMode.MULTI_REFERENCE):
            payload["aspect_ratio"] = request.aspect_ratio or "16:9"
        if mode is VideoMode.TEXT_TO_VIDEO:
            payload["style"] = request.style or "general"
        if uses_images:
            images = self.reference_images(request)
            if mode is VideoMode.IMAGE_TO_VIDEO:
                images = images[:1]
            elif mode is VideoMode.FIRST_LAST_FRAME:
                images = images[:2]
            payload["images"] = images
        return payload

    def decode_submission(self, response: httpx.Response) -> VendorSubmission:
        body = parse_json_body(response)
        if response.is_success and isinstance(body, Mapping):
            task_id = body.get("task_id") or body.get("id")
            if task_id and str(body.get("state") or "").lower() != "failed":
                return VendorAccepted(task_id=str(task_id), body=body)
            if task_id and body.get("err_code"):
                return VendorRejected(str(body["err_code"]), response.status_code)
        return VendorRejected(extract_error_message(response, body), response.status_code)

    async def poll(self, task_id: str) -> TaskStatus:
        response, body = await self._get_status(f"/ent/v2/tasks/{task_id}/creations")
        if not response.is_success or not isinstance(body, Mapping):
            self._raise_poll_error(response, body)

        state = str(body.get("state") or "").lower()
        logger.info("vendor_task_polled", provider=self.family, task_id=task_id, state=state)

        if state == "success":
            creations = body.get("creations")
            first = creations[0] if isinstance(creations, list) and creations else {}
            url = first.get("url") if isinstance(first, Mapping) else None
            if not url:
                return TaskStatus.failed("vendor reported success without a video url")
            cover = first.get("cover_url")
            return TaskStatus.succeeded(str(url), thumbnail_url=str(cover) if cover else None)
        if state == "failed":
            error = body.get("error")
            message = error.get("message") if isinstance(error, Mapping) else None
            return TaskStatus.failed(str(message or body.get("err_code") or "generation failed"))
        if state in _VIDU_QUEUED:
            return TaskStatus.queued()
        return TaskStatus.processing()


__all__ = ["ViduAdapter"]
