"""Kling video adapter (Kapon gateway, also serves the Kling 2.6 model line)."""

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
    extract_error_message,
    parse_json_body,
    strip_data_uri,
)
from reelgate.providers.modes import KLING_MODES

logger = get_logger(__name__)

_KLING_QUEUED = {"submitted"}
_KLING_SUCCEEDED = {"succeed", "succeeded"}
_KLING_FAILED = {"failed"}


def decode_kling_envelope(response: httpx.Response, body: Any) -> Mapping[str, Any] | None:
    """Return `data` from a `{code: 0, data: {...}}` envelope, else None."""
    if not response.is_success or not isinstance(body, Mapping):
        return None
    if body.get("code") != 0:
        return None
    data = body.get("data")
    if not isinstance(data, Mapping) or not data:
        return None
    return data


def kling_task_status(data: Mapping[str, Any]) -> TaskStatus:
    state = str(data.get("task_status") or "").lower()
    if state in _KLING_SUCCEEDED:
        result = data.get("task_result") or {}
        videos = result.get("videos") if isinstance(result, Mapping) else None
        first = videos[0] if isinstance(videos, list) and videos else {}
        url = first.get("url") if isinstance(first, Mapping) else None
        if not url:
            return TaskStatus.failed("vendor reported success without a video url")
        cover = first.get("cover_url") or first.get("cover_image_url")
        return TaskStatus.succeeded(str(url), thumbnail_url=str(cover) if cover else None)
    if state in _KLING_FAILED:
        return TaskStatus.failed(str(data.get("task_status_msg") or "generation failed"))
    if state in _KLING_QUEUED:
        return TaskStatus.queued()
    return TaskStatus.processing()


class KlingAdapter(VideoProviderAdapter):
    """Kling text/image/first-last/multi-image to video.

    Kapon partitions task status by the endpoint a task was submitted to and the
    task id does not say which one, so `poll` probes each status path in turn.
    """

    family = "kling"
    mode_table = KLING_MODES
    endpoints = {
        VideoMode.TEXT_TO_VIDEO: "/v1/videos/text2video",
        VideoMode.IMAGE_TO_VIDEO: "/v1/videos/image2video",
        VideoMode.FIRST_LAST_FRAME: "/v1/videos/image2video",
        VideoMode.MULTI_REFERENCE: "/v1/videos/multi-image2video",
    }
    poll_paths: tuple[str, ...] = (
        "/v1/videos/text2video",
        "/v1/videos/image2video",
        "/v1/videos/multi-image2video",
    )
    default_allowed_hosts = ("models.kapon.cloud", "api.klingai.com", "api-singapore.klingai.com")

    def __init__(self, *, model_name: str = "kling-v1-6", family: str | None = None, **kwargs: Any) -> None:
        if family:
            self.family = family
        self._model_name = model_name
        super().__init__(**kwargs)

    def clamp_duration(self, duration: int | None) -> str:
        # Kling only renders 5s or 10s clips.
        seconds = DEFAULT_DURATION_S if duration is None else duration
        return "10" if seconds >= 8 else "5"

    def build_payload(self, request: GenerationRequest, mode: VideoMode) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model_name": self._model_name,
            "duration": self.clamp_duration(request.duration),
            "mode": request.mode or "std",
        }
        if request.has_prompt:
            payload["prompt"] = request.prompt
        images = [strip_data_uri(image) for image in self.reference_images(request)]

        if mode is VideoMode.IMAGE_TO_VIDEO:
            payload["image"] = images[0]
        elif mode is VideoMode.FIRST_LAST_FRAME:
            payload["image"] = images[0]
            payload["image_tail"] = images[1]
        elif mode is VideoMode.MULTI_REFERENCE:
            payload["image_list"] = [{"image": image} for image in images]
            payload["aspect_ratio"] = request.aspect_ratio or "16:9"
        else:
            payload["aspect_ratio"] = request.aspect_ratio or "16:9"
        return payload

    def decode_submission(self, response: httpx.Response) -> VendorSubmission:
        body = parse_json_body(response)
        data = decode_kling_envelope(response, body)
        if data is not None and data.get("task_id"):
            return VendorAccepted(task_id=str(data["task_id"]), body=body)
        return VendorRejected(extract_error_message(response, body), response.status_code)

    async def poll(self, task_id: str) -> TaskStatus:
        last_message: str | None = None
        for path in self.poll_paths:
            try:
                response, body = await self._get_status(f"{path}/{task_id}")
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                # One unreachable status path must not hide the others.
                last_message = f"{type(exc).__name__}: {exc}"
                continue
            data = decode_kling_envelope(response, body)
            if data is not None:
                status = kling_task_status(data)
                logger.info(
                    "vendor_task_polled",
                    provider=self.family,
                    task_id=task_id,
                    path=path,
                    status=status.status.value,
                )
                return status
            last_message = extract_error_message(response, body)

        logger.warning(
            "vendor_poll_unresolved",
            provider=self.family,
            task_id=task_id,
            probes=len(self.poll_paths),
            last_message=last_message,
        )
        return TaskStatus.processing()


__all__ = ["KlingAdapter", "decode_kling_envelope", "kling_task_status"]
