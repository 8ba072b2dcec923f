"""Kling O1 ("omni-video") adapter."""

from __future__ import annotations

from typing import Any

from reelgate.models import GenerationRequest, VideoMode
from reelgate.providers.base import DEFAULT_DURATION_S, clamp
from reelgate.providers.kling import KlingAdapter
from reelgate.providers.modes import KLING_O1_MODES

_OMNI_PATH = "/v1/videos/omni-video"
_MAX_IMAGES_WITH_VIDEO = 4


class KlingO1Adapter(KlingAdapter):
    """One omni endpoint; the image/video lists decide what the model does.

    A single image with a prompt is a subject reference rather than a first
    frame, and a reference video switches to editing that video.
    """

    family = "kling-o1"
    mode_table = KLING_O1_MODES
    endpoints = {
        VideoMode.TEXT_TO_VIDEO: _OMNI_PATH,
        VideoMode.IMAGE_TO_VIDEO: _OMNI_PATH,
        VideoMode.REFERENCE: _OMNI_PATH,
        VideoMode.FIRST_LAST_FRAME: _OMNI_PATH,
        VideoMode.MULTI_REFERENCE: _OMNI_PATH,
        VideoMode.VIDEO_EDIT: _OMNI_PATH,
    }
    poll_paths = (_OMNI_PATH,)

    def __init__(self, *, model_name: str = "kling-video-o1", **kwargs: Any) -> None:
        super().__init__(model_name=model_name, **kwargs)

    def clamp_duration(self, duration: int | None) -> str:
        return str(clamp(DEFAULT_DURATION_S if duration is None else duration, 3, 10))

    def build_payload(self, request: GenerationRequest, mode: VideoMode) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model_name": self._model_name,
            "duration": self.clamp_duration(request.duration),
            "mode": request.mode or "pro",
        }
        if request.has_prompt:
            payload["prompt"] = request.prompt
        if request.aspect_ratio:
            payload["aspect_ratio"] = request.aspect_ratio

        images = self.reference_images(request)
        if mode is VideoMode.IMAGE_TO_VIDEO:
            payload["image_list"] = [{"image_url": images[0], "type": "first_frame"}]
        elif mode is VideoMode.FIRST_LAST_FRAME:
            payload["image_list"] = [
                {"image_url": images[0], "type": "first_frame"},
                {"image_url": images[1], "type": "end_frame"},
            ]
        elif mode in (VideoMode.REFERENCE, VideoMode.MULTI_REFERENCE):
            payload["image_list"] = [{"image_url": image} for image in images]
        elif mode is VideoMode.VIDEO_EDIT:
            refer_type = "feature" if request.reference_video_type == "feature" else "base"
            payload["video_list"] = [
                {
                    "video_url": request.reference_video,
                    "refer_type": refer_type,
                    "keep_original_sound": "yes" if request.keep_original_sound else "no",
                }
            ]
            if images:
                payload["image_list"] = [{"image_url": image} for image in images[:_MAX_IMAGES_WITH_VIDEO]]
        return payload


__all__ = ["KlingO1Adapter"]
