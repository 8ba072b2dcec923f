"""Unit tests for the request/status models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from reelgate.models import (
    GenerationRequest,
    TaskHandle,
    TaskState,
    TaskStatus,
    VideoMode,
)


def test_generation_request_accepts_camel_case() -> None:
    request = GenerationRequest.model_validate(
        {
            "provider": " Kling-O1 ",
            "prompt": "a cat",
            "referenceImages": ["https://a/1.png", "", "  "],
            "referenceVideo": "https://a/v.mp4",
            "referenceVideoType": "feature",
            "keepOriginalSound": "yes",
            "aspectRatio": "9:16",
            "offPeak": True,
            "camerafixed": False,
            "videoMode": "video_edit",
            "unknownField": 1,
        }
    )

    assert request.provider == "kling-o1"
    assert request.reference_images == ["https://a/1.png"]
    assert request.image_count == 1
    assert request.keep_original_sound is True
    assert request.aspect_ratio == "9:16"
    assert request.off_peak is True
    assert request.camera_fixed is False
    assert request.video_mode is VideoMode.VIDEO_EDIT


def test_generation_request_limits_reference_images() -> None:
    with pytest.raises(PydanticValidationError):
        GenerationRequest(provider="vidu", reference_images=[f"https://a/{i}.png" for i in range(8)])


def test_has_prompt_ignores_whitespace() -> None:
    assert not GenerationRequest(provider="kling", prompt="   ").has_prompt
    assert not GenerationRequest(provider="kling", prompt=None).has_prompt
    assert GenerationRequest(provider="kling", prompt="go").has_prompt


def test_task_status_requires_url_only_when_succeeded() -> None:
    with pytest.raises(ValueError):
        TaskStatus(status=TaskState.SUCCEEDED)
    with pytest.raises(ValueError):
        TaskStatus(status=TaskState.PROCESSING, video_url="https://a/v.mp4")

    assert TaskStatus.succeeded("https://a/v.mp4").video_url == "https://a/v.mp4"


def test_failed_status_always_has_error() -> None:
    assert TaskStatus.failed().error == "generation failed"
    assert TaskStatus.failed("quota").error == "quota"


def test_status_wire_shape() -> None:
    status = TaskStatus.succeeded("https://cdn/v.mp4", thumbnail_url="https://cdn/t.jpg")
    assert status.to_dict() == {
        "status": "succeeded",
        "videoUrl": "https://cdn/v.mp4",
        "thumbnailUrl": "https://cdn/t.jpg",
    }
    assert TaskStatus.processing().to_dict() == {"status": "processing"}
    assert TaskHandle(task_id="t1").to_dict() == {"taskId": "t1", "status": "queued"}


def test_terminal_states() -> None:
    assert TaskState.SUCCEEDED.is_terminal
    assert TaskState.FAILED.is_terminal
    assert not TaskState.QUEUED.is_terminal
    assert not TaskState.PROCESSING.is_terminal
