from __future__ import annotations

import json

import httpx
import pytest

from reelgate.models import GenerationRequest, VideoMode
from reelgate.providers.kling_o1 import KlingO1Adapter


def _capture() -> tuple[KlingO1Adapter, list[tuple[str, dict]]]:
    sent: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append((request.url.path, json.loads(request.content) if request.content else {}))
        return httpx.Response(200, json={"code": 0, "data": {"task_id": "o1-1", "task_status": "submitted"}})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    adapter = KlingO1Adapter(
        api_key="o1-key",
        base_url="https://models.kapon.cloud/kling",
        client=client,
        allow_dev_hosts=False,
    )
    return adapter, sent


@pytest.mark.asyncio
async def test_single_image_with_prompt_is_a_subject_reference() -> None:
    adapter, sent = _capture()

    await adapter.submit(GenerationRequest(provider="kling-o1", prompt="hero walks", reference_images=["https://i/1.png"]))

    path, payload = sent[0]
    assert path == "/kling/v1/videos/omni-video"
    assert payload["model_name"] == "kling-video-o1"
    assert payload["mode"] == "pro"
    assert payload["duration"] == "5"
    assert payload["image_list"] == [{"image_url": "https://i/1.png"}]
    assert "aspect_ratio" not in payload


@pytest.mark.asyncio
async def test_single_image_without_prompt_is_a_first_frame() -> None:
    adapter, sent = _capture()

    await adapter.submit(GenerationRequest(provider="kling-o1", reference_images=["https://i/1.png"]))

    assert sent[0][1]["image_list"] == [{"image_url": "https://i/1.png", "type": "first_frame"}]


@pytest.mark.asyncio
async def test_two_images_without_prompt_are_first_and_end_frames() -> None:
    adapter, sent = _capture()

    await adapter.submit(
        GenerationRequest(provider="kling-o1", reference_images=["https://i/1.png", "https://i/2.png"], duration=15)
    )

    payload = sent[0][1]
    assert payload["duration"] == "10"
    assert payload["image_list"] == [
        {"image_url": "https://i/1.png", "type": "first_frame"},
        {"image_url": "https://i/2.png", "type": "end_frame"},
    ]


@pytest.mark.asyncio
async def test_reference_video_switches_to_edit() -> None:
    adapter, sent = _capture()
    images = [f"https://i/{n}.png" for n in range(6)]

    await adapter.submit(
        GenerationRequest(
            provider="kling-o1",
            prompt="make it night",
            reference_images=images,
            reference_video="https://v/in.mp4",
            reference_video_type="feature",
            keep_original_sound="yes",
            aspect_ratio="9:16",
        )
    )

    payload = sent[0][1]
    assert adapter.infer_mode(
        GenerationRequest(provider="kling-o1", prompt="x", reference_video="https://v/in.mp4")
    ) is VideoMode.VIDEO_EDIT
    assert payload["video_list"] == [
        {"video_url": "https://v/in.mp4", "refer_type": "feature", "keep_original_sound": "yes"}
    ]
    assert len(payload["image_list"]) == 4
    assert payload["aspect_ratio"] == "9:16"


@pytest.mark.asyncio
async def test_poll_uses_only_the_omni_endpoint() -> None:
    probed: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        probed.append(request.url.path)
        return httpx.Response(200, json={"code": 0, "data": {"task_id": "o1-1", "task_status": "processing"}})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    adapter = KlingO1Adapter(api_key="k", base_url="https://models.kapon.cloud/kling", client=client)

    status = await adapter.poll("o1-1")

    assert status.status.value == "processing"
    assert probed == ["/kling/v1/videos/omni-video/o1-1"]


@pytest.mark.parametrize(("requested", "expected"), [(None, "5"), (0, "3"), (1, "3"), (7, "7"), (11, "10")])
def test_o1_duration_clamps_to_three_to_ten(requested, expected) -> None:
    adapter, _ = _capture()
    assert adapter.clamp_duration(requested) == expected
