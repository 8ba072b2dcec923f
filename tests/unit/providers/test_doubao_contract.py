from __future__ import annotations

import json

import httpx
import pytest

from reelgate.errors import VendorSubmissionError
from reelgate.models import GenerationRequest, TaskState
from reelgate.providers.doubao import DoubaoAdapter

TASKS_PATH = "/api/v3/contents/generations/tasks"


def _adapter(handler) -> DoubaoAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DoubaoAdapter(
        api_key="ark-key",
        base_url="https://ark.cn-beijing.volces.com",
        client=client,
        allow_dev_hosts=False,
    )


@pytest.mark.asyncio
async def test_doubao_prompt_carries_generation_flags() -> None:
    recorded: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        recorded["path"] = request.url.path
        recorded["json"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "cgt-1"})

    request = GenerationRequest.model_validate(
        {
            "provider": "doubao",
            "prompt": "waves at dusk ",
            "aspectRatio": "16:9",
            "duration": 30,
            "resolution": "1080p",
            "cameraFixed": True,
            "watermark": False,
        }
    )
    handle = await _adapter(handler).submit(request)

    payload = recorded["json"]
    assert handle.task_id == "cgt-1"
    assert recorded["path"] == TASKS_PATH
    assert payload["model"] == "doubao-seedance-1-5-pro-251215"
    assert payload["content"] == [
        {
            "type": "text",
            "text": "waves at dusk --ratio 16:9 --dur 12 --resolution 1080p --camerafixed true --watermark false",
        }
    ]


@pytest.mark.asyncio
async def test_doubao_image_roles_and_reference_model() -> None:
    sent: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "cgt-2"})

    adapter = _adapter(handler)
    await adapter.submit(GenerationRequest(provider="doubao", reference_images=["a", "b"]))
    await adapter.submit(GenerationRequest(provider="doubao", prompt="p", reference_images=["a", "b", "c"]))

    first_last, multi = sent
    assert [item.get("role") for item in first_last["content"][1:]] == ["first_frame", "last_frame"]
    assert first_last["content"][0]["text"] == "--dur 5"
    assert multi["model"] == "doubao-seedance-1-0-lite-i2v-250428"
    assert [item["image_url"]["url"] for item in multi["content"][1:]] == ["a", "b", "c"]
    assert {item["role"] for item in multi["content"][1:]} == {"reference_image"}


@pytest.mark.asyncio
async def test_doubao_error_object_wins_over_other_messages() -> None:
    adapter = _adapter(
        lambda request: httpx.Response(
            400,
            json={"error": {"code": "InvalidParameter", "message": "ratio not supported"}, "message": "bad"},
        )
    )

    with pytest.raises(VendorSubmissionError, match="ratio not supported"):
        await adapter.submit(GenerationRequest(provider="doubao", prompt="x"))


@pytest.mark.asyncio
async def test_doubao_poll_success_uses_last_frame_as_thumbnail() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"{TASKS_PATH}/cgt-1"
        return httpx.Response(
            200,
            json={
                "id": "cgt-1",
                "status": "succeeded",
                "content": {
                    "video_url": "https://ark-project-oss-cn-beijing.volces.com/v.mp4",
                    "last_frame_url": "https://ark-project-oss-cn-beijing.volces.com/last.png",
                },
            },
        )

    status = await _adapter(handler).poll("cgt-1")

    assert status.status is TaskState.SUCCEEDED
    assert status.video_url.endswith("/v.mp4")
    assert status.thumbnail_url.endswith("/last.png")


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ({"status": "queued"}, TaskState.QUEUED),
        ({"status": "running"}, TaskState.PROCESSING),
        ({"status": "cancelled"}, TaskState.FAILED),
        ({"status": "expired"}, TaskState.FAILED),
        ({"status": "failed", "error": {"message": "content policy"}}, TaskState.FAILED),
    ],
)
@pytest.mark.asyncio
async def test_doubao_poll_state_mapping(body: dict, expected: TaskState) -> None:
    status = await _adapter(lambda request: httpx.Response(200, json=body)).poll("cgt-1")
    assert status.status is expected


@pytest.mark.parametrize(("requested", "expected"), [(None, 5), (0, 3), (1, 3), (8, 8), (40, 12)])
def test_doubao_duration_clamps(requested, expected) -> None:
    assert _adapter(lambda request: httpx.Response(200)).clamp_duration(requested) == expected
