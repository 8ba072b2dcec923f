from __future__ import annotations

import json

import httpx
import pytest

from reelgate.errors import VendorPollError, VendorSubmissionError
from reelgate.models import GenerationRequest, TaskState
from reelgate.providers.vidu import ViduAdapter
from reelgate.resilience.transient import VendorEnvelopeError

BASE_URL = "https://models.kapon.cloud/vidu"


def _adapter(handler) -> ViduAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ViduAdapter(api_key="vidu-key", base_url=BASE_URL, client=client, allow_dev_hosts=False)


@pytest.mark.asyncio
async def test_vidu_text_to_video_submit_contract() -> None:
    recorded: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        recorded["path"] = request.url.path
        recorded["json"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "v123"})

    handle = await _adapter(handler).submit(GenerationRequest(provider="vidu", reference_images=[], prompt="a cat"))

    assert handle.task_id == "v123"
    assert handle.status is TaskState.QUEUED
    assert recorded["path"] == "/vidu/ent/v2/text2video"
    assert recorded["json"] == {
        "model": "viduq2",
        "duration": 5,
        "resolution": "720p",
        "off_peak": False,
        "prompt": "a cat",
        "aspect_ratio": "16:9",
        "style": "general",
    }


@pytest.mark.asyncio
async def test_vidu_image_modes_use_image_model_and_endpoints() -> None:
    sent: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"task_id": "v1", "state": "created"})

    adapter = _adapter(handler)
    await adapter.submit(GenerationRequest(provider="vidu", reference_images=["a"], duration=20))
    await adapter.submit(GenerationRequest(provider="vidu", reference_images=["a", "b"]))
    await adapter.submit(GenerationRequest(provider="vidu", prompt="mix", reference_images=["a", "b", "c"], off_peak=True))

    (i2v_path, i2v), (fl_path, fl), (ref_path, ref) = sent
    assert i2v_path.endswith("/ent/v2/img2video")
    assert i2v["model"] == "viduq2-turbo"
    assert i2v["duration"] == 10
    assert i2v["images"] == ["a"]
    assert fl_path.endswith("/ent/v2/start-end2video")
    assert fl["images"] == ["a", "b"]
    assert ref_path.endswith("/ent/v2/reference2video")
    assert ref["model"] == "viduq2"
    assert ref["images"] == ["a", "b", "c"]
    assert ref["off_peak"] is True
    assert ref["aspect_ratio"] == "16:9"


@pytest.mark.asyncio
async def test_vidu_failed_state_on_submit_is_a_rejection() -> None:
    adapter = _adapter(lambda request: httpx.Response(200, json={"task_id": "v9", "state": "failed", "err_code": "CreditInsufficient"}))

    with pytest.raises(VendorSubmissionError, match="CreditInsufficient"):
        await adapter.submit(GenerationRequest(provider="vidu", prompt="x"))


@pytest.mark.asyncio
async def test_vidu_poll_success_returns_first_creation() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/vidu/ent/v2/tasks/v123/creations"
        return httpx.Response(
            200,
            json={
                "state": "success",
                "creations": [{"url": "https://cdn.vidu.cn/v.mp4", "cover_url": "https://cdn.vidu.cn/c.jpg"}],
            },
        )

    status = await _adapter(handler).poll("v123")

    assert status.status is TaskState.SUCCEEDED
    assert status.video_url == "https://cdn.vidu.cn/v.mp4"
    assert status.thumbnail_url == "https://cdn.vidu.cn/c.jpg"


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ({"state": "created"}, TaskState.QUEUED),
        ({"state": "queueing"}, TaskState.QUEUED),
        ({"state": "processing"}, TaskState.PROCESSING),
        ({"state": "failed", "err_code": "AuditFailed"}, TaskState.FAILED),
        ({"state": "success", "creations": []}, TaskState.FAILED),
    ],
)
@pytest.mark.asyncio
async def test_vidu_poll_state_mapping(body: dict, expected: TaskState) -> None:
    status = await _adapter(lambda request: httpx.Response(200, json=body)).poll("v1")
    assert status.status is expected


@pytest.mark.asyncio
async def test_vidu_poll_http_error_is_a_poll_error() -> None:
    adapter = _adapter(lambda request: httpx.Response(401, json={"message": "invalid api key"}))

    with pytest.raises(VendorPollError) as excinfo:
        await adapter.poll("v1")

    assert excinfo.value.http_status == 401
    assert str(excinfo.value) == "invalid api key"


@pytest.mark.asyncio
async def test_vidu_poll_undecodable_success_body_is_an_envelope_error() -> None:
    adapter = _adapter(lambda request: httpx.Response(200, text="<html>gateway</html>"))

    with pytest.raises(VendorEnvelopeError):
        await adapter.poll("v1")


@pytest.mark.parametrize(("requested", "expected"), [(None, 5), (0, 1), (4, 4), (20, 10)])
def test_vidu_duration_clamps(requested, expected) -> None:
    assert _adapter(lambda request: httpx.Response(200)).clamp_duration(requested) == expected
