from __future__ import annotations

from reelgate.observability import init_observability
from reelgate.observability.logging import get_request_id, request_id_var, truncate_payload


def test_truncate_payload_cuts_long_strings_and_lists() -> None:
    payload = {
        "prompt": "short",
        "image": "A" * 250,
        "image_list": [{"image": "x"}] * 11,
        "nested": {"frames": ["B" * 201, "ok"]},
    }

    result = truncate_payload(payload)

    assert result["prompt"] == "short"
    assert result["image"] == "A" * 200 + "...[truncated 250 chars]"
    assert result["image_list"] == "[array length 11]"
    assert result["nested"]["frames"][0].endswith("...[truncated 201 chars]")
    assert result["nested"]["frames"][1] == "ok"
    # Original untouched
    assert len(payload["image"]) == 250


def test_request_id_context() -> None:
    token = request_id_var.set("req-1")
    try:
        assert get_request_id() == "req-1"
    finally:
        request_id_var.reset(token)
    assert get_request_id() == ""


def test_init_observability_is_idempotent() -> None:
    init_observability()
    init_observability()
