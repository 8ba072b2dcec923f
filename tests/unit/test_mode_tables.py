"""Mode tables must resolve every (image count, prompt) combination."""

from __future__ import annotations

import pytest

from reelgate.models import GenerationRequest, VideoMode
from reelgate.providers.modes import (
    DOUBAO_MODES,
    KLING_MODES,
    KLING_O1_MODES,
    VIDU_MODES,
    ModeTable,
    image_bucket,
)

ALL_TABLES = {
    "kling": KLING_MODES,
    "kling-o1": KLING_O1_MODES,
    "vidu": VIDU_MODES,
    "doubao": DOUBAO_MODES,
}


@pytest.mark.parametrize("name", sorted(ALL_TABLES))
@pytest.mark.parametrize("image_count", range(0, 8))
@pytest.mark.parametrize("has_prompt", [False, True])
def test_every_combination_resolves(name: str, image_count: int, has_prompt: bool) -> None:
    table = ALL_TABLES[name]
    mode = table.resolve(image_count, has_prompt)
    assert isinstance(mode, VideoMode)
    assert mode in table.modes


@pytest.mark.parametrize("name", sorted(ALL_TABLES))
def test_no_images_is_text_to_video(name: str) -> None:
    assert ALL_TABLES[name].resolve(0, True) is VideoMode.TEXT_TO_VIDEO


T2V = VideoMode.TEXT_TO_VIDEO
I2V = VideoMode.IMAGE_TO_VIDEO
REF = VideoMode.REFERENCE
FLF = VideoMode.FIRST_LAST_FRAME
MULTI = VideoMode.MULTI_REFERENCE

# (image count, has prompt) -> mode; 3 stands for "3 or more".
EXPECTED = {
    "kling": {
        (0, False): T2V, (0, True): T2V,
        (1, False): I2V, (1, True): I2V,
        (2, False): FLF, (2, True): FLF,
        (3, False): MULTI, (3, True): MULTI,
    },
    "kling-o1": {
        (0, False): T2V, (0, True): T2V,
        (1, False): I2V, (1, True): REF,
        (2, False): FLF, (2, True): MULTI,
        (3, False): MULTI, (3, True): MULTI,
    },
    "vidu": {
        (0, False): T2V, (0, True): T2V,
        (1, False): I2V, (1, True): I2V,
        (2, False): FLF, (2, True): FLF,
        (3, False): MULTI, (3, True): MULTI,
    },
    "doubao": {
        (0, False): T2V, (0, True): T2V,
        (1, False): I2V, (1, True): I2V,
        (2, False): FLF, (2, True): FLF,
        (3, False): MULTI, (3, True): MULTI,
    },
}


@pytest.mark.parametrize("name", sorted(ALL_TABLES))
@pytest.mark.parametrize("image_count", range(0, 8))
@pytest.mark.parametrize("has_prompt", [False, True])
def test_resolved_mode_matches_vendor_table(name: str, image_count: int, has_prompt: bool) -> None:
    expected = EXPECTED[name][(min(image_count, 3), has_prompt)]
    assert ALL_TABLES[name].resolve(image_count, has_prompt) is expected


def test_reference_video_selects_edit_mode() -> None:
    assert KLING_O1_MODES.resolve(2, True, has_reference_video=True) is VideoMode.VIDEO_EDIT
    # Tables without an edit mode ignore the reference video.
    assert KLING_MODES.resolve(1, True, has_reference_video=True) is VideoMode.IMAGE_TO_VIDEO


def test_explicit_video_mode_wins() -> None:
    request = GenerationRequest(provider="vidu", prompt="x", reference_images=["a"], video_mode="multi_reference")
    assert VIDU_MODES.infer(request) is VideoMode.MULTI_REFERENCE


def test_incomplete_table_is_rejected() -> None:
    with pytest.raises(ValueError, match="not total"):
        ModeTable({(0, False): VideoMode.TEXT_TO_VIDEO}, max_images=1)


@pytest.mark.parametrize(("count", "bucket"), [(-1, 0), (0, 0), (1, 1), (2, 2), (3, 3), (7, 3)])
def test_image_bucket(count: int, bucket: int) -> None:
    assert image_bucket(count) == bucket
