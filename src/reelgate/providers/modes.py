"""Total mode tables mapping request shape to a vendor generation mode."""

from __future__ import annotations

from typing import Mapping

from reelgate.models import GenerationRequest, VideoMode

# Image-count buckets: 0, 1, 2 and "3 or more".
IMAGE_BUCKETS: tuple[int, ...] = (0, 1, 2, 3)

PROMPT_REQUIRED_MODES = frozenset(
    {
        VideoMode.TEXT_TO_VIDEO,
        VideoMode.REFERENCE,
        VideoMode.MULTI_REFERENCE,
        VideoMode.VIDEO_EDIT,
    }
)


def image_bucket(image_count: int) -> int:
    return min(max(image_count, 0), IMAGE_BUCKETS[-1])


class ModeTable:
    """Explicit `(image bucket, has_prompt) -> VideoMode` table.

    Construction fails unless every bucket/prompt combination is mapped, so
    `resolve` never meets an unmapped case.
    """

    def __init__(
        self,
        rows: Mapping[tuple[int, bool], VideoMode],
        *,
        max_images: int,
        reference_video_mode: VideoMode | None = None,
    ):
        missing = [
            (bucket, has_prompt)
            for bucket in IMAGE_BUCKETS
            for has_prompt in (False, True)
            if (bucket, has_prompt) not in rows
        ]
        if missing:
            raise ValueError(f"Mode table is not total; missing {missing}")
        self._rows = dict(rows)
        self.max_images = max_images
        self.reference_video_mode = reference_video_mode

    @classmethod
    def by_image_count(
        cls,
        *,
        none: VideoMode = VideoMode.TEXT_TO_VIDEO,
        one: VideoMode,
        one_with_prompt: VideoMode | None = None,
        two: VideoMode,
        two_with_prompt: VideoMode | None = None,
        many: VideoMode,
        max_images: int,
        reference_video_mode: VideoMode | None = None,
    ) -> "ModeTable":
        rows = {
            (0, False): none,
            (0, True): none,
            (1, False): one,
            (1, True): one_with_prompt or one,
            (2, False): two,
            (2, True): two_with_prompt or two,
            (3, False): many,
            (3, True): many,
        }
        return cls(rows, max_images=max_images, reference_video_mode=reference_video_mode)

    @property
    def modes(self) -> frozenset[VideoMode]:
        modes = set(self._rows.values())
        if self.reference_video_mode is not None:
            modes.add(self.reference_video_mode)
        return frozenset(modes)

    def resolve(self, image_count: int, has_prompt: bool, *, has_reference_video: bool = False) -> VideoMode:
        if has_reference_video and self.reference_video_mode is not None:
            return self.reference_video_mode
        return self._rows[(image_bucket(image_count), bool(has_prompt))]

    def infer(self, request: GenerationRequest) -> VideoMode:
        if request.video_mode is not None:
            return request.video_mode
        return self.resolve(
            request.image_count,
            request.has_prompt,
            has_reference_video=bool(request.reference_video),
        )


KLING_MODES = ModeTable.by_image_count(
    one=VideoMode.IMAGE_TO_VIDEO,
    two=VideoMode.FIRST_LAST_FRAME,
    many=VideoMode.MULTI_REFERENCE,
    max_images=4,
)

KLING_O1_MODES = ModeTable.by_image_count(
    one=VideoMode.IMAGE_TO_VIDEO,
    one_with_prompt=VideoMode.REFERENCE,
    two=VideoMode.FIRST_LAST_FRAME,
    two_with_prompt=VideoMode.MULTI_REFERENCE,
    many=VideoMode.MULTI_REFERENCE,
    max_images=7,
    reference_video_mode=VideoMode.VIDEO_EDIT,
)

VIDU_MODES = ModeTable.by_image_count(
    one=VideoMode.IMAGE_TO_VIDEO,
    two=VideoMode.FIRST_LAST_FRAME,
    many=VideoMode.MULTI_REFERENCE,
    max_images=7,
)

DOUBAO_MODES = ModeTable.by_image_count(
    one=VideoMode.IMAGE_TO_VIDEO,
    two=VideoMode.FIRST_LAST_FRAME,
    many=VideoMode.MULTI_REFERENCE,
    max_images=4,
)

__all__ = [
    "IMAGE_BUCKETS",
    "PROMPT_REQUIRED_MODES",
    "ModeTable",
    "image_bucket",
    "KLING_MODES",
    "KLING_O1_MODES",
    "VIDU_MODES",
    "DOUBAO_MODES",
]
