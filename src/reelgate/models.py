"""Vendor-agnostic task model shared by adapters, the orchestrator and the API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_REFERENCE_IMAGES = 7


class VideoProvider(str, Enum):
    KLING = "kling"
    KLING_26 = "kling-2.6"
    KLING_O1 = "kling-o1"
    VIDU = "vidu"
    DOUBAO = "doubao"


class VideoMode(str, Enum):
    TEXT_TO_VIDEO = "text_to_video"
    IMAGE_TO_VIDEO = "image_to_video"
    FIRST_LAST_FRAME = "first_last_frame"
    REFERENCE = "reference"
    MULTI_REFERENCE = "multi_reference"
    VIDEO_EDIT = "video_edit"


class TaskState(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.SUCCEEDED, TaskState.FAILED)


class GenerationRequest(BaseModel):
    """Normalized video generation request (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    provider: str
    prompt: str = ""
    reference_images: list[str] = Field(default_factory=list, max_length=MAX_REFERENCE_IMAGES)
    reference_video: str | None = None
    reference_video_type: Literal["feature", "motion", "expression"] | None = None
    keep_original_sound: bool | None = None
    duration: int | None = None
    aspect_ratio: str | None = None
    resolution: str | None = None
    mode: str | None = None
    style: str | None = None
    off_peak: bool = False
    camera_fixed: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("cameraFixed", "camerafixed", "camera_fixed"),
    )
    watermark: bool | None = None
    video_mode: VideoMode | None = None

    @field_validator("provider", mode="before")
    @classmethod
    def _normalize_provider(cls, v: Any) -> str:
        if isinstance(v, Enum):
            v = v.value
        return str(v or "").strip().lower()

    @field_validator("prompt", mode="before")
    @classmethod
    def _coerce_prompt(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("reference_images", mode="before")
    @classmethod
    def _drop_blank_images(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [item for item in v if isinstance(item, str) and item.strip()]
        return v

    @field_validator("keep_original_sound", mode="before")
    @classmethod
    def _yes_no(cls, v: Any) -> Any:
        # The editor sends "yes" / "no".
        if isinstance(v, str) and v.strip().lower() in {"yes", "no"}:
            return v.strip().lower() == "yes"
        return v

    @property
    def has_prompt(self) -> bool:
        return bool(self.prompt.strip())

    @property
    def image_count(self) -> int:
        return len(self.reference_images)


@dataclass(frozen=True)
class TaskStatus:
    """Normalized vendor task status.

    `video_url` is set exactly when `status` is succeeded.
    """

    status: TaskState
    video_url: str | None = None
    thumbnail_url: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        has_url = bool(self.video_url)
        if has_url != (self.status is TaskState.SUCCEEDED):
            raise ValueError(
                f"video_url must be present iff status is succeeded (status={self.status.value})"
            )

    @classmethod
    def queued(cls) -> "TaskStatus":
        return cls(status=TaskState.QUEUED)

    @classmethod
    def processing(cls) -> "TaskStatus":
        return cls(status=TaskState.PROCESSING)

    @classmethod
    def succeeded(cls, video_url: str, *, thumbnail_url: str | None = None) -> "TaskStatus":
        return cls(status=TaskState.SUCCEEDED, video_url=video_url, thumbnail_url=thumbnail_url)

    @classmethod
    def failed(cls, error: str | None = None) -> "TaskStatus":
        return cls(status=TaskState.FAILED, error=error or "generation failed")

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.status.value}
        if self.video_url:
            payload["videoUrl"] = self.video_url
        if self.thumbnail_url:
            payload["thumbnailUrl"] = self.thumbnail_url
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class TaskHandle:
    task_id: str
    status: TaskState = TaskState.QUEUED

    def to_dict(self) -> dict[str, Any]:
        return {"taskId": self.task_id, "status": self.status.value}


__all__ = [
    "MAX_REFERENCE_IMAGES",
    "VideoProvider",
    "VideoMode",
    "TaskState",
    "GenerationRequest",
    "TaskStatus",
    "TaskHandle",
]
