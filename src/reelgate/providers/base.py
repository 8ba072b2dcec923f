"""Shared plumbing for vendor video adapters.

Each adapter turns a `GenerationRequest` into one vendor submit call and a
task id into one or more vendor status calls. Vendor responses are decoded
into explicit variants (`VendorAccepted` / `VendorRejected`) instead of being
probed field by field at the call site.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, NoReturn
from urllib.parse import urlparse

import httpx

from reelgate.errors import ValidationError, VendorPollError, VendorSubmissionError
from reelgate.models import GenerationRequest, TaskHandle, TaskStatus, VideoMode
from reelgate.observability.logging import get_logger, truncate_payload
from reelgate.providers.modes import PROMPT_REQUIRED_MODES, ModeTable
from reelgate.resilience.transient import VendorEnvelopeError
from reelgate.security.host_allowlist import ensure_host_allowed

logger = get_logger(__name__)

DEFAULT_DURATION_S = 5
_RAW_TEXT_LIMIT = 500


@dataclass(frozen=True)
class VendorAccepted:
    task_id: str
    body: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class VendorRejected:
    message: str
    http_status: int


VendorSubmission = VendorAccepted | VendorRejected


def parse_json_body(response: httpx.Response) -> Any:
    """Return the decoded JSON body, or None when the body is not JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def _from_error_object(body: Any, _response: httpx.Response) -> str | None:
    if not isinstance(body, Mapping):
        return None
    error = body.get("error")
    if isinstance(error, Mapping):
        message = error.get("message") or error.get("msg")
        return str(message) if message else None
    if isinstance(error, str):
        return error
    return None


def _from_top_level_message(body: Any, _response: httpx.Response) -> str | None:
    if not isinstance(body, Mapping):
        return None
    for key in ("message", "msg", "error_message", "reason"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _from_raw_text(_body: Any, response: httpx.Response) -> str | None:
    try:
        text = response.text.strip()
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        return None
    return text[:_RAW_TEXT_LIMIT] if text else None


def _from_status_line(_body: Any, response: httpx.Response) -> str | None:
    return f"HTTP {response.status_code} {response.reason_phrase}".strip()


# Order matters: the first extractor returning a non-empty message wins.
MESSAGE_EXTRACTORS: tuple[Callable[[Any, httpx.Response], str | None], ...] = (
    _from_error_object,
    _from_top_level_message,
    _from_raw_text,
    _from_status_line,
)


def extract_error_message(response: httpx.Response, body: Any = None) -> str:
    if body is None:
        body = parse_json_body(response)
    for extractor in MESSAGE_EXTRACTORS:
        message = extractor(body, response)
        if message and message.strip():
            return message.strip()
    return f"HTTP {response.status_code}"


def strip_data_uri(value: str) -> str:
    """Strip a `data:<mime>;base64,` prefix; vendors wanting raw base64 reject it."""
    if "base64," in value:
        return value.split("base64,", 1)[1]
    return value


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class VideoProviderAdapter(ABC):
    """Base class for one vendor family."""

    family: str
    mode_table: ModeTable
    endpoints: Mapping[VideoMode, str]
    default_allowed_hosts: tuple[str, ...] = ()

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        allowed_hosts: list[str] | None = None,
        allow_dev_hosts: bool = True,
        client: httpx.AsyncClient | None = None,
        submit_timeout_s: float = 300.0,
        poll_timeout_s: float = 30.0,
        log_payloads: bool = True,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._allowed_hosts = allowed_hosts or list(self.default_allowed_hosts)
        self._allow_dev_hosts = allow_dev_hosts
        self._submit_timeout = httpx.Timeout(submit_timeout_s, connect=30.0)
        self._poll_timeout = httpx.Timeout(poll_timeout_s, connect=min(10.0, poll_timeout_s))
        self._log_payloads = log_payloads
        self._client = client or httpx.AsyncClient(timeout=self._poll_timeout)
        self._validate_base_url()

    def _validate_base_url(self) -> None:
        """Ensure the base URL is restricted to known-safe hosts in non-test envs."""
        parsed = urlparse(self._base_url)
        host = parsed.hostname or ""
        ensure_host_allowed(
            host,
            self._allowed_hosts,
            component=f"{type(self).__name__} base_url",
            allow_dev_hosts=self._allow_dev_hosts,
        )

    # -- mode / request shaping -------------------------------------------------

    def infer_mode(self, request: GenerationRequest) -> VideoMode:
        return self.mode_table.infer(request)

    def endpoint_for(self, mode: VideoMode) -> str:
        """Submit path for `mode`; unmapped modes use the text-to-video path."""
        return self.endpoints.get(mode, self.endpoints[VideoMode.TEXT_TO_VIDEO])

    def cache_key(self, task_id: str) -> str:
        return f"{self.family}-{task_id}"

    def reference_images(self, request: GenerationRequest) -> list[str]:
        images = list(request.reference_images)
        limit = self.mode_table.max_images
        if len(images) > limit:
            logger.warning(
                "reference_images_truncated",
                provider=self.family,
                received=len(images),
                kept=limit,
            )
            images = images[:limit]
        return images

    def validate(self, request: GenerationRequest, mode: VideoMode) -> None:
        if mode in PROMPT_REQUIRED_MODES and not request.has_prompt:
            raise ValidationError(f"{self.family}: prompt is required for {mode.value}")
        if mode is VideoMode.VIDEO_EDIT and not request.reference_video:
            raise ValidationError(f"{self.family}: referenceVideo is required for {mode.value}")
        needed = {VideoMode.IMAGE_TO_VIDEO: 1, VideoMode.REFERENCE: 1, VideoMode.FIRST_LAST_FRAME: 2}
        if request.image_count < needed.get(mode, 0):
            raise ValidationError(
                f"{self.family}: {mode.value} needs {needed[mode]} reference image(s), got {request.image_count}"
            )
        if mode is VideoMode.MULTI_REFERENCE and request.image_count < 1:
            raise ValidationError(f"{self.family}: {mode.value} needs reference images")

    @abstractmethod
    def clamp_duration(self, duration: int | None) -> int | str:
        """Return the vendor's duration value for a requested number of seconds."""

    @abstractmethod
    def build_payload(self, request: GenerationRequest, mode: VideoMode) -> dict[str, Any]:
        """Return the vendor JSON body for a submission in `mode`."""

    @abstractmethod
    def decode_submission(self, response: httpx.Response) -> VendorSubmission:
        """Decode a submit response into an accepted/rejected variant."""

    @abstractmethod
    async def poll(self, task_id: str) -> TaskStatus:
        """Return the normalized status for `task_id`."""

    # -- http -------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _log_payload(self, payload: Mapping[str, Any]) -> None:
        if self._log_payloads:
            logger.debug("vendor_request_payload", provider=self.family, payload=truncate_payload(dict(payload)))

    async def submit(self, request: GenerationRequest) -> TaskHandle:
        mode = self.infer_mode(request)
        if mode not in self.endpoints:
            logger.warning("video_mode_unsupported", provider=self.family, mode=mode.value)
            mode = VideoMode.TEXT_TO_VIDEO
        self.validate(request, mode)
        payload = self.build_payload(request, mode)
        path = self.endpoint_for(mode)
        self._log_payload(payload)

        response = await self._client.post(
            f"{self._base_url}{path}",
            json=payload,
            headers=self._headers(),
            timeout=self._submit_timeout,
        )
        decoded = self.decode_submission(response)
        if isinstance(decoded, VendorRejected):
            logger.error(
                "vendor_submission_rejected",
                provider=self.family,
                mode=mode.value,
                http_status=decoded.http_status,
                message=decoded.message,
            )
            raise VendorSubmissionError(decoded.message, provider=self.family, http_status=decoded.http_status)

        logger.info("vendor_task_created", provider=self.family, mode=mode.value, task_id=decoded.task_id)
        return TaskHandle(task_id=decoded.task_id)

    async def _get_status(self, path: str) -> tuple[httpx.Response, Any]:
        response = await self._client.get(
            f"{self._base_url}{path}",
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=self._poll_timeout,
        )
        return response, parse_json_body(response)

    def _raise_poll_error(self, response: httpx.Response, body: Any) -> NoReturn:
        if response.is_success:
            raise VendorEnvelopeError(f"{self.family}: undecodable status body for HTTP {response.status_code}")
        raise VendorPollError(
            extract_error_message(response, body),
            provider=self.family,
            http_status=response.status_code,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = [
    "DEFAULT_DURATION_S",
    "MESSAGE_EXTRACTORS",
    "VendorAccepted",
    "VendorRejected",
    "VendorSubmission",
    "VideoProviderAdapter",
    "clamp",
    "extract_error_message",
    "parse_json_body",
    "strip_data_uri",
]
