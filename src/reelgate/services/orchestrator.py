"""Task orchestrator: one submit/poll surface over every video vendor."""

from __future__ import annotations

import asyncio
from typing import Mapping, cast
from urllib.parse import urlsplit

import httpx

from reelgate.errors import (
    DomainError,
    ProviderNotConfiguredError,
    SubmissionTimeoutError,
    UnsupportedProviderError,
    ValidationError,
    VendorNetworkError,
)
from reelgate.models import GenerationRequest, TaskHandle, TaskState, TaskStatus, VideoProvider
from reelgate.observability.logging import get_logger
from reelgate.observability.metrics import VIDEO_TASK_POLLS, VIDEO_TASKS_SUBMITTED
from reelgate.providers.factory import VideoAdapter
from reelgate.resilience.transient import DEFAULT_CLASSIFIER, TransientErrorClassifier
from reelgate.security.host_allowlist import HostAllowlist
from reelgate.services.relocator import AssetRelocator

logger = get_logger(__name__)


def resolve_provider(provider: str | VideoProvider) -> VideoProvider:
    if isinstance(provider, VideoProvider):
        return provider
    value = str(provider or "").strip().lower()
    try:
        return VideoProvider(value)
    except ValueError:
        supported = ", ".join(p.value for p in VideoProvider)
        raise UnsupportedProviderError(f"Unsupported provider '{provider}'. Supported: {supported}") from None


class TaskOrchestrator:
    """Dispatches to vendor adapters and relocates finished videos.

    Submission is strict: timeouts and network failures surface to the caller.
    Polling is lenient: whatever the classifier deems transient reads as
    `processing`. A `succeeded` status is only returned once its video has
    been relocated.
    """

    def __init__(
        self,
        *,
        adapters: Mapping[VideoProvider, VideoAdapter],
        relocator: AssetRelocator,
        allowlist: HostAllowlist,
        classifier: TransientErrorClassifier = DEFAULT_CLASSIFIER,
        submit_timeout_s: float = 300.0,
        poll_timeout_s: float = 30.0,
    ) -> None:
        self._adapters = dict(adapters)
        self._relocator = relocator
        self._allowlist = allowlist
        self._classifier = classifier
        self._submit_timeout_s = submit_timeout_s
        self._poll_timeout_s = poll_timeout_s

    @property
    def configured_providers(self) -> list[VideoProvider]:
        return sorted(self._adapters, key=lambda p: p.value)

    def adapter_for(self, provider: str | VideoProvider) -> VideoAdapter:
        resolved = resolve_provider(provider)
        adapter = self._adapters.get(resolved)
        if adapter is None:
            raise ProviderNotConfiguredError(f"{resolved.value} API key is not configured")
        return adapter

    async def submit(self, request: GenerationRequest) -> TaskHandle:
        provider = resolve_provider(request.provider)
        adapter = self.adapter_for(provider)
        logger.info(
            "video_task_submit",
            provider=provider.value,
            images=request.image_count,
            has_prompt=request.has_prompt,
            prompt_preview=request.prompt[:50],
        )
        try:
            async with asyncio.timeout(self._submit_timeout_s):
                handle = await adapter.submit(request)
        except (TimeoutError, httpx.TimeoutException) as exc:
            VIDEO_TASKS_SUBMITTED.labels(provider=provider.value, outcome="timeout").inc()
            logger.error("video_task_submit_timeout", provider=provider.value, timeout_s=self._submit_timeout_s)
            raise SubmissionTimeoutError() from exc
        except httpx.TransportError as exc:
            VIDEO_TASKS_SUBMITTED.labels(provider=provider.value, outcome="network_error").inc()
            logger.error("video_task_submit_network_error", provider=provider.value, error=str(exc))
            raise VendorNetworkError(f"{provider.value}: network error during submission: {exc}") from exc
        except DomainError as exc:
            VIDEO_TASKS_SUBMITTED.labels(provider=provider.value, outcome=exc.error).inc()
            raise

        VIDEO_TASKS_SUBMITTED.labels(provider=provider.value, outcome="queued").inc()
        logger.info("video_task_submitted", provider=provider.value, task_id=handle.task_id)
        return handle

    async def poll(self, provider: str | VideoProvider, task_id: str) -> TaskStatus:
        resolved = resolve_provider(provider)
        task_id = (task_id or "").strip()
        if not task_id:
            raise ValidationError("taskId is required")
        adapter = self.adapter_for(resolved)

        try:
            async with asyncio.timeout(self._poll_timeout_s):
                status = await adapter.poll(task_id)
        except Exception as exc:
            if not self._classifier.is_transient(exc):
                raise
            logger.warning(
                "video_task_poll_transient",
                provider=resolved.value,
                task_id=task_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            status = TaskStatus.processing()

        if status.status is TaskState.SUCCEEDED:
            status = await self._relocate(resolved, adapter, task_id, status)

        VIDEO_TASK_POLLS.labels(provider=resolved.value, status=status.status.value).inc()
        return status

    async def _relocate(
        self,
        provider: VideoProvider,
        adapter: VideoAdapter,
        task_id: str,
        status: TaskStatus,
    ) -> TaskStatus:
        # TaskStatus guarantees a URL on success.
        upstream_url = cast(str, status.video_url)
        video_url = await self._relocator.relocate(
            upstream_url,
            task_id,
            provider=provider.value,
            cache_key=adapter.cache_key(task_id),
        )
        return TaskStatus.succeeded(video_url, thumbnail_url=self._trusted_thumbnail(status.thumbnail_url))

    def _trusted_thumbnail(self, url: str | None) -> str | None:
        if not url:
            return None
        parts = urlsplit(url)
        if parts.scheme in {"http", "https"} and self._allowlist.is_allowed(parts.hostname):
            return url
        logger.debug("thumbnail_dropped", host=parts.hostname)
        return None

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()


__all__ = ["TaskOrchestrator", "resolve_provider"]
