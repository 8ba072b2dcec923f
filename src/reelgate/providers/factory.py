"""Factory for video adapters (real vs fake)."""

from __future__ import annotations

from typing import Protocol, Union

import httpx

from reelgate.config.provider_modes import effective_video_provider_mode
from reelgate.models import VideoProvider
from reelgate.observability.logging import get_logger
from reelgate.providers.base import VideoProviderAdapter
from reelgate.providers.doubao import DoubaoAdapter
from reelgate.providers.fake import FakeVideoAdapter
from reelgate.providers.kling import KlingAdapter
from reelgate.providers.kling_o1 import KlingO1Adapter
from reelgate.providers.modes import DOUBAO_MODES, KLING_MODES, KLING_O1_MODES, VIDU_MODES
from reelgate.providers.vidu import ViduAdapter

logger = get_logger(__name__)

VideoAdapter = Union[VideoProviderAdapter, FakeVideoAdapter]

_DEV_ENVIRONMENTS = {"local", "dev", "development", "test"}

_MODE_TABLES = {
    VideoProvider.KLING: KLING_MODES,
    VideoProvider.KLING_26: KLING_MODES,
    VideoProvider.KLING_O1: KLING_O1_MODES,
    VideoProvider.VIDU: VIDU_MODES,
    VideoProvider.DOUBAO: DOUBAO_MODES,
}


class _VideoSettings(Protocol):
    environment: str
    video_provider_mode: str
    use_fake_providers: bool
    fake_video_url: str
    storage_public_base_url: str
    kling_api_key: str
    kling_base_url: str
    kling_model: str
    kling_v26_model: str
    kling_o1_api_key: str
    kling_o1_model: str
    vidu_api_key: str
    vidu_base_url: str
    vidu_text_model: str
    vidu_image_model: str
    doubao_api_key: str
    doubao_base_url: str
    doubao_model: str
    doubao_reference_model: str
    submit_timeout_s: float
    poll_timeout_s: float
    log_vendor_payloads: bool


def _fake_adapters(settings: _VideoSettings) -> dict[VideoProvider, VideoAdapter]:
    template = str(getattr(settings, "fake_video_url", "") or "").strip()
    if not template:
        base = str(settings.storage_public_base_url).rstrip("/")
        template = f"{base}/fake/{{task_id}}.mp4"
    return {
        provider: FakeVideoAdapter(family=provider.value, mode_table=table, video_url_template=template)
        for provider, table in _MODE_TABLES.items()
    }


def build_video_adapters(
    settings: _VideoSettings,
    *,
    client: httpx.AsyncClient | None = None,
) -> dict[VideoProvider, VideoAdapter]:
    """Return adapters for every provider that is usable under `settings`.

    Providers without an API key are left out; the orchestrator reports them
    as not configured. Mode "off" yields no adapters at all.
    """

    mode = effective_video_provider_mode(settings)  # type: ignore[arg-type]
    if mode == "off":
        return {}
    if mode == "fake":
        return _fake_adapters(settings)

    allow_dev_hosts = str(getattr(settings, "environment", "local")).lower() in _DEV_ENVIRONMENTS
    common = {
        "allow_dev_hosts": allow_dev_hosts,
        "client": client,
        "submit_timeout_s": settings.submit_timeout_s,
        "poll_timeout_s": settings.poll_timeout_s,
        "log_payloads": settings.log_vendor_payloads,
    }

    adapters: dict[VideoProvider, VideoAdapter] = {}
    kling_key = settings.kling_api_key
    if kling_key:
        adapters[VideoProvider.KLING] = KlingAdapter(
            api_key=kling_key, base_url=settings.kling_base_url, model_name=settings.kling_model, **common
        )
        adapters[VideoProvider.KLING_26] = KlingAdapter(
            api_key=kling_key,
            base_url=settings.kling_base_url,
            model_name=settings.kling_v26_model,
            family=VideoProvider.KLING_26.value,
            **common,
        )
    o1_key = settings.kling_o1_api_key or kling_key
    if o1_key:
        adapters[VideoProvider.KLING_O1] = KlingO1Adapter(
            api_key=o1_key, base_url=settings.kling_base_url, model_name=settings.kling_o1_model, **common
        )
    if settings.vidu_api_key:
        adapters[VideoProvider.VIDU] = ViduAdapter(
            api_key=settings.vidu_api_key,
            base_url=settings.vidu_base_url,
            text_model=settings.vidu_text_model,
            image_model=settings.vidu_image_model,
            **common,
        )
    if settings.doubao_api_key:
        adapters[VideoProvider.DOUBAO] = DoubaoAdapter(
            api_key=settings.doubao_api_key,
            base_url=settings.doubao_base_url,
            model=settings.doubao_model,
            reference_model=settings.doubao_reference_model,
            **common,
        )

    logger.info("video_adapters_built", mode=mode, providers=sorted(p.value for p in adapters))
    return adapters


__all__ = ["VideoAdapter", "build_video_adapters"]
