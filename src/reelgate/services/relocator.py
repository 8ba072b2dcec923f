"""Relocate vendor-hosted assets into the service's own object store."""

from __future__ import annotations

import time
from typing import AsyncIterator, Callable, Literal
from urllib.parse import urlsplit

import httpx

from reelgate.errors import HostNotAllowedError, InvalidAssetUrlError, UpstreamFetchError
from reelgate.observability.logging import get_logger
from reelgate.observability.metrics import RELOCATION_DURATION, RELOCATIONS
from reelgate.security.host_allowlist import HostAllowlist, normalize_host_entry
from reelgate.services.upstream import open_upstream
from reelgate.storage.object_store import ObjectStore
from reelgate.storage.relocation_cache import RelocationCache

logger = get_logger(__name__)

RelocationPolicy = Literal["reject", "passthrough"]

DEFAULT_EXTENSION = "mp4"
_CONTENT_TYPE_EXTENSIONS = {
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/webm": "webm",
    "video/x-matroska": "mkv",
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def extension_for(content_type: str | None) -> str:
    """File extension for a Content-Type header; mp4 when absent or unknown."""
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    return _CONTENT_TYPE_EXTENSIONS.get(mime, DEFAULT_EXTENSION)


class AssetRelocator:
    """Copies an upstream asset into the object store at most once per task."""

    def __init__(
        self,
        *,
        store: ObjectStore,
        allowlist: HostAllowlist,
        cache: RelocationCache | None = None,
        client: httpx.AsyncClient | None = None,
        policy: RelocationPolicy = "reject",
        key_prefix: str = "videos",
        fetch_timeout_s: float = 120.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._allowlist = allowlist
        self._cache = cache if cache is not None else RelocationCache()
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(fetch_timeout_s, connect=10.0))
        self._policy = policy
        self._key_prefix = key_prefix.strip("/")
        self._clock = clock
        self._store_hosts = frozenset(normalize_host_entry(h) for h in store.allowed_hosts() if h)

    @property
    def cache(self) -> RelocationCache:
        return self._cache

    def object_key(self, provider: str, task_id: str, content_type: str | None) -> str:
        timestamp_ms = int(self._clock() * 1000)
        name = f"{provider}/{task_id}/{timestamp_ms}.{extension_for(content_type)}"
        return f"{self._key_prefix}/{name}" if self._key_prefix else name

    async def relocate(
        self,
        upstream_url: str,
        task_id: str,
        *,
        provider: str = "asset",
        cache_key: str | None = None,
    ) -> str:
        key = cache_key or f"{provider}-{task_id}"
        cached = self._cache.get(key)
        if cached:
            RELOCATIONS.labels(outcome="cached").inc()
            return cached

        parts = urlsplit(upstream_url)
        if parts.scheme.lower() not in {"http", "https"} or not parts.hostname:
            raise InvalidAssetUrlError(f"Cannot relocate non-http(s) URL for task {task_id}")
        host = normalize_host_entry(parts.hostname)

        if host in self._store_hosts:
            return upstream_url

        if not self._allowlist.is_allowed(host):
            if self._policy == "passthrough":
                logger.warning("relocation_host_passthrough", host=host, task_id=task_id, provider=provider)
                RELOCATIONS.labels(outcome="passthrough").inc()
                return upstream_url
            RELOCATIONS.labels(outcome="rejected").inc()
            raise HostNotAllowedError(host, component="relocation")

        async with self._cache.claim(key) as claim:
            if claim.url:
                RELOCATIONS.labels(outcome="cached").inc()
                return claim.url
            started = time.perf_counter()
            try:
                url = await self._transfer(upstream_url, task_id, provider)
            except Exception:
                RELOCATIONS.labels(outcome="failed").inc()
                raise
            RELOCATION_DURATION.observe(time.perf_counter() - started)
            RELOCATIONS.labels(outcome="uploaded").inc()
            return claim.commit(url)

    async def _transfer(self, upstream_url: str, task_id: str, provider: str) -> str:
        response = await open_upstream(
            self._client,
            upstream_url,
            allowlist=self._allowlist,
            component="relocation",
        )
        try:
            if not response.is_success:
                raise UpstreamFetchError(f"Upstream returned HTTP {response.status_code} for task {task_id}")

            iterator = response.aiter_bytes()
            first = b""
            try:
                while not first:
                    first = await anext(iterator)
            except StopAsyncIteration:
                raise UpstreamFetchError(f"Upstream returned an empty body for task {task_id}") from None

            async def _body() -> AsyncIterator[bytes]:
                yield first
                async for chunk in iterator:
                    yield chunk

            content_type = response.headers.get("content-type")
            key = self.object_key(provider, task_id, content_type)
            stored = await self._store.put_stream(
                key,
                _body(),
                content_type=(content_type or "video/mp4").split(";", 1)[0].strip(),
            )
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"Upstream read failed for task {task_id}: {exc}") from exc
        finally:
            await response.aclose()

        logger.info(
            "relocation_complete",
            provider=provider,
            task_id=task_id,
            key=stored.key,
            size=stored.size,
        )
        return stored.url

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["AssetRelocator", "RelocationPolicy", "extension_for"]
