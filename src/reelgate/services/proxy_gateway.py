"""Streaming reverse proxy for relocated (or otherwise trusted) assets."""

from __future__ import annotations

from typing import AsyncIterator, Mapping

import httpx

from reelgate.errors import DomainError, ValidationError
from reelgate.observability.logging import get_logger
from reelgate.observability.metrics import PROXY_REQUESTS
from reelgate.security.host_allowlist import HostAllowlist
from reelgate.services.upstream import MAX_REDIRECTS, open_upstream
from reelgate.storage.object_store import ObjectStore

logger = get_logger(__name__)

FORWARDED_REQUEST_HEADERS = ("range", "if-none-match", "if-modified-since")
FORWARDED_RESPONSE_HEADERS = (
    "content-type",
    "content-length",
    "content-range",
    "accept-ranges",
    "etag",
    "last-modified",
    "cache-control",
    "content-disposition",
)
DEFAULT_CACHE_CONTROL = "public, max-age=3600"
NO_STORE = "no-store"

_HEADER_NAMES = {
    "content-type": "Content-Type",
    "content-length": "Content-Length",
    "content-range": "Content-Range",
    "accept-ranges": "Accept-Ranges",
    "etag": "ETag",
    "last-modified": "Last-Modified",
    "cache-control": "Cache-Control",
    "content-disposition": "Content-Disposition",
    "range": "Range",
    "if-none-match": "If-None-Match",
    "if-modified-since": "If-Modified-Since",
}


def filter_request_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    lowered = {str(k).lower(): v for k, v in (headers or {}).items()}
    return {_HEADER_NAMES[name]: lowered[name] for name in FORWARDED_REQUEST_HEADERS if lowered.get(name)}


def filter_response_headers(
    upstream: httpx.Headers,
    status_code: int,
    *,
    default_cache_control: str = DEFAULT_CACHE_CONTROL,
) -> dict[str, str]:
    headers = {
        _HEADER_NAMES[name]: upstream[name] for name in FORWARDED_RESPONSE_HEADERS if name in upstream
    }
    if 200 <= status_code < 300:
        headers.setdefault("Cache-Control", default_cache_control)
    else:
        # Never let a transient upstream error be cached as the asset.
        headers["Cache-Control"] = NO_STORE
    return headers


class ProxiedResponse:
    """Upstream status, whitelisted headers and a body that closes upstream when done."""

    def __init__(self, upstream: httpx.Response, headers: dict[str, str]) -> None:
        self._upstream = upstream
        self.status_code = upstream.status_code
        self.headers = headers
        self._closed = False

    @property
    def media_type(self) -> str | None:
        return self.headers.get("Content-Type")

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield the raw upstream body.

        Closing the generator (client disconnect, cancellation) closes the
        upstream response and releases its connection.
        """
        try:
            async for chunk in self._upstream.aiter_raw():
                yield chunk
        finally:
            await self.aclose()

    async def read(self) -> bytes:
        """Buffer the whole body; fallback for runtimes that cannot stream."""
        try:
            return await self._upstream.aread()
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await self._upstream.aclose()

    @property
    def closed(self) -> bool:
        return self._closed


class ProxyGateway:
    def __init__(
        self,
        *,
        allowlist: HostAllowlist,
        store: ObjectStore | None = None,
        client: httpx.AsyncClient | None = None,
        default_cache_control: str = DEFAULT_CACHE_CONTROL,
        max_redirects: int = MAX_REDIRECTS,
    ) -> None:
        self._allowlist = allowlist
        self._store = store
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(30.0, read=120.0))
        self._default_cache_control = default_cache_control
        self._max_redirects = max_redirects

    def resolve_target(self, url: str | None = None, key: str | None = None) -> str:
        url = (url or "").strip()
        key = (key or "").strip()
        if bool(url) == bool(key):
            raise ValidationError("Exactly one of 'url' or 'key' must be provided")
        if key:
            if self._store is None:
                raise ValidationError("Storage keys cannot be proxied without an object store")
            return self._store.public_url(key)
        return url

    async def open(
        self,
        *,
        url: str | None = None,
        key: str | None = None,
        request_headers: Mapping[str, str] | None = None,
    ) -> ProxiedResponse:
        target = self.resolve_target(url, key)
        forwarded = filter_request_headers(request_headers)
        try:
            upstream = await open_upstream(
                self._client,
                target,
                allowlist=self._allowlist,
                headers=forwarded,
                component="asset proxy",
                max_redirects=self._max_redirects,
            )
        except DomainError as exc:
            PROXY_REQUESTS.labels(outcome=exc.error).inc()
            logger.warning("proxy_rejected", error=exc.error, detail=str(exc))
            raise

        headers = filter_response_headers(
            upstream.headers,
            upstream.status_code,
            default_cache_control=self._default_cache_control,
        )
        outcome = "ok" if upstream.is_success else "upstream_status"
        PROXY_REQUESTS.labels(outcome=outcome).inc()
        logger.info(
            "proxy_opened",
            status=upstream.status_code,
            host=upstream.url.host,
            ranged="Range" in forwarded,
        )
        return ProxiedResponse(upstream, headers)

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = [
    "DEFAULT_CACHE_CONTROL",
    "FORWARDED_REQUEST_HEADERS",
    "FORWARDED_RESPONSE_HEADERS",
    "NO_STORE",
    "ProxiedResponse",
    "ProxyGateway",
    "filter_request_headers",
    "filter_response_headers",
]
