"""Fixtures for exercising the FastAPI app in-process."""

from __future__ import annotations

from typing import AsyncIterator, Callable

import httpx
import pytest

from reelgate.config.settings import Settings
from reelgate.services.runtime import VideoServices, build_video_services

CLIP = b"reelgate-clip-bytes:" + bytes(range(48))


async def _chunks(data: bytes) -> AsyncIterator[bytes]:
    for start in range(0, len(data), 16):
        yield data[start : start + 16]


def _upstream(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/private.mp4":
        return httpx.Response(403, content=_chunks(b"denied"), headers={"Content-Type": "text/plain"})

    range_header = request.headers.get("Range")
    if range_header and range_header.startswith("bytes="):
        first, _, last = range_header[len("bytes=") :].partition("-")
        start, end = int(first), int(last) if last else len(CLIP) - 1
        body = CLIP[start : end + 1]
        return httpx.Response(
            206,
            content=_chunks(body),
            headers={
                "Content-Type": "video/mp4",
                "Content-Length": str(len(body)),
                "Content-Range": f"bytes {start}-{end}/{len(CLIP)}",
                "Accept-Ranges": "bytes",
                "Set-Cookie": "upstream=1",
            },
        )
    return httpx.Response(
        200,
        content=_chunks(CLIP),
        headers={
            "Content-Type": "video/mp4",
            "Content-Length": str(len(CLIP)),
            "Accept-Ranges": "bytes",
        },
    )


@pytest.fixture
def upstream_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_services(memory_store, upstream_requests) -> Callable[..., VideoServices]:
    """Build a fake-mode service bundle whose upstream fetches never leave the process."""

    def handler(request: httpx.Request) -> httpx.Response:
        upstream_requests.append(request)
        return _upstream(request)

    def _make(**overrides) -> VideoServices:
        values = {
            "video_provider_mode": "fake",
            "storage_public_base_url": memory_store.base_url,
            "allowed_proxy_hosts": ["cdn.example"],
        }
        values.update(overrides)
        return build_video_services(
            Settings(**values),
            store=memory_store,
            upstream_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    return _make


@pytest.fixture
async def api_client(make_services):
    """httpx AsyncClient wired to the FastAPI app with lifespan enabled."""
    from httpx import ASGITransport, AsyncClient

    from reelgate.api.server import app

    services = make_services()
    app.state.video_services = services
    try:
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
    finally:
        app.state.video_services = None
        await services.aclose()


@pytest.fixture
def clip_bytes() -> bytes:
    return CLIP
