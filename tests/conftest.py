"""Pytest configuration and shared fixtures."""

import os
import sys
import tempfile
from pathlib import Path
from typing import AsyncIterator

import httpx
import pytest

# Ensure source tree is importable without editable install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

STORE_BASE_URL = "http://localhost:8000/static"


def pytest_configure(config):
    """Configure pytest environment for tests."""

    # These MUST override any developer shell/.env values to keep the test run deterministic.
    os.environ["ENVIRONMENT"] = "test"
    os.environ["VIDEO_PROVIDER_MODE"] = "real"
    os.environ["USE_FAKE_PROVIDERS"] = "false"
    os.environ["STORAGE_BACKEND"] = "local"
    os.environ["STORAGE_PUBLIC_BASE_URL"] = STORE_BASE_URL
    os.environ["STORAGE_LOCAL_DIR"] = tempfile.mkdtemp(prefix="reelgate_test_store_")
    os.environ["RELOCATION_HOST_POLICY"] = "reject"
    os.environ["ALLOWED_PROXY_HOSTS"] = ""
    os.environ["SENTRY_DSN"] = ""
    os.environ["DISABLE_SENTRY"] = "true"
    for key in ("KLING_API_KEY", "KLING_O1_API_KEY", "VIDU_API_KEY", "DOUBAO_API_KEY"):
        os.environ[key] = ""


@pytest.fixture(autouse=True)
def block_external_http(monkeypatch):
    """Fail the fast lane if code tries to hit the public internet.

    Clients built on `httpx.MockTransport` or `httpx.ASGITransport` never leave
    the process and are exempt. Otherwise only loopback/test hosts are allowed.
    """

    allowed_hosts = {"test", "testserver", "localhost", "127.0.0.1", "0.0.0.0"}
    in_process = (httpx.MockTransport, httpx.ASGITransport)

    async def _async_guard(self, request, *args, **kwargs):  # type: ignore[no-untyped-def]
        if not isinstance(getattr(self, "_transport", None), in_process):
            u = request.url
            if u.scheme in {"http", "https"} and (u.host or "") not in allowed_hosts:
                raise RuntimeError(f"External HTTP blocked in tests: {u!s}")
        return await _orig_async_send(self, request, *args, **kwargs)

    def _sync_guard(self, request, *args, **kwargs):  # type: ignore[no-untyped-def]
        if not isinstance(getattr(self, "_transport", None), in_process):
            u = request.url
            if u.scheme in {"http", "https"} and (u.host or "") not in allowed_hosts:
                raise RuntimeError(f"External HTTP blocked in tests: {u!s}")
        return _orig_sync_send(self, request, *args, **kwargs)

    _orig_async_send = httpx.AsyncClient.send
    _orig_sync_send = httpx.Client.send
    monkeypatch.setattr(httpx.AsyncClient, "send", _async_guard, raising=True)
    monkeypatch.setattr(httpx.Client, "send", _sync_guard, raising=True)

    yield


@pytest.fixture(autouse=True)
def reset_cached_singletons():
    """Settings and the object store are lru-cached; rebuild them per test."""
    from reelgate.config import reset_settings_cache
    from reelgate.storage.object_store import reset_object_store_cache

    reset_settings_cache()
    reset_object_store_cache()
    yield
    reset_settings_cache()
    reset_object_store_cache()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Reset rate limiter state between tests to avoid collision."""
    from reelgate.api.rate_limit import limiter

    def _clear() -> None:
        if hasattr(limiter, "_limiter") and limiter._limiter:
            storage = limiter._limiter.storage
            if hasattr(storage, "reset"):
                storage.reset()
            elif hasattr(storage, "storage"):
                storage.storage.clear()

    _clear()
    yield
    _clear()


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio tests on asyncio (asyncio.timeout is used by the orchestrator)."""
    return "asyncio"


class MemoryObjectStore:
    """In-memory object store that records every upload."""

    def __init__(self, base_url: str = "https://media.reelgate.test") -> None:
        self.base_url = base_url.rstrip("/")
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.put_calls = 0

    async def put_stream(
        self,
        key: str,
        chunks: AsyncIterator[bytes],
        *,
        content_type: str = "application/octet-stream",
    ):
        from reelgate.storage.object_store import StoredObject

        self.put_calls += 1
        data = bytearray()
        async for chunk in chunks:
            data.extend(chunk)
        self.objects[key] = bytes(data)
        self.content_types[key] = content_type
        return StoredObject(key=key, url=self.public_url(key), size=len(data))

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def allowed_hosts(self) -> list[str]:
        return [httpx.URL(self.base_url).host]


@pytest.fixture
def memory_store() -> MemoryObjectStore:
    return MemoryObjectStore()
