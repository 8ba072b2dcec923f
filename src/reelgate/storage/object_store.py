"""Object storage for relocated assets.

Two backends share one small capability (`put_stream`, `public_url`,
`allowed_hosts`):

- `LocalObjectStore` writes under a directory served at a public base URL.
- `S3ObjectStore` streams into an S3-compatible bucket with multipart uploads.

Default installs do not pull in boto3; the S3 backend needs the `s3` extra
and is only constructed when `STORAGE_BACKEND=s3`.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, AsyncIterator, Protocol
from urllib.parse import quote, urlparse

from reelgate.config import settings
from reelgate.errors import StorageError
from reelgate.observability.logging import get_logger

logger = get_logger(__name__)

# S3 multipart parts must be >= 5 MiB (except the last one).
MULTIPART_PART_SIZE = 8 * 1024 * 1024

__all__ = [
    "ObjectStore",
    "StoredObject",
    "LocalObjectStore",
    "S3ObjectStore",
    "get_object_store",
    "reset_object_store_cache",
]


@dataclass(frozen=True)
class StoredObject:
    key: str
    url: str
    size: int = 0


class ObjectStore(Protocol):
    async def put_stream(
        self,
        key: str,
        chunks: AsyncIterator[bytes],
        *,
        content_type: str = "application/octet-stream",
    ) -> StoredObject: ...

    def public_url(self, key: str) -> str: ...

    def allowed_hosts(self) -> list[str]: ...


def _normalize_key(key: str) -> str:
    key_norm = (key or "").strip().lstrip("/")
    parts = key_norm.split("/")
    if not key_norm or any(part in {"", ".", ".."} for part in parts):
        raise StorageError(f"Invalid object key: {key!r}")
    return key_norm


class LocalObjectStore:
    """Filesystem-backed store (single host / dev)."""

    def __init__(self, root: str | Path, *, public_base_url: str) -> None:
        self._root = Path(root).expanduser().resolve()
        self._public_base_url = public_base_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        candidate = (self._root / _normalize_key(key)).resolve()
        try:
            candidate.relative_to(self._root)
        except ValueError as exc:
            raise StorageError(f"Invalid object key: {key!r}") from exc
        return candidate

    async def put_stream(
        self,
        key: str,
        chunks: AsyncIterator[bytes],
        *,
        content_type: str = "application/octet-stream",
    ) -> StoredObject:
        target = self._path_for(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        size = 0
        fd, tmp_name = tempfile.mkstemp(prefix=".upload_", dir=str(target.parent))
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as tmp:
                async for chunk in chunks:
                    if chunk:
                        tmp.write(chunk)
                        size += len(chunk)
            tmp_path.replace(target)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.info("object_stored", backend="local", key=key, size=size, content_type=content_type)
        return StoredObject(key=_normalize_key(key), url=self.public_url(key), size=size)

    def public_url(self, key: str) -> str:
        return f"{self._public_base_url}/{quote(_normalize_key(key))}"

    def allowed_hosts(self) -> list[str]:
        host = urlparse(self._public_base_url).hostname
        return [host] if host else []


def _require_boto3() -> Any:
    try:
        import boto3  # type: ignore
    except ImportError as exc:  # pragma: no cover - depends on optional extra
        raise RuntimeError(
            "STORAGE_BACKEND=s3 needs boto3; install the `reelgate[s3]` extra."
        ) from exc
    return boto3


class S3ObjectStore:
    """S3-compatible bucket (AWS, Aliyun OSS, R2, MinIO)."""

    def __init__(
        self,
        *,
        bucket: str,
        region: str = "",
        endpoint_url: str = "",
        cdn_host: str = "",
        timeout_ms: int = 8000,
        client: Any | None = None,
    ) -> None:
        if not bucket:
            raise StorageError("S3 object store requires a bucket")
        self._bucket = bucket
        self._region = region
        self._endpoint_url = endpoint_url
        self._cdn_host = cdn_host.strip().rstrip("/")
        if "://" in self._cdn_host:
            self._cdn_host = urlparse(self._cdn_host).hostname or ""
        if client is None:
            boto3 = _require_boto3()
            from botocore.config import Config  # type: ignore

            timeout_s = timeout_ms / 1000.0
            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url or None,
                region_name=region or None,
                config=Config(connect_timeout=timeout_s, read_timeout=timeout_s, retries={"max_attempts": 3}),
            )
        self._client = client

    @property
    def bucket_host(self) -> str:
        if self._endpoint_url:
            endpoint_host = urlparse(self._endpoint_url).hostname or ""
            return f"{self._bucket}.{endpoint_host}"
        if self._region:
            return f"{self._bucket}.s3.{self._region}.amazonaws.com"
        return f"{self._bucket}.s3.amazonaws.com"

    def public_url(self, key: str) -> str:
        host = self._cdn_host or self.bucket_host
        return f"https://{host}/{quote(_normalize_key(key))}"

    def allowed_hosts(self) -> list[str]:
        hosts = [self.bucket_host]
        if self._cdn_host:
            hosts.append(self._cdn_host)
        return hosts

    async def put_stream(
        self,
        key: str,
        chunks: AsyncIterator[bytes],
        *,
        content_type: str = "application/octet-stream",
    ) -> StoredObject:
        key = _normalize_key(key)
        buffer = bytearray()
        parts: list[dict[str, Any]] = []
        upload_id: str | None = None
        size = 0

        async def _flush_part() -> None:
            nonlocal upload_id
            if upload_id is None:
                created = await asyncio.to_thread(
                    self._client.create_multipart_upload,
                    Bucket=self._bucket,
                    Key=key,
                    ContentType=content_type,
                )
                upload_id = str(created["UploadId"])
            part_number = len(parts) + 1
            body = bytes(buffer)
            buffer.clear()
            result = await asyncio.to_thread(
                self._client.upload_part,
                Bucket=self._bucket,
                Key=key,
                PartNumber=part_number,
                UploadId=upload_id,
                Body=body,
            )
            parts.append({"ETag": result["ETag"], "PartNumber": part_number})

        try:
            async for chunk in chunks:
                if not chunk:
                    continue
                buffer.extend(chunk)
                size += len(chunk)
                if len(buffer) >= MULTIPART_PART_SIZE:
                    await _flush_part()

            if upload_id is None:
                await asyncio.to_thread(
                    self._client.put_object,
                    Bucket=self._bucket,
                    Key=key,
                    Body=bytes(buffer),
                    ContentType=content_type,
                )
            else:
                if buffer:
                    await _flush_part()
                await asyncio.to_thread(
                    self._client.complete_multipart_upload,
                    Bucket=self._bucket,
                    Key=key,
                    UploadId=upload_id,
                    MultipartUpload={"Parts": parts},
                )
        except BaseException as exc:
            if upload_id is not None:
                try:
                    await asyncio.to_thread(
                        self._client.abort_multipart_upload,
                        Bucket=self._bucket,
                        Key=key,
                        UploadId=upload_id,
                    )
                except Exception:
                    logger.warning("multipart_abort_failed", key=key, upload_id=upload_id, exc_info=True)
            if _is_botocore_error(exc):
                raise StorageError(f"Object store upload failed: {exc}") from exc
            raise

        logger.info("object_stored", backend="s3", bucket=self._bucket, key=key, size=size, parts=len(parts))
        return StoredObject(key=key, url=self.public_url(key), size=size)


def _is_botocore_error(exc: BaseException) -> bool:
    return type(exc).__module__.startswith(("botocore", "boto3", "s3transfer"))


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    backend = str(getattr(settings, "storage_backend", "local") or "local")
    if backend == "s3":
        return S3ObjectStore(
            bucket=settings.storage_s3_bucket,
            region=settings.storage_s3_region,
            endpoint_url=settings.storage_s3_endpoint_url,
            cdn_host=settings.storage_cdn_host,
            timeout_ms=settings.storage_timeout_ms,
        )
    return LocalObjectStore(settings.storage_local_dir, public_base_url=settings.storage_public_base_url)


def reset_object_store_cache() -> None:
    get_object_store.cache_clear()
