"""Application settings using Pydantic."""

import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

STORAGE_TIMEOUT_MIN_MS = 1_000
STORAGE_TIMEOUT_MAX_MS = 120_000


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(
        default=os.getenv("ENVIRONMENT", "development"),
        description="Deployment environment (local|development|test|production)",
    )

    # API Configuration
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Provider modes
    video_provider_mode: Literal["real", "fake", "off"] = Field(
        default="real",
        description="Video vendors: real=call vendor APIs, fake=deterministic local stubs, off=disable.",
    )
    use_fake_providers: bool = Field(
        default=False,
        description=(
            "Convenience switch: treat all providers as fake in dev/tests. "
            "This overrides per-provider modes when set to true (off still disables)."
        ),
    )
    fake_video_url: str = Field(
        default="",
        description="Asset URL returned by the fake provider for succeeded tasks.",
    )

    # Vendor credentials / endpoints
    kling_api_key: str = ""
    kling_base_url: str = "https://models.kapon.cloud/kling"
    kling_model: str = "kling-v1-6"
    kling_v26_model: str = "kling-v2-6"
    kling_o1_api_key: str = Field(
        default="",
        description="Optional dedicated key for Kling O1; falls back to KLING_API_KEY.",
    )
    kling_o1_model: str = "kling-video-o1"
    vidu_api_key: str = ""
    vidu_base_url: str = "https://models.kapon.cloud/vidu"
    vidu_text_model: str = "viduq2"
    vidu_image_model: str = "viduq2-turbo"
    doubao_api_key: str = ""
    doubao_base_url: str = "https://ark.cn-beijing.volces.com"
    doubao_model: str = "doubao-seedance-1-5-pro-251215"
    doubao_reference_model: str = "doubao-seedance-1-0-lite-i2v-250428"

    # Timeouts (seconds)
    submit_timeout_s: float = Field(
        default=300.0,
        description="Deadline for vendor task submission (vendor acceptance can be slow).",
    )
    poll_timeout_s: float = Field(
        default=30.0,
        description="Deadline for a single vendor status poll.",
    )
    relocation_fetch_timeout_s: float = Field(
        default=120.0,
        description="Connect/read timeout for upstream asset fetches.",
    )

    # Egress allowlist / relocation
    allowed_proxy_hosts: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Extra hosts allowed for relocation and proxying. Env var is comma-separated.",
    )
    relocation_host_policy: Literal["reject", "passthrough"] = Field(
        default="reject",
        description=(
            "What relocation does with a non-allowlisted host. "
            "reject=raise host_not_allowed, passthrough=return the vendor URL and log a warning."
        ),
    )
    relocation_key_prefix: str = Field(
        default="videos",
        description="Object key prefix for relocated vendor assets.",
    )

    # Object storage
    storage_backend: Literal["local", "s3"] = Field(
        default="local",
        description="local=write under STORAGE_LOCAL_DIR, s3=multipart upload to an S3-compatible bucket.",
    )
    storage_local_dir: str = Field(
        default=str(Path(tempfile.gettempdir()) / "reelgate_assets"),
        description="Filesystem root for STORAGE_BACKEND=local.",
    )
    storage_public_base_url: str = Field(
        default="http://localhost:8000/static",
        description="Public base URL that serves STORAGE_LOCAL_DIR.",
    )
    storage_s3_bucket: str = ""
    storage_s3_region: str = ""
    storage_s3_endpoint_url: str = Field(
        default="",
        description="Optional S3 endpoint URL for S3-compatible stores (e.g., OSS/R2/MinIO).",
    )
    storage_cdn_host: str = Field(
        default="",
        description="Optional CDN host used for public URLs instead of the bucket host.",
    )
    storage_timeout_ms: int = Field(
        default=8000,
        description="Object store connect/read timeout in milliseconds (clamped to 1000-120000).",
    )

    # Proxy
    proxy_default_cache_control: str = "public, max-age=3600"
    proxy_streaming_enabled: bool = Field(
        default=True,
        description="Stream proxied bodies. Disable only where the runtime cannot stream.",
    )

    # Rate limits (SlowAPI syntax). Defaults tuned for dev; override per env.
    submit_rate_limit: str = Field(
        default="30/minute",
        description="Rate limit for POST /v1/videos (SlowAPI syntax)",
    )
    proxy_rate_limit: str = Field(
        default="300/minute",
        description="Rate limit for /v1/assets/proxy (SlowAPI syntax)",
    )

    # Observability / Alerting
    sentry_dsn: str = Field(
        default="",
        description="Sentry DSN for error monitoring. Leave empty to disable.",
    )
    log_level: str = "INFO"
    log_vendor_payloads: bool = Field(
        default=True,
        description="Log truncated vendor request payloads at debug level.",
    )

    @field_validator("allowed_proxy_hosts", mode="before")
    @classmethod
    def _split_allowed_proxy_hosts(cls, v: Any) -> list[str]:
        if v is None or v == "":
            return []
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return list(v)

    @field_validator("storage_timeout_ms", mode="before")
    @classmethod
    def _clamp_storage_timeout(cls, v: Any) -> int:
        try:
            value = int(v)
        except (TypeError, ValueError):
            return 8000
        return max(STORAGE_TIMEOUT_MIN_MS, min(STORAGE_TIMEOUT_MAX_MS, value))

    @model_validator(mode="after")
    def validate_storage(self) -> "Settings":
        if self.storage_backend == "s3" and not self.storage_s3_bucket:
            raise ValueError(
                "STORAGE_S3_BUCKET is required when STORAGE_BACKEND=s3. "
                "Either set a bucket or use STORAGE_BACKEND=local."
            )
        return self

    @model_validator(mode="after")
    def validate_fake_providers_for_production(self) -> "Settings":
        """Fake vendor stubs must never serve production traffic."""
        mode = "fake" if (self.use_fake_providers and self.video_provider_mode == "real") else self.video_provider_mode
        if self.environment == "production" and mode == "fake":
            raise ValueError(
                "VIDEO_PROVIDER_MODE=fake (or USE_FAKE_PROVIDERS=true) is not allowed in production."
            )
        return self


# Global settings instance
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Lazily construct Settings so tests and CLIs can set env vars before first access.
    return Settings()


def reset_settings_cache() -> None:
    get_settings.cache_clear()


class _SettingsProxy:
    """Lazy proxy for Settings.

    This avoids eager settings instantiation at import time, which can make tests
    order-dependent when env vars are changed during `pytest_configure()`.
    """

    def __getattr__(self, name: str) -> Any:
        return getattr(get_settings(), name)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<SettingsProxy {get_settings()!r}>"


settings = _SettingsProxy()
