"""Unit tests for settings parsing and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from reelgate.config import effective_video_provider_mode, get_settings, reset_settings_cache
from reelgate.config.settings import Settings


def test_allowed_proxy_hosts_comma_separated(monkeypatch) -> None:
    monkeypatch.setenv("ALLOWED_PROXY_HOSTS", " cdn.example.com, ,media.example.org ")
    reset_settings_cache()

    assert get_settings().allowed_proxy_hosts == ["cdn.example.com", "media.example.org"]


@pytest.mark.parametrize(("raw", "expected"), [(10, 1000), (8000, 8000), (999_999, 120_000), ("junk", 8000)])
def test_storage_timeout_is_clamped(raw, expected: int) -> None:
    assert Settings(storage_timeout_ms=raw).storage_timeout_ms == expected


def test_s3_backend_requires_bucket() -> None:
    with pytest.raises(PydanticValidationError, match="STORAGE_S3_BUCKET"):
        Settings(storage_backend="s3", storage_s3_bucket="")

    assert Settings(storage_backend="s3", storage_s3_bucket="media").storage_s3_bucket == "media"


@pytest.mark.parametrize(
    "overrides",
    [{"video_provider_mode": "fake"}, {"video_provider_mode": "real", "use_fake_providers": True}],
)
def test_production_forbids_fake_vendors(overrides: dict) -> None:
    with pytest.raises(PydanticValidationError, match="not allowed in production"):
        Settings(environment="production", **overrides)


def test_relocation_policy_is_validated() -> None:
    with pytest.raises(PydanticValidationError):
        Settings(relocation_host_policy="sometimes")


@pytest.mark.parametrize(
    ("mode", "use_fake", "expected"),
    [("real", False, "real"), ("real", True, "fake"), ("off", True, "off"), ("fake", False, "fake")],
)
def test_effective_video_provider_mode(mode: str, use_fake: bool, expected: str) -> None:
    settings = Settings(video_provider_mode=mode, use_fake_providers=use_fake)
    assert effective_video_provider_mode(settings) == expected


def test_settings_proxy_reads_current_settings(monkeypatch) -> None:
    from reelgate.config import settings

    monkeypatch.setenv("SUBMIT_RATE_LIMIT", "5/minute")
    reset_settings_cache()

    assert settings.submit_rate_limit == "5/minute"


def test_effective_mode_treats_unknown_values_as_real() -> None:
    from types import SimpleNamespace

    assert effective_video_provider_mode(SimpleNamespace(video_provider_mode="FAKE", use_fake_providers="no")) == "fake"
    assert effective_video_provider_mode(SimpleNamespace(video_provider_mode="bogus", use_fake_providers="yes")) == "fake"
    assert effective_video_provider_mode(SimpleNamespace(video_provider_mode="bogus", use_fake_providers=False)) == "real"
