"""Resolve which kind of video adapters the process should build.

`video_provider_mode` picks "real", "fake" or "off". `use_fake_providers`
turns "real" into "fake" and leaves "off" alone.
"""

from __future__ import annotations

from typing import Literal

from reelgate.config.settings import Settings

ProviderMode = Literal["real", "fake", "off"]

_MODES: frozenset[str] = frozenset({"real", "fake", "off"})
_TRUTHY = {"1", "true", "yes", "y", "on"}


def _as_mode(value: object) -> ProviderMode:
    """Unrecognized values resolve to "real" so a typo never silently fakes vendors."""
    lowered = str(value or "").strip().lower()
    return lowered if lowered in _MODES else "real"  # type: ignore[return-value]


def _as_flag(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in _TRUTHY


def effective_video_provider_mode(settings: Settings) -> ProviderMode:
    mode = _as_mode(getattr(settings, "video_provider_mode", "real"))
    if mode == "real" and _as_flag(getattr(settings, "use_fake_providers", False)):
        return "fake"
    return mode
