"""Reelgate configuration module."""

from reelgate.config.provider_modes import ProviderMode, effective_video_provider_mode
from reelgate.config.settings import Settings, get_settings, reset_settings_cache, settings

__all__ = [
    "settings",
    "Settings",
    "get_settings",
    "reset_settings_cache",
    "ProviderMode",
    "effective_video_provider_mode",
]
