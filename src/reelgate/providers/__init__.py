"""Vendor video adapters."""

from reelgate.providers.base import VideoProviderAdapter, extract_error_message
from reelgate.providers.doubao import DoubaoAdapter
from reelgate.providers.factory import VideoAdapter, build_video_adapters
from reelgate.providers.fake import FakeVideoAdapter
from reelgate.providers.kling import KlingAdapter
from reelgate.providers.kling_o1 import KlingO1Adapter
from reelgate.providers.vidu import ViduAdapter

__all__ = [
    "VideoProviderAdapter",
    "VideoAdapter",
    "build_video_adapters",
    "extract_error_message",
    "DoubaoAdapter",
    "FakeVideoAdapter",
    "KlingAdapter",
    "KlingO1Adapter",
    "ViduAdapter",
]
