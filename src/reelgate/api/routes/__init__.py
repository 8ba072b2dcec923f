"""API route modules."""

from reelgate.api.routes import assets, health, metrics, videos

__all__ = ["assets", "health", "metrics", "videos"]
