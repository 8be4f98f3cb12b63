"""YouTube Data API gateway."""

from plugins.gateways.youtube.client import YouTubeGateway

__all__ = ["YouTubeGateway"]
