"""HTTP and live-update modules."""

from .asset_middleware import AssetMiddleware, AssetResponse
from .dev_http import DevHttpServer
from .notification_hub import Channel, NotificationHub, QueueChannel

__all__ = [
    "AssetMiddleware",
    "AssetResponse",
    "Channel",
    "DevHttpServer",
    "NotificationHub",
    "QueueChannel",
]
