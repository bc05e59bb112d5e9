"""
Modules wired by the dev server, grouped by responsibility.
"""

from .compiler.watch_bridge import CompilerWatchBridge
from .server.dev_http import DevHttpServer
from .server.notification_hub import NotificationHub

__all__ = ["CompilerWatchBridge", "DevHttpServer", "NotificationHub"]
