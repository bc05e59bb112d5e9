"""
Buildcast - development build server

Watches a compiler, serves its in-memory output over HTTP, and pushes
build-complete notifications to connected browsers over a WebSocket.
"""

__version__ = "0.1.0"

from buildcast.core import BuildRecord, ConfigService, ConfigSnapshot, EntryInjector
from buildcast.client import ClientUpdateAgent
from buildcast.compiler import CompilerOptions, StaticCompiler
from buildcast.server import DevServer
from buildcast.store import DiskOutputStore, MemoryOutputStore

__all__ = [
    "BuildRecord",
    "ClientUpdateAgent",
    "CompilerOptions",
    "ConfigService",
    "ConfigSnapshot",
    "DevServer",
    "DiskOutputStore",
    "EntryInjector",
    "MemoryOutputStore",
    "StaticCompiler",
]
