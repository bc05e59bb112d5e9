"""
Serve compiled assets straight from the shared output store.
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass, field

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse

from ...core.errors import NotFoundError
from ...store import OutputStore, normalize_path

logger = logging.getLogger(__name__)

FAVICON_PATH = "favicon.ico"
INDEX_PATH = "/index.html"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@dataclass(frozen=True)
class AssetResponse:
    status_code: int
    body: bytes = b""
    content_type: str | None = None
    store_path: str | None = field(default=None, compare=False)

    @property
    def found(self) -> bool:
        return self.status_code == 200


NOT_FOUND = AssetResponse(status_code=404)


def content_type_for(path: str) -> str:
    """Extension-based MIME lookup."""
    guessed, _encoding = mimetypes.guess_type(path, strict=False)
    return guessed or DEFAULT_CONTENT_TYPE


class AssetMiddleware:
    """
    Resolve request paths against the output store.

    Every request re-reads the store; there is no conditional caching, no
    directory listing and no index fallback inside directories.
    """

    def __init__(self, store: OutputStore, static_root: str) -> None:
        self._store = store
        self._static_root = normalize_path(static_root)

    @property
    def store(self) -> OutputStore:
        return self._store

    @property
    def static_root(self) -> str:
        return self._static_root

    def resolve(self, url_path: str) -> AssetResponse:
        if url_path.lstrip("/") == FAVICON_PATH:
            return NOT_FOUND
        if url_path == "/":
            url_path = INDEX_PATH
        store_path = self._store.join(self._static_root, url_path)
        if not self._within_root(store_path):
            logger.debug("Rejecting %s outside static root %s", url_path, self._static_root)
            return NOT_FOUND
        try:
            stat = self._store.stat(store_path)
            if not stat.is_file:
                return NOT_FOUND
            body = self._store.read_file(store_path)
        except NotFoundError:
            return NOT_FOUND
        return AssetResponse(
            status_code=200,
            body=body,
            content_type=content_type_for(store_path),
            store_path=store_path,
        )

    async def __call__(self, request: Request) -> Response:
        asset = self.resolve(request.url.path)
        if not asset.found:
            return PlainTextResponse("Not Found", status_code=404)
        return Response(content=asset.body, media_type=asset.content_type)

    def _within_root(self, store_path: str) -> bool:
        root = self._static_root
        if root == "/":
            return True
        return store_path == root or store_path.startswith(root + "/")


__all__ = ["ALL_METHODS", "AssetMiddleware", "AssetResponse", "content_type_for"]
