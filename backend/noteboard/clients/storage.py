"""
NoteBoard Backend - Blob Storage Client
=======================================

What:  httpx implementation of StorageClient for note images.
How:   Object paths are scoped by the caller's storage identity, which the
       platform supplies (GET /identity) and which is cached per session.

Endpoints (relative to PLATFORM_STORAGE_URL):
    GET    /identity            → {"identityId": "..."}
    PUT    /objects/{path}      raw bytes → {"path": "..."}
    POST   /signed-urls         {"path", "expiresIn"} → {"url": "..."}
    DELETE /objects/{path}
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from noteboard.clients.base import PathResolver, StorageClient
from noteboard.clients.transport import PlatformTransport
from noteboard.config import settings
from noteboard.exceptions import StorageError

logger = logging.getLogger(__name__)


class HttpStorageClient(StorageClient):
    """Session-bound blob storage over the platform's REST storage API."""

    def __init__(self, transport: PlatformTransport):
        self.transport = transport
        self._identity_id: Optional[str] = None

    async def identity_id(self) -> str:
        """The session's storage identity, fetched once and then cached."""
        if self._identity_id is None:
            payload = await self.transport.request(
                "GET",
                "identity",
                operation="resolve the storage identity",
            )
            identity = self._as_object(payload, "resolve the storage identity").get("identityId")
            if not identity:
                raise StorageError(message="The storage service did not return an identity.")
            self._identity_id = str(identity)
        return self._identity_id

    async def upload(
        self,
        path: PathResolver,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        target = path(await self.identity_id())
        payload = await self.transport.request(
            "PUT",
            f"objects/{quote(target, safe='/')}",
            content=data,
            headers={"Content-Type": content_type or "application/octet-stream"},
            operation="upload the image",
        )
        stored_path = self._as_object(payload, "upload the image").get("path") or target
        logger.info("Uploaded %d bytes to %s", len(data), stored_path)
        return stored_path

    async def get_signed_url(self, path: str) -> str:
        payload = await self.transport.request(
            "POST",
            "signed-urls",
            json={"path": path, "expiresIn": settings.signed_url_expires_in},
            operation="resolve the image URL",
        )
        url = self._as_object(payload, "resolve the image URL").get("url")
        if not url:
            raise StorageError(
                message="The storage service did not return an image URL.",
                context={"path": path},
            )
        return str(url)

    async def remove(self, path: str) -> None:
        await self.transport.request(
            "DELETE",
            f"objects/{quote(path, safe='/')}",
            operation="remove the image",
        )
        logger.info("Removed blob %s", path)

    @staticmethod
    def _as_object(payload: Any, operation: str) -> Dict[str, Any]:
        """The response body as a dict; an empty body counts as {}."""
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise StorageError(
                message=f"The storage service sent an unexpected response to {operation}.",
                context={"operation": operation, "payload_type": type(payload).__name__},
            )
        return payload
