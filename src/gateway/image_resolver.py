# src/gateway/image_resolver.py — v1
"""Resolve an image reference to bytes.

Direct URLs and pre-signed download URLs are fetched as-is; a bare storage
path is checked for existence and fetched through a short-lived signed URL.
"""

from __future__ import annotations

import logging

import httpx

from stowvision.core.errors import ImageFetchFailed, ImageNotFound
from stowvision.core.models import ImageRef, UrlImageRef, VisionImageInput
from stowvision.storage.base_object_storage import BaseObjectStorage

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"


class ImageResolver:
    """Fetches image bytes for one categorization request."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        storage: BaseObjectStorage,
        signed_url_ttl: int = 300,
    ) -> None:
        self._http = http_client
        self._storage = storage
        self._ttl = signed_url_ttl

    async def resolve(self, image_ref: ImageRef) -> VisionImageInput:
        """Fetch the referenced image.

        Raises:
            ImageNotFound: Storage path does not exist.
            ImageFetchFailed: Non-2xx or transport failure while fetching.
        """
        if isinstance(image_ref, UrlImageRef):
            return await self.fetch(image_ref.image_url)
        if image_ref.download_url:
            return await self.fetch(image_ref.download_url)

        if not await self._storage.exists(image_ref.storage_path):
            logger.info("Image not found in storage: %s", image_ref.storage_path)
            raise ImageNotFound("Image file not found in storage")
        signed = await self._storage.signed_url(image_ref.storage_path, self._ttl)
        return await self.fetch(signed)

    async def fetch(self, url: str) -> VisionImageInput:
        # Signed URLs are bearer credentials: never logged.
        try:
            response = await self._http.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.warning("Image fetch failed: %s", type(e).__name__)
            raise ImageFetchFailed(None) from None
        if not response.is_success:
            logger.warning("Image fetch failed: status=%d", response.status_code)
            raise ImageFetchFailed(response.status_code)

        content_type = response.headers.get("content-type", "")
        mime_type = content_type.split(";")[0].strip() or DEFAULT_MIME_TYPE
        return VisionImageInput(mime_type=mime_type, data=response.content, source_url=url)
