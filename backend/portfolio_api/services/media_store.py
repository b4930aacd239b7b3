"""Media store abstraction. Local filesystem for dev, Cloudinary for production.

Backends raise MediaStoreError for every failure so callers can apply
their own policy (uploads are fatal, deletes are not) without knowing
which SDK sits underneath.
"""
import asyncio
import io
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from portfolio_api.config import settings
from portfolio_api.errors import MediaStoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredMedia:
    url: str
    remote_id: str


class MediaStore(ABC):
    """Remote home of record media, addressed by an opaque remote id."""

    @abstractmethod
    async def upload(self, data: bytes, kind: str, folder: str, filename: str = "") -> StoredMedia:
        """Store bytes as ``kind`` ("image" or "video") under ``folder``."""

    @abstractmethod
    async def delete(self, remote_id: str, kind: str) -> None:
        """Delete a stored object. Deleting an absent object is not an error."""


class LocalMediaStore(MediaStore):
    """Writes media under MEDIA_STORAGE_PATH, served at MEDIA_BASE_URL."""

    def __init__(self, base_path: str | None = None, base_url: str | None = None):
        self.base_path = Path(base_path or settings.MEDIA_STORAGE_PATH).resolve()
        self.base_url = (base_url or settings.MEDIA_BASE_URL).rstrip("/")
        self.base_path.mkdir(parents=True, exist_ok=True)

    async def upload(self, data: bytes, kind: str, folder: str, filename: str = "") -> StoredMedia:
        remote_id = f"{folder}/{uuid.uuid4()}{Path(filename).suffix.lower()}"
        path = self._path_for(remote_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as e:
            raise MediaStoreError(f"Could not write {remote_id}: {e}") from e
        return StoredMedia(url=f"{self.base_url}/{remote_id}", remote_id=remote_id)

    async def delete(self, remote_id: str, kind: str) -> None:
        path = self._path_for(remote_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise MediaStoreError(f"Could not delete {remote_id}: {e}") from e

    def _path_for(self, remote_id: str) -> Path:
        try:
            path = (self.base_path / remote_id).resolve()
        except (OSError, ValueError) as e:
            raise MediaStoreError(f"Unusable remote id {remote_id!r}: {e}") from e
        if not path.is_relative_to(self.base_path):
            raise MediaStoreError(f"Remote id escapes media root: {remote_id}")
        return path


class CloudinaryMediaStore(MediaStore):
    """Cloudinary backend. The SDK is sync, so calls run in a worker thread."""

    # Same transformations the public site was built against
    VIDEO_OPTIONS = {"eager": [{"width": 400, "height": 300, "crop": "pad"}]}
    IMAGE_OPTIONS = {
        "transformation": [
            {"width": 800, "height": 600, "crop": "limit"},
            {"quality": "auto"},
            {"fetch_format": "auto"},
        ]
    }

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, timeout: float | None = None):
        if not (cloud_name and api_key and api_secret):
            raise ValueError("Cloudinary credentials not set. Cannot store media.")
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )
        # Passed to every SDK call so the worker thread ends with the request
        self.timeout = timeout

    async def upload(self, data: bytes, kind: str, folder: str, filename: str = "") -> StoredMedia:
        options = self.VIDEO_OPTIONS if kind == "video" else self.IMAGE_OPTIONS
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                resource_type=kind,
                folder=folder,
                timeout=self.timeout,
                **options,
            )
        except CloudinaryError as e:
            raise MediaStoreError(f"Cloudinary upload failed: {e}") from e
        return StoredMedia(url=result["secure_url"], remote_id=result["public_id"])

    async def delete(self, remote_id: str, kind: str) -> None:
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy, remote_id, resource_type=kind, timeout=self.timeout,
            )
        except CloudinaryError as e:
            raise MediaStoreError(f"Cloudinary delete failed: {e}") from e
        outcome = result.get("result")
        if outcome not in ("ok", "not found"):
            raise MediaStoreError(f"Cloudinary delete of {remote_id} returned {outcome!r}")


_media_store: MediaStore | None = None


def get_media_store() -> MediaStore:
    """Return the process-wide media store selected by MEDIA_STORAGE_TYPE."""
    global _media_store

    if _media_store is None:
        if settings.MEDIA_STORAGE_TYPE == "local":
            _media_store = LocalMediaStore()
        elif settings.MEDIA_STORAGE_TYPE == "cloudinary":
            _media_store = CloudinaryMediaStore(
                settings.CLOUDINARY_CLOUD_NAME,
                settings.CLOUDINARY_API_KEY,
                settings.CLOUDINARY_API_SECRET,
                timeout=settings.MEDIA_TIMEOUT_SECONDS,
            )
        else:
            raise ValueError(f"Unknown media storage type: {settings.MEDIA_STORAGE_TYPE}")
        logger.info(f"Media store: {type(_media_store).__name__}")
    return _media_store
