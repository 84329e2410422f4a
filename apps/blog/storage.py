"""
Attachment storage backends.

A backend stores uploaded image bytes and returns an Attachment: the reference
clients fetch the image from, plus the handle needed to delete it again.
Deletion is best-effort and reports failure instead of raising.
"""
import io
import logging
import os
import time
from abc import ABC, abstractmethod
from typing import Optional
from uuid import uuid4

import aiofiles
import aiofiles.os
import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from apps.blog.models import Attachment
from apps.shared.config import Settings
from apps.shared.errors import AttachmentStorageError, ValidationError

logger = logging.getLogger(__name__)

# Stored extension is derived from the checked content type, never the client filename
EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}
ALLOWED_TYPES = set(EXTENSIONS)
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """
    Derive a Cloudinary public id from a delivery URL.

    .../upload/v1234567890/blog-images/1700000000000-photo.png -> blog-images/1700000000000-photo
    """
    if not url:
        return None
    parts = url.rstrip("/").split("/")
    with_folder = "/".join(parts[-2:])
    stem, dot, _ = with_folder.rpartition(".")
    return stem if dot else with_folder


class AttachmentStorage(ABC):
    """Interface every attachment backend implements."""

    def __init__(self, max_file_size: int = MAX_FILE_SIZE):
        self.max_file_size = max_file_size

    def validate(self, data: bytes, content_type: Optional[str]) -> None:
        """Reject uploads that are not images or are too large."""
        if content_type not in ALLOWED_TYPES:
            raise ValidationError(
                "Invalid file type",
                detail=f"Allowed: {', '.join(sorted(ALLOWED_TYPES))}",
            )
        if not data:
            raise ValidationError("Uploaded image is empty")
        if len(data) > self.max_file_size:
            raise ValidationError(
                "File too large",
                detail=f"Max size: {self.max_file_size // (1024 * 1024)} MB",
            )

    @abstractmethod
    async def store(self, data: bytes, filename: str, content_type: Optional[str]) -> Attachment:
        """Persist the bytes. Raises AttachmentStorageError on backend failure."""

    @abstractmethod
    async def delete(self, handle: str) -> bool:
        """Remove a stored attachment. Returns False instead of raising on failure."""


class LocalDiskStorage(AttachmentStorage):
    """Stores images in a directory served as static files."""

    def __init__(self, upload_dir: str, base_url: str, max_file_size: int = MAX_FILE_SIZE):
        super().__init__(max_file_size)
        self.upload_dir = upload_dir
        self.base_url = base_url.rstrip("/")

    async def store(self, data: bytes, filename: str, content_type: Optional[str]) -> Attachment:
        self.validate(data, content_type)

        stored_name = f"{uuid4().hex}.{EXTENSIONS[content_type]}"
        filepath = os.path.join(self.upload_dir, stored_name)

        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            async with aiofiles.open(filepath, "wb") as f:
                await f.write(data)
        except OSError as e:
            raise AttachmentStorageError("Error storing image", detail=str(e)) from e

        logger.info(f"Uploaded image: {stored_name}")
        return Attachment(reference=f"{self.base_url}/{stored_name}", handle=stored_name)

    async def delete(self, handle: str) -> bool:
        # Handles are bare filenames; never follow a path out of the upload dir
        filepath = os.path.join(self.upload_dir, os.path.basename(handle))
        try:
            await aiofiles.os.remove(filepath)
        except FileNotFoundError:
            logger.warning(f"Image {handle} not found on disk, nothing to delete")
            return False
        except OSError as e:
            logger.error(f"Error deleting image {handle}: {e}")
            return False
        logger.info(f"Deleted image: {handle}")
        return True


class CloudinaryStorage(AttachmentStorage):
    """Stores images on Cloudinary, converted to PNG inside a folder."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "blog-images",
        max_file_size: int = MAX_FILE_SIZE,
    ):
        super().__init__(max_file_size)
        self.folder = folder
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    async def store(self, data: bytes, filename: str, content_type: Optional[str]) -> Attachment:
        self.validate(data, content_type)

        public_id = f"{int(time.time() * 1000)}-{os.path.basename(filename or '') or 'image'}"
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                folder=self.folder,
                public_id=public_id,
                format="png",
                resource_type="image",
            )
        except cloudinary.exceptions.Error as e:
            raise AttachmentStorageError("Error uploading image", detail=str(e)) from e

        url = result["secure_url"]
        handle = result.get("public_id") or public_id_from_url(url)
        logger.info(f"Uploaded image to Cloudinary: {handle}")
        return Attachment(reference=url, handle=handle)

    async def delete(self, handle: str) -> bool:
        logger.info(f"Attempting to delete Cloudinary image with public ID: {handle}")
        try:
            result = await run_in_threadpool(cloudinary.uploader.destroy, handle)
        except cloudinary.exceptions.Error as e:
            logger.error(f"Error deleting Cloudinary image {handle}: {e}")
            return False
        logger.info(f"Cloudinary deletion result: {result}")
        return result.get("result") == "ok"


def build_storage(settings: Settings) -> AttachmentStorage:
    """Create the attachment backend selected in settings."""
    if settings.storage_backend == "cloudinary":
        if not settings.cloudinary_configured:
            raise RuntimeError(
                "STORAGE_BACKEND=cloudinary requires CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET"
            )
        return CloudinaryStorage(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
            max_file_size=settings.max_upload_size,
        )
    if settings.storage_backend == "local":
        return LocalDiskStorage(
            upload_dir=settings.upload_dir,
            base_url=settings.upload_base_url,
            max_file_size=settings.max_upload_size,
        )
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
