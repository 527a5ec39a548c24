"""
File storage with named buckets on the local filesystem.

Objects live at <STORAGE_ROOT>/<bucket>/<path> and are served read-only
under /storage by main.py.
"""
import os
import shutil
import uuid
from typing import Optional
from loguru import logger

from copymode.core.config import settings
from copymode.core.exceptions import BadRequestError


AVATARS_BUCKET = "avatars"
EXPERT_AVATARS_BUCKET = "expert-avatars"
CONTENT_TYPE_AVATARS_BUCKET = "content.type.avatars"
AGENT_AVATARS_BUCKET = "agent.avatars"
KNOWLEDGE_BUCKET = "agent.files"

BUCKETS = (
    AVATARS_BUCKET,
    EXPERT_AVATARS_BUCKET,
    CONTENT_TYPE_AVATARS_BUCKET,
    AGENT_AVATARS_BUCKET,
    KNOWLEDGE_BUCKET,
)

IMAGE_TYPES = {"png", "jpg", "jpeg", "gif", "webp"}


class StorageService:
    """Bucketed file storage."""

    def __init__(self, root: Optional[str] = None):
        self.root = os.path.abspath(root or settings.STORAGE_ROOT)

    def _resolve(self, bucket: str, path: str) -> str:
        if bucket not in BUCKETS:
            raise BadRequestError(f"Unknown bucket: {bucket}")

        bucket_root = os.path.join(self.root, bucket)
        full_path = os.path.abspath(os.path.join(bucket_root, path))
        if not full_path.startswith(bucket_root + os.sep):
            raise BadRequestError("Invalid storage path")
        return full_path

    def ensure_buckets(self) -> None:
        for bucket in BUCKETS:
            os.makedirs(os.path.join(self.root, bucket), exist_ok=True)

    def build_path(self, folder: str, filename: str) -> str:
        """Unique object path inside a folder, keeping the file extension."""
        ext = os.path.splitext(filename or "")[1].lower()
        return f"{folder}/{uuid.uuid4()}{ext}"

    def upload(self, bucket: str, path: str, content: bytes) -> str:
        """
        Write an object.

        Returns:
            The object path inside the bucket
        """
        full_path = self._resolve(bucket, path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "wb") as f:
            f.write(content)
        logger.debug(f"Stored {len(content)} bytes at {bucket}/{path}")
        return path

    def upload_image(self, bucket: str, folder: str, filename: str, content: bytes) -> str:
        """
        Store an avatar image under a folder (usually the owner's id).

        Returns:
            Public URL of the stored image

        Raises:
            BadRequestError: Not an image, empty, or larger than MAX_AVATAR_FILE_SIZE
        """
        ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
        if ext not in IMAGE_TYPES:
            raise BadRequestError(
                f"Unsupported image type. Allowed: {', '.join(sorted(IMAGE_TYPES))}"
            )
        if not content:
            raise BadRequestError("Empty file")
        if len(content) > settings.MAX_AVATAR_FILE_SIZE:
            raise BadRequestError(
                f"Image too large. Max size: {settings.MAX_AVATAR_FILE_SIZE // (1024 * 1024)}MB"
            )

        path = self.upload(bucket, self.build_path(folder, filename), content)
        return self.public_url(bucket, path)

    def download(self, bucket: str, path: str) -> bytes:
        with open(self._resolve(bucket, path), "rb") as f:
            return f.read()

    def remove(self, bucket: str, path: str) -> bool:
        """Delete an object. Returns False when it did not exist."""
        full_path = self._resolve(bucket, path)
        if not os.path.exists(full_path):
            return False
        os.remove(full_path)
        return True

    def remove_folder(self, bucket: str, folder: str) -> None:
        full_path = self._resolve(bucket, folder)
        shutil.rmtree(full_path, ignore_errors=True)

    def public_url(self, bucket: str, path: str) -> str:
        return f"/storage/{bucket}/{path}"


# Singleton instance
storage_service = StorageService()
