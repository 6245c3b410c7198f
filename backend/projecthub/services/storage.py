"""
Object storage for project documents.

Objects live under UPLOAD_DIR/{bucket}/{path} and are served publicly at
STORAGE_PUBLIC_URL/{bucket}/{path}. Writes never overwrite: an existing
object at the same path is reported as ``DuplicatePathError`` so callers can
pick a fresh path.
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from projecthub.core.config import settings
from projecthub.core.exceptions import CollaboratorError, DuplicatePathError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    path: str
    url: str
    size: int
    content_type: Optional[str] = None


class LocalObjectStorage:
    """Filesystem-backed bucket with public URLs."""

    def __init__(
        self,
        root: Optional[str] = None,
        bucket: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ):
        self.root = root or settings.UPLOAD_DIR
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.public_base_url = (public_base_url or settings.STORAGE_PUBLIC_URL).rstrip("/")

    def _bucket_dir(self) -> str:
        return os.path.abspath(os.path.join(self.root, self.bucket))

    def _resolve(self, path: str) -> str:
        bucket_dir = self._bucket_dir()
        full_path = os.path.abspath(os.path.join(bucket_dir, path))
        if not path or os.path.commonpath([bucket_dir, full_path]) != bucket_dir or full_path == bucket_dir:
            raise ValidationError(f"Invalid object path: {path!r}")
        return full_path

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{quote(path)}"

    async def put_object(
        self,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> StoredObject:
        """
        Store bytes at a path.

        Args:
            path: Object path inside the bucket
            data: Object content
            content_type: MIME type recorded on the result

        Returns:
            The stored object with its public URL

        Raises:
            DuplicatePathError: an object already exists at the path
            CollaboratorError: the write failed
        """
        full_path = self._resolve(path)
        try:
            os.makedirs(os.path.dirname(full_path), exist_ok=True)
            with open(full_path, "xb") as f:
                f.write(data)
        except FileExistsError:
            raise DuplicatePathError(path)
        except OSError as e:
            raise CollaboratorError(f"Failed to store object {path}: {e}") from e

        logger.info(f"Stored object {self.bucket}/{path} ({len(data)} bytes)")
        return StoredObject(
            path=path,
            url=self.public_url(path),
            size=len(data),
            content_type=content_type,
        )

    def exists(self, path: str) -> bool:
        return os.path.exists(self._resolve(path))
