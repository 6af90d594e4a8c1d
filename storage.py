"""
Local-directory blob storage for uploaded images.

Returned URLs are opaque to the rest of the service; they are stored
verbatim on Profile.profile_image and Project.images.
"""

import os
import uuid
from typing import BinaryIO, Dict

from exceptions import StorageFailure, ValidationFailure
from logger import get_logger

logger = get_logger(__name__)

IMAGE_EXTENSIONS: Dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
}


class BlobStore:
    def __init__(self, directory: str, url_prefix: str, max_bytes: int):
        self.directory = directory
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    def read(self, stream: BinaryIO) -> bytes:
        """Read at most one byte past the limit so oversized uploads are never buffered whole."""
        data = stream.read(self.max_bytes + 1)
        if len(data) > self.max_bytes:
            raise ValidationFailure("File too large", details={"max": self.max_bytes})
        return data

    def store(self, data: bytes, content_type: str) -> str:
        extension = IMAGE_EXTENSIONS.get((content_type or "").lower())
        if extension is None:
            raise ValidationFailure("Unsupported file type", details={"content_type": content_type})
        if not data:
            raise ValidationFailure("Empty file")
        if len(data) > self.max_bytes:
            raise ValidationFailure("File too large", details={"size": len(data), "max": self.max_bytes})

        name = f"{uuid.uuid4().hex}{extension}"
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(os.path.join(self.directory, name), "wb") as fh:
                fh.write(data)
        except OSError as e:
            logger.error(f"Failed to write upload {name}: {e}")
            raise StorageFailure("upload failed", operation="store_blob", cause=e) from e

        logger.info(f"Stored upload {name} ({len(data)} bytes)")
        return f"{self.url_prefix}/{name}"
