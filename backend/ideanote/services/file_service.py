"""
IdeaNote Backend: Image Storage Service
=========================================

What:  Stores, reads and removes note images on disk.
How:   Validates extension and size, stores in date-organized directories
       under UUID filenames, reads back lazily for ImageRef.get_bytes().
Who:   NoteService (image attach), ImageRef, the file-serving route.

Security Model:
    1. Extension check:  only the image types the editor accepts
    2. Size check:       prevents memory exhaustion
    3. UUID filename:    no user input reaches the file system path
    4. Path containment: reads resolve inside STORAGE_ROOT only

Directory Structure:
    storage/
    └── 2024/
        └── 06/
            └── 01/
                ├── a1b2c3d4-5678.jpg
                └── e5f6g7h8-9012.png

The storage key returned by store_file (e.g. "2024/06/01/a1b2.png") is what
an ImageRef holds and what the notes table persists.
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from ideanote.config import settings
from ideanote.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

MEDIA_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


class FileService:
    """
    Manages the note image lifecycle on disk.

    Lifecycle of an uploaded image:
        1. Client uploads → validate_and_store()
        2. Extension check, size check
        3. File is written to a date-organized directory with a UUID filename
        4. Storage key is returned and wrapped in an ImageRef
        5. Bytes are read back only when someone asks (read_file)
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                         If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Validate image size against the configured maximum.

        Checks the Content-Length header first, then the actual byte count.
        Empty files are rejected.
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size == 0:
            raise ValidationError(
                message="Uploaded file is empty.",
                field="file",
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) is too large; maximum is {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """
        Generate a unique, date-organized file path for storage.

        Returns: Tuple of (absolute_path, storage_key).
        """
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        storage_key = f"{date_dir}/{unique_name}"
        return self.storage_root / storage_key, storage_key

    def resolve(self, storage_key: str) -> Path:
        """
        Absolute path for a storage key, confined to the storage root.

        Raises:
            ValidationError for keys that escape the root ("../../etc/passwd")
        """
        full_path = (self.storage_root / storage_key).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path", field="path")
        return full_path

    @staticmethod
    def media_type(storage_key: str) -> str:
        return MEDIA_TYPES.get(Path(storage_key).suffix.lower(), "application/octet-stream")

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Write validated image content to disk.

        Returns: Tuple of (absolute_path, storage_key).
        Raises:  FileStorageError if directory creation or file write fails.
        """
        absolute_path, storage_key = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("Image stored: %s (%d bytes)", storage_key, len(content))
            return str(absolute_path), storage_key

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def read_file(self, storage_key: str) -> bytes:
        """
        Read a stored image.

        Raises:
            NotFoundError if nothing is stored under the key
            FileStorageError on other I/O failures
        """
        path = self.resolve(storage_key)
        if not path.is_file():
            raise NotFoundError(resource="image", resource_id=storage_key)

        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.error("Failed to read file %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to read stored image.",
                context={"path": str(path), "os_error": str(e)},
            )

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a file from storage (used after a failed attach).

        Best effort: missing files are ignored and OS errors are logged.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Complete image validation and storage pipeline.

        Returns: Tuple of (absolute_path, storage_key).
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        return await self.store_file(content, ext)


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
