"""
Document storage for uploaded report attachments.

Files land in one flat directory that is served statically. Stored names are
generated from the upload time plus a short random suffix and keep the
original extension. Files are never removed when the report referencing them
is deleted or given a new document.
"""

import logging
import shutil
import time
from pathlib import Path, PurePosixPath
from typing import Optional
from uuid import uuid4

from siteinspect.core.config import settings
from siteinspect.core.errors import PersistenceError

logger = logging.getLogger(__name__)


class DocumentStorageService:
    """
    Service for storing uploaded documents.

    This service handles:
    - Collision-resistant file naming
    - Atomic file writes (write to temp, then move)
    - Mapping stored files to the relative path persisted on the report
    """

    def __init__(
        self, base_dir: Optional[Path] = None, public_prefix: Optional[str] = None
    ) -> None:
        """
        Initialize the storage service.

        Args:
            base_dir: Directory for uploads (defaults to settings.uploads_dir)
            public_prefix: First segment of the stored relative path
                (defaults to settings.uploads_url_path, where the upload
                directory is mounted)
        """
        self.base_dir = base_dir or settings.uploads_dir
        self.public_prefix = (public_prefix or settings.uploads_url_path).strip("/")
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"DocumentStorageService initialized with base_dir: {self.base_dir}")

    @staticmethod
    def generate_filename(original_filename: str) -> str:
        """
        Build a stored name from the current time, keeping the extension.

        Example:
            >>> DocumentStorageService.generate_filename("site photo.JPG")  # doctest: +SKIP
            '1731250000123-9f1c2a7b.jpg'
        """
        extension = PurePosixPath(original_filename.replace("\\", "/")).suffix.lower()
        return f"{int(time.time() * 1000)}-{uuid4().hex[:8]}{extension}"

    def relative_path(self, stored_name: str) -> str:
        return f"{self.public_prefix}/{stored_name}"

    def resolve(self, relative_path: str) -> Path:
        """Map a stored relative path back to the file on disk."""
        return self.base_dir / PurePosixPath(relative_path).name

    async def save_document(self, file_content: bytes, filename: str) -> str:
        """
        Save an uploaded document.

        Args:
            file_content: The file content as bytes
            filename: Original filename, used only for its extension

        Returns:
            Relative path to persist on the report (``uploads/<name>``)

        Raises:
            PersistenceError: If the file cannot be written
        """
        stored_name = self.generate_filename(filename)
        final_path = self.base_dir / stored_name
        temp_path = final_path.with_name(stored_name + ".tmp")

        try:
            temp_path.write_bytes(file_content)
            shutil.move(str(temp_path), str(final_path))
        except OSError as e:
            logger.error(f"Failed to save document {filename}: {e}")
            temp_path.unlink(missing_ok=True)
            raise PersistenceError(
                "Failed to save uploaded document",
                operation="save",
                details={"filename": filename},
            ) from e

        logger.info(
            f"Saved document {filename} as {stored_name}, size: {len(file_content)} bytes"
        )
        return self.relative_path(stored_name)


# Global storage service instance
storage_service = DocumentStorageService()
