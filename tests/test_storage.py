"""
Unit tests for document storage service.
"""

import re
from pathlib import Path

import pytest

from siteinspect.core.config import settings
from siteinspect.core.errors import PersistenceError
from siteinspect.core.storage import DocumentStorageService


@pytest.fixture
def temp_storage_dir(tmp_path: Path) -> Path:
    """Create a temporary storage directory."""
    storage_dir = tmp_path / "uploads"
    storage_dir.mkdir()
    return storage_dir


@pytest.fixture
def storage_service(temp_storage_dir: Path) -> DocumentStorageService:
    """Create a DocumentStorageService instance with temp directory."""
    return DocumentStorageService(base_dir=temp_storage_dir)


class TestGenerateFilename:
    """Tests for stored name generation."""

    def test_keeps_lowercased_extension(self) -> None:
        name = DocumentStorageService.generate_filename("Site Photo.JPG")
        assert re.fullmatch(r"\d{13}-[0-9a-f]{8}\.jpg", name)

    def test_no_extension(self) -> None:
        name = DocumentStorageService.generate_filename("README")
        assert re.fullmatch(r"\d{13}-[0-9a-f]{8}", name)

    def test_ignores_client_directories(self) -> None:
        name = DocumentStorageService.generate_filename("..\\..\\evil.dir\\report.pdf")
        assert name.endswith(".pdf")
        assert "/" not in name and "\\" not in name

    def test_names_are_unique(self) -> None:
        names = {DocumentStorageService.generate_filename("a.png") for _ in range(50)}
        assert len(names) == 50


@pytest.mark.asyncio
class TestDocumentStorageService:
    """Tests for DocumentStorageService class."""

    async def test_init_creates_directory(self, tmp_path: Path) -> None:
        """Test that initialization creates the base directory."""
        storage_dir = tmp_path / "new_storage"
        DocumentStorageService(base_dir=storage_dir)
        assert storage_dir.is_dir()

    async def test_save_document(
        self, storage_service: DocumentStorageService, temp_storage_dir: Path
    ) -> None:
        """Test a saved document is written and addressed by relative path."""
        relative = await storage_service.save_document(b"%PDF-1.4 test", "report.pdf")

        assert relative.startswith("uploads/")
        assert relative.endswith(".pdf")
        stored = storage_service.resolve(relative)
        assert stored.parent == temp_storage_dir
        assert stored.read_bytes() == b"%PDF-1.4 test"
        assert not list(temp_storage_dir.glob("*.tmp"))

    async def test_custom_public_prefix(self, temp_storage_dir: Path) -> None:
        service = DocumentStorageService(base_dir=temp_storage_dir, public_prefix="/files/")
        relative = await service.save_document(b"x", "a.txt")
        assert relative.startswith("files/")

    async def test_prefix_follows_uploads_mount(
        self, temp_storage_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test stored paths follow the configured static mount path."""
        monkeypatch.setattr(settings, "uploads_url_path", "/media/reports")
        service = DocumentStorageService(base_dir=temp_storage_dir)

        relative = await service.save_document(b"x", "a.txt")

        assert relative.startswith("media/reports/")
        assert service.resolve(relative).read_bytes() == b"x"

    async def test_write_failure(
        self, storage_service: DocumentStorageService, temp_storage_dir: Path
    ) -> None:
        """Test OS errors surface as PersistenceError."""
        temp_storage_dir.rmdir()

        with pytest.raises(PersistenceError) as exc_info:
            await storage_service.save_document(b"data", "photo.png")

        assert exc_info.value.details["operation"] == "save"
        assert exc_info.value.details["filename"] == "photo.png"
