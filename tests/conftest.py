"""Shared fixtures for the OpenStream test suite."""

import tempfile
from pathlib import Path
from typing import Any, Dict, List

import pytest

from openstream.config import Config
from openstream.core.library import LibraryService
from openstream.core.metadata import ExtractedMetadata
from openstream.database.service import CatalogStore


class FakeExtractor:
    """Extractor double keyed by file content instead of real tags."""

    def __init__(self) -> None:
        self.by_content: Dict[bytes, Dict[str, Any]] = {}
        self.calls: List[str] = []

    def register(self, content: bytes, **fields: Any) -> bytes:
        """Return ``fields`` as metadata for any file holding ``content``."""
        self.by_content[content] = fields
        return content

    def __call__(self, file_path: Path) -> ExtractedMetadata:
        file_path = Path(file_path)
        self.calls.append(file_path.name)
        try:
            fields = self.by_content.get(file_path.read_bytes())
        except OSError:
            fields = None
        if fields is None:
            return ExtractedMetadata.defaults_for(file_path)
        return ExtractedMetadata(**fields)


def write_file(path: Path, content: bytes) -> Path:
    """Write ``content`` to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def catalog(temp_dir: Path):
    """Create a CatalogStore with a temporary database."""
    store = CatalogStore(temp_dir / "catalog.db")
    yield store
    store.close()


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    """Metadata extractor double."""
    return FakeExtractor()


@pytest.fixture
def library_config(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Config:
    """Configuration pointing at a temporary library and database."""
    monkeypatch.setenv("OPENSTREAM_LIBRARY_ROOT", str(temp_dir / "library"))
    monkeypatch.setenv("OPENSTREAM_DATABASE_PATH", str(temp_dir / "catalog.db"))
    monkeypatch.setenv("OPENSTREAM_SCAN_WORKERS", "2")
    monkeypatch.setenv("OPENSTREAM_WRITE_SIDECARS", "true")
    return Config()


@pytest.fixture
def library(library_config: Config, fake_extractor: FakeExtractor):
    """LibraryService over the temporary library using the fake extractor."""
    service = LibraryService(
        library_config, extractor=fake_extractor, synchronize_on_open=False
    )
    yield service
    service.close()


@pytest.fixture
def make_file():
    """Factory writing a file with the given bytes."""
    return write_file
