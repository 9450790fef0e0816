"""Tests for the content-addressed artwork cache."""

from pathlib import Path

import pytest

from openstream.core.artwork import ArtworkCache
from openstream.core.hashing import hash_bytes
from openstream.core.metadata import ExtractedMetadata
from openstream.database.models import Song

COVER = b"\xff\xd8\xff\xe0cover-a"
OTHER_COVER = b"\xff\xd8\xff\xe0cover-b"


def extractor_returning(artwork):
    """Extractor double that yields the given artwork for every file."""
    calls = []

    def extract(path: Path) -> ExtractedMetadata:
        calls.append(path)
        metadata = ExtractedMetadata.defaults_for(path)
        metadata.artwork = artwork
        return metadata

    extract.calls = calls  # type: ignore[attr-defined]
    return extract


@pytest.fixture
def cache_dir(temp_dir):
    return temp_dir / "Songs" / ".artwork-cache"


class TestStore:
    """Test storing image bytes."""

    def test_store_writes_hash_named_file(self, cache_dir):
        """Images are stored as <sha256>.jpg."""
        cache = ArtworkCache(cache_dir)

        path = cache.store(COVER)

        assert path == str(cache_dir / f"{hash_bytes(COVER)}.jpg")
        assert Path(path).read_bytes() == COVER

    def test_store_is_idempotent(self, cache_dir):
        """Identical bytes share one cached file."""
        cache = ArtworkCache(cache_dir)

        first = cache.store(COVER)
        second = cache.store(COVER)

        assert first == second
        assert len(list(cache_dir.iterdir())) == 1

    def test_distinct_images_get_distinct_files(self, cache_dir):
        """Different images never overwrite each other."""
        cache = ArtworkCache(cache_dir)

        assert cache.store(COVER) != cache.store(OTHER_COVER)
        assert len(list(cache_dir.iterdir())) == 2

    def test_existing_file_is_not_rewritten(self, cache_dir):
        """A cached file is reused as-is."""
        cache = ArtworkCache(cache_dir)
        path = Path(cache.store(COVER))
        mtime = path.stat().st_mtime_ns

        cache.store(COVER)

        assert path.stat().st_mtime_ns == mtime

    @pytest.mark.parametrize("data", [None, b""])
    def test_empty_input(self, cache_dir, data):
        """Nothing to store yields no path."""
        assert ArtworkCache(cache_dir).store(data) is None

    def test_write_failure_returns_none(self, temp_dir):
        """An unwritable cache location degrades to no artwork."""
        blocker = temp_dir / "not-a-directory"
        blocker.write_text("file in the way")

        assert ArtworkCache(blocker).store(COVER) is None


class TestRepair:
    """Test self-healing of recorded artwork paths."""

    def test_existing_path_returned_unchanged(self, cache_dir, temp_dir):
        """A valid path is kept without re-reading the audio file."""
        extractor = extractor_returning(OTHER_COVER)
        cache = ArtworkCache(cache_dir, extractor)
        path = cache.store(COVER)
        song = Song(title="T", artist="A", artwork_path=path)

        assert cache.repair(song, temp_dir / "song.mp3") == path
        assert extractor.calls == []

    def test_missing_path_recached_from_audio(self, cache_dir, temp_dir):
        """A deleted cache file is recreated from embedded artwork."""
        cache = ArtworkCache(cache_dir, extractor_returning(COVER))
        path = cache.store(COVER)
        Path(path).unlink()
        song = Song(title="T", artist="A", artwork_path=path)

        repaired = cache.repair(song, temp_dir / "song.mp3")

        assert repaired == path
        assert Path(repaired).exists()

    def test_missing_path_without_embedded_art(self, cache_dir, temp_dir):
        """No embedded artwork means the caller should clear the path."""
        cache = ArtworkCache(cache_dir, extractor_returning(None))
        song = Song(title="T", artist="A", artwork_path=str(cache_dir / "gone.jpg"))

        assert cache.repair(song, temp_dir / "song.mp3") is None
