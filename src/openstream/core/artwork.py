"""Content-addressed cache for embedded cover art."""

import logging
from pathlib import Path
from typing import Optional

from ..database.models import Song
from .hashing import hash_bytes
from .metadata import Extractor, extract_metadata

logger = logging.getLogger(__name__)


class ArtworkCache:
    """Stores each distinct image once as ``<sha256>.jpg``."""

    def __init__(
        self,
        cache_directory: Path,
        extractor: Extractor = extract_metadata,
    ) -> None:
        """Initialize artwork cache.

        Args:
            cache_directory: Flat directory holding cached images
            extractor: Metadata extractor used to recover lost artwork
        """
        self.cache_directory = Path(cache_directory)
        self.extractor = extractor

    def path_for(self, data: bytes) -> Path:
        """Cache location for an image buffer."""
        return self.cache_directory / f"{hash_bytes(data)}.jpg"

    def store(self, data: Optional[bytes]) -> Optional[str]:
        """Cache image bytes, reusing an existing file with the same content.

        Args:
            data: Raw image bytes

        Returns:
            Path of the cached file, or None if there is nothing to store or
            the write failed
        """
        if not data:
            return None

        artwork_path = self.path_for(data)
        if artwork_path.exists():
            return str(artwork_path)

        try:
            self.cache_directory.mkdir(parents=True, exist_ok=True)
            artwork_path.write_bytes(data)
        except OSError as e:
            logger.warning("Failed to cache artwork %s: %s", artwork_path.name, e)
            return None

        logger.debug("Cached artwork: %s", artwork_path.name)
        return str(artwork_path)

    def repair(self, song: Song, source_file: Path) -> Optional[str]:
        """Return a valid artwork path for ``song``, re-extracting if needed.

        Args:
            song: Song whose recorded artwork path should be checked
            source_file: The song's audio file

        Returns:
            The existing path if it is still on disk, a freshly cached path if
            the audio file carries artwork, otherwise None (the caller clears
            the stored path)
        """
        if song.artwork_path and Path(song.artwork_path).exists():
            return song.artwork_path

        metadata = self.extractor(Path(source_file))
        if metadata.artwork:
            return self.store(metadata.artwork)
        return None
