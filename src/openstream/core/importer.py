"""Import pipeline: hash, dedup, extract, place, cache artwork, catalog.

Two entry modes exist. ``COPY`` brings an external file into the managed
tree under a generated, collision-free name. ``ADOPT`` catalogs a file that
is already inside the managed tree, leaving its name and location untouched.
"""

import contextlib
import logging
import shutil
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, ContextManager, Dict, Iterable, List, Optional

from ..database.models import Song
from ..database.service import CatalogStore
from ..exceptions import ImportFailedError
from .albums import AlbumReconciler
from .artwork import ArtworkCache
from .hashing import hash_file
from .metadata import ExtractedMetadata, Extractor, extract_metadata
from .naming import NamingPolicy
from .sidecar import read_sidecar, write_sidecar

logger = logging.getLogger(__name__)

# Acquires (and on exit releases) read access to an external source
SourceAccess = Callable[[Path], ContextManager[Any]]

# Sidecar keys that may override extracted tags when adopting a file
_SIDECAR_FIELDS = (
    "title",
    "artist",
    "album",
    "album_artist",
    "genre",
    "composer",
    "year",
    "track_number",
    "disc_number",
    "lyrics",
    "description",
)


def no_scoped_access(source: Path) -> ContextManager[Any]:
    """Default source access for platforms without sandboxed files."""
    return contextlib.nullcontext(source)


class ImportMode(str, Enum):
    """How a file enters the managed tree."""

    COPY = "copy"
    ADOPT = "adopt"


@dataclass
class PreparedFile:
    """Result of the read-only part of an import (safe to run in a worker)."""

    source: Path
    content_hash: str
    size: int
    metadata: Optional[ExtractedMetadata] = None

    @property
    def known_duplicate(self) -> bool:
        """True when extraction was skipped because the content is cataloged."""
        return self.metadata is None


@dataclass
class ImportResult:
    """Outcome of importing a batch of files."""

    imported: List[Song] = dataclass_field(default_factory=list)
    duplicates: List[Path] = dataclass_field(default_factory=list)
    errors: List[str] = dataclass_field(default_factory=list)

    def add_error(self, error: str) -> None:
        """Record a per-file failure."""
        self.errors.append(error)
        logger.warning(error)

    @property
    def error_message(self) -> Optional[str]:
        """Aggregate message, only when nothing was imported due to errors."""
        if self.imported or not self.errors:
            return None
        return f"Failed to import {len(self.errors)} file(s): " + "; ".join(
            self.errors[:3]
        )

    def get_summary(self) -> Dict[str, int]:
        """Get summary statistics."""
        return {
            "imported": len(self.imported),
            "duplicates": len(self.duplicates),
            "errors": len(self.errors),
        }


class ImportPipeline:
    """Turns one audio file into one catalog Song."""

    def __init__(
        self,
        catalog: CatalogStore,
        naming: NamingPolicy,
        artwork_cache: ArtworkCache,
        albums: AlbumReconciler,
        extractor: Extractor = extract_metadata,
        source_access: SourceAccess = no_scoped_access,
        write_sidecars: bool = True,
    ) -> None:
        """Initialize import pipeline.

        Args:
            catalog: Catalog store (single writer)
            naming: Naming policy for the managed tree
            artwork_cache: Cache for embedded cover art
            albums: Album reconciler used to group new songs
            extractor: Metadata extractor
            source_access: Scoped access provider for external sources
            write_sidecars: Whether copy-imports get a JSON metadata sidecar
        """
        self.catalog = catalog
        self.naming = naming
        self.artwork_cache = artwork_cache
        self.albums = albums
        self.extractor = extractor
        self.source_access = source_access
        self.write_sidecars = write_sidecars

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def import_files(
        self, sources: Iterable[Path], group_by_album: bool
    ) -> ImportResult:
        """Copy-import a batch of external files.

        Each file is handled independently; failures never stop the batch.

        Args:
            sources: External files picked by the user
            group_by_album: Current grouping setting

        Returns:
            ImportResult with imported songs, skipped duplicates and errors
        """
        result = ImportResult()
        for source in sources:
            self.run(Path(source), ImportMode.COPY, group_by_album, result)
        logger.info(
            "Import finished: %d imported, %d duplicates, %d errors",
            len(result.imported),
            len(result.duplicates),
            len(result.errors),
        )
        return result

    def import_file(
        self, source: Path, mode: ImportMode, group_by_album: bool
    ) -> Optional[Song]:
        """Import one file; returns None for duplicates and failures."""
        return self.run(Path(source), mode, group_by_album, ImportResult())

    def run(
        self,
        source: Path,
        mode: ImportMode,
        group_by_album: bool,
        result: ImportResult,
    ) -> Optional[Song]:
        """Import one file and record the outcome in ``result``."""
        access = self.source_access if mode is ImportMode.COPY else no_scoped_access
        try:
            with access(source):
                prepared = self.prepare(source, self.catalog.has_content)
                return self.commit(prepared, mode, group_by_album, result)
        except ImportFailedError as e:
            result.add_error(str(e))
            return None
        except OSError as e:
            result.add_error(f"{source}: {e}")
            return None

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def prepare(
        self,
        source: Path,
        is_known: Callable[[str], bool] = lambda content_hash: False,
    ) -> PreparedFile:
        """Hash a file and, unless its content is known, extract metadata.

        Touches no shared state, so it may run on a worker thread.

        Args:
            source: File to read
            is_known: Predicate telling whether a content hash is cataloged

        Returns:
            PreparedFile (``metadata`` is None for known content)

        Raises:
            ImportFailedError: If the file cannot be read
        """
        try:
            content_hash = hash_file(source)
            size = source.stat().st_size
        except OSError as e:
            raise ImportFailedError(source, f"unreadable ({e})") from e

        if is_known(content_hash):
            return PreparedFile(source, content_hash, size)

        return PreparedFile(source, content_hash, size, self.extractor(source))

    def commit(
        self,
        prepared: PreparedFile,
        mode: ImportMode,
        group_by_album: bool,
        result: ImportResult,
    ) -> Optional[Song]:
        """Place the file and create its Song (single-writer step).

        Args:
            prepared: Output of :meth:`prepare`
            mode: Copy into the managed tree or adopt in place
            group_by_album: Current grouping setting
            result: Collector for the outcome

        Returns:
            The new Song, or None if the content is already cataloged

        Raises:
            ImportFailedError: If the file cannot be placed
        """
        source = prepared.source
        if prepared.known_duplicate or self.catalog.has_content(prepared.content_hash):
            logger.debug("Skipping duplicate content: %s", source.name)
            result.duplicates.append(source)
            return None

        metadata = prepared.metadata or self.extractor(source)

        if mode is ImportMode.COPY:
            destination = self._copy_into_library(source, metadata, group_by_album)
        else:
            destination = source
            self._apply_sidecar(metadata, read_sidecar(source))

        try:
            folder = self.naming.relative_folder(destination.parent)
        except ValueError as e:
            raise ImportFailedError(source, "outside the songs directory") from e

        artwork_path = self.artwork_cache.store(metadata.artwork)

        try:
            song = self.catalog.create_song(
                self._song_data(prepared, metadata, destination, folder, artwork_path)
            )
        except ValueError:
            # Same content staged by an earlier file of this batch
            if mode is ImportMode.COPY:
                destination.unlink(missing_ok=True)
            result.duplicates.append(source)
            return None

        self.albums.link(song)

        if mode is ImportMode.COPY and self.write_sidecars:
            write_sidecar(song, destination)

        result.imported.append(song)
        logger.info(
            "Imported (%s): %s - %s -> %s",
            mode.value,
            song.artist,
            song.title,
            destination.name,
        )
        return song

    def _copy_into_library(
        self, source: Path, metadata: ExtractedMetadata, group_by_album: bool
    ) -> Path:
        directory = self.naming.album_directory(metadata.album, group_by_album)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ImportFailedError(source, f"cannot create {directory} ({e})") from e

        base_name = self.naming.file_name(
            metadata.artist, metadata.title, metadata.track_number, source.suffix
        )
        destination = directory / self.naming.unique_name(base_name, directory)

        try:
            shutil.copyfile(source, destination)
        except OSError as e:
            destination.unlink(missing_ok=True)
            raise ImportFailedError(source, f"copy failed ({e})") from e
        return destination

    @staticmethod
    def _apply_sidecar(
        metadata: ExtractedMetadata, sidecar: Optional[Dict[str, Any]]
    ) -> None:
        if not sidecar:
            return
        for key in _SIDECAR_FIELDS:
            value = sidecar.get(key)
            if value is not None:
                setattr(metadata, key, value)

    @staticmethod
    def _song_data(
        prepared: PreparedFile,
        metadata: ExtractedMetadata,
        destination: Path,
        folder: str,
        artwork_path: Optional[str],
    ) -> Dict[str, Any]:
        return {
            "file_name": destination.name,
            "folder": folder,
            "content_hash": prepared.content_hash,
            "size": prepared.size,
            "title": metadata.title,
            "artist": metadata.artist,
            "duration": metadata.duration,
            "lyrics": metadata.lyrics,
            "description": metadata.description,
            "album_name": metadata.album,
            "album_artist": metadata.album_artist,
            "genre": metadata.genre,
            "track_number": metadata.track_number,
            "disc_number": metadata.disc_number,
            "year": metadata.year,
            "composer": metadata.composer,
            "artwork_path": artwork_path,
        }
