"""Library synchronizer: reconciles the managed songs tree with the catalog.

One pass runs these steps in order:

1. Load settings (grouping flag).
2. Remove catalog songs whose file is gone (orphans) or whose file no longer
   matches the recorded size (stale).
3. Walk the managed tree recursively for audio files.
4. Adopt every file that is not the known location of a song. Hashing and
   metadata extraction run on a thread pool; catalog writes stay serial.
5. Flush the catalog once.
6. Repair missing artwork and reconcile albums, then flush again if needed.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from ...database.models import Song
from ...database.service import CatalogStore
from ...exceptions import ImportFailedError
from ..albums import AlbumReconciler
from ..artwork import ArtworkCache
from ..importer import ImportMode, ImportPipeline, ImportResult
from ..naming import NamingPolicy
from .status import StatusNotifier, SyncState

logger = logging.getLogger(__name__)


@dataclass
class SyncStatistics:
    """Statistics from one synchronization pass."""

    orphans_removed: int = 0
    stale_removed: int = 0
    files_found: int = 0
    files_adopted: int = 0
    duplicates_skipped: int = 0
    failures: int = 0
    artwork_repaired: int = 0
    albums_created: int = 0
    albums_removed: int = 0
    persisted: bool = True
    errors: List[str] = dataclass_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary format.

        Returns:
            Dictionary with statistics and limited error list
        """
        return {
            "orphans_removed": self.orphans_removed,
            "stale_removed": self.stale_removed,
            "files_found": self.files_found,
            "files_adopted": self.files_adopted,
            "duplicates_skipped": self.duplicates_skipped,
            "failures": self.failures,
            "artwork_repaired": self.artwork_repaired,
            "albums_created": self.albums_created,
            "albums_removed": self.albums_removed,
            "persisted": self.persisted,
            "error_count": len(self.errors),
            "errors": self.errors[:10],  # Limit to first 10 errors
        }


class LibrarySynchronizer:
    """Runs synchronization passes over the managed songs directory."""

    def __init__(
        self,
        catalog: CatalogStore,
        pipeline: ImportPipeline,
        naming: NamingPolicy,
        artwork_cache: ArtworkCache,
        albums: AlbumReconciler,
        audio_extensions: Iterable[str],
        max_workers: int = 4,
        notifier: Optional[StatusNotifier] = None,
    ) -> None:
        """Initialize library synchronizer.

        Args:
            catalog: Catalog store (single writer)
            pipeline: Import pipeline used in adopt-in-place mode
            naming: Naming policy for the managed tree
            artwork_cache: Artwork cache used for repair
            albums: Album reconciler run after each pass
            audio_extensions: Eligible extensions, without leading dot
            max_workers: Threads used for hashing and metadata extraction
            notifier: Status notifier (a private one is created if omitted)
        """
        self.catalog = catalog
        self.pipeline = pipeline
        self.naming = naming
        self.artwork_cache = artwork_cache
        self.albums = albums
        self.audio_extensions = frozenset(
            ext.lower().lstrip(".") for ext in audio_extensions
        )
        self.max_workers = max(1, max_workers)
        self.notifier = notifier or StatusNotifier()
        self._pass_lock = threading.Lock()

    @property
    def songs_directory(self) -> Path:
        """Root of the managed tree."""
        return self.naming.songs_directory

    @property
    def is_running(self) -> bool:
        """True while a pass holds the synchronization lock."""
        return self._pass_lock.locked()

    def synchronize(self) -> Optional[SyncStatistics]:
        """Run one synchronization pass.

        Overlapping calls are coalesced: if a pass is already running this
        returns None immediately instead of queueing another pass.

        Returns:
            SyncStatistics for the pass, or None if a pass was already running
        """
        if not self._pass_lock.acquire(blocking=False):
            logger.info("Synchronization already running, ignoring trigger")
            return None

        stats = SyncStatistics()
        try:
            self._run_pass(stats)
        except Exception as e:
            logger.exception("Synchronization pass failed")
            stats.errors.append(f"Synchronization failed: {e}")
            self.notifier.publish(SyncState.IDLE, f"Synchronization failed: {e}")
        finally:
            self._pass_lock.release()
        return stats

    def _run_pass(self, stats: SyncStatistics) -> None:
        self.notifier.publish(SyncState.SCANNING, "Loading library")
        group_by_album = self.catalog.get_settings().group_by_album

        self.notifier.publish(SyncState.SCANNING, "Checking existing songs")
        known_paths = self.remove_missing(stats)
        if stats.orphans_removed or stats.stale_removed:
            if not self.catalog.write_pending():
                stats.errors.append("Removing missing songs failed")
                known_paths = self._known_paths()

        self.notifier.publish(SyncState.SCANNING, "Scanning songs folder")
        files = self.discover_files()
        stats.files_found = len(files)
        new_files = [path for path in files if path not in known_paths]

        if new_files:
            self.notifier.publish(
                SyncState.SCANNING, f"Importing {len(new_files)} new file(s)"
            )
            self.adopt_files(new_files, group_by_album, stats)

        stats.persisted = self.catalog.flush()
        if not stats.persisted:
            stats.errors.append("Catalog changes could not be saved")

        self.notifier.publish(SyncState.SCANNING, "Updating albums")
        stats.artwork_repaired = self.repair_artwork()
        reconciliation = self.albums.reconcile(self.catalog.get_all_songs())
        stats.albums_created = reconciliation.albums_created
        stats.albums_removed = reconciliation.albums_removed
        if self.catalog.has_pending_changes and not self.catalog.flush():
            stats.persisted = False
            stats.errors.append("Album updates could not be saved")

        self._log_summary(stats)
        self.notifier.publish(
            SyncState.COMPLETE,
            f"Library up to date ({len(self.catalog.get_all_songs())} songs)",
        )

    def remove_missing(self, stats: SyncStatistics) -> Set[Path]:
        """Delete orphaned and stale songs from the catalog.

        Args:
            stats: Statistics to update

        Returns:
            Paths of the files still backing a catalog song
        """
        known_paths: Set[Path] = set()
        for song in self.catalog.get_all_songs():
            path = self.naming.find_song_file(song)
            if path is None:
                logger.info("Removing orphaned song: %s - %s", song.artist, song.title)
                self.catalog.delete_song(song)
                stats.orphans_removed += 1
                continue

            if not self._size_matches(song, path):
                logger.info("Replacing stale record for %s", path.name)
                self.catalog.delete_song(song)
                stats.stale_removed += 1
                continue

            known_paths.add(path)
        return known_paths

    def _known_paths(self) -> Set[Path]:
        paths = (
            self.naming.find_song_file(song) for song in self.catalog.get_all_songs()
        )
        return {path for path in paths if path is not None}

    @staticmethod
    def _size_matches(song: Song, path: Path) -> bool:
        try:
            return path.stat().st_size == song.size
        except OSError:
            return False

    def discover_files(self) -> List[Path]:
        """Find every eligible audio file in the managed tree.

        Hidden directories (including the artwork cache) and hidden files are
        skipped. Extensions are matched case-insensitively.

        Returns:
            Sorted list of audio file paths
        """
        if not self.songs_directory.exists():
            logger.warning("Songs directory does not exist: %s", self.songs_directory)
            return []

        cache_dir = self.artwork_cache.cache_directory
        audio_files: List[Path] = []
        for dirpath, dirnames, filenames in os.walk(self.songs_directory):
            current = Path(dirpath)
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not name.startswith(".") and current / name != cache_dir
            )
            for name in filenames:
                if name.startswith("."):
                    continue
                if Path(name).suffix.lower().lstrip(".") in self.audio_extensions:
                    audio_files.append(current / name)

        return sorted(audio_files)

    def adopt_files(
        self, paths: List[Path], group_by_album: bool, stats: SyncStatistics
    ) -> ImportResult:
        """Adopt files already inside the managed tree.

        Args:
            paths: Files to adopt
            group_by_album: Current grouping setting
            stats: Statistics to update

        Returns:
            ImportResult of the adoption
        """
        result = ImportResult()
        is_known = self.catalog.content_hashes().__contains__

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="openstream-scan"
        ) as executor:
            futures = [
                executor.submit(self.pipeline.prepare, path, is_known) for path in paths
            ]
            for path, future in zip(paths, futures):
                try:
                    self.pipeline.commit(
                        future.result(), ImportMode.ADOPT, group_by_album, result
                    )
                except (ImportFailedError, OSError) as e:
                    result.add_error(str(e))

        stats.files_adopted += len(result.imported)
        stats.duplicates_skipped += len(result.duplicates)
        stats.failures += len(result.errors)
        stats.errors.extend(result.errors)
        return result

    def repair_artwork(self) -> int:
        """Re-cache artwork for songs whose cached image has disappeared.

        Songs whose audio no longer carries artwork have their path cleared.

        Returns:
            Number of songs whose artwork is available again
        """
        repaired = 0
        for song in self.catalog.get_all_songs():
            if not song.artwork_path or Path(song.artwork_path).exists():
                continue
            path = self.naming.find_song_file(song)
            if path is None:
                continue
            new_path = self.artwork_cache.repair(song, path)
            if new_path != song.artwork_path:
                song.artwork_path = new_path
            if new_path is not None:
                repaired += 1
        if repaired:
            logger.info("Repaired artwork for %d song(s)", repaired)
        return repaired

    def _log_summary(self, stats: SyncStatistics) -> None:
        logger.info("=" * 60)
        logger.info("Synchronization complete")
        logger.info("  Files found: %d", stats.files_found)
        logger.info("  Files adopted: %d", stats.files_adopted)
        logger.info("  Duplicates skipped: %d", stats.duplicates_skipped)
        logger.info("  Orphans removed: %d", stats.orphans_removed)
        logger.info("  Stale records replaced: %d", stats.stale_removed)
        if stats.errors:
            logger.warning("  Errors: %d", len(stats.errors))
        logger.info("=" * 60)
