"""Library service: owns the catalog and exposes the library operations."""

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..config import Config, get_config
from ..database.models import Album, Song
from ..database.service import CatalogStore
from ..exceptions import SongNotFoundError
from .albums import AlbumReconciler
from .artwork import ArtworkCache
from .importer import ImportPipeline, ImportResult, SourceAccess, no_scoped_access
from .metadata import Extractor, extract_metadata
from .naming import NamingPolicy
from .sidecar import remove_sidecar
from .sync import (
    LibrarySynchronizer,
    StatusListener,
    StatusNotifier,
    SyncStatistics,
    SyncStatus,
)

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


class LibraryService:
    """Entry point for a presentation layer.

    Owns the single-writer catalog. All catalog access goes through one
    re-entrant lock so a background synchronization pass and interactive
    calls never write concurrently.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        catalog: Optional[CatalogStore] = None,
        extractor: Extractor = extract_metadata,
        source_access: SourceAccess = no_scoped_access,
        synchronize_on_open: bool = True,
    ) -> None:
        """Initialize library service.

        Args:
            config: Application configuration (loaded from environment if None)
            catalog: Catalog store (opened at ``config.database_path`` if None)
            extractor: Metadata extractor shared by import and artwork repair
            source_access: Scoped access provider for external import sources
            synchronize_on_open: Run a synchronization pass once the catalog
                is open so files changed while closed are picked up
        """
        self.config = config or get_config()
        self.catalog = catalog or CatalogStore(self.config.database_path)

        self.naming = NamingPolicy(self.config.songs_directory)
        self.artwork_cache = ArtworkCache(
            self.config.artwork_cache_directory, extractor
        )
        self.reconciler = AlbumReconciler(self.catalog)
        self.pipeline = ImportPipeline(
            self.catalog,
            self.naming,
            self.artwork_cache,
            self.reconciler,
            extractor=extractor,
            source_access=source_access,
            write_sidecars=self.config.write_sidecars,
        )
        self.notifier = StatusNotifier()
        self.synchronizer = LibrarySynchronizer(
            self.catalog,
            self.pipeline,
            self.naming,
            self.artwork_cache,
            self.reconciler,
            self.config.audio_extensions,
            max_workers=self.config.scan_workers,
            notifier=self.notifier,
        )

        self._catalog_lock = threading.RLock()
        self._sync_guard = threading.Lock()
        self._change_listeners: List[ChangeListener] = []
        self._background: Optional[threading.Thread] = None
        self.last_statistics: Optional[SyncStatistics] = None

        if synchronize_on_open:
            self.synchronize()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def status(self) -> SyncStatus:
        """Current synchronization status."""
        return self.notifier.status

    def add_status_listener(self, listener: StatusListener) -> None:
        """Register a callback for synchronization status transitions."""
        self.notifier.add_listener(listener)

    def add_change_listener(self, listener: ChangeListener) -> None:
        """Register a callback invoked after the song or album lists change."""
        self._change_listeners.append(listener)

    def _notify_changed(self) -> None:
        for listener in list(self._change_listeners):
            try:
                listener()
            except Exception:
                logger.exception("Library change listener failed")

    # ------------------------------------------------------------------
    # Synchronization
    # ------------------------------------------------------------------

    def synchronize(self) -> Optional[SyncStatistics]:
        """Run a synchronization pass unless one is already running.

        Returns:
            SyncStatistics, or None when the call was coalesced into a
            running pass
        """
        if not self._sync_guard.acquire(blocking=False):
            logger.info("Synchronization already in progress")
            return None
        try:
            with self._catalog_lock:
                stats = self.synchronizer.synchronize()
                self.last_statistics = stats
        finally:
            self._sync_guard.release()

        self._notify_changed()
        return stats

    def start_background_sync(self) -> threading.Thread:
        """Run :meth:`synchronize` on a daemon thread.

        Returns:
            The started thread (join it to wait for completion)
        """
        thread = threading.Thread(
            target=self.synchronize, name="openstream-sync", daemon=True
        )
        self._background = thread
        thread.start()
        return thread

    # ------------------------------------------------------------------
    # Import / delete
    # ------------------------------------------------------------------

    def import_files(self, sources: Iterable[Path]) -> ImportResult:
        """Copy external files into the library.

        Args:
            sources: Files picked by the user

        Returns:
            ImportResult; ``error_message`` is set only when nothing could
            be imported because of errors
        """
        with self._catalog_lock:
            group_by_album = self.group_by_album
            result = self.pipeline.import_files(
                [Path(source) for source in sources], group_by_album
            )
            if result.imported:
                self.synchronizer.repair_artwork()
                if not self.catalog.flush():
                    result.add_error("Catalog changes could not be saved")
                    result.imported.clear()

        if result.imported:
            self._notify_changed()
        return result

    def delete_song(self, song_id: str) -> None:
        """Delete a song, its file and its metadata sidecar.

        Args:
            song_id: Id of the song to delete

        Raises:
            SongNotFoundError: If no song has this id
        """
        with self._catalog_lock:
            song = self._require_song(song_id)
            path = self.naming.find_song_file(song)
            if path is not None:
                try:
                    path.unlink()
                    logger.info("Deleted file: %s", path)
                except OSError as e:
                    logger.warning("Failed to delete %s: %s", path, e)
                remove_sidecar(path)

            removed_album = self.catalog.delete_song(song)
            if removed_album is not None:
                logger.info("Removed empty album: %s", removed_album.name)
            self.catalog.flush()

        self._notify_changed()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def songs(self) -> List[Song]:
        """All songs, newest import first (library order)."""
        with self._catalog_lock:
            return self.catalog.get_all_songs()

    def albums(self) -> List[Album]:
        """All albums ordered by name."""
        with self._catalog_lock:
            return self.catalog.get_all_albums()

    def get_song(self, song_id: str) -> Optional[Song]:
        """Get a song by id."""
        with self._catalog_lock:
            return self.catalog.get_song(song_id)

    def get_file_location(self, song: Song) -> Path:
        """Current playable location of a song (recomputed every call)."""
        return self.naming.song_path(song)

    def get_file_location_by_id(self, song_id: str) -> Path:
        """Current playable location of the song with ``song_id``.

        Raises:
            SongNotFoundError: If no song has this id
        """
        with self._catalog_lock:
            song = self._require_song(song_id)
        return self.get_file_location(song)

    def next_song(self, song_id: str) -> Optional[Song]:
        """Song after ``song_id`` in library order, wrapping to the first."""
        return self._neighbour(song_id, 1)

    def previous_song(self, song_id: str) -> Optional[Song]:
        """Song before ``song_id`` in library order, wrapping to the last."""
        return self._neighbour(song_id, -1)

    def _neighbour(self, song_id: str, step: int) -> Optional[Song]:
        songs = self.songs()
        for index, song in enumerate(songs):
            if song.id == song_id:
                return songs[(index + step) % len(songs)]
        return None

    def _require_song(self, song_id: str) -> Song:
        song = self.catalog.get_song(song_id)
        if song is None:
            raise SongNotFoundError(song_id)
        return song

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def group_by_album(self) -> bool:
        """Whether new imports are placed in album folders."""
        return self.catalog.get_settings().group_by_album

    def set_group_by_album(self, group_by_album: bool) -> None:
        """Change where future imports are placed; existing files stay put."""
        self.catalog.set_group_by_album(group_by_album)

    def get_statistics(self) -> dict:
        """Catalog statistics (counts, total size, database path)."""
        with self._catalog_lock:
            return self.catalog.get_statistics()

    def close(self) -> None:
        """Wait for a background pass and close the catalog."""
        if self._background is not None and self._background.is_alive():
            self._background.join()
        self.catalog.close()
