"""Catalog store: persisted songs, albums and settings."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import create_engine, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from alembic import command  # type: ignore[attr-defined]
from alembic.config import Config as AlembicConfig  # type: ignore[import-not-found]

from ..exceptions import CatalogError
from .models import Album, AppSettings, Base, Song, new_id, utcnow

logger = logging.getLogger(__name__)

AlbumKey = Tuple[str, Optional[str]]


class CatalogStore:
    """Single-writer store for Song, Album and AppSettings records.

    Mutations are accumulated in one long-lived session and written by
    :meth:`flush` as a single transaction. Two in-memory indices (songs by
    content hash, albums by ``(name, artist)``) mirror the session state so
    dedup checks and album lookups also see records that are not flushed yet.
    """

    def __init__(self, db_path: Optional[Path] = None) -> None:
        """Initialize catalog store.

        Args:
            db_path: Path to SQLite database file.
                    If None, uses default ~/.openstream/catalog.db

        Raises:
            CatalogError: If the database exists but cannot be read
        """
        if db_path is None:
            db_path = Path.home() / ".openstream" / "catalog.db"

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        db_exists = self.db_path.exists()

        # The owning thread may change (background sync), never concurrently
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            connect_args={"check_same_thread": False},
        )
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

        logger.info("Catalog initialized at: %s", self.db_path)

        if not db_exists:
            logger.info("New catalog detected, initializing schema...")
            self.init_db()

        self.session: Session = self.SessionLocal()
        self._songs_by_hash: Dict[str, Song] = {}
        self._albums_by_key: Dict[AlbumKey, Album] = {}
        try:
            self._rebuild_indices()
        except SQLAlchemyError as e:
            self.close()
            raise CatalogError(f"Cannot open catalog at {self.db_path}: {e}") from e

    def init_db(self) -> None:
        """Create the schema and stamp it as the latest migration."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Catalog schema created successfully")
        self._stamp_migrations()

    def _alembic_config(self) -> Optional[AlembicConfig]:
        # alembic.ini and alembic/ live in the project root
        project_dir = Path(__file__).parent.parent.parent.parent
        alembic_ini = project_dir / "alembic.ini"
        alembic_dir = project_dir / "alembic"

        if not alembic_ini.exists() or not alembic_dir.exists():
            logger.debug("Alembic not found at %s, skipping", project_dir)
            return None

        alembic_cfg = AlembicConfig(str(alembic_ini))
        alembic_cfg.set_main_option("script_location", str(alembic_dir))
        alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite:///{self.db_path}")
        return alembic_cfg

    def _stamp_migrations(self) -> None:
        """Stamp database as being at the latest migration version."""
        try:
            alembic_cfg = self._alembic_config()
            if alembic_cfg is None:
                return
            command.stamp(alembic_cfg, "head")
            logger.info("Catalog stamped with latest migration version")
        except Exception as e:
            logger.error("Failed to stamp migrations: %s", e)

    def run_migrations(self) -> None:
        """Run Alembic migrations to upgrade the catalog to latest version."""
        try:
            alembic_cfg = self._alembic_config()
            if alembic_cfg is None:
                return
            command.upgrade(alembic_cfg, "head")
            logger.info("Catalog migrations applied successfully")
        except Exception as e:
            logger.error("Failed to run migrations: %s", e)
            logger.warning("Continuing with current schema")

    def is_initialized(self) -> bool:
        """Check that the catalog tables exist and the engine answers."""
        try:
            inspector = inspect(self.engine)
            if not all(
                inspector.has_table(name)
                for name in ("songs", "albums", "app_settings")
            ):
                return False
            with self.SessionLocal() as session:
                session.execute(select(1))
            return True
        except SQLAlchemyError as e:
            logger.debug("Catalog initialization check failed: %s", e)
            return False

    def _rebuild_indices(self) -> None:
        """Reload the in-memory indices from the database."""
        songs = self.session.scalars(select(Song)).all()
        albums = self.session.scalars(select(Album)).all()
        self._songs_by_hash = {song.content_hash: song for song in songs}
        self._albums_by_key = {(album.name, album.artist): album for album in albums}

    # =========================================================================
    # Song Operations
    # =========================================================================

    def create_song(self, song_data: Dict[str, Any]) -> Song:
        """Create and stage a new song.

        Args:
            song_data: Song column values; ``content_hash`` is required

        Returns:
            The staged Song (persisted on the next flush)

        Raises:
            ValueError: If a song with the same content hash already exists
        """
        content_hash = song_data["content_hash"]
        if content_hash in self._songs_by_hash:
            raise ValueError(f"Duplicate content hash: {content_hash}")

        data = dict(song_data)
        data.setdefault("id", new_id())
        data.setdefault("imported_at", utcnow())
        song = Song(**data)
        self.session.add(song)
        self._songs_by_hash[content_hash] = song
        logger.debug("Staged song: %s - %s (ID: %s)", song.artist, song.title, song.id)
        return song

    def get_song(self, song_id: str) -> Optional[Song]:
        """Get a song by id, including songs staged but not yet flushed."""
        for song in self._songs_by_hash.values():
            if song.id == song_id:
                return song
        return None

    def find_song_by_hash(self, content_hash: str) -> Optional[Song]:
        """Find the song holding the given content hash."""
        return self._songs_by_hash.get(content_hash)

    def has_content(self, content_hash: str) -> bool:
        """Return True if some song already holds this content."""
        return content_hash in self._songs_by_hash

    def content_hashes(self) -> frozenset:
        """Snapshot of all known content hashes."""
        return frozenset(self._songs_by_hash)

    def get_all_songs(self) -> List[Song]:
        """Get all songs, newest import first (library order)."""
        return sorted(
            self._songs_by_hash.values(),
            key=lambda song: song.imported_at,
            reverse=True,
        )

    def delete_song(self, song: Song) -> Optional[Album]:
        """Delete a song and detach it from its album.

        If the song was the last member of its album, the album is deleted
        as well.

        Args:
            song: Song to delete

        Returns:
            The album that was removed because it became empty, if any
        """
        removed_album = None
        album = song.album
        if album is not None:
            if song in album.songs:
                album.songs.remove(song)
            if not album.songs:
                self.delete_album(album)
                removed_album = album

        self._songs_by_hash.pop(song.content_hash, None)
        self._discard(song)
        logger.debug("Deleted song: %s (ID: %s)", song.title, song.id)
        return removed_album

    # =========================================================================
    # Album Operations
    # =========================================================================

    def create_album(self, album_data: Dict[str, Any]) -> Album:
        """Create and stage a new album.

        Args:
            album_data: Album column values; ``name`` is required

        Returns:
            The staged Album
        """
        data = dict(album_data)
        data.setdefault("id", new_id())
        data.setdefault("created_at", utcnow())
        album = Album(**data)
        self.session.add(album)
        self._albums_by_key[(album.name, album.artist)] = album
        logger.debug("Staged album: %s by %s", album.name, album.artist)
        return album

    def find_album(self, name: str, artist: Optional[str]) -> Optional[Album]:
        """Find an album by its ``(name, artist)`` key."""
        return self._albums_by_key.get((name, artist))

    def get_all_albums(self) -> List[Album]:
        """Get all albums ordered by name ascending."""
        return sorted(
            self._albums_by_key.values(),
            key=lambda album: (album.name.casefold(), album.artist or ""),
        )

    def add_song_to_album(self, song: Song, album: Album) -> None:
        """Make ``album`` the owner of ``song`` (idempotent)."""
        if song.album is album:
            return
        previous = song.album
        if previous is not None and song in previous.songs:
            previous.songs.remove(song)
        album.songs.append(song)
        song.album = album

    def delete_album(self, album: Album) -> None:
        """Delete an album grouping; member songs keep their records."""
        for song in list(album.songs):
            song.album = None
        album.songs.clear()
        self._albums_by_key.pop((album.name, album.artist), None)
        self._discard(album)
        logger.debug("Deleted album: %s (ID: %s)", album.name, album.id)

    def _discard(self, instance: Any) -> None:
        state = inspect(instance)
        if state.pending:
            self.session.expunge(instance)
        elif state.persistent:
            self.session.delete(instance)

    # =========================================================================
    # Settings
    # =========================================================================

    def get_settings(self) -> AppSettings:
        """Get the settings singleton, creating it on first access."""
        with self.SessionLocal() as session:
            settings = session.scalar(select(AppSettings).limit(1))
            if settings is None:
                settings = AppSettings(group_by_album=True)
                session.add(settings)
                session.commit()
                logger.info("Created default settings")
            return settings

    def set_group_by_album(self, group_by_album: bool) -> AppSettings:
        """Persist the group-by-album flag."""
        with self.SessionLocal() as session:
            settings = session.scalar(select(AppSettings).limit(1))
            if settings is None:
                settings = AppSettings()
                session.add(settings)
            settings.group_by_album = group_by_album
            session.commit()
            logger.info("Group by album set to %s", group_by_album)
            return settings

    # =========================================================================
    # Persistence
    # =========================================================================

    @property
    def has_pending_changes(self) -> bool:
        """Whether staged changes are waiting for a flush."""
        return bool(self.session.new or self.session.dirty or self.session.deleted)

    def write_pending(self) -> bool:
        """Emit staged changes into the open transaction without committing.

        Deletions must reach the database before an insert that reuses the
        same content hash or album key; the unit of work orders inserts first.

        Returns:
            True on success; on failure the transaction is rolled back
        """
        try:
            self.session.flush()
            return True
        except SQLAlchemyError as e:
            logger.error("Catalog write failed, transaction rolled back: %s", e)
            self.session.rollback()
            self._rebuild_indices()
            return False

    def flush(self) -> bool:
        """Write all staged changes in one transaction.

        On failure the batch is rolled back, the error is logged and the
        indices are reloaded from the last persisted state.

        Returns:
            True if the changes were persisted
        """
        try:
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            logger.error("Catalog flush failed, batch rolled back: %s", e)
            self.session.rollback()
            self._rebuild_indices()
            return False

    def get_statistics(self) -> Dict[str, Any]:
        """Get catalog statistics."""
        songs = self._songs_by_hash.values()
        return {
            "songs": len(songs),
            "albums": len(self._albums_by_key),
            "total_bytes": sum(song.size for song in songs),
            "database_path": str(self.db_path),
        }

    def close(self) -> None:
        """Close the session and dispose of the engine."""
        self.session.close()
        self.engine.dispose()
        logger.debug("Catalog connection closed")
