"""Album aggregates derived from song metadata."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from ..database.models import Album, Song
from ..database.service import CatalogStore

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    """Changes made by one album reconciliation pass."""

    albums_created: int = 0
    songs_linked: int = 0
    albums_removed: int = 0
    artwork_updated: int = 0


class AlbumReconciler:
    """Keeps Album records consistent with the songs that reference them.

    Every path that groups a song (import, rescan repair) goes through
    :meth:`attach`, so duplicate detection lives in one place.
    """

    def __init__(self, catalog: CatalogStore) -> None:
        """Initialize album reconciler.

        Args:
            catalog: Catalog store holding songs and albums
        """
        self.catalog = catalog
        self._created = 0

    def attach(
        self,
        song: Song,
        album_name: Optional[str],
        album_artist: Optional[str],
        year: Optional[int],
        artwork_path: Optional[str],
    ) -> Optional[Album]:
        """Get or create the album a song belongs to.

        The lookup key is ``(album_name, album_artist or song.artist)``. An
        existing album without artwork adopts ``artwork_path``. The caller is
        responsible for adding the song to the album (see :meth:`link`).

        Args:
            song: Song being grouped
            album_name: Album name from metadata
            album_artist: Album artist from metadata, if any
            year: Release year
            artwork_path: Cached artwork path of the song

        Returns:
            The album, or None if ``album_name`` is empty
        """
        if not album_name or not album_name.strip():
            return None

        artist = album_artist or song.artist
        album = self.catalog.find_album(album_name, artist)
        if album is not None:
            if album.update_artwork(artwork_path):
                logger.debug("Album %s adopted artwork from %s", album.name, song.id)
            return album

        album = self.catalog.create_album(
            {
                "name": album_name,
                "artist": artist,
                "year": year,
                "artwork_path": artwork_path,
            }
        )
        self._created += 1
        logger.info("Created album: %s by %s", album_name, artist)
        return album

    def link(self, song: Song) -> Optional[Album]:
        """Attach ``song`` to its album using the song's own metadata."""
        album = self.attach(
            song,
            song.album_name,
            song.album_artist,
            song.year,
            song.artwork_path,
        )
        if album is not None:
            self.catalog.add_song_to_album(song, album)
        return album

    def reconcile(self, songs: Iterable[Song]) -> ReconciliationResult:
        """Repair album membership after a rescan.

        Links songs that have album metadata but no album, drops albums left
        without members and refreshes album artwork that no longer exists.

        Args:
            songs: The converged song list

        Returns:
            ReconciliationResult with counts of changes
        """
        result = ReconciliationResult()
        self._created = 0

        for song in songs:
            if song.album is None and song.album_name:
                if self.link(song) is not None:
                    result.songs_linked += 1

        for album in self.catalog.get_all_albums():
            if not album.songs:
                self.catalog.delete_album(album)
                result.albums_removed += 1
                continue
            if album.artwork_path and not Path(album.artwork_path).exists():
                album.artwork_path = None
            if album.artwork_path is None:
                for member in album.songs:
                    if album.update_artwork(member.artwork_path):
                        result.artwork_updated += 1
                        break

        result.albums_created = self._created
        if result.songs_linked or result.albums_removed:
            logger.info(
                "Album reconciliation: %d linked, %d created, %d removed",
                result.songs_linked,
                result.albums_created,
                result.albums_removed,
            )
        return result
