"""Tests for the catalog store."""

from datetime import datetime, timedelta

import pytest

from openstream.database.models import Album, Song
from openstream.database.service import CatalogStore
from openstream.exceptions import CatalogError


def song_data(n: int, **overrides):
    """Column values for a distinct test song."""
    data = {
        "file_name": f"Artist - Song {n}.mp3",
        "content_hash": f"{n:064x}",
        "size": 100 + n,
        "title": f"Song {n}",
        "artist": "Artist",
    }
    data.update(overrides)
    return data


def create_song_in_album(catalog: CatalogStore, n: int, album: Album) -> Song:
    song = catalog.create_song(song_data(n, album_name=album.name))
    catalog.add_song_to_album(song, album)
    return song


class TestCatalogInitialization:
    """Test schema creation."""

    def test_new_catalog_is_initialized(self, catalog):
        """A fresh database gets every table."""
        assert catalog.db_path.exists()
        assert catalog.is_initialized()

    def test_statistics_of_empty_catalog(self, catalog):
        """Counts start at zero."""
        stats = catalog.get_statistics()
        assert stats["songs"] == 0
        assert stats["albums"] == 0
        assert stats["total_bytes"] == 0
        assert stats["database_path"] == str(catalog.db_path)

    def test_unreadable_catalog_raises(self, temp_dir):
        """A file that is not a SQLite database cannot be opened."""
        db_path = temp_dir / "catalog.db"
        db_path.write_bytes(b"definitely not sqlite" * 64)

        with pytest.raises(CatalogError, match="Cannot open catalog"):
            CatalogStore(db_path)


class TestSongOperations:
    """Test song records."""

    def test_create_assigns_identity(self, catalog):
        """New songs receive an id and import timestamp."""
        song = catalog.create_song(song_data(1))

        assert song.id
        assert song.imported_at is not None
        assert catalog.get_song(song.id) is song

    def test_find_by_hash_sees_unflushed_songs(self, catalog):
        """Dedup lookups include staged records."""
        song = catalog.create_song(song_data(1))

        assert catalog.find_song_by_hash(song.content_hash) is song
        assert catalog.has_content(song.content_hash)
        assert not catalog.has_content("f" * 64)
        assert song.content_hash in catalog.content_hashes()

    def test_duplicate_hash_rejected(self, catalog):
        """Two songs can never share content."""
        catalog.create_song(song_data(1))
        with pytest.raises(ValueError):
            catalog.create_song(song_data(1, file_name="Other.mp3"))

    def test_songs_ordered_newest_first(self, catalog):
        """Library order is import timestamp descending."""
        base = datetime(2024, 1, 1)
        for n in range(3):
            catalog.create_song(song_data(n, imported_at=base + timedelta(days=n)))

        titles = [song.title for song in catalog.get_all_songs()]

        assert titles == ["Song 2", "Song 1", "Song 0"]

    def test_flush_persists_songs(self, temp_dir):
        """Flushed songs survive reopening the catalog."""
        db_path = temp_dir / "persist.db"
        store = CatalogStore(db_path)
        song_id = store.create_song(song_data(1)).id
        assert store.has_pending_changes
        assert store.flush()
        assert not store.has_pending_changes
        store.close()

        reopened = CatalogStore(db_path)
        try:
            assert reopened.get_song(song_id).title == "Song 1"
            assert reopened.has_content(song_data(1)["content_hash"])
        finally:
            reopened.close()

    def test_failed_flush_rolls_back_batch(self, catalog):
        """A failing flush discards the whole batch and keeps earlier data."""
        kept = catalog.create_song(song_data(1, id="fixed-id"))
        assert catalog.flush()

        catalog.create_song(song_data(2, id="fixed-id"))

        assert catalog.flush() is False
        assert catalog.has_content(kept.content_hash)
        assert not catalog.has_content(song_data(2)["content_hash"])
        assert len(catalog.get_all_songs()) == 1

    def test_reinsert_after_delete_in_one_transaction(self, catalog):
        """Content freed by a deletion can be reused before the next flush."""
        song = catalog.create_song(song_data(1))
        catalog.flush()

        catalog.delete_song(song)
        assert catalog.write_pending()
        replacement = catalog.create_song(song_data(1, file_name="Renamed.mp3"))

        assert catalog.flush()
        assert catalog.find_song_by_hash(replacement.content_hash) is replacement


class TestAlbumOperations:
    """Test album records and cascade rules."""

    def test_find_album_by_name_and_artist(self, catalog):
        """Albums are keyed by (name, artist)."""
        album = catalog.create_album({"name": "Album", "artist": "Artist"})

        assert catalog.find_album("Album", "Artist") is album
        assert catalog.find_album("Album", "Someone Else") is None

    def test_albums_ordered_by_name(self, catalog):
        """Albums list in case-insensitive name order."""
        for name in ("beta", "Alpha", "gamma"):
            catalog.create_album({"name": name, "artist": "A"})

        assert [a.name for a in catalog.get_all_albums()] == ["Alpha", "beta", "gamma"]

    def test_add_song_to_album_is_idempotent(self, catalog):
        """Adding twice keeps one membership."""
        album = catalog.create_album({"name": "Album", "artist": "Artist"})
        song = catalog.create_song(song_data(1))

        catalog.add_song_to_album(song, album)
        catalog.add_song_to_album(song, album)

        assert album.songs == [song]
        assert song.album is album

    def test_delete_last_member_removes_album(self, catalog):
        """Deleting the only song deletes its album."""
        album = catalog.create_album({"name": "Album", "artist": "Artist"})
        song = create_song_in_album(catalog, 1, album)
        catalog.flush()

        removed = catalog.delete_song(song)
        catalog.flush()

        assert removed is album
        assert catalog.get_all_albums() == []
        assert catalog.get_all_songs() == []

    def test_delete_non_last_member_keeps_album(self, catalog):
        """Deleting one of several songs only shrinks the album."""
        album = catalog.create_album({"name": "Album", "artist": "Artist"})
        first = create_song_in_album(catalog, 1, album)
        second = create_song_in_album(catalog, 2, album)
        catalog.flush()

        removed = catalog.delete_song(first)
        catalog.flush()

        assert removed is None
        assert catalog.find_album("Album", "Artist") is album
        assert album.song_count == 1
        assert album.songs == [second]

    def test_delete_album_keeps_songs(self, catalog):
        """Deleting an album only removes the grouping."""
        album = catalog.create_album({"name": "Album", "artist": "Artist"})
        song = create_song_in_album(catalog, 1, album)
        catalog.flush()

        catalog.delete_album(album)
        catalog.flush()

        assert catalog.get_all_albums() == []
        assert catalog.get_song(song.id) is song
        assert song.album is None

    def test_cascade_persists(self, temp_dir):
        """Album removal through song deletion is written to disk."""
        db_path = temp_dir / "cascade.db"
        store = CatalogStore(db_path)
        album = store.create_album({"name": "Album", "artist": "Artist"})
        song = create_song_in_album(store, 1, album)
        store.flush()
        store.delete_song(song)
        store.flush()
        store.close()

        reopened = CatalogStore(db_path)
        try:
            assert reopened.get_all_albums() == []
            assert reopened.get_all_songs() == []
        finally:
            reopened.close()


class TestSettings:
    """Test the settings singleton."""

    def test_default_groups_by_album(self, catalog):
        """Settings are created on first access with grouping enabled."""
        assert catalog.get_settings().group_by_album is True

    def test_toggle_persists(self, catalog):
        """The grouping flag is stored."""
        catalog.set_group_by_album(False)
        assert catalog.get_settings().group_by_album is False

        catalog.set_group_by_album(True)
        assert catalog.get_settings().group_by_album is True
