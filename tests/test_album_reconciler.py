"""Tests for album grouping and reconciliation."""

import pytest

from openstream.core.albums import AlbumReconciler


def song_data(n: int, **overrides):
    data = {
        "file_name": f"Song {n}.mp3",
        "content_hash": f"{n:064x}",
        "size": 10,
        "title": f"Song {n}",
        "artist": "Track Artist",
    }
    data.update(overrides)
    return data


@pytest.fixture
def reconciler(catalog):
    return AlbumReconciler(catalog)


class TestAttach:
    """Test get-or-create of albums."""

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_no_album_name(self, catalog, reconciler, name):
        """Songs without an album name stay album-less."""
        song = catalog.create_song(song_data(1))
        assert reconciler.attach(song, name, None, None, None) is None
        assert catalog.get_all_albums() == []

    def test_creates_album_with_album_artist(self, catalog, reconciler):
        """The album artist is preferred over the track artist."""
        song = catalog.create_song(song_data(1))

        album = reconciler.attach(song, "Album", "Band", 2001, "/art.jpg")

        assert album.name == "Album"
        assert album.artist == "Band"
        assert album.year == 2001
        assert album.artwork_path == "/art.jpg"
        assert catalog.find_album("Album", "Band") is album

    def test_falls_back_to_track_artist(self, catalog, reconciler):
        """Without an album artist the track artist keys the album."""
        song = catalog.create_song(song_data(1))

        album = reconciler.attach(song, "Album", None, None, None)

        assert album.artist == "Track Artist"

    def test_reuses_existing_album(self, catalog, reconciler):
        """Songs of the same album share one record."""
        first = catalog.create_song(song_data(1))
        second = catalog.create_song(song_data(2))

        album_a = reconciler.attach(first, "Album", "Band", None, None)
        album_b = reconciler.attach(second, "Album", "Band", None, None)

        assert album_a is album_b
        assert len(catalog.get_all_albums()) == 1

    def test_same_name_different_artist(self, catalog, reconciler):
        """Same-named albums by different artists stay separate."""
        first = catalog.create_song(song_data(1))
        second = catalog.create_song(song_data(2))

        album_a = reconciler.attach(first, "Greatest Hits", "Band A", None, None)
        album_b = reconciler.attach(second, "Greatest Hits", "Band B", None, None)

        assert album_a is not album_b

    def test_backfills_missing_artwork(self, catalog, reconciler):
        """An album without artwork adopts the first available path."""
        first = catalog.create_song(song_data(1))
        second = catalog.create_song(song_data(2))
        third = catalog.create_song(song_data(3))

        album = reconciler.attach(first, "Album", "Band", None, None)
        reconciler.attach(second, "Album", "Band", None, "/second.jpg")
        reconciler.attach(third, "Album", "Band", None, "/third.jpg")

        assert album.artwork_path == "/second.jpg"


class TestLink:
    """Test membership updates."""

    def test_link_uses_song_metadata(self, catalog, reconciler):
        """Linking reads album fields from the song and sets both sides."""
        song = catalog.create_song(
            song_data(1, album_name="Album", album_artist="Band", year=1999)
        )

        album = reconciler.link(song)

        assert song.album is album
        assert album.songs == [song]
        assert album.year == 1999

    def test_link_twice_keeps_single_membership(self, catalog, reconciler):
        """Appending happens exactly once per song."""
        song = catalog.create_song(song_data(1, album_name="Album"))

        reconciler.link(song)
        album = reconciler.link(song)

        assert album.song_count == 1


class TestReconcile:
    """Test the post-scan repair pass."""

    def test_links_songs_missing_album(self, catalog, reconciler):
        """Songs with album metadata but no album link are grouped."""
        songs = [
            catalog.create_song(song_data(n, album_name="Album", album_artist="Band"))
            for n in range(3)
        ]

        result = reconciler.reconcile(songs)

        assert result.songs_linked == 3
        assert result.albums_created == 1
        album = catalog.find_album("Album", "Band")
        assert album.song_count == 3

    def test_removes_empty_albums(self, catalog, reconciler):
        """Albums left without members are deleted."""
        catalog.create_album({"name": "Empty", "artist": "Nobody"})

        result = reconciler.reconcile([])

        assert result.albums_removed == 1
        assert catalog.get_all_albums() == []

    def test_replaces_missing_album_artwork(self, catalog, reconciler, temp_dir):
        """Album artwork pointing at a deleted file is replaced by a member's."""
        existing = temp_dir / "cover.jpg"
        existing.write_bytes(b"jpeg")
        song = catalog.create_song(
            song_data(1, album_name="Album", artwork_path=str(existing))
        )
        album = catalog.create_album(
            {
                "name": "Album",
                "artist": "Track Artist",
                "artwork_path": str(temp_dir / "deleted.jpg"),
            }
        )
        catalog.add_song_to_album(song, album)

        result = reconciler.reconcile([song])

        assert album.artwork_path == str(existing)
        assert result.artwork_updated == 1

    def test_consistent_library_is_unchanged(self, catalog, reconciler):
        """A second pass finds nothing to do."""
        song = catalog.create_song(song_data(1, album_name="Album"))
        reconciler.reconcile([song])

        result = reconciler.reconcile([song])

        assert result.songs_linked == 0
        assert result.albums_created == 0
        assert result.albums_removed == 0
