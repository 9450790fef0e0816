"""Tests for the click command-line interface."""

import wave
from pathlib import Path

import pytest
from click.testing import CliRunner

from openstream.cli.main import cli
from openstream.database.service import CatalogStore


def create_wav(path: Path, frames: int = 800) -> Path:
    """Write a short silent WAV file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(8000)
        wav.writeframes(b"\x00\x00" * frames)
    return path


@pytest.fixture
def cli_runner():
    """Provide a Click CliRunner for CLI testing."""
    return CliRunner()


@pytest.fixture
def outside_dir(temp_dir):
    path = temp_dir / "Downloads"
    path.mkdir()
    return path


def only_song_id(config) -> str:
    store = CatalogStore(config.database_path)
    try:
        (song,) = store.get_all_songs()
        return song.id
    finally:
        store.close()


class TestCli:
    """Test CLI commands end to end."""

    def test_import_and_list(self, cli_runner, library_config, outside_dir):
        """Imported songs show up in the song list."""
        source = create_wav(outside_dir / "Morning.wav")

        result = cli_runner.invoke(cli, ["import", str(source)])
        assert result.exit_code == 0, result.output
        assert "Import complete" in result.output

        result = cli_runner.invoke(cli, ["songs"])
        assert result.exit_code == 0, result.output
        assert "Morning" in result.output

    def test_duplicate_import_is_skipped(self, cli_runner, library_config, outside_dir):
        """Importing the same file twice keeps one song."""
        source = create_wav(outside_dir / "Twice.wav")

        cli_runner.invoke(cli, ["import", str(source)])
        result = cli_runner.invoke(cli, ["import", str(source)])

        assert result.exit_code == 0, result.output
        only_song_id(library_config)

    def test_sync_adopts_files(self, cli_runner, library_config):
        """Sync catalogs files dropped into the songs folder."""
        create_wav(library_config.songs_directory / "Dropped.wav")

        result = cli_runner.invoke(cli, ["sync"])

        assert result.exit_code == 0, result.output
        assert "Files Adopted" in result.output
        only_song_id(library_config)

    def test_albums_empty(self, cli_runner, library_config):
        """An empty library has no albums."""
        result = cli_runner.invoke(cli, ["albums"])
        assert result.exit_code == 0
        assert "No albums" in result.output

    def test_locate_and_delete(self, cli_runner, library_config, outside_dir):
        """A song can be located and then deleted with its file."""
        cli_runner.invoke(cli, ["import", str(create_wav(outside_dir / "Gone.wav"))])
        song_id = only_song_id(library_config)

        result = cli_runner.invoke(cli, ["locate", song_id])
        assert result.exit_code == 0, result.output
        location = Path(result.output.strip().splitlines()[-1])
        assert location.exists()
        assert location.parent == library_config.songs_directory

        result = cli_runner.invoke(cli, ["delete", song_id, "--yes"])
        assert result.exit_code == 0, result.output
        assert not location.exists()

    def test_unknown_song(self, cli_runner, library_config):
        """Unknown ids are reported as errors."""
        result = cli_runner.invoke(cli, ["locate", "no-such-id"])
        assert result.exit_code != 0
        assert "Song not found" in result.output

    def test_settings_toggle(self, cli_runner, library_config):
        """The grouping flag can be switched off and on."""
        result = cli_runner.invoke(cli, ["settings", "--flat"])
        assert result.exit_code == 0, result.output
        assert "flat" in result.output

        store = CatalogStore(library_config.database_path)
        try:
            assert store.get_settings().group_by_album is False
        finally:
            store.close()

        result = cli_runner.invoke(cli, ["settings", "--group-by-album"])
        assert "album folders" in result.output

    def test_stats(self, cli_runner, library_config):
        """Statistics are printed as a table."""
        result = cli_runner.invoke(cli, ["stats"])
        assert result.exit_code == 0, result.output
        assert "Songs" in result.output
        assert "Albums" in result.output

    def test_listing_catalogs_dropped_files(self, cli_runner, library_config):
        """Opening the library picks up files dropped while it was closed."""
        create_wav(library_config.songs_directory / "Evening.wav")

        result = cli_runner.invoke(cli, ["songs"])

        assert result.exit_code == 0, result.output
        assert "Evening" in result.output
        only_song_id(library_config)

    def test_sync_with_log_level(self, cli_runner, library_config):
        """The sync command accepts its own log level."""
        create_wav(library_config.songs_directory / "Noon.wav")

        result = cli_runner.invoke(cli, ["sync", "--log-level", "info"])

        assert result.exit_code == 0, result.output
        assert "Files Adopted" in result.output

    def test_unreadable_catalog(self, cli_runner, library_config):
        """A corrupt catalog is reported instead of crashing."""
        library_config.database_path.write_bytes(b"not a database" * 64)

        result = cli_runner.invoke(cli, ["songs"])

        assert result.exit_code != 0
        assert "Cannot open catalog" in result.output
