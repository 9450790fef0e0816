"""Tests for content hashing."""

import pytest

from openstream.core.hashing import CHUNK_SIZE, hash_bytes, hash_file

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
ABC_SHA256 = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


class TestHashBytes:
    """Test hashing of in-memory buffers."""

    def test_known_digests(self):
        """Digests match published SHA256 test vectors."""
        assert hash_bytes(b"") == EMPTY_SHA256
        assert hash_bytes(b"abc") == ABC_SHA256

    def test_distinct_buffers_differ(self):
        """Distinct content never shares a fingerprint."""
        fixtures = [b"song one", b"song two", b"song one ", b"\x00", b"\x00\x00"]
        digests = {hash_bytes(data) for data in fixtures}
        assert len(digests) == len(fixtures)

    def test_digest_is_lowercase_hex(self):
        """Digest is 64 lower-case hex characters."""
        digest = hash_bytes(b"anything")
        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)


class TestHashFile:
    """Test chunked file hashing."""

    def test_matches_hash_bytes_for_large_file(self, temp_dir):
        """A file spanning several chunks hashes like its bytes."""
        data = bytes(range(256)) * (CHUNK_SIZE // 256 * 3 + 7)
        path = temp_dir / "big.bin"
        path.write_bytes(data)

        assert hash_file(path) == hash_bytes(data)

    def test_empty_file(self, temp_dir):
        """An empty file has the empty digest."""
        path = temp_dir / "empty.mp3"
        path.touch()
        assert hash_file(path) == EMPTY_SHA256

    def test_missing_file_raises(self, temp_dir):
        """Unreadable files raise OSError for the caller to handle."""
        with pytest.raises(OSError):
            hash_file(temp_dir / "missing.mp3")
