"""Content fingerprints used for song and artwork dedup."""

import hashlib
from pathlib import Path

CHUNK_SIZE = 64 * 1024


def hash_bytes(data: bytes) -> str:
    """Compute the SHA256 hex digest of a byte buffer."""
    return hashlib.sha256(data).hexdigest()


def hash_file(file_path: Path) -> str:
    """Compute the SHA256 hex digest of a file's full content.

    Produces the same digest as :func:`hash_bytes` over the file bytes, but
    reads in chunks so large files are never held in memory.

    Args:
        file_path: Path to file

    Returns:
        Lower-case hexadecimal hash string

    Raises:
        OSError: If the file cannot be read
    """
    sha256 = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            sha256.update(chunk)
    return sha256.hexdigest()
