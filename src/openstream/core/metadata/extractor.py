"""Audio metadata extraction with mutagen.

The extractor never raises: unreadable containers and malformed tags degrade
to best-effort defaults (file stem as title, "Unknown Artist", zero duration).
"""

import base64
import logging
import math
import re
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import mutagen
from mutagen.asf import ASFTags
from mutagen.flac import Picture
from mutagen.id3 import ID3, ID3NoHeaderError
from mutagen.mp4 import MP4Tags

# Alias for mutagen.File - mutagen doesn't have type stubs
MutagenFile = mutagen.File

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"

_NUMBER_RE = re.compile(r"^\s*(\d+)")
_YEAR_RE = re.compile(r"^\s*(\d{4})")
_ASF_PICTURE_HEADER = struct.Struct("<BI")


@dataclass
class ExtractedMetadata:
    """Normalized metadata read from one audio file."""

    title: str
    artist: str = UNKNOWN_ARTIST
    duration: float = 0.0
    album: Optional[str] = None
    album_artist: Optional[str] = None
    genre: Optional[str] = None
    composer: Optional[str] = None
    track_number: Optional[int] = None
    disc_number: Optional[int] = None
    year: Optional[int] = None
    lyrics: Optional[str] = None
    description: Optional[str] = None
    artwork: Optional[bytes] = None

    @classmethod
    def defaults_for(cls, file_path: Path) -> "ExtractedMetadata":
        """Best-effort metadata when nothing can be read from the file."""
        return cls(title=Path(file_path).stem)


# Signature shared by the real extractor and test doubles
Extractor = Callable[[Path], ExtractedMetadata]


def parse_number(value: Any) -> Optional[int]:
    """Parse track/disc numbers given as ``"N"`` or ``"N/total"``.

    Returns None for non-numeric input instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value
    match = _NUMBER_RE.match(str(value).split("/", 1)[0])
    return int(match.group(1)) if match else None


def parse_year(value: Any) -> Optional[int]:
    """Parse a bare year or the year prefix of an ISO date."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    match = _YEAR_RE.match(str(value))
    return int(match.group(1)) if match else None


def decode_asf_picture(data: bytes) -> Optional[bytes]:
    """Image bytes stored in an ASF ``WM/Picture`` attribute.

    The attribute holds the picture type (1 byte), the image size (uint32,
    little-endian), the MIME type and description as null-terminated
    UTF-16-LE strings, then the image itself.

    Returns:
        The image bytes, or None when the attribute is truncated or malformed
    """
    try:
        _picture_type, size = _ASF_PICTURE_HEADER.unpack_from(data)
    except struct.error:
        return None

    offset = _ASF_PICTURE_HEADER.size
    for _ in range(2):  # MIME type, description
        end = _utf16_terminator(data, offset)
        if end < 0:
            return None
        offset = end + 2

    image = data[offset : offset + size]
    if not image or len(image) != size:
        return None
    return image


def _utf16_terminator(data: bytes, start: int) -> int:
    for index in range(start, len(data) - 1, 2):
        if data[index] == 0 and data[index + 1] == 0:
            return index
    return -1


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().strip("\x00")
    return text or None


class MetadataExtractor:
    """Reads tags, duration and cover art from arbitrary audio containers."""

    # Lower-case keys shared by Vorbis comments (FLAC, Ogg, Opus) and APEv2
    GENERIC_KEYS: Dict[str, Tuple[str, ...]] = {
        "title": ("title",),
        "artist": ("artist",),
        "album": ("album",),
        "album_artist": ("albumartist", "album artist", "album_artist"),
        "genre": ("genre",),
        "composer": ("composer",),
        "track": ("tracknumber", "track"),
        "disc": ("discnumber", "disc"),
        "date": ("date", "year"),
        "lyrics": ("lyrics", "unsyncedlyrics"),
        "comment": ("comment", "description"),
    }

    ID3_FRAMES: Dict[str, Tuple[str, ...]] = {
        "title": ("TIT2",),
        "artist": ("TPE1",),
        "album": ("TALB",),
        "album_artist": ("TPE2",),
        "genre": ("TCON",),
        "composer": ("TCOM",),
        "track": ("TRCK",),
        "disc": ("TPOS",),
        "date": ("TDRC", "TYER", "TDRL"),
    }

    MP4_KEYS: Dict[str, Tuple[str, ...]] = {
        "title": ("\xa9nam",),
        "artist": ("\xa9ART",),
        "album": ("\xa9alb",),
        "album_artist": ("aART",),
        "genre": ("\xa9gen",),
        "composer": ("\xa9wrt",),
        "date": ("\xa9day",),
        "lyrics": ("\xa9lyr",),
        "comment": ("\xa9cmt", "desc"),
    }

    ASF_KEYS: Dict[str, Tuple[str, ...]] = {
        "title": ("Title",),
        "artist": ("Author",),
        "album": ("WM/AlbumTitle",),
        "album_artist": ("WM/AlbumArtist",),
        "genre": ("WM/Genre",),
        "composer": ("WM/Composer",),
        "track": ("WM/TrackNumber",),
        "disc": ("WM/PartOfSet",),
        "date": ("WM/Year",),
        "lyrics": ("WM/Lyrics",),
        "comment": ("Description",),
    }

    def __call__(self, file_path: Path) -> ExtractedMetadata:
        """Alias for :meth:`extract` so instances satisfy ``Extractor``."""
        return self.extract(file_path)

    def extract(self, file_path: Path) -> ExtractedMetadata:
        """Extract normalized metadata from an audio file.

        Args:
            file_path: Path to audio file

        Returns:
            ExtractedMetadata, falling back to defaults for anything unreadable
        """
        file_path = Path(file_path)
        metadata = ExtractedMetadata.defaults_for(file_path)

        audio = None
        tags = None
        try:
            audio = MutagenFile(file_path)
            tags = audio.tags if audio is not None else None
        except Exception as e:
            logger.debug("mutagen could not parse %s: %s", file_path.name, e)

        # Broken audio frames can still carry a readable ID3 header
        if tags is None:
            tags = self._read_bare_id3(file_path)

        if audio is not None:
            metadata.duration = self._duration(audio)

        if tags is None:
            return metadata

        try:
            raw, artwork = self._read_tags(audio, tags)
        except Exception as e:
            logger.warning("Failed to read tags from %s: %s", file_path, e)
            return metadata

        self._apply(metadata, raw)
        metadata.artwork = artwork or None
        return metadata

    # ------------------------------------------------------------------
    # Container helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _read_bare_id3(file_path: Path) -> Optional[ID3]:
        try:
            return ID3(file_path)
        except ID3NoHeaderError:
            return None
        except Exception as e:
            logger.debug("No readable ID3 tags in %s: %s", file_path.name, e)
            return None

    @staticmethod
    def _duration(audio: Any) -> float:
        length = getattr(getattr(audio, "info", None), "length", None)
        try:
            seconds = float(length)
        except (TypeError, ValueError):
            return 0.0
        return seconds if math.isfinite(seconds) and seconds >= 0 else 0.0

    def _read_tags(
        self, audio: Any, tags: Any
    ) -> Tuple[Dict[str, Optional[str]], Optional[bytes]]:
        if isinstance(tags, ID3):
            return self._read_id3(tags)
        if isinstance(tags, MP4Tags):
            return self._read_mp4(tags)
        if isinstance(tags, ASFTags):
            return self._read_asf(tags)
        return self._read_generic(audio, tags)

    def _read_id3(self, tags: ID3) -> Tuple[Dict[str, Optional[str]], Optional[bytes]]:
        raw: Dict[str, Optional[str]] = {}
        for field, frame_ids in self.ID3_FRAMES.items():
            raw[field] = None
            for frame_id in frame_ids:
                frame = tags.get(frame_id)
                if frame is not None and getattr(frame, "text", None):
                    raw[field] = _clean(frame.text[0])
                    break

        raw["lyrics"] = None
        for frame in tags.getall("USLT"):
            raw["lyrics"] = _clean(frame.text)
            if raw["lyrics"]:
                break
        if not raw["lyrics"]:
            for frame in tags.getall("SYLT"):
                lines = [str(text) for text, _ in frame.text]
                raw["lyrics"] = _clean("\n".join(lines))
                if raw["lyrics"]:
                    break

        raw["comment"] = None
        for frame in tags.getall("COMM"):
            if frame.text:
                raw["comment"] = _clean(frame.text[0])
                if raw["comment"]:
                    break

        artwork = None
        pictures = tags.getall("APIC")
        if pictures:
            artwork = pictures[0].data
        return raw, artwork

    def _read_mp4(
        self, tags: MP4Tags
    ) -> Tuple[Dict[str, Optional[str]], Optional[bytes]]:
        raw = self._lookup(tags, self.MP4_KEYS)
        for field, key in (("track", "trkn"), ("disc", "disk")):
            value = tags.get(key)
            number = value[0][0] if value and value[0] else None
            raw[field] = str(number) if number else None

        artwork = None
        covers = tags.get("covr")
        if covers:
            artwork = bytes(covers[0])
        return raw, artwork

    def _read_asf(
        self, tags: ASFTags
    ) -> Tuple[Dict[str, Optional[str]], Optional[bytes]]:
        raw: Dict[str, Optional[str]] = {}
        for field, keys in self.ASF_KEYS.items():
            raw[field] = None
            for key in keys:
                values = tags.get(key)
                if values:
                    raw[field] = _clean(getattr(values[0], "value", values[0]))
                    break
        artwork = None
        for picture in tags.get("WM/Picture") or []:
            artwork = decode_asf_picture(bytes(getattr(picture, "value", picture)))
            if artwork:
                break
        return raw, artwork

    def _read_generic(
        self, audio: Any, tags: Any
    ) -> Tuple[Dict[str, Optional[str]], Optional[bytes]]:
        raw = self._lookup(tags, self.GENERIC_KEYS)

        artwork = None
        pictures: List[Any] = list(getattr(audio, "pictures", None) or [])
        if pictures:
            artwork = pictures[0].data
        else:
            encoded = self._first(tags, "metadata_block_picture")
            if encoded:
                try:
                    artwork = Picture(base64.b64decode(encoded)).data
                except Exception as e:
                    logger.debug("Unreadable embedded picture block: %s", e)
        return raw, artwork

    @classmethod
    def _lookup(
        cls, tags: Any, key_map: Dict[str, Tuple[str, ...]]
    ) -> Dict[str, Optional[str]]:
        raw: Dict[str, Optional[str]] = {}
        for field, keys in key_map.items():
            raw[field] = None
            for key in keys:
                value = cls._first(tags, key)
                if value:
                    raw[field] = value
                    break
        return raw

    @staticmethod
    def _first(tags: Any, key: str) -> Optional[str]:
        try:
            value = tags.get(key)
        except (KeyError, ValueError):
            return None
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        return _clean(value)

    @staticmethod
    def _apply(metadata: ExtractedMetadata, raw: Dict[str, Optional[str]]) -> None:
        if raw.get("title"):
            metadata.title = raw["title"]  # type: ignore[assignment]
        if raw.get("artist"):
            metadata.artist = raw["artist"]  # type: ignore[assignment]
        metadata.album = raw.get("album")
        metadata.album_artist = raw.get("album_artist")
        metadata.genre = raw.get("genre")
        metadata.composer = raw.get("composer")
        metadata.track_number = parse_number(raw.get("track"))
        metadata.disc_number = parse_number(raw.get("disc"))
        metadata.year = parse_year(raw.get("date"))
        metadata.lyrics = raw.get("lyrics")
        metadata.description = raw.get("comment")


_default_extractor = MetadataExtractor()


def extract_metadata(file_path: Path) -> ExtractedMetadata:
    """Extract metadata with the shared default extractor."""
    return _default_extractor.extract(file_path)
