"""Metadata extraction for audio containers."""

from .extractor import (
    UNKNOWN_ARTIST,
    ExtractedMetadata,
    Extractor,
    MetadataExtractor,
    decode_asf_picture,
    extract_metadata,
    parse_number,
    parse_year,
)

__all__ = [
    "UNKNOWN_ARTIST",
    "ExtractedMetadata",
    "Extractor",
    "MetadataExtractor",
    "decode_asf_picture",
    "extract_metadata",
    "parse_number",
    "parse_year",
]
