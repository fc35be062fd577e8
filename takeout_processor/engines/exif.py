"""EXIF block read/merge/write using piexif.

Writes are lossless: piexif rewrites only the APP1 segment, image data and
anything after it (including Motion Photo trailers) is kept byte for byte.
"""
from __future__ import annotations

import logging
import struct
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import piexif

from ..core.dates import format_exif_datetime
from ..core.errors import MetadataEmbedError
from ..core.models import TakeoutMetadata

logger = logging.getLogger(__name__)

PEOPLE_PREFIX = "People: "
ALBUM_PREFIX = "Album: "


def empty_exif() -> dict[str, Any]:
    """An empty piexif dictionary."""
    return {"0th": {}, "Exif": {}, "GPS": {}, "Interop": {}, "1st": {}, "thumbnail": None}


def _encode(value: str) -> bytes:
    # piexif encodes str as latin-1; names and captions often are not
    return value.encode("utf-8")


def _decode(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.rstrip(b"\x00").decode("utf-8", errors="replace")
    return str(value)


def load_exif(path: Path, data: Optional[bytes] = None) -> dict[str, Any]:
    """Load the existing EXIF block of a JPEG, or an empty one.

    A missing or unreadable block is not an error; the caller starts fresh.
    ``data``, if given, is the already read content of ``path``.
    """
    try:
        exif_dict = piexif.load(data if data is not None else str(path))
    except (piexif.InvalidImageDataError, ValueError, struct.error, KeyError, OSError) as e:
        logger.debug("No usable EXIF in %s: %s", path.name, e)
        return empty_exif()

    for ifd in ("0th", "Exif", "GPS", "Interop", "1st"):
        exif_dict.setdefault(ifd, {})
    exif_dict.setdefault("thumbnail", None)
    return exif_dict


def merge_takeout_fields(
    exif_dict: dict[str, Any],
    metadata: Optional[TakeoutMetadata],
    album_name: Optional[str],
    source_name: str,
    capture_time: Optional[datetime],
) -> dict[str, Any]:
    """Merge sidecar metadata into an EXIF dictionary (in place).

    EXIF has no people or album tags; Software and Artist carry them as
    "People: ..." and "Album: ...". GPS is not written.
    """
    zeroth = exif_dict.setdefault("0th", {})
    exif_ifd = exif_dict.setdefault("Exif", {})

    if capture_time is not None:
        stamp = _encode(format_exif_datetime(capture_time))
        exif_ifd[piexif.ExifIFD.DateTimeOriginal] = stamp
        exif_ifd[piexif.ExifIFD.DateTimeDigitized] = stamp

    if metadata is not None:
        if metadata.description and metadata.description.strip():
            zeroth[piexif.ImageIFD.ImageDescription] = _encode(metadata.description)

        if (
            metadata.title
            and metadata.title.strip()
            and metadata.title != source_name
        ):
            zeroth[piexif.ImageIFD.DocumentName] = _encode(metadata.title)

        names = metadata.people_names
        if names:
            zeroth[piexif.ImageIFD.Software] = _encode(PEOPLE_PREFIX + ", ".join(names))

        if metadata.geo_data_exif is not None and metadata.geo_data_exif.has_valid_coordinates():
            logger.debug("GPS data available but not written for %s", source_name)

    if album_name and album_name.strip():
        zeroth[piexif.ImageIFD.Artist] = _encode(ALBUM_PREFIX + album_name.strip())

    return exif_dict


def write_exif(
    source: Path,
    target: Path,
    exif_dict: dict[str, Any],
    data: Optional[bytes] = None,
) -> None:
    """Write ``source`` (or its content ``data``) to ``target`` with its EXIF block replaced.

    Raises:
        MetadataEmbedError: If the block cannot be serialized or inserted.
    """
    try:
        exif_bytes = piexif.dump(exif_dict)
        piexif.insert(exif_bytes, data if data is not None else str(source), str(target))
    except (piexif.InvalidImageDataError, ValueError, struct.error, TypeError, KeyError, OSError) as e:
        raise MetadataEmbedError(
            f"EXIF write failed for {source.name}: {e}",
            stage="exif",
            file=str(source),
        ) from e


def read_exif_fields(path: Path) -> dict[str, Optional[str]]:
    """Read back the fields this package writes, decoded to text."""
    exif_dict = load_exif(path)
    zeroth = exif_dict.get("0th", {})
    exif_ifd = exif_dict.get("Exif", {})
    return {
        "date_time_original": _decode(exif_ifd.get(piexif.ExifIFD.DateTimeOriginal)),
        "date_time_digitized": _decode(exif_ifd.get(piexif.ExifIFD.DateTimeDigitized)),
        "description": _decode(zeroth.get(piexif.ImageIFD.ImageDescription)),
        "document_name": _decode(zeroth.get(piexif.ImageIFD.DocumentName)),
        "people": _decode(zeroth.get(piexif.ImageIFD.Software)),
        "album": _decode(zeroth.get(piexif.ImageIFD.Artist)),
    }
