"""Metadata embedding service.

JPEGs get an EXIF block (piexif, lossless) and then their XMP fields merged
in by ExifTool. Videos are never rewritten; they get a ``<name>.xmp``
sidecar instead.
"""
from __future__ import annotations

import logging
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Optional

from ..core.dates import resolve_capture_datetime
from ..core.errors import MetadataEmbedError
from ..core.models import TakeoutMetadata
from ..engines.exif import load_exif, merge_takeout_fields, write_exif
from ..engines.exiftool import XmpFields
from .exiftool import ExifToolService
from .file_ops import FileManager

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".exif.tmp"
SIDECAR_SUFFIX = ".xmp"


def temp_path_for(destination: Path) -> Path:
    return destination.with_name(destination.name + TEMP_SUFFIX)


def sidecar_path_for(video: Path) -> Path:
    return video.with_name(video.name + SIDECAR_SUFFIX)


class MetadataEmbedder:
    """Writes Takeout metadata into JPEGs and video sidecars."""

    def __init__(
        self,
        file_manager: Optional[FileManager] = None,
        tz: tzinfo = timezone.utc,
        exiftool: Optional[ExifToolService] = None,
    ):
        """Initialize the embedder.

        Args:
            file_manager: Used for the plain-copy fallback.
            tz: Zone used to turn sidecar timestamps into EXIF dates.
            exiftool: XMP writer (default: a private service).
        """
        self._files = file_manager or FileManager()
        self._tz = tz
        self._exiftool = exiftool or ExifToolService()

    def embed_jpeg(
        self,
        source: Path,
        destination: Path,
        metadata: Optional[TakeoutMetadata],
        album_name: Optional[str],
        data: Optional[bytes] = None,
    ) -> Path:
        """Write ``source`` to ``destination`` with EXIF and XMP merged in.

        Pixel data is never re-encoded and XMP properties not set here are
        kept. If the XMP step fails the EXIF-only file is kept; if the EXIF
        step fails the source is copied unchanged. Neither fallback raises.

        Args:
            source: Original JPEG (left untouched).
            destination: Final path, normally from ``unique_path``.
            metadata: Parsed sidecar, if any.
            album_name: Inferred album, if any.
            data: Content of ``source`` if the caller already read it.

        Returns:
            The destination path.

        Raises:
            FileSystemError: If even the plain copy fallback fails.
        """
        capture_time = resolve_capture_datetime(metadata, self._tz)
        temp_path = temp_path_for(destination)

        exif_dict = load_exif(source, data)
        merge_takeout_fields(exif_dict, metadata, album_name, source.name, capture_time)

        try:
            write_exif(source, temp_path, exif_dict, data)
        except MetadataEmbedError as e:
            logger.warning("Metadata embed failed for %s (stage=exif), copying as is: %s", source.name, e)
            temp_path.unlink(missing_ok=True)
            return self._files.copy_file(source, destination)

        fields = XmpFields.from_takeout(metadata, album_name, capture_time)
        if fields.is_empty:
            temp_path.replace(destination)
        else:
            try:
                self._exiftool.write_xmp(temp_path, destination, fields)
                temp_path.unlink()
            except MetadataEmbedError as e:
                logger.warning("Metadata embed failed for %s (stage=xmp), keeping EXIF only: %s", source.name, e)
                destination.unlink(missing_ok=True)
                temp_path.replace(destination)

        logger.debug("Embedded metadata into %s", destination.name)
        return destination

    def write_video_sidecar(
        self,
        video: Path,
        metadata: Optional[TakeoutMetadata],
        album_name: Optional[str],
    ) -> Optional[Path]:
        """Write ``<video>.xmp`` beside an already placed video.

        Returns:
            Path of the sidecar, or None if there was nothing to write or
            writing failed.
        """
        capture_time = resolve_capture_datetime(metadata, self._tz)
        fields = XmpFields.from_takeout(metadata, album_name, capture_time)
        if fields.is_empty:
            return None

        target = sidecar_path_for(video)
        if not video.parent.is_dir():
            logger.warning("Failed to write XMP sidecar for %s (stage=sidecar): no such directory", video.name)
            return None
        try:
            target.unlink(missing_ok=True)
            self._exiftool.create_sidecar(target, fields)
        except (MetadataEmbedError, OSError) as e:
            logger.warning("Failed to write XMP sidecar for %s (stage=sidecar): %s", video.name, e)
            return None

        logger.debug("Wrote XMP sidecar %s", target.name)
        return target
