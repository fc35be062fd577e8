"""Takeout directory scanning service."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Optional

from ..core.dates import is_iso_date_folder, is_year_folder
from ..core.errors import InvalidDirectoryError, SidecarParseError
from ..core.models import MediaKind, MediaRecord, ScanStatistics, TakeoutMetadata

logger = logging.getLogger(__name__)

SIDECAR_SUFFIX = ".json"

# Folder names Takeout uses as wrappers rather than albums
WRAPPER_FOLDER_NAMES = frozenset({"Google Photos", "Takeout"})
WRAPPER_FOLDER_PREFIX = "Photos from"


def is_media(path: Path) -> bool:
    """Image or video by extension. JSON is never media."""
    if path.suffix.lower() == SIDECAR_SUFFIX:
        return False
    return MediaKind.from_path(path) is not MediaKind.OTHER


def is_wrapper_folder(name: str) -> bool:
    """Check if a folder name is a Takeout wrapper, year or date folder."""
    return (
        name in WRAPPER_FOLDER_NAMES
        or name.startswith(WRAPPER_FOLDER_PREFIX)
        or is_year_folder(name)
        or is_iso_date_folder(name)
    )


def infer_album_name(takeout_root: Path, media_path: Path) -> Optional[str]:
    """Album from folder structure.

    The parent folder is the album unless it is the root or a wrapper/year/
    date folder; then the grandparent gets the same test.
    """
    root = takeout_root.resolve()
    parent = media_path.parent.resolve()

    for candidate in (parent, parent.parent):
        if candidate == root or root not in candidate.parents:
            return None
        if not is_wrapper_folder(candidate.name):
            return candidate.name
    return None


def find_sidecar(media_path: Path, json_names: Optional[list[str]] = None) -> Optional[Path]:
    """Find the Takeout JSON sidecar for a media file.

    Exact ``photo.jpg.json`` first. Otherwise the first JSON in the same
    folder whose name starts with the media stem, case-insensitive
    (``photo(1).jpg`` can pair with ``photo(1).json`` or ``photo.jpg(1).json``).

    Args:
        media_path: Media file.
        json_names: Sorted JSON file names of the folder, if already listed.
    """
    exact = media_path.with_name(media_path.name + SIDECAR_SUFFIX)
    if exact.is_file():
        return exact

    if json_names is None:
        try:
            json_names = sorted(
                entry.name for entry in os.scandir(media_path.parent)
                if entry.is_file() and entry.name.lower().endswith(SIDECAR_SUFFIX)
            )
        except OSError:
            return None

    prefix = media_path.stem.lower()
    for name in json_names:
        if name.lower().startswith(prefix):
            return media_path.parent / name
    return None


def parse_sidecar(path: Path) -> TakeoutMetadata:
    """Parse a Takeout JSON sidecar.

    Raises:
        SidecarParseError: Unreadable file, bad UTF-8, bad JSON or not an object.
    """
    try:
        # utf-8-sig tolerates a BOM
        with path.open("r", encoding="utf-8-sig") as handle:
            data = json.load(handle)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SidecarParseError(f"Cannot parse {path.name}: {e}", file=str(path)) from e

    if not isinstance(data, dict):
        raise SidecarParseError(f"Sidecar {path.name} is not a JSON object", file=str(path))
    return TakeoutMetadata.from_dict(data)


class TakeoutScanner:
    """Scans a Takeout export for media files and their sidecars.

    Directory entries are visited in sorted name order, so results and the
    prefix-match tie-break are stable across runs and platforms.
    """

    def __init__(self, follow_symlinks: bool = False):
        """Initialize the scanner.

        Args:
            follow_symlinks: Whether to descend into symlinked directories.
        """
        self._follow_symlinks = follow_symlinks

    def scan(self, takeout_root: Path) -> list[MediaRecord]:
        """Scan a Takeout root and return one record per media file.

        Raises:
            InvalidDirectoryError: If the root is missing or not a directory.
        """
        takeout_root = Path(takeout_root)
        if not takeout_root.exists() or not takeout_root.is_dir():
            raise InvalidDirectoryError(
                f"Invalid directory: {takeout_root}", path=str(takeout_root)
            )

        logger.info("Scanning Takeout directory: %s", takeout_root)
        records = list(self.iter_records(takeout_root))
        logger.info("Found %d media files", len(records))
        return records

    def iter_records(self, takeout_root: Path) -> Iterator[MediaRecord]:
        """Yield records directory by directory."""
        for dirpath, dirnames, filenames in os.walk(takeout_root, followlinks=self._follow_symlinks):
            dirnames.sort()
            directory = Path(dirpath)

            files = sorted(name for name in filenames if (directory / name).is_file())
            json_names = [name for name in files if name.lower().endswith(SIDECAR_SUFFIX)]

            for name in files:
                media_path = directory / name
                if not is_media(media_path):
                    continue
                yield self._build_record(takeout_root, media_path, json_names)

    def _build_record(
        self,
        takeout_root: Path,
        media_path: Path,
        json_names: list[str],
    ) -> MediaRecord:
        album_name = infer_album_name(takeout_root, media_path)
        sidecar = find_sidecar(media_path, json_names)
        if sidecar is None:
            logger.debug("No metadata file found for %s", media_path.name)
            return MediaRecord(path=media_path, album_name=album_name)

        try:
            metadata = parse_sidecar(sidecar)
        except SidecarParseError as e:
            logger.warning("Failed to parse metadata for %s (stage=scan): %s", media_path.name, e)
            return MediaRecord(path=media_path, sidecar_path=sidecar, album_name=album_name)

        return MediaRecord(
            path=media_path,
            sidecar_path=sidecar,
            metadata=metadata,
            album_name=album_name,
        )


def calculate_statistics(records: Iterable[MediaRecord]) -> ScanStatistics:
    """Aggregate statistics for a scan result."""
    stats = ScanStatistics()
    for record in records:
        stats.total_files += 1
        if record.metadata is None:
            stats.files_without_metadata += 1
            continue

        if record.is_image:
            stats.images_with_metadata += 1
        elif record.is_video:
            stats.videos_with_metadata += 1

        geo = record.metadata.geo_data
        if geo is not None and geo.has_valid_coordinates():
            stats.files_with_geo_data += 1
    return stats
