"""File operations service."""
from __future__ import annotations

import logging
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..core.config import OrganizationMode
from ..core.errors import FileSystemError

logger = logging.getLogger(__name__)

UNKNOWN_DATE_FOLDER = "Unknown_Date"
NO_ALBUM_FOLDER = "No_Album"
MAX_UNIQUE_ATTEMPTS = 10000


def sanitize_album_name(album_name: Optional[str]) -> Optional[str]:
    """Strip an album name and make it safe as a single path component.

    Returns None for a missing or blank name.
    """
    if album_name is None:
        return None
    cleaned = album_name.strip()
    if not cleaned:
        return None
    cleaned = cleaned.replace("/", "_").replace("\\", "_")
    if cleaned in (".", ".."):
        return cleaned.replace(".", "_")
    return cleaned


class DestinationResolver:
    """Decides where a file goes inside the output root."""

    def __init__(self, output_root: Path, mode: OrganizationMode = OrganizationMode.BY_MONTH):
        """Initialize the resolver.

        Args:
            output_root: Root directory for output.
            mode: How to organize files.
        """
        self._output_root = output_root
        self._mode = mode

    @property
    def output_root(self) -> Path:
        return self._output_root

    def resolve_directory(
        self,
        capture_time: Optional[datetime],
        album_name: Optional[str] = None,
    ) -> Path:
        """Build output directory path based on mode, date and album.

        Args:
            capture_time: Resolved capture date, or None.
            album_name: Inferred album, used by BY_ALBUM only.

        Returns:
            Full path to output directory (not created).
        """
        if self._mode is OrganizationMode.FLAT:
            return self._output_root

        if capture_time is None:
            base = self._output_root / UNKNOWN_DATE_FOLDER
        else:
            base = self._output_root / f"{capture_time.year:04d}" / f"{capture_time.month:02d}"

        if self._mode is OrganizationMode.BY_ALBUM:
            return base / (sanitize_album_name(album_name) or NO_ALBUM_FOLDER)

        return base

    def unique_path(self, directory: Path, filename: str) -> Path:
        """Find a free file name in directory.

        ``photo.jpg`` -> ``photo_1.jpg`` -> ``photo_2.jpg`` ...; after
        10000 attempts the current epoch millis are used as the suffix.
        """
        candidate = directory / filename
        if not candidate.exists():
            return candidate

        stem = Path(filename).stem
        suffix = Path(filename).suffix
        for counter in range(1, MAX_UNIQUE_ATTEMPTS + 1):
            candidate = directory / f"{stem}_{counter}{suffix}"
            if not candidate.exists():
                return candidate

        # Fallback with timestamp
        fallback = directory / f"{stem}_{int(time.time() * 1000)}{suffix}"
        logger.warning("Name space exhausted for %s, using %s", filename, fallback.name)
        return fallback


class FileManager:
    """Copies and moves files, raising FileSystemError on failure."""

    def copy_file(self, source: Path, target: Path) -> Path:
        """Copy a file with metadata preservation.

        Args:
            source: Source file path.
            target: Target file path.

        Returns:
            The target path.
        """
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
        except OSError as e:
            raise FileSystemError(
                f"Copy failed for {source.name}: {e}",
                stage="copy",
                source=str(source),
                target=str(target),
            ) from e
        return target

    def move_file(self, source: Path, target: Path) -> Path:
        """Move a file (copy + delete across devices).

        Args:
            source: Source file path.
            target: Target file path.

        Returns:
            The target path.
        """
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(target))
        except OSError as e:
            raise FileSystemError(
                f"Move failed for {source.name}: {e}",
                stage="move",
                source=str(source),
                target=str(target),
            ) from e
        return target

    def transfer(self, source: Path, target: Path, copy: bool = True) -> Path:
        """Copy or move depending on ``copy``."""
        if copy:
            return self.copy_file(source, target)
        return self.move_file(source, target)

    def delete_file(self, path: Path) -> None:
        """Delete a file; a missing file is fine."""
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise FileSystemError(
                f"Delete failed for {path.name}: {e}",
                stage="delete",
                file=str(path),
            ) from e

    def ensure_directory(self, path: Path) -> Path:
        """Ensure directory exists.

        Args:
            path: Directory to create.
        """
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(
                f"Cannot create directory {path}: {e}",
                stage="mkdir",
                directory=str(path),
            ) from e
        return path
