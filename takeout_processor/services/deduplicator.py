"""Duplicate detection service."""
from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import Optional

from ..core.config import DuplicateDetectionMode
from ..core.errors import DuplicateCheckError

logger = logging.getLogger(__name__)


def sha256_file(path: Path, chunk_size: int = 1024 * 1024) -> str:
    """Compute SHA256 of file."""
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


class DuplicateDetector:
    """Tracks files seen during one run and flags repeats.

    The identity key depends on the mode:

    * HASH: SHA-256 of the content.
    * NAME_AND_SIZE: ``"<name>_<size>"``.
    * NAME_ONLY: the file name; a name already present anywhere under the
      destination root also counts as a duplicate.

    Errors while computing a key never block a file: the check fails open.
    """

    def __init__(self, mode: DuplicateDetectionMode = DuplicateDetectionMode.HASH):
        """Initialize the detector.

        Args:
            mode: Identity function for files.
        """
        self._mode = mode
        self._seen: dict[str, Path] = {}
        self._index_root: Optional[Path] = None
        self._destination_names: set[str] = set()

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    def clear(self) -> None:
        """Forget every seen file and the destination index."""
        self._seen.clear()
        self._index_root = None
        self._destination_names = set()

    def is_duplicate(self, path: Path, destination_root: Optional[Path] = None) -> bool:
        """Check a file and record it if it is new.

        Args:
            path: Source file.
            destination_root: Output root, searched by name in NAME_ONLY mode.

        Returns:
            True if the file was seen before (or exists in the output by name).
        """
        if not path.exists():
            return False

        try:
            key = self._key_for(path)
        except DuplicateCheckError as e:
            logger.warning("Duplicate check failed for %s (stage=dedup): %s", path.name, e)
            return False

        if key in self._seen:
            logger.debug("Duplicate of %s: %s", self._seen[key].name, path.name)
            return True

        if (
            self._mode is DuplicateDetectionMode.NAME_ONLY
            and destination_root is not None
            and self._exists_in_destination(path.name, destination_root)
        ):
            self._seen[key] = path
            logger.debug("Name already present in destination: %s", path.name)
            return True

        self._seen[key] = path
        return False

    def _key_for(self, path: Path) -> str:
        try:
            if self._mode is DuplicateDetectionMode.HASH:
                return sha256_file(path)
            if self._mode is DuplicateDetectionMode.NAME_AND_SIZE:
                return f"{path.name}_{path.stat().st_size}"
            return path.name
        except OSError as e:
            raise DuplicateCheckError(
                f"Cannot compute identity of {path.name}: {e}",
                file=str(path),
                mode=self._mode.value,
            ) from e

    def _exists_in_destination(self, name: str, destination_root: Path) -> bool:
        if self._index_root != destination_root:
            self._build_index(destination_root)
        return name in self._destination_names

    def _build_index(self, destination_root: Path) -> None:
        names: set[str] = set()
        if destination_root.is_dir():
            for _dirpath, _dirnames, filenames in os.walk(destination_root):
                names.update(filenames)
        self._index_root = destination_root
        self._destination_names = names
        logger.debug("Indexed %d names under %s", len(names), destination_root)
