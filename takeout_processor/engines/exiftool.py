"""ExifTool-backed XMP writing.

ExifTool merges new values into whatever XMP packet a file already has, so
camera properties and Motion Photo keys (``GCamera:MicroVideoOffset``) are
kept. Only the tags named in :class:`XmpFields` are replaced.
"""
from __future__ import annotations

import html
import json
import logging
import re
import shutil
import subprocess
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from ..core.dates import format_exif_datetime
from ..core.errors import MetadataEmbedError
from ..core.models import TakeoutMetadata

logger = logging.getLogger(__name__)

EXIFTOOL = "exiftool"
READY = "{ready}"

_WRITTEN = re.compile(r"(\d+) image files? (?:updated|created)")


def exiftool_available(executable: str = EXIFTOOL) -> bool:
    """True when the ExifTool executable is on PATH."""
    return shutil.which(executable) is not None


def _escape(value: str) -> str:
    # Values travel one per line; -E turns entities back into characters
    return (
        html.escape(value, quote=False)
        .replace("\r", "&#xd;")
        .replace("\n", "&#xa;")
    )


@dataclass(frozen=True, slots=True)
class XmpFields:
    """Values written into a file's XMP packet."""
    title: Optional[str] = None
    description: Optional[str] = None
    subjects: tuple[str, ...] = field(default_factory=tuple)
    album: Optional[str] = None
    create_date: Optional[str] = None  # YYYY:MM:DD HH:MM:SS

    @property
    def is_empty(self) -> bool:
        return not (self.title or self.description or self.subjects or self.album or self.create_date)

    @classmethod
    def from_takeout(
        cls,
        metadata: Optional[TakeoutMetadata],
        album_name: Optional[str],
        capture_time: Optional[datetime],
    ) -> "XmpFields":
        title = description = None
        subjects: tuple[str, ...] = ()
        if metadata is not None:
            if metadata.title and metadata.title.strip():
                title = metadata.title
            if metadata.description and metadata.description.strip():
                description = metadata.description
            subjects = tuple(metadata.people_names)

        album = album_name.strip() if album_name and album_name.strip() else None
        create_date = format_exif_datetime(capture_time) if capture_time else None
        return cls(
            title=title,
            description=description,
            subjects=subjects,
            album=album,
            create_date=create_date,
        )

    def tag_args(self) -> list[str]:
        """ExifTool assignments for the non-empty fields.

        Repeated list assignments in one command replace the whole list.
        """
        args = []
        if self.title:
            args.append(f"-XMP-dc:Title={_escape(self.title)}")
        if self.description:
            args.append(f"-XMP-dc:Description={_escape(self.description)}")
        for subject in self.subjects:
            args.append(f"-XMP-dc:Subject={_escape(subject)}")
        if self.album:
            args.append(f"-XMP-lr:HierarchicalSubject={_escape(self.album)}")
        if self.create_date:
            args.append(f"-XMP-xmp:CreateDate={self.create_date}")
        return args


class ExifToolDaemon:
    """Persistent ExifTool process that handles multiple requests via stdin/stdout.

    Uses exiftool's -stay_open mode, so one process serves a whole run.
    Requests are serialized with a lock.
    """

    def __init__(self, executable: str = EXIFTOOL):
        """Start the ExifTool daemon process."""
        self._executable = executable
        self._process: Optional[subprocess.Popen] = None
        self._lock = threading.Lock()
        self.start_failed = False
        self._start()

    def _start(self) -> None:
        try:
            self._process = subprocess.Popen(
                [self._executable, "-stay_open", "True", "-@", "-"],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                bufsize=1,  # Line buffered
            )
        except OSError as e:
            logger.warning("ExifTool could not be started (%s); XMP will not be written", e)
            self._process = None
            self.start_failed = True

    @property
    def is_alive(self) -> bool:
        """Check if the daemon process is running."""
        return self._process is not None and self._process.poll() is None

    def execute(self, *args: str) -> list[str]:
        """Run one command and return its output lines.

        Raises:
            MetadataEmbedError: If the daemon is not running or dies mid-command.
        """
        if not self.is_alive:
            raise MetadataEmbedError("ExifTool is not running", stage="xmp")

        with self._lock:
            try:
                for arg in args:
                    self._process.stdin.write(f"{arg}\n")
                self._process.stdin.write("-execute\n")
                self._process.stdin.flush()

                # Read response until {ready}
                output_lines = []
                while True:
                    line = self._process.stdout.readline()
                    if not line:
                        raise MetadataEmbedError("ExifTool exited mid-command", stage="xmp")
                    if READY in line:
                        break
                    output_lines.append(line.strip())
            except (BrokenPipeError, OSError) as e:
                raise MetadataEmbedError(f"ExifTool I/O failed: {e}", stage="xmp") from e
        return output_lines

    @staticmethod
    def _check_written(output: list[str], path: Path) -> None:
        written = sum(int(m.group(1)) for m in map(_WRITTEN.search, output) if m)
        if written == 0:
            raise MetadataEmbedError(
                f"ExifTool did not write {path.name}: {' '.join(output) or 'no output'}",
                stage="xmp",
                path=str(path),
            )

    def write_xmp(self, source: Path, destination: Path, fields: XmpFields) -> None:
        """Write ``source`` plus merged XMP fields to a new ``destination``.

        Raises:
            MetadataEmbedError: If ExifTool is missing or reports no file written.
        """
        output = self.execute(
            "-E",
            "-m",
            *fields.tag_args(),
            "-o",
            str(destination),
            str(source),
        )
        self._check_written(output, destination)

    def create_sidecar(self, target: Path, fields: XmpFields) -> None:
        """Create a stand-alone ``.xmp`` file holding the fields.

        Raises:
            MetadataEmbedError: If ExifTool is missing or reports no file written.
        """
        output = self.execute("-E", "-m", *fields.tag_args(), str(target))
        self._check_written(output, target)

    def read_xmp(self, path: Path) -> dict[str, Any]:
        """Read every XMP tag of a file as ExifTool's JSON names to values.

        Returns:
            Empty dict if nothing could be read.
        """
        try:
            output = self.execute("-json", "-XMP:All", str(path))
        except MetadataEmbedError as e:
            logger.debug("XMP read failed for %s: %s", path.name, e)
            return {}
        try:
            entries = json.loads("\n".join(output))
        except json.JSONDecodeError:
            return {}
        if not entries:
            return {}
        entry = dict(entries[0])
        entry.pop("SourceFile", None)
        return entry

    def close(self) -> None:
        """Shutdown the daemon gracefully."""
        if self._process is None:
            return

        try:
            if self._process.poll() is None:
                self._process.stdin.write("-stay_open\nFalse\n")
                self._process.stdin.flush()
                self._process.wait(timeout=2)
        except (BrokenPipeError, OSError, subprocess.TimeoutExpired):
            pass
        finally:
            if self._process.poll() is None:
                self._process.kill()
                self._process.wait(timeout=1)
            self._process = None

    def __enter__(self) -> "ExifToolDaemon":
        return self

    def __exit__(self, *args) -> None:
        self.close()
