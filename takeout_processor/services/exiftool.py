"""ExifTool service - one lazily started daemon per processing run.

Usage:
    with ExifToolService() as exiftool:
        exiftool.write_xmp(temp, destination, fields)
        exiftool.create_sidecar(video_xmp, fields)
"""
from __future__ import annotations

import atexit
import logging
from pathlib import Path
from typing import Any, Optional

from ..engines.exiftool import EXIFTOOL, ExifToolDaemon, XmpFields

logger = logging.getLogger(__name__)


class ExifToolService:
    """Owns the ExifTool daemon for a run.

    The process is only spawned on first use, so runs that never write
    XMP (no metadata, ``add_metadata`` off) never start ExifTool.
    """

    def __init__(self, executable: str = EXIFTOOL):
        self._executable = executable
        self._daemon: Optional[ExifToolDaemon] = None
        atexit.register(self.shutdown)

    @property
    def daemon(self) -> ExifToolDaemon:
        """The daemon, restarted if it died after a successful start.

        A missing executable is not retried for every file.
        """
        if self._daemon is None or not (self._daemon.is_alive or self._daemon.start_failed):
            if self._daemon is not None:
                self._daemon.close()
            self._daemon = ExifToolDaemon(self._executable)
            logger.debug("ExifTool daemon started")
        return self._daemon

    def write_xmp(self, source: Path, destination: Path, fields: XmpFields) -> None:
        self.daemon.write_xmp(source, destination, fields)

    def create_sidecar(self, target: Path, fields: XmpFields) -> None:
        self.daemon.create_sidecar(target, fields)

    def read_xmp(self, path: Path) -> dict[str, Any]:
        return self.daemon.read_xmp(path)

    def shutdown(self) -> None:
        """Stop the daemon if one was started."""
        if self._daemon is not None:
            self._daemon.close()
            self._daemon = None
            logger.debug("ExifTool daemon shut down")
        atexit.unregister(self.shutdown)

    def __enter__(self) -> "ExifToolService":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()
