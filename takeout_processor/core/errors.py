"""Error classes for takeout processing."""
from __future__ import annotations

from typing import Any


class TakeoutProcessorError(Exception):
    """Base exception for all takeout_processor errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context


class InvalidDirectoryError(TakeoutProcessorError, ValueError):
    """Takeout root does not exist or is not a directory."""
    pass


class SidecarParseError(TakeoutProcessorError):
    """JSON sidecar could not be read or decoded."""
    pass


class MetadataEmbedError(TakeoutProcessorError):
    """EXIF block or XMP packet could not be written."""
    pass


class MotionPhotoExtractionError(TakeoutProcessorError):
    """Embedded video could not be located or carved out."""
    pass


class DuplicateCheckError(TakeoutProcessorError):
    """Identity key for a file could not be computed."""
    pass


class FileSystemError(TakeoutProcessorError):
    """Copy, move or directory creation failed."""
    pass
