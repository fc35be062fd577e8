"""Motion Photo video extraction.

Motion Photos embed a short video after the JPEG image data in one of two
ways:

1. v2 (XMP): ``GCamera:MicroVideoOffset`` gives the video length counted
   back from end of file.
2. v1 (trailer): the file ends with ``MotionPhoto_Data`` followed by two
   big-endian int32 values, ``offset`` and ``length`` of the video.
"""
from __future__ import annotations

import logging
import re
import struct
from pathlib import Path
from typing import Optional

from ..core.errors import MotionPhotoExtractionError
from ..core.models import JPEG_EXTENSIONS

logger = logging.getLogger(__name__)

TRAILER_MARKER = b"MotionPhoto_Data"
TRAILER_SIZE = 8  # offset (int32) + length (int32)
XMP_TOKENS = (
    b"GCamera:MicroVideo",
    b"GCamera:MotionPhoto",
    b"GCamera:MicroVideoOffset",
)
# Attribute or element form, as written by camera apps
_MICRO_VIDEO_OFFSET = re.compile(
    rb"GCamera:MicroVideoOffset\s*(?:=\s*[\"']\s*([^\"'<]*?)\s*[\"']|>\s*([^<]*?)\s*<)"
)


def video_path_for(photo: Path, output_dir: Optional[Path] = None) -> Path:
    """``IMG_1234.jpg`` -> ``IMG_1234.mp4`` (beside the photo by default)."""
    directory = output_dir if output_dir is not None else photo.parent
    return directory / f"{photo.stem}.mp4"


class MotionPhotoExtractor:
    """Detects Motion Photos and carves out their embedded video.

    Never raises to the caller: failures are logged and reported as None.
    """

    def read_candidate(self, path: Path) -> Optional[bytes]:
        """Bytes of a JPEG that could be a Motion Photo, or None."""
        if path.suffix.lower() not in JPEG_EXTENSIONS:
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            logger.debug("Cannot read %s for Motion Photo check: %s", path.name, e)
            return None

    def is_motion_data(self, data: bytes) -> bool:
        """GCamera tokens anywhere in the data, or a v1 trailer."""
        if any(token in data for token in XMP_TOKENS):
            return True
        return self._has_trailer(data)

    def is_motion_photo(self, path: Path) -> bool:
        data = self.read_candidate(path)
        return data is not None and self.is_motion_data(data)

    def extract_video(
        self,
        path: Path,
        output_dir: Optional[Path] = None,
        data: Optional[bytes] = None,
    ) -> Optional[Path]:
        """Write the embedded video to ``<stem>.mp4``.

        Tries the XMP offset first, then the trailer.

        Args:
            path: Motion Photo JPEG.
            output_dir: Where to write the video (default: beside the photo).
            data: Contents of ``path`` when the caller has already read it.

        Returns:
            Path of the extracted video, or None.
        """
        if data is None:
            data = self.read_candidate(path)
        if data is None or not self.is_motion_data(data):
            return None

        target = video_path_for(path, output_dir)
        try:
            video = self._video_from_xmp(data)
            source = "XMP"
            if video is None:
                video = self._video_from_trailer(data)
                source = "trailer"
            if video is None:
                logger.warning("No usable video offset in Motion Photo %s", path.name)
                return None

            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(video)
        except (OSError, MotionPhotoExtractionError) as e:
            logger.warning("Failed to extract video from Motion Photo %s: %s", path.name, e)
            return None

        logger.info("Extracted Motion Photo video (%s): %s", source, target.name)
        return target

    # --- v2 ---

    def _video_from_xmp(self, data: bytes) -> Optional[bytes]:
        match = _MICRO_VIDEO_OFFSET.search(data)
        if match is None:
            return None

        raw_offset = (match.group(1) if match.group(1) is not None else match.group(2)).decode("ascii", "replace")
        try:
            offset = int(raw_offset)
        except ValueError:
            logger.debug("Could not parse XMP video offset: %r", raw_offset)
            return None

        file_length = len(data)
        video_start = file_length - offset
        if video_start < 0 or video_start >= file_length:
            logger.warning("Invalid video offset in Motion Photo: %d", offset)
            return None
        return data[video_start:]

    # --- v1 ---

    @staticmethod
    def _has_trailer(data: bytes) -> bool:
        if len(data) < len(TRAILER_MARKER) + TRAILER_SIZE:
            return False
        start = len(data) - TRAILER_SIZE - len(TRAILER_MARKER)
        return data[start:start + len(TRAILER_MARKER)] == TRAILER_MARKER

    def _video_from_trailer(self, data: bytes) -> Optional[bytes]:
        file_length = len(data)
        if file_length < TRAILER_SIZE:
            raise MotionPhotoExtractionError("File too short for a trailer", stage="motion_photo")

        offset, length = struct.unpack(">ii", data[-TRAILER_SIZE:])
        if offset <= 0 or length <= 0 or offset + length > file_length:
            logger.warning(
                "Invalid trailer data in Motion Photo (offset=%d, length=%d, size=%d)",
                offset, length, file_length,
            )
            return None
        return data[offset:offset + length]
