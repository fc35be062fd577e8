from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from typing import Optional

from .models import TakeoutMetadata

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"

_YEAR_FOLDER = re.compile(r"\d{4}")
_ISO_DATE_FOLDER = re.compile(r"\d{4}-\d{2}-\d{2}")


def is_year_folder(name: str) -> bool:
    return bool(_YEAR_FOLDER.fullmatch(name))


def is_iso_date_folder(name: str) -> bool:
    return bool(_ISO_DATE_FOLDER.fullmatch(name))


def resolve_capture_datetime(
    metadata: Optional[TakeoutMetadata],
    tz: tzinfo = timezone.utc,
) -> Optional[datetime]:
    """Capture date from sidecar metadata.

    photoTakenTime wins when its timestamp is positive, then creationTime.
    Returns a naive wall-clock datetime in ``tz``, or None.
    """
    if metadata is None:
        return None

    for time_info in (metadata.photo_taken_time, metadata.creation_time):
        if time_info is None:
            continue
        timestamp = time_info.timestamp_as_int()
        if timestamp > 0:
            try:
                moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                continue
            return moment.astimezone(tz).replace(tzinfo=None)

    return None


def format_exif_datetime(value: datetime) -> str:
    return value.strftime(EXIF_DATETIME_FORMAT)

