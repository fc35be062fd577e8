"""Domain models - immutable data classes."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union


IMAGE_EXTENSIONS = frozenset({
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".heic", ".heif"
})
VIDEO_EXTENSIONS = frozenset({
    ".mp4", ".mov", ".avi", ".mkv", ".wmv", ".flv", ".webm", ".m4v", ".3gp"
})
JPEG_EXTENSIONS = frozenset({".jpg", ".jpeg"})


def _as_float(value: Any) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    return result if math.isfinite(result) else 0.0


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _as_dict(value: Any) -> Optional[dict]:
    return value if isinstance(value, dict) else None


class MediaKind(Enum):
    """Media classification by extension."""
    IMAGE = "image"
    VIDEO = "video"
    OTHER = "other"

    @classmethod
    def from_path(cls, path: Path) -> "MediaKind":
        suffix = path.suffix.lower()
        if suffix in IMAGE_EXTENSIONS:
            return cls.IMAGE
        if suffix in VIDEO_EXTENSIONS:
            return cls.VIDEO
        return cls.OTHER


# ============ Sidecar metadata ============

@dataclass(frozen=True, slots=True)
class TimeInfo:
    """A sidecar timestamp group: epoch seconds (as string) plus display text."""
    timestamp: Optional[str] = None
    formatted: Optional[str] = None

    def timestamp_as_int(self) -> int:
        """Epoch seconds, or 0 if absent or unparsable."""
        if self.timestamp is None:
            return 0
        try:
            return int(str(self.timestamp).strip())
        except ValueError:
            return 0

    @classmethod
    def from_dict(cls, data: Any) -> Optional["TimeInfo"]:
        data = _as_dict(data)
        if data is None:
            return None
        return cls(
            timestamp=_as_str(data.get("timestamp")),
            formatted=_as_str(data.get("formatted")),
        )


@dataclass(frozen=True, slots=True)
class GeoData:
    """Location block from a sidecar (geoData / geoDataExif)."""
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    latitude_span: float = 0.0
    longitude_span: float = 0.0

    def has_valid_coordinates(self) -> bool:
        """True unless both latitude and longitude are exactly zero.

        Takeout writes 0/0 when it has no location, so 0/0 counts as absent
        even though it is a real place.
        """
        return self.latitude != 0.0 or self.longitude != 0.0

    @classmethod
    def from_dict(cls, data: Any) -> Optional["GeoData"]:
        data = _as_dict(data)
        if data is None:
            return None
        return cls(
            latitude=_as_float(data.get("latitude")),
            longitude=_as_float(data.get("longitude")),
            altitude=_as_float(data.get("altitude")),
            latitude_span=_as_float(data.get("latitudeSpan")),
            longitude_span=_as_float(data.get("longitudeSpan")),
        )


@dataclass(frozen=True, slots=True)
class Person:
    """A named person tagged in the photo."""
    name: str

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Person"]:
        data = _as_dict(data)
        if data is None:
            return None
        name = _as_str(data.get("name"))
        return cls(name=name) if name else None


@dataclass(frozen=True, slots=True)
class GooglePhotosOrigin:
    """Upload origin. Informational only."""
    device_type: Optional[str] = None
    local_folder_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["GooglePhotosOrigin"]:
        data = _as_dict(data)
        if data is None:
            return None
        mobile = _as_dict(data.get("mobileUpload")) or {}
        folder = _as_dict(mobile.get("deviceFolder")) or {}
        return cls(
            device_type=_as_str(mobile.get("deviceType")),
            local_folder_name=_as_str(folder.get("localFolderName")),
        )


@dataclass(frozen=True, slots=True)
class TakeoutMetadata:
    """Parsed contents of one JSON sidecar."""
    title: Optional[str] = None
    description: Optional[str] = None
    image_views: Optional[str] = None
    url: Optional[str] = None
    photo_taken_time: Optional[TimeInfo] = None
    creation_time: Optional[TimeInfo] = None
    geo_data: Optional[GeoData] = None
    geo_data_exif: Optional[GeoData] = None
    people: tuple[Person, ...] = field(default_factory=tuple)
    google_photos_origin: Optional[GooglePhotosOrigin] = None

    @property
    def people_names(self) -> list[str]:
        return [p.name for p in self.people if p.name and p.name.strip()]

    @classmethod
    def from_dict(cls, data: dict) -> "TakeoutMetadata":
        """Build from decoded sidecar JSON. Unknown keys are ignored."""
        people_raw = data.get("people")
        people: list[Person] = []
        if isinstance(people_raw, list):
            for entry in people_raw:
                person = Person.from_dict(entry)
                if person is not None:
                    people.append(person)

        return cls(
            title=_as_str(data.get("title")),
            description=_as_str(data.get("description")),
            image_views=_as_str(data.get("imageViews")),
            url=_as_str(data.get("url")),
            photo_taken_time=TimeInfo.from_dict(data.get("photoTakenTime")),
            creation_time=TimeInfo.from_dict(data.get("creationTime")),
            geo_data=GeoData.from_dict(data.get("geoData")),
            geo_data_exif=GeoData.from_dict(data.get("geoDataExif")),
            people=tuple(people),
            google_photos_origin=GooglePhotosOrigin.from_dict(data.get("googlePhotosOrigin")),
        )


# ============ Scan results ============

@dataclass(frozen=True, slots=True)
class MediaRecord:
    """A media file from the export with its sidecar and album context."""
    path: Path
    sidecar_path: Optional[Path] = None
    metadata: Optional[TakeoutMetadata] = None
    album_name: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        return self.path.suffix.lower()

    @property
    def kind(self) -> MediaKind:
        return MediaKind.from_path(self.path)

    @property
    def is_image(self) -> bool:
        return self.kind is MediaKind.IMAGE

    @property
    def is_video(self) -> bool:
        return self.kind is MediaKind.VIDEO

    @property
    def is_jpeg(self) -> bool:
        return self.extension in JPEG_EXTENSIONS


@dataclass(slots=True)
class ScanStatistics:
    """Aggregate numbers for a scan result."""
    total_files: int = 0
    images_with_metadata: int = 0
    videos_with_metadata: int = 0
    files_without_metadata: int = 0
    files_with_geo_data: int = 0

    def __str__(self) -> str:
        return (
            f"Total: {self.total_files}, Images: {self.images_with_metadata}, "
            f"Videos: {self.videos_with_metadata}, "
            f"Without metadata: {self.files_without_metadata}, "
            f"With GPS: {self.files_with_geo_data}"
        )


# ============ Run results ============

@dataclass(slots=True)
class RunCounters:
    """Mutable counters for a single processing run."""
    success: int = 0
    error: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.success + self.error + self.skipped


@dataclass(frozen=True, slots=True)
class ProcessingResult:
    """Final outcome of a processing run."""
    success: int = 0
    error: int = 0
    skipped: int = 0
    cancelled: bool = False
    elapsed_seconds: float = 0.0

    @property
    def processed(self) -> int:
        return self.success + self.error + self.skipped

    @classmethod
    def from_counters(
        cls,
        counters: RunCounters,
        cancelled: bool = False,
        elapsed_seconds: float = 0.0,
    ) -> "ProcessingResult":
        return cls(
            success=counters.success,
            error=counters.error,
            skipped=counters.skipped,
            cancelled=cancelled,
            elapsed_seconds=elapsed_seconds,
        )


# ============ Progress events ============

@dataclass(frozen=True, slots=True)
class Progress:
    """Emitted before each record is processed."""
    current: int
    total: int
    name: str


@dataclass(frozen=True, slots=True)
class Complete:
    """Emitted once, after the last record (or on cancellation)."""
    success: int
    error: int
    skipped: int
    cancelled: bool = False


ProgressEvent = Union[Progress, Complete]
