"""Core domain models, configuration and protocols."""
from .config import (
    DuplicateDetectionMode,
    OptionsFile,
    OrganizationMode,
    ProcessingOptions,
    load_options,
)
from .errors import (
    DuplicateCheckError,
    FileSystemError,
    InvalidDirectoryError,
    MetadataEmbedError,
    MotionPhotoExtractionError,
    SidecarParseError,
    TakeoutProcessorError,
)
from .models import (
    Complete,
    GeoData,
    GooglePhotosOrigin,
    MediaKind,
    MediaRecord,
    Person,
    ProcessingResult,
    Progress,
    ProgressEvent,
    RunCounters,
    ScanStatistics,
    TakeoutMetadata,
    TimeInfo,
)
from .protocols import CancellationCheck, EventSink, ProgressReporter, callbacks_to_sink

__all__ = [
    # Config
    "DuplicateDetectionMode",
    "OptionsFile",
    "OrganizationMode",
    "ProcessingOptions",
    "load_options",
    # Errors
    "DuplicateCheckError",
    "FileSystemError",
    "InvalidDirectoryError",
    "MetadataEmbedError",
    "MotionPhotoExtractionError",
    "SidecarParseError",
    "TakeoutProcessorError",
    # Models
    "Complete",
    "GeoData",
    "GooglePhotosOrigin",
    "MediaKind",
    "MediaRecord",
    "Person",
    "ProcessingResult",
    "Progress",
    "ProgressEvent",
    "RunCounters",
    "ScanStatistics",
    "TakeoutMetadata",
    "TimeInfo",
    # Protocols
    "CancellationCheck",
    "EventSink",
    "ProgressReporter",
    "callbacks_to_sink",
]
