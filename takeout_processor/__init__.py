"""Google Photos Takeout processing package.

Scans an extracted Takeout export, embeds sidecar metadata into the media
and lays the library out by date and album.
"""

__version__ = "1.0.0"

# Core exports
from .core.config import (
    DuplicateDetectionMode,
    OptionsFile,
    OrganizationMode,
    ProcessingOptions,
    load_options,
)
from .core.models import (
    Complete,
    MediaRecord,
    ProcessingResult,
    Progress,
    ScanStatistics,
    TakeoutMetadata,
)
from .core.protocols import ProgressReporter, callbacks_to_sink

# Engine exports
from .engines.motion_photo import MotionPhotoExtractor

# Service exports
from .services.processor import TakeoutProcessor
from .services.scanner import TakeoutScanner, calculate_statistics
from .services.deduplicator import DuplicateDetector
from .services.file_ops import DestinationResolver, FileManager
from .services.metadata_writer import MetadataEmbedder

# Logging exports
from .logging.rich_logger import EventLog, RichProgressReporter

__all__ = [
    # Core
    "DuplicateDetectionMode",
    "OptionsFile",
    "OrganizationMode",
    "ProcessingOptions",
    "load_options",
    "Complete",
    "MediaRecord",
    "ProcessingResult",
    "Progress",
    "ScanStatistics",
    "TakeoutMetadata",
    "ProgressReporter",
    "callbacks_to_sink",
    # Engines
    "MotionPhotoExtractor",
    # Services
    "TakeoutProcessor",
    "TakeoutScanner",
    "calculate_statistics",
    "DuplicateDetector",
    "DestinationResolver",
    "FileManager",
    "MetadataEmbedder",
    # Logging
    "EventLog",
    "RichProgressReporter",
]
