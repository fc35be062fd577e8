"""Service layer - business logic and shared services."""
from .scanner import TakeoutScanner, calculate_statistics, find_sidecar, infer_album_name, parse_sidecar
from .processor import TakeoutProcessor
from .deduplicator import DuplicateDetector, sha256_file
from .exiftool import ExifToolService
from .file_ops import DestinationResolver, FileManager
from .metadata_writer import MetadataEmbedder

__all__ = [
    # Scanning
    "TakeoutScanner",
    "calculate_statistics",
    "find_sidecar",
    "infer_album_name",
    "parse_sidecar",
    # Processing
    "TakeoutProcessor",
    "DuplicateDetector",
    "sha256_file",
    "DestinationResolver",
    "FileManager",
    "MetadataEmbedder",
    "ExifToolService",
]
