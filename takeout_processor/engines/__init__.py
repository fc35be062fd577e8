"""Binary metadata and container engines."""
from .exif import load_exif, merge_takeout_fields, read_exif_fields, write_exif
from .exiftool import ExifToolDaemon, XmpFields, exiftool_available
from .motion_photo import MotionPhotoExtractor

__all__ = [
    "ExifToolDaemon",
    "MotionPhotoExtractor",
    "XmpFields",
    "exiftool_available",
    "load_exif",
    "merge_takeout_fields",
    "read_exif_fields",
    "write_exif",
]
