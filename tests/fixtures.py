"""Test fixtures for integration tests.

This module provides fixture classes that generate Takeout-shaped test
data, write it to disk, and know their expected output values.
"""
from __future__ import annotations

import io
import json
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest
from PIL import Image

from takeout_processor.engines.exiftool import ExifToolDaemon, exiftool_available

# 2021-01-01 00:00:00 UTC
NEW_YEAR_2021 = datetime(2021, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
FAKE_VIDEO = b"\x00\x00\x00\x18ftypmp42" + bytes(range(256)) * 4

requires_exiftool = pytest.mark.skipif(not exiftool_available(), reason="exiftool not installed")


def read_xmp(path: Path) -> dict:
    """All XMP tags of a file, by ExifTool tag name."""
    with ExifToolDaemon() as daemon:
        return daemon.read_xmp(path)


def jpeg_bytes(color: str = "red", size: tuple[int, int] = (100, 100)) -> bytes:
    """Encode a solid-color JPEG in memory."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, "JPEG")
    return buffer.getvalue()


def make_jpeg(path: Path, color: str = "red") -> Path:
    """Write a small JPEG to path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (100, 100), color=color).save(path, "JPEG")
    return path


def make_video(path: Path, content: bytes = FAKE_VIDEO) -> Path:
    """Write bytes that stand in for a video file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


def sidecar_data(
    title: Optional[str] = None,
    taken: Optional[datetime] = NEW_YEAR_2021,
    description: Optional[str] = None,
    people: tuple[str, ...] = (),
    latitude: float = 0.0,
    longitude: float = 0.0,
) -> dict:
    """Build a Takeout sidecar dictionary."""
    data: dict = {"title": title or ""}
    if taken is not None:
        data["photoTakenTime"] = {
            "timestamp": str(int(taken.timestamp())),
            "formatted": taken.strftime("%b %d, %Y, %I:%M:%S %p UTC"),
        }
    if description is not None:
        data["description"] = description
    if people:
        data["people"] = [{"name": name} for name in people]
    data["geoData"] = {
        "latitude": latitude,
        "longitude": longitude,
        "altitude": 0.0,
        "latitudeSpan": 0.0,
        "longitudeSpan": 0.0,
    }
    return data


def write_sidecar(media_path: Path, data: dict, name: Optional[str] = None) -> Path:
    """Write ``<media name>.json`` (or ``name``) beside a media file."""
    sidecar = media_path.with_name(name or media_path.name + ".json")
    sidecar.write_text(json.dumps(data), encoding="utf-8")
    return sidecar


def motion_photo_v1(image: bytes, video: bytes) -> bytes:
    """JPEG + video + ``MotionPhoto_Data`` + (offset, length) trailer."""
    offset = len(image)
    return image + video + b"MotionPhoto_Data" + struct.pack(">ii", offset, len(video))


def with_xmp(image: bytes, description_attrs: str) -> bytes:
    """Insert an XMP APP1 segment whose Description carries the given attributes."""
    packet = (
        '<x:xmpmeta xmlns:x="adobe:ns:meta/">'
        '<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">'
        '<rdf:Description rdf:about="" '
        'xmlns:xmp="http://ns.adobe.com/xap/1.0/" '
        'xmlns:GCamera="http://ns.google.com/photos/1.0/camera/" '
        f"{description_attrs}/>"
        "</rdf:RDF></x:xmpmeta>"
    ).encode("utf-8")
    header = b"http://ns.adobe.com/xap/1.0/\x00"
    segment = b"\xff\xe1" + (2 + len(header) + len(packet)).to_bytes(2, "big") + header + packet
    return image[:2] + segment + image[2:]


def motion_photo_v2(image: bytes, video: bytes, extra_attrs: str = "") -> bytes:
    """JPEG with a GCamera XMP packet, followed by the video."""
    attrs = f'GCamera:MicroVideo="1" GCamera:MicroVideoOffset="{len(video)}" {extra_attrs}'
    return with_xmp(image, attrs.strip()) + video


@dataclass
class MediaFixture(ABC):
    """Base class for Takeout media fixtures.

    Each fixture knows:
    - How to create its source file(s)
    - What the expected output folder should be (BY_MONTH)
    """
    name: str
    parent_folder: Optional[str] = None  # Album name from folder

    def folder(self, base_path: Path) -> Path:
        folder = base_path / (self.parent_folder or "")
        folder.mkdir(parents=True, exist_ok=True)
        return folder

    @abstractmethod
    def create(self, base_path: Path) -> Path:
        """Create the fixture file(s) and return the main file path."""
        pass

    @abstractmethod
    def expected_output_folder(self) -> str:
        """Return the expected output folder (e.g., '2021/01' or 'Unknown_Date')."""
        pass


@dataclass
class PhotoWithSidecar(MediaFixture):
    """JPEG with a Takeout sidecar JSON."""
    taken: datetime = NEW_YEAR_2021
    title: Optional[str] = None
    description: Optional[str] = None
    people: tuple[str, ...] = ()

    def create(self, base_path: Path) -> Path:
        file_path = make_jpeg(self.folder(base_path) / f"{self.name}.jpg", color="green")
        write_sidecar(file_path, sidecar_data(
            title=self.title or file_path.name,
            taken=self.taken,
            description=self.description,
            people=self.people,
        ))
        return file_path

    def expected_output_folder(self) -> str:
        return f"{self.taken.year:04d}/{self.taken.month:02d}"


@dataclass
class PhotoNoSidecar(MediaFixture):
    """JPEG with no sidecar at all."""

    def create(self, base_path: Path) -> Path:
        return make_jpeg(self.folder(base_path) / f"{self.name}.jpg", color="yellow")

    def expected_output_folder(self) -> str:
        return "Unknown_Date"


@dataclass
class VideoWithSidecar(MediaFixture):
    """Video with a Takeout sidecar JSON."""
    taken: datetime = NEW_YEAR_2021
    description: Optional[str] = None

    def create(self, base_path: Path) -> Path:
        file_path = make_video(self.folder(base_path) / f"{self.name}.mp4")
        write_sidecar(file_path, sidecar_data(
            title=file_path.name,
            taken=self.taken,
            description=self.description,
        ))
        return file_path

    def expected_output_folder(self) -> str:
        return f"{self.taken.year:04d}/{self.taken.month:02d}"


@dataclass
class MotionPhotoWithSidecar(MediaFixture):
    """Motion Photo (v1 trailer) with a sidecar."""
    taken: datetime = NEW_YEAR_2021
    video: bytes = field(default=FAKE_VIDEO)

    def create(self, base_path: Path) -> Path:
        file_path = self.folder(base_path) / f"{self.name}.jpg"
        file_path.write_bytes(motion_photo_v1(jpeg_bytes("blue"), self.video))
        write_sidecar(file_path, sidecar_data(title=file_path.name, taken=self.taken))
        return file_path

    def expected_output_folder(self) -> str:
        return f"{self.taken.year:04d}/{self.taken.month:02d}"


def create_takeout_structure(base_path: Path) -> list[MediaFixture]:
    """Create a Takeout-like tree with various test cases."""
    fixtures: list[MediaFixture] = [
        PhotoWithSidecar(
            name="IMG_001",
            parent_folder="Takeout/Google Photos/Vacation 2021",
            taken=datetime(2021, 7, 15, 14, 30, 0, tzinfo=timezone.utc),
            description="Beach sunset",
            people=("Alice", "Bob"),
        ),
        PhotoWithSidecar(
            name="IMG_002",
            parent_folder="Takeout/Google Photos/Photos from 2019",
            taken=datetime(2019, 3, 10, 9, 0, 0, tzinfo=timezone.utc),
        ),
        PhotoNoSidecar(
            name="scan",
            parent_folder="Takeout/Google Photos/Photos from 2019",
        ),
        VideoWithSidecar(
            name="VID_001",
            parent_folder="Takeout/Google Photos/Vacation 2021",
        ),
    ]
    for fixture in fixtures:
        fixture.create(base_path)

    # Non-media file
    (base_path / "Takeout" / "archive_browser.html").write_text("<html></html>")
    return fixtures
