"""Configuration dataclasses with validation."""
from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import timezone, tzinfo
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class OrganizationMode(Enum):
    """How to organize output files."""
    BY_MONTH = "by-month"    # 2021/01/
    BY_ALBUM = "by-album"    # 2021/01/Summer 2023/
    FLAT = "flat"            # All in output root


class DuplicateDetectionMode(Enum):
    """Identity function used to decide whether two files are the same."""
    HASH = "hash"                    # SHA-256 of file content
    NAME_AND_SIZE = "name-and-size"  # filename + byte length
    NAME_ONLY = "name-only"          # filename, also matched against existing output


@dataclass(frozen=True, slots=True)
class ProcessingOptions:
    """Options for one processing run.

    Immutable for the duration of a run. This is the only options object
    passed into the processor.
    """
    output_directory: Path
    copy_files: bool = True          # False = move
    add_metadata: bool = True
    organization_mode: OrganizationMode = OrganizationMode.BY_MONTH
    skip_duplicates: bool = False
    duplicate_detection_mode: DuplicateDetectionMode = DuplicateDetectionMode.HASH
    # Epoch timestamps are converted in this zone for folders and EXIF dates
    timezone: tzinfo = timezone.utc

    def __post_init__(self) -> None:
        """Validate options."""
        if not isinstance(self.output_directory, Path):
            object.__setattr__(self, "output_directory", Path(self.output_directory))

        if not isinstance(self.organization_mode, OrganizationMode):
            raise ValueError(f"Invalid organization mode: {self.organization_mode!r}")

        if not isinstance(self.duplicate_detection_mode, DuplicateDetectionMode):
            raise ValueError(
                f"Invalid duplicate detection mode: {self.duplicate_detection_mode!r}"
            )

    @property
    def move_files(self) -> bool:
        return not self.copy_files

    def with_overrides(self, **kwargs) -> "ProcessingOptions":
        """Create new options with some values overridden."""
        return replace(self, **kwargs)


class OptionsFile(BaseModel):
    """Options as stored in a JSON options file.

    Older option files only carry the boolean ``organize_by_month``; it is
    translated here once and never reaches the processor.
    """
    output_directory: Path = Field(
        ...,
        description="Root folder for the reorganized library"
    )
    copy_files: bool = Field(
        default=True,
        description="Copy files (true) or move them (false)"
    )
    add_metadata: bool = Field(
        default=True,
        description="Embed sidecar metadata into JPEGs and write .xmp sidecars for videos"
    )
    organization_mode: Optional[OrganizationMode] = Field(
        default=None,
        description="by-month, by-album or flat"
    )
    organize_by_month: Optional[bool] = Field(
        default=None,
        description="Legacy switch: true = by-month, false = flat"
    )
    skip_duplicates: bool = Field(
        default=False,
        description="Skip files already seen in this run"
    )
    duplicate_detection_mode: DuplicateDetectionMode = Field(
        default=DuplicateDetectionMode.HASH,
        description="hash, name-and-size or name-only"
    )

    @field_validator("output_directory")
    @classmethod
    def expand_output(cls, value: Path) -> Path:
        return value.expanduser().resolve()

    @field_validator("organization_mode", "duplicate_detection_mode", mode="before")
    @classmethod
    def normalize_enum_value(cls, value):
        # Accept "BY_MONTH" / "by_month" / "by-month"
        if isinstance(value, str):
            return value.strip().lower().replace("_", "-")
        return value

    @model_validator(mode="after")
    def resolve_legacy_mode(self) -> "OptionsFile":
        if self.organization_mode is None:
            if self.organize_by_month is False:
                self.organization_mode = OrganizationMode.FLAT
            else:
                self.organization_mode = OrganizationMode.BY_MONTH
        self.organize_by_month = None
        return self

    def to_processing_options(self, **overrides) -> ProcessingOptions:
        """Build runtime options; keyword overrides win (used for CLI flags)."""
        values = {
            "output_directory": self.output_directory,
            "copy_files": self.copy_files,
            "add_metadata": self.add_metadata,
            "organization_mode": self.organization_mode,
            "skip_duplicates": self.skip_duplicates,
            "duplicate_detection_mode": self.duplicate_detection_mode,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return ProcessingOptions(**values)


def load_options(path: Path) -> OptionsFile:
    """Load an options file (JSON)."""
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    return OptionsFile.model_validate(data)
