"""Takeout processor - orchestrates all services."""
from __future__ import annotations

import logging
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from ..core.config import ProcessingOptions
from ..core.dates import resolve_capture_datetime
from ..core.models import (
    Complete, MediaRecord, Progress, ProcessingResult, RunCounters,
)
from ..core.protocols import CancellationCheck, EventSink
from ..engines.motion_photo import MotionPhotoExtractor
from .deduplicator import DuplicateDetector
from .exiftool import ExifToolService
from .file_ops import DestinationResolver, FileManager
from .metadata_writer import MetadataEmbedder

logger = logging.getLogger(__name__)


def _discard(event) -> None:
    pass


@dataclass
class _RunContext:
    """Collaborators bound to one run's options."""
    options: ProcessingOptions
    resolver: DestinationResolver
    embedder: MetadataEmbedder
    scratch_dir: Path


class TakeoutProcessor:
    """Drives one pass over scanned records.

    Per record: duplicate check, Motion Photo split, metadata embedding and
    placement. Counters and the duplicate cache live inside a single
    :meth:`process_all_files` call, so one instance can serve several runs.
    """

    def __init__(
        self,
        file_manager: Optional[FileManager] = None,
        motion_extractor: Optional[MotionPhotoExtractor] = None,
    ):
        """Initialize processor.

        Args:
            file_manager: Copy/move implementation.
            motion_extractor: Motion Photo detector/extractor.
        """
        self._files = file_manager or FileManager()
        self._motion = motion_extractor or MotionPhotoExtractor()

    def process_all_files(
        self,
        records: Iterable[MediaRecord],
        options: ProcessingOptions,
        on_event: Optional[EventSink] = None,
        should_cancel: Optional[CancellationCheck] = None,
    ) -> ProcessingResult:
        """Process every record, sequentially.

        A failing record is counted as an error and the loop moves on.

        Args:
            records: Scan result.
            options: Run options.
            on_event: Receives Progress before each record and one Complete.
            should_cancel: Polled before each record; True stops the run.

        Returns:
            Final counts for the run.
        """
        records = list(records)
        total = len(records)
        emit = on_event or _discard
        counters = RunCounters()
        detector = DuplicateDetector(options.duplicate_detection_mode)
        cancelled = False
        start = time.monotonic()

        logger.info(
            "Processing %d files into %s (mode=%s, %s)",
            total,
            options.output_directory,
            options.organization_mode.value,
            "copy" if options.copy_files else "move",
        )

        with self._run_context(options) as context:
            for index, record in enumerate(records, start=1):
                if should_cancel is not None and should_cancel():
                    cancelled = True
                    logger.info("Cancelled after %d of %d files", index - 1, total)
                    break

                emit(Progress(current=index, total=total, name=record.name))

                if options.skip_duplicates and detector.is_duplicate(
                    record.path, options.output_directory
                ):
                    logger.info("Skipping duplicate: %s", record.name)
                    counters.skipped += 1
                    continue

                try:
                    self._process_record(record, context)
                    counters.success += 1
                except Exception as e:
                    counters.error += 1
                    logger.error("Error processing %s: %s", record.name, e)
                    logger.debug("Traceback for %s", record.name, exc_info=True)

        result = ProcessingResult.from_counters(
            counters,
            cancelled=cancelled,
            elapsed_seconds=time.monotonic() - start,
        )
        emit(Complete(
            success=result.success,
            error=result.error,
            skipped=result.skipped,
            cancelled=cancelled,
        ))
        logger.info(
            "Processing complete: %d succeeded, %d failed, %d skipped",
            result.success, result.error, result.skipped,
        )
        return result

    def process_media_file(self, record: MediaRecord, options: ProcessingOptions) -> Path:
        """Process a single record (no duplicate check).

        Returns:
            Path of the placed photo or video.

        Raises:
            FileSystemError: If the file cannot be placed.
        """
        with self._run_context(options) as context:
            return self._process_record(record, context)

    # --- internals ---

    @contextmanager
    def _run_context(self, options: ProcessingOptions) -> Iterator[_RunContext]:
        with ExifToolService() as exiftool, tempfile.TemporaryDirectory(prefix="takeout-motion-") as scratch:
            yield _RunContext(
                options=options,
                resolver=DestinationResolver(options.output_directory, options.organization_mode),
                embedder=MetadataEmbedder(self._files, tz=options.timezone, exiftool=exiftool),
                scratch_dir=Path(scratch),
            )

    def _process_record(self, record: MediaRecord, context: _RunContext) -> Path:
        # One read serves motion detection, extraction and the EXIF step
        data = self._motion.read_candidate(record.path) if record.is_jpeg else None
        video = self._extract_motion_video(record, data, context) if data is not None else None
        placed = self._place_primary(record, context, data)
        # A failed photo leg leaves no orphan video
        if video is not None:
            self._place_motion_video(record, video, context)
        return placed

    def _target_for(self, record: MediaRecord, filename: str, context: _RunContext) -> Path:
        capture_time = resolve_capture_datetime(record.metadata, context.options.timezone)
        directory = context.resolver.resolve_directory(capture_time, record.album_name)
        self._files.ensure_directory(directory)
        return context.resolver.unique_path(directory, filename)

    def _has_metadata(self, record: MediaRecord) -> bool:
        return record.metadata is not None or record.album_name is not None

    def _extract_motion_video(self, record: MediaRecord, data: bytes, context: _RunContext) -> Optional[Path]:
        if not self._motion.is_motion_data(data):
            return None
        # None on failure; the photo leg continues without a video
        return self._motion.extract_video(record.path, context.scratch_dir, data=data)

    def _place_motion_video(self, record: MediaRecord, extracted: Path, context: _RunContext) -> Path:
        target = self._target_for(record, extracted.name, context)
        placed = self._files.move_file(extracted, target)
        if context.options.add_metadata and self._has_metadata(record):
            context.embedder.write_video_sidecar(placed, record.metadata, record.album_name)
        logger.debug("Placed Motion Photo video %s", placed)
        return placed

    def _place_primary(self, record: MediaRecord, context: _RunContext, data: Optional[bytes] = None) -> Path:
        options = context.options
        target = self._target_for(record, record.name, context)

        if record.is_jpeg and options.add_metadata and self._has_metadata(record):
            placed = context.embedder.embed_jpeg(
                record.path, target, record.metadata, record.album_name, data=data
            )
            if options.move_files:
                self._files.delete_file(record.path)
        else:
            placed = self._files.transfer(record.path, target, copy=options.copy_files)
            if record.is_video and options.add_metadata and self._has_metadata(record):
                context.embedder.write_video_sidecar(placed, record.metadata, record.album_name)

        logger.debug("Placed %s -> %s", record.name, placed)
        return placed
