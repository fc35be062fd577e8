"""Rich-based progress reporter implementation."""
from __future__ import annotations

import logging
import sys
import time
from collections import deque
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    Progress,
    ProgressColumn,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TimeRemainingColumn,
    TimeElapsedColumn,
    MofNCompleteColumn,
    TaskID,
    Task,
)
from rich.table import Table
from rich.panel import Panel
from rich.text import Text

from ..core import models
from ..core.models import ProcessingResult, ProgressEvent, ScanStatistics
from ..core.protocols import EventSink

PACKAGE_LOGGER = "takeout_processor"


def configure_logging(verbose: bool = False, quiet: bool = False, console: Optional[Console] = None) -> logging.Logger:
    """Route package log records to a Rich handler on stderr.

    Args:
        verbose: Show DEBUG records.
        quiet: Show only ERROR records.
        console: Console to write to (default: stderr).

    Returns:
        The package logger.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


class FilesPerSecondColumn(ProgressColumn):
    """Renders files per second as a rolling average."""

    def __init__(self, window_size: int = 10):
        """Initialize with rolling window size.

        Args:
            window_size: Number of samples for rolling average.
        """
        super().__init__()
        self._window_size = window_size
        self._samples: deque[tuple[float, int]] = deque(maxlen=window_size)
        self._last_completed = 0
        self._start_time: Optional[float] = None

    def render(self, task: Task) -> Text:
        """Render the speed column."""
        completed = int(task.completed)
        current_time = time.time()

        if self._start_time is None:
            self._start_time = current_time
            self._last_completed = completed
            return Text("-- f/s", style="magenta")

        if completed > self._last_completed:
            self._samples.append((current_time, completed))
            self._last_completed = completed

        if len(self._samples) >= 2:
            oldest_time, oldest_completed = self._samples[0]
            newest_time, newest_completed = self._samples[-1]
            time_diff = newest_time - oldest_time
            if time_diff > 0:
                speed = (newest_completed - oldest_completed) / time_diff
                return Text(f"{speed:.1f} f/s", style="magenta")

        # Fallback to overall average
        elapsed = current_time - self._start_time
        if elapsed > 0 and completed > 0:
            return Text(f"{completed / elapsed:.1f} f/s", style="magenta")

        return Text("-- f/s", style="magenta")


class RichProgressReporter:
    """Progress reporter using Rich for terminal output.

    Implements the ProgressReporter protocol with Rich console output.
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize the reporter.

        Args:
            verbose: Enable verbose output.
            quiet: Suppress all non-essential output.
            console: Console to draw on (default: stderr).
        """
        self._console = console or Console(stderr=True)
        self._verbose = verbose
        self._quiet = quiet
        self._progress: Optional[Progress] = None
        self._current_task_id: Optional[TaskID] = None
        self._phase_name: str = ""

    @property
    def console(self) -> Console:
        return self._console

    # --- Phase Management ---

    def start_phase(self, name: str, total: int) -> None:
        """Start a new processing phase with progress bar."""
        self._phase_name = name

        if self._quiet:
            return

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("[cyan]•"),
            FilesPerSecondColumn(),
            TextColumn("[cyan]•"),
            TimeElapsedColumn(),
            TextColumn("[cyan]•"),
            TimeRemainingColumn(),
            console=self._console,
            transient=False,
        )
        self._progress.start()
        self._current_task_id = self._progress.add_task(name, total=total)

    def update_phase(self, completed: int, description: Optional[str] = None) -> None:
        """Update phase progress."""
        if self._progress and self._current_task_id is not None:
            if description:
                self._progress.update(self._current_task_id, completed=completed, description=description)
            else:
                self._progress.update(self._current_task_id, completed=completed)

    def end_phase(self) -> None:
        """End the current phase."""
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._current_task_id = None

    def as_event_sink(self) -> EventSink:
        """Drive the progress bar from processor events.

        The bar starts on the first Progress event and stops on Complete.
        """

        def sink(event: ProgressEvent) -> None:
            if isinstance(event, models.Progress):
                if self._progress is None and not self._quiet:
                    self.start_phase("Processing", event.total)
                # Progress is emitted before the record, so it counts as done
                # once the next one starts
                self.update_phase(event.current - 1, description=event.name)
            elif isinstance(event, models.Complete):
                if self._progress is not None and self._current_task_id is not None:
                    task = self._progress.tasks[0]
                    completed = task.completed if event.cancelled else (task.total or task.completed)
                    self._progress.update(self._current_task_id, completed=completed, description=self._phase_name)
                self.end_phase()

        return sink

    # --- Logging Methods ---

    def info(self, message: str) -> None:
        """Log an info message."""
        if not self._quiet:
            self._console.print(f"[blue]ℹ[/blue] {message}")

    def success(self, message: str) -> None:
        """Log a success message."""
        if not self._quiet:
            self._console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self._console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        """Log an error message."""
        self._console.print(f"[red]✗[/red] {message}", style="red")

    # --- Specialized Output ---

    def print_header(self, title: str) -> None:
        """Print a styled header."""
        if self._quiet:
            return

        text = Text(title, style="bold cyan")
        self._console.print(Panel(text, border_style="cyan"))

    def print_config(self, config_items: dict) -> None:
        """Print configuration as a table."""
        if self._quiet:
            return

        table = Table(title="Configuration", show_header=True, header_style="bold")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")

        for key, value in config_items.items():
            table.add_row(key, str(value))

        self._console.print(table)

    def print_scan_stats(self, stats: ScanStatistics) -> None:
        """Print scan statistics."""
        if self._quiet:
            return

        table = Table(title="Takeout Contents", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")

        table.add_row("Media Files", str(stats.total_files))
        table.add_row("Images With Metadata", str(stats.images_with_metadata))
        table.add_row("Videos With Metadata", str(stats.videos_with_metadata))
        table.add_row("Without Metadata", str(stats.files_without_metadata))
        table.add_row("With GPS", str(stats.files_with_geo_data))

        self._console.print(table)

    def print_stats(self, result: ProcessingResult) -> None:
        """Print processing result."""
        if self._quiet:
            return

        title = "Processing Cancelled" if result.cancelled else "Processing Complete"
        table = Table(title=title, show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")

        table.add_row("Processed", str(result.success))
        table.add_row("Duplicates Skipped", str(result.skipped))
        table.add_row("Errors", str(result.error))

        if result.elapsed_seconds > 0:
            rate = result.processed / result.elapsed_seconds
            table.add_row("", "")  # Blank row
            table.add_row("Time Elapsed", f"{result.elapsed_seconds:.1f}s")
            table.add_row("Processing Rate", f"{rate:.1f} files/sec")

        self._console.print(table)

    # --- Context Managers ---

    def __enter__(self) -> "RichProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        self.end_phase()


class QuietProgressReporter:
    """Minimal progress reporter that only shows errors."""

    def start_phase(self, name: str, total: int) -> None:
        pass

    def update_phase(self, completed: int, description: Optional[str] = None) -> None:
        pass

    def end_phase(self) -> None:
        pass

    def as_event_sink(self) -> EventSink:
        def sink(event: ProgressEvent) -> None:
            pass

        return sink

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        print(f"WARNING: {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        print(f"ERROR: {message}", file=sys.stderr)

    def print_header(self, title: str) -> None:
        pass

    def print_config(self, config_items: dict) -> None:
        pass

    def print_scan_stats(self, stats: ScanStatistics) -> None:
        pass

    def print_stats(self, result: ProcessingResult) -> None:
        pass

    def __enter__(self) -> "QuietProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        pass


class EventLog:
    """Records processor events in order.

    Usable directly as an ``on_event`` sink::

        log = EventLog()
        processor.process_all_files(records, options, on_event=log)
        assert log.completed.success == 3
    """

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def progress(self) -> list[models.Progress]:
        return [e for e in self.events if isinstance(e, models.Progress)]

    @property
    def completed(self) -> Optional[models.Complete]:
        for event in reversed(self.events):
            if isinstance(event, models.Complete):
                return event
        return None

    def names(self) -> list[str]:
        return [e.name for e in self.progress]
