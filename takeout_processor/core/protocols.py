"""Protocol definitions (interfaces) for dependency injection."""
from __future__ import annotations

from abc import abstractmethod
from typing import Callable, Optional, Protocol

from .models import Complete, Progress, ProgressEvent


# Receives Progress / Complete events in order
EventSink = Callable[[ProgressEvent], None]

# Polled once per record; True stops the run before the next record
CancellationCheck = Callable[[], bool]


class ProgressReporter(Protocol):
    """Interface for progress reporting."""

    @abstractmethod
    def start_phase(self, name: str, total: int) -> None:
        """Start a new processing phase."""
        ...

    @abstractmethod
    def update_phase(self, completed: int, description: Optional[str] = None) -> None:
        """Update progress."""
        ...

    @abstractmethod
    def end_phase(self) -> None:
        """Complete current phase."""
        ...

    @abstractmethod
    def info(self, message: str) -> None:
        """Log an info message."""
        ...

    @abstractmethod
    def success(self, message: str) -> None:
        """Log a success message."""
        ...

    @abstractmethod
    def warning(self, message: str) -> None:
        """Log a warning message."""
        ...

    @abstractmethod
    def error(self, message: str) -> None:
        """Log an error message."""
        ...

    @abstractmethod
    def as_event_sink(self) -> EventSink:
        """Adapt this reporter to the processor's event channel."""
        ...


def callbacks_to_sink(
    on_progress: Optional[Callable[[int, int, str], None]] = None,
    on_complete: Optional[Callable[[int, int, int], None]] = None,
) -> EventSink:
    """Adapt an (on_progress, on_complete) callback pair to an EventSink."""

    def sink(event: ProgressEvent) -> None:
        if isinstance(event, Progress):
            if on_progress is not None:
                on_progress(event.current, event.total, event.name)
        elif isinstance(event, Complete):
            if on_complete is not None:
                on_complete(event.success, event.error, event.skipped)

    return sink
