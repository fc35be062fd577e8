"""Console output and log configuration."""
from .rich_logger import (
    EventLog,
    QuietProgressReporter,
    RichProgressReporter,
    configure_logging,
)

__all__ = [
    "EventLog",
    "QuietProgressReporter",
    "RichProgressReporter",
    "configure_logging",
]
