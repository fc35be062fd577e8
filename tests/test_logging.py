"""Tests for Rich progress reporter and log configuration."""
import io
import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from takeout_processor.core.models import Complete, Progress, ProcessingResult, ScanStatistics
from takeout_processor.logging.rich_logger import (
    EventLog,
    QuietProgressReporter,
    RichProgressReporter,
    configure_logging,
)


def _console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)


class TestRichProgressReporter:
    """Tests for Rich progress reporter."""

    @pytest.fixture
    def reporter(self):
        """Create a reporter writing to a buffer."""
        return RichProgressReporter(console=_console())

    def test_create_default(self):
        """Test default creation."""
        reporter = RichProgressReporter()
        assert reporter._verbose is False
        assert reporter._quiet is False

    def test_start_and_end_phase(self, reporter):
        """Test starting and ending a phase."""
        reporter.start_phase("Testing", 100)
        assert reporter._progress is not None
        assert reporter._current_task_id is not None

        reporter.end_phase()
        assert reporter._progress is None

    def test_event_sink_drives_bar(self, reporter):
        """Progress starts the bar, Complete stops it."""
        sink = reporter.as_event_sink()

        sink(Progress(current=1, total=2, name="a.jpg"))
        assert reporter._progress is not None
        sink(Progress(current=2, total=2, name="b.jpg"))
        assert reporter._progress.tasks[0].completed == 1

        sink(Complete(success=2, error=0, skipped=0))
        assert reporter._progress is None

    def test_quiet_sink_never_starts_bar(self):
        reporter = RichProgressReporter(quiet=True, console=_console())
        sink = reporter.as_event_sink()
        sink(Progress(current=1, total=1, name="a.jpg"))
        assert reporter._progress is None
        sink(Complete(success=1, error=0, skipped=0))

    def test_print_stats(self, reporter):
        """Test result table."""
        reporter.print_stats(ProcessingResult(success=8, error=1, skipped=2, elapsed_seconds=2.0))
        output = reporter.console.file.getvalue()
        assert "Processing Complete" in output
        assert "Duplicates Skipped" in output

    def test_print_cancelled(self, reporter):
        reporter.print_stats(ProcessingResult(success=1, cancelled=True))
        assert "Processing Cancelled" in reporter.console.file.getvalue()

    def test_print_scan_stats(self, reporter):
        reporter.print_scan_stats(ScanStatistics(total_files=3, files_with_geo_data=1))
        output = reporter.console.file.getvalue()
        assert "Media Files" in output
        assert "With GPS" in output

    def test_print_header_and_config(self, reporter):
        reporter.print_header("takeout-processor")
        reporter.print_config({"Output Directory": "/library", "Add Metadata": True})
        output = reporter.console.file.getvalue()
        assert "takeout-processor" in output
        assert "/library" in output

    def test_quiet_mode_suppresses_info(self):
        reporter = RichProgressReporter(quiet=True, console=_console())
        reporter.info("Suppressed")
        reporter.print_header("Suppressed")
        assert reporter.console.file.getvalue() == ""

    def test_context_manager(self):
        with RichProgressReporter(console=_console()) as reporter:
            reporter.start_phase("Testing", 10)
        assert reporter._progress is None


class TestQuietProgressReporter:
    """Tests for quiet progress reporter."""

    @pytest.fixture
    def reporter(self):
        """Create a quiet reporter."""
        return QuietProgressReporter()

    def test_phase_methods_no_op(self, reporter):
        reporter.start_phase("Testing", 100)
        reporter.update_phase(50)
        reporter.end_phase()
        reporter.as_event_sink()(Complete(success=0, error=0, skipped=0))

    def test_warning_outputs(self, reporter, capsys):
        reporter.warning("Test warning")
        assert "WARNING" in capsys.readouterr().err

    def test_error_outputs(self, reporter, capsys):
        reporter.error("Test error")
        assert "ERROR" in capsys.readouterr().err

    def test_print_methods_no_op(self, reporter, capsys):
        reporter.print_header("Suppressed")
        reporter.print_config({})
        reporter.print_stats(ProcessingResult())
        reporter.print_scan_stats(ScanStatistics())
        assert capsys.readouterr().err == ""


class TestEventLog:
    """Tests for the EventLog recorder."""

    def test_records_in_order(self):
        log = EventLog()
        log(Progress(current=1, total=2, name="a.jpg"))
        log(Progress(current=2, total=2, name="b.jpg"))
        log(Complete(success=2, error=0, skipped=0))

        assert log.names() == ["a.jpg", "b.jpg"]
        assert len(log.progress) == 2
        assert log.completed == Complete(success=2, error=0, skipped=0)

    def test_no_complete(self):
        assert EventLog().completed is None


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger("takeout_processor")
        handlers, level = list(logger.handlers), logger.level
        yield
        logger.handlers = handlers
        logger.setLevel(level)

    def test_levels(self):
        assert configure_logging(verbose=True, console=_console()).level == logging.DEBUG
        assert configure_logging(quiet=True, console=_console()).level == logging.ERROR
        assert configure_logging(console=_console()).level == logging.WARNING

    def test_single_rich_handler(self):
        configure_logging(console=_console())
        logger = configure_logging(console=_console())
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1

    def test_records_reach_console(self):
        console = _console()
        configure_logging(console=console)
        logging.getLogger("takeout_processor.services.scanner").warning("Failed to parse metadata for x.jpg")
        assert "Failed to parse metadata for x.jpg" in console.file.getvalue()
