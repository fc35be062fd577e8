"""Tests for CLI commands."""
import json
import logging
from pathlib import Path

import pytest

from takeout_processor.cli import CancelFlag, build_options, create_parser, main
from takeout_processor.core.config import DuplicateDetectionMode, OrganizationMode
from .fixtures import PhotoNoSidecar, PhotoWithSidecar, create_takeout_structure


@pytest.fixture(autouse=True)
def restore_logger():
    """main() installs a Rich handler on the package logger."""
    logger = logging.getLogger("takeout_processor")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers = handlers
    logger.setLevel(level)


class TestCLIParsing:
    """Test CLI argument parsing."""

    def test_process_command_basic(self):
        parser = create_parser()
        args = parser.parse_args(["process", "/takeout", "-o", "/library"])

        assert args.command == "process"
        assert args.takeout_dir == Path("/takeout")
        assert args.output == Path("/library")
        assert args.copy_files is None
        assert args.mode is None

    def test_process_all_flags(self):
        parser = create_parser()
        args = parser.parse_args([
            "process", "/takeout",
            "-o", "/library",
            "--move",
            "--no-metadata",
            "--mode", "by-album",
            "--skip-duplicates",
            "--duplicate-mode", "name-only",
        ])

        assert args.copy_files is False
        assert args.add_metadata is False
        assert args.mode == "by-album"
        assert args.skip_duplicates is True
        assert args.duplicate_mode == "name-only"

    def test_invalid_mode_rejected(self):
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["process", "/takeout", "-o", "/x", "--mode", "by-day"])

    def test_stats_command(self):
        args = create_parser().parse_args(["-q", "stats", "/takeout"])
        assert args.command == "stats"
        assert args.quiet is True


class TestBuildOptions:
    """Tests for merging options files and flags."""

    def test_flags_only(self, tmp_path: Path):
        args = create_parser().parse_args([
            "process", "in", "-o", str(tmp_path / "lib"), "--mode", "flat", "--move",
        ])
        options = build_options(args)

        assert options.output_directory == (tmp_path / "lib").resolve()
        assert options.organization_mode is OrganizationMode.FLAT
        assert options.copy_files is False
        assert options.add_metadata is True

    def test_config_file_with_overrides(self, tmp_path: Path):
        config = tmp_path / "options.json"
        config.write_text(json.dumps({
            "output_directory": str(tmp_path / "from_file"),
            "organize_by_month": False,
            "skip_duplicates": True,
            "duplicate_detection_mode": "name-and-size",
        }))
        args = create_parser().parse_args([
            "process", "in", "--config", str(config), "--duplicate-mode", "hash",
        ])

        options = build_options(args)

        assert options.output_directory == (tmp_path / "from_file").resolve()
        assert options.organization_mode is OrganizationMode.FLAT
        assert options.skip_duplicates is True
        assert options.duplicate_detection_mode is DuplicateDetectionMode.HASH

    def test_missing_output(self):
        args = create_parser().parse_args(["process", "in"])
        with pytest.raises(ValueError, match="output directory"):
            build_options(args)


class TestCancelFlag:
    """Tests for the SIGINT cancellation flag."""

    def test_set(self):
        flag = CancelFlag()
        assert flag() is False
        flag.set(2, None)
        assert flag() is True


class TestMain:
    """End-to-end runs through main()."""

    def test_no_command_shows_help(self, capsys):
        assert main([]) == 0
        assert "process" in capsys.readouterr().out

    def test_process(self, tmp_path: Path):
        takeout = tmp_path / "takeout"
        takeout.mkdir()
        PhotoWithSidecar(name="a").create(takeout)
        PhotoNoSidecar(name="b").create(takeout)
        library = tmp_path / "library"

        code = main(["-q", "process", str(takeout), "-o", str(library)])

        assert code == 0
        assert (library / "2021" / "01" / "a.jpg").exists()
        assert (library / "Unknown_Date" / "b.jpg").exists()

    def test_process_rich_reporter(self, tmp_path: Path, capsys):
        takeout = tmp_path / "takeout"
        takeout.mkdir()
        PhotoNoSidecar(name="a").create(takeout)

        code = main(["process", str(takeout), "-o", str(tmp_path / "library"), "--mode", "flat"])

        assert code == 0
        assert (tmp_path / "library" / "a.jpg").exists()
        assert "Processed 1 files" in capsys.readouterr().err

    def test_process_invalid_root(self, tmp_path: Path):
        code = main(["-q", "process", str(tmp_path / "missing"), "-o", str(tmp_path / "library")])
        assert code == 1

    def test_process_without_output(self, tmp_path: Path):
        assert main(["-q", "process", str(tmp_path)]) == 1

    def test_stats(self, tmp_path: Path):
        create_takeout_structure(tmp_path)
        assert main(["stats", str(tmp_path)]) == 0

    def test_stats_invalid_root(self, tmp_path: Path):
        assert main(["-q", "stats", str(tmp_path / "missing")]) == 1
