"""
Integration tests for whole-disc inspection and the command line.

Tests the path from a raw image file through detection, directory
walking and report output.
"""

import json
import logging

import pytest

from adfs_inspector.core.settings import Settings, WalkerSettings
from adfs_inspector.core.summary import inspect_disc
from adfs_inspector.core.formats import DiscFormat
from adfs_inspector.imaging.sector_image import SectorImage
from adfs_inspector.main import (
    EXIT_LOAD_ERROR,
    EXIT_RECOGNISED,
    EXIT_UNRECOGNISED,
    build_parser,
    main,
)
from adfs_inspector.utils.logging import reset_logging
from tests.fixtures import (
    GEOMETRY_S,
    OldDiscSpec,
    build_boot_block_image,
    build_new_map_image,
    build_old_map_image,
    create_empty_disc,
    create_old_map_disc,
    file_entry,
)


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    monkeypatch.setenv("COLUMNS", "1000")
    Settings.reset_instance()
    yield
    reset_logging()
    Settings.reset_instance()


@pytest.fixture
def settings_file(tmp_path):
    return tmp_path / "settings.json"


def _write_image(tmp_path, image, name="disc.adf"):
    path = tmp_path / name
    path.write_bytes(image.data)
    return str(path)


class TestInspectDisc:
    """Test inspect_disc() across formats."""

    def test_old_map_disc(self):
        """Test an L disc is detected, titled and walked."""
        summary = inspect_disc(create_old_map_disc(DiscFormat.L))

        assert summary.disc_format is DiscFormat.L
        assert summary.title == "Adventure"
        assert summary.root_offset == 0x200
        assert summary.object_count == 6
        assert summary.old_map is not None
        assert summary.disc_record is None

    def test_d_disc(self):
        """Test a D disc is walked from 0x400."""
        summary = inspect_disc(create_old_map_disc(DiscFormat.D))
        assert summary.root_offset == 0x400
        assert summary.object_count == 6

    def test_new_map_disc(self):
        """Test an E disc is titled from its disc record and not walked."""
        summary = inspect_disc(build_new_map_image())

        assert summary.disc_format is DiscFormat.E
        assert summary.title == "NewMapDisc"
        assert summary.root_offset is None
        assert summary.tree == []

    def test_unknown_image(self):
        """Test an unrecognised image carries only the detection."""
        summary = inspect_disc(SectorImage(GEOMETRY_S))

        assert summary.disc_format is DiscFormat.UNKNOWN
        assert summary.title == ""
        assert summary.tree == []
        assert summary.detection.reason

    def test_walk_disabled(self):
        """Test walk_tree=False skips the directory tree."""
        summary = inspect_disc(create_old_map_disc(DiscFormat.L), walk_tree=False)
        assert summary.title == "Adventure"
        assert summary.root_offset is None
        assert summary.tree == []

    def test_empty_disc(self):
        """Test an empty S disc."""
        summary = inspect_disc(create_empty_disc(DiscFormat.S))

        assert summary.disc_format is DiscFormat.S
        assert summary.title == "Empty"
        assert summary.old_map.free_space == []
        assert summary.tree == []

    def test_walker_settings_applied(self):
        """Test the depth limit from walker settings."""
        summary = inspect_disc(create_old_map_disc(DiscFormat.L), WalkerSettings(max_depth=0))
        assert summary.object_count == 3

    def test_reporter_passed_to_detection(self):
        """Test disc records reach the reporter."""
        seen = []
        inspect_disc(build_boot_block_image(secspertrack=20), report=seen.append)
        assert seen[-1].secspertrack == 20
        assert seen[-1].name == "BootDisc"


class TestCommandLine:
    """Test the adfs-inspect command."""

    def test_parser_defaults(self):
        """Test the parser with only an image."""
        args = build_parser().parse_args(["disc.adf"])
        assert args.image == "disc.adf"
        assert not args.no_tree
        assert args.settings is None

    def test_old_map_disc(self, tmp_path, settings_file, capsys):
        """Test a recognised disc prints its report and tree."""
        path = _write_image(tmp_path, create_old_map_disc(DiscFormat.L), "games.adl")

        assert main([path, "--settings", str(settings_file)]) == EXIT_RECOGNISED

        out = capsys.readouterr().out
        assert "Format: ADFS L" in out
        assert 'Title: "Adventure"' in out
        assert 'Disc name: "Adventure"' in out
        assert "$.Games.Saves.Slot1" in out
        assert "00:00:00" in out

    def test_no_tree(self, tmp_path, settings_file, capsys):
        """Test --no-tree skips the listing."""
        path = _write_image(tmp_path, create_old_map_disc(DiscFormat.M))

        assert main([path, "--no-tree", "--settings", str(settings_file)]) == EXIT_RECOGNISED
        out = capsys.readouterr().out
        assert "Format: ADFS M" in out
        assert "$.Games" not in out

    def test_empty_tree(self, tmp_path, settings_file, capsys):
        """Test an empty root says so."""
        path = _write_image(tmp_path, create_empty_disc(DiscFormat.S))
        assert main([path, "--settings", str(settings_file)]) == EXIT_RECOGNISED
        assert "Directory tree: empty" in capsys.readouterr().out

    def test_new_map_disc(self, tmp_path, settings_file, capsys):
        """Test a new map disc reports its disc record."""
        path = _write_image(tmp_path, build_new_map_image(root_size=0x800))

        assert main([path, "--settings", str(settings_file)]) == EXIT_RECOGNISED
        out = capsys.readouterr().out
        assert "Format: ADFS E+" in out
        assert "ADFS Disc Record" in out
        assert "not available for new map discs" in out

    def test_bracketed_name_printed_literally(self, tmp_path, settings_file, capsys):
        """Test an object name holding square brackets is not read as markup."""
        spec = OldDiscSpec(disc_format=DiscFormat.S, root=[file_entry("[bold]X")])
        path = _write_image(tmp_path, build_old_map_image(spec))

        assert main([path, "--settings", str(settings_file)]) == EXIT_RECOGNISED
        assert "$.[bold]X" in capsys.readouterr().out

    def test_unrecognised_image(self, tmp_path, settings_file, capsys):
        """Test a blank image exits 1 with a reason."""
        path = _write_image(tmp_path, SectorImage(GEOMETRY_S), "blank.img")

        assert main([path, "--settings", str(settings_file)]) == EXIT_UNRECOGNISED
        captured = capsys.readouterr()
        assert "Format: Unknown" in captured.out
        assert "No ADFS format recognised" in captured.err

    def test_missing_image(self, tmp_path, settings_file, capsys):
        """Test an image that cannot be loaded exits 2."""
        code = main([str(tmp_path / "none.adf"), "--settings", str(settings_file)])

        assert code == EXIT_LOAD_ERROR
        assert "load failed" in capsys.readouterr().out

    def test_bad_size_image(self, tmp_path, settings_file, capsys):
        """Test an image matching no geometry exits 2."""
        path = tmp_path / "tiny.img"
        path.write_bytes(bytes(100))

        assert main([str(path), "--settings", str(settings_file)]) == EXIT_LOAD_ERROR
        assert "no ADFS floppy layout" in capsys.readouterr().out

    def test_log_file(self, tmp_path, settings_file):
        """Test --log-file records detection."""
        path = _write_image(tmp_path, create_old_map_disc(DiscFormat.L))
        log_file = tmp_path / "logs" / "run.log"

        main([path, "--settings", str(settings_file), "--log-file", str(log_file)])
        reset_logging()

        text = log_file.read_text(encoding='utf-8')
        assert "Detected ADFS L" in text
        assert "Loading image" in text

    def test_settings_file_applied(self, tmp_path, settings_file):
        """Test settings from the file reach detection and the walk."""
        settings_file.write_text(json.dumps({
            'version': 1,
            'detection': {'report_disc_records': True},
            'logging': {'level': 'INFO'},
        }))
        path = _write_image(tmp_path, build_boot_block_image(secspertrack=10))
        log_file = tmp_path / "run.log"

        assert main([path, "--settings", str(settings_file),
                     "--log-file", str(log_file)]) == EXIT_RECOGNISED
        reset_logging()

        text = log_file.read_text(encoding='utf-8')
        assert "Sectors/track: 10" in text

    def test_verbose(self, tmp_path, settings_file, capsys):
        """Test -v shows progress on stderr."""
        path = _write_image(tmp_path, create_old_map_disc(DiscFormat.S))

        main([path, "-v", "--settings", str(settings_file)])
        assert "Detected ADFS S" in capsys.readouterr().err
        assert logging.getLogger().level == logging.DEBUG
