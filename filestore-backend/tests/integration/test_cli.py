"""
Integration Tests: Command Line

Drives scripts.filestore_cli end to end against a temporary directory.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from scripts import filestore_cli


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep the CLI from replacing the root logger during tests."""
    with patch.object(filestore_cli, "configure_from_preset") as mock_configure:
        yield mock_configure


@pytest.fixture
def source_file(temp_dir: Path) -> Path:
    path = temp_dir / "report.pdf"
    path.write_bytes(b"%PDF-1.7")
    return path


@pytest.mark.integration
class TestSaveCommand:
    """filestore save."""

    def test_save_into_directory(self, source_file: Path, temp_storage_dir: Path, capsys):
        code = filestore_cli.main(["save", str(source_file), "--dir", str(temp_storage_dir)])

        assert code == 0
        assert (temp_storage_dir / "report.pdf").read_bytes() == b"%PDF-1.7"
        assert "success" in capsys.readouterr().out

    def test_save_with_new_name_and_created_directory(self, source_file: Path, temp_dir: Path):
        target = temp_dir / "uploads"

        code = filestore_cli.main([
            "save", str(source_file), "--name", "q3.pdf", "--dir", str(target), "--create-dir",
        ])

        assert code == 0
        assert (target / "q3.pdf").exists()

    def test_save_refuses_existing_file(self, source_file: Path, temp_storage_dir: Path, capsys):
        (temp_storage_dir / "report.pdf").write_bytes(b"old")

        code = filestore_cli.main(["save", str(source_file), "--dir", str(temp_storage_dir)])

        assert code == 1
        assert (temp_storage_dir / "report.pdf").read_bytes() == b"old"
        assert "file_already_exists" in capsys.readouterr().out

    def test_save_overwrite(self, source_file: Path, temp_storage_dir: Path):
        (temp_storage_dir / "report.pdf").write_bytes(b"old")

        code = filestore_cli.main(["save", str(source_file), "--dir", str(temp_storage_dir), "--overwrite"])

        assert code == 0
        assert (temp_storage_dir / "report.pdf").read_bytes() == b"%PDF-1.7"

    def test_no_overwrite_beats_configured_overwrite(self, source_file: Path, temp_storage_dir: Path, monkeypatch):
        monkeypatch.setenv("STORAGE_OVERWRITE_FILES", "true")
        (temp_storage_dir / "report.pdf").write_bytes(b"old")

        code = filestore_cli.main(["save", str(source_file), "--dir", str(temp_storage_dir), "--no-overwrite"])

        assert code == 1
        assert (temp_storage_dir / "report.pdf").read_bytes() == b"old"

    def test_configured_overwrite_applies_without_flag(self, source_file: Path, temp_storage_dir: Path, monkeypatch):
        monkeypatch.setenv("STORAGE_OVERWRITE_FILES", "true")
        (temp_storage_dir / "report.pdf").write_bytes(b"old")

        assert filestore_cli.main(["save", str(source_file), "--dir", str(temp_storage_dir)]) == 0
        assert (temp_storage_dir / "report.pdf").read_bytes() == b"%PDF-1.7"

    def test_no_create_dir_beats_configured_create(self, source_file: Path, temp_dir: Path, monkeypatch, capsys):
        monkeypatch.setenv("STORAGE_CREATE_DIRECTORIES", "true")
        target = temp_dir / "uploads"

        code = filestore_cli.main(["save", str(source_file), "--dir", str(target), "--no-create-dir"])

        assert code == 1
        assert not target.exists()
        assert "path_does_not_exist" in capsys.readouterr().out

    def test_missing_source(self, temp_dir: Path, temp_storage_dir: Path, capsys):
        code = filestore_cli.main(["save", str(temp_dir / "nope.bin"), "--dir", str(temp_storage_dir)])

        assert code == 2
        assert "Cannot open" in capsys.readouterr().out

    def test_default_directory_from_settings(self, source_file: Path, temp_storage_dir: Path, monkeypatch):
        monkeypatch.setenv("STORAGE_BASE_PATH", str(temp_storage_dir))

        assert filestore_cli.main(["save", str(source_file)]) == 0
        assert (temp_storage_dir / "report.pdf").exists()

    def test_configured_confinement(self, source_file: Path, temp_storage_dir: Path, monkeypatch, capsys):
        monkeypatch.setenv("STORAGE_BASE_PATH", str(temp_storage_dir))
        monkeypatch.setenv("STORAGE_CONFINE_TO_BASE", "true")

        code = filestore_cli.main(["save", str(source_file), "--name", "../escape.pdf"])

        assert code == 1
        assert "security_issue" in capsys.readouterr().out
        assert not (temp_storage_dir.parent / "escape.pdf").exists()


@pytest.mark.integration
class TestDeleteCommand:
    """filestore delete."""

    @pytest.fixture
    def populated(self, temp_storage_dir: Path) -> Path:
        for name in ["report.pdf", "report_v2.txt", "other.txt"]:
            (temp_storage_dir / name).write_bytes(b"x")
        return temp_storage_dir

    def test_exact(self, populated: Path):
        assert filestore_cli.main(["delete", "report.pdf", "--exact", "--dir", str(populated)]) == 0
        assert sorted(p.name for p in populated.iterdir()) == ["other.txt", "report_v2.txt"]

    def test_prefix(self, populated: Path):
        assert filestore_cli.main(["delete", "report.pdf", "--prefix", "--dir", str(populated)]) == 0
        assert sorted(p.name for p in populated.iterdir()) == ["other.txt"]

    def test_default_mode_is_exact(self, populated: Path):
        assert filestore_cli.main(["delete", "report.pdf", "--dir", str(populated)]) == 0
        assert (populated / "report_v2.txt").exists()

    def test_exact_missing(self, populated: Path, capsys):
        assert filestore_cli.main(["delete", "missing.pdf", "--exact", "--dir", str(populated)]) == 1
        assert "file_does_not_exist" in capsys.readouterr().out

    def test_exact_and_prefix_are_exclusive(self, populated: Path):
        with pytest.raises(SystemExit):
            filestore_cli.main(["delete", "report.pdf", "--exact", "--prefix", "--dir", str(populated)])


@pytest.mark.integration
class TestHelperCommands:
    """filestore ext / stem and global flags."""

    def test_ext(self, capsys):
        assert filestore_cli.main(["ext", "Report.PDF"]) == 0
        assert capsys.readouterr().out.strip() == "pdf"

    def test_stem(self, capsys):
        assert filestore_cli.main(["stem", "archive.tar.gz"]) == 0
        assert capsys.readouterr().out.strip() == "archive.tar"

    def test_metrics_flag(self, source_file: Path, temp_storage_dir: Path, capsys):
        filestore_cli.main(["--metrics", "save", str(source_file), "--dir", str(temp_storage_dir)])

        out = capsys.readouterr().out
        assert 'filestore_operations_total{operation="save_stream",status="success"} 1.0' in out

    def test_logging_uses_environment_preset(self, quiet_logging):
        filestore_cli.main(["ext", "a.txt"])

        assert quiet_logging.call_args.args == ("test",)
        assert "format_type" not in quiet_logging.call_args.kwargs

    def test_logging_configured_from_flags(self, quiet_logging, capsys):
        filestore_cli.main(["--log-level", "DEBUG", "--json-logs", "ext", "a.txt"])

        assert quiet_logging.call_args.args == ("test",)
        kwargs = quiet_logging.call_args.kwargs
        assert kwargs["level"] == "DEBUG"
        assert kwargs["format_type"] == "json"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            filestore_cli.main([])
