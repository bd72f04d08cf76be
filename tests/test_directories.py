"""Tests for DirectoryManager."""

import os
from unittest.mock import MagicMock, patch

from reposervice.domain import OperationName, ResultStatus
from reposervice.infra.directories import DirectoryManager


class TestEnsureDirectory:

    def test_creates_missing_directory(self, tmp_path):
        target = tmp_path / "repos" / "VS-work" / "ddf--ws-testing" / "master"

        result = DirectoryManager().ensure_directory(str(target))

        assert result.ok
        assert result.operation == OperationName.ENSURE_DIRECTORY
        assert target.is_dir()

    def test_idempotent(self, tmp_path):
        manager = DirectoryManager()
        target = tmp_path / "repo"

        assert manager.ensure_directory(str(target)).ok
        assert manager.ensure_directory(str(target)).ok

    def test_existing_directory_untouched(self, tmp_path):
        (tmp_path / "keep.csv").write_text("a,b\n")

        with patch("pathlib.Path.mkdir") as mock_mkdir:
            result = DirectoryManager().ensure_directory(str(tmp_path))

        assert result.ok
        mock_mkdir.assert_not_called()
        assert (tmp_path / "keep.csv").exists()

    def test_creation_error_surfaced(self, tmp_path):
        with patch("pathlib.Path.mkdir", side_effect=PermissionError("Permission denied")):
            result = DirectoryManager().ensure_directory(str(tmp_path / "locked"))

        assert result.status == ResultStatus.FAILED
        assert result.error == "Permission denied"


class TestRemoveDirectoryContents:

    def test_removes_contents_keeps_directory(self, tmp_path):
        target = tmp_path / "repo"
        (target / "nested" / "deep").mkdir(parents=True)
        (target / "nested" / "deep" / "a.csv").write_text("x")
        (target / "b.csv").write_text("y")
        (target / ".git").mkdir()
        (target / ".gitignore").write_text("*.tmp")

        result = DirectoryManager().remove_directory_contents(str(target))

        assert result.ok
        assert target.is_dir()
        assert list(target.iterdir()) == []

    def test_symlink_removed_not_followed(self, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "keep.csv").write_text("x")
        target = tmp_path / "repo"
        target.mkdir()
        os.symlink(outside, target / "link")

        assert DirectoryManager().remove_directory_contents(str(target)).ok

        assert (outside / "keep.csv").exists()
        assert list(target.iterdir()) == []

    def test_missing_strict(self, tmp_path):
        missing = str(tmp_path / "missing")

        result = DirectoryManager().remove_directory_contents(missing)

        assert result.status == ResultStatus.FAILED
        assert result.error == f"Directory '{missing}' does not exist"

    def test_missing_tolerant(self, tmp_path):
        result = DirectoryManager(remove_missing_ok=True).remove_directory_contents(str(tmp_path / "missing"))

        assert result.ok

    def test_removal_error_surfaced(self, tmp_path):
        (tmp_path / "sub").mkdir()

        with patch("reposervice.infra.directories.shutil.rmtree", side_effect=OSError("Device busy")):
            result = DirectoryManager().remove_directory_contents(str(tmp_path))

        assert result.status == ResultStatus.FAILED
        assert result.error == "Device busy"


class TestNotADirectory:

    def test_ensure_over_regular_file_fails(self, tmp_path):
        target = tmp_path / "ddf--concepts.csv"
        target.write_text("concept\n")

        result = DirectoryManager().ensure_directory(str(target))

        assert result.status == ResultStatus.FAILED
        assert result.error == f"Path '{target}' exists and is not a directory"
        assert target.is_file()


class TestDiagnostics:

    def test_records_each_invocation(self, tmp_path):
        log = MagicMock()
        manager = DirectoryManager(log=log)

        manager.ensure_directory(str(tmp_path / "repo"))
        manager.remove_directory_contents(str(tmp_path / "repo"))

        assert log.info.call_count == 2
        operations = [call.kwargs["extra"]["operation"] for call in log.info.call_args_list]
        assert operations == ["ensure-directory", "remove-directory"]
        log.error.assert_not_called()

    def test_failure_logged(self, tmp_path):
        log = MagicMock()

        DirectoryManager(log=log).remove_directory_contents(str(tmp_path / "missing"))

        log.error.assert_called_once()
        assert log.error.call_args.kwargs["extra"]["path"] == str(tmp_path / "missing")
