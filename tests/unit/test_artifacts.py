"""
Unit tests for scoped temporary files and directories.
"""

from pathlib import Path

import pytest

from scapwb.engine.artifacts import (
    ARTIFACT_NAMES,
    MaterializedFile,
    TemporaryArtifactSet,
    WorkingDirectory,
)


class TestTemporaryArtifactSet:
    """Tests for TemporaryArtifactSet."""

    def test_files_precreated_empty(self, tmp_path: Path) -> None:
        with TemporaryArtifactSet(tmp_path) as artifacts:
            paths = artifacts.paths()
            assert set(paths) == set(ARTIFACT_NAMES)
            for path in paths.values():
                assert path.parent == tmp_path
                assert path.read_bytes() == b""

    def test_distinct_paths(self, tmp_path: Path) -> None:
        with TemporaryArtifactSet(tmp_path) as artifacts:
            assert len(set(artifacts.paths().values())) == 3

    def test_reset_truncates(self, tmp_path: Path) -> None:
        with TemporaryArtifactSet(tmp_path) as artifacts:
            artifacts.result.write_bytes(b"stale")
            artifacts.reset()
            artifacts.reset()
            assert artifacts.read("result") == b""

    def test_read_round_trip(self, tmp_path: Path) -> None:
        with TemporaryArtifactSet(tmp_path) as artifacts:
            artifacts.report.write_bytes(b"<html>\x00\xff</html>")
            assert artifacts.read("report") == b"<html>\x00\xff</html>"

    def test_read_missing_raises(self, tmp_path: Path) -> None:
        with TemporaryArtifactSet(tmp_path) as artifacts:
            artifacts.arf.unlink()
            with pytest.raises(OSError):
                artifacts.read("arf")

    def test_close_removes_files(self, tmp_path: Path) -> None:
        artifacts = TemporaryArtifactSet(tmp_path)
        paths = list(artifacts.paths().values())

        artifacts.close()
        artifacts.close()

        assert artifacts.closed
        assert not any(path.exists() for path in paths)

    def test_reset_after_close_raises(self, tmp_path: Path) -> None:
        artifacts = TemporaryArtifactSet(tmp_path)
        artifacts.close()

        with pytest.raises(ValueError):
            artifacts.reset()

        assert list(tmp_path.iterdir()) == []


class TestWorkingDirectory:
    """Tests for WorkingDirectory."""

    def test_removed_with_contents(self) -> None:
        with WorkingDirectory() as workdir:
            path = workdir.path
            (path / "oval-results.xml").write_text("<oval/>")
            assert path.is_dir()

        assert not path.exists()

    def test_removed_on_error(self) -> None:
        with pytest.raises(RuntimeError):
            with WorkingDirectory() as workdir:
                path = workdir.path
                raise RuntimeError("scan failed")

        assert not path.exists()

    def test_unique(self) -> None:
        with WorkingDirectory() as first, WorkingDirectory() as second:
            assert first.path != second.path


class TestMaterializedFile:
    """Tests for MaterializedFile."""

    def test_contains_exact_bytes(self) -> None:
        data = b"<arf/>" * 500
        with MaterializedFile(data) as materialized:
            assert materialized.path.read_bytes() == data

        assert not materialized.path.exists()
