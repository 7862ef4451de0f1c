"""
Scoped temporary files and directories for oscap invocations.

oscap may run as root through pkexec. Every file it is asked to write is
therefore created by us first, empty and owned by the invoking user, and
read back by us afterwards. All of these files and directories are removed
when their owner goes away, whichever way a run ends.
"""

import shutil
import tempfile
import weakref
from pathlib import Path
from typing import Any, Optional

from scapwb.logging import get_logger

logger = get_logger(__name__)

ARTIFACT_NAMES = ("result", "report", "arf")

_SUFFIXES = {
    "result": "-xccdf-results.xml",
    "report": "-report.html",
    "arf": "-arf.xml",
}


def _create_empty_file(suffix: str, directory: Optional[Path] = None) -> Path:
    handle = tempfile.NamedTemporaryFile(
        prefix="scapwb-", suffix=suffix, dir=directory, delete=False
    )
    handle.close()
    return Path(handle.name)


def _remove_files(paths: list[Path]) -> None:
    for path in paths:
        path.unlink(missing_ok=True)


class TemporaryArtifactSet:
    """
    Result, report and ARF files for one scanner.

    The files exist, empty, from construction on. ``reset()`` truncates
    them before each launch so repeated runs never see stale content.

    Attributes:
        result: XCCDF result document path.
        report: HTML report path.
        arf: ARF bundle path.
    """

    def __init__(self, directory: Optional[Path] = None) -> None:
        self.result = _create_empty_file(_SUFFIXES["result"], directory)
        self.report = _create_empty_file(_SUFFIXES["report"], directory)
        self.arf = _create_empty_file(_SUFFIXES["arf"], directory)
        self._finalizer = weakref.finalize(
            self, _remove_files, [self.result, self.report, self.arf]
        )

    def paths(self) -> dict[str, Path]:
        return {name: getattr(self, name) for name in ARTIFACT_NAMES}

    def reset(self) -> None:
        """
        Recreate every artifact as an empty file.

        Raises:
            ValueError: If the set has been closed; nothing would remove
                the recreated files.
        """
        if self.closed:
            raise ValueError("Cannot reset a closed artifact set")
        for path in self.paths().values():
            path.write_bytes(b"")

    def read(self, name: str) -> bytes:
        """Read one artifact in full. OSError propagates to the caller."""
        return self.paths()[name].read_bytes()

    def close(self) -> None:
        """Delete the files. Safe to call more than once."""
        self._finalizer()

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def __enter__(self) -> "TemporaryArtifactSet":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.close()
        return False


class WorkingDirectory:
    """
    Uniquely named directory used as the CWD of one oscap invocation.

    oscap writes check-engine results (OVAL, SCE) relative to its CWD; they
    land here and disappear with the directory.
    """

    def __init__(self) -> None:
        self.path = Path(tempfile.mkdtemp(prefix="scapwb-wd-"))
        self._finalizer = weakref.finalize(self, shutil.rmtree, self.path, True)
        logger.debug("working_directory_created", path=str(self.path))

    def cleanup(self) -> None:
        self._finalizer()

    def __enter__(self) -> "WorkingDirectory":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.cleanup()
        return False


class MaterializedFile:
    """A temporary file holding the given bytes, removed on exit."""

    def __init__(self, data: bytes, suffix: str = ".xml") -> None:
        self.path = _create_empty_file(suffix)
        self.path.write_bytes(data)
        self._finalizer = weakref.finalize(self, _remove_files, [self.path])

    def cleanup(self) -> None:
        self._finalizer()

    def __enter__(self) -> "MaterializedFile":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.cleanup()
        return False
