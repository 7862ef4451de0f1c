"""
Pytest fixtures for oscap integration tests.

These tests run real processes: shell scripts standing in for oscap and the
pkexec wrapper are written to a temporary directory and wired in through
ScannerConfig.
"""

from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

from scapwb.config.models import ScannerConfig
from tests.fixtures import write_fake_oscap


@pytest.fixture(autouse=True)
def no_pkexec_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a wrapper override set in the host environment out of the tests."""
    monkeypatch.delenv("SCAP_WORKBENCH_PKEXEC_OSCAP_PATH", raising=False)


@pytest.fixture
def document(tmp_path: Path) -> Path:
    """
    Fixture providing a content file to evaluate.

    Returns:
        Path to an (unparsed) datastream file.
    """
    path = tmp_path / "ssg-fedora-ds.xml"
    path.write_text('<?xml version="1.0"?>\n<ds:data-stream-collection/>\n')
    return path


@pytest.fixture
def fake_oscap(tmp_path: Path) -> Callable[..., Path]:
    """
    Fixture providing a factory for fake oscap scripts.

    Keyword arguments are passed to write_fake_oscap; each call writes a new
    script into its own directory.
    """
    counter = iter(range(1000))

    def factory(**kwargs: Any) -> Path:
        directory = tmp_path / f"bin{next(counter)}"
        directory.mkdir()
        return write_fake_oscap(directory, **kwargs)

    return factory


@pytest.fixture
def scanner_config_for() -> Callable[..., ScannerConfig]:
    """
    Fixture providing a ScannerConfig builder that runs the given script
    both as oscap and as the pkexec wrapper, without nice.
    """

    def build(script: Path, **overrides: Any) -> ScannerConfig:
        values: dict[str, Any] = {
            "oscap_path": str(script),
            "pkexec_oscap_path": str(script),
            "nice_path": None,
            "poll_interval_ms": 10,
            "cancel_poll_interval_ms": 50,
            "probe_timeout": 10,
        }
        values.update(overrides)
        return ScannerConfig(**values)

    return build


@pytest.fixture
def settings_file(tmp_path: Path) -> Callable[..., Path]:
    """Fixture providing a writer for scapwb settings files."""

    def write(script: Path, output_dir: Path) -> Path:
        path = tmp_path / "settings.yaml"
        path.write_text(
            yaml.dump(
                {
                    "output": {"directory": str(output_dir)},
                    "scanner": {
                        "oscap_path": str(script),
                        "pkexec_oscap_path": str(script),
                        "nice_path": None,
                        "poll_interval_ms": 10,
                        "cancel_poll_interval_ms": 50,
                    },
                }
            )
        )
        return path

    return write
