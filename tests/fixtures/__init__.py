"""Test fixtures for scapwb oscap supervision tests."""

from tests.fixtures.oscap import (
    FakeProber,
    FakeProcess,
    FakeProcessFactory,
    get_sample_capabilities,
    get_sample_outputs,
    get_sample_progress_output,
    get_sample_version_output,
    write_fake_oscap,
)

__all__ = [
    # oscap -V output
    "get_sample_version_output",
    "get_sample_capabilities",
    # Scan output
    "get_sample_progress_output",
    "get_sample_outputs",
    # Process stand-ins
    "FakeProcess",
    "FakeProcessFactory",
    "FakeProber",
    # Fake executables
    "write_fake_oscap",
]
