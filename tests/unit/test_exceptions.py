"""
Unit tests for the scanner exception hierarchy.
"""

import pytest

from scapwb.engine.exceptions import (
    ArtifactReadError,
    LaunchFailure,
    PreconditionFailure,
    PrerequisiteFailure,
    ProbeFailure,
    ScannerBusyError,
    ScannerError,
    ToolReportedError,
)


class TestScannerError:
    """Tests for the base exception."""

    def test_basic(self) -> None:
        error = ScannerError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.error_code == "SCAN_000"
        assert error.troubleshooting_tips == []
        assert error.context == {}
        assert str(error) == "[SCAN_000] Something went wrong"

    def test_format_with_tips_and_context(self) -> None:
        error = ScannerError(
            "Failed",
            error_code="CUSTOM_001",
            troubleshooting_tips=["Tip one", "Tip two"],
            context={"key": "value"},
        )
        text = str(error)
        assert "[CUSTOM_001] Failed" in text
        assert "Troubleshooting:" in text
        assert "1. Tip one" in text
        assert "2. Tip two" in text
        assert "key=value" in text


class TestSubclasses:
    """Tests for specific exceptions."""

    @pytest.mark.parametrize(
        "error, code",
        [
            (ProbeFailure("x"), "PROBE_001"),
            (PrerequisiteFailure("x"), "PREREQ_001"),
            (LaunchFailure("x"), "LAUNCH_001"),
            (ToolReportedError("x"), "EXEC_001"),
            (ArtifactReadError("x"), "ARTIFACT_001"),
            (PreconditionFailure("x"), "PRECOND_001"),
            (ScannerBusyError("x"), "BUSY_001"),
        ],
    )
    def test_error_codes(self, error: ScannerError, code: str) -> None:
        assert isinstance(error, ScannerError)
        assert error.error_code == code

    def test_probe_failure(self) -> None:
        error = ProbeFailure("probe failed", diagnostic="Exit code: 127", exit_code=127)
        assert error.diagnostic == "Exit code: 127"
        assert error.context["exit_code"] == 127
        assert error.troubleshooting_tips

    def test_prerequisite_failure(self) -> None:
        error = PrerequisiteFailure("too old", missing="arf_input", context={"oscap_version": "1.0.5"})
        assert error.missing == "arf_input"
        assert error.context == {"oscap_version": "1.0.5", "missing": "arf_input"}

    def test_launch_failure(self) -> None:
        error = LaunchFailure("not found", program="/usr/bin/nice")
        assert error.program == "/usr/bin/nice"
        assert error.context["program"] == "/usr/bin/nice"
        assert any("SCAP_WORKBENCH_PKEXEC_OSCAP_PATH" in tip for tip in error.troubleshooting_tips)

    def test_tool_reported_error_truncates_stderr(self) -> None:
        error = ToolReportedError("exit 1", stderr="e" * 500)
        assert error.exit_code == 1
        assert error.stderr == "e" * 500
        assert len(error.context["stderr_preview"]) == 203

    def test_artifact_read_error(self) -> None:
        error = ArtifactReadError("unreadable", artifact="report", path="/tmp/report.html")
        assert error.context == {"artifact": "report", "path": "/tmp/report.html"}
