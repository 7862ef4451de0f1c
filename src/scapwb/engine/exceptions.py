"""
Exception hierarchy for the local scan supervisor.

Every failure the supervisor can run into has a structured exception with an
error code, actionable troubleshooting tips and a context dictionary. Most of
them never leave the scanner: it converts them into error notices and a
terminal state. They are still raised internally so that each failure path
is described in one place.
"""

from typing import Any, Optional


class ScannerError(Exception):
    """
    Base exception for all scan supervision errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code for categorization.
        troubleshooting_tips: List of actionable suggestions.
        context: Additional context dictionary.
    """

    default_code = "SCAN_000"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        troubleshooting_tips: Optional[list[str]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.default_code
        self.troubleshooting_tips = troubleshooting_tips or []
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with troubleshooting guidance."""
        parts = [f"[{self.error_code}] {self.message}"]

        if self.troubleshooting_tips:
            parts.append("\n\nTroubleshooting:")
            for i, tip in enumerate(self.troubleshooting_tips, 1):
                parts.append(f"  {i}. {tip}")

        if self.context:
            context_items = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"\n\nContext: {context_items}")

        return "\n".join(parts) if len(parts) > 1 else parts[0]

    def __str__(self) -> str:
        return self._format_message()


class ProbeFailure(ScannerError):
    """
    The ``oscap -V`` capability query exited non-zero.

    Attributes:
        diagnostic: Command line, exit code and captured output of the query.
        exit_code: Exit code of the query process.
    """

    default_code = "PROBE_001"

    def __init__(
        self,
        message: str,
        diagnostic: str = "",
        exit_code: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        self.diagnostic = diagnostic
        self.exit_code = exit_code

        ctx = kwargs.pop("context", None) or {}
        if exit_code is not None:
            ctx["exit_code"] = exit_code

        kwargs.setdefault(
            "troubleshooting_tips",
            [
                "Check that openscap-scanner is installed",
                "Verify scanner.oscap_path points at the oscap binary",
                "Run 'oscap -V' manually to see the failure",
            ],
        )
        super().__init__(message, context=ctx, **kwargs)


class PrerequisiteFailure(ScannerError):
    """
    The installed oscap or the scanned content does not meet requirements.

    Treated as a cancellation rather than a hard error.

    Attributes:
        missing: Name of the missing feature or input.
    """

    default_code = "PREREQ_001"

    def __init__(self, message: str, missing: Optional[str] = None, **kwargs: Any) -> None:
        self.missing = missing
        ctx = kwargs.pop("context", None) or {}
        if missing:
            ctx["missing"] = missing
        super().__init__(message, context=ctx, **kwargs)


class LaunchFailure(ScannerError):
    """
    The oscap process never reached the running state.

    Attributes:
        program: Program that was started.
    """

    default_code = "LAUNCH_001"

    def __init__(self, message: str, program: Optional[str] = None, **kwargs: Any) -> None:
        self.program = program
        ctx = kwargs.pop("context", None) or {}
        if program:
            ctx["program"] = program
        kwargs.setdefault(
            "troubleshooting_tips",
            [
                "Check that the pkexec wrapper exists and is executable",
                "Set SCAP_WORKBENCH_PKEXEC_OSCAP_PATH to override the wrapper path",
                "Set scanner.nice_path to null if nice is unavailable",
            ],
        )
        super().__init__(message, context=ctx, **kwargs)


class ToolReportedError(ScannerError):
    """
    oscap exited with code 1.

    Attributes:
        exit_code: Exit code of the process (always 1 in practice).
        stderr: Standard error output of the process.
    """

    default_code = "EXEC_001"

    def __init__(
        self,
        message: str,
        exit_code: int = 1,
        stderr: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.exit_code = exit_code
        self.stderr = stderr

        ctx = kwargs.pop("context", None) or {}
        ctx["exit_code"] = exit_code
        if stderr:
            ctx["stderr_preview"] = stderr[:200] + "..." if len(stderr) > 200 else stderr

        super().__init__(message, context=ctx, **kwargs)


class ArtifactReadError(ScannerError):
    """
    A result, report or ARF file could not be read back after the scan.

    Attributes:
        artifact: Name of the artifact that failed.
        path: File system path of that artifact.
    """

    default_code = "ARTIFACT_001"

    def __init__(
        self,
        message: str,
        artifact: Optional[str] = None,
        path: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.artifact = artifact
        self.path = path
        ctx = kwargs.pop("context", None) or {}
        if artifact:
            ctx["artifact"] = artifact
        if path:
            ctx["path"] = path
        super().__init__(message, context=ctx, **kwargs)


class PreconditionFailure(ScannerError):
    """Remediation role generation cannot start (no profile, no ARF)."""

    default_code = "PRECOND_001"


class ScannerBusyError(ScannerError):
    """evaluate() was called while another run on the same scanner is active."""

    default_code = "BUSY_001"
