"""
scapwb engine for supervising local oscap scans.

This package provides the LocalScanner class that runs oscap on the local
machine through a privilege-elevation wrapper, supervises the process,
and collects the result, report and ARF artifacts.

Key components:
- LocalScanner: Scan state machine and remediation role generation
- CapabilityProber / Capabilities: ``oscap -V`` discovery
- InvocationResolver: nice and pkexec wrapping
- TemporaryArtifactSet: Pre-created output files owned by the caller
- NoticeBus: Info, warning, error and progress notices plus completion

Exception hierarchy:
- ScannerError: Base exception for all scan supervision errors
- ProbeFailure: Capability query failed
- PrerequisiteFailure: oscap or inputs do not meet the mode's needs
- LaunchFailure: oscap never started
- ToolReportedError: oscap exited with code 1
- ArtifactReadError: An output file could not be read back
- PreconditionFailure: Remediation role generation cannot start
- ScannerBusyError: A run is already active
"""

from scapwb.engine.artifacts import MaterializedFile, TemporaryArtifactSet, WorkingDirectory
from scapwb.engine.capabilities import Capabilities, CapabilityProber, parse_version
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
from scapwb.engine.invocation import InvocationResolver
from scapwb.engine.notices import Completion, Notice, NoticeBus, NoticeKind, NoticeRecorder
from scapwb.engine.process import ProcessResult, ScanProcess, run_sync
from scapwb.engine.scanner import LocalScanner, ScannerMode, ScanState
from scapwb.engine.session import ScanningSession

__all__ = [
    # Scanner
    "LocalScanner",
    "ScannerMode",
    "ScanState",
    "ScanningSession",
    # Capabilities and invocation
    "Capabilities",
    "CapabilityProber",
    "parse_version",
    "InvocationResolver",
    # Processes and files
    "ProcessResult",
    "ScanProcess",
    "run_sync",
    "TemporaryArtifactSet",
    "WorkingDirectory",
    "MaterializedFile",
    # Notices
    "Notice",
    "NoticeKind",
    "Completion",
    "NoticeBus",
    "NoticeRecorder",
    # Exceptions
    "ScannerError",
    "ProbeFailure",
    "PrerequisiteFailure",
    "LaunchFailure",
    "ToolReportedError",
    "ArtifactReadError",
    "PreconditionFailure",
    "ScannerBusyError",
]
