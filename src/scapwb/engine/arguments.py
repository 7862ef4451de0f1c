"""
oscap argument vectors for each scanner mode.

Pure functions: they only look at the session, the capabilities and the
paths they are given.
"""

from typing import Optional

from scapwb.engine.capabilities import Capabilities
from scapwb.engine.session import ScanningSession

PROGRESS_FLAG = "--progress"


def _common_flags(session: ScanningSession) -> list[str]:
    args = []
    if session.skip_validation:
        args.append("--skip-valid")
    if session.fetch_remote_resources:
        args.append("--fetch-remote-resources")
    return args


def _output_flags(result_path: str, report_path: str, arf_path: str) -> list[str]:
    return [
        "--results",
        result_path,
        "--results-arf",
        arf_path,
        "--report",
        report_path,
    ]


def _wants_progress(capabilities: Optional[Capabilities], ignore_capabilities: bool) -> bool:
    if ignore_capabilities:
        return True
    return capabilities is not None and capabilities.progress_reporting


def build_evaluation_args(
    session: ScanningSession,
    capabilities: Optional[Capabilities],
    document_path: str,
    tailoring_path: Optional[str],
    result_path: str,
    report_path: str,
    arf_path: str,
    online_remediation: bool,
    ignore_capabilities: bool = False,
) -> list[str]:
    """
    Build ``oscap xccdf eval`` arguments.

    The document path is always the last argument. With
    ``ignore_capabilities`` the vector is built as if every optional
    feature were supported (used for command previews).
    """
    args = ["xccdf", "eval", *_common_flags(session)]

    if tailoring_path:
        args.extend(["--tailoring-file", tailoring_path])

    if session.datastream_id:
        args.extend(["--datastream-id", session.datastream_id])
    if session.xccdf_id:
        args.extend(["--xccdf-id", session.xccdf_id])

    if session.profile:
        args.extend(["--profile", session.profile])

    args.extend(_output_flags(result_path, report_path, arf_path))

    if _wants_progress(capabilities, ignore_capabilities):
        args.append(PROGRESS_FLAG)

    if online_remediation:
        args.append("--remediate")

    args.append(document_path)
    return args


def build_offline_remediation_args(
    session: ScanningSession,
    capabilities: Optional[Capabilities],
    input_arf_path: str,
    result_path: str,
    report_path: str,
    arf_path: str,
    ignore_capabilities: bool = False,
) -> list[str]:
    """Build ``oscap xccdf remediate`` arguments for a captured ARF bundle."""
    args = ["xccdf", "remediate", *_common_flags(session)]
    args.extend(_output_flags(result_path, report_path, arf_path))

    if _wants_progress(capabilities, ignore_capabilities):
        args.append(PROGRESS_FLAG)

    args.append(input_arf_path)
    return args


def build_generate_fix_args(
    fix_type: str,
    output_path: str,
    result_id: str,
    arf_path: str,
) -> list[str]:
    """Build ``oscap xccdf generate fix`` arguments for a result in an ARF bundle."""
    return [
        "xccdf",
        "generate",
        "fix",
        "--fix-type",
        fix_type,
        "--output",
        output_path,
        "--result-id",
        result_id,
        arf_path,
    ]
