"""
Capability discovery for the local oscap installation.

``oscap -V`` prints the tool version on its first line followed by sections
listing supported specification versions and plugin capabilities, e.g.::

    OpenSCAP command line tool (oscap) 1.3.5
    Copyright 2009--2021 Red Hat Inc., Durham, North Carolina.

    ==== Supported specifications ====
    XCCDF Version: 1.2
    OVAL Version: 5.11.2
    CPE Version: 2.3

    ==== Capabilities added by auto-loaded plugins ====
    SCE Version: 1.0 (from libopenscap_sce.so.25)

Feature flags are derived from the version; specification versions are read
from the listing.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from scapwb.engine.artifacts import WorkingDirectory
from scapwb.engine.exceptions import ProbeFailure
from scapwb.engine.process import ProcessResult, run_sync
from scapwb.logging import get_logger

logger = get_logger(__name__)

SyncRunner = Callable[[str, list[str], Optional[float], Optional[Path]], ProcessResult]

CAPABILITY_QUERY_ARG = "-V"

_VERSION_RE = re.compile(r"^\d+(\.\d+)+$")
_SPEC_LINE_RE = re.compile(r"^(?P<name>[A-Za-z ]+?) Version:\s*(?P<version>\S+)")

# (flag, minimal oscap version)
_FEATURE_THRESHOLDS = (
    ("baseline_support", (1, 0, 0)),
    ("source_datastreams", (1, 0, 0)),
    ("online_remediation", (1, 0, 0)),
    ("arf_input", (1, 0, 8)),
    ("tailoring_support", (1, 0, 8)),
    ("progress_reporting", (1, 0, 8)),
)

_SPEC_FIELDS = {
    "XCCDF": "xccdf_version",
    "OVAL": "oval_version",
    "CPE": "cpe_version",
    "SCE": "sce_version",
}


def parse_version(version: str) -> tuple[int, ...]:
    """Turn ``"1.3.5"`` into ``(1, 3, 5)``; unparsable input gives ``()``."""
    if not _VERSION_RE.match(version):
        return ()
    return tuple(int(part) for part in version.split("."))


@dataclass
class Capabilities:
    """What the installed oscap supports."""

    version: str = ""
    baseline_support: bool = False
    progress_reporting: bool = False
    online_remediation: bool = False
    source_datastreams: bool = False
    arf_input: bool = False
    tailoring_support: bool = False
    sce_support: bool = False
    xccdf_version: str = ""
    oval_version: str = ""
    cpe_version: str = ""
    sce_version: str = ""

    @classmethod
    def parse(cls, output: str) -> "Capabilities":
        """
        Parse ``oscap -V`` output.

        Never raises. Output whose first line does not end in a dotted
        version yields an empty descriptor (no version, every flag off).
        """
        capabilities = cls()
        lines = output.splitlines()
        if not lines or not lines[0].split():
            return capabilities

        candidate = lines[0].split()[-1]
        version = parse_version(candidate)
        if not version:
            logger.warning("capabilities_unparsable_version", first_line=lines[0][:200])
            return capabilities

        capabilities.version = candidate
        for flag, minimum in _FEATURE_THRESHOLDS:
            setattr(capabilities, flag, version >= minimum)

        for line in lines[1:]:
            match = _SPEC_LINE_RE.match(line.strip())
            if not match:
                continue
            field_name = _SPEC_FIELDS.get(match.group("name").strip())
            if field_name:
                setattr(capabilities, field_name, match.group("version"))

        capabilities.sce_support = bool(capabilities.sce_version)
        return capabilities


class CapabilityProber:
    """
    Runs ``oscap -V`` and parses the answer.

    Attributes:
        oscap_path: oscap binary to query (never the pkexec wrapper).
        timeout: Seconds before the query is abandoned.
    """

    def __init__(
        self,
        oscap_path: str,
        timeout: float = 30,
        runner: SyncRunner = run_sync,
    ) -> None:
        self.oscap_path = oscap_path
        self.timeout = timeout
        self._runner = runner

    def probe(self) -> Capabilities:
        """
        Query the capabilities of the local oscap.

        Raises:
            ProbeFailure: If the query exits non-zero, cannot be launched or
                times out. The diagnostic text is never empty.
        """
        with WorkingDirectory() as workdir:
            result = self._runner(
                self.oscap_path, [CAPABILITY_QUERY_ARG], self.timeout, workdir.path
            )

        if result.exit_code != 0:
            diagnostic = result.diagnostic_info
            logger.error(
                "capability_probe_failed",
                oscap_path=self.oscap_path,
                exit_code=result.exit_code,
            )
            raise ProbeFailure(
                "Failed to query capabilities of oscap on local machine.\n"
                f"Diagnostic info:\n{diagnostic}",
                diagnostic=diagnostic,
                exit_code=result.exit_code,
            )

        capabilities = Capabilities.parse(result.stdout)
        logger.info(
            "capability_probe_completed",
            version=capabilities.version or None,
            progress_reporting=capabilities.progress_reporting,
            arf_input=capabilities.arf_input,
        )
        return capabilities
