"""
Unit tests for oscap argument construction.
"""

import pytest

from scapwb.engine.arguments import (
    build_evaluation_args,
    build_generate_fix_args,
    build_offline_remediation_args,
)
from scapwb.engine.capabilities import Capabilities
from scapwb.engine.session import ScanningSession
from tests.fixtures import get_sample_capabilities

OUTPUTS = ("/out/results.xml", "/out/report.html", "/out/arf.xml")


@pytest.fixture
def capabilities() -> Capabilities:
    return get_sample_capabilities()


class TestEvaluationArgs:
    """Tests for build_evaluation_args."""

    def test_full_session(self, capabilities: Capabilities) -> None:
        session = ScanningSession(
            opened_file_path="/content/ssg-ds.xml",
            tailoring_file_path="/content/tailoring.xml",
            profile="xccdf_org.ssgproject.content_profile_cis",
            datastream_id="scap_org.open-scap_datastream_from_xccdf_ssg.xml",
            xccdf_id="scap_org.open-scap_cref_ssg-xccdf.xml",
            skip_validation=True,
            fetch_remote_resources=True,
        )

        args = build_evaluation_args(
            session, capabilities, "/content/ssg-ds.xml", "/content/tailoring.xml", *OUTPUTS, True
        )

        assert args == [
            "xccdf",
            "eval",
            "--skip-valid",
            "--fetch-remote-resources",
            "--tailoring-file",
            "/content/tailoring.xml",
            "--datastream-id",
            "scap_org.open-scap_datastream_from_xccdf_ssg.xml",
            "--xccdf-id",
            "scap_org.open-scap_cref_ssg-xccdf.xml",
            "--profile",
            "xccdf_org.ssgproject.content_profile_cis",
            "--results",
            "/out/results.xml",
            "--results-arf",
            "/out/arf.xml",
            "--report",
            "/out/report.html",
            "--progress",
            "--remediate",
            "/content/ssg-ds.xml",
        ]

    def test_minimal_session(self, capabilities: Capabilities) -> None:
        session = ScanningSession(opened_file_path="/content/xccdf.xml")

        args = build_evaluation_args(
            session, capabilities, "/content/xccdf.xml", None, *OUTPUTS, False
        )

        assert "--profile" not in args
        assert "--tailoring-file" not in args
        assert "--remediate" not in args
        assert args[-1] == "/content/xccdf.xml"

    def test_progress_depends_on_capabilities(self) -> None:
        session = ScanningSession(opened_file_path="/content/xccdf.xml")
        old = get_sample_capabilities("1.0.5")

        without = build_evaluation_args(session, old, "/content/xccdf.xml", None, *OUTPUTS, False)
        ignored = build_evaluation_args(
            session, None, "/content/xccdf.xml", None, *OUTPUTS, False, ignore_capabilities=True
        )

        assert "--progress" not in without
        assert "--progress" in ignored


class TestOfflineRemediationArgs:
    """Tests for build_offline_remediation_args."""

    def test_args(self, capabilities: Capabilities) -> None:
        session = ScanningSession(skip_validation=True)

        args = build_offline_remediation_args(session, capabilities, "/tmp/in-arf.xml", *OUTPUTS)

        assert args == [
            "xccdf",
            "remediate",
            "--skip-valid",
            "--results",
            "/out/results.xml",
            "--results-arf",
            "/out/arf.xml",
            "--report",
            "/out/report.html",
            "--progress",
            "/tmp/in-arf.xml",
        ]


class TestGenerateFixArgs:
    """Tests for build_generate_fix_args."""

    def test_args(self) -> None:
        args = build_generate_fix_args("ansible", "/tmp/role.yml", "xccdf_profile", "/tmp/arf.xml")

        assert args == [
            "xccdf",
            "generate",
            "fix",
            "--fix-type",
            "ansible",
            "--output",
            "/tmp/role.yml",
            "--result-id",
            "xccdf_profile",
            "/tmp/arf.xml",
        ]
