"""
Integration tests for the scan CLI commands.

Runs ``scapwb scan`` against a fake oscap configured through a settings
file and checks exit codes and the written artifacts.
"""

from pathlib import Path
from typing import Callable

import pytest
from typer.testing import CliRunner

from scapwb.cli.main import app

pytestmark = pytest.mark.integration

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)


class TestScanEval:
    """Tests for 'scapwb scan eval'."""

    def test_eval_writes_artifacts(
        self, document: Path, fake_oscap: Callable, settings_file: Callable, tmp_path: Path
    ) -> None:
        output_dir = tmp_path / "results"
        config = settings_file(fake_oscap(progress="xccdf_rule_a:pass\n"), output_dir)

        result = runner.invoke(
            app,
            ["--config", str(config), "scan", "eval", str(document), "--profile", "standard"],
        )

        assert result.exit_code == 0, result.output
        assert (output_dir / "xccdf-results.xml").read_bytes() == b"RESULT-DOCUMENT"
        assert (output_dir / "report.html").read_bytes() == b"REPORT-DOCUMENT"
        assert (output_dir / "arf.xml").read_bytes() == b"ARF-DOCUMENT"
        assert "xccdf_rule_a" in result.stdout
        assert "Scan Summary" in result.stdout

    def test_eval_explicit_outputs(
        self, document: Path, fake_oscap: Callable, settings_file: Callable, tmp_path: Path
    ) -> None:
        config = settings_file(fake_oscap(), tmp_path / "unused")
        report = tmp_path / "custom" / "cis.html"

        result = runner.invoke(
            app,
            ["--config", str(config), "scan", "eval", str(document), "--report", str(report)],
        )

        assert result.exit_code == 0, result.output
        assert report.read_bytes() == b"REPORT-DOCUMENT"

    def test_eval_tool_error_exits_1(
        self, document: Path, fake_oscap: Callable, settings_file: Callable, tmp_path: Path
    ) -> None:
        output_dir = tmp_path / "results"
        config = settings_file(fake_oscap(exit_code=1), output_dir)

        result = runner.invoke(app, ["--config", str(config), "scan", "eval", str(document)])

        assert result.exit_code == 1
        assert "EXEC_001" in result.stdout
        assert not output_dir.exists()

    def test_eval_with_remediation_role(
        self, document: Path, fake_oscap: Callable, settings_file: Callable, tmp_path: Path
    ) -> None:
        config = settings_file(fake_oscap(), tmp_path / "results")
        role = tmp_path / "fix.yml"

        result = runner.invoke(
            app,
            [
                "--config",
                str(config),
                "scan",
                "eval",
                str(document),
                "--profile",
                "standard",
                "--fix-type",
                "ansible",
                "--role-output",
                str(role),
            ],
        )

        assert result.exit_code == 0, result.output
        assert role.read_bytes() == b"REMEDIATION-ROLE"

    def test_role_without_profile_fails(
        self, document: Path, fake_oscap: Callable, settings_file: Callable, tmp_path: Path
    ) -> None:
        config = settings_file(fake_oscap(), tmp_path / "results")
        role = tmp_path / "fix.sh"

        result = runner.invoke(
            app,
            [
                "--config",
                str(config),
                "scan",
                "eval",
                str(document),
                "--fix-type",
                "bash",
                "--role-output",
                str(role),
            ],
        )

        assert result.exit_code == 1
        assert "PRECOND_001" in result.stdout
        assert not role.exists()


class TestScanRemediate:
    """Tests for 'scapwb scan remediate'."""

    def test_remediate(
        self, fake_oscap: Callable, settings_file: Callable, tmp_path: Path
    ) -> None:
        arf_input = tmp_path / "previous-arf.xml"
        arf_input.write_text("<arf:asset-report-collection/>")
        output_dir = tmp_path / "results"
        config = settings_file(fake_oscap(), output_dir)

        result = runner.invoke(app, ["--config", str(config), "scan", "remediate", str(arf_input)])

        assert result.exit_code == 0, result.output
        assert (output_dir / "arf.xml").read_bytes() == b"ARF-DOCUMENT"


class TestScanCapabilities:
    """Tests for 'scapwb scan capabilities'."""

    def test_capabilities(
        self, fake_oscap: Callable, settings_file: Callable, tmp_path: Path
    ) -> None:
        config = settings_file(fake_oscap(version="1.0.5"), tmp_path / "results")

        result = runner.invoke(app, ["--config", str(config), "scan", "capabilities"])

        assert result.exit_code == 0, result.output
        assert "1.0.5" in result.stdout
        assert "ARF input" in result.stdout

    def test_capabilities_probe_failure(
        self, fake_oscap: Callable, settings_file: Callable, tmp_path: Path
    ) -> None:
        config = settings_file(fake_oscap(probe_exit=1), tmp_path / "results")

        result = runner.invoke(app, ["--config", str(config), "scan", "capabilities"])

        assert result.exit_code == 1
        assert "PROBE_001" in result.stdout
