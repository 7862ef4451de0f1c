"""
Unit tests for elevated program resolution.
"""

import pytest

from scapwb.config.models import ScannerConfig
from scapwb.engine.invocation import InvocationResolver


@pytest.fixture(autouse=True)
def no_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SCAP_WORKBENCH_PKEXEC_OSCAP_PATH", raising=False)


class TestInvocationResolver:
    """Tests for InvocationResolver."""

    def test_defaults_use_nice(self) -> None:
        resolver = InvocationResolver(ScannerConfig())
        args = ["xccdf", "eval", "doc.xml"]

        program = resolver.resolve_program(args)

        assert program == "/usr/bin/nice"
        assert args == [
            "-n",
            "10",
            "/usr/libexec/scap-workbench-pkexec-oscap.sh",
            "xccdf",
            "eval",
            "doc.xml",
        ]

    def test_without_nice(self) -> None:
        resolver = InvocationResolver(ScannerConfig(nice_path=None))
        args = ["xccdf", "eval", "doc.xml"]

        program = resolver.resolve_program(args)

        assert program == "/usr/libexec/scap-workbench-pkexec-oscap.sh"
        assert args == ["xccdf", "eval", "doc.xml"]

    def test_empty_nice_path_disables_nice(self) -> None:
        resolver = InvocationResolver(ScannerConfig(nice_path="  "))

        assert resolver.resolve_program([]) == "/usr/libexec/scap-workbench-pkexec-oscap.sh"

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCAP_WORKBENCH_PKEXEC_OSCAP_PATH", "/opt/scap/pkexec-oscap")
        resolver = InvocationResolver(ScannerConfig(nice_path=None))

        assert resolver.pkexec_oscap_path() == "/opt/scap/pkexec-oscap"
        assert resolver.resolve_program([]) == "/opt/scap/pkexec-oscap"

    def test_empty_environment_override_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCAP_WORKBENCH_PKEXEC_OSCAP_PATH", "")
        resolver = InvocationResolver(ScannerConfig())

        assert resolver.pkexec_oscap_path() == "/usr/libexec/scap-workbench-pkexec-oscap.sh"

    def test_custom_override_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_PKEXEC", "/custom/wrapper")
        resolver = InvocationResolver(ScannerConfig(pkexec_path_env="MY_PKEXEC", niceness=-5))
        args = ["-V"]

        resolver.resolve_program(args)

        assert args == ["-n", "-5", "/custom/wrapper", "-V"]
