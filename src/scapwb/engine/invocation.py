"""
Resolution of the program that actually runs oscap.

Scans run through a privilege-elevation wrapper (pkexec), optionally under
``nice`` so a long scan does not starve the desktop.
"""

import os

from scapwb.config.models import ScannerConfig
from scapwb.logging import get_logger

logger = get_logger(__name__)

NICENESS_FLAG = "-n"


class InvocationResolver:
    """Picks the program and argument prefix for an elevated oscap run."""

    def __init__(self, config: ScannerConfig) -> None:
        self.config = config

    def pkexec_oscap_path(self) -> str:
        """Wrapper path; the environment override wins when set and non-empty."""
        override = os.environ.get(self.config.pkexec_path_env, "")
        if override:
            return override
        return self.config.pkexec_oscap_path

    def resolve_program(self, args: list[str]) -> str:
        """
        Return the program to execute, prefixing ``args`` in place if needed.

        Must be called once, after every other argument has been added.
        """
        elevated = self.pkexec_oscap_path()

        if self.config.nice_path:
            args[:0] = [NICENESS_FLAG, str(self.config.niceness), elevated]
            program = self.config.nice_path
        else:
            program = elevated

        logger.debug("oscap_program_resolved", program=program, niceness_wrapper=bool(self.config.nice_path))
        return program
