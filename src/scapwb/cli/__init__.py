"""
scapwb Command Line Interface.

This package provides the CLI commands for running and previewing local
SCAP scans.
"""

from scapwb.cli.main import app

__all__ = ["app"]
