"""
scapwb logging infrastructure.

Structured logging for the scan supervisor, rendered for humans on a
terminal and as JSON lines when the scanner runs unattended.
"""

from scapwb.logging.setup import (
    bind_scan_context,
    get_logger,
    log_error,
    log_execution_context,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "log_error",
    "log_execution_context",
    "bind_scan_context",
]
