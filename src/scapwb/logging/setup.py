"""
Logging setup and configuration for scapwb.

This module configures structured logging using structlog on top of the
standard library, with a console renderer for interactive use and a JSON
renderer for unattended scans.
"""

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, Generator, Optional

import structlog

# Session ID for correlating logs within a single execution
_session_id: Optional[str] = None

_logging_configured = False


def get_session_id() -> str:
    """Get or create a session ID for the current execution."""
    global _session_id
    if _session_id is None:
        _session_id = str(uuid.uuid4())[:8]
    return _session_id


def setup_logging(
    level: str = "INFO",
    format_type: str = "console",
    output: str = "stderr",
) -> None:
    """
    Configure logging for scapwb.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Output format ("json" or "console")
        output: Output destination ("stdout", "stderr", or file path)
    """
    global _logging_configured

    log_level = getattr(logging, level.upper(), logging.INFO)

    if output == "stdout":
        stream = sys.stdout
    elif output == "stderr":
        stream = sys.stderr
    else:
        stream = open(output, "a", encoding="utf-8")  # noqa: SIM115

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=stream.isatty() if hasattr(stream, "isatty") else False,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=log_level,
        force=True,
    )

    _logging_configured = True

    logger = get_logger(__name__)
    logger.debug(
        "logging_initialized",
        level=level,
        format=format_type,
        output=output,
        session_id=get_session_id(),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger with session context
    """
    if not _logging_configured:
        setup_logging()

    logger = structlog.get_logger(name)
    return logger.bind(session_id=get_session_id())


def log_error(
    error: Exception,
    context: Optional[dict] = None,
    command: Optional[str] = None,
) -> None:
    """
    Log an error with full context.

    Args:
        error: Exception that occurred
        context: Additional context information
        command: Command during which error occurred
    """
    logger = get_logger("scapwb.error")

    logger.error(
        "error_occurred",
        error_type=type(error).__name__,
        error_message=str(error),
        command=command,
        context=context,
        timestamp=datetime.now(tz=UTC).isoformat(),
        exc_info=error,
    )


@contextmanager
def bind_scan_context(**values: Any) -> Generator[None, None, None]:
    """Bind values (scan_id, mode, ...) to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield


@contextmanager
def log_execution_context(
    command: str,
    config: Optional[dict] = None,
) -> Generator[None, None, None]:
    """
    Context manager for logging command execution with timing.

    Usage:
        with log_execution_context("scapwb scan eval"):
            ...

    Args:
        command: Command being executed
        config: Scanner settings in effect, logged as given
    """
    logger = get_logger("scapwb.execution")
    start_time = time.perf_counter()
    status = "success"
    error_result: Optional[dict[str, Any]] = None

    logger.info(
        "execution_started",
        command=command,
        config=config,
        timestamp=datetime.now(tz=UTC).isoformat(),
    )

    try:
        yield
    except Exception as e:
        status = "error"
        error_result = {
            "error_type": type(e).__name__,
            "error_message": str(e),
        }
        log_error(e, command=command)
        raise
    finally:
        logger.info(
            "execution_completed",
            command=command,
            status=status,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            result=error_result,
        )
