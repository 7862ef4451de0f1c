"""
Process primitives used to drive the oscap executable.

Two flavours are provided:

- ``run_sync``: run to completion, capture stdout/stderr and the exit code.
  Used for short queries such as ``oscap -V``.
- ``ScanProcess``: spawn, poll with a bounded wait, drain new output between
  polls, kill. Used for the scan itself and for remediation role generation.

``ScanProcess`` reads both pipes on daemon threads into queues, so draining
never blocks and every chunk is handed out exactly once, in order.
"""

import codecs
import queue
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Optional, Union

from scapwb.logging import get_logger

logger = get_logger(__name__)

# Conventional shell exit codes used when the process never produced one
EXIT_TIMEOUT = 124
EXIT_NOT_LAUNCHED = 127

_READ_CHUNK = 4096
_READER_JOIN_TIMEOUT = 5.0


@dataclass
class ProcessResult:
    """Outcome of a synchronous run."""

    program: str
    args: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def diagnostic_info(self) -> str:
        """Human-readable summary of the run for error messages."""
        return (
            f"Command: {' '.join([self.program, *self.args])}\n"
            f"Exit code: {self.exit_code}\n"
            f"stdout:\n{self.stdout.strip() or '(empty)'}\n"
            f"stderr:\n{self.stderr.strip() or '(empty)'}"
        )


def _decode(data: Union[bytes, str, None]) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def run_sync(
    program: str,
    args: list[str],
    timeout: Optional[float] = None,
    cwd: Optional[Path] = None,
) -> ProcessResult:
    """
    Run a program to completion.

    Launch errors and timeouts do not raise; they are reported through the
    exit code (127 and 124) with the reason appended to stderr.

    Args:
        program: Executable to run.
        args: Arguments, not including the program.
        timeout: Seconds to wait before killing the process.
        cwd: Working directory for the process.

    Returns:
        ProcessResult with captured output.
    """
    logger.debug("sync_process_starting", program=program, args=args, timeout=timeout)

    try:
        completed = subprocess.run(
            [program, *args],
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
        )
    except subprocess.TimeoutExpired as e:
        logger.warning("sync_process_timeout", program=program, timeout=timeout)
        return ProcessResult(
            program=program,
            args=list(args),
            exit_code=EXIT_TIMEOUT,
            stdout=_decode(e.stdout),
            stderr=_decode(e.stderr) + f"\nProcess timed out after {timeout}s",
        )
    except OSError as e:
        logger.warning("sync_process_launch_failed", program=program, error=str(e))
        return ProcessResult(
            program=program,
            args=list(args),
            exit_code=EXIT_NOT_LAUNCHED,
            stderr=f"Failed to launch '{program}': {e}",
        )

    return ProcessResult(
        program=program,
        args=list(args),
        exit_code=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )


class ScanProcess:
    """
    Asynchronously supervised external process.

    Example:
        >>> process = ScanProcess("/usr/bin/nice", ["-n", "10", "oscap", "-V"], cwd=workdir)
        >>> process.start()
        >>> if process.wait_for_started():
        ...     while not process.wait_for_finished(100):
        ...         handle(process.read_stdout())
    """

    def __init__(self, program: str, args: list[str], cwd: Optional[Path] = None) -> None:
        self.program = program
        self.args = list(args)
        self.cwd = cwd
        self.start_error: Optional[OSError] = None
        self._popen: Optional[subprocess.Popen] = None
        self._stdout: "queue.SimpleQueue[str]" = queue.SimpleQueue()
        self._stderr: "queue.SimpleQueue[str]" = queue.SimpleQueue()
        self._readers: list[threading.Thread] = []

    def start(self) -> None:
        """Spawn the process. A launch error is recorded, not raised."""
        try:
            self._popen = subprocess.Popen(
                [self.program, *self.args],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self.cwd,
            )
        except OSError as e:
            self.start_error = e
            logger.warning("process_launch_failed", program=self.program, error=str(e))
            return

        for name, stream, sink in (
            ("stdout", self._popen.stdout, self._stdout),
            ("stderr", self._popen.stderr, self._stderr),
        ):
            reader = threading.Thread(
                target=_pump_stream,
                args=(stream, sink),
                name=f"scapwb-{name}-{self._popen.pid}",
                daemon=True,
            )
            reader.start()
            self._readers.append(reader)

        logger.debug("process_started", program=self.program, pid=self._popen.pid)

    def wait_for_started(self) -> bool:
        """Return True if the process has been spawned."""
        # Popen returns only after exec succeeded, so there is nothing to wait for.
        return self._popen is not None

    def is_running(self) -> bool:
        return self._popen is not None and self._popen.poll() is None

    def wait_for_finished(self, timeout_ms: int) -> bool:
        """
        Wait up to ``timeout_ms`` for the process to exit.

        Returns True when the process has exited (or never started). Once it
        has exited, both pipes have been read to EOF, so a following drain
        returns everything the process wrote.
        """
        if self._popen is None:
            return True
        try:
            self._popen.wait(timeout=timeout_ms / 1000)
        except subprocess.TimeoutExpired:
            return False

        for reader in self._readers:
            reader.join(_READER_JOIN_TIMEOUT)
        return True

    def read_stdout(self) -> str:
        """Return stdout written since the previous call."""
        return _drain(self._stdout)

    def read_stderr(self) -> str:
        """Return stderr written since the previous call."""
        return _drain(self._stderr)

    def kill(self) -> None:
        """
        Send SIGKILL. A failed signal is logged and otherwise ignored.

        An oscap elevated through pkexec runs as root, so the kill can be
        refused with EPERM; the caller keeps polling until it exits.
        """
        if self._popen is None or self._popen.poll() is not None:
            return
        logger.info("process_kill", program=self.program, pid=self._popen.pid)
        try:
            self._popen.kill()
        except OSError as e:
            logger.warning(
                "process_kill_failed",
                program=self.program,
                pid=self._popen.pid,
                error=str(e),
            )

    @property
    def exit_code(self) -> Optional[int]:
        """Exit code, or None while running or if the process never started."""
        if self._popen is None:
            return None
        return self._popen.poll()


def _pump_stream(stream: IO[bytes], sink: "queue.SimpleQueue[str]") -> None:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    with stream:
        while True:
            chunk = stream.read1(_READ_CHUNK)
            if not chunk:
                break
            text = decoder.decode(chunk)
            if text:
                sink.put(text)
    tail = decoder.decode(b"", final=True)
    if tail:
        sink.put(tail)


def _drain(source: "queue.SimpleQueue[str]") -> str:
    parts = []
    while True:
        try:
            parts.append(source.get_nowait())
        except queue.Empty:
            break
    return "".join(parts)
