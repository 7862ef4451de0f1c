"""
LocalScanner - supervision of a local oscap scan.

This module provides the LocalScanner class, which runs one scan at a time
through the local oscap executable:

1. Query oscap capabilities (``oscap -V``)
2. Check that the capabilities and inputs allow the requested mode
3. Build the argument vector and resolve the elevated program
4. Spawn oscap and poll it, draining output and honouring cancellation
5. Read back the result, report and ARF files

After a scan, ``create_remediation_role`` runs ``oscap xccdf generate fix``
against the collected ARF bundle.

Every run ends with exactly one ``Completion`` event whose ``cancelled``
flag is the disposition of the run: a run that failed in any way is
reported as cancelled.
"""

import contextlib
import threading
import uuid
from enum import Enum
from pathlib import Path
from typing import Callable, ContextManager, Optional, Union

from scapwb.config.models import ScannerConfig
from scapwb.engine.arguments import (
    PROGRESS_FLAG,
    build_evaluation_args,
    build_generate_fix_args,
    build_offline_remediation_args,
)
from scapwb.engine.artifacts import (
    ARTIFACT_NAMES,
    MaterializedFile,
    TemporaryArtifactSet,
    WorkingDirectory,
)
from scapwb.engine.capabilities import Capabilities, CapabilityProber
from scapwb.engine.exceptions import (
    ArtifactReadError,
    LaunchFailure,
    PreconditionFailure,
    PrerequisiteFailure,
    ProbeFailure,
    ScannerBusyError,
    ScannerError,
    ToolReportedError,
)
from scapwb.engine.invocation import InvocationResolver
from scapwb.engine.notices import Completion, NoticeBus, Subscriber
from scapwb.engine.process import ScanProcess
from scapwb.engine.session import ScanningSession
from scapwb.logging import bind_scan_context, get_logger, log_error

ProcessFactory = Callable[[str, list[str], Path], ScanProcess]
EventPump = Callable[[], None]

# oscap reports its own failures with this exit code. Other non-zero codes
# (2 means "some rules failed") still produce complete results.
TOOL_ERROR_EXIT_CODE = 1

PREVIEW_RESULT_PATH = "/tmp/xccdf-results.xml"
PREVIEW_REPORT_PATH = "/tmp/report.html"
PREVIEW_ARF_PATH = "/tmp/arf.xml"
PREVIEW_INPUT_ARF_PATH = "/tmp/arf-input.xml"

_RULE_RESULTS = {
    "pass",
    "fail",
    "error",
    "unknown",
    "notapplicable",
    "notchecked",
    "notselected",
    "informational",
    "fixed",
}


class ScannerMode(str, Enum):
    """What a run does."""

    SCAN = "scan"
    SCAN_ONLINE_REMEDIATION = "scan_online_remediation"
    OFFLINE_REMEDIATION = "offline_remediation"


class ScanState(str, Enum):
    """States of a scan run."""

    IDLE = "idle"
    PROBING_CAPABILITIES = "probing_capabilities"
    CHECKING_PREREQUISITES = "checking_prerequisites"
    LAUNCHING = "launching"
    RUNNING = "running"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class LocalScanner:
    """
    Runs oscap locally and collects its artifacts.

    The scanner owns a TemporaryArtifactSet for its whole lifetime; close it
    (or use it as a context manager) to remove the files.

    Attributes:
        session: Content selection being scanned.
        config: oscap invocation settings.
        mode: Scanner mode for the next run.
        dry_run: When True, evaluate() completes without spawning anything.
        notices: Event bus for notices and completion.
        capabilities: Capabilities found by the last probe.
        state: Current ScanState.
        cancelled: Disposition of the last finished run.
        last_error: Error that ended the last run or role generation, if any.
        results: XCCDF results of the last successful run.
        report: HTML report of the last successful run.
        arf: ARF bundle of the last successful run.
        stdout: oscap stdout accumulated during the last run.
        stderr: oscap stderr accumulated during the last run.

    Example:
        >>> session = ScanningSession(opened_file_path="ssg-rhel9-ds.xml", profile="xccdf_..._cis")
        >>> with LocalScanner(session, ScannerConfig()) as scanner:
        ...     scanner.subscribe(print)
        ...     if scanner.evaluate():
        ...         Path("report.html").write_bytes(scanner.report)
    """

    def __init__(
        self,
        session: ScanningSession,
        config: Optional[ScannerConfig] = None,
        mode: ScannerMode = ScannerMode.SCAN,
        dry_run: bool = False,
        event_pump: Optional[EventPump] = None,
        prober: Optional[CapabilityProber] = None,
        process_factory: ProcessFactory = ScanProcess,
    ) -> None:
        self.session = session
        self.config = config or ScannerConfig()
        self.mode = mode
        self.dry_run = dry_run
        self.event_pump = event_pump
        self.notices = NoticeBus()
        self.logger = get_logger(__name__)

        self.resolver = InvocationResolver(self.config)
        self.prober = prober or CapabilityProber(
            self.config.oscap_path, timeout=self.config.probe_timeout
        )
        self._process_factory = process_factory
        self.artifacts = TemporaryArtifactSet()

        self._cancel_requested = threading.Event()
        self._busy = threading.Lock()
        self._arf_for_remediation = b""
        self._progress_tail = ""

        self.capabilities: Optional[Capabilities] = None
        self.state = ScanState.IDLE
        self.cancelled = False
        self.last_error: Optional[ScannerError] = None
        self.results = b""
        self.report = b""
        self.arf = b""
        self.stdout = ""
        self.stderr = ""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register for notices and completion events."""
        return self.notices.subscribe(subscriber)

    def set_arf_for_remediation(self, data: bytes) -> None:
        """ARF bundle used as input by OFFLINE_REMEDIATION runs."""
        self._arf_for_remediation = bytes(data)

    def get_arf_for_remediation(self) -> bytes:
        return self._arf_for_remediation

    def cancel(self) -> None:
        """
        Request cancellation of the current run.

        Safe to call from any thread or a signal handler. The request is
        observed at the next poll tick; a request made while no run is
        active applies to the next run.
        """
        self._cancel_requested.set()
        self.logger.info("scan_cancel_requested", state=self.state.value)

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested.is_set()

    def evaluate(self) -> bool:
        """
        Run one scan.

        Returns:
            True when the run completed and the artifacts were collected,
            False when it was cancelled or failed. The same disposition is
            published as the run's single Completion event.

        Raises:
            ScannerBusyError: If a run is already active on this scanner.
            PreconditionFailure: If the scanner has been closed.
        """
        if self.artifacts.closed:
            raise PreconditionFailure(
                "This scanner has been closed and its temporary files removed. "
                "Create a new scanner to run another scan."
            )
        if not self._busy.acquire(blocking=False):
            raise ScannerBusyError("A scan is already running on this scanner.")

        try:
            with bind_scan_context(scan_id=str(uuid.uuid4())[:8], mode=self.mode.value):
                self._reset_run()
                self.logger.info(
                    "scan_started",
                    document=self.session.opened_file_path,
                    profile=self.session.profile or None,
                    dry_run=self.dry_run,
                )

                if self.dry_run:
                    return self._finish(ScanState.COMPLETED)

                try:
                    state = self._run()
                except ProbeFailure as e:
                    state = self._fail(e, ScanState.FAILED)
                except PrerequisiteFailure as e:
                    state = self._fail(e, ScanState.CANCELLED)
                except (LaunchFailure, ToolReportedError, ArtifactReadError) as e:
                    state = self._fail(e, ScanState.FAILED)
                except Exception as e:
                    log_error(e, context={"state": self.state.value}, command="evaluate")
                    error = ScannerError(
                        f"Unexpected error while scanning: {e}",
                        context={"error_type": type(e).__name__},
                    )
                    error.__cause__ = e
                    state = self._fail(error, ScanState.FAILED)

                return self._finish(state)
        finally:
            self._busy.release()

    def check_prerequisites(self) -> None:
        """
        Verify the probed capabilities and the inputs of the current mode.

        Raises:
            PrerequisiteFailure: Naming the first unmet requirement.
        """
        capabilities = self.capabilities or Capabilities()

        if not capabilities.baseline_support:
            raise PrerequisiteFailure(
                "The local oscap tool doesn't support basic features required for scanning. "
                "Please upgrade openscap-scanner.",
                missing="baseline_support",
                context={"oscap_version": capabilities.version or "unknown"},
            )

        if self.mode == ScannerMode.OFFLINE_REMEDIATION:
            if not capabilities.arf_input:
                raise PrerequisiteFailure(
                    "The local oscap tool doesn't support taking ARF as input. "
                    "Offline remediation requires openscap-scanner 1.0.8 or newer.",
                    missing="arf_input",
                )
            if not self._arf_for_remediation:
                raise PrerequisiteFailure(
                    "No ARF results were supplied for offline remediation.",
                    missing="arf_for_remediation",
                )
            return

        if self.mode == ScannerMode.SCAN_ONLINE_REMEDIATION and not capabilities.online_remediation:
            raise PrerequisiteFailure(
                "The local oscap tool doesn't support online remediation.",
                missing="online_remediation",
            )

        document = self.session.opened_file_path
        if not document or not Path(document).exists():
            raise PrerequisiteFailure(
                f"Content file '{document}' does not exist.",
                missing="content_file",
            )

        if self.session.has_tailoring():
            if not capabilities.tailoring_support:
                raise PrerequisiteFailure(
                    "The local oscap tool doesn't support tailoring files.",
                    missing="tailoring_support",
                )
            if not Path(self.session.tailoring_file_path).exists():
                raise PrerequisiteFailure(
                    f"Tailoring file '{self.session.tailoring_file_path}' does not exist.",
                    missing="tailoring_file",
                )

    def get_command_line_args(self) -> list[str]:
        """
        Command line a run would use, for display only.

        Outputs point at fixed placeholder paths, capabilities are not
        consulted and ``--progress`` is left out.
        """
        args = ["oscap"]

        if self.mode == ScannerMode.OFFLINE_REMEDIATION:
            args += build_offline_remediation_args(
                self.session,
                self.capabilities,
                PREVIEW_INPUT_ARF_PATH,
                PREVIEW_RESULT_PATH,
                PREVIEW_REPORT_PATH,
                PREVIEW_ARF_PATH,
                ignore_capabilities=True,
            )
        else:
            args += build_evaluation_args(
                self.session,
                self.capabilities,
                self.session.opened_file_path,
                self.session.get_user_tailoring_file_path(),
                PREVIEW_RESULT_PATH,
                PREVIEW_REPORT_PATH,
                PREVIEW_ARF_PATH,
                self.mode == ScannerMode.SCAN_ONLINE_REMEDIATION,
                ignore_capabilities=True,
            )

        if PROGRESS_FLAG in args:
            args.remove(PROGRESS_FLAG)
        return args

    def create_remediation_role(self, fix_type: str, role_file: Union[str, Path]) -> bool:
        """
        Generate a remediation role from the ARF bundle of the last scan.

        Blocks until oscap exits; this invocation cannot be cancelled.
        Failures are reported as error notices.

        Args:
            fix_type: oscap fix type (bash, ansible, puppet, ...).
            role_file: Destination of the generated role.

        Returns:
            True if oscap generated the role.

        Raises:
            ScannerBusyError: If a scan is running on this scanner.
        """
        if not self._busy.acquire(blocking=False):
            raise ScannerBusyError("Cannot generate a remediation role while a scan is running.")

        role_path = Path(role_file)
        try:
            self.last_error = None
            self._generate_role(fix_type, role_path)
        except ScannerError as e:
            self.last_error = e
            self.logger.error(
                "remediation_role_failed",
                error_code=e.error_code,
                fix_type=fix_type,
                role_file=str(role_path),
            )
            self.notices.error(e.message)
            return False
        finally:
            self._busy.release()

        self.logger.info("remediation_role_generated", fix_type=fix_type, role_file=str(role_path))
        return True

    def close(self) -> None:
        """Remove the temporary artifacts."""
        self.artifacts.close()

    def __enter__(self) -> "LocalScanner":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    # ------------------------------------------------------------------
    # Scan state machine
    # ------------------------------------------------------------------

    def _run(self) -> ScanState:
        self._set_state(ScanState.PROBING_CAPABILITIES)
        self.notices.info("Querying capabilities...")
        self.capabilities = self.prober.probe()

        self._set_state(ScanState.CHECKING_PREREQUISITES)
        self.check_prerequisites()

        self._set_state(ScanState.LAUNCHING)
        self.notices.info("Starting the oscap process...")
        # Created by us so an elevated oscap never owns them
        self.artifacts.reset()

        with WorkingDirectory() as workdir, self._input_arf() as input_arf:
            args = self._build_scan_args(input_arf)
            program = self.resolver.resolve_program(args)
            process = self._start_process(
                program,
                args,
                workdir.path,
                f"Failed to start local scanning process '{program}'. "
                "Perhaps the executable was not found?",
            )

            self._set_state(ScanState.RUNNING)
            try:
                self._supervise(process)
            except Exception:
                # Never leave oscap running behind a failed supervisor
                process.kill()
                raise
            self._drain(process)

        if self._cancel_requested.is_set():
            self.notices.info("Scanning cancelled!")
            return ScanState.CANCELLED

        self._set_state(ScanState.FINALIZING)
        exit_code = process.exit_code
        self.logger.info("oscap_process_finished", exit_code=exit_code)

        if exit_code == TOOL_ERROR_EXIT_CODE:
            message = "There was an error during evaluation! Exit code of the 'oscap' process was 1."
            if self.stderr.strip():
                message += f"\n{self.stderr.strip()}"
            raise ToolReportedError(message, exit_code=exit_code, stderr=self.stderr)

        self.notices.info("The oscap tool has finished. Reading results...")
        self._collect_artifacts()

        if self._cancel_requested.is_set():
            self._clear_artifacts()
            self.notices.info("Scanning cancelled!")
            return ScanState.CANCELLED

        self.notices.info("Processing has been finished!")
        return ScanState.COMPLETED

    def _input_arf(self) -> ContextManager[Optional[MaterializedFile]]:
        if self.mode == ScannerMode.OFFLINE_REMEDIATION:
            return MaterializedFile(self._arf_for_remediation, suffix="-input-arf.xml")
        return contextlib.nullcontext()

    def _build_scan_args(self, input_arf: Optional[MaterializedFile]) -> list[str]:
        paths = {name: str(path) for name, path in self.artifacts.paths().items()}

        if input_arf is not None:
            return build_offline_remediation_args(
                self.session,
                self.capabilities,
                str(input_arf.path),
                paths["result"],
                paths["report"],
                paths["arf"],
            )

        return build_evaluation_args(
            self.session,
            self.capabilities,
            self.session.opened_file_path,
            self.session.tailoring_file_path,
            paths["result"],
            paths["report"],
            paths["arf"],
            self.mode == ScannerMode.SCAN_ONLINE_REMEDIATION,
        )

    def _start_process(
        self, program: str, args: list[str], cwd: Path, failure_message: str
    ) -> ScanProcess:
        process = self._process_factory(program, args, cwd)
        process.start()
        if not process.wait_for_started():
            context = {}
            if process.start_error is not None:
                context["reason"] = str(process.start_error)
            raise LaunchFailure(failure_message, program=program, context=context)

        self.logger.info("oscap_process_started", program=program, args=args)
        return process

    def _supervise(self, process: ScanProcess) -> None:
        """Poll until oscap exits; kill it once if cancellation is requested."""
        poll_interval = self.config.poll_interval_ms
        killed = False

        self.notices.info("Processing...")
        while not process.wait_for_finished(poll_interval):
            self._drain(process)

            if self.event_pump is not None:
                self.event_pump()

            if self._cancel_requested.is_set() and not killed:
                poll_interval = self.config.cancel_poll_interval_ms
                self.notices.info("Cancellation was requested! Terminating scanning...")
                process.kill()
                killed = True

    def _drain(self, process: ScanProcess) -> None:
        stdout = process.read_stdout()
        if stdout:
            self.stdout += stdout
            self._report_progress(stdout)

        stderr = self._read_stderr(process)
        if stderr:
            self.stderr += stderr

    def _read_stderr(self, process: ScanProcess) -> str:
        stderr = process.read_stderr()
        if stderr:
            self.notices.warning(
                f"The 'oscap' process has written the following content to stderr:\n{stderr}"
            )
        return stderr

    def _report_progress(self, chunk: str) -> None:
        """Publish ``<rule-id>:<result>`` lines printed by ``oscap --progress``."""
        lines = (self._progress_tail + chunk).split("\n")
        self._progress_tail = lines.pop()

        for line in lines:
            rule_id, _, result = line.strip().rpartition(":")
            if rule_id and result in _RULE_RESULTS:
                self.notices.progress(rule_id, result)

    def _collect_artifacts(self) -> None:
        buffers = {}
        for name in ARTIFACT_NAMES:
            try:
                buffers[name] = self.artifacts.read(name)
            except OSError as e:
                path = self.artifacts.paths()[name]
                raise ArtifactReadError(
                    f"Failed to read the {name} file produced by oscap: {e}",
                    artifact=name,
                    path=str(path),
                ) from e

        self.results = buffers["result"]
        self.report = buffers["report"]
        self.arf = buffers["arf"]
        self.logger.info(
            "artifacts_collected",
            result_bytes=len(self.results),
            report_bytes=len(self.report),
            arf_bytes=len(self.arf),
        )

    def _clear_artifacts(self) -> None:
        self.results = b""
        self.report = b""
        self.arf = b""

    def _reset_run(self) -> None:
        self.state = ScanState.IDLE
        self.last_error = None
        self.stdout = ""
        self.stderr = ""
        self._progress_tail = ""
        self._clear_artifacts()

    def _set_state(self, state: ScanState) -> None:
        self.logger.debug("scan_state_changed", previous=self.state.value, state=state.value)
        self.state = state

    def _fail(self, error: ScannerError, state: ScanState) -> ScanState:
        self.last_error = error
        self.logger.error(
            "scan_failed",
            error_code=error.error_code,
            error_type=type(error).__name__,
            state=self.state.value,
        )
        self.notices.error(error.message)
        self._cancel_requested.set()
        return state

    def _finish(self, state: ScanState) -> bool:
        self._set_state(state)
        cancelled = self._cancel_requested.is_set()
        # The flag belongs to the run that just ended
        self._cancel_requested.clear()
        self.cancelled = cancelled

        self.logger.info("scan_finished", state=state.value, cancelled=cancelled)
        self.notices.publish(Completion(cancelled=cancelled))
        return not cancelled

    # ------------------------------------------------------------------
    # Remediation role generation
    # ------------------------------------------------------------------

    def _generate_role(self, fix_type: str, role_path: Path) -> None:
        profile = self.session.profile
        if not profile:
            raise PreconditionFailure(
                "Unable to get profile ID for the passed check. It is impossible to get the "
                "result ID without the profile ID, so no remediation role can be generated."
            )

        arf_path = self.artifacts.arf
        if self.artifacts.closed or not arf_path.exists() or arf_path.stat().st_size == 0:
            raise PreconditionFailure(
                "No ARF results are available. Run a scan before generating a remediation role."
            )

        # Created by us so an elevated oscap never owns it
        try:
            role_path.write_bytes(b"")
        except OSError as e:
            raise PreconditionFailure(
                f"Cannot create the remediation role file '{role_path}': {e}",
                context={"role_file": str(role_path)},
            ) from e

        args = build_generate_fix_args(fix_type, str(role_path), profile, str(arf_path))

        with WorkingDirectory() as workdir:
            program = self.resolver.resolve_program(args)
            process = self._start_process(
                program,
                args,
                workdir.path,
                f"Failed to start the remediation role generation process '{program}'.",
            )

            stderr_parts = []
            self.notices.info("Processing...")
            while not process.wait_for_finished(self.config.poll_interval_ms):
                process.read_stdout()
                stderr_parts.append(self._read_stderr(process))
            process.read_stdout()
            stderr_parts.append(self._read_stderr(process))

        if process.exit_code == TOOL_ERROR_EXIT_CODE:
            stderr = "".join(stderr_parts)
            raise ToolReportedError(
                "There was an error in course of remediation role generation! "
                "Exit code of the 'oscap' process was 1.",
                stderr=stderr,
            )

        self.notices.info(f"Remediation role has been written to '{role_path}'.")
