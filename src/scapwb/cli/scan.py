"""
Scan command for scapwb CLI.

This module provides commands for evaluating SCAP content with the local
oscap, remediating a previously captured ARF bundle and inspecting the
installed oscap capabilities.
"""

import shlex
import signal
from collections import Counter
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any, Generator, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from scapwb.config.manager import get_config
from scapwb.config.models import OutputConfig, ScannerConfig
from scapwb.engine.capabilities import CapabilityProber
from scapwb.engine.exceptions import (
    ArtifactReadError,
    LaunchFailure,
    PreconditionFailure,
    PrerequisiteFailure,
    ProbeFailure,
    ScannerError,
    ToolReportedError,
)
from scapwb.engine.notices import Completion, Notice, NoticeKind
from scapwb.engine.scanner import LocalScanner, ScannerMode
from scapwb.engine.session import ScanningSession
from scapwb.logging import get_logger, log_execution_context
from scapwb.logging.setup import log_error

# Create the scan sub-application
app = typer.Typer(
    name="scan",
    help="Run, preview and inspect local oscap scans.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
logger = get_logger(__name__)

_RESULT_STYLES = {
    "pass": "green",
    "fixed": "green",
    "fail": "red",
    "error": "red",
    "unknown": "yellow",
}


class NoticePrinter:
    """
    Subscriber that renders scanner notices on the console.

    Progress notices are tallied per rule result for the final summary.
    In quiet mode only errors are printed.
    """

    def __init__(self, console: Console, quiet: bool = False) -> None:
        self.console = console
        self.quiet = quiet
        self.results: Counter[str] = Counter()
        self.completion: Optional[Completion] = None

    def __call__(self, event: Any) -> None:
        if isinstance(event, Completion):
            self.completion = event
            return
        if not isinstance(event, Notice):
            return

        if event.kind == NoticeKind.PROGRESS:
            self.results[event.result] += 1
            if not self.quiet:
                style = _RESULT_STYLES.get(event.result, "dim")
                self.console.print(
                    f"  [{style}]{event.result:>13}[/{style}]  {escape(event.rule_id)}"
                )
        elif event.kind == NoticeKind.ERROR:
            self.console.print(f"[red]Error:[/red] {escape(event.message)}")
        elif self.quiet:
            return
        elif event.kind == NoticeKind.WARNING:
            self.console.print(f"[yellow]Warning:[/yellow] {escape(event.message)}")
        else:
            self.console.print(f"[dim]{escape(event.message)}[/dim]")


def _display_error_panel(
    error: ScannerError,
    console: Console,
    include_context: bool = True,
) -> None:
    """
    Display a formatted error panel for scanner exceptions.

    Args:
        error: The scanner exception to display.
        console: Rich console for output.
        include_context: Whether to include context details.
    """
    if isinstance(error, ProbeFailure):
        title = "oscap Not Usable"
        border_style = "red"
    elif isinstance(error, PrerequisiteFailure):
        title = "Unsupported Configuration"
        border_style = "yellow"
    elif isinstance(error, LaunchFailure):
        title = "Launch Error"
        border_style = "red"
    elif isinstance(error, ToolReportedError):
        title = "Evaluation Error"
        border_style = "red"
    elif isinstance(error, ArtifactReadError):
        title = "Result Collection Error"
        border_style = "red"
    elif isinstance(error, PreconditionFailure):
        title = "Remediation Role Error"
        border_style = "yellow"
    else:
        title = "Error"
        border_style = "red"

    lines = [
        f"[bold red]{error.error_code}[/bold red]: {escape(error.message)}",
    ]

    if error.troubleshooting_tips:
        lines.append("")
        lines.append("[bold cyan]Troubleshooting:[/bold cyan]")
        for i, tip in enumerate(error.troubleshooting_tips[:5], 1):
            lines.append(f"  {i}. {escape(tip)}")

    if include_context and error.context:
        # stderr is already part of the message
        safe_context = {k: v for k, v in error.context.items() if k != "stderr_preview"}
        if safe_context:
            lines.append("")
            lines.append("[dim]Context:[/dim]")
            for key, value in list(safe_context.items())[:5]:
                lines.append(f"  [dim]{key}:[/dim] {escape(str(value))}")

    console.print()
    console.print(Panel("\n".join(lines), title=title, border_style=border_style))


def _load_settings(ctx: typer.Context) -> tuple[ScannerConfig, OutputConfig]:
    """Load scanner and output settings; configuration errors exit with code 2."""
    parent_obj = ctx.find_root().obj or {}
    config_file = parent_obj.get("config_file")

    config_manager = get_config()
    try:
        if config_file:
            config_manager.load(Path(config_file))
        else:
            config_manager.load()
        return config_manager.scanner_config(), config_manager.output_config()
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] Configuration file not found: {e}")
        raise typer.Exit(code=2)
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        log_error(e, context={"phase": "configuration"}, command="scapwb scan")
        raise typer.Exit(code=2)


def _is_quiet(ctx: typer.Context) -> bool:
    return bool((ctx.find_root().obj or {}).get("quiet", False))


@contextmanager
def _cancel_on_interrupt(scanner: LocalScanner) -> Generator[None, None, None]:
    """Turn Ctrl+C into a cancellation request for the duration of a run."""

    def handle_interrupt(signum: int, frame: Any) -> None:
        console.print("\n[yellow]Interrupted, cancelling the scan...[/yellow]")
        scanner.cancel()

    previous = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _resolve_outputs(
    output_config: OutputConfig,
    results: Optional[Path],
    report: Optional[Path],
    arf: Optional[Path],
) -> dict[str, Path]:
    directory = Path(output_config.directory)
    return {
        "result": results or directory / output_config.result_filename,
        "report": report or directory / output_config.report_filename,
        "arf": arf or directory / output_config.arf_filename,
    }


def _save_artifacts(scanner: LocalScanner, outputs: dict[str, Path]) -> None:
    """
    Write the collected artifacts to their destinations.

    Args:
        scanner: Scanner holding the artifacts of a successful run.
        outputs: Destination per artifact name.
    """
    contents = {"result": scanner.results, "report": scanner.report, "arf": scanner.arf}
    for name, path in outputs.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(contents[name])
        logger.info("artifact_saved", artifact=name, path=str(path), size_bytes=len(contents[name]))


def _display_summary(printer: NoticePrinter, outputs: dict[str, Path]) -> None:
    table = Table(title="Scan Summary", show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim")
    table.add_column("Value")

    for result, count in sorted(printer.results.items()):
        style = _RESULT_STYLES.get(result, "white")
        table.add_row(f"Rules {result}", f"[{style}]{count}[/{style}]")

    table.add_row("Results", str(outputs["result"]))
    table.add_row("Report", str(outputs["report"]))
    table.add_row("ARF", str(outputs["arf"]))

    console.print()
    console.print(table)


def _display_preview(scanner: LocalScanner) -> None:
    command = shlex.join(scanner.get_command_line_args())
    console.print(
        Panel(
            f"{escape(command)}\n\n"
            "[yellow]Dry run mode:[/yellow] oscap will not be started.\n"
            "Remove --dry-run flag to execute the scan.",
            title="Dry Run",
            border_style="yellow",
        )
    )


def _run_scan(
    ctx: typer.Context,
    scanner: LocalScanner,
    scanner_config: ScannerConfig,
    outputs: dict[str, Path],
    command: str,
) -> NoticePrinter:
    """Evaluate, report the outcome and save the artifacts; exit 1 on failure."""
    printer = NoticePrinter(console, quiet=_is_quiet(ctx))
    scanner.subscribe(printer)

    with log_execution_context(command, config=scanner_config.model_dump()):
        with _cancel_on_interrupt(scanner):
            succeeded = scanner.evaluate()

    if not succeeded:
        if scanner.last_error is not None:
            _display_error_panel(scanner.last_error, console)
        else:
            console.print("[yellow]Scan cancelled.[/yellow]")
        raise typer.Exit(code=1)

    try:
        _save_artifacts(scanner, outputs)
    except OSError as e:
        console.print(f"[red]Error saving results:[/red] {e}")
        log_error(e, context={"phase": "save_artifacts"}, command=command)
        raise typer.Exit(code=1)

    _display_summary(printer, outputs)
    return printer


@app.command("eval")
def eval_content(
    ctx: typer.Context,
    document: Annotated[
        Path,
        typer.Argument(
            help="XCCDF file or source datastream to evaluate.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    profile: Annotated[
        Optional[str],
        typer.Option("--profile", "-p", help="XCCDF profile ID to evaluate."),
    ] = None,
    tailoring: Annotated[
        Optional[Path],
        typer.Option(
            "--tailoring",
            "-t",
            help="Tailoring file to apply.",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
    datastream_id: Annotated[
        Optional[str],
        typer.Option("--datastream-id", help="Datastream ID inside the collection."),
    ] = None,
    xccdf_id: Annotated[
        Optional[str],
        typer.Option("--xccdf-id", help="XCCDF component ID inside the datastream."),
    ] = None,
    remediate: Annotated[
        bool,
        typer.Option("--remediate", help="Run online remediation after the evaluation."),
    ] = False,
    skip_valid: Annotated[
        bool,
        typer.Option("--skip-valid", help="Skip schema validation of the content."),
    ] = False,
    fetch_remote_resources: Annotated[
        bool,
        typer.Option("--fetch-remote-resources", help="Allow oscap to download remote content."),
    ] = False,
    results: Annotated[
        Optional[Path],
        typer.Option("--results", help="Where to write the XCCDF results."),
    ] = None,
    report: Annotated[
        Optional[Path],
        typer.Option("--report", help="Where to write the HTML report."),
    ] = None,
    arf: Annotated[
        Optional[Path],
        typer.Option("--arf", help="Where to write the ARF bundle."),
    ] = None,
    fix_type: Annotated[
        Optional[str],
        typer.Option(
            "--fix-type",
            help="Generate a remediation role of this type (bash, ansible, puppet, ...).",
        ),
    ] = None,
    role_output: Annotated[
        Optional[Path],
        typer.Option("--role-output", help="Where to write the remediation role."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show the oscap command line without running it."),
    ] = False,
) -> None:
    """
    Evaluate SCAP content with the local oscap.

    [bold]Examples:[/bold]

        [dim]# Evaluate a profile[/dim]
        $ scapwb scan eval ssg-rhel9-ds.xml --profile xccdf_org.ssgproject.content_profile_cis

        [dim]# Evaluate, remediate online and keep the report[/dim]
        $ scapwb scan eval ssg-rhel9-ds.xml -p cis --remediate --report cis.html

        [dim]# Generate an Ansible role from the results[/dim]
        $ scapwb scan eval ssg-rhel9-ds.xml -p cis --fix-type ansible --role-output fix.yml

        [dim]# Preview the command line[/dim]
        $ scapwb scan eval ssg-rhel9-ds.xml -p cis --dry-run
    """
    if (fix_type is None) != (role_output is None):
        console.print("[red]Error:[/red] --fix-type and --role-output must be used together.")
        raise typer.Exit(code=1)

    logger.info(
        "scan_eval_invoked",
        document=str(document),
        profile=profile,
        remediate=remediate,
        dry_run=dry_run,
    )

    scanner_config, output_config = _load_settings(ctx)
    session = ScanningSession(
        opened_file_path=str(document),
        tailoring_file_path=str(tailoring) if tailoring else None,
        profile=profile or "",
        datastream_id=datastream_id,
        xccdf_id=xccdf_id,
        skip_validation=skip_valid,
        fetch_remote_resources=fetch_remote_resources,
    )
    mode = ScannerMode.SCAN_ONLINE_REMEDIATION if remediate else ScannerMode.SCAN

    with LocalScanner(session, scanner_config, mode=mode, dry_run=dry_run) as scanner:
        if dry_run:
            _display_preview(scanner)
            return

        outputs = _resolve_outputs(output_config, results, report, arf)
        _run_scan(ctx, scanner, scanner_config, outputs, "scapwb scan eval")

        if fix_type and role_output:
            if not scanner.create_remediation_role(fix_type, role_output):
                if scanner.last_error is not None:
                    _display_error_panel(scanner.last_error, console)
                raise typer.Exit(code=1)
            console.print(
                f"[green]✓[/green] Remediation role written to: [bold]{role_output}[/bold]"
            )

    logger.info("scan_eval_completed", document=str(document), profile=profile)


@app.command("remediate")
def remediate_arf(
    ctx: typer.Context,
    arf_input: Annotated[
        Path,
        typer.Argument(
            help="ARF bundle captured by an earlier scan.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    results: Annotated[
        Optional[Path],
        typer.Option("--results", help="Where to write the XCCDF results."),
    ] = None,
    report: Annotated[
        Optional[Path],
        typer.Option("--report", help="Where to write the HTML report."),
    ] = None,
    arf: Annotated[
        Optional[Path],
        typer.Option("--arf", help="Where to write the ARF bundle."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show the oscap command line without running it."),
    ] = False,
) -> None:
    """
    Remediate the system from a previously captured ARF bundle.

    [bold]Examples:[/bold]

        [dim]# Remediate from yesterday's results[/dim]
        $ scapwb scan remediate results/arf.xml --report remediation.html
    """
    logger.info("scan_remediate_invoked", arf_input=str(arf_input), dry_run=dry_run)

    scanner_config, output_config = _load_settings(ctx)

    with LocalScanner(
        ScanningSession(),
        scanner_config,
        mode=ScannerMode.OFFLINE_REMEDIATION,
        dry_run=dry_run,
    ) as scanner:
        if dry_run:
            _display_preview(scanner)
            return

        scanner.set_arf_for_remediation(arf_input.read_bytes())
        outputs = _resolve_outputs(output_config, results, report, arf)
        _run_scan(ctx, scanner, scanner_config, outputs, "scapwb scan remediate")

    logger.info("scan_remediate_completed", arf_input=str(arf_input))


@app.command("capabilities")
def show_capabilities(ctx: typer.Context) -> None:
    """
    Show what the local oscap supports.

    [bold]Examples:[/bold]

        $ scapwb scan capabilities
    """
    scanner_config, _ = _load_settings(ctx)
    prober = CapabilityProber(scanner_config.oscap_path, timeout=scanner_config.probe_timeout)

    try:
        capabilities = prober.probe()
    except ProbeFailure as e:
        _display_error_panel(e, console)
        raise typer.Exit(code=1)

    table = Table(title="oscap Capabilities", show_header=True, header_style="bold cyan")
    table.add_column("Capability", style="dim")
    table.add_column("Value")

    def flag(value: bool) -> str:
        return "[green]yes[/green]" if value else "[red]no[/red]"

    table.add_row("oscap", scanner_config.oscap_path)
    table.add_row("Version", capabilities.version or "[dim]unknown[/dim]")
    table.add_row("Baseline support", flag(capabilities.baseline_support))
    table.add_row("Source datastreams", flag(capabilities.source_datastreams))
    table.add_row("Online remediation", flag(capabilities.online_remediation))
    table.add_row("ARF input", flag(capabilities.arf_input))
    table.add_row("Tailoring", flag(capabilities.tailoring_support))
    table.add_row("Progress reporting", flag(capabilities.progress_reporting))
    table.add_row("SCE", flag(capabilities.sce_support))
    for label, value in (
        ("XCCDF", capabilities.xccdf_version),
        ("OVAL", capabilities.oval_version),
        ("CPE", capabilities.cpe_version),
    ):
        table.add_row(f"{label} version", value or "[dim]-[/dim]")

    console.print()
    console.print(table)
