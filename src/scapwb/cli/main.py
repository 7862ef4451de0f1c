"""
Main CLI application for scapwb.

Global options decide how scapwb logs while it supervises oscap. The
``logging`` section of the settings file gives the defaults; --log-level,
--log-format, --verbose and --quiet override it for one invocation.
"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from scapwb.config.manager import get_config
from scapwb.config.models import LogFormat, LoggingConfig, LogLevel
from scapwb.logging import setup_logging
from scapwb.version import __version__

app = typer.Typer(
    name="scapwb",
    help="Local SCAP scan supervisor - run oscap evaluations and remediations",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()
error_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"[bold blue]scapwb[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


def resolve_logging(
    config_file: Optional[Path],
    log_level: Optional[LogLevel] = None,
    log_format: Optional[LogFormat] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> LoggingConfig:
    """
    Combine the settings file with the command line.

    Precedence: --log-level, then --verbose/--quiet, then the settings file.
    An invalid ``logging`` section falls back to the defaults here; the
    command that loads the settings reports it with exit code 2.
    """
    manager = get_config()
    manager.load(config_file)
    try:
        settings = manager.logging_config()
    except ValidationError:
        settings = LoggingConfig()

    level = settings.level
    if log_level is not None:
        level = log_level
    elif verbose:
        level = LogLevel.DEBUG
    elif quiet:
        level = LogLevel.ERROR

    return LoggingConfig(
        level=level,
        format=log_format or settings.format,
        output=settings.output,
    )


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log every scan step, including oscap state changes.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Show only errors; progress and info notices are hidden.",
        ),
    ] = False,
    log_level: Annotated[
        Optional[LogLevel],
        typer.Option(
            "--log-level",
            "-l",
            help="Logging level; overrides logging.level from the settings file.",
            envvar="SCAPWB_LOG_LEVEL",
            case_sensitive=False,
        ),
    ] = None,
    log_format: Annotated[
        Optional[LogFormat],
        typer.Option(
            "--log-format",
            help="Log format; overrides logging.format from the settings file.",
            envvar="SCAPWB_LOG_FORMAT",
            case_sensitive=False,
        ),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Settings file (YAML, JSON or TOML) with scanner, output and logging sections.",
            envvar="SCAPWB_CONFIG_FILE",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold blue]scapwb[/bold blue] - local SCAP scan supervisor

    Runs oscap on this machine through the pkexec wrapper, reports its
    progress and collects the XCCDF results, HTML report and ARF bundle.

    [dim]Use --help on any command for more information.[/dim]
    """
    ctx.ensure_object(dict)

    if verbose and quiet:
        error_console.print("[red]Error:[/red] Cannot use --verbose and --quiet together.")
        raise typer.Exit(code=1)

    # Loading the settings file logs; keep it under the requested level
    setup_logging(
        level=(log_level or (LogLevel.DEBUG if verbose else LogLevel.WARNING)).value,
        format_type=(log_format or LogFormat.CONSOLE).value,
    )
    logging_settings = resolve_logging(config_file, log_level, log_format, verbose, quiet)
    setup_logging(
        level=logging_settings.level.value,
        format_type=logging_settings.format.value,
        output=logging_settings.output,
    )

    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_file"] = config_file
    ctx.obj["logging"] = logging_settings


from scapwb.cli import config as config_cmd  # noqa: E402
from scapwb.cli import scan as scan_cmd  # noqa: E402

app.add_typer(scan_cmd.app, name="scan", help="Run, preview and inspect local oscap scans.")
app.add_typer(config_cmd.app, name="config", help="Manage scapwb configuration.")


if __name__ == "__main__":
    app()
