"""
Config command for scapwb CLI.

This module provides commands for managing scapwb configuration.
"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from scapwb.logging import get_logger

# Create the config sub-application
app = typer.Typer(
    name="config",
    help="Manage scapwb configuration.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
logger = get_logger(__name__)


@app.command("init")
def init_config(
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output path for the configuration file.",
            resolve_path=True,
        ),
    ] = Path("settings.yaml"),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing configuration file.",
        ),
    ] = False,
) -> None:
    """
    Generate default configuration file.

    Creates a new configuration file with default settings and documented options.

    [bold]Examples:[/bold]

        [dim]# Create default config[/dim]
        $ scapwb config init

        [dim]# Create config at custom path[/dim]
        $ scapwb config init --output my-config.yaml

        [dim]# Overwrite existing config[/dim]
        $ scapwb config init --force
    """
    logger.info("init_config_invoked", output=str(output), force=force)

    if output.exists() and not force:
        console.print(
            f"[red]Error:[/red] Configuration file already exists at {output}\n"
            "Use --force to overwrite."
        )
        raise typer.Exit(code=1)

    from scapwb.config.defaults import get_default_config_yaml

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(get_default_config_yaml())

    console.print(f"[green]✓[/green] Configuration file created at: [bold]{output}[/bold]")
    logger.info("init_config_completed", output=str(output))


@app.command("validate")
def validate_config(
    config_file: Annotated[
        Path,
        typer.Argument(
            help="Path to configuration file to validate.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    strict: Annotated[
        bool,
        typer.Option(
            "--strict",
            "-s",
            help="Treat warnings (missing oscap, pkexec or nice binaries) as errors.",
        ),
    ] = False,
) -> None:
    """
    Validate a configuration file.

    Checks the configuration file for syntax errors and validates
    against the scapwb configuration schema.

    [bold]Examples:[/bold]

        [dim]# Validate config file[/dim]
        $ scapwb config validate settings.yaml

        [dim]# Strict validation[/dim]
        $ scapwb config validate settings.yaml --strict
    """
    logger.info("validate_config_invoked", config_file=str(config_file), strict=strict)

    from scapwb.config.manager import ConfigManager

    try:
        manager = ConfigManager()
        manager.load(config_file)
        validation_result = manager.validate(strict=strict)
    except Exception as e:
        console.print(f"[red]Error validating configuration:[/red] {e}")
        logger.error("validate_config_failed", error=str(e))
        raise typer.Exit(code=2) from e

    for warning in validation_result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    if not validation_result.is_valid:
        console.print(
            Panel(
                f"[red]✗ Configuration has errors[/red]\n\n"
                f"File: [bold]{config_file}[/bold]",
                title="Validation Failed",
                border_style="red",
            )
        )
        for error in validation_result.errors:
            console.print(f"  [red]•[/red] {error}")
        raise typer.Exit(code=2)

    console.print(
        Panel(
            f"[green]✓ Configuration is valid[/green]\n\n"
            f"File: [bold]{config_file}[/bold]\n"
            f"Mode: {'Strict' if strict else 'Standard'}",
            title="Validation Passed",
            border_style="green",
        )
    )
    logger.info("validate_config_completed", config_file=str(config_file), valid=True)


@app.command("show")
def show_config(
    config_file: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format (yaml, json, table).",
        ),
    ] = "yaml",
) -> None:
    """
    Display current configuration.

    Shows the merged configuration from defaults, the configuration file
    and SCAPWB_* environment variables.

    [bold]Examples:[/bold]

        [dim]# Show current config[/dim]
        $ scapwb config show

        [dim]# Show config as JSON[/dim]
        $ scapwb config show --format json
    """
    logger.info(
        "show_config_invoked",
        config_file=str(config_file) if config_file else None,
        format=output_format,
    )

    if output_format not in ("yaml", "json", "table"):
        console.print(f"[red]Error:[/red] Unknown format: {output_format}")
        raise typer.Exit(code=1)

    from scapwb.config.manager import ConfigManager

    try:
        manager = ConfigManager()
        manager.load(config_file)
        config_dict = manager.to_dict()
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        logger.error("show_config_failed", error=str(e))
        raise typer.Exit(code=2) from e

    if output_format == "yaml":
        import yaml

        config_yaml = yaml.dump(config_dict, default_flow_style=False, sort_keys=False)
        console.print(Syntax(config_yaml, "yaml", theme="monokai", line_numbers=True))
    elif output_format == "json":
        import json

        config_json = json.dumps(config_dict, indent=2)
        console.print(Syntax(config_json, "json", theme="monokai", line_numbers=True))
    else:
        _display_config_table(config_dict)

    logger.info("show_config_completed")


def _display_config_table(config: dict) -> None:
    """Display configuration as a table."""
    table = Table(title="Current Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="dim")
    table.add_column("Value")

    def flatten_dict(d: dict, parent_key: str = "") -> list[tuple[str, str]]:
        items: list[tuple[str, str]] = []
        for k, v in d.items():
            new_key = f"{parent_key}.{k}" if parent_key else k
            if isinstance(v, dict):
                items.extend(flatten_dict(v, new_key))
            else:
                items.append((new_key, str(v)))
        return items

    for key, value in flatten_dict(config):
        table.add_row(key, value)

    console.print(table)
