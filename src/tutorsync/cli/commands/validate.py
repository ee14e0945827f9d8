"""Validate a configuration file without contacting the store.

Exit codes:
  0: Valid
  1: Invalid (schema errors)
  2: Cannot validate (unreadable or not YAML)
"""

from __future__ import annotations

from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich.table import Table

from tutorsync.core.config import TutorsyncConfig

from ..output import console


def validate(
    config_file: Path = typer.Argument(
        ...,
        help="Path to YAML configuration file",
        exists=True,
        readable=True,
    ),
) -> None:
    """Validate a configuration file and show the effective retry policy."""
    try:
        data = yaml.safe_load(config_file.read_text())
    except (OSError, yaml.YAMLError) as e:
        console.print(f"[red]Cannot parse configuration:[/red] {e}")
        raise typer.Exit(2) from None

    try:
        config = TutorsyncConfig.model_validate(data or {})
    except ValidationError as e:
        console.print("[red]Invalid configuration[/red]")
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            console.print(f"  {location}: {error['msg']}")
        raise typer.Exit(1) from None

    table = Table(title="Retry policy", show_header=False)
    table.add_row("max_retries", str(config.retry.max_retries))
    table.add_row("initial_delay_ms", str(config.retry.initial_delay_ms))
    table.add_row("backoff_factor", f"{config.retry.backoff_factor:g}")
    table.add_row("jitter_ms", str(config.retry.jitter_ms))
    table.add_row("download timeout", f"{config.timeouts.download_seconds:g}s")
    console.print(table)
    console.print("[green]Valid configuration[/green]")
