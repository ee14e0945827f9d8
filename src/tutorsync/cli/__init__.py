"""tutorsync command line.

    cli/
    ├── __init__.py      # app assembly and global options
    ├── helpers.py       # logging setup, config loading
    ├── output.py        # rich console and tables
    └── commands/
        ├── process.py   # process-document, process-video
        └── validate.py  # validate
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from tutorsync import __version__

from .commands import process_document, process_video, validate
from .helpers import set_log_file, set_log_format, set_log_level
from .output import console

app = typer.Typer(
    name="tutorsync",
    help="Run document and video processing jobs with retries and status tracking",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"tutorsync v{__version__}")
        raise typer.Exit()


def log_level_callback(value: str | None) -> str | None:
    if value:
        set_log_level(value)
    return value


def log_format_callback(value: str | None) -> str | None:
    if value:
        set_log_format(value)
    return value


def log_file_callback(value: Path | None) -> Path | None:
    if value:
        set_log_file(value)
    return value


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            callback=log_level_callback,
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="TUTORSYNC_LOG_LEVEL",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            callback=log_format_callback,
            help="Log format: json, console, or both",
            envvar="TUTORSYNC_LOG_FORMAT",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            callback=log_file_callback,
            help="Path for log file output",
            envvar="TUTORSYNC_LOG_FILE",
        ),
    ] = None,
) -> None:
    """tutorsync - resilient processing jobs for the tutoring platform."""


app.command(name="process-document")(process_document)
app.command(name="process-video")(process_video)
app.command()(validate)


__all__ = ["app", "main"]
