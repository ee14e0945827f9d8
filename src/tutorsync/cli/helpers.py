"""Shared state and helpers for CLI commands.

Global logging options are collected by the app callback and applied once,
before the first command touches a logger.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import typer
from rich.console import Console

from tutorsync.core.config import TutorsyncConfig
from tutorsync.core.logging import configure_logging, get_logger

_logger = get_logger("cli")


@dataclass
class _LogSettings:
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None
    format: Literal["json", "console", "both"] | None = None
    file: Path | None = None
    configured: bool = False


_log_settings = _LogSettings()


def set_log_level(level: str) -> None:
    _log_settings.level = level.upper()  # type: ignore[assignment]


def set_log_format(fmt: str) -> None:
    _log_settings.format = fmt.lower()  # type: ignore[assignment]


def set_log_file(path: Path) -> None:
    _log_settings.file = path


def reset_logging_state() -> None:
    """Forget CLI logging options (used by tests)."""
    global _log_settings
    _log_settings = _LogSettings()


def configure_global_logging(console: Console, config: TutorsyncConfig | None = None) -> None:
    """Apply logging settings once per process.

    CLI options win over the config file's ``logging`` section.

    Raises:
        typer.Exit: If the settings are inconsistent.
    """
    if _log_settings.configured:
        return
    log_cfg = (config or TutorsyncConfig()).logging
    try:
        configure_logging(
            level=_log_settings.level or log_cfg.level,
            format=_log_settings.format or log_cfg.format,
            file_path=_log_settings.file or log_cfg.file_path,
            max_file_size_mb=log_cfg.max_file_size_mb,
            backup_count=log_cfg.backup_count,
        )
    except ValueError as e:
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(1) from None
    _log_settings.configured = True


def load_config(path: Path | None, console: Console) -> TutorsyncConfig:
    """Load config from `path`, or defaults when no file is given.

    Raises:
        typer.Exit: Exit code 2 if the file cannot be parsed or validated.
    """
    if path is None:
        return TutorsyncConfig()
    try:
        return TutorsyncConfig.from_yaml(path)
    except Exception as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(2) from None
