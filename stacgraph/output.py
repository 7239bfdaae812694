"""Styled terminal output for the CLI.

All user-facing CLI messages go through these functions; library modules
log through `logging` instead.

Usage:
    from stacgraph.output import success, info, warn, error, detail

    success("catalog.json: valid")
    info("Walking https://example.com/catalog.json")
    warn("col.json: schema unavailable")
    error("item.json: 3 violations")
    detail("/properties/datetime: None is not of type 'string'")

Pass dry_run=True from commands that would modify state to prefix the
message with [DRY RUN].
"""

from __future__ import annotations

import sys
from typing import TextIO

import click

_STYLES = {
    "success": "green",
    "info": "blue",
    "warn": "yellow",
    "error": "red",
    "detail": "bright_black",  # Dimmed/gray
}

_PREFIXES = {
    "success": "✓",  # checkmark
    "info": "→",  # arrow
    "warn": "⚠",  # warning
    "error": "✗",  # X
    "detail": " ",
}


def _output(
    message: str,
    style: str,
    *,
    file: TextIO | None = None,
    nl: bool = True,
    dry_run: bool = False,
) -> None:
    if dry_run:
        message = f"[DRY RUN] {message}"
    color = _STYLES[style]
    prefix = click.style(_PREFIXES[style], fg=color)
    click.echo(f"{prefix} {click.style(message, fg=color)}", file=file, nl=nl)


def success(
    message: str,
    *,
    file: TextIO | None = None,
    nl: bool = True,
    dry_run: bool = False,
) -> None:
    """Print a success message with green checkmark (stdout)."""
    _output(message, "success", file=file, nl=nl, dry_run=dry_run)


def info(
    message: str,
    *,
    file: TextIO | None = None,
    nl: bool = True,
    dry_run: bool = False,
) -> None:
    """Print an info message with blue arrow (stdout)."""
    _output(message, "info", file=file, nl=nl, dry_run=dry_run)


def warn(
    message: str,
    *,
    file: TextIO | None = None,
    nl: bool = True,
    dry_run: bool = False,
) -> None:
    """Print a warning with yellow warning symbol (stderr by default).

    Example:
        >>> warn("col.json: schema unavailable")
        ⚠ col.json: schema unavailable
    """
    _output(message, "warn", file=file or sys.stderr, nl=nl, dry_run=dry_run)


def error(
    message: str,
    *,
    file: TextIO | None = None,
    nl: bool = True,
    dry_run: bool = False,
) -> None:
    """Print an error message with red X (stderr by default).

    Example:
        >>> error("item.json: 3 violations")
        ✗ item.json: 3 violations
    """
    _output(message, "error", file=file or sys.stderr, nl=nl, dry_run=dry_run)


def detail(
    message: str,
    *,
    file: TextIO | None = None,
    nl: bool = True,
    dry_run: bool = False,
) -> None:
    """Print a detail line in dimmed text (stdout)."""
    _output(message, "detail", file=file, nl=nl, dry_run=dry_run)
