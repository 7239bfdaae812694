"""stacgraph CLI - walk, validate and download STAC catalogs.

The CLI is a thin wrapper around the Python API (see walk.py, validate.py
and download.py). All business logic lives in the library; the CLI handles
settings, user interaction and exit codes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml

from stacgraph.config import get_setting, list_settings, set_setting, unset_setting
from stacgraph.download import DownloadResult, download_catalog
from stacgraph.errors import (
    ConfigError,
    FetchError,
    ParseError,
    SchemaUnavailableError,
    TraversalError,
)
from stacgraph.fetch import ObstoreFetcher, read
from stacgraph.json_output import (
    ErrorDetail,
    OutputEnvelope,
    error_envelope,
    outcome_envelope,
    success_envelope,
)
from stacgraph.output import detail, error, info, success, warn
from stacgraph.validate import ValidationResult, Validator, iter_validate
from stacgraph.walk import walk as walk_catalog


def should_output_json(ctx: click.Context) -> bool:
    """Determine if JSON output should be used (global --format option)."""
    obj = ctx.find_root().obj or {}
    return obj.get("format", "text") == "json"


def output_json_envelope(envelope: OutputEnvelope) -> None:
    """Output a JSON envelope to stdout."""
    click.echo(envelope.to_json())


def _fail(ctx: click.Context, command: str, err: Exception) -> NoReturn:
    """Report a command-level error and exit with status 1."""
    if should_output_json(ctx):
        output_json_envelope(error_envelope(command, [ErrorDetail.from_exception(err)]))
    else:
        error(str(getattr(err, "message", err)))
    raise SystemExit(1) from err


def _setting(ctx: click.Context, command: str, key: str, cli_value: Any = None) -> Any:
    config_dir = ctx.find_root().obj["config_dir"]
    try:
        return get_setting(key, cli_value=cli_value, config_dir=config_dir)
    except ConfigError as err:
        _fail(ctx, command, err)


def _fetcher(ctx: click.Context, command: str) -> ObstoreFetcher:
    return ObstoreFetcher(
        s3_endpoint=_setting(ctx, command, "s3_endpoint"),
        s3_region=_setting(ctx, command, "s3_region"),
    )


max_workers_option = click.option(
    "--max-workers",
    type=click.IntRange(min=1),
    default=None,
    help="Number of concurrent fetches (default: max_workers setting, 1).",
)


@click.group()
@click.version_option(package_name="stacgraph")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format (json for machine parsing, text for humans).",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug details to stderr.")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Directory holding .stacgraph/config.yaml (default: current directory).",
)
@click.pass_context
def cli(ctx: click.Context, output_format: str, verbose: bool, config_dir: Path) -> None:
    """stacgraph - Walk, validate and download STAC catalogs."""
    ctx.ensure_object(dict)
    ctx.obj["format"] = output_format
    ctx.obj["config_dir"] = config_dir
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


# ─────────────────────────────────────────────────────────────────────────────
# Walk command
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("href")
@max_workers_option
@click.pass_context
def walk(ctx: click.Context, href: str, max_workers: int | None) -> None:
    """List every document reachable from HREF.

    HREF is a path or URL of a Catalog, Collection or Item. Exits with
    status 1 if any document could not be fetched, parsed or resolved.

    Examples:

        stacgraph walk catalog.json

        stacgraph --format json walk https://example.com/catalog.json
    """
    use_json = should_output_json(ctx)
    workers = _setting(ctx, "walk", "max_workers", max_workers)
    fetch = _fetcher(ctx, "walk")

    documents: list[dict[str, str]] = []
    failures: list[ErrorDetail] = []
    for location, outcome in walk_catalog(href, fetch, max_workers=workers):
        if isinstance(outcome, TraversalError):
            failures.append(ErrorDetail.from_exception(outcome, location))
            if not use_json:
                error(f"{location}: {outcome.message}")
            continue
        documents.append({"location": location, "type": outcome.type, "id": outcome.id})
        if not use_json:
            success(f"{outcome.type} {outcome.id}")
            detail(f"  {location}")

    if use_json:
        data: dict[str, Any] = {"documents": documents, "count": len(documents)}
        output_json_envelope(outcome_envelope("walk", data, failures))
    else:
        _print_summary(f"{len(documents)} document(s) reached", len(failures), "failed")

    if failures:
        raise SystemExit(1)


def _print_summary(message: str, failed: int, label: str) -> None:
    if failed:
        error(f"{message}, {failed} {label}")
    else:
        success(message)


# ─────────────────────────────────────────────────────────────────────────────
# Validate command
# ─────────────────────────────────────────────────────────────────────────────


def _validate_one(href: str, fetch: ObstoreFetcher, validator: Validator) -> ValidationResult:
    try:
        return validator.validate(read(href, fetch))
    except (FetchError, ParseError, SchemaUnavailableError) as err:
        return ValidationResult(errors=[err])


def _print_validation_result(location: str, result: ValidationResult) -> None:
    """Print one document's outcome with its violations."""
    if result.valid:
        success(f"{location}: valid")
        return

    for err in result.errors:
        error(f"{location}: {err.message}")
    if result.violations:
        count = len(result.violations)
        error(f"{location}: {count} violation{'s' if count != 1 else ''}")
        for violation in result.violations:
            detail(f"  {violation.pointer or '/'}: {violation.message}")
            detail(f"    schema: {violation.schema}")


@cli.command()
@click.argument("href")
@click.option(
    "--no-recursive",
    is_flag=True,
    default=False,
    help="Validate only HREF, without walking its children.",
)
@click.option(
    "--schema-base-url",
    default=None,
    help="Root URL (or directory) of the core STAC schemas.",
)
@max_workers_option
@click.pass_context
def validate(
    ctx: click.Context,
    href: str,
    no_recursive: bool,
    schema_base_url: str | None,
    max_workers: int | None,
) -> None:
    """Validate HREF and everything it links to against the STAC schemas.

    Each document is checked against its core schema and every extension
    schema it declares. Exits with status 1 if any document is invalid or
    could not be validated.

    Examples:

        stacgraph validate catalog.json

        stacgraph validate item.json --no-recursive
    """
    use_json = should_output_json(ctx)
    base_url = _setting(ctx, "validate", "schema_base_url", schema_base_url)
    workers = _setting(ctx, "validate", "max_workers", max_workers)
    fetch = _fetcher(ctx, "validate")
    validator = Validator(fetch, schema_base_url=base_url)

    if no_recursive:
        outcomes = iter([(href, _validate_one(href, fetch, validator))])
    else:
        outcomes = iter_validate(href, fetch, validator, max_workers=workers)

    results: dict[str, ValidationResult] = {}
    for location, result in outcomes:
        results[location] = result
        if not use_json:
            _print_validation_result(location, result)

    invalid = [location for location, result in results.items() if not result.valid]
    if use_json:
        _output_validate_json(results, invalid)
    else:
        _print_summary(f"{len(results)} document(s) validated", len(invalid), "invalid")

    if invalid:
        raise SystemExit(1)


def _output_validate_json(results: dict[str, ValidationResult], invalid: list[str]) -> None:
    """Output validation results as JSON envelope."""
    data = {
        "results": {location: result.to_dict() for location, result in results.items()},
        "summary": {
            "total": len(results),
            "valid": len(results) - len(invalid),
            "invalid": len(invalid),
        },
    }
    errors: list[ErrorDetail] = []
    for location in invalid:
        result = results[location]
        errors.extend(ErrorDetail.from_exception(err, location) for err in result.errors)
        errors.extend(ErrorDetail.from_violation(v, location) for v in result.violations)
    output_json_envelope(outcome_envelope("validate", data, errors))


# ─────────────────────────────────────────────────────────────────────────────
# Download command
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("href")
@click.argument("dest", type=click.Path(file_okay=False, path_type=Path))
@click.option("--dry-run", is_flag=True, help="Show what would be written without writing.")
@click.option(
    "--no-overwrite",
    is_flag=True,
    help="Skip documents whose local file already exists.",
)
@max_workers_option
@click.pass_context
def download(
    ctx: click.Context,
    href: str,
    dest: Path,
    dry_run: bool,
    no_overwrite: bool,
    max_workers: int | None,
) -> None:
    """Copy every document reachable from HREF into DEST.

    The relative layout of the catalog is kept; links between copied
    documents are relative and everything else points back at the source.

    Examples:

        stacgraph download https://example.com/catalog.json mirror/
    """
    use_json = should_output_json(ctx)
    workers = _setting(ctx, "download", "max_workers", max_workers)
    fetch = _fetcher(ctx, "download")

    if not use_json:
        info(f"Downloading {href} -> {dest}", dry_run=dry_run)

    result = download_catalog(
        href,
        dest,
        fetch,
        max_workers=workers,
        dry_run=dry_run,
        overwrite=not no_overwrite,
    )

    if use_json:
        _output_download_json(result)
    else:
        for location, path in result.written.items():
            detail(f"  {path} <- {location}")
        for location, err in result.errors:
            error(f"{location}: {getattr(err, 'message', err)}")
        _print_summary(
            f"{result.files_downloaded} document(s) written ({result.total_bytes} bytes)",
            result.files_failed,
            "failed",
        )

    if not result.success:
        raise SystemExit(1)


def _output_download_json(result: DownloadResult) -> None:
    errors = [ErrorDetail.from_exception(err, location) for location, err in result.errors]
    output_json_envelope(outcome_envelope("download", result.to_dict(), errors))


# ─────────────────────────────────────────────────────────────────────────────
# Config commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.group()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Manage stacgraph settings (.stacgraph/config.yaml)."""
    ctx.ensure_object(dict)


@config.command("get")
@click.argument("key")
@click.pass_context
def config_get(ctx: click.Context, key: str) -> None:
    """Show the resolved value of KEY."""
    value = _setting(ctx, "config_get", key)
    if should_output_json(ctx):
        output_json_envelope(success_envelope("config_get", {"key": key, "value": value}))
    else:
        click.echo("" if value is None else value)


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Store KEY = VALUE in the config file.

    VALUE is read as YAML, so "4" is stored as a number and "true" as a boolean.

    Examples:

        stacgraph config set max_workers 4

        stacgraph config set schema_base_url https://schemas.example.com
    """
    config_dir = ctx.find_root().obj["config_dir"]
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError:
        parsed = value
    try:
        set_setting(config_dir, key, parsed)
    except ConfigError as err:
        _fail(ctx, "config_set", err)

    if should_output_json(ctx):
        output_json_envelope(success_envelope("config_set", {"key": key, "value": parsed}))
    else:
        success(f"Set {key} = {parsed}")


@config.command("unset")
@click.argument("key")
@click.pass_context
def config_unset(ctx: click.Context, key: str) -> None:
    """Remove KEY from the config file."""
    config_dir = ctx.find_root().obj["config_dir"]
    try:
        removed = unset_setting(config_dir, key)
    except ConfigError as err:
        _fail(ctx, "config_unset", err)

    if should_output_json(ctx):
        output_json_envelope(success_envelope("config_unset", {"key": key, "removed": removed}))
    elif removed:
        success(f"Removed {key}")
    else:
        warn(f"{key} is not set in the config file")


@config.command("list")
@click.pass_context
def config_list(ctx: click.Context) -> None:
    """List settings with their values and where they come from."""
    config_dir = ctx.find_root().obj["config_dir"]
    try:
        settings = list_settings(config_dir)
    except ConfigError as err:
        _fail(ctx, "config_list", err)

    if should_output_json(ctx):
        output_json_envelope(success_envelope("config_list", {"settings": settings}))
        return

    for key, entry in settings.items():
        info(f"{key} = {entry['value']}")
        detail(f"  source: {entry['source']}")
