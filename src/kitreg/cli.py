"""kitreg CLI entry point."""

import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from kitreg import __version__, cli_logger, exit_codes
from kitreg.config import Registry, open_registry
from kitreg.discovery import (
    InvalidTargetError,
    KitPathNotFoundError,
    NoKitFilesError,
    collect_target_files,
    resolve_target,
)
from kitreg.errors import handle_cli_error
from kitreg.index import (
    EmptyIndexError,
    IndexBuild,
    IndexWriteError,
    generate_index,
    index_is_current,
    write_index,
)
from kitreg.schema import SchemaLoadError, load_schema
from kitreg.validation import ValidationReport
from kitreg.validator import KitValidator

app = typer.Typer(
    name="kitreg",
    help="Starter kit registry - validate kit metadata and generate the registry index.",
    no_args_is_help=True,
)

console = Console()


def require_registry(ctx: typer.Context) -> Registry:
    """Resolve the registry root and load its settings.

    Raises:
        typer.Exit: With CONFIG_INVALID if kitreg.yaml is invalid.
    """
    try:
        return open_registry(ctx.obj)
    except ValueError as e:
        cli_logger.error(escape(str(e)))
        raise typer.Exit(exit_codes.CONFIG_INVALID) from e


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        cli_logger.info(f"kitreg {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    root: Annotated[
        Path | None,
        typer.Option(
            "--root",
            help="Registry root holding kits/ and schemas/. Defaults to KITREG_ROOT or the current directory.",
        ),
    ] = None,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show kitreg version and exit.",
    ),
) -> None:
    """Starter kit registry - validate kit metadata and generate the registry index."""
    ctx.obj = root


@app.command()
def validate(
    ctx: typer.Context,
    target: Annotated[
        str | None,
        typer.Argument(
            help="Kit file or directory to validate. Defaults to the whole kits directory.",
        ),
    ] = None,
) -> None:
    """Validate kit metadata files against the kit schema.

    Checks every file and reports all errors and warnings in one pass.
    Slugs must be unique across all files validated together.
    """
    registry = require_registry(ctx)

    try:
        schema = load_schema(registry.schema_path)
    except SchemaLoadError as e:
        cli_logger.error(escape(str(e)))
        raise typer.Exit(exit_codes.SCHEMA_INVALID) from e

    try:
        target_path = resolve_target(target, registry.root, registry.kits_dir)
        kit_files = collect_target_files(target_path)
    except KitPathNotFoundError as e:
        cli_logger.error(escape(str(e)))
        raise typer.Exit(exit_codes.TARGET_NOT_FOUND) from e
    except InvalidTargetError as e:
        cli_logger.error(escape(str(e)))
        raise typer.Exit(exit_codes.INVALID_ARGS) from e
    except NoKitFilesError as e:
        cli_logger.error(escape(str(e)))
        raise typer.Exit(exit_codes.GENERAL_ERROR) from e

    if target_path.is_dir():
        cli_logger.info(escape(f"Validating kits in: {target_path}"))
    else:
        cli_logger.info(escape(f"Validating kit file: {target_path}"))
    cli_logger.dim(f"Found {len(kit_files)} kit file(s) to validate")

    validator = KitValidator(
        schema,
        repo_hosts=registry.config.repo_hosts,
        allowed_requirements=registry.config.allowed_requirements,
    )
    report = validator.validate_files(kit_files)

    _print_validation_report(report)
    if not report.is_valid:
        raise typer.Exit(exit_codes.GENERAL_ERROR)
    raise typer.Exit(exit_codes.SUCCESS)


def _print_validation_report(report: ValidationReport) -> None:
    """Print warnings, errors and the summary of a validation run."""
    cli_logger.rule()

    if report.warnings:
        cli_logger.warning(f"Warnings ({len(report.warnings)}):")
        for issue in report.warnings:
            cli_logger.info(f"  • {escape(str(issue))}")

    if report.errors:
        cli_logger.error(f"Errors ({len(report.errors)}):")
        for issue in report.errors:
            cli_logger.info(f"  • {escape(str(issue))}")
        cli_logger.rule()
        cli_logger.error(f"Validation failed with {len(report.errors)} error(s)")
        return

    cli_logger.success("All validations passed!")
    cli_logger.dim(f"  {report.file_count} kit file(s) validated successfully")
    cli_logger.dim(f"  {report.unique_slugs} unique slug(s) verified")
    cli_logger.rule()


@app.command()
def index(
    ctx: typer.Context,
    check: Annotated[
        bool,
        typer.Option(
            "--check",
            help="Fail if the index on disk is out of date instead of writing it.",
        ),
    ] = False,
) -> None:
    """Generate the registry index from all kit metadata files.

    Kits that cannot be indexed are skipped with a warning. The index is
    only written once it has been fully built.
    """
    registry = require_registry(ctx)
    index_path = registry.index_path

    cli_logger.info("Scanning for kit metadata files...")
    try:
        build = generate_index(registry.kits_dir)
    except KitPathNotFoundError as e:
        cli_logger.error(escape(f"Directory does not exist: {e.path}"))
        raise typer.Exit(exit_codes.TARGET_NOT_FOUND) from e
    except NoKitFilesError as e:
        cli_logger.error("No kit metadata files found")
        raise typer.Exit(exit_codes.GENERAL_ERROR) from e
    except EmptyIndexError as e:
        cli_logger.error(str(e))
        raise typer.Exit(exit_codes.GENERAL_ERROR) from e

    if build.skipped > 0:
        cli_logger.warning(f"Skipped {build.skipped} invalid kit file(s)")

    if check:
        if index_is_current(build.index, index_path):
            cli_logger.success(f"{index_path.name} is up to date ({build.index.total_kits} kits)")
            raise typer.Exit(exit_codes.SUCCESS)
        cli_logger.error(f"{index_path.name} is out of date. Run 'kitreg index' to regenerate it.")
        raise typer.Exit(exit_codes.GENERAL_ERROR)

    try:
        write_index(build.index, index_path)
    except IndexWriteError as e:
        cli_logger.error(escape(str(e)))
        raise typer.Exit(exit_codes.GENERAL_ERROR) from e

    _print_index_summary(build, index_path)
    raise typer.Exit(exit_codes.SUCCESS)


def _print_index_summary(build: IndexBuild, index_path: Path) -> None:
    """Print a per-category table and totals for a generated index."""
    index_data = build.index

    table = Table(show_header=True, header_style="bold")
    table.add_column("CATEGORY", style="cyan")
    table.add_column("KITS", justify="right")
    for category, count in index_data.categories.items():
        table.add_row(category, str(count))
    console.print(table)

    cli_logger.success(f"{index_path.name} generated successfully")
    cli_logger.dim(escape(f"  Location: {index_path}"))
    cli_logger.dim(f"  Total kits: {index_data.total_kits}")
    cli_logger.dim(f"  Categories: {len(index_data.categories)}")
    cli_logger.dim(f"  Tags: {len(index_data.tags)}")


def main_cli() -> None:
    """CLI entry point with top-level exception handling.

    Wraps the Typer app to catch any unhandled exceptions and format them
    as clean error messages instead of raw tracebacks.
    """
    try:
        app()
    except Exception as e:
        sys.exit(handle_cli_error(e))


if __name__ == "__main__":
    main_cli()
