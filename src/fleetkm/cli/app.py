"""Main CLI application."""

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from fleetkm import __version__
from fleetkm.core.aggregate import SortKey

app = typer.Typer(
    name="fleetkm",
    help="Quarterly odometer ledger for fuel excise reporting.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
tools_app = typer.Typer(help="Year maintenance: carry forward, reset, clear.", no_args_is_help=True)
app.add_typer(tools_app, name="tools")

console = Console()
logger = logging.getLogger(__name__)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
    ),
    year: Optional[int] = typer.Option(
        None,
        "--year",
        "-y",
        help="Reporting year to work on (default: current year).",
    ),
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        envvar="FLEETKM_DATA_DIR",
        help="Directory holding the yearly data files.",
    ),
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        envvar="FLEETKM_CONFIG_DIR",
        help="Directory holding settings.toml.",
        hidden=True,
    ),
) -> None:
    """fleetkm - quarterly mileage ledger for fuel excise (accise) reports."""
    if version:
        console.print(f"fleetkm v{__version__}")
        raise typer.Exit()

    from fleetkm.cli.context import CliContext, fail
    from fleetkm.core.config import SettingsManager
    from fleetkm.exceptions import ConfigError
    from fleetkm.logging import setup_logging
    from fleetkm.models.settings import AppSettings

    setup_logging()
    try:
        settings = SettingsManager(config_dir).load()
    except ConfigError as e:
        if ctx.invoked_subcommand != "config":
            fail(e)
        # `config --reset` must still work on a broken file.
        logger.warning("Using default settings: %s", e.message)
        settings = AppSettings()

    ctx.obj = CliContext(
        year=year or date.today().year,
        settings=settings,
        data_dir=data_dir,
        config_dir=config_dir,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Vehicles & readings
# ─────────────────────────────────────────────────────────────────────────────


@app.command("list")
def list_vehicles(
    ctx: typer.Context,
    sort: Optional[SortKey] = typer.Option(None, "--sort", help="Sort by code or plate"),
    descending: bool = typer.Option(False, "--desc", help="Reverse sort order"),
) -> None:
    """Show the mileage table for the year."""
    from fleetkm.cli.commands.vehicles import run_list

    run_list(ctx.obj, sort=sort, descending=descending)


@app.command()
def add(
    ctx: typer.Context,
    plate: str = typer.Option(None, "--plate", help="License plate, e.g. GG949BC"),
    code: str = typer.Option(None, "--code", help="Internal fleet code"),
    initial: str = typer.Option(None, "--initial", help="Odometer at start of year"),
    notes: str = typer.Option(None, "--notes", help="Optional annotation"),
    force: bool = typer.Option(False, "--force", help="Save even if the plate is already used"),
) -> None:
    """Add a vehicle to the year."""
    from fleetkm.cli.commands.vehicles import run_add

    run_add(ctx.obj, plate=plate, code=code, initial=initial, notes=notes, force=force)


@app.command()
def edit(
    ctx: typer.Context,
    vehicle_id: int = typer.Argument(..., help="Vehicle id (see 'fleetkm list')"),
    plate: str = typer.Option(None, "--plate", help="New license plate"),
    code: str = typer.Option(None, "--code", help="New internal code"),
    initial: str = typer.Option(None, "--initial", help="New initial odometer"),
    notes: str = typer.Option(None, "--notes", help="Annotation; empty string clears it"),
    sold: Optional[bool] = typer.Option(None, "--sold/--active", help="Mark as sold or active"),
    force: bool = typer.Option(False, "--force", help="Save even if the plate is already used"),
) -> None:
    """Edit a vehicle's details."""
    from fleetkm.cli.commands.vehicles import run_edit

    run_edit(
        ctx.obj,
        vehicle_id,
        plate=plate,
        code=code,
        initial=initial,
        notes=notes,
        sold=sold,
        force=force,
    )


@app.command()
def delete(
    ctx: typer.Context,
    vehicle_id: int = typer.Argument(..., help="Vehicle id"),
    yes: bool = typer.Option(False, "--yes", help="Do not ask for confirmation"),
) -> None:
    """Delete a vehicle from the year."""
    from fleetkm.cli.commands.vehicles import run_delete

    run_delete(ctx.obj, vehicle_id, yes=yes)


@app.command()
def swap(
    ctx: typer.Context,
    first_id: int = typer.Argument(..., help="First vehicle id"),
    second_id: int = typer.Argument(..., help="Second vehicle id"),
) -> None:
    """Exchange the internal codes of two vehicles."""
    from fleetkm.cli.commands.vehicles import run_swap

    run_swap(ctx.obj, first_id, second_id)


@app.command()
def reading(
    ctx: typer.Context,
    vehicle_id: int = typer.Argument(..., help="Vehicle id"),
    slot: str = typer.Argument(..., help="'initial' or q1..q4"),
    value: str = typer.Argument(..., help="Odometer value; '-' clears it"),
) -> None:
    """Record an odometer reading."""
    from fleetkm.cli.commands.vehicles import run_reading

    run_reading(ctx.obj, vehicle_id, slot, value)


# ─────────────────────────────────────────────────────────────────────────────
# Reports & settings
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def report(ctx: typer.Context) -> None:
    """Printable mileage report for the year."""
    from fleetkm.cli.commands.report import run_report

    run_report(ctx.obj)


@app.command()
def company(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="New company name"),
) -> None:
    """Show or set the company name printed on reports."""
    from fleetkm.cli.commands.report import run_company

    run_company(ctx.obj, name)


@app.command()
def config(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(None, "--set-data-dir", help="Default data directory"),
    tolerance: Optional[int] = typer.Option(
        None, "--tolerance-ms", min=0, help="Clock tolerance for stale imports"
    ),
    backup_filename: Optional[str] = typer.Option(
        None, "--backup-filename", help="Default export file name"
    ),
    reset: bool = typer.Option(False, "--reset", help="Delete the settings file and use defaults"),
) -> None:
    """Show or update settings."""
    from fleetkm.cli.commands.report import run_config

    run_config(
        ctx.obj,
        data_dir=data_dir,
        tolerance=tolerance,
        backup_filename=backup_filename,
        reset=reset,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Backup
# ─────────────────────────────────────────────────────────────────────────────


@app.command("export")
def export_backup(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Destination file, or '-' for stdout"
    ),
) -> None:
    """Export every year to a v2 backup file."""
    from fleetkm.cli.commands.backup import run_export

    run_export(ctx.obj, output=output)


@app.command("import")
def import_backup(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Backup file, or '-' for stdin"),
    yes: bool = typer.Option(False, "--yes", help="Accept old-format and stale data without asking"),
) -> None:
    """Restore data from a backup file."""
    from fleetkm.cli.commands.backup import run_import

    run_import(ctx.obj, source, yes=yes)


# ─────────────────────────────────────────────────────────────────────────────
# Tools
# ─────────────────────────────────────────────────────────────────────────────


@tools_app.command("carry-forward")
def carry_forward(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Do not ask for confirmation"),
) -> None:
    """Start the year from last year's active vehicles and final readings."""
    from fleetkm.cli.commands.tools import run_carry_forward

    run_carry_forward(ctx.obj, yes=yes)


@tools_app.command("reset")
def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Do not ask for confirmation"),
) -> None:
    """Clear every reading of the year, keeping the vehicles."""
    from fleetkm.cli.commands.tools import run_reset

    run_reset(ctx.obj, yes=yes)


@tools_app.command("clear")
def clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Do not ask for confirmation"),
) -> None:
    """Remove every vehicle from the year."""
    from fleetkm.cli.commands.tools import run_clear

    run_clear(ctx.obj, yes=yes)


if __name__ == "__main__":
    app()
