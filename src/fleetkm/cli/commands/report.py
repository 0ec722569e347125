"""Report, company name and settings commands."""

import logging
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fleetkm.cli.context import CliContext, fail
from fleetkm.cli.ui import create_ledger_table, format_km, success_panel
from fleetkm.core.aggregate import counts, grand_total
from fleetkm.core.config import SettingsManager
from fleetkm.core.ledger import has_warnings
from fleetkm.exceptions import ConfigValidationError, FleetkmError
from fleetkm.models.settings import AppSettings

logger = logging.getLogger(__name__)
console = Console()


def run_report(ctx: CliContext) -> None:
    """Print the yearly report: header, company, table, totals."""
    session = ctx.open_session()

    header = f"[bold]Mileage Report[/bold]\nFuel Excise - Year {session.year}"
    if session.company_name:
        header += f"\n\n[bold]{session.company_name}[/bold]"
    console.print()
    console.print(Panel(header, border_style="cyan", padding=(1, 2)))

    if not session.vehicles:
        console.print(f"  [dim]No vehicles for {session.year}.[/dim]")
        return

    console.print(create_ledger_table(session.vehicles, session.year, show_ids=False))

    summary = counts(session.vehicles)
    console.print()
    console.print(
        f"  Vehicles: {summary.total} ({summary.active} active, "
        f"{summary.with_notes} with notes, {summary.sold} sold)"
    )
    console.print(f"  [bold]Total km {session.year}: {format_km(grand_total(session.vehicles))}[/bold]")

    flagged = [v.plate for v in session.vehicles if has_warnings(v)]
    if flagged:
        console.print(
            f"  [red]Readings out of order:[/red] {', '.join(flagged)}"
        )
    console.print(f"  [dim]Printed {date.today().strftime('%d/%m/%Y')}[/dim]")


def run_company(ctx: CliContext, name: Optional[str] = None) -> None:
    """Show or change the company name."""
    session = ctx.open_session()

    if name is None:
        console.print()
        if session.company_name:
            console.print(f"  Company: [bold]{session.company_name}[/bold]")
        else:
            console.print("  [dim]No company name set.[/dim]")
        return

    session.set_company_name(name)
    logger.info("Company name set to %r", session.company_name)
    console.print()
    console.print(success_panel(f"Company name: {session.company_name or '(cleared)'}"))


def run_config(
    ctx: CliContext,
    data_dir: Optional[Path] = None,
    tolerance: Optional[int] = None,
    backup_filename: Optional[str] = None,
    reset: bool = False,
) -> None:
    """Show settings, or update the given ones.

    With ``reset`` the settings file is deleted first, so any other updates
    apply on top of the defaults.
    """
    manager = SettingsManager(ctx.config_dir)

    updates: dict = {}
    if data_dir is not None:
        updates["data_dir"] = data_dir.expanduser().resolve()
    if tolerance is not None:
        updates["stale_tolerance_ms"] = tolerance
    if backup_filename is not None:
        if not backup_filename.strip():
            fail(ConfigValidationError("backup_filename", "File name cannot be empty."))
        updates["backup_filename"] = backup_filename.strip()

    settings = ctx.settings
    if reset:
        try:
            deleted = manager.delete()
        except OSError as e:
            fail(FleetkmError("Failed to reset settings", str(e)))
        settings = AppSettings()
        logger.info("Settings reset (file deleted: %s)", deleted)
        console.print()
        console.print(success_panel("Settings reset to defaults"))

    if updates:
        settings = settings.model_copy(update=updates)
        try:
            manager.save(settings)
        except OSError as e:
            fail(FleetkmError("Failed to save settings", str(e)))
        logger.info("Settings updated: %s", sorted(updates))
        console.print()
        console.print(success_panel(f"Settings saved to {manager.settings_path}"))

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Settings file", str(manager.settings_path))
    store = ctx.model_copy(update={"settings": settings}).store
    table.add_row("Data directory", str(store.data_dir))
    table.add_row("Stale tolerance", f"{settings.stale_tolerance_ms} ms")
    table.add_row("Backup file name", settings.backup_filename)

    console.print()
    console.print(table)