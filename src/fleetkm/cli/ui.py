"""Rich console UI helpers."""

from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from fleetkm.core.aggregate import FleetCounts, grand_total, quarterly_totals
from fleetkm.core.ledger import quarterly_distances, validity_flags, yearly_total
from fleetkm.models.vehicle import Vehicle

console = Console()

QUARTER_END_DATES = ("31/03", "30/06", "30/09", "31/12")


def success_panel(message: str) -> Panel:
    """Create a success message panel."""
    return Panel(
        f"[green]✓[/green] {message}",
        border_style="green",
        padding=(0, 1),
    )


def error_panel(message: str, details: str | None = None) -> Panel:
    """Create an error message panel."""
    content = f"[red]✗[/red] {message}"
    if details:
        content += f"\n\n[dim]{details}[/dim]"
    return Panel(
        content,
        title="Error",
        border_style="red",
        padding=(0, 1),
    )


def warning_panel(message: str) -> Panel:
    """Create a warning message panel."""
    return Panel(
        f"[yellow]⚠[/yellow] {message}",
        border_style="yellow",
        padding=(0, 1),
    )


def info_panel(message: str, title: str | None = None) -> Panel:
    """Create an info message panel."""
    return Panel(
        message,
        title=title,
        border_style="blue",
        padding=(1, 2),
    )


def format_km(value: Optional[int], empty: str = "-") -> str:
    """Format kilometres with Italian thousands separators."""
    if value is None:
        return empty
    return f"{value:,}".replace(",", ".")


def quarter_headers(year: int) -> list[str]:
    """Column headers such as ``31/03/25``."""
    short = str(year)[-2:]
    return [f"{date}/{short}" for date in QUARTER_END_DATES]


def _reading_cell(value: Optional[int], flagged: bool) -> str:
    text = format_km(value)
    return f"[bold red]{text}[/bold red]" if flagged else text


def _vehicle_cell(vehicle: Vehicle) -> str:
    plate = escape(vehicle.plate)
    if vehicle.is_sold:
        return f"[strike dim]{plate}[/strike dim] [red](sold)[/red]"
    if vehicle.notes:
        return f"{plate}\n[yellow]{escape(vehicle.notes)}[/yellow]"
    return plate


def create_ledger_table(
    vehicles: Sequence[Vehicle],
    year: int,
    show_ids: bool = True,
) -> Table:
    """Create the mileage table: readings, quarterly distances and totals.

    Readings that break the non-decreasing order are shown in red; each
    reading cell carries the quarter's distance underneath.
    """
    table = Table(show_lines=True, show_footer=True)
    if show_ids:
        table.add_column("ID", style="dim", footer="")
    table.add_column("Code", style="bold", justify="center", footer="[bold]TOTAL[/bold]")
    table.add_column("Vehicle", footer="")
    table.add_column("Initial km", justify="right", footer="")

    totals = quarterly_totals(vehicles)
    for header, total in zip(quarter_headers(year), totals):
        table.add_column(f"km at {header}", justify="right", footer=f"[bold]{format_km(total)}[/bold]")
    table.add_column(
        "Total",
        justify="right",
        style="bold",
        footer=f"[bold green]{format_km(grand_total(vehicles))}[/bold green]",
    )

    for vehicle in vehicles:
        flags = validity_flags(vehicle)
        distances = quarterly_distances(vehicle)
        cells = [escape(vehicle.internal_code), _vehicle_cell(vehicle)]
        cells.append(_reading_cell(vehicle.initial_mileage, flags[0]))
        for i, reading in enumerate(vehicle.quarter_end_mileage):
            cell = _reading_cell(reading, flags[i + 1])
            if distances[i] is not None:
                cell += f"\n[dim]+{format_km(distances[i])}[/dim]"
            cells.append(cell)
        total = yearly_total(vehicle)
        cells.append(format_km(total) if total > 0 else "-")
        if show_ids:
            cells.insert(0, str(vehicle.id))
        table.add_row(*cells)

    return table


def format_counts(counts: FleetCounts) -> str:
    """One-line vehicle summary for headers."""
    return (
        f"[green]{counts.active} active[/green]  "
        f"[yellow]{counts.with_notes} with notes[/yellow]  "
        f"[red]{counts.sold} sold[/red]"
    )
