"""Year maintenance tools: carry forward, reset readings, clear."""

import logging

from rich.console import Console
from rich.prompt import Confirm

from fleetkm.cli.context import CliContext, fail
from fleetkm.cli.ui import success_panel, warning_panel
from fleetkm.exceptions import FleetkmError

logger = logging.getLogger(__name__)
console = Console()


def _confirm(message: str, yes: bool) -> bool:
    console.print()
    console.print(warning_panel(message))
    if yes:
        return True
    if not Confirm.ask("  Continue?", default=False):
        console.print("[dim]  Cancelled.[/dim]")
        return False
    return True


def run_carry_forward(ctx: CliContext, yes: bool = False) -> None:
    """Seed the year from the previous year's active vehicles."""
    session = ctx.open_session()
    previous = session.year - 1

    if session.vehicles and not _confirm(
        f"{session.year} already has {len(session.vehicles)} vehicle(s). "
        f"They will be replaced by the active vehicles of {previous}.",
        yes,
    ):
        return

    try:
        count = session.import_previous_year()
    except FleetkmError as e:
        fail(e)

    session.save()
    console.print()
    console.print(
        success_panel(
            f"Carried forward {count} vehicle(s) from {previous}.\n"
            f"Initial mileage set to the last reading of {previous}."
        )
    )


def run_reset(ctx: CliContext, yes: bool = False) -> None:
    """Clear every reading of the year, keeping vehicles."""
    session = ctx.open_session()

    if not _confirm(
        f"All readings of {session.year} will be cleared. Vehicles are kept.", yes
    ):
        return

    session.reset_readings()
    session.save()
    logger.info("Reset readings for %s", session.year)
    console.print(success_panel(f"Readings of {session.year} cleared."))


def run_clear(ctx: CliContext, yes: bool = False) -> None:
    """Remove every vehicle from the year."""
    session = ctx.open_session()

    if not _confirm(
        f"All {len(session.vehicles)} vehicle(s) of {session.year} will be deleted.", yes
    ):
        return

    session.clear_all()
    session.save()
    logger.info("Cleared all vehicles for %s", session.year)
    console.print(success_panel(f"All vehicles of {session.year} deleted."))
