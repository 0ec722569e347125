"""Vehicle and reading command implementations."""

import logging
from typing import Callable, Optional

import typer
from rich.console import Console
from rich.prompt import Confirm, Prompt

from fleetkm.cli.context import CliContext, fail
from fleetkm.cli.ui import (
    create_ledger_table,
    format_counts,
    format_km,
    success_panel,
    warning_panel,
)
from fleetkm.core.aggregate import SortKey, counts, sorted_vehicles
from fleetkm.core.ledger import parse_mileage, validity_flags
from fleetkm.core.reconcile import format_timestamp
from fleetkm.core.session import LedgerSession
from fleetkm.exceptions import DuplicatePlateError, FleetkmError, InvalidInputError
from fleetkm.models.dataset import YearDataset

logger = logging.getLogger(__name__)
console = Console()

SLOT_NAMES = {"initial": 0, "i": 0, "0": 0}
SLOT_NAMES.update({f"q{n}": n for n in range(1, 5)})
SLOT_NAMES.update({str(n): n for n in range(1, 5)})


def parse_slot(slot: str) -> int:
    """Map 'initial' / 'q1'..'q4' to a reading position."""
    try:
        return SLOT_NAMES[slot.strip().lower()]
    except KeyError:
        raise InvalidInputError("slot", f"'{slot}' is not one of: initial, q1, q2, q3, q4.")


def _apply_with_plate_check(
    session: LedgerSession,
    change: Callable[[bool], YearDataset],
    force: bool,
) -> None:
    """Run an edit; a duplicate plate asks before saving anyway."""
    try:
        session.apply(change(force))
    except DuplicatePlateError as e:
        console.print()
        console.print(warning_panel(f"{e.message}\n\n[dim]{e.details}[/dim]"))
        if not Confirm.ask("  Save anyway?", default=False):
            console.print("[dim]  Cancelled.[/dim]")
            raise typer.Exit(0)
        session.apply(change(True))


def run_list(
    ctx: CliContext,
    sort: Optional[SortKey] = None,
    descending: bool = False,
) -> None:
    """Display the year's mileage table."""
    session = ctx.open_session()
    vehicles = session.vehicles
    if sort is not None:
        vehicles = sorted_vehicles(vehicles, key=sort, descending=descending)

    console.print()
    title = f"[bold]Mileage {session.year}[/bold]"
    if session.company_name:
        title += f"  [dim]{session.company_name}[/dim]"
    console.print(title)
    console.print(f"  {format_counts(counts(session.vehicles))}")
    console.print(f"  [dim]Last saved: {format_timestamp(session.last_updated)}[/dim]")

    if not vehicles:
        console.print()
        console.print(f"  [dim]No vehicles for {session.year}.[/dim]")
        console.print("  [dim]Use 'fleetkm add' or 'fleetkm tools carry-forward'.[/dim]")
        return

    console.print()
    console.print(create_ledger_table(vehicles, session.year))


def run_add(
    ctx: CliContext,
    plate: Optional[str] = None,
    code: Optional[str] = None,
    initial: Optional[str] = None,
    notes: Optional[str] = None,
    force: bool = False,
) -> None:
    """Add a vehicle, prompting for anything not given as an option."""
    session = ctx.open_session()

    if plate is None or code is None or initial is None:
        console.print()
        console.print(f"[bold cyan]--- Add Vehicle ({session.year}) ---[/bold cyan]")
        console.print()
    if plate is None:
        plate = Prompt.ask("  License plate")
    if code is None:
        code = Prompt.ask("  Internal code")

    try:
        if initial is None:
            initial = Prompt.ask("  Initial mileage")
        initial_km = parse_mileage(initial, "initial mileage")

        added = {}

        def change(force_plate: bool) -> YearDataset:
            dataset, vehicle = session.dataset.add_vehicle(
                code, plate, initial_km, notes=notes, force=force_plate
            )
            added["vehicle"] = vehicle
            return dataset

        _apply_with_plate_check(session, change, force)
    except FleetkmError as e:
        fail(e)

    session.save()
    vehicle = added["vehicle"]
    logger.info("Added vehicle %s (%s) to %s", vehicle.id, vehicle.plate, session.year)
    console.print()
    console.print(
        success_panel(f"Vehicle {vehicle.plate} (code {vehicle.internal_code}) added, id {vehicle.id}.")
    )


def run_edit(
    ctx: CliContext,
    vehicle_id: int,
    plate: Optional[str] = None,
    code: Optional[str] = None,
    initial: Optional[str] = None,
    notes: Optional[str] = None,
    sold: Optional[bool] = None,
    force: bool = False,
) -> None:
    """Change plate, code, initial mileage, notes or sold flag."""
    session = ctx.open_session()

    try:
        vehicle = session.dataset.get_vehicle(vehicle_id)
        changes: dict = {}
        if plate is not None:
            changes["plate"] = plate
        if code is not None:
            changes["internal_code"] = code
        if initial is not None:
            initial_km = parse_mileage(initial, "initial mileage")
            if initial_km is None:
                raise InvalidInputError("initial mileage", "Initial mileage is required.")
            changes["initial_mileage"] = initial_km
        if notes is not None:
            changes["notes"] = notes
        if sold is not None:
            changes["is_sold"] = sold

        if not changes:
            console.print()
            console.print("[dim]  Nothing to change.[/dim]")
            return

        updated = vehicle.edited(**changes)
        _apply_with_plate_check(
            session,
            lambda force_plate: session.dataset.update_vehicle(updated, force=force_plate),
            force,
        )
    except FleetkmError as e:
        fail(e)

    session.save()
    logger.info("Edited vehicle %s: %s", vehicle_id, sorted(changes))
    console.print()
    console.print(success_panel(f"Vehicle {updated.plate} updated."))


def run_delete(ctx: CliContext, vehicle_id: int, yes: bool = False) -> None:
    """Delete a vehicle after confirmation."""
    session = ctx.open_session()

    try:
        vehicle = session.dataset.get_vehicle(vehicle_id)
    except FleetkmError as e:
        fail(e)

    console.print()
    if not yes and not Confirm.ask(
        f"  Delete vehicle [bold]{vehicle.plate}[/bold] (code {vehicle.internal_code})?",
        default=False,
    ):
        console.print("[dim]  Cancelled.[/dim]")
        return

    session.apply(session.dataset.remove_vehicle(vehicle_id))
    session.save()
    logger.info("Deleted vehicle %s from %s", vehicle_id, session.year)
    console.print(success_panel(f"Vehicle {vehicle.plate} deleted."))


def run_swap(ctx: CliContext, first_id: int, second_id: int) -> None:
    """Swap internal codes between two vehicles."""
    session = ctx.open_session()

    try:
        session.apply(session.dataset.swap_codes(first_id, second_id))
        first = session.dataset.get_vehicle(first_id)
        second = session.dataset.get_vehicle(second_id)
    except FleetkmError as e:
        fail(e)

    session.save()
    console.print()
    console.print(
        success_panel(
            f"{first.plate} is now code {first.internal_code}, "
            f"{second.plate} is now code {second.internal_code}."
        )
    )


def run_reading(ctx: CliContext, vehicle_id: int, slot: str, value: str) -> None:
    """Record or clear one reading and show the resulting warnings."""
    session = ctx.open_session()

    try:
        position = parse_slot(slot)
        km = parse_mileage(value)
        session.apply(session.dataset.set_reading(vehicle_id, position, km))
        vehicle = session.dataset.get_vehicle(vehicle_id)
    except FleetkmError as e:
        fail(e)

    session.save()
    label = "initial" if position == 0 else f"Q{position}"
    console.print()
    console.print(success_panel(f"{vehicle.plate} {label}: {format_km(km)} km"))

    if validity_flags(vehicle)[position]:
        console.print(
            warning_panel(
                "This reading is lower than an adjacent one. Check the odometer values."
            )
        )
