"""Fleet-wide aggregates over a year's vehicles."""

import re
from enum import Enum
from typing import Iterable, Sequence

from pydantic import BaseModel

from fleetkm.core.ledger import quarterly_distances
from fleetkm.models.vehicle import QUARTERS, Vehicle


class FleetCounts(BaseModel):
    """Vehicle counts shown in the header.

    The three buckets partition the fleet: a sold vehicle with notes is
    only counted as sold.
    """

    active: int
    sold: int
    with_notes: int

    @property
    def total(self) -> int:
        return self.active + self.sold + self.with_notes


class SortKey(str, Enum):
    """Columns the ledger table can be sorted by."""

    CODE = "code"
    PLATE = "plate"


def quarterly_totals(vehicles: Iterable[Vehicle]) -> list[int]:
    """Element-wise sum of quarterly distances, missing quarters as 0."""
    totals = [0] * QUARTERS
    for vehicle in vehicles:
        for i, distance in enumerate(quarterly_distances(vehicle)):
            totals[i] += distance or 0
    return totals


def grand_total(vehicles: Iterable[Vehicle]) -> int:
    return sum(quarterly_totals(vehicles))


def counts(vehicles: Sequence[Vehicle]) -> FleetCounts:
    """Count sold, annotated and plain active vehicles."""
    sold = sum(1 for v in vehicles if v.is_sold)
    with_notes = sum(1 for v in vehicles if v.has_notes)
    return FleetCounts(
        active=len(vehicles) - sold - with_notes,
        sold=sold,
        with_notes=with_notes,
    )


def _natural_key(value: str) -> list:
    """Split digits from text so "9" sorts before "10"."""
    return [
        (0, int(part), "") if part.isdigit() else (1, 0, part.casefold())
        for part in re.split(r"(\d+)", value)
        if part
    ]


def sorted_vehicles(
    vehicles: Iterable[Vehicle],
    key: SortKey = SortKey.CODE,
    descending: bool = False,
) -> list[Vehicle]:
    """Return vehicles in display order using numeric-aware comparison."""
    attr = "internal_code" if key == SortKey.CODE else "plate"
    return sorted(
        vehicles,
        key=lambda v: _natural_key(getattr(v, attr)),
        reverse=descending,
    )
