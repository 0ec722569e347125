"""Per-vehicle mileage derivations.

All functions here are pure: they read a Vehicle and never modify it.
Readings are handled as the fixed sequence ``[initial, q1, q2, q3, q4]``;
position 0 is the initial mileage, positions 1-4 the quarter-end readings.
"""

import re
from typing import Optional, Sequence

from fleetkm.exceptions import InvalidInputError
from fleetkm.models.vehicle import QUARTERS, Vehicle


def _previous_present(readings: Sequence[Optional[int]], position: int) -> Optional[int]:
    """Index of the nearest present reading strictly before ``position``."""
    for i in range(position - 1, -1, -1):
        if readings[i] is not None:
            return i
    return None


def quarterly_distances(vehicle: Vehicle) -> list[Optional[int]]:
    """Distance traveled in each quarter.

    A quarter without a reading has no distance (None). Otherwise the baseline
    is the nearest earlier present reading; a missing baseline or a baseline
    above the current reading yields 0.
    """
    readings = vehicle.readings
    distances: list[Optional[int]] = []

    for position in range(1, QUARTERS + 1):
        current = readings[position]
        if current is None:
            distances.append(None)
            continue

        baseline_at = _previous_present(readings, position)
        if baseline_at is None:
            distances.append(0)
            continue

        baseline = readings[baseline_at]
        distances.append(current - baseline if current >= baseline else 0)

    return distances


def yearly_total(vehicle: Vehicle) -> int:
    """Sum of the quarterly distances, missing quarters counting as 0."""
    return sum(d or 0 for d in quarterly_distances(vehicle))


def validity_flags(vehicle: Vehicle) -> list[bool]:
    """Flag readings lower than the nearest earlier present reading.

    Returns five booleans for ``[initial, q1, q2, q3, q4]``; True means
    flagged. Both members of a decreasing pair are flagged. Absent readings
    are never flagged. Flags are a warning for display only.
    """
    readings = vehicle.readings
    flags = [False] * len(readings)

    for position in range(1, len(readings)):
        current = readings[position]
        if current is None:
            continue
        previous_at = _previous_present(readings, position)
        if previous_at is not None and readings[previous_at] > current:
            flags[previous_at] = True
            flags[position] = True

    return flags


def has_warnings(vehicle: Vehicle) -> bool:
    return any(validity_flags(vehicle))


def parse_mileage(text: str, field: str = "mileage") -> Optional[int]:
    """Parse an odometer value typed by the operator.

    Accepts Italian thousands separators ("227.499") and blanks. An empty
    string or "-" clears the reading.

    Raises:
        InvalidInputError: If text is negative or not a number
    """
    cleaned = text.strip()
    if cleaned in ("", "-"):
        return None
    if cleaned.startswith("-"):
        raise InvalidInputError(field, "Mileage cannot be negative.")

    digits = re.sub(r"[.\s]", "", cleaned)
    if not re.fullmatch(r"[0-9]+", digits):
        raise InvalidInputError(field, f"'{text}' is not a whole number.")
    return int(digits)
