"""One reporting year's vehicle list."""

import time
from typing import Optional

from pydantic import BaseModel, Field

from fleetkm.exceptions import (
    DuplicateActiveCodeError,
    DuplicatePlateError,
    InvalidInputError,
    VehicleNotFoundError,
)
from fleetkm.models.vehicle import (
    QUARTERS,
    Vehicle,
    build_vehicle,
    check_mileage,
    code_key,
    plate_key,
)


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


class YearDataset(BaseModel):
    """Ordered vehicles of a single year.

    Every operation returns a new dataset; the original is never modified.
    """

    year: int
    vehicles: list[Vehicle] = Field(default_factory=list)

    # --- Lookup ---

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        """Find a vehicle by id.

        Raises:
            VehicleNotFoundError: If no vehicle has that id
        """
        for vehicle in self.vehicles:
            if vehicle.id == vehicle_id:
                return vehicle
        raise VehicleNotFoundError(vehicle_id)

    def next_id(self, now: Optional[int] = None) -> int:
        """Time-derived id, strictly greater than every existing id."""
        candidate = now if now is not None else now_ms()
        highest = max((v.id for v in self.vehicles), default=0)
        return max(candidate, highest + 1)

    # --- Uniqueness checks ---

    def find_active_code(self, code: str, exclude_id: Optional[int] = None) -> Optional[Vehicle]:
        """Active vehicle already using ``code``, if any."""
        key = code_key(code)
        for vehicle in self.vehicles:
            if vehicle.id == exclude_id or vehicle.is_sold:
                continue
            if code_key(vehicle.internal_code) == key:
                return vehicle
        return None

    def find_plate(self, plate: str, exclude_id: Optional[int] = None) -> Optional[Vehicle]:
        """Vehicle (active or sold) already carrying ``plate``, if any."""
        key = plate_key(plate)
        for vehicle in self.vehicles:
            if vehicle.id != exclude_id and plate_key(vehicle.plate) == key:
                return vehicle
        return None

    def _check_unique(self, candidate: Vehicle, force: bool, exclude_id: Optional[int]) -> None:
        # Plate first: it is only a warning and may be forced past.
        if not force:
            clash = self.find_plate(candidate.plate, exclude_id=exclude_id)
            if clash:
                raise DuplicatePlateError(candidate.plate, clash.internal_code)

        if not candidate.is_sold:
            clash = self.find_active_code(candidate.internal_code, exclude_id=exclude_id)
            if clash:
                raise DuplicateActiveCodeError(candidate.internal_code, clash.plate)

    # --- Edits ---

    def add_vehicle(
        self,
        internal_code: str,
        plate: str,
        initial_mileage: Optional[int],
        notes: Optional[str] = None,
        force: bool = False,
        now: Optional[int] = None,
    ) -> tuple["YearDataset", Vehicle]:
        """Return new dataset with a vehicle appended, plus the new vehicle.

        Raises:
            InvalidInputError: Missing code, plate or initial mileage
            DuplicatePlateError: Plate in use and ``force`` not set
            DuplicateActiveCodeError: Code in use by an active vehicle
        """
        if not internal_code.strip():
            raise InvalidInputError("internal code", "Internal code is required.")
        if not plate.strip():
            raise InvalidInputError("plate", "Plate is required.")
        if initial_mileage is None:
            raise InvalidInputError("initial mileage", "Initial mileage is required.")
        check_mileage(initial_mileage, "initial mileage")

        vehicle = build_vehicle(
            {
                "id": self.next_id(now),
                "internal_code": internal_code,
                "plate": plate,
                "notes": notes,
                "initial_mileage": initial_mileage,
            }
        )
        self._check_unique(vehicle, force=force, exclude_id=None)

        return self.model_copy(update={"vehicles": [*self.vehicles, vehicle]}), vehicle

    def update_vehicle(self, updated: Vehicle, force: bool = False) -> "YearDataset":
        """Return new dataset with the vehicle of the same id replaced.

        Raises:
            VehicleNotFoundError: If the id is unknown
            DuplicatePlateError: Plate in use elsewhere and ``force`` not set
            DuplicateActiveCodeError: Code in use by another active vehicle
        """
        self.get_vehicle(updated.id)
        self._check_unique(updated, force=force, exclude_id=updated.id)
        return self._replace({updated.id: updated})

    def set_reading(self, vehicle_id: int, slot: int, value: Optional[int]) -> "YearDataset":
        """Set a reading; slot 0 is the initial mileage, 1-4 the quarters."""
        vehicle = self.get_vehicle(vehicle_id)
        if slot == 0:
            changed = vehicle.with_initial_mileage(value)
        else:
            changed = vehicle.with_quarter_reading(slot - 1, value)
        return self._replace({vehicle_id: changed})

    def remove_vehicle(self, vehicle_id: int) -> "YearDataset":
        """Return new dataset without the vehicle."""
        self.get_vehicle(vehicle_id)
        remaining = [v for v in self.vehicles if v.id != vehicle_id]
        return self.model_copy(update={"vehicles": remaining})

    def swap_codes(self, first_id: int, second_id: int) -> "YearDataset":
        """Exchange the internal codes of two vehicles in one step."""
        if first_id == second_id:
            raise InvalidInputError("swap", "Choose two different vehicles.")
        first = self.get_vehicle(first_id)
        second = self.get_vehicle(second_id)

        return self._replace(
            {
                first_id: first.model_copy(update={"internal_code": second.internal_code}),
                second_id: second.model_copy(update={"internal_code": first.internal_code}),
            }
        )

    def reset_readings(self) -> "YearDataset":
        """Return new dataset with every reading cleared."""
        cleared = [
            v.model_copy(
                update={
                    "initial_mileage": None,
                    "quarter_end_mileage": (None,) * QUARTERS,
                }
            )
            for v in self.vehicles
        ]
        return self.model_copy(update={"vehicles": cleared})

    def _replace(self, changes: dict[int, Vehicle]) -> "YearDataset":
        vehicles = [changes.get(v.id, v) for v in self.vehicles]
        return self.model_copy(update={"vehicles": vehicles})

    # --- Year rollover ---

    @classmethod
    def carry_forward(
        cls, previous: "YearDataset", now: Optional[int] = None
    ) -> "YearDataset":
        """Seed the following year from ``previous``.

        Sold vehicles are dropped. Each kept vehicle gets a fresh id, starts
        from its last known reading and has empty quarters. Notes are kept.
        """
        base_id = now if now is not None else now_ms()
        vehicles = [
            v.model_copy(
                update={
                    "id": base_id + index,
                    "initial_mileage": v.last_reading,
                    "quarter_end_mileage": (None,) * QUARTERS,
                    "is_sold": False,
                }
            )
            for index, v in enumerate(v for v in previous.vehicles if not v.is_sold)
        ]
        return cls(year=previous.year + 1, vehicles=vehicles)
