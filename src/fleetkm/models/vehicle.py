"""Vehicle data model."""

import re
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fleetkm.exceptions import InvalidInputError

QUARTERS = 4

# Italian plate layout: two letters, three digits, two letters.
PLATE_PATTERN = re.compile(r"^[A-Z]{2}[0-9]{3}[A-Z]{2}$")

Mileage = Annotated[int, Field(ge=0)]
QuarterReadings = tuple[
    Optional[Mileage], Optional[Mileage], Optional[Mileage], Optional[Mileage]
]


def normalize_plate(value: str) -> str:
    """Uppercase, strip separators and render Italian plates as ``LL NNN LL``."""
    clean = re.sub(r"[^A-Z0-9]", "", value.upper())
    if PLATE_PATTERN.match(clean):
        return f"{clean[:2]} {clean[2:5]} {clean[5:]}"
    return clean


def plate_key(plate: str) -> str:
    """Comparison key for plate duplicate checks."""
    return re.sub(r"\s", "", plate).upper()


def code_key(code: str) -> str:
    """Comparison key for internal code uniqueness checks."""
    return code.strip().upper()


def check_mileage(value: Any, field: str) -> Optional[int]:
    """Validate an odometer value for a mutation.

    Raises:
        InvalidInputError: If value is not a non-negative integer or None
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(field, "Mileage must be a whole number.")
    if value < 0:
        raise InvalidInputError(field, "Mileage cannot be negative.")
    return value


class Vehicle(BaseModel):
    """One vehicle's readings for a reporting year.

    Field names serialize in camelCase to match the backup file format.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int
    internal_code: str = Field(..., alias="internalCode")
    plate: str
    notes: Optional[str] = None
    is_sold: bool = Field(default=False, alias="isSold")
    initial_mileage: Optional[Mileage] = Field(default=None, alias="initialMileage")
    quarter_end_mileage: QuarterReadings = Field(
        default=(None, None, None, None),
        alias="quarterEndMileage",
        description="Odometer at 31/03, 30/06, 30/09 and 31/12",
    )

    @field_validator("internal_code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        """Strip whitespace; the code is required."""
        v = v.strip()
        if not v:
            raise ValueError("Internal code is required")
        return v

    @field_validator("plate")
    @classmethod
    def format_plate(cls, v: str) -> str:
        """Normalize the plate; at least one alphanumeric character is required."""
        normalized = normalize_plate(v)
        if not normalized:
            raise ValueError("Plate is required")
        return normalized

    @field_validator("notes")
    @classmethod
    def blank_notes_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Whitespace-only notes mean no notes."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("is_sold", mode="before")
    @classmethod
    def null_is_not_sold(cls, v: Any) -> Any:
        return False if v is None else v

    # --- Derived views ---

    @property
    def readings(self) -> tuple[Optional[int], ...]:
        """The fixed sequence ``(initial, q1, q2, q3, q4)``."""
        return (self.initial_mileage, *self.quarter_end_mileage)

    @property
    def last_reading(self) -> Optional[int]:
        """Latest present reading (Q4 back to Q1), else the initial mileage."""
        for value in reversed(self.readings):
            if value is not None:
                return value
        return None

    @property
    def has_notes(self) -> bool:
        """True when an active vehicle carries an annotation."""
        return not self.is_sold and bool(self.notes)

    # --- Mutations (return a new Vehicle) ---

    def with_initial_mileage(self, value: Optional[int]) -> "Vehicle":
        """Return a copy with only the initial mileage changed."""
        checked = check_mileage(value, "initial mileage")
        return self.model_copy(update={"initial_mileage": checked})

    def with_quarter_reading(self, index: int, value: Optional[int]) -> "Vehicle":
        """Return a copy with only quarter ``index`` (0-based) changed."""
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < QUARTERS:
            raise InvalidInputError("quarter", f"Quarter index must be 0-{QUARTERS - 1}.")
        checked = check_mileage(value, f"Q{index + 1} mileage")
        readings = list(self.quarter_end_mileage)
        readings[index] = checked
        return self.model_copy(update={"quarter_end_mileage": tuple(readings)})

    def edited(self, **changes: Any) -> "Vehicle":
        """Return a re-validated copy with the given fields changed.

        Raises:
            InvalidInputError: If the result fails validation
        """
        return build_vehicle({**self.model_dump(), **changes})

    def to_record(self) -> dict:
        """Serialize to the canonical backup record."""
        record = self.model_dump(mode="json", by_alias=True)
        if record.get("notes") is None:
            record.pop("notes", None)
        return record


def build_vehicle(data: dict) -> Vehicle:
    """Validate operator-supplied fields into a Vehicle.

    Raises:
        InvalidInputError: With the first validation problem found
    """
    try:
        return Vehicle.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        field = str(error["loc"][0]) if error["loc"] else "vehicle"
        raise InvalidInputError(field, error["msg"]) from e
