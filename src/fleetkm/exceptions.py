"""Custom exceptions for fleetkm."""

from typing import Optional


class FleetkmError(Exception):
    """Base exception for all fleetkm errors."""

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)


# ─────────────────────────────────────────────────────────────────────────────
# Ledger Errors
# ─────────────────────────────────────────────────────────────────────────────


class LedgerError(FleetkmError):
    """Base class for errors raised while editing a year's ledger."""


class InvalidInputError(LedgerError):
    """A value entered by the operator was rejected."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        super().__init__(
            f"Invalid value for {field}",
            reason,
        )


class DuplicateActiveCodeError(LedgerError):
    """Two active vehicles would share the same internal code."""

    def __init__(self, code: str, plate: str) -> None:
        self.code = code
        self.plate = plate
        super().__init__(
            f"Internal code '{code}' is already used by vehicle {plate}",
            "Two active vehicles cannot share a code. Use 'fleetkm swap' to exchange codes.",
        )


class DuplicatePlateError(LedgerError):
    """Plate already assigned to another vehicle.

    This is a soft check: callers may retry with ``force=True``.
    """

    def __init__(self, plate: str, code: str) -> None:
        self.plate = plate
        self.code = code
        super().__init__(
            f"Plate {plate} is already assigned to vehicle with code {code}",
            "Save anyway with --force if the plate was deliberately reassigned.",
        )


class VehicleNotFoundError(LedgerError):
    """No vehicle with the given id in the current year."""

    def __init__(self, vehicle_id: int) -> None:
        self.vehicle_id = vehicle_id
        super().__init__(
            f"Vehicle not found: {vehicle_id}",
            "Run 'fleetkm list' to see vehicle ids.",
        )


class PreviousYearNotFoundError(LedgerError):
    """Carry-forward requested but the previous year has no data."""

    def __init__(self, year: int) -> None:
        self.year = year
        super().__init__(
            f"No data stored for {year}",
            "Nothing to carry forward.",
        )


# ─────────────────────────────────────────────────────────────────────────────
# Backup Errors
# ─────────────────────────────────────────────────────────────────────────────


class BackupError(FleetkmError):
    """Base class for backup import/export errors."""


class UnrecognizedFormatError(BackupError):
    """Payload matches none of the known backup shapes."""

    def __init__(self, reason: Optional[str] = None) -> None:
        super().__init__(
            "Unrecognized backup format",
            reason or "Expected a vehicle array, a v1 backup (meta + data) or a v2 backup (meta + datasets).",
        )


class ImportCancelledError(BackupError):
    """Operator declined a required confirmation."""

    def __init__(self, reason: str) -> None:
        super().__init__("Import cancelled", reason)


class BackupReadError(BackupError):
    """Backup source could not be read or parsed."""

    def __init__(self, source: str, reason: Optional[str] = None) -> None:
        super().__init__(
            f"Failed to read backup from {source}",
            reason,
        )


class BackupWriteError(BackupError):
    """Backup destination could not be written."""

    def __init__(self, destination: str, reason: Optional[str] = None) -> None:
        super().__init__(
            f"Failed to write backup to {destination}",
            reason,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Storage & Config Errors
# ─────────────────────────────────────────────────────────────────────────────


class StoreError(FleetkmError):
    """Base class for dataset storage errors."""


class StoreReadError(StoreError):
    """A stored year could not be decoded."""

    def __init__(self, year: int, reason: Optional[str] = None) -> None:
        self.year = year
        super().__init__(
            f"Stored data for {year} is unreadable",
            reason,
        )


class ConfigError(FleetkmError):
    """Base class for configuration errors."""


class ConfigValidationError(ConfigError):
    """Configuration validation failed."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            f"Invalid configuration: {field}",
            reason,
        )
