"""Backup file models.

Three shapes are read; only the canonical v2 shape is written:

* legacy: a bare JSON array of vehicle records (year not recorded)
* v1: ``{"meta": {..., "year"?}, "data": [...]}`` (one year)
* v2: ``{"meta": {...}, "datasets": {"2024": [...], ...}}`` (multi-year)
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from fleetkm.models.vehicle import Vehicle

CURRENT_VERSION = 2


class BackupFormat(str, Enum):
    """Detected payload shape."""

    LEGACY_ARRAY = "legacy_array"
    SINGLE_YEAR = "v1"
    MULTI_YEAR = "v2"


class BackupMeta(BaseModel):
    """Backup header."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = CURRENT_VERSION
    timestamp: Optional[int] = Field(default=None, description="Epoch milliseconds")
    year: Optional[int] = Field(default=None, description="v1 only")
    company_name: Optional[str] = Field(default=None, alias="companyName")


# --- Input variants (records are validated per year later) ---


class LegacyArrayPayload(BaseModel):
    records: list[Any]


class SingleYearPayload(BaseModel):
    meta: BackupMeta
    data: list[Any]


class MultiYearPayload(BaseModel):
    meta: BackupMeta
    datasets: dict[str, Any]


InputPayload = LegacyArrayPayload | SingleYearPayload | MultiYearPayload


# --- Canonical form ---


class Backup(BaseModel):
    """Canonical multi-year backup."""

    meta: BackupMeta
    datasets: dict[str, list[Vehicle]] = Field(default_factory=dict)

    @property
    def timestamp(self) -> int:
        return self.meta.timestamp or 0

    @property
    def years(self) -> list[int]:
        return sorted(int(key) for key in self.datasets)

    def to_payload(self) -> dict:
        """JSON-ready v2 document."""
        meta: dict[str, Any] = {
            "version": CURRENT_VERSION,
            "timestamp": self.meta.timestamp,
        }
        if self.meta.company_name is not None:
            meta["companyName"] = self.meta.company_name
        return {
            "meta": meta,
            "datasets": {
                key: [v.to_record() for v in vehicles]
                for key, vehicles in sorted(self.datasets.items())
            },
        }


class NormalizedBackup(Backup):
    """Result of reading any supported shape.

    ``rejected_years`` maps year keys that failed validation to the reason;
    those years are absent from ``datasets``.
    """

    source_format: BackupFormat
    rejected_years: dict[str, str] = Field(default_factory=dict)
