"""Data models for fleetkm."""

from fleetkm.models.backup import (
    Backup,
    BackupFormat,
    BackupMeta,
    LegacyArrayPayload,
    MultiYearPayload,
    NormalizedBackup,
    SingleYearPayload,
)
from fleetkm.models.dataset import YearDataset
from fleetkm.models.settings import AppSettings
from fleetkm.models.vehicle import Vehicle

__all__ = [
    # Settings
    "AppSettings",
    # Vehicle
    "Vehicle",
    "YearDataset",
    # Backup
    "Backup",
    "BackupFormat",
    "BackupMeta",
    "LegacyArrayPayload",
    "SingleYearPayload",
    "MultiYearPayload",
    "NormalizedBackup",
]
