"""Core services for fleetkm."""

from fleetkm.core.config import SettingsManager
from fleetkm.core.session import LedgerSession
from fleetkm.core.store import DatasetStore, FileDatasetStore, MemoryDatasetStore

__all__ = [
    "DatasetStore",
    "FileDatasetStore",
    "LedgerSession",
    "MemoryDatasetStore",
    "SettingsManager",
]
