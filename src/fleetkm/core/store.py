"""Year-keyed dataset persistence."""

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import platformdirs
import tomli
import tomli_w
from pydantic import TypeAdapter, ValidationError

from fleetkm.exceptions import StoreReadError
from fleetkm.models.vehicle import Vehicle

logger = logging.getLogger(__name__)

_vehicle_list = TypeAdapter(list[Vehicle])


class DatasetStore(ABC):
    """Abstract key-value storage for yearly vehicle lists.

    Implementations hold, per year, the vehicle list and the last-modified
    timestamp (epoch ms), plus one global company name.
    """

    @abstractmethod
    def get(self, year: int) -> Optional[list[Vehicle]]:
        """Vehicles stored for ``year``, or None if the year was never saved."""

    @abstractmethod
    def put(self, year: int, vehicles: list[Vehicle]) -> None:
        """Replace the vehicles stored for ``year``."""

    @abstractmethod
    def get_timestamp(self, year: int) -> int:
        """Last-modified time for ``year``; 0 when unknown."""

    @abstractmethod
    def put_timestamp(self, year: int, timestamp: int) -> None:
        """Record the last-modified time for ``year``."""

    @abstractmethod
    def list_years(self) -> set[int]:
        """Years that have a stored vehicle list."""

    @abstractmethod
    def get_company_name(self) -> str:
        """Company name shown on reports; empty when unset."""

    @abstractmethod
    def put_company_name(self, name: str) -> None:
        """Store the company name."""


class MemoryDatasetStore(DatasetStore):
    """Dict-backed store, used by tests."""

    def __init__(self) -> None:
        self._vehicles: dict[int, list[Vehicle]] = {}
        self._timestamps: dict[int, int] = {}
        self._company_name = ""

    def get(self, year: int) -> Optional[list[Vehicle]]:
        vehicles = self._vehicles.get(year)
        return list(vehicles) if vehicles is not None else None

    def put(self, year: int, vehicles: list[Vehicle]) -> None:
        self._vehicles[year] = list(vehicles)

    def get_timestamp(self, year: int) -> int:
        return self._timestamps.get(year, 0)

    def put_timestamp(self, year: int, timestamp: int) -> None:
        self._timestamps[year] = timestamp

    def list_years(self) -> set[int]:
        return set(self._vehicles)

    def get_company_name(self) -> str:
        return self._company_name

    def put_company_name(self, name: str) -> None:
        self._company_name = name


class FileDatasetStore(DatasetStore):
    """Stores each year as JSON and the metadata as TOML in one directory.

    Layout::

        trucks_2024.json   # canonical vehicle records
        trucks_2025.json
        meta.toml          # company_name, [timestamps]
    """

    DATA_PREFIX = "trucks_"
    META_FILENAME = "meta.toml"

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        """Initialize store.

        Args:
            data_dir: Override data directory (for testing)
        """
        if data_dir:
            self._data_dir = Path(data_dir)
        else:
            self._data_dir = Path(platformdirs.user_data_dir("fleetkm"))

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def meta_path(self) -> Path:
        return self._data_dir / self.META_FILENAME

    def year_path(self, year: int) -> Path:
        return self._data_dir / f"{self.DATA_PREFIX}{year}.json"

    # --- Vehicles ---

    def get(self, year: int) -> Optional[list[Vehicle]]:
        """Load a year.

        Raises:
            StoreReadError: If the file exists but cannot be read or decoded
        """
        path = self.year_path(year)
        if not path.exists():
            return None

        try:
            return _vehicle_list.validate_json(path.read_bytes())
        except (OSError, ValidationError) as e:
            raise StoreReadError(year, str(e))

    def put(self, year: int, vehicles: list[Vehicle]) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        records = [v.to_record() for v in vehicles]
        self.year_path(year).write_text(json.dumps(records, indent=2), encoding="utf-8")
        logger.debug("Stored %d vehicles for %s", len(vehicles), year)

    def list_years(self) -> set[int]:
        if not self._data_dir.exists():
            return set()

        years = set()
        for path in self._data_dir.glob(f"{self.DATA_PREFIX}*.json"):
            suffix = path.stem[len(self.DATA_PREFIX) :]
            if re.fullmatch(r"[0-9]+", suffix):
                years.add(int(suffix))
        return years

    # --- Metadata ---

    def _read_meta(self) -> dict:
        if not self.meta_path.exists():
            return {}
        try:
            return tomli.loads(self.meta_path.read_text(encoding="utf-8"))
        except tomli.TOMLDecodeError:
            logger.warning("Ignoring unreadable %s", self.meta_path)
            return {}

    def _write_meta(self, meta: dict) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self.meta_path.write_text(tomli_w.dumps(meta), encoding="utf-8")

    def get_timestamp(self, year: int) -> int:
        value = self._read_meta().get("timestamps", {}).get(str(year), 0)
        return value if isinstance(value, int) else 0

    def put_timestamp(self, year: int, timestamp: int) -> None:
        meta = self._read_meta()
        meta.setdefault("timestamps", {})[str(year)] = timestamp
        self._write_meta(meta)

    def get_company_name(self) -> str:
        value = self._read_meta().get("company_name", "")
        return value if isinstance(value, str) else ""

    def put_company_name(self, name: str) -> None:
        meta = self._read_meta()
        meta["company_name"] = name
        self._write_meta(meta)
