"""Working state for the year being edited."""

import logging
from typing import Callable, Optional

from fleetkm.core.codec import build_backup
from fleetkm.core.reconcile import (
    DecisionType,
    ImportReport,
    StaleImportWarning,
    decide,
    resolve,
)
from fleetkm.core.store import DatasetStore
from fleetkm.exceptions import PreviousYearNotFoundError, StoreReadError
from fleetkm.models.backup import Backup, NormalizedBackup
from fleetkm.models.dataset import YearDataset, now_ms
from fleetkm.models.settings import DEFAULT_TOLERANCE_MS
from fleetkm.models.vehicle import Vehicle

logger = logging.getLogger(__name__)

ConfirmStale = Callable[[StaleImportWarning], bool]


class LedgerSession:
    """The displayed year, its unsaved vehicles and the backing store.

    Edits replace ``dataset``; ``save()`` persists it and touches the year's
    timestamp. Loading from disk or applying an import must not look like a
    fresh edit, so those skip the next save.
    """

    def __init__(
        self,
        store: DatasetStore,
        year: int,
        tolerance_ms: int = DEFAULT_TOLERANCE_MS,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.store = store
        self.year = year
        self.tolerance_ms = tolerance_ms
        self._clock = clock or now_ms
        self._dataset = YearDataset(year=year)
        self._last_updated = 0
        self._company_name = ""
        self._skip_next_save = False

    # --- State ---

    @property
    def dataset(self) -> YearDataset:
        return self._dataset

    @property
    def vehicles(self) -> list[Vehicle]:
        return self._dataset.vehicles

    @property
    def last_updated(self) -> int:
        """Epoch ms of the last save of this year; 0 if never saved."""
        return self._last_updated

    @property
    def company_name(self) -> str:
        return self._company_name

    def load(self) -> "LedgerSession":
        """Read the year from the store.

        An unreadable year file is logged and treated as empty.
        """
        try:
            stored = self.store.get(self.year)
        except StoreReadError as e:
            logger.warning("Failed to read %s: %s", self.year, e.details)
            stored = None

        self._dataset = YearDataset(year=self.year, vehicles=stored or [])
        self._last_updated = self.store.get_timestamp(self.year) if stored is not None else 0
        self._company_name = self.store.get_company_name()
        self._skip_next_save = True
        logger.info(
            "Loaded %s: %d vehicles, last updated %s",
            self.year,
            len(self._dataset.vehicles),
            self._last_updated,
        )
        return self

    def apply(self, dataset: YearDataset) -> None:
        """Replace the in-memory year with an edited dataset."""
        if dataset.year != self.year:
            raise ValueError(f"Dataset for {dataset.year} applied to session for {self.year}")
        self._dataset = dataset
        self._skip_next_save = False

    def save(self) -> bool:
        """Persist the year and touch its timestamp.

        Returns:
            False when the save was skipped because nothing was edited since
            the last load or import.
        """
        if self._skip_next_save:
            self._skip_next_save = False
            return False

        now = self._clock()
        self.store.put(self.year, self._dataset.vehicles)
        self.store.put_timestamp(self.year, now)
        self._last_updated = now
        logger.debug("Saved %s at %s", self.year, now)
        return True

    def set_company_name(self, name: str) -> None:
        self._company_name = name.strip()
        self.store.put_company_name(self._company_name)

    # --- Tools ---

    def import_previous_year(self) -> int:
        """Replace this year with vehicles carried forward from the previous one.

        Any vehicles already present in this year are discarded.

        Returns:
            Number of vehicles carried forward

        Raises:
            PreviousYearNotFoundError: If the previous year has no stored data
        """
        previous_year = self.year - 1
        try:
            previous = self.store.get(previous_year)
        except StoreReadError as e:
            logger.warning("Failed to read %s: %s", previous_year, e.details)
            previous = None
        if previous is None:
            raise PreviousYearNotFoundError(previous_year)

        seeded = YearDataset.carry_forward(
            YearDataset(year=previous_year, vehicles=previous), now=self._clock()
        )
        self.apply(seeded)
        logger.info("Carried forward %d vehicles from %s", len(seeded.vehicles), previous_year)
        return len(seeded.vehicles)

    def reset_readings(self) -> None:
        self.apply(self._dataset.reset_readings())

    def clear_all(self) -> None:
        self.apply(YearDataset(year=self.year))

    # --- Backup ---

    def build_backup(self) -> Backup:
        """Canonical backup of every stored year.

        The displayed year uses the in-memory vehicles, which may hold
        unsaved edits. Unreadable stored years are skipped.
        """
        datasets: dict[int, list[Vehicle]] = {}
        for year in sorted(self.store.list_years()):
            try:
                stored = self.store.get(year)
            except StoreReadError as e:
                logger.warning("Skipping %s in export: %s", year, e.details)
                continue
            if stored is not None:
                datasets[year] = stored

        datasets[self.year] = self._dataset.vehicles
        return build_backup(datasets, self._company_name, now=self._clock())

    def import_backup(
        self,
        backup: NormalizedBackup,
        confirm_stale: ConfirmStale,
    ) -> ImportReport:
        """Apply a normalized backup year by year.

        Each year is checked against its own stored timestamp; a declined or
        rejected year never blocks the others. The company name is applied
        whatever the per-year outcome.
        """
        report = ImportReport(failed=dict(backup.rejected_years))
        incoming = backup.meta.timestamp
        if incoming is None:
            incoming = self._clock()

        for year in backup.years:
            decision = decide(
                incoming,
                self.store.get_timestamp(year),
                tolerance_ms=self.tolerance_ms,
                year=year,
            )
            confirmed = decision.needs_confirmation and confirm_stale(decision.warning)
            if resolve(decision, confirmed) == DecisionType.REJECT:
                logger.info("Import of %s declined (stale)", year)
                report.rejected.append(year)
                continue

            vehicles = backup.datasets[str(year)]
            self.store.put(year, vehicles)
            self.store.put_timestamp(year, incoming)
            report.accepted.append(year)
            logger.info("Imported %d vehicles into %s", len(vehicles), year)

            if year == self.year:
                self._dataset = YearDataset(year=year, vehicles=vehicles)
                self._last_updated = incoming
                self._skip_next_save = True
                report.current_year_updated = True

        if backup.meta.company_name:
            self.set_company_name(backup.meta.company_name)
            report.company_name = self._company_name

        return report
