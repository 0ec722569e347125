"""Per-invocation CLI state shared by all commands."""

from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import BaseModel
from rich.console import Console

from fleetkm.cli.ui import error_panel
from fleetkm.core.session import LedgerSession
from fleetkm.core.store import FileDatasetStore
from fleetkm.exceptions import FleetkmError
from fleetkm.models.settings import AppSettings

console = Console()


class CliContext(BaseModel):
    """Options given before the command name."""

    year: int
    settings: AppSettings
    data_dir: Optional[Path] = None
    config_dir: Optional[Path] = None

    @property
    def store(self) -> FileDatasetStore:
        return FileDatasetStore(self.data_dir or self.settings.data_dir)

    def open_session(self) -> LedgerSession:
        """Load the selected year from the data directory."""
        return LedgerSession(
            self.store,
            self.year,
            tolerance_ms=self.settings.stale_tolerance_ms,
        ).load()


def fail(error: FleetkmError) -> NoReturn:
    """Print an error panel and exit with status 1."""
    console.print()
    console.print(error_panel(error.message, error.details))
    raise typer.Exit(1)
