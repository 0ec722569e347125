"""Application settings model."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_TOLERANCE_MS = 1000
DEFAULT_BACKUP_FILENAME = "backup_completo_camion.json"


class AppSettings(BaseModel):
    """User settings stored in settings.toml."""

    # Schema version for migrations
    version: int = Field(default=1, description="Settings schema version")

    data_dir: Optional[Path] = Field(
        default=None,
        description="Where year files are stored; platform data dir when unset",
    )
    stale_tolerance_ms: int = Field(
        default=DEFAULT_TOLERANCE_MS,
        ge=0,
        description="Clock rounding allowed before an import counts as stale",
    )
    backup_filename: str = Field(
        default=DEFAULT_BACKUP_FILENAME,
        min_length=1,
        description="Default file name for exports",
    )
