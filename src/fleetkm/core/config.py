"""Settings management."""

import logging
from pathlib import Path
from typing import Optional

import platformdirs
import tomli
import tomli_w
from pydantic import ValidationError

from fleetkm.exceptions import ConfigValidationError
from fleetkm.models.settings import AppSettings

logger = logging.getLogger(__name__)


class SettingsManager:
    """Manages the settings.toml file."""

    SETTINGS_FILENAME = "settings.toml"

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        """Initialize settings manager.

        Args:
            config_dir: Override config directory (for testing)
        """
        if config_dir:
            self._config_dir = Path(config_dir)
        else:
            self._config_dir = Path(platformdirs.user_config_dir("fleetkm"))

    @property
    def settings_path(self) -> Path:
        """Path to settings file."""
        return self._config_dir / self.SETTINGS_FILENAME

    @property
    def exists(self) -> bool:
        """Check if settings file exists."""
        return self.settings_path.exists()

    def load(self) -> AppSettings:
        """Load settings, falling back to defaults when no file exists.

        Raises:
            ConfigValidationError: If the file is not valid TOML or fails validation
        """
        if not self.exists:
            return AppSettings()

        try:
            settings_dict = tomli.loads(self.settings_path.read_text(encoding="utf-8"))
        except tomli.TOMLDecodeError as e:
            raise ConfigValidationError("settings.toml", str(e))

        try:
            return AppSettings.model_validate(settings_dict)
        except ValidationError as e:
            raise ConfigValidationError("settings.toml", str(e))

    def save(self, settings: AppSettings) -> None:
        """Write settings to disk."""
        self._config_dir.mkdir(parents=True, exist_ok=True)

        settings_dict = settings.model_dump(mode="json", exclude_none=True)
        self.settings_path.write_text(tomli_w.dumps(settings_dict), encoding="utf-8")
        logger.debug("Settings saved → %s", self.settings_path)

    def delete(self) -> bool:
        """Delete settings file.

        Returns:
            True if file was deleted, False if it didn't exist
        """
        if self.exists:
            self.settings_path.unlink()
            return True
        return False

