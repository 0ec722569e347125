"""Tests for SettingsManager."""

import pytest

from fleetkm.core.config import SettingsManager
from fleetkm.exceptions import ConfigValidationError
from fleetkm.models.settings import DEFAULT_BACKUP_FILENAME, DEFAULT_TOLERANCE_MS, AppSettings


class TestSettingsManager:
    def test_defaults_without_file(self, temp_config_dir):
        manager = SettingsManager(config_dir=temp_config_dir)
        settings = manager.load()
        assert settings.stale_tolerance_ms == DEFAULT_TOLERANCE_MS
        assert settings.backup_filename == DEFAULT_BACKUP_FILENAME
        assert settings.data_dir is None

    def test_save_and_load(self, temp_config_dir, tmp_path):
        manager = SettingsManager(config_dir=temp_config_dir)
        manager.save(
            AppSettings(data_dir=tmp_path / "data", stale_tolerance_ms=2500, backup_filename="fleet.json")
        )
        loaded = manager.load()
        assert loaded.data_dir == tmp_path / "data"
        assert loaded.stale_tolerance_ms == 2500
        assert loaded.backup_filename == "fleet.json"

    def test_unset_data_dir_not_written(self, temp_config_dir):
        manager = SettingsManager(config_dir=temp_config_dir)
        manager.save(AppSettings())
        assert "data_dir" not in manager.settings_path.read_text()

    def test_exists_property(self, temp_config_dir):
        manager = SettingsManager(config_dir=temp_config_dir)
        assert manager.exists is False
        manager.save(AppSettings())
        assert manager.exists is True

    def test_save_creates_directory(self, tmp_path):
        manager = SettingsManager(config_dir=tmp_path / "a" / "b")
        manager.save(AppSettings())
        assert manager.settings_path.exists()

    def test_invalid_toml(self, temp_config_dir):
        manager = SettingsManager(config_dir=temp_config_dir)
        manager.settings_path.write_text("stale_tolerance_ms = ")
        with pytest.raises(ConfigValidationError):
            manager.load()

    def test_invalid_value(self, temp_config_dir):
        manager = SettingsManager(config_dir=temp_config_dir)
        manager.settings_path.write_text("stale_tolerance_ms = -1\n")
        with pytest.raises(ConfigValidationError, match="settings.toml"):
            manager.load()

    def test_delete(self, temp_config_dir):
        manager = SettingsManager(config_dir=temp_config_dir)
        assert manager.delete() is False
        manager.save(AppSettings())
        assert manager.delete() is True
        assert manager.exists is False
