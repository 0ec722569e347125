"""Shared test fixtures for fleetkm."""

import pytest

from fleetkm.core.store import MemoryDatasetStore
from fleetkm.models.vehicle import Vehicle

# 2025-01-15 10:00:00 UTC in epoch ms
NOW = 1736935200000


@pytest.fixture
def temp_config_dir(tmp_path):
    """Provide isolated config directory for tests."""
    config_dir = tmp_path / ".config" / "fleetkm"
    config_dir.mkdir(parents=True)
    return config_dir


@pytest.fixture
def temp_data_dir(tmp_path):
    """Provide isolated data directory for tests."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def memory_store():
    return MemoryDatasetStore()


@pytest.fixture
def clock():
    """Controllable epoch-ms clock; advance with ``clock.now += n``."""

    class Clock:
        now = NOW

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def truck():
    return Vehicle(
        id=1,
        internal_code="12",
        plate="GG949BC",
        initial_mileage=227000,
        quarter_end_mileage=(237500, 248000, None, None),
    )


@pytest.fixture
def fleet(truck):
    """Three vehicles: one plain, one annotated, one sold."""
    return [
        truck,
        Vehicle(
            id=2,
            internal_code="9",
            plate="FX123AB",
            notes="Tachograph replaced",
            initial_mileage=50000,
            quarter_end_mileage=(55000, None, 61000, 64000),
        ),
        Vehicle(
            id=3,
            internal_code="12",
            plate="DZ555ZZ",
            is_sold=True,
            initial_mileage=900000,
            quarter_end_mileage=(905000, None, None, None),
        ),
    ]
