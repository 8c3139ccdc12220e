# pylint: disable=missing-module-docstring,missing-function-docstring,invalid-name,unused-argument,redefined-outer-name
from unittest.mock import MagicMock

import ee
import pytest

from fakes import FakeImage, StubIndex
from regionstats.core.run_config import RunConfig
from regionstats.ingestion.eemanager import EarthEngineManager
from regionstats.ingestion.sensorspec import SensorSpec


@pytest.fixture(autouse=True)
def mock_ee(monkeypatch):
    """Keep every test away from real Earth Engine authentication."""
    monkeypatch.setattr(ee, "Initialize", lambda *args, **kwargs: None)
    monkeypatch.setattr(ee, "Authenticate", lambda *args, **kwargs: None)
    monkeypatch.setattr(ee, "ServiceAccountCredentials", lambda a, b: MagicMock())
    monkeypatch.delenv("EARTHENGINE_TOKEN", raising=False)
    monkeypatch.delenv("REGIONSTATS_SENSOR_SPECS", raising=False)


@pytest.fixture
def numpy_ee(monkeypatch):
    """Route ``ee.Image(constant)`` to the numpy-backed fake."""
    monkeypatch.setattr(ee, "Image", FakeImage.constant)


@pytest.fixture
def manager():
    return EarthEngineManager(logger=MagicMock())


@pytest.fixture
def l8_sensor():
    return SensorSpec.from_collection_id("LANDSAT/LC08/C02/T1_L2")


@pytest.fixture
def stub_index():
    return StubIndex({2020: 12, 2021: 0, 2022: 7})


@pytest.fixture
def run_config():
    return RunConfig(
        roi="projects/demo/assets/roi",
        start_date="2020-01-01",
        end_date="2023-01-01",
        years=[2020, 2021, 2022],
    )
