"""Earth Engine access: initialization, collections and LST retrieval."""

from .eemanager import EarthEngineManager, ee_manager
from .lst import LandsatLSTProvider, LSTProvider
from .sensorspec import SensorSpec

__all__ = [
    "EarthEngineManager",
    "ee_manager",
    "LandsatLSTProvider",
    "LSTProvider",
    "SensorSpec",
]
