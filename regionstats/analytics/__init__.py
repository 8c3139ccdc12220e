"""Index strategies, time windows, year resolution and reductions."""

from .indices import EVI, LST, NDVI, SpectralIndex, create_index
from .windows import TimeWindow

__all__ = ["SpectralIndex", "NDVI", "EVI", "LST", "create_index", "TimeWindow"]
