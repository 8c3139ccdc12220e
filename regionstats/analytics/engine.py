# analytics/engine.py

"""
IndexComputer
-------------
Builds the per-window composite for an index strategy and derives the index
image from it.
"""
import logging

import ee

from regionstats.core.exceptions import NoDataForPeriod
from regionstats.core.logger import Logger
from regionstats.ingestion.eemanager import EarthEngineManager, ee_manager
from .indices import SpectralIndex
from .windows import TimeWindow


class IndexComputer:
    """Turn a time window into a clipped index image, or signal no data."""

    def __init__(
        self,
        index: SpectralIndex,
        region,
        ee_manager_instance: EarthEngineManager = ee_manager,
        logger: logging.Logger | None = None,
    ) -> None:
        self.index = index
        self.region = region
        self.ee_manager = ee_manager_instance
        self.logger = logger or Logger.get_logger(__name__)

    def count(self, stack: ee.ImageCollection) -> int:
        return int(self.ee_manager.get_info(stack.size(), what="image count") or 0)

    def compute(self, window: TimeWindow) -> ee.Image:
        """
        Filter the stack to *window*, composite it and derive the index.

        Raises NoDataForPeriod when the window is empty or matches no images.
        """
        name = self.index.band
        if window.is_empty:
            raise NoDataForPeriod(name, window.year, window.label)

        stack = self.index.stack(window, self.region)
        n = self.count(stack)
        if n == 0:
            raise NoDataForPeriod(name, window.year, window.label)
        self.logger.debug("%s %s: compositing %d image(s)", name, window.label, n)

        composite = self.index.composite_of(stack)
        return self.index.derive(composite).clip(self.region)
