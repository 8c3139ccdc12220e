"""Staging of high-resolution PNG-style Drive exports for index images."""

from __future__ import annotations

import logging
from typing import List

import ee

from regionstats.analytics.indices import SpectralIndex
from regionstats.analytics.windows import TimeWindow
from .base import BaseService


class ExportStager(BaseService):
    """
    Build ``Export.image.toDrive`` tasks for visualized index images.

    Tasks are only staged; nothing runs until :meth:`start_all` is called (or
    the tasks are started from the Earth Engine task list).
    """

    def __init__(
        self,
        folder: str = "GEE_exports",
        scale: int = 30,
        max_pixels: float = 1e13,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        self.folder = folder
        self.scale = scale
        self.max_pixels = max_pixels
        self.staged: List[ee.batch.Task] = []

    @staticmethod
    def task_name(index: SpectralIndex, window: TimeWindow) -> str:
        if window.month is not None:
            return f"{index.band}_{window.year}_{window.month:02d}_PNG"
        return f"{index.band}_{window.year}_PNG"

    def stage(
        self,
        image: ee.Image,
        index: SpectralIndex,
        window: TimeWindow,
        region,
        vis: dict,
    ) -> ee.batch.Task:
        """Create (but do not start) the export task for one period."""
        name = self.task_name(index, window)
        rgb = image.select(index.band).visualize(
            min=vis["min"], max=vis["max"], palette=vis["palette"]
        )
        task = ee.batch.Export.image.toDrive(
            image=rgb,
            description=name,
            folder=self.folder,
            fileNamePrefix=name,
            region=region,
            scale=self.scale,
            maxPixels=self.max_pixels,
        )
        self.staged.append(task)
        self.logger.info("Staged export %s -> Drive/%s", name, self.folder)
        return task

    def start_all(self) -> int:
        """Start every staged task and return how many were started."""
        for task in self.staged:
            task.start()
        self.logger.info("Started %d export task(s)", len(self.staged))
        return len(self.staged)
