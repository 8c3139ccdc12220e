"""Resolution of the calendar years a run should process."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional

import ee

from regionstats.core.logger import Logger
from regionstats.ingestion.eemanager import EarthEngineManager, ee_manager


class YearRangeResolver:
    """
    Produce an ascending, deduplicated list of years to process.

    Years come from an explicit list when one is given, otherwise from the
    acquisition dates of the filtered imagery ("imagery") or from the raw
    calendar span of the search range ("date_span").
    """

    def __init__(
        self,
        ee_manager_instance: EarthEngineManager = ee_manager,
        logger: logging.Logger | None = None,
    ) -> None:
        self.ee_manager = ee_manager_instance
        self.logger = logger or Logger.get_logger(__name__)

    def resolve(
        self,
        start_date: date,
        end_date: date,
        explicit: Optional[Iterable] = None,
        source: str = "imagery",
        collection: Optional[ee.ImageCollection] = None,
    ) -> List[int]:
        explicit = list(explicit or [])
        if explicit:
            years = self.explicit_years(explicit)
            self.logger.info("Using explicit years: %s", years)
            return years
        if source == "date_span":
            years = self.years_from_date_span(start_date, end_date)
        elif source == "imagery":
            if collection is None:
                raise ValueError("Year discovery from imagery needs a collection")
            years = self.years_from_imagery(collection)
        else:
            raise ValueError(f"Unknown year source '{source}'")
        if not years:
            self.logger.warning("No years resolved between %s and %s", start_date, end_date)
        else:
            self.logger.info("Resolved %d year(s) from %s: %s", len(years), source, years)
        return years

    @staticmethod
    def explicit_years(values: Iterable) -> List[int]:
        return sorted({int(v) for v in values})

    @staticmethod
    def years_from_date_span(start_date: date, end_date: date) -> List[int]:
        # end_date is exclusive
        last = end_date - timedelta(days=1)
        return list(range(start_date.year, last.year + 1))

    def years_from_imagery(self, collection: ee.ImageCollection) -> List[int]:
        """Distinct acquisition years in *collection*, one blocking evaluation."""
        years = (
            ee.List(collection.aggregate_array("system:time_start"))
            .map(lambda t: ee.Date(t).get("year"))
            .distinct()
            .sort()
        )
        info = self.ee_manager.get_info(years, what="year discovery") or []
        return sorted({int(y) for y in info})
