# regionstats/analytics/stats.py

"""Single-pass min/max/mean reductions over the ROI and over buffered sites."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import ee

from regionstats.core.logger import Logger
from regionstats.ingestion.eemanager import EarthEngineManager, ee_manager
from .indices import STAT_NAMES, SpectralIndex
from .results import RegionStats, SiteStats
from .windows import TimeWindow

SITE_NAME_PROPERTY = "name"


def combined_reducer():
    """min, max and mean evaluated over the same input pixels in one pass."""
    return (
        ee.Reducer.min()
        .combine(reducer2=ee.Reducer.max(), sharedInputs=True)
        .combine(reducer2=ee.Reducer.mean(), sharedInputs=True)
    )


def pick_stats(
    props: Mapping[str, Any], bands: Sequence[str]
) -> Dict[str, Optional[float]]:
    """
    Read ``<band>_<stat>`` values from reducer output. Single-band outputs may
    come back as bare ``min``/``max``/``mean`` names.
    """
    single = len(bands) == 1
    stats: Dict[str, Optional[float]] = {}
    for band in bands:
        for stat in STAT_NAMES:
            key = f"{band}_{stat}"
            value = props.get(key)
            if value is None and single:
                value = props.get(stat)
            stats[key] = None if value is None else float(value)
    return stats


class StatsAggregator:
    """Reduce index images to RegionStats / SiteStats at a fixed scale."""

    def __init__(
        self,
        ee_manager_instance: EarthEngineManager = ee_manager,
        scale: int = 30,
        max_pixels: float = 1e13,
        logger: logging.Logger | None = None,
    ) -> None:
        self.ee_manager = ee_manager_instance
        self.scale = scale
        self.max_pixels = max_pixels
        self.logger = logger or Logger.get_logger(__name__)
        self._reducer = None

    @property
    def reducer(self):
        if self._reducer is None:
            self._reducer = combined_reducer()
        return self._reducer

    def region_stats(
        self,
        image: ee.Image,
        geometry,
        index: SpectralIndex,
        window: TimeWindow,
    ) -> RegionStats:
        bands = list(index.reduce_bands)
        reduced = image.select(bands).reduceRegion(
            reducer=self.reducer,
            geometry=geometry,
            scale=self.scale,
            maxPixels=self.max_pixels,
        )
        info = self.ee_manager.get_info(
            reduced, what=f"{index.band} region reduction for {window.label}"
        )
        stats = index.finalize_stats(pick_stats(info or {}, bands))
        return RegionStats(
            index=index.band,
            year=window.year,
            label=window.label,
            stats=stats,
            month=window.month,
            season=window.season,
        )

    def site_stats(
        self,
        image: ee.Image,
        sites,
        index: SpectralIndex,
        year: int,
        buffer: float = 0.0,
    ) -> List[SiteStats]:
        """
        Reduce per site after buffering each point by *buffer* metres. Only the
        site name survives from the input properties.
        """
        bands = list(index.reduce_bands)
        points = ee.FeatureCollection(sites)
        if buffer > 0:
            points = points.map(lambda f: f.buffer(buffer))

        reduced = image.select(bands).reduceRegions(
            collection=points, reducer=self.reducer, scale=self.scale
        )
        keep = [SITE_NAME_PROPERTY, *STAT_NAMES]
        keep += [f"{b}_{s}" for b in bands for s in STAT_NAMES]
        info = self.ee_manager.get_info(
            reduced.select(keep), what=f"{index.band} site reduction for {year}"
        )

        records: List[SiteStats] = []
        unnamed = 0
        for feat in (info or {}).get("features", []):
            props = feat.get("properties") or {}
            name = props.get(SITE_NAME_PROPERTY)
            if name is None:
                unnamed += 1
            records.append(
                SiteStats(
                    name=name,
                    year=year,
                    stats=pick_stats(props, bands),
                    geometry=feat.get("geometry"),
                )
            )
        if unnamed:
            self.logger.warning(
                "%d site(s) have no '%s' property; their records carry no identity",
                unnamed,
                SITE_NAME_PROPERTY,
            )
        return records
