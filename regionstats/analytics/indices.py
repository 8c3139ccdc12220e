"""
Index strategies: how each index selects its image stack, composites it and
derives the output band(s).

The pipeline is written once against :class:`SpectralIndex`; NDVI, EVI and LST
differ only in the strategy plugged in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Tuple

import ee

from regionstats.core.config import ConfigManager
from regionstats.core.run_config import INDEX_KEYS, RunConfig
from regionstats.ingestion.lst import LandsatLSTProvider, LSTProvider
from regionstats.ingestion.sensorspec import SensorSpec
from .windows import TimeWindow

KELVIN_OFFSET = 273.15
STAT_NAMES = ("min", "max", "mean")


class SpectralIndex(ABC):
    """Base strategy for one index kind."""

    key: str = ""
    band: str = ""
    composite: str = "median"

    @property
    def reduce_bands(self) -> Tuple[str, ...]:
        """Bands reduced on the server."""
        return (self.band,)

    @property
    def output_bands(self) -> Tuple[str, ...]:
        """Bands whose statistics appear in result records."""
        return (self.band,)

    def stat_keys(self) -> Tuple[str, ...]:
        return tuple(f"{b}_{s}" for b in self.output_bands for s in STAT_NAMES)

    def window(self, year: int, config: RunConfig) -> TimeWindow:
        """Full-year window, or the configured month."""
        if config.month is None:
            return TimeWindow.for_year(year, self.composite)
        return TimeWindow.for_month(year, config.month)

    @abstractmethod
    def search_collection(self, start: str, end: str, region) -> ee.ImageCollection:
        """Every usable image in the whole search range (for year discovery)."""

    @abstractmethod
    def stack(self, window: TimeWindow, region) -> ee.ImageCollection:
        """Return the filtered image stack for *window*."""

    @abstractmethod
    def derive(self, composite: ee.Image) -> ee.Image:
        """Compute the index band(s) from a composite."""

    def composite_of(self, stack: ee.ImageCollection) -> ee.Image:
        if self.composite == "mean":
            return stack.mean()
        return stack.median()

    def finalize_stats(self, stats: Dict[str, Optional[float]]) -> Dict[str, Optional[float]]:
        """Hook for statistics derived client-side from the reduced ones."""
        return dict(stats)

    def vis_params(self, config: ConfigManager | None = None) -> dict:
        return (config or ConfigManager()).vis_params(self.key)


class ReflectanceIndex(SpectralIndex):
    """Index computed from surface-reflectance bands of the base collection."""

    aliases: Sequence[str] = ()

    def __init__(self, base_collection: ee.ImageCollection, sensor: SensorSpec):
        self.base_collection = base_collection
        self.sensor = sensor

    @property
    def bands(self) -> list[str]:
        return [self.sensor.band(a) for a in self.aliases]

    def search_collection(self, start: str, end: str, region) -> ee.ImageCollection:
        # base collection is already filtered to the search range and ROI
        return self.base_collection

    def stack(self, window: TimeWindow, region) -> ee.ImageCollection:
        start, end = window.ee_range()
        return self.base_collection.filterDate(start, end).select(self.bands)


class NDVI(ReflectanceIndex):
    """(NIR - RED) / (NIR + RED)."""

    key = "ndvi"
    band = "NDVI"
    aliases = ("red", "nir")

    def derive(self, composite: ee.Image) -> ee.Image:
        nir, red = self.sensor.band("nir"), self.sensor.band("red")
        return composite.normalizedDifference([nir, red]).rename(self.band)


class EVI(ReflectanceIndex):
    """2.5 * (NIR - RED) / (NIR + 6 RED - 7.5 BLUE + 1), clamped to [-1, 1]."""

    key = "evi"
    band = "EVI"
    aliases = ("blue", "red", "nir")

    def derive(self, composite: ee.Image) -> ee.Image:
        nir = composite.select(self.sensor.band("nir"))
        red = composite.select(self.sensor.band("red"))
        blue = composite.select(self.sensor.band("blue"))
        numerator = nir.subtract(red).multiply(2.5)
        denominator = nir.add(red.multiply(6.0)).subtract(blue.multiply(7.5)).add(1.0)
        evi = numerator.divide(denominator).rename(self.band)
        return evi.max(-1).min(1)


class LST(SpectralIndex):
    """Seasonal mean land-surface temperature, Kelvin plus Celsius."""

    key = "lst"
    band = "LST"
    composite = "mean"
    celsius_band = "LST_C"

    def __init__(
        self,
        provider: LSTProvider | None = None,
        sat: str = "L8",
        use_ndvi: bool = True,
    ):
        self.provider = provider or LandsatLSTProvider()
        self.sat = sat
        self.use_ndvi = use_ndvi

    @property
    def output_bands(self) -> Tuple[str, ...]:
        return (self.band, self.celsius_band)

    def window(self, year: int, config: RunConfig) -> TimeWindow:
        return TimeWindow.for_season(
            year, config.season_start_month, config.season_end_month
        )

    def search_collection(self, start: str, end: str, region) -> ee.ImageCollection:
        return self.provider.collection(
            self.sat, start, end, region, self.use_ndvi
        ).filter(ee.Filter.listContains("system:band_names", self.band))

    def stack(self, window: TimeWindow, region) -> ee.ImageCollection:
        start, end = window.ee_range()
        return self.search_collection(start, end, region).select([self.band])

    def derive(self, composite: ee.Image) -> ee.Image:
        kelvin = composite.select(self.band)
        return kelvin.addBands(
            kelvin.subtract(KELVIN_OFFSET).rename(self.celsius_band)
        )

    def finalize_stats(self, stats):
        out = dict(stats)
        for stat in STAT_NAMES:
            value = stats.get(f"{self.band}_{stat}")
            out[f"{self.celsius_band}_{stat}"] = (
                None if value is None else kelvin_to_celsius(value)
            )
        return out


def kelvin_to_celsius(value: float) -> float:
    return value - KELVIN_OFFSET


def create_index(
    key: str,
    *,
    base_collection: ee.ImageCollection | None = None,
    sensor: SensorSpec | None = None,
    lst_provider: LSTProvider | None = None,
    sat: str = "L8",
    use_ndvi: bool = True,
) -> SpectralIndex:
    """Factory returning the strategy for an index key."""
    name = key.lower()
    if name == "lst":
        return LST(provider=lst_provider, sat=sat, use_ndvi=use_ndvi)
    if name in ("ndvi", "evi"):
        if base_collection is None or sensor is None:
            raise ValueError(f"{name.upper()} needs a base collection and sensor spec")
        cls = NDVI if name == "ndvi" else EVI
        return cls(base_collection, sensor)
    raise ValueError(f"Index '{key}' not supported. Choose from: {list(INDEX_KEYS)}")
