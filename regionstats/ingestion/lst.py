"""
Land-surface temperature retrieval for Landsat.

The pipeline treats temperature retrieval as a black box behind the
:class:`LSTProvider` protocol: given a satellite token, a date range, a geometry
and an emissivity flag it returns an ImageCollection whose images carry an
``LST`` band in Kelvin.

The default :class:`LandsatLSTProvider` uses the single-channel method on the
Collection 2 TOA brightness temperature:

    LST = TB / (1 + (lambda * TB / rho) * ln(epsilon))

with rho = 14388 um*K and lambda the effective wavelength of the thermal band.
Emissivity comes from NDVI thresholds (Sobrino et al. 2004) when ``use_ndvi``
is set, otherwise from the ASTER GED bands 13/14 mean.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Protocol

import ee

from .sensorspec import SensorSpec

RHO_UM_K = 14388.0
ASTER_GED = "NASA/ASTER_GED/AG100_003"

# NDVI thresholds for bare soil / full vegetation
NDVI_SOIL = 0.2
NDVI_VEG = 0.5


@dataclass(frozen=True)
class ThermalSensor:
    """
    One Landsat TOA product. Band layout and QA masking come from its
    SensorSpec entry; only the thermal wavelength lives here.
    """

    collection_id: str
    wavelength_um: float

    @property
    def spec(self) -> SensorSpec:
        return SensorSpec.from_collection_id(self.collection_id)


SENSORS: Dict[str, ThermalSensor] = {
    "L4": ThermalSensor("LANDSAT/LT04/C02/T1_TOA", 11.457),
    "L5": ThermalSensor("LANDSAT/LT05/C02/T1_TOA", 11.457),
    "L7": ThermalSensor("LANDSAT/LE07/C02/T1_TOA", 11.269),
    "L8": ThermalSensor("LANDSAT/LC08/C02/T1_TOA", 10.895),
    "L9": ThermalSensor("LANDSAT/LC09/C02/T1_TOA", 10.895),
}


class LSTProvider(Protocol):
    """Anything that can produce a Kelvin ``LST`` band per image."""

    def collection(
        self, sat: str, start: str, end: str, geometry, use_ndvi: bool
    ) -> ee.ImageCollection: ...


def sensor_for(sat: str) -> ThermalSensor:
    """Return the ThermalSensor for a token such as 'L8'."""
    key = sat.upper()
    if key not in SENSORS:
        raise ValueError(f"Unknown satellite '{sat}'. Choose from: {list(SENSORS)}")
    return SENSORS[key]


def ndvi_emissivity(ndvi: ee.Image) -> ee.Image:
    """
    Emissivity from NDVI thresholds:
    bare soil 0.979, full vegetation 0.986, mixed 0.977 + 0.119 * Pv.
    """
    pv = ndvi.subtract(NDVI_SOIL).divide(NDVI_VEG - NDVI_SOIL).pow(2)
    return (
        ee.Image(0.979)
        .where(ndvi.gt(NDVI_VEG), 0.986)
        .where(
            ndvi.gte(NDVI_SOIL).And(ndvi.lte(NDVI_VEG)),
            pv.multiply(0.119).add(0.977),
        )
        .rename("EM")
    )


def aster_emissivity() -> ee.Image:
    """Broadband emissivity from the ASTER GED bands 13 and 14."""
    ged = ee.Image(ASTER_GED)
    return (
        ged.select("emissivity_band13")
        .add(ged.select("emissivity_band14"))
        .multiply(0.001 / 2)
        .rename("EM")
    )


def single_channel_lst(tb: ee.Image, emissivity: ee.Image, wavelength_um: float):
    """Apply the single-channel correction to a brightness temperature in Kelvin."""
    return tb.divide(
        tb.multiply(wavelength_um / RHO_UM_K).multiply(emissivity.log()).add(1.0)
    ).rename("LST")


class LandsatLSTProvider:
    """Single-channel LST from Landsat Collection 2 TOA imagery."""

    def collection(
        self, sat: str, start: str, end: str, geometry, use_ndvi: bool = True
    ) -> ee.ImageCollection:
        sensor = sensor_for(sat)
        spec = sensor.spec
        thermal, nir, red = spec.band("thermal"), spec.band("nir"), spec.band("red")

        def _with_lst(img):
            tb = img.select(thermal)
            if use_ndvi:
                ndvi = img.normalizedDifference([nir, red])
                em = ndvi_emissivity(ndvi)
            else:
                em = aster_emissivity()
            lst = single_channel_lst(tb, em, sensor.wavelength_um)
            return img.addBands(lst)

        return (
            ee.ImageCollection(sensor.collection_id)
            .filterBounds(geometry)
            .filterDate(start, end)
            .map(spec.cloud_mask)
            .map(_with_lst)
        )
