"""
Module `geo.region` loads the region of interest and optional sites as Earth
Engine FeatureCollections, from either an asset id or a local vector file.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path

import ee
import geopandas as gpd

from regionstats.core.config import ConfigManager


def is_local_vector(source: str) -> bool:
    """True when *source* points at a readable vector file on disk."""
    suffix = Path(source).suffix.lower()
    return suffix in ConfigManager.SUPPORTED_INPUT_FORMATS and os.path.exists(source)


def read_vector(path: str) -> gpd.GeoDataFrame:
    """Read a vector file with GeoPandas and reproject to EPSG:4326."""
    gdf = gpd.read_file(path)
    if gdf.empty:
        raise ValueError(f"No features found in {path}")
    if gdf.crs is None:
        gdf = gdf.set_crs("EPSG:4326")
    elif gdf.crs.to_epsg() != 4326:
        gdf = gdf.to_crs("EPSG:4326")
    return gdf


def load_feature_collection(source: str) -> ee.FeatureCollection:
    """
    Return an ee.FeatureCollection for an asset id (e.g.
    'projects/me/assets/roi') or a local GeoJSON / Shapefile / GeoPackage.
    """
    if is_local_vector(source):
        gdf = read_vector(source)
        return ee.FeatureCollection(json.loads(gdf.to_json()))
    return ee.FeatureCollection(source)


@dataclass
class Region:
    """Region of interest: its source reference and server-side features."""

    source: str
    features: ee.FeatureCollection

    @classmethod
    def load(cls, source: str) -> "Region":
        return cls(source=source, features=load_feature_collection(source))

    def geometry(self) -> ee.Geometry:
        """Union geometry used for filtering, clipping and reduction."""
        return self.features.geometry()
