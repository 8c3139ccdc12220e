"""Per-year NDVI, EVI and LST statistics for a region on Google Earth Engine."""

__version__ = "0.1.0"
