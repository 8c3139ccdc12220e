"""Visualization helpers."""

from .layers import MapLayer, MapLayers

__all__ = ["MapLayer", "MapLayers"]
