"""Earth Engine tile layers collected for visual QC and rendered with folium."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import folium
from folium.raster_layers import TileLayer

from regionstats.core.logger import Logger
from regionstats.ingestion.eemanager import EarthEngineManager, ee_manager

EE_ATTRIBUTION = "Map data &copy; Google Earth Engine"


@dataclass(frozen=True)
class MapLayer:
    """One styled index layer; the stretch affects display only."""

    name: str
    url: str
    vis: dict = field(compare=False)


class MapLayers:
    """Ordered collection of tile layers for one run."""

    def __init__(
        self, ee_manager_instance: EarthEngineManager = ee_manager, logger=None
    ) -> None:
        self.ee_manager = ee_manager_instance
        self.layers: List[MapLayer] = []
        self.center: Optional[Sequence[float]] = None  # (lat, lon)
        self.zoom = 9
        self.logger = logger or Logger.get_logger(__name__)

    def __len__(self) -> int:
        return len(self.layers)

    def add(self, image, vis: dict, name: str) -> MapLayer:
        """Request an EE map id for *image* styled with *vis* and keep its tile URL."""
        map_id = self.ee_manager.get_map_id(image, vis, what=f"map layer {name}")
        url = map_id["tile_fetcher"].url_format
        layer = MapLayer(name=name, url=url, vis=dict(vis))
        self.layers.append(layer)
        self.logger.debug("Added map layer %s", name)
        return layer

    def center_on(self, lat: float, lon: float, zoom: int = 9) -> None:
        self.center = (lat, lon)
        self.zoom = zoom

    def to_folium(self) -> folium.Map:
        """Build a folium Map with an OSM basemap plus one overlay per layer."""
        m = folium.Map(
            location=list(self.center or (0.0, 0.0)),
            zoom_start=self.zoom if self.center else 2,
            tiles="OpenStreetMap",
        )
        for layer in self.layers:
            TileLayer(
                tiles=layer.url,
                name=layer.name,
                attr=EE_ATTRIBUTION,
                overlay=True,
                control=True,
            ).add_to(m)
        folium.LayerControl(position="topright", collapsed=False).add_to(m)
        return m

    def render_html(self) -> str:
        return self.to_folium().get_root().render()
