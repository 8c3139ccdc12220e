"""Reporting of per-year results: map layers, structured stats logs, exports."""

from __future__ import annotations

import json
import logging
from typing import List, Optional

from regionstats.analytics.indices import SpectralIndex
from regionstats.analytics.results import RegionStats, RunResult, SiteStats, YearResult
from regionstats.core.config import ConfigManager
from regionstats.core.exceptions import NoDataForPeriod
from regionstats.core.storage import LocalFS, StorageAdapter
from regionstats.ingestion.eemanager import EarthEngineManager, ee_manager
from regionstats.visualization.layers import MapLayers
from .base import BaseService
from .exports import ExportStager


class ResultReporter(BaseService):
    """Emit results for each processed year and persist run outputs."""

    REGION_CSV = "region_stats.csv"
    SITES_CSV = "site_stats.csv"
    MAP_HTML = "map.html"

    def __init__(
        self,
        out_dir: Optional[str] = None,
        storage: StorageAdapter | None = None,
        exporter: ExportStager | None = None,
        config: ConfigManager | None = None,
        ee_manager_instance: EarthEngineManager = ee_manager,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger)
        self.out_dir = out_dir
        self.storage = storage or LocalFS()
        self.exporter = exporter
        self.config = config or ConfigManager()
        self.layers = MapLayers(ee_manager_instance, logger=self.logger)

    def add_layer(self, image, index: SpectralIndex, label: str) -> None:
        """Add the index band as a styled map layer (display stretch only)."""
        self.layers.add(
            image.select(index.band),
            index.vis_params(self.config),
            f"{index.band} {label}",
        )

    def report_skip(self, err: NoDataForPeriod) -> None:
        self.logger.warning("%s", err)

    def report_region(self, stats: RegionStats) -> None:
        self.logger.info("--- Region %s stats for %s ---", stats.index, stats.label)
        self.logger.info("%s", json.dumps(dict(stats.stats)))

    def report_sites(
        self, records: List[SiteStats], index: SpectralIndex, label: str, buffer: float
    ) -> None:
        self.logger.info(
            "Per-site %s stats for %s (buffer=%g m): %s",
            index.band,
            label,
            buffer,
            json.dumps([r.to_record() for r in records]),
        )

    def report_year(
        self,
        result: YearResult,
        index: SpectralIndex,
        region,
        site_buffer: float = 0.0,
        sites_requested: bool = False,
    ) -> None:
        """Layer, region stats, site stats and (optionally) a staged export."""
        self.add_layer(result.image, index, result.label)
        self.report_region(result.region)
        if sites_requested:
            self.report_sites(result.sites, index, result.label, site_buffer)
        if self.exporter is not None:
            self.exporter.stage(
                result.image, index, result.window, region, index.vis_params(self.config)
            )

    def write(self, result: RunResult) -> List[str]:
        """Write CSVs and the folium map under ``out_dir``; return written URIs."""
        if not self.out_dir:
            return []
        written = []
        region_uri = self.storage.join(self.out_dir, self.REGION_CSV)
        written.append(
            self.storage.write_text(
                region_uri, result.region_dataframe().to_csv(index=False)
            )
        )
        if result.site_stats:
            sites_uri = self.storage.join(self.out_dir, self.SITES_CSV)
            written.append(
                self.storage.write_text(
                    sites_uri, result.sites_dataframe().to_csv(index=False)
                )
            )
        if len(self.layers):
            map_uri = self.storage.join(self.out_dir, self.MAP_HTML)
            written.append(self.storage.write_text(map_uri, self.layers.render_html()))
        for uri in written:
            self.logger.info("Wrote %s", uri)
        return written
