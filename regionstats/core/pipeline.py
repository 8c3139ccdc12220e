from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
from typing import Iterable, List, Optional, Union

import ee

from regionstats.analytics.engine import IndexComputer
from regionstats.analytics.indices import SpectralIndex, create_index
from regionstats.analytics.results import RunResult, YearResult
from regionstats.analytics.stats import StatsAggregator
from regionstats.analytics.years import YearRangeResolver
from regionstats.core.exceptions import NoDataForPeriod
from regionstats.core.logger import Logger
from regionstats.core.run_config import RunConfig
from regionstats.geo.region import Region, load_feature_collection
from regionstats.ingestion.eemanager import EarthEngineManager, ee_manager
from regionstats.ingestion.lst import LSTProvider
from regionstats.ingestion.sensorspec import SensorSpec
from regionstats.services.exports import ExportStager
from regionstats.services.report import ResultReporter


@dataclass
class _RunContext:
    region: Region
    geometry: ee.Geometry
    sites: Optional[ee.FeatureCollection]
    index: SpectralIndex


@dataclass
class RegionStatsPipeline:
    """Encapsulate the per-year index statistics workflow."""

    config: RunConfig
    ee_manager: EarthEngineManager = field(default_factory=lambda: ee_manager)
    reporter: Optional[ResultReporter] = None
    lst_provider: Optional[LSTProvider] = None
    logger: logging.Logger = field(
        default_factory=lambda: Logger.get_logger(__name__)
    )

    def _build_reporter(self) -> ResultReporter:
        cfg = self.config
        exporter = None
        if cfg.export:
            exporter = ExportStager(
                folder=cfg.export_folder,
                scale=cfg.scale,
                max_pixels=cfg.max_pixels,
                logger=self.logger,
            )
        return ResultReporter(
            out_dir=cfg.out_dir,
            exporter=exporter,
            ee_manager_instance=self.ee_manager,
            logger=self.logger,
        )

    def _build_index(self, geometry) -> SpectralIndex:
        cfg = self.config
        if cfg.index == "lst":
            return create_index(
                "lst", lst_provider=self.lst_provider, sat=cfg.sat, use_ndvi=cfg.use_ndvi
            )
        base = self.ee_manager.get_image_collection(
            cfg.collection_id,
            cfg.start_date,
            cfg.end_date,
            geometry,
            mask_clouds=True,
            scale_reflectance=cfg.scale_reflectance,
        )
        sensor = SensorSpec.from_collection_id(cfg.collection_id)
        return create_index(cfg.index, base_collection=base, sensor=sensor)

    def _prepare(self) -> _RunContext:
        """Validate config and load inputs. Placeholders fail before any EE call."""
        cfg = self.config
        cfg.validate()
        cfg.require_inputs()
        self.ee_manager.initialize()

        self.logger.info("Loading ROI from %s", cfg.roi)
        region = Region.load(cfg.roi)
        geometry = region.geometry()
        sites = None
        if cfg.sites:
            self.logger.info("Loading sites from %s", cfg.sites)
            sites = load_feature_collection(cfg.sites)
        return _RunContext(region, geometry, sites, self._build_index(geometry))

    def _resolve_years(self, ctx: _RunContext) -> List[int]:
        cfg = self.config
        source = cfg.effective_year_source
        collection = None
        if source == "imagery" and not cfg.years:
            collection = ctx.index.search_collection(
                cfg.start_date, cfg.end_date, ctx.geometry
            )
        return YearRangeResolver(self.ee_manager, self.logger).resolve(
            cfg.start,
            cfg.end,
            explicit=cfg.years,
            source=source,
            collection=collection,
        )

    def resolve_years(self) -> List[int]:
        """Resolve the years a run would process without computing anything else."""
        return self._resolve_years(self._prepare())

    def _process_year(
        self,
        year: int,
        ctx: _RunContext,
        computer: IndexComputer,
        aggregator: StatsAggregator,
    ) -> Union[YearResult, NoDataForPeriod]:
        """Compute one year. A year without imagery comes back as its NoDataForPeriod."""
        cfg = self.config
        window = ctx.index.window(year, cfg)
        # explicit years are taken as given, even outside the search range
        if not cfg.years:
            window = window.clamp(cfg.start, cfg.end)
        try:
            image = computer.compute(window)
        except NoDataForPeriod as err:
            return err
        region_stats = aggregator.region_stats(image, ctx.geometry, ctx.index, window)
        site_stats = []
        if ctx.sites is not None:
            site_stats = aggregator.site_stats(
                image, ctx.sites, ctx.index, year, cfg.site_buffer
            )
        return YearResult(window, image, region_stats, site_stats)

    def _center_map(self, reporter: ResultReporter, geometry) -> None:
        coords = self.ee_manager.get_info(
            geometry.centroid(1).coordinates(), what="ROI centroid"
        )
        if coords:
            reporter.layers.center_on(lat=coords[1], lon=coords[0])

    def run(self) -> RunResult:
        """Execute the workflow and return every produced record."""
        cfg = self.config
        ctx = self._prepare()
        years = self._resolve_years(ctx)
        reporter = self.reporter or self._build_reporter()
        computer = IndexComputer(ctx.index, ctx.geometry, self.ee_manager, self.logger)
        aggregator = StatsAggregator(
            self.ee_manager, cfg.scale, cfg.max_pixels, logger=self.logger
        )

        def process(year: int) -> Union[YearResult, NoDataForPeriod]:
            return self._process_year(year, ctx, computer, aggregator)

        result = RunResult(index=ctx.index.band, years=list(years))
        executor = None
        outcomes: Iterable[Union[YearResult, NoDataForPeriod]]
        if cfg.max_workers > 1 and len(years) > 1:
            executor = ThreadPoolExecutor(max_workers=cfg.max_workers)
            # map() yields in submission order, so reporting stays in year order
            outcomes = executor.map(process, years)
        else:
            outcomes = map(process, years)

        try:
            for year, outcome in zip(years, outcomes):
                if isinstance(outcome, NoDataForPeriod):
                    reporter.report_skip(outcome)
                    result.skipped.append(year)
                    continue
                reporter.report_year(
                    outcome,
                    ctx.index,
                    ctx.geometry,
                    site_buffer=cfg.site_buffer,
                    sites_requested=ctx.sites is not None,
                )
                result.results.append(outcome)
        finally:
            if executor is not None:
                executor.shutdown(wait=True, cancel_futures=True)

        if reporter.exporter is not None:
            result.exports = list(reporter.exporter.staged)
            if cfg.start_exports:
                reporter.exporter.start_all()

        if reporter.out_dir and result.results:
            self._center_map(reporter, ctx.geometry)
        reporter.write(result)
        self.logger.info(
            "%s run finished: %d year(s) processed, %d skipped",
            ctx.index.band,
            len(result.results),
            len(result.skipped),
        )
        return result
