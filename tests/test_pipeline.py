"""End-to-end tests of RegionStatsPipeline with Earth Engine faked out."""

# pylint: disable=missing-function-docstring,redefined-outer-name

import logging
import re
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import ee
import pandas as pd
import pytest

from fakes import FakeFeatures, FakeReducer, FakeTask, StubIndex
from regionstats.core import pipeline as pipeline_mod
from regionstats.core.config import ConfigValidationError
from regionstats.core.exceptions import MissingConfiguration
from regionstats.core.pipeline import RegionStatsPipeline
from regionstats.core.run_config import RunConfig
from regionstats.geo.region import Region


@pytest.fixture
def wired(monkeypatch, stub_index):
    """Patch input loading and index construction; returns the loaded sites stub."""
    sites = FakeFeatures()
    monkeypatch.setattr(
        Region, "load", classmethod(lambda cls, src: Region(src, FakeFeatures()))
    )
    monkeypatch.setattr(pipeline_mod, "load_feature_collection", lambda src: sites)
    monkeypatch.setattr(RegionStatsPipeline, "_build_index", lambda self, geom: stub_index)
    monkeypatch.setattr(ee, "Reducer", FakeReducer)
    monkeypatch.setattr(ee, "FeatureCollection", lambda fc: fc)
    return sites


def test_run_processes_years_and_skips_empty_ones(wired, run_config, manager, stub_index):
    result = RegionStatsPipeline(run_config, ee_manager=manager).run()

    assert result.index == "NDVI"
    assert result.years == [2020, 2021, 2022]
    assert [r.year for r in result.results] == [2020, 2022]
    assert result.skipped == [2021]
    labels = [r.label for r in result.region_stats]
    assert labels == ["2020 (year median)", "2022 (year median)"]
    for record in result.region_stats:
        assert record.stats["NDVI_min"] <= record.stats["NDVI_mean"] <= record.stats["NDVI_max"]
    assert result.site_stats == []
    assert result.exports == []


def test_resolved_year_windows_are_clamped_to_search_range(wired, manager, stub_index):
    cfg = RunConfig(
        roi="projects/demo/assets/roi",
        start_date="2020-03-15",
        end_date="2020-11-01",
        year_source="date_span",
    )
    RegionStatsPipeline(cfg, ee_manager=manager).run()
    window = stub_index.stacked[0]
    assert window.ee_range() == ("2020-03-15", "2020-11-01")


def test_explicit_years_outside_search_range_use_full_window(wired, manager):
    index = StubIndex({2025: 5})
    cfg = RunConfig(
        roi="projects/demo/assets/roi",
        start_date="2013-06-15",
        end_date="2024-12-31",
        years=[2013, 2025],
    )
    pipeline = RegionStatsPipeline(cfg, ee_manager=manager)
    pipeline._build_index = lambda geom: index  # pylint: disable=protected-access

    result = pipeline.run()

    assert [w.ee_range() for w in index.stacked] == [
        ("2013-01-01", "2014-01-01"),
        ("2025-01-01", "2026-01-01"),
    ]
    assert [r.year for r in result.results] == [2025]
    assert result.skipped == [2013]


class SlowFirstYearIndex(StubIndex):
    """Holds back the first year so later years finish first."""

    def __init__(self, counts, slow_year):
        super().__init__(counts)
        self.slow_year = slow_year

    def stack(self, window, region):
        if window.year == self.slow_year:
            time.sleep(0.2)
        return super().stack(window, region)


def test_parallel_years_keep_ascending_order(wired, manager, caplog):
    index = SlowFirstYearIndex({y: 3 for y in range(2013, 2025) if y != 2016}, slow_year=2013)
    cfg = RunConfig(roi="projects/demo/assets/roi", years=list(range(2024, 2012, -1)), max_workers=4)
    log = logging.getLogger("regionstats.tests.ordered")
    pipeline = RegionStatsPipeline(cfg, ee_manager=manager, logger=log)
    pipeline._build_index = lambda geom: index  # pylint: disable=protected-access

    with caplog.at_level(logging.INFO, logger=log.name):
        result = pipeline.run()

    assert [r.year for r in result.results] == [y for y in range(2013, 2025) if y != 2016]
    assert result.skipped == [2016]
    reported = [
        int(re.search(r"\b(20\d\d)\b", rec.getMessage()).group(1))
        for rec in caplog.records
        if rec.name == log.name
        and (rec.getMessage().startswith("--- Region") or "skipping" in rec.getMessage())
    ]
    assert reported == list(range(2013, 2025))


def test_placeholder_roi_fails_before_earth_engine(wired):
    mgr = MagicMock()
    cfg = RunConfig(roi="REPLACE_WITH_YOUR_ROI_ASSET")
    with pytest.raises(MissingConfiguration):
        RegionStatsPipeline(cfg, ee_manager=mgr).run()
    mgr.initialize.assert_not_called()


def test_invalid_config_fails_before_earth_engine(wired):
    mgr = MagicMock()
    cfg = RunConfig(roi="projects/demo/assets/roi", month=13)
    with pytest.raises(ConfigValidationError):
        RegionStatsPipeline(cfg, ee_manager=mgr).run()
    mgr.initialize.assert_not_called()


def test_sites_are_reduced_per_year(wired, manager):
    features = [{"properties": {"name": "well-1", "NDVI_min": 0.2, "NDVI_max": 0.4, "NDVI_mean": 0.3}}]
    index = StubIndex({2020: 4}, site_features=features)
    cfg = RunConfig(
        roi="projects/demo/assets/roi",
        sites="projects/demo/assets/sites",
        site_buffer=50,
        years=[2020],
    )
    pipeline = RegionStatsPipeline(cfg, ee_manager=manager)
    pipeline._build_index = lambda geom: index  # pylint: disable=protected-access

    result = pipeline.run()

    assert wired.buffered_by == 50
    assert [s.to_record() for s in result.site_stats] == [
        {"name": "well-1", "year": 2020, "NDVI_min": 0.2, "NDVI_max": 0.4, "NDVI_mean": 0.3}
    ]


def test_exports_are_staged_and_optionally_started(wired, run_config, manager, monkeypatch):
    monkeypatch.setattr(
        ee.batch,
        "Export",
        SimpleNamespace(image=SimpleNamespace(toDrive=lambda **kw: FakeTask(**kw))),
    )
    run_config.export = True
    result = RegionStatsPipeline(run_config, ee_manager=manager).run()
    assert [t.kwargs["description"] for t in result.exports] == ["NDVI_2020_PNG", "NDVI_2022_PNG"]
    assert not any(t.started for t in result.exports)

    run_config.start_exports = True
    result = RegionStatsPipeline(run_config, ee_manager=manager).run()
    assert all(t.started for t in result.exports)


def test_out_dir_receives_csv_and_map(wired, run_config, manager, tmp_path):
    run_config.out_dir = str(tmp_path)
    pipeline = RegionStatsPipeline(run_config, ee_manager=manager)

    pipeline.run()

    region = pd.read_csv(tmp_path / "region_stats.csv")
    assert list(region["year"]) == [2020, 2022]
    html = (tmp_path / "map.html").read_text(encoding="utf-8")
    assert "NDVI 2020 (year median)" in html


def test_resolve_years_from_date_span(wired, manager):
    cfg = RunConfig(
        roi="projects/demo/assets/roi",
        start_date="2018-01-01",
        end_date="2021-01-01",
        year_source="date_span",
    )
    assert RegionStatsPipeline(cfg, ee_manager=manager).resolve_years() == [2018, 2019, 2020]
