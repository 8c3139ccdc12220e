from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from .windows import TimeWindow


def _frozen(stats: Mapping[str, Optional[float]]) -> Mapping[str, Optional[float]]:
    return MappingProxyType(dict(stats))


@dataclass(frozen=True)
class RegionStats:
    """Min/max/mean of one index image over the ROI for one period."""

    index: str
    year: int
    label: str
    stats: Mapping[str, Optional[float]]
    month: Optional[int] = None
    season: Optional[tuple[int, int]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "stats", _frozen(self.stats))

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "index": self.index,
            "year": self.year,
            "label": self.label,
            "month": self.month,
            "season": (
                f"{self.season[0]}-{self.season[1]}" if self.season else None
            ),
        }
        record.update(self.stats)
        return record


@dataclass(frozen=True)
class SiteStats:
    """Min/max/mean of one index image inside one buffered site."""

    name: Optional[str]
    year: int
    stats: Mapping[str, Optional[float]]
    geometry: Optional[dict] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "stats", _frozen(self.stats))

    def to_record(self) -> Dict[str, Any]:
        """Exactly ``name``, ``year`` and the statistic keys."""
        return {"name": self.name, "year": self.year, **self.stats}


@dataclass
class YearResult:
    """Everything one processed year produced; the image stays server-side."""

    window: TimeWindow
    image: Any
    region: RegionStats
    sites: List[SiteStats] = field(default_factory=list)

    @property
    def year(self) -> int:
        return self.window.year

    @property
    def label(self) -> str:
        return self.window.label


@dataclass
class RunResult:
    """Outputs of a whole run, in ascending year order."""

    index: str
    years: List[int] = field(default_factory=list)
    results: List[YearResult] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    exports: List[Any] = field(default_factory=list)

    @property
    def region_stats(self) -> List[RegionStats]:
        return [r.region for r in self.results]

    @property
    def site_stats(self) -> List[SiteStats]:
        return [s for r in self.results for s in r.sites]

    def region_dataframe(self) -> pd.DataFrame:
        """Return the region statistics as a DataFrame."""
        return pd.DataFrame([r.to_record() for r in self.region_stats])

    def sites_dataframe(self) -> pd.DataFrame:
        """Return the per-site statistics as a DataFrame."""
        return pd.DataFrame([s.to_record() for s in self.site_stats])

    def to_csv(self, path: str) -> None:
        """Write the region statistics to CSV."""
        self.region_dataframe().to_csv(path, index=False)
