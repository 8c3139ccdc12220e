"""Exception hierarchy for regionstats runs.

Only :class:`NoDataForPeriod` is recoverable: the pipeline catches it per year,
logs a diagnostic and moves on. Every other error ends the run.
"""

from __future__ import annotations


class RegionStatsError(Exception):
    """Base exception for all regionstats errors."""


class MissingConfiguration(RegionStatsError):
    """A required ROI or asset reference is missing or still a placeholder."""


class NoDataForPeriod(RegionStatsError):
    """The filtered image stack for one time window is empty."""

    def __init__(self, index: str, year: int, label: str) -> None:
        self.index = index
        self.year = year
        self.label = label
        super().__init__(f"{index}: Year {year}: no images for {label}, skipping")


class ResourceLimitExceeded(RegionStatsError):
    """A reduction asked Earth Engine for more pixels than the configured ceiling."""


class ExternalServiceFailure(RegionStatsError):
    """A blocking Earth Engine evaluation failed (bad asset, geometry, quota...)."""
