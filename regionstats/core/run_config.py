"""
Module `core.run_config` defines `RunConfig`, the container for every parameter
a region-statistics run needs.
"""

from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any, List, Mapping, Optional

from .config import ConfigManager, ConfigValidationError
from .exceptions import MissingConfiguration

INDEX_KEYS = ("ndvi", "evi", "lst")
YEAR_SOURCES = ("imagery", "date_span")


def _parse_month(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("", "none", "null"):
            return None
        value = text
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(f"Invalid month: {value!r}") from e


def _parse_years(value: Any) -> List[int]:
    if value is None:
        return []
    if isinstance(value, (int, float)):
        return [int(value)]
    if isinstance(value, str):
        value = [v for v in value.replace(" ", "").split(",") if v]
    try:
        return [int(v) for v in value]
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(f"Invalid years list: {value!r}") from e


def _parse_date(value: str, key: str) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ConfigValidationError(f"Invalid {key}: {value!r}") from e


@dataclass
class RunConfig:
    """Holds all parameters needed for one index run over a region."""

    roi: Optional[str] = None
    index: str = ConfigManager.DEFAULT_INDEX
    start_date: str = "2013-01-01"
    end_date: str = "2024-12-31"
    month: Optional[int] = None
    years: List[int] = field(default_factory=list)
    year_source: Optional[str] = None
    sites: Optional[str] = None
    site_buffer: float = 30.0
    season_start_month: int = 5
    season_end_month: int = 9
    sat: str = "L8"
    use_ndvi: bool = True
    collection_id: str = "LANDSAT/LC08/C02/T1_L2"
    scale_reflectance: bool = False
    scale: int = 30
    max_pixels: float = 1e13
    export: bool = False
    start_exports: bool = False
    export_folder: str = "GEE_exports"
    out_dir: Optional[str] = None
    max_workers: int = 1

    def __post_init__(self) -> None:
        self.index = str(self.index).lower()
        self.month = _parse_month(self.month)
        self.years = _parse_years(self.years)
        self.sat = str(self.sat).upper()
        self.site_buffer = float(self.site_buffer)
        self.season_start_month = int(self.season_start_month)
        self.season_end_month = int(self.season_end_month)
        self.scale = int(self.scale)
        self.max_pixels = float(self.max_pixels)
        self.max_workers = int(self.max_workers)
        if self.year_source is not None:
            self.year_source = str(self.year_source).lower()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RunConfig":
        """Build a config from a mapping, ignoring keys that are not fields."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_sources(
        cls, config_path: Optional[str] = None, **overrides: Any
    ) -> "RunConfig":
        """
        Merge defaults, an optional config file and explicit overrides.
        Overrides set to ``None`` are treated as "not given".
        """
        manager = ConfigManager(config_path)
        merged = dict(manager.config)
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_mapping(merged)

    @property
    def start(self) -> date:
        return _parse_date(self.start_date, "start_date")

    @property
    def end(self) -> date:
        return _parse_date(self.end_date, "end_date")

    @property
    def effective_year_source(self) -> str:
        """Year discovery mode; LST defaults to the raw calendar span."""
        if self.year_source:
            return self.year_source
        return "date_span" if self.index == "lst" else "imagery"

    def validate(self) -> None:
        """Raise ConfigValidationError for out-of-range values."""
        if self.index not in INDEX_KEYS:
            raise ConfigValidationError(
                f"Index '{self.index}' not supported. Choose from: {list(INDEX_KEYS)}"
            )
        if self.start >= self.end:
            raise ConfigValidationError(
                f"start_date {self.start_date} must be before end_date {self.end_date}"
            )
        if self.month is not None and not 1 <= self.month <= 12:
            raise ConfigValidationError(f"month must be 1-12 or none, got {self.month}")
        for key in ("season_start_month", "season_end_month"):
            if not 1 <= getattr(self, key) <= 12:
                raise ConfigValidationError(f"{key} must be 1-12")
        if self.season_start_month > self.season_end_month:
            raise ConfigValidationError(
                "season_start_month must not be after season_end_month"
            )
        if self.site_buffer < 0:
            raise ConfigValidationError("site_buffer must be non-negative")
        if self.year_source is not None and self.year_source not in YEAR_SOURCES:
            raise ConfigValidationError(
                f"year_source must be one of {list(YEAR_SOURCES)}"
            )
        if self.scale <= 0:
            raise ConfigValidationError("scale must be positive")
        if self.max_workers < 1:
            raise ConfigValidationError("max_workers must be at least 1")

    def require_inputs(self) -> None:
        """Fail fast when the ROI (or a given sites reference) is a placeholder."""
        if ConfigManager.is_placeholder(self.roi):
            raise MissingConfiguration(
                "Please set 'roi' to your ROI FeatureCollection asset id or a "
                "local vector file."
            )
        if self.sites is not None and ConfigManager.is_placeholder(self.sites):
            raise MissingConfiguration(
                "'sites' is still a placeholder; set it to a point asset or remove it."
            )
