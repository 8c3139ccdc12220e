"""core.config
---------------

Configuration loader/manager for regionstats. Provides a central API for
loading run settings from YAML/TOML/JSON files into
:py:attr:`ConfigManager.config`.
"""

import os
import json
import yaml
import toml

from .exceptions import RegionStatsError


class ConfigValidationError(RegionStatsError):
    """Raised when configuration loading or validation fails."""


class ConfigManager:
    """
    Loads and manages configuration from file or defaults.
    Also carries the display defaults (palettes and stretches) for each index.
    """

    # Vector formats accepted for local ROI / site files
    SUPPORTED_INPUT_FORMATS: tuple[str, ...] = (
        ".shp",
        ".geojson",
        ".gpkg",
        ".json",
        ".kml",
        ".gml",
    )

    # Display palettes, one per index key
    PRESET_PALETTES: dict[str, tuple[str, ...]] = {
        "ndvi": (
            "ffffff",
            "c4cec4",
            "97b97f",
            "6aa849",
            "40a02b",
            "207401",
            "015701",
            "003f01",
            "002601",
        ),
        "evi": (
            "8b4513",
            "d2691e",
            "f4a460",
            "ffd700",
            "adff2f",
            "7cfc00",
            "00ff00",
            "008000",
            "006400",
        ),
        "lst": ("blue", "cyan", "green", "yellow", "red"),
    }

    # Display stretch (min, max); LST is in Kelvin
    VIS_RANGES: dict[str, tuple[float, float]] = {
        "ndvi": (-0.1, 1.0),
        "evi": (-1.0, 1.0),
        "lst": (290.0, 320.0),
    }

    DEFAULT_INDEX: str = "ndvi"
    PLACEHOLDER_PREFIX: str = "REPLACE_WITH"

    def __init__(self, config_path=None):
        self.config: dict = {"index": self.DEFAULT_INDEX}
        if config_path:
            self.load(config_path)

    def load(self, path: str) -> None:
        """
        Load configuration from a file (YAML, TOML, or JSON).
        Overwrites existing keys in self.config.
        """
        ext = os.path.splitext(path)[1].lower()
        try:
            with open(path, "r", encoding="utf-8") as f:
                if ext in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                elif ext == ".toml":
                    data = toml.load(f)
                elif ext == ".json":
                    data = json.load(f)
                else:
                    raise ConfigValidationError(f"Unsupported config format: {ext}")
        except ConfigValidationError:
            raise
        except Exception as e:
            raise ConfigValidationError(
                f"Failed to load config from {path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Config file {path} did not produce a dict")
        self.config.update(data)

    def vis_params(self, index: str) -> dict:
        """Return the display parameters (min, max, palette) for *index*."""
        key = index.lower()
        if key not in self.VIS_RANGES:
            raise ConfigValidationError(f"No visualization defaults for '{index}'")
        vmin, vmax = self.VIS_RANGES[key]
        return {"min": vmin, "max": vmax, "palette": list(self.PRESET_PALETTES[key])}

    @classmethod
    def is_placeholder(cls, value) -> bool:
        """True when *value* is empty or still a ``REPLACE_WITH_...`` token."""
        if value is None:
            return True
        text = str(value).strip()
        return not text or text.upper().startswith(cls.PLACEHOLDER_PREFIX)
