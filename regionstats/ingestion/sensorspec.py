"""
Module `ingestion.sensorspec` defines the SensorSpec class, which encapsulates
sensor metadata (band aliases, resolution, QA bits, reflectance scaling) and
provides cloud masking for Landsat Collection 2 imagery.
"""

import json
import os
from pathlib import Path
from typing import Optional

import ee


class SensorSpec:
    """
    Holds metadata for a sensor (band aliases, collection ID, masking strategy).
    """

    _registry: Optional[dict] = None

    def __init__(
        self,
        collection_id: str,
        bands: dict,
        native_resolution: int,
        cloud_mask_method: str,
        qa_exclude_bits: list[int] | None = None,
        reflectance_scale: dict | None = None,
    ):
        self.collection_id = collection_id
        self.bands = bands
        self.native_resolution = native_resolution
        self.cloud_mask_method = cloud_mask_method
        # QA_PIXEL bit 3 = cloud shadow, bit 4 = cloud
        self.qa_exclude_bits = qa_exclude_bits or [3, 4]
        self.reflectance_scale = reflectance_scale or {}

    def band(self, alias: str) -> str:
        """Return the native band name for a lowercase alias ('red', 'nir'...)."""
        try:
            return self.bands[alias]
        except KeyError as e:
            raise ValueError(
                f"Sensor {self.collection_id} has no '{alias}' band"
            ) from e

    def cloud_mask(self, img: ee.Image) -> ee.Image:
        """
        Apply the cloud mask for this sensor's cloud_mask_method.
        'qa_pixel' keeps pixels where none of the excluded QA bits are set.
        """
        method = self.cloud_mask_method.lower()
        if method == "qa_pixel":
            qa = img.select(self.band("qa"))
            valid = None
            for bit in self.qa_exclude_bits:
                clear = qa.bitwiseAnd(1 << bit).eq(0)
                valid = clear if valid is None else valid.And(clear)
            return img.updateMask(valid)
        return img

    def scale_reflectance(self, img: ee.Image) -> ee.Image:
        """
        Convert surface reflectance DNs to reflectance, floored at zero so band
        ratios stay within their nominal range.
        """
        if not self.reflectance_scale:
            return img
        optical = [self.bands[a] for a in ("blue", "red", "nir") if a in self.bands]
        scaled = (
            img.select(optical)
            .multiply(self.reflectance_scale["multiply"])
            .add(self.reflectance_scale["add"])
            .max(0)
        )
        return img.addBands(scaled, None, True)

    @classmethod
    def _load_registry(cls) -> dict:
        """Load sensor specs from resources/sensor_specs.json (or REGIONSTATS_SENSOR_SPECS)."""
        if cls._registry is None:
            override = os.getenv("REGIONSTATS_SENSOR_SPECS")
            if override:
                spec_file = Path(override)
            else:
                base = Path(__file__).resolve().parent.parent
                spec_file = base / "resources" / "sensor_specs.json"
            with open(spec_file, "r", encoding="utf-8") as f:
                cls._registry = json.load(f)
        return cls._registry

    @classmethod
    def from_collection_id(cls, collection_id: str) -> "SensorSpec":
        """
        Factory method: create a SensorSpec from a collection ID by reading the registry.
        """
        registry = cls._load_registry()
        spec = registry.get(collection_id)
        if spec is None:
            raise ValueError(
                f"Collection ID '{collection_id}' not found in sensor_specs.json"
            )
        return cls(
            collection_id=collection_id,
            bands=spec["bands"],
            native_resolution=spec["native_resolution"],
            cloud_mask_method=spec["cloud_mask_method"],
            qa_exclude_bits=spec.get("qa_exclude_bits"),
            reflectance_scale=spec.get("reflectance_scale"),
        )
