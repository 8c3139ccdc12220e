"""
Tests for SensorSpec registry loading, cloud masking and reflectance scaling.
"""

# pylint: disable=missing-function-docstring

import json

import numpy as np
import pytest

from fakes import FakeImage
from regionstats.ingestion.sensorspec import SensorSpec


@pytest.fixture(autouse=True)
def fresh_registry(monkeypatch):
    monkeypatch.setattr(SensorSpec, "_registry", None)


def test_bundled_registry_band_aliases():
    l8 = SensorSpec.from_collection_id("LANDSAT/LC08/C02/T1_L2")
    assert (l8.band("blue"), l8.band("red"), l8.band("nir")) == ("SR_B2", "SR_B4", "SR_B5")
    l5 = SensorSpec.from_collection_id("LANDSAT/LT05/C02/T1_L2")
    assert (l5.band("red"), l5.band("nir")) == ("SR_B3", "SR_B4")
    assert l8.qa_exclude_bits == [3, 4]
    with pytest.raises(ValueError):
        l8.band("swir3")


def test_toa_entries_carry_thermal_band_and_no_scaling():
    l7 = SensorSpec.from_collection_id("LANDSAT/LE07/C02/T1_TOA")
    assert (l7.band("thermal"), l7.band("red"), l7.band("nir")) == ("B6_VCID_1", "B3", "B4")
    assert l7.band("qa") == "QA_PIXEL"
    assert l7.reflectance_scale == {}
    img = object()
    assert l7.scale_reflectance(img) is img


def test_unknown_collection_raises():
    with pytest.raises(ValueError):
        SensorSpec.from_collection_id("COPERNICUS/S2_SR")


def test_registry_override_from_env(tmp_path, monkeypatch):
    spec_file = tmp_path / "specs.json"
    spec_file.write_text(
        json.dumps(
            {
                "custom/coll": {
                    "bands": {"red": "R", "nir": "N", "qa": "Q"},
                    "native_resolution": 10,
                    "cloud_mask_method": "none",
                }
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("REGIONSTATS_SENSOR_SPECS", str(spec_file))

    spec = SensorSpec.from_collection_id("custom/coll")
    assert spec.native_resolution == 10
    img = object()
    assert spec.cloud_mask(img) is img
    assert spec.scale_reflectance(img) is img


def test_qa_pixel_mask_excludes_shadow_and_cloud_bits():
    recorded = {}

    class QA:
        def __init__(self, label):
            self.label = label

        def bitwiseAnd(self, value):
            return QA(f"{self.label}&{value}")

        def eq(self, value):
            return QA(f"({self.label})=={value}")

        def And(self, other):
            return QA(f"{self.label} AND {other.label}")

    class Img:
        def select(self, band):
            recorded["band"] = band
            return QA(band)

        def updateMask(self, mask):
            recorded["mask"] = mask.label
            return self

    spec = SensorSpec.from_collection_id("LANDSAT/LC08/C02/T1_L2")
    spec.cloud_mask(Img())
    assert recorded["band"] == "QA_PIXEL"
    assert recorded["mask"] == "(QA_PIXEL&8)==0 AND (QA_PIXEL&16)==0"


def test_scale_reflectance_is_floored_at_zero():
    spec = SensorSpec.from_collection_id("LANDSAT/LC08/C02/T1_L2")
    img = FakeImage(
        {
            "SR_B2": [7000.0, 10000.0],
            "SR_B4": [8000.0, 20000.0],
            "SR_B5": [9000.0, 30000.0],
            "QA_PIXEL": [21824.0, 21824.0],
        }
    )
    out = spec.scale_reflectance(img)
    np.testing.assert_allclose(out.values("SR_B2"), [0.0, 0.075])
    np.testing.assert_allclose(out.values("SR_B5"), [0.0475, 0.625])
    np.testing.assert_allclose(out.values("QA_PIXEL"), [21824.0, 21824.0])
