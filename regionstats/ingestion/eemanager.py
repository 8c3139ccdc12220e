"""
Module `ingestion.eemanager` provides the EarthEngineManager class to
encapsulate Google Earth Engine initialization, blocking evaluation and
image collection retrieval.
"""

import os
import json
from typing import Optional, Any, Sequence

from google.oauth2.credentials import Credentials

import ee
from ee import EEException

from regionstats.core.exceptions import ExternalServiceFailure, ResourceLimitExceeded
from regionstats.core.logger import Logger
from .sensorspec import SensorSpec

# Fragments of EE error messages that mean a reduction hit a resource ceiling
_RESOURCE_LIMIT_MARKERS = (
    "too many pixels",
    "maxpixels",
    "user memory limit exceeded",
    "computation timed out",
    "capacity exceeded",
)


class EarthEngineManager:
    """
    Manages interaction with Google Earth Engine: initialization, evaluation and
    collection retrieval.
    """

    def __init__(
        self,
        credential_path: Optional[str] = None,
        project: Optional[str] = None,
        logger=None,
    ):
        self.credential_path = credential_path
        # Allow non-interactive auth using a refresh token passed via env.
        self.token_env = os.getenv("EARTHENGINE_TOKEN")
        self.project = project or os.getenv("REGIONSTATS_EE_PROJECT")
        self.logger = logger or Logger.get_logger(__name__)

    def initialize(self) -> None:
        """
        Authenticate & initialize Earth Engine.
        If a service-account JSON path is given, use it; otherwise fall back to a
        refresh token from EARTHENGINE_TOKEN, then to the default credentials.
        """
        project = self.project
        try:
            if self.credential_path:
                sa_credentials: Any = ee.ServiceAccountCredentials(
                    None, self.credential_path  # type: ignore[arg-type]
                )
                ee.Initialize(sa_credentials, project=project)
            elif self.token_env:
                creds_data = None
                if os.path.exists(self.token_env):
                    with open(self.token_env, "r", encoding="utf-8") as fh:
                        creds_data = json.load(fh)
                else:
                    try:
                        creds_data = json.loads(self.token_env)
                    except json.JSONDecodeError:
                        pass
                if creds_data and "refresh_token" in creds_data:
                    token_credentials: Any = Credentials(
                        None,
                        refresh_token=creds_data.get("refresh_token"),
                        token_uri=creds_data.get("token_uri", ee.oauth.TOKEN_URI),
                        client_id=creds_data.get("client_id", ee.oauth.CLIENT_ID),
                        client_secret=creds_data.get(
                            "client_secret", ee.oauth.CLIENT_SECRET
                        ),
                        scopes=creds_data.get("scopes", ee.oauth.SCOPES),
                        quota_project_id=creds_data.get("project"),
                    )
                    ee.Initialize(token_credentials, project=project)
                else:
                    ee.Initialize(project=project)
            else:
                ee.Initialize(project=project)
        except EEException:
            ee.Authenticate()
            ee.Initialize(project=project)

    def get_info(self, obj, what: str = "evaluation"):
        """
        Evaluate *obj* with a single blocking ``getInfo()`` call.

        There are no retries. Resource ceiling errors are raised as
        ResourceLimitExceeded, every other EE error as ExternalServiceFailure.
        """
        return self._evaluate(obj.getInfo, what)

    def get_map_id(self, image, vis: dict, what: str = "map tiles") -> dict:
        """Request a tile map id for *image* styled with *vis* (one blocking call)."""
        return self._evaluate(lambda: image.getMapId(vis), what)

    def _evaluate(self, call, what: str):
        try:
            return call()
        except EEException as err:
            msg = str(err)
            self.logger.error("Earth Engine %s failed: %s", what, msg)
            if any(marker in msg.lower() for marker in _RESOURCE_LIMIT_MARKERS):
                raise ResourceLimitExceeded(f"{what}: {msg}") from err
            raise ExternalServiceFailure(f"{what}: {msg}") from err

    def get_image_collection(
        self,
        collection_id: str,
        start_date: str,
        end_date: str,
        region,
        bands: Optional[Sequence[str]] = None,
        mask_clouds: bool = True,
        scale_reflectance: bool = False,
    ) -> ee.ImageCollection:
        """
        Return an EE ImageCollection filtered by region and date, with optional
        cloud masking, reflectance scaling and band selection.
        """
        coll = (
            ee.ImageCollection(collection_id)
            .filterBounds(region)
            .filterDate(start_date, end_date)
        )
        if mask_clouds or scale_reflectance:
            sensor = SensorSpec.from_collection_id(collection_id)
            if mask_clouds:
                coll = coll.map(sensor.cloud_mask)
            if scale_reflectance:
                coll = coll.map(sensor.scale_reflectance)
        if bands:
            coll = coll.select(list(bands))
        return coll


# Convenience singleton
ee_manager = EarthEngineManager()
