"""Minimal service base class providing a logger."""

from __future__ import annotations

import logging
from regionstats.core.logger import Logger


class BaseService:
    """Base class for service helpers."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or Logger.get_logger(__name__)
