"""Fujifilm shutter count."""

from __future__ import annotations

import logging

from .constants import FujiProperty
from .errors import PTPError
from .protocol import PTPProtocol
from .session import PTPSession

logger = logging.getLogger(__name__)


class FujiShutterStrategy:
    """Fuji bodies expose the total shot count as a plain device property."""

    def acquire_shutter_count(self, session: PTPSession) -> int | None:
        logger.info("Querying Fuji TotalShotCount (%#06x)...", FujiProperty.TOTAL_SHOT_COUNT)
        try:
            return PTPProtocol(session).get_device_prop_value(FujiProperty.TOTAL_SHOT_COUNT)
        except PTPError as e:
            logger.info("TotalShotCount read failed: %s", e)
            return None
