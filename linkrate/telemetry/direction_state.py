"""Upload/download test activation state."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from ..core.models import TelemetryField, TestDirection
from .publisher import TelemetryPublisher
from .sampler import RateSampler

LOGGER = logging.getLogger(__name__)

_DIRECTION_FIELDS: Dict[TestDirection, TelemetryField] = {
    TestDirection.UPLOAD: TelemetryField.UPLOAD_ACTIVE,
    TestDirection.DOWNLOAD: TelemetryField.DOWNLOAD_ACTIVE,
}


class TestStateController:
    """Track which test directions are active and drive the rate sampler.

    Both directions share one sampler: a test runs in one direction at a
    time, so turning either direction off stops sampling.
    """

    __test__ = False

    def __init__(
        self,
        sampler: RateSampler,
        publisher: Optional[TelemetryPublisher] = None,
    ) -> None:
        self._sampler = sampler
        self._publisher = publisher
        self._active: Dict[TestDirection, bool] = {
            direction: False for direction in TestDirection
        }

    def is_active(self, direction: TestDirection) -> bool:
        return self._active[TestDirection(direction)]

    def toggle(self, direction: TestDirection, turn_on: bool) -> None:
        direction = TestDirection(direction)
        LOGGER.debug(
            "Toggle test state. active=%s direction=%s", turn_on, direction.value
        )
        self._active[direction] = bool(turn_on)
        if self._publisher is not None:
            self._publisher.set(_DIRECTION_FIELDS[direction], bool(turn_on))
        if turn_on:
            self._sampler.start()
        else:
            self._sampler.stop()
