"""GeoFusion Session: per-measurement fusion cycle
=================================================

One session owns one filter and processes fixes strictly in arrival order.
Each call to :meth:`FusionSession.process` runs the full cycle:

    1. seed the filter from the first fix (zero velocity)
    2. rescale R from the fix's accuracy radius
    3. blend the filter's current position with the fix      -> fused
    4. Kalman update with the fix (innovation retunes Q, R)
    5. predict with dt since the previous fix, speed, heading -> predicted
    6. emit a FusionResult
    7. remember the fix timestamp

The blend in step 3 reads Q and R after step 2 and before step 4 retunes
them again.

Usage::

    session = FusionSession()
    for fix in source:
        result = session.process(fix)
        draw(result.fused, result.predicted, result.measured)
    session.stop()

License: AGPL-3.0-or-later
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Iterator, Optional

from .geofusion_config import FusionConfig
from .geofusion_errors import (
    FilterNotInitializedError, InvalidMeasurementError, SessionInactiveError,
)
from .geofusion_filter import AdaptiveKalmanFilter2D
from .geofusion_types import (
    FusionResult, Measurement, PositionKind, is_stale, tagged,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
RejectCallback = Callable[[Measurement, InvalidMeasurementError], None]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class FusionSession:
    """Fuses a single ordered stream of position fixes.

    Args:
        config: Filter/session configuration (defaults if omitted)
        clock: Returns "now" in epoch ms; used for the stale flag
    """

    def __init__(self, config: Optional[FusionConfig] = None,
                 clock: Optional[Clock] = None):
        self.config = (config or FusionConfig()).validate()
        self.clock = clock or wall_clock_ms
        self._filter: Optional[AdaptiveKalmanFilter2D] = None
        self.previous_timestamp: Optional[int] = None
        self.active = True
        self.processed_count = 0
        self.rejected_count = 0

    # -- lifecycle --------------------------------------------------------
    def start(self) -> None:
        """Begin (or restart) accepting fixes with a fresh filter."""
        self._reset()
        self.active = True
        logger.info("Fusion session started")

    def stop(self) -> None:
        """Stop accepting fixes and discard the filter."""
        self._reset()
        self.active = False
        logger.info("Fusion session stopped after %d fixes (%d rejected)",
                    self.processed_count, self.rejected_count)

    def _reset(self) -> None:
        self._filter = None
        self.previous_timestamp = None

    @property
    def initialized(self) -> bool:
        return self._filter is not None

    @property
    def filter(self) -> AdaptiveKalmanFilter2D:
        if self._filter is None:
            raise FilterNotInitializedError(
                "No filter yet: the first measurement seeds it")
        return self._filter

    # -- cycle ------------------------------------------------------------
    def process(self, measurement: Measurement) -> FusionResult:
        """Run one fusion cycle.

        Raises:
            SessionInactiveError: the session was stopped
            InvalidMeasurementError: a field is NaN/inf; nothing was changed
        """
        if not self.active:
            raise SessionInactiveError("Session is stopped; call start() first")
        try:
            measurement.validate()
        except InvalidMeasurementError:
            self.rejected_count += 1
            raise

        if self.previous_timestamp is None:
            dt = 0.0
        else:
            dt = (measurement.timestamp - self.previous_timestamp) / 1000.0

        z = measurement.position
        if self._filter is None:
            self._filter = AdaptiveKalmanFilter2D(z[0], z[1], 0.0, 0.0, self.config)
            logger.debug("Filter seeded at (%.3f, %.3f)", z[0], z[1])
        kf = self._filter

        kf.scale_measurement_noise(measurement.accuracy)
        fused = kf.weighted_average(kf.position, z)
        kf.update(z)
        predicted = kf.predict(dt, measurement.speed, measurement.heading)

        result = FusionResult(
            fused=tagged(PositionKind.FUSED, fused),
            predicted=tagged(PositionKind.PREDICTED, predicted[:2]),
            measured=tagged(PositionKind.MEASURED, z),
            timestamp=measurement.timestamp,
            stale=is_stale(measurement.timestamp, self.clock(),
                           self.config.stale_after_ms),
            horizontal_accuracy=measurement.accuracy,
            vertical_accuracy=measurement.vertical_accuracy,
            speed=measurement.speed,
            course=measurement.heading,
        )

        self.previous_timestamp = measurement.timestamp
        self.processed_count += 1
        return result

    def process_many(self, measurements: Iterable[Measurement],
                     on_rejected: Optional[RejectCallback] = None
                     ) -> Iterator[FusionResult]:
        """Process fixes in order, dropping invalid ones.

        Yields one result per valid fix. Rejections are logged and passed
        to ``on_rejected``; the stream continues with the next fix.
        """
        for m in measurements:
            try:
                yield self.process(m)
            except InvalidMeasurementError as exc:
                logger.warning("Dropped measurement: %s", exc)
                if on_rejected is not None:
                    on_rejected(m, exc)

    def __repr__(self) -> str:
        state = "active" if self.active else "stopped"
        return (f"FusionSession({state}, processed={self.processed_count}, "
                f"rejected={self.rejected_count}, filter={self._filter!r})")
