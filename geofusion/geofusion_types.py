"""GeoFusion data records: input measurements and fused output.

License: AGPL-3.0-or-later
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple

import numpy as np

from .geofusion_errors import InvalidMeasurementError

STALE_AFTER_MS = 5000


class PositionKind(Enum):
    """Which estimate a position represents."""
    FUSED = "fused"           # Noise-weighted blend of prediction and fix
    PREDICTED = "predicted"   # Motion-model prediction for the next cycle
    MEASURED = "measured"     # Raw fix as delivered


@dataclass(frozen=True)
class Measurement:
    """One position fix in the common planar frame.

    Attributes:
        x, y: Planar position
        accuracy: Horizontal accuracy radius (same units as x, y)
        speed: Ground speed (position units per second)
        heading: Course in degrees, clockwise from north
        timestamp: Epoch milliseconds
        vertical_accuracy: Optional vertical accuracy, carried through only
    """
    x: float
    y: float
    accuracy: float
    speed: float
    heading: float
    timestamp: int
    vertical_accuracy: Optional[float] = None

    _CHECKED = ("x", "y", "accuracy", "speed", "heading", "timestamp")

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)

    def first_non_finite(self) -> Optional[str]:
        """Name of the first NaN/inf field, or None."""
        for name in self._CHECKED:
            value = getattr(self, name)
            try:
                if not math.isfinite(value):
                    return name
            except TypeError:
                return name
        return None

    def is_finite(self) -> bool:
        return self.first_non_finite() is None

    def validate(self) -> "Measurement":
        bad = self.first_non_finite()
        if bad is not None:
            raise InvalidMeasurementError(
                f"Measurement at t={self.timestamp} has non-finite {bad}="
                f"{getattr(self, bad)!r}",
                measurement=self, field=bad)
        return self


@dataclass(frozen=True)
class TaggedPosition:
    kind: PositionKind
    x: float
    y: float

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)


@dataclass(frozen=True)
class FusionResult:
    """Output of one processed measurement.

    Attributes:
        fused: Noise-weighted blend of prior prediction and measurement
        predicted: Filter position after this cycle's predict step
        measured: The raw measured position
        timestamp: Source measurement timestamp (epoch ms)
        stale: True when emitted more than the stale threshold after ``timestamp``
        horizontal_accuracy, vertical_accuracy: Carried from the measurement
        speed, course: Carried from the measurement
    """
    fused: TaggedPosition
    predicted: TaggedPosition
    measured: TaggedPosition
    timestamp: int
    stale: bool
    horizontal_accuracy: float
    vertical_accuracy: Optional[float] = None
    speed: float = 0.0
    course: float = 0.0

    def positions(self) -> Iterator[TaggedPosition]:
        yield self.fused
        yield self.predicted
        yield self.measured

    def get(self, kind: PositionKind) -> TaggedPosition:
        return {PositionKind.FUSED: self.fused,
                PositionKind.PREDICTED: self.predicted,
                PositionKind.MEASURED: self.measured}[kind]

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.timestamp


def is_stale(timestamp_ms: int, now_ms: int, threshold_ms: int = STALE_AFTER_MS) -> bool:
    """A fix is stale once it is strictly older than ``threshold_ms``."""
    return (now_ms - timestamp_ms) > threshold_ms


def tagged(kind: PositionKind, xy: Tuple[float, float]) -> TaggedPosition:
    return TaggedPosition(kind, float(xy[0]), float(xy[1]))
