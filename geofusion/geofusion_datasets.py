"""GeoFusion Measurement Sources: logs and synthetic tracks
===========================================================

Bridges recorded or simulated fixes into :class:`Measurement` records.

    - MeasurementLog: CSV replay/recording of projected fixes
    - SyntheticTrackGenerator: reproducible ground truth + noisy fixes

CSV columns::

    timestamp,x,y,accuracy,speed,heading[,vertical_accuracy]

Headings follow the compass convention (degrees clockwise from north, +y is
north, +x is east).

License: AGPL-3.0-or-later
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from .geofusion_types import Measurement

logger = logging.getLogger(__name__)

LOG_COLUMNS = ['timestamp', 'x', 'y', 'accuracy', 'speed', 'heading']


class MeasurementLog:
    """CSV adapter for recorded fixes.

    Usage::

        fixes = MeasurementLog.load("walk.csv")
        for result in FusionSession().process_many(fixes):
            ...
    """

    @staticmethod
    def load(filepath: str, delimiter: str = ',') -> List[Measurement]:
        """Load fixes sorted by timestamp.

        Non-numeric cells load as NaN so the session can reject the fix.
        """
        fixes = []
        with open(filepath, newline='') as f:
            reader = csv.DictReader(f, delimiter=delimiter)
            missing = [c for c in LOG_COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise ValueError(f"{filepath}: missing columns {missing}")
            for row in reader:
                vacc = row.get('vertical_accuracy')
                fixes.append(Measurement(
                    x=_to_float(row['x']),
                    y=_to_float(row['y']),
                    accuracy=_to_float(row['accuracy']),
                    speed=_to_float(row['speed']),
                    heading=_to_float(row['heading']),
                    timestamp=int(float(row['timestamp'])),
                    vertical_accuracy=_to_float(vacc) if vacc not in (None, '') else None,
                ))
        fixes.sort(key=lambda m: m.timestamp)
        logger.debug("Loaded %d fixes from %s", len(fixes), filepath)
        return fixes

    @staticmethod
    def save(measurements: List[Measurement], filepath: str) -> None:
        with open(filepath, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(LOG_COLUMNS + ['vertical_accuracy'])
            for m in measurements:
                writer.writerow([m.timestamp, m.x, m.y, m.accuracy, m.speed, m.heading,
                                 '' if m.vertical_accuracy is None else m.vertical_accuracy])


def _to_float(cell: str) -> float:
    try:
        return float(cell)
    except (TypeError, ValueError):
        return float('nan')


@dataclass
class SyntheticTrack:
    """Ground truth plus the fixes a receiver would report along it."""
    name: str
    truth: np.ndarray                 # (N, 2) true positions at each fix
    measurements: List[Measurement]
    metadata: Dict = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.measurements)


class SyntheticTrackGenerator:
    """Reproducible pedestrian/vehicle tracks with noisy fixes.

    Args:
        seed: RNG seed
        noise_std: Position noise standard deviation per axis
        interval_ms: Time between fixes
        start_ms: Timestamp of the first fix
    """

    def __init__(self, seed: int = 42, noise_std: float = 3.0,
                 interval_ms: int = 1000, start_ms: int = 1_000_000):
        self.rng = np.random.RandomState(seed)
        self.noise_std = noise_std
        self.interval_ms = interval_ms
        self.start_ms = start_ms

    @property
    def dt(self) -> float:
        return self.interval_ms / 1000.0

    def _fixes(self, truth: np.ndarray, velocities: np.ndarray,
               accuracy: Optional[np.ndarray] = None) -> List[Measurement]:
        n = len(truth)
        if accuracy is None:
            accuracy = np.full(n, 2.0 * self.noise_std)
        fixes = []
        for k in range(n):
            sigma = max(self.noise_std, accuracy[k] / 2.0)
            noisy = truth[k] + self.rng.randn(2) * sigma
            speed, heading = speed_and_heading(velocities[k])
            fixes.append(Measurement(
                x=float(noisy[0]), y=float(noisy[1]),
                accuracy=float(accuracy[k]),
                speed=speed, heading=heading,
                timestamp=self.start_ms + k * self.interval_ms,
            ))
        return fixes

    def _integrate(self, start: np.ndarray, velocities: np.ndarray) -> np.ndarray:
        steps = np.vstack([np.zeros(2), velocities[:-1] * self.dt])
        return start + np.cumsum(steps, axis=0)

    def straight_line(self, n_fixes: int = 60, speed: float = 1.4,
                      heading_deg: float = 45.0) -> SyntheticTrack:
        """Constant course and speed."""
        v = velocity_from(speed, heading_deg)
        velocities = np.tile(v, (n_fixes, 1))
        truth = self._integrate(np.zeros(2), velocities)
        return SyntheticTrack("straight_line", truth, self._fixes(truth, velocities),
                              {'speed': speed, 'heading': heading_deg})

    def turning(self, n_fixes: int = 90, speed: float = 8.0,
                turn_rate_deg: float = 6.0, turn_start: int = 30,
                turn_end: int = 60) -> SyntheticTrack:
        """Straight, a constant-rate turn, then straight again."""
        headings = np.zeros(n_fixes)
        for k in range(1, n_fixes):
            turning = turn_start <= k < turn_end
            headings[k] = headings[k - 1] + (turn_rate_deg * self.dt if turning else 0.0)
        velocities = np.array([velocity_from(speed, h) for h in headings])
        truth = self._integrate(np.zeros(2), velocities)
        return SyntheticTrack("turning", truth, self._fixes(truth, velocities),
                              {'turn': (turn_start, turn_end)})

    def stop_and_go(self, n_fixes: int = 80, speed: float = 10.0,
                    heading_deg: float = 90.0, stop: Tuple[int, int] = (30, 50)
                    ) -> SyntheticTrack:
        """Drive, halt for a while, drive on."""
        velocities = np.tile(velocity_from(speed, heading_deg), (n_fixes, 1))
        velocities[stop[0]:stop[1]] = 0.0
        truth = self._integrate(np.zeros(2), velocities)
        return SyntheticTrack("stop_and_go", truth, self._fixes(truth, velocities),
                              {'stop': stop})

    def degraded_fixes(self, n_fixes: int = 80, speed: float = 1.4,
                       heading_deg: float = 0.0, p_drop: float = 0.15,
                       poor_window: Tuple[int, int] = (25, 45),
                       poor_accuracy: float = 40.0) -> SyntheticTrack:
        """Walking track with dropped fixes and a poor-accuracy stretch."""
        velocities = np.tile(velocity_from(speed, heading_deg), (n_fixes, 1))
        truth = self._integrate(np.zeros(2), velocities)
        accuracy = np.full(n_fixes, 3.0)
        accuracy[poor_window[0]:poor_window[1]] = poor_accuracy
        fixes = self._fixes(truth, velocities, accuracy)

        keep = self.rng.rand(n_fixes) >= p_drop
        keep[0] = True
        idx = np.flatnonzero(keep)
        return SyntheticTrack("degraded_fixes", truth[idx], [fixes[i] for i in idx],
                              {'dropped': int(n_fixes - len(idx)),
                               'poor_window': poor_window})


def velocity_from(speed: float, heading_deg: float) -> np.ndarray:
    """(east, north) velocity for a compass heading."""
    h = np.radians(heading_deg)
    return np.array([speed * np.sin(h), speed * np.cos(h)])


def speed_and_heading(velocity: np.ndarray) -> Tuple[float, float]:
    """Inverse of :func:`velocity_from`; heading in [0, 360)."""
    east, north = float(velocity[0]), float(velocity[1])
    speed = float(np.hypot(east, north))
    if speed == 0.0:
        return 0.0, 0.0
    return speed, float(np.degrees(np.arctan2(east, north)) % 360.0)


__all__ = [
    "MeasurementLog", "SyntheticTrack", "SyntheticTrackGenerator",
    "velocity_from", "speed_and_heading",
]
