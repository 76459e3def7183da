"""GeoFusion Adaptive Kalman Filter (2-D, constant velocity)
===========================================================

State:       x = [x, y, vx, vy]
Covariance:  P = diag(p0, p1, p2, p3)  (off-diagonal terms stay zero)
Noise:       Q (process), R (measurement), scalars in [0.001, 10.0]

Predict (velocity comes from the reported speed/heading, not from x):
    vx' = v cos(h),  vy' = v sin(h)
    x  += vy * dt
    y  += vx * dt
    P[i,i] += Q

Update (per-dimension gain on the diagonal):
    nu      = z - x[:2]
    (Q, R)  = retune(Q, R, nu)
    K[i]    = P[i,i] / (P[i,i] + R)          i = 0..3
    x[i]   += K[i] * (z[i] - x[i])           i = 0..1
    P[i,i] *= 1 - K[i]                       i = 0..3

With heading measured clockwise from north, cos(h) is the northward and
sin(h) the eastward component, so advancing x (east) by vy and y (north) by
vx moves the filter along the reported course.

License: AGPL-3.0-or-later
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

import numpy as np

from .geofusion_adaptation import (
    clamp_noise, retune_for_innovation, scale_for_accuracy,
)
from .geofusion_config import AdaptationConfig, FusionConfig
from .geofusion_errors import NonFiniteInputError

logger = logging.getLogger(__name__)

_DIAG = np.diag_indices(4)


def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if not np.all(np.isfinite(value)):
            raise NonFiniteInputError(f"{name} must be finite, got {value!r}")


class AdaptiveKalmanFilter2D:
    """Diagonal-covariance constant-velocity filter with self-tuning noise.

    Example::

        kf = AdaptiveKalmanFilter2D(x0, y0, 0.0, 0.0)
        kf.scale_measurement_noise(accuracy=12.0)
        fused = kf.weighted_average(kf.position, z)
        kf.update(z)
        kf.predict(dt=1.0, speed=3.2, heading_deg=45.0)
    """

    def __init__(self, x: float, y: float, vx: float, vy: float,
                 config: Optional[FusionConfig] = None):
        _require_finite(x=x, y=y, vx=vx, vy=vy)
        self.config = (config or FusionConfig()).validate()
        self._x = np.array([x, y, vx, vy], dtype=float)
        self._P = np.eye(4)
        self._q = float(self.config.initial_process_noise)
        self._r = float(self.config.initial_measurement_noise)

    # -- read-only views --------------------------------------------------
    @property
    def adaptation(self) -> AdaptationConfig:
        return self.config.adaptation

    @property
    def state(self) -> np.ndarray:
        return self._x.copy()

    @property
    def position(self) -> np.ndarray:
        return self._x[:2].copy()

    @property
    def velocity(self) -> np.ndarray:
        return self._x[2:].copy()

    @property
    def covariance(self) -> np.ndarray:
        return self._P.copy()

    @property
    def process_noise(self) -> float:
        return self._q

    @property
    def measurement_noise(self) -> float:
        return self._r

    # -- predict / update -------------------------------------------------
    def predict(self, dt: float, speed: float, heading_deg: float) -> np.ndarray:
        """Advance the state by ``dt`` seconds.

        Position moves with the velocity estimated on the previous cycle;
        the velocity is then replaced from (speed, heading). A zero or
        negative ``dt`` produces no displacement but still inflates P.

        Returns:
            Copy of the post-predict state [x, y, vx, vy].
        """
        _require_finite(dt=dt, speed=speed, heading_deg=heading_deg)
        dt = max(float(dt), 0.0)
        heading = math.radians(heading_deg)

        vx_old, vy_old = self._x[2], self._x[3]
        self._x[0] += vy_old * dt
        self._x[1] += vx_old * dt
        self._x[2] = speed * math.cos(heading)
        self._x[3] = speed * math.sin(heading)

        self._P[_DIAG] += self._q
        return self._x.copy()

    def update(self, measurement: Sequence[float]) -> np.ndarray:
        """Correct the position toward a measured [x, y].

        Returns:
            The innovation (measured minus prior position).
        """
        z = np.asarray(measurement, dtype=float)[:2]
        _require_finite(measurement=z)

        innovation = z - self._x[:2]
        self._q, self._r = retune_for_innovation(self._q, self._r, innovation,
                                                 self.adaptation)

        p = self._P[_DIAG]
        K = p / (p + self._r)
        self._x[:2] += K[:2] * (z - self._x[:2])
        self._P[_DIAG] = p * (1.0 - K)

        logger.debug("update: |nu|=%.3f K=%s Q=%.4f R=%.4f",
                     float(np.hypot(*innovation)), np.round(K, 4), self._q, self._r)
        return innovation

    # -- noise handling ---------------------------------------------------
    def scale_measurement_noise(self, accuracy: float) -> float:
        """Apply the accuracy rule to R; returns the new R."""
        _require_finite(accuracy=accuracy)
        self._r = scale_for_accuracy(self._r, accuracy, self.adaptation)
        return self._r

    def adjust_measurement_noise(self, factor: float) -> float:
        """Multiply R by ``factor`` (result clamped); returns the new R."""
        _require_finite(factor=factor)
        self._r = clamp_noise(self._r * factor, self.adaptation)
        return self._r

    def weighted_average(self, predicted: Sequence[float],
                         measured: Sequence[float]) -> np.ndarray:
        """Blend a predicted and a measured position by relative noise.

        The prediction is weighted by R/(Q+R) and the measurement by
        Q/(Q+R): a noisy sensor pulls the blend toward the prediction.
        """
        total = self._q + self._r
        w_pred = self._r / total
        w_meas = self._q / total
        p = np.asarray(predicted, dtype=float)[:2]
        m = np.asarray(measured, dtype=float)[:2]
        return p * w_pred + m * w_meas

    def __repr__(self) -> str:
        x, y, vx, vy = self._x
        return (f"AdaptiveKalmanFilter2D(pos=({x:.2f}, {y:.2f}), "
                f"vel=({vx:.2f}, {vy:.2f}), Q={self._q:.4f}, R={self._r:.4f})")
