"""GeoFusion Noise Adaptation
============================

Two self-tuning heuristics for the adaptive filter, written as pure
transforms so each can be exercised on its own:

1. Accuracy-driven scaling: the reported fix accuracy radius rescales
   measurement noise R before blending:

       accuracy > 20   ->  R *= 1.5   (poor fix, trust it less)
       accuracy < 5    ->  R *= 0.9   (good fix, trust it more)

2. Innovation-driven retuning: the size of the update residual retunes
   process noise Q and R jointly:

       |nu| > 10  ->  Q *= 1.1, R *= 0.9   (motion model missed a turn/stop)
       |nu| < 1   ->  R *= 1.1, Q *= 0.9   (steady stream, model is fine)

Every result is clamped to [min_noise, max_noise] (default [0.001, 10.0]).

License: AGPL-3.0-or-later
"""

import math
from typing import Optional, Sequence, Tuple

from .geofusion_config import AdaptationConfig

_DEFAULT = AdaptationConfig()


def clamp_noise(value: float, config: Optional[AdaptationConfig] = None) -> float:
    """Clamp a noise value into the configured bounds."""
    cfg = config or _DEFAULT
    return min(max(value, cfg.min_noise), cfg.max_noise)


def accuracy_factor(accuracy: float, config: Optional[AdaptationConfig] = None) -> float:
    """Multiplier the accuracy rule applies to R (1.0 inside the neutral band)."""
    cfg = config or _DEFAULT
    if accuracy > cfg.low_accuracy_threshold:
        return cfg.low_accuracy_factor
    if accuracy < cfg.high_accuracy_threshold:
        return cfg.high_accuracy_factor
    return 1.0


def scale_for_accuracy(measurement_noise: float, accuracy: float,
                       config: Optional[AdaptationConfig] = None) -> float:
    """Rescale measurement noise from a fix's reported accuracy radius.

    Args:
        measurement_noise: Current R
        accuracy: Horizontal accuracy radius, same units as positions
        config: Thresholds/factors/bounds (defaults if omitted)

    Returns:
        New, clamped R.
    """
    factor = accuracy_factor(accuracy, config)
    if factor == 1.0:
        return measurement_noise
    return clamp_noise(measurement_noise * factor, config)


def innovation_magnitude(innovation: Sequence[float]) -> float:
    return math.hypot(innovation[0], innovation[1])


def retune_for_innovation(process_noise: float, measurement_noise: float,
                          innovation: Sequence[float],
                          config: Optional[AdaptationConfig] = None
                          ) -> Tuple[float, float]:
    """Jointly retune (Q, R) from the magnitude of a 2-D innovation.

    Returns:
        (process_noise, measurement_noise), each clamped independently.
        Inside the neutral band both are returned unchanged.
    """
    cfg = config or _DEFAULT
    m = innovation_magnitude(innovation)

    if m > cfg.high_innovation_threshold:
        return (clamp_noise(process_noise * cfg.innovation_growth, cfg),
                clamp_noise(measurement_noise * cfg.innovation_decay, cfg))
    if m < cfg.low_innovation_threshold:
        return (clamp_noise(process_noise * cfg.innovation_decay, cfg),
                clamp_noise(measurement_noise * cfg.innovation_growth, cfg))
    return process_noise, measurement_noise
