"""GeoFusion: adaptive Kalman filtering for noisy planar location fixes.

Fuses intermittent position fixes with a constant-velocity motion model
driven by reported speed and heading, and retunes its own noise levels from
fix accuracy and innovation size.

Quick Start::

    from geofusion import FusionSession, Measurement
    session = FusionSession()
    for fix in fixes:
        result = session.process(fix)
        print(result.fused, result.predicted, result.stale)

License: AGPL-3.0-or-later
"""

import logging

__version__ = "1.0.0"
__license__ = "AGPL-3.0-or-later"

logging.getLogger(__name__).addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Filter core
# ---------------------------------------------------------------------------
from .geofusion_filter import AdaptiveKalmanFilter2D
from .geofusion_adaptation import (
    clamp_noise,
    accuracy_factor,
    scale_for_accuracy,
    innovation_magnitude,
    retune_for_innovation,
)

# ---------------------------------------------------------------------------
# Records, session, delivery
# ---------------------------------------------------------------------------
from .geofusion_types import (
    Measurement,
    FusionResult,
    PositionKind,
    TaggedPosition,
    is_stale,
    STALE_AFTER_MS,
)
from .geofusion_session import FusionSession
from .geofusion_stream import FusionWorker
from .geofusion_history import TrackHistory

# ---------------------------------------------------------------------------
# Configuration & errors
# ---------------------------------------------------------------------------
from .geofusion_config import (
    FusionConfig,
    AdaptationConfig,
    SourceRequest,
    AccuracyPriority,
    load_config,
    save_config,
)
from .geofusion_errors import (
    FusionError,
    NonFiniteInputError,
    InvalidMeasurementError,
    FilterNotInitializedError,
    SessionInactiveError,
    ConfigError,
)

# ---------------------------------------------------------------------------
# Measurement sources
# ---------------------------------------------------------------------------
from .geofusion_datasets import (
    MeasurementLog,
    SyntheticTrack,
    SyntheticTrackGenerator,
)

__all__ = [
    "__version__",
    # Filter
    "AdaptiveKalmanFilter2D",
    "clamp_noise", "accuracy_factor", "scale_for_accuracy",
    "innovation_magnitude", "retune_for_innovation",
    # Records / session
    "Measurement", "FusionResult", "PositionKind", "TaggedPosition",
    "is_stale", "STALE_AFTER_MS",
    "FusionSession", "FusionWorker", "TrackHistory",
    # Config
    "FusionConfig", "AdaptationConfig", "SourceRequest", "AccuracyPriority",
    "load_config", "save_config",
    # Errors
    "FusionError", "NonFiniteInputError", "InvalidMeasurementError",
    "FilterNotInitializedError", "SessionInactiveError", "ConfigError",
    # Sources
    "MeasurementLog", "SyntheticTrack", "SyntheticTrackGenerator",
]
