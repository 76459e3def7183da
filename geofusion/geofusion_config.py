"""GeoFusion Configuration
=========================

Tunable constants for the adaptive filter and the session, loadable from a
YAML file::

    filter:
      initial_process_noise: 0.1
      initial_measurement_noise: 0.01
    adaptation:
      min_noise: 0.001
      max_noise: 10.0
      low_accuracy_threshold: 20.0
      high_accuracy_threshold: 5.0
    session:
      stale_after_ms: 5000
    source:
      priority: high_accuracy
      interval_s: 1.0

Missing keys fall back to the defaults below.

License: AGPL-3.0-or-later
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Optional

import yaml

from .geofusion_errors import ConfigError


class AccuracyPriority(Enum):
    """Accuracy/power trade-off requested from the measurement source."""
    HIGH_ACCURACY = "high_accuracy"
    BALANCED_POWER_ACCURACY = "balanced_power_accuracy"
    LOW_POWER = "low_power"
    PASSIVE = "passive"


@dataclass
class AdaptationConfig:
    """Bounds, thresholds and factors for both noise-adaptation rules.

    Attributes:
        min_noise, max_noise: Clamp range for process and measurement noise
        low_accuracy_threshold: Accuracy radius above which a fix is trusted less
        high_accuracy_threshold: Accuracy radius below which a fix is trusted more
        low_accuracy_factor: Measurement-noise multiplier for poor fixes
        high_accuracy_factor: Measurement-noise multiplier for good fixes
        high_innovation_threshold: Innovation magnitude that signals a model miss
        low_innovation_threshold: Innovation magnitude that signals a steady sensor
        innovation_growth: Multiplier for the noise that grows
        innovation_decay: Multiplier for the noise that shrinks
    """
    min_noise: float = 0.001
    max_noise: float = 10.0
    low_accuracy_threshold: float = 20.0
    high_accuracy_threshold: float = 5.0
    low_accuracy_factor: float = 1.5
    high_accuracy_factor: float = 0.9
    high_innovation_threshold: float = 10.0
    low_innovation_threshold: float = 1.0
    innovation_growth: float = 1.1
    innovation_decay: float = 0.9

    def validate(self) -> None:
        for name, value in asdict(self).items():
            if not math.isfinite(value):
                raise ConfigError(f"adaptation.{name} must be finite, got {value!r}")
        if self.min_noise <= 0:
            raise ConfigError(f"adaptation.min_noise must be > 0, got {self.min_noise}")
        if self.min_noise >= self.max_noise:
            raise ConfigError(
                f"adaptation.min_noise ({self.min_noise}) must be below "
                f"max_noise ({self.max_noise})")
        if self.high_accuracy_threshold > self.low_accuracy_threshold:
            raise ConfigError("adaptation.high_accuracy_threshold must not exceed "
                              "low_accuracy_threshold")
        if self.low_innovation_threshold > self.high_innovation_threshold:
            raise ConfigError("adaptation.low_innovation_threshold must not exceed "
                              "high_innovation_threshold")
        for name in ("low_accuracy_factor", "high_accuracy_factor",
                     "innovation_growth", "innovation_decay"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"adaptation.{name} must be > 0")


@dataclass
class SourceRequest:
    """What a host should ask its location source for."""
    priority: AccuracyPriority = AccuracyPriority.HIGH_ACCURACY
    interval_s: float = 1.0

    @property
    def interval_ms(self) -> int:
        return int(round(self.interval_s * 1000))

    def validate(self) -> None:
        if not (self.interval_s > 0 and math.isfinite(self.interval_s)):
            raise ConfigError(f"source.interval_s must be > 0, got {self.interval_s}")


@dataclass
class FusionConfig:
    """Top-level configuration for a fusion session."""
    initial_process_noise: float = 0.1
    initial_measurement_noise: float = 0.01
    stale_after_ms: int = 5000
    adaptation: AdaptationConfig = field(default_factory=AdaptationConfig)
    source: SourceRequest = field(default_factory=SourceRequest)

    def validate(self) -> "FusionConfig":
        self.adaptation.validate()
        self.source.validate()
        lo, hi = self.adaptation.min_noise, self.adaptation.max_noise
        for name in ("initial_process_noise", "initial_measurement_noise"):
            value = getattr(self, name)
            if not (lo <= value <= hi):
                raise ConfigError(f"{name}={value} outside noise bounds [{lo}, {hi}]")
        if self.stale_after_ms < 0:
            raise ConfigError(f"stale_after_ms must be >= 0, got {self.stale_after_ms}")
        return self

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FusionConfig":
        """Build a config from the nested dict layout shown in the module docstring."""
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at top level, got {type(data).__name__}")

        filt = _section(data, "filter")
        session = _section(data, "session")
        source = _section(data, "source")
        try:
            adaptation = AdaptationConfig(**{k: float(v) for k, v in _section(data, "adaptation").items()})
            priority = source.get("priority", AccuracyPriority.HIGH_ACCURACY.value)
            cfg = cls(
                initial_process_noise=float(filt.get("initial_process_noise", 0.1)),
                initial_measurement_noise=float(filt.get("initial_measurement_noise", 0.01)),
                stale_after_ms=int(session.get("stale_after_ms", 5000)),
                adaptation=adaptation,
                source=SourceRequest(
                    priority=AccuracyPriority(str(priority).lower()),
                    interval_s=float(source.get("interval_s", 1.0)),
                ),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc
        return cfg.validate()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filter": {
                "initial_process_noise": self.initial_process_noise,
                "initial_measurement_noise": self.initial_measurement_noise,
            },
            "adaptation": asdict(self.adaptation),
            "session": {"stale_after_ms": self.stale_after_ms},
            "source": {
                "priority": self.source.priority.value,
                "interval_s": self.source.interval_s,
            },
        }


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    return section


def load_config(config_path: str) -> FusionConfig:
    """Load a YAML configuration file."""
    with open(config_path, 'r') as f:
        return FusionConfig.from_dict(yaml.safe_load(f))


def save_config(config: FusionConfig, config_path: str) -> None:
    with open(config_path, 'w') as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)
