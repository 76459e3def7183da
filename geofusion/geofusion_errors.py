"""GeoFusion exception hierarchy.

Every error derives from :class:`FusionError` and from the built-in type a
caller would naturally catch (``ValueError`` for bad inputs, ``RuntimeError``
for misuse of the session/filter lifecycle).

License: AGPL-3.0-or-later
"""

from typing import Any, Optional


class FusionError(Exception):
    """Base class for all GeoFusion errors."""


class NonFiniteInputError(FusionError, ValueError):
    """A NaN or infinite value reached the filter."""


class InvalidMeasurementError(NonFiniteInputError):
    """A measurement carries a non-finite field and was rejected.

    Attributes:
        measurement: The rejected measurement
        field: Name of the first offending field
    """

    def __init__(self, message: str, measurement: Any = None,
                 field: Optional[str] = None):
        super().__init__(message)
        self.measurement = measurement
        self.field = field


class FilterNotInitializedError(FusionError, RuntimeError):
    """The filter was accessed before the first measurement seeded it."""


class SessionInactiveError(FusionError, RuntimeError):
    """A measurement was submitted to a stopped session."""


class ConfigError(FusionError, ValueError):
    """Configuration values are missing, malformed or inconsistent."""
