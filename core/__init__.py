"""Core location analytics: models, pattern analysis, skip-bail risk and the tracker service."""

from core.models import (
    LocationSource,
    RiskLevel,
    PatternType,
    LocationObservation,
    FrequentLocation,
    LocationPattern,
    SkipBailRiskAssessment,
)
from core.errors import MalformedObservationError

# Pattern/risk/tracker modules import the clustering package, which imports core.models;
# import them directly (e.g. `from core.tracker import LocationTracker`).
__all__ = [
    "LocationSource",
    "RiskLevel",
    "PatternType",
    "LocationObservation",
    "FrequentLocation",
    "LocationPattern",
    "SkipBailRiskAssessment",
    "MalformedObservationError",
]
