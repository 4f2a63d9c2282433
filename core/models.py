"""Location analytics models: raw observations and the per-client snapshots derived from them."""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class LocationSource(str, Enum):
    CHECK_IN = "check_in"
    TRACKING = "tracking"
    MANUAL = "manual"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


# Higher rank = more urgent; used to sort assessments for dashboards.
RISK_RANK = {
    RiskLevel.CRITICAL: 4,
    RiskLevel.HIGH: 3,
    RiskLevel.MEDIUM: 2,
    RiskLevel.LOW: 1,
}


class PatternType(str, Enum):
    ROUTINE = "ROUTINE"
    IRREGULAR = "IRREGULAR"
    SUSPICIOUS = "SUSPICIOUS"
    COMPLIANT = "COMPLIANT"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(x: float) -> int:
    """Round .5 away from zero for non-negative scores (round() would go to even)."""
    return int(math.floor(x + 0.5))


def format_ts(ts: datetime) -> str:
    """ISO-8601 in UTC with a Z suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_ts(value) -> datetime:
    """Accept a datetime or ISO string (with or without Z); naive values are treated as UTC."""
    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip().replace("Z", "+00:00")
        dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class LocationObservation:
    id: str
    client_id: str
    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: float
    source: LocationSource
    verified: bool
    address: Optional[str] = None

    def to_dict(self):
        d = {
            "id": self.id,
            "client_id": self.client_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": format_ts(self.timestamp),
            "accuracy": self.accuracy,
            "source": self.source.value,
            "verified": self.verified,
        }
        if self.address is not None:
            d["address"] = self.address
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "LocationObservation":
        return cls(
            id=d["id"],
            client_id=str(d["client_id"]),
            latitude=float(d["latitude"]),
            longitude=float(d["longitude"]),
            timestamp=parse_ts(d["timestamp"]),
            accuracy=float(d["accuracy"]),
            source=LocationSource(d["source"]),
            verified=bool(d["verified"]),
            address=d.get("address"),
        )


@dataclass
class FrequentLocation:
    """A cluster of observations visited at least the frequency threshold."""
    id: str
    client_id: str
    latitude: float
    longitude: float
    visit_count: int
    first_visit: datetime
    last_visit: datetime
    average_stay_duration: float  # minutes
    time_spent_total: float  # minutes
    risk_level: RiskLevel
    address: Optional[str] = None
    is_home_based: bool = False
    is_work_based: bool = False
    is_suspicious: bool = False
    location_notes: list = field(default_factory=list)  # list of str, in order added

    def copy(self) -> "FrequentLocation":
        return replace(self, location_notes=list(self.location_notes))

    def to_dict(self):
        return {
            "id": self.id,
            "client_id": self.client_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "visit_count": self.visit_count,
            "first_visit": format_ts(self.first_visit),
            "last_visit": format_ts(self.last_visit),
            "average_stay_duration": self.average_stay_duration,
            "time_spent_total": self.time_spent_total,
            "risk_level": self.risk_level.value,
            "is_home_based": self.is_home_based,
            "is_work_based": self.is_work_based,
            "is_suspicious": self.is_suspicious,
            "location_notes": list(self.location_notes),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "FrequentLocation":
        return cls(
            id=d["id"],
            client_id=str(d["client_id"]),
            latitude=float(d["latitude"]),
            longitude=float(d["longitude"]),
            address=d.get("address"),
            visit_count=int(d["visit_count"]),
            first_visit=parse_ts(d["first_visit"]),
            last_visit=parse_ts(d["last_visit"]),
            average_stay_duration=float(d["average_stay_duration"]),
            time_spent_total=float(d["time_spent_total"]),
            risk_level=RiskLevel(d["risk_level"]),
            is_home_based=bool(d.get("is_home_based", False)),
            is_work_based=bool(d.get("is_work_based", False)),
            is_suspicious=bool(d.get("is_suspicious", False)),
            location_notes=list(d.get("location_notes") or []),
        )


@dataclass
class PredictedLocation:
    location: FrequentLocation
    probability: float  # 0.0 - 1.0
    time_window: str

    def to_dict(self):
        return {
            "location": self.location.to_dict(),
            "probability": self.probability,
            "time_window": self.time_window,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "PredictedLocation":
        return cls(
            location=FrequentLocation.from_dict(d["location"]),
            probability=float(d["probability"]),
            time_window=d["time_window"],
        )


@dataclass
class PatternAnalysis:
    frequent_locations: list = field(default_factory=list)  # list of FrequentLocation, visit count desc
    unusual_locations: list = field(default_factory=list)  # list of LocationObservation
    travel_radius: float = 0.0  # miles
    compliance_score: int = 0  # 0 - 100
    risk_factors: list = field(default_factory=list)  # list of str
    home_base_location: Optional[FrequentLocation] = None
    work_location: Optional[FrequentLocation] = None

    def to_dict(self):
        return {
            "home_base_location": self.home_base_location.to_dict() if self.home_base_location else None,
            "work_location": self.work_location.to_dict() if self.work_location else None,
            "frequent_locations": [loc.to_dict() for loc in self.frequent_locations],
            "unusual_locations": [obs.to_dict() for obs in self.unusual_locations],
            "travel_radius": self.travel_radius,
            "compliance_score": self.compliance_score,
            "risk_factors": list(self.risk_factors),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "PatternAnalysis":
        home = d.get("home_base_location")
        work = d.get("work_location")
        return cls(
            home_base_location=FrequentLocation.from_dict(home) if home else None,
            work_location=FrequentLocation.from_dict(work) if work else None,
            frequent_locations=[FrequentLocation.from_dict(x) for x in d.get("frequent_locations") or []],
            unusual_locations=[LocationObservation.from_dict(x) for x in d.get("unusual_locations") or []],
            travel_radius=float(d.get("travel_radius", 0.0)),
            compliance_score=int(d.get("compliance_score", 0)),
            risk_factors=list(d.get("risk_factors") or []),
        )


@dataclass
class LocationPattern:
    client_id: str
    pattern_type: PatternType
    analysis: PatternAnalysis
    last_analysis: datetime
    predicted_next_locations: list = field(default_factory=list)  # list of PredictedLocation, at most 3

    def to_dict(self):
        return {
            "client_id": self.client_id,
            "pattern_type": self.pattern_type.value,
            "analysis": self.analysis.to_dict(),
            "last_analysis": format_ts(self.last_analysis),
            "predicted_next_locations": [p.to_dict() for p in self.predicted_next_locations],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "LocationPattern":
        return cls(
            client_id=str(d["client_id"]),
            pattern_type=PatternType(d["pattern_type"]),
            analysis=PatternAnalysis.from_dict(d.get("analysis") or {}),
            last_analysis=parse_ts(d["last_analysis"]),
            predicted_next_locations=[PredictedLocation.from_dict(p) for p in d.get("predicted_next_locations") or []],
        )


@dataclass
class RiskFactors:
    location_compliance: float
    pattern_stability: float
    home_base_stability: float
    unexpected_movements: float
    check_in_compliance: float

    def __post_init__(self):
        for name in ("location_compliance", "pattern_stability", "home_base_stability",
                     "unexpected_movements", "check_in_compliance"):
            setattr(self, name, max(0.0, min(100.0, float(getattr(self, name)))))

    def to_dict(self):
        return {
            "location_compliance": round(self.location_compliance, 4),
            "pattern_stability": round(self.pattern_stability, 4),
            "home_base_stability": round(self.home_base_stability, 4),
            "unexpected_movements": round(self.unexpected_movements, 4),
            "check_in_compliance": round(self.check_in_compliance, 4),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "RiskFactors":
        return cls(
            location_compliance=d["location_compliance"],
            pattern_stability=d["pattern_stability"],
            home_base_stability=d["home_base_stability"],
            unexpected_movements=d["unexpected_movements"],
            check_in_compliance=d["check_in_compliance"],
        )


@dataclass
class RiskAlert:
    type: str
    severity: RiskLevel
    message: str
    timestamp: datetime

    def to_dict(self):
        return {
            "type": self.type,
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": format_ts(self.timestamp),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "RiskAlert":
        return cls(
            type=d["type"],
            severity=RiskLevel(d["severity"]),
            message=d["message"],
            timestamp=parse_ts(d["timestamp"]),
        )


@dataclass
class SkipBailRiskAssessment:
    client_id: str
    risk_level: RiskLevel
    risk_score: int  # 0 - 100, higher = lower risk
    factors: RiskFactors
    last_assessment: datetime
    alerts: list = field(default_factory=list)  # list of RiskAlert
    recommendations: list = field(default_factory=list)  # list of str

    def __post_init__(self):
        self.risk_score = max(0, min(100, int(self.risk_score)))

    def to_dict(self):
        return {
            "client_id": self.client_id,
            "risk_level": self.risk_level.value,
            "risk_score": self.risk_score,
            "factors": self.factors.to_dict(),
            "alerts": [a.to_dict() for a in self.alerts],
            "recommendations": list(self.recommendations),
            "last_assessment": format_ts(self.last_assessment),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SkipBailRiskAssessment":
        return cls(
            client_id=str(d["client_id"]),
            risk_level=RiskLevel(d["risk_level"]),
            risk_score=int(d["risk_score"]),
            factors=RiskFactors.from_dict(d["factors"]),
            alerts=[RiskAlert.from_dict(a) for a in d.get("alerts") or []],
            recommendations=list(d.get("recommendations") or []),
            last_assessment=parse_ts(d["last_assessment"]),
        )
