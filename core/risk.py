"""Skip-bail risk: weighted location factors → score, level, alerts and recommendations."""

import logging
from datetime import datetime
from statistics import mean, pvariance
from typing import Optional

from clustering.assigner import clustered_visit_total
from clustering.time_proximity import group_into_weeks
from core.models import (
    LocationObservation,
    LocationPattern,
    LocationSource,
    PatternType,
    RiskAlert,
    RiskFactors,
    RiskLevel,
    SkipBailRiskAssessment,
    round_half_up,
)
from core.pattern import COMPLIANCE_WINDOW_DAYS, SUSPICIOUS_RADIUS_MILES

logger = logging.getLogger("location_api.core.risk")

# location_compliance, pattern_stability, home_base_stability, unexpected_movements, check_in_compliance
WEIGHTS = (0.30, 0.20, 0.20, 0.15, 0.15)
NEUTRAL_SCORE = 50
MIN_STABILITY_OBSERVATIONS = 7
LOW_STABILITY = 30
CHECK_IN_ALERT_BELOW = 60
CHECK_IN_EDUCATION_BELOW = 70

INSUFFICIENT_DATA_RECOMMENDATION = "Insufficient location data for comprehensive assessment"


def risk_level_for_score(score: float) -> RiskLevel:
    """Higher score = lower risk."""
    if score >= 80:
        return RiskLevel.LOW
    if score >= 60:
        return RiskLevel.MEDIUM
    if score >= 40:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def neutral_assessment(client_id: str, now: datetime) -> SkipBailRiskAssessment:
    """Placeholder when no pattern exists yet."""
    return SkipBailRiskAssessment(
        client_id=client_id,
        risk_level=RiskLevel.MEDIUM,
        risk_score=NEUTRAL_SCORE,
        factors=RiskFactors(
            location_compliance=NEUTRAL_SCORE,
            pattern_stability=NEUTRAL_SCORE,
            home_base_stability=NEUTRAL_SCORE,
            unexpected_movements=NEUTRAL_SCORE,
            check_in_compliance=NEUTRAL_SCORE,
        ),
        alerts=[],
        recommendations=[INSUFFICIENT_DATA_RECOMMENDATION],
        last_assessment=now,
    )


def pattern_stability(observations: list[LocationObservation]) -> float:
    """Consistency of weekly reading counts: 100 - 10 * variance of per-window counts."""
    if len(observations) < MIN_STABILITY_OBSERVATIONS:
        return LOW_STABILITY
    weeks = group_into_weeks(observations)
    if len(weeks) < 2:
        return NEUTRAL_SCORE
    counts = [len(w) for w in weeks]
    variance = pvariance(counts, mu=mean(counts))
    return min(100.0, max(0.0, 100 - variance * 10))


def home_base_stability(pattern: LocationPattern) -> float:
    home = pattern.analysis.home_base_location
    if home is None:
        return 0.0
    return min(100.0, (home.visit_count / COMPLIANCE_WINDOW_DAYS) * 100)


def unexpected_movements(pattern: LocationPattern) -> float:
    unusual = len(pattern.analysis.unusual_locations)
    total = clustered_visit_total(pattern.analysis.frequent_locations) + unusual
    if total == 0:
        return NEUTRAL_SCORE
    return max(0.0, 100 - (unusual / total) * 100)


def check_in_compliance(observations: list[LocationObservation]) -> float:
    check_ins = sum(1 for o in observations if o.source == LocationSource.CHECK_IN)
    return min(100.0, check_ins / max(1, len(observations)) * 100)


def compute_factors(pattern: LocationPattern, observations: list[LocationObservation]) -> RiskFactors:
    return RiskFactors(
        location_compliance=pattern.analysis.compliance_score,
        pattern_stability=pattern_stability(observations),
        home_base_stability=home_base_stability(pattern),
        unexpected_movements=unexpected_movements(pattern),
        check_in_compliance=check_in_compliance(observations),
    )


def weighted_score(factors: RiskFactors, weights: tuple = WEIGHTS) -> int:
    w1, w2, w3, w4, w5 = weights
    return round_half_up(
        w1 * factors.location_compliance
        + w2 * factors.pattern_stability
        + w3 * factors.home_base_stability
        + w4 * factors.unexpected_movements
        + w5 * factors.check_in_compliance
    )


def generate_alerts(
    pattern: LocationPattern,
    factors: RiskFactors,
    risk_level: RiskLevel,
    now: datetime,
) -> list[RiskAlert]:
    alerts = []
    if risk_level == RiskLevel.CRITICAL:
        alerts.append(RiskAlert(
            type="CRITICAL_RISK",
            severity=RiskLevel.CRITICAL,
            message="Client presents critical skip bail risk based on location patterns",
            timestamp=now,
        ))
    if pattern.analysis.travel_radius > SUSPICIOUS_RADIUS_MILES:
        alerts.append(RiskAlert(
            type="LARGE_TRAVEL_RADIUS",
            severity=RiskLevel.HIGH,
            message=f"Client traveling {pattern.analysis.travel_radius:.1f} miles from home base",
            timestamp=now,
        ))
    if factors.check_in_compliance < CHECK_IN_ALERT_BELOW:
        alerts.append(RiskAlert(
            type="LOW_CHECK_IN_COMPLIANCE",
            severity=RiskLevel.MEDIUM,
            message="Client check-in compliance below acceptable threshold",
            timestamp=now,
        ))
    if pattern.analysis.home_base_location is None:
        alerts.append(RiskAlert(
            type="NO_HOME_BASE",
            severity=RiskLevel.HIGH,
            message="No established home base location identified",
            timestamp=now,
        ))
    return alerts


def generate_recommendations(pattern: LocationPattern, factors: RiskFactors, risk_level: RiskLevel) -> list[str]:
    recs = []
    if risk_level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
        recs.append("Increase check-in frequency to daily")
        recs.append("Implement GPS ankle monitoring")
        recs.append("Require pre-approval for travel beyond 25-mile radius")
    if pattern.analysis.home_base_location is None:
        recs.append("Establish and verify primary residence location")
    if factors.check_in_compliance < CHECK_IN_EDUCATION_BELOW:
        recs.append("Provide additional check-in education and support")
    if pattern.analysis.travel_radius > SUSPICIOUS_RADIUS_MILES:
        recs.append("Review and approve any travel plans beyond local area")
    if pattern.pattern_type == PatternType.SUSPICIOUS:
        recs.append("Conduct in-person verification at frequent locations")
        recs.append("Consider motion for increased bond restrictions")
    return recs


def assess_risk(
    client_id: str,
    pattern: Optional[LocationPattern],
    observations: list[LocationObservation],
    now: datetime,
) -> SkipBailRiskAssessment:
    """Full assessment from the current pattern and compliance-window history."""
    if pattern is None:
        logger.info("risk assessment without pattern client_id=%s; returning neutral placeholder", client_id)
        return neutral_assessment(client_id, now)

    factors = compute_factors(pattern, observations)
    score = weighted_score(factors)
    level = risk_level_for_score(score)
    return SkipBailRiskAssessment(
        client_id=client_id,
        risk_level=level,
        risk_score=score,
        factors=factors,
        alerts=generate_alerts(pattern, factors, level, now),
        recommendations=generate_recommendations(pattern, factors, level),
        last_assessment=now,
    )
