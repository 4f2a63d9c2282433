"""
Location pattern analysis: home base, work location, travel radius, compliance score,
risk factors, pattern type and next-location predictions from one client's history.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from clustering.assigner import (
    clustered_visit_total,
    identify_frequent_locations,
    unusual_observations,
)
from clustering.geo_proximity import count_beyond, distance_between, max_distance_from
from clustering.time_proximity import observations_since
from core.models import (
    FrequentLocation,
    LocationObservation,
    LocationPattern,
    LocationSource,
    PatternAnalysis,
    PatternType,
    PredictedLocation,
    round_half_up,
)

logger = logging.getLogger("location_api.core.pattern")

MIN_OBSERVATIONS = 5
COMPLIANCE_WINDOW_DAYS = 30
SUSPICIOUS_RADIUS_MILES = 50
WORK_MIN_DISTANCE_MILES = 1
LONG_DISTANCE_MILES = 25
LONG_DISTANCE_SHARE = 0.2
CHECK_IN_SHARE = 0.8
RECENT_DAYS = 7
MIN_RECENT_OBSERVATIONS = 3
# A single frequent location counts as an established routine once visited on at least half the window's days.
ESTABLISHED_HOME_VISITS = COMPLIANCE_WINDOW_DAYS // 2
MAX_PREDICTIONS = 3

INSUFFICIENT_DATA = "Insufficient location data"
HOME_NOTE = "Most visited location; presumed primary residence"
WORK_NOTE = "Regular location more than 1 mile from home base"


def insufficient_data_pattern(client_id: str, now: datetime) -> LocationPattern:
    return LocationPattern(
        client_id=client_id,
        pattern_type=PatternType.IRREGULAR,
        analysis=PatternAnalysis(
            frequent_locations=[],
            unusual_locations=[],
            travel_radius=0.0,
            compliance_score=50,
            risk_factors=[INSUFFICIENT_DATA],
        ),
        last_analysis=now,
        predicted_next_locations=[],
    )


def identify_home_base(frequent_locations: list[FrequentLocation]) -> Optional[FrequentLocation]:
    """Most visited location (list is sorted by visit count)."""
    if not frequent_locations:
        return None
    home = frequent_locations[0]
    home.is_home_based = True
    home.location_notes.append(HOME_NOTE)
    return home


def identify_work_location(
    frequent_locations: list[FrequentLocation],
    home_base: Optional[FrequentLocation],
) -> Optional[FrequentLocation]:
    if home_base is None:
        return None
    for loc in frequent_locations:
        if distance_between(loc, home_base) > WORK_MIN_DISTANCE_MILES:
            loc.is_work_based = True
            loc.location_notes.append(WORK_NOTE)
            return loc
    return None


def flag_distant_locations(frequent_locations: list[FrequentLocation], home_base: Optional[FrequentLocation]) -> None:
    """Mark frequent locations beyond the suspicious radius from home base."""
    if home_base is None:
        return
    for loc in frequent_locations:
        d = distance_between(loc, home_base)
        if d > SUSPICIOUS_RADIUS_MILES:
            loc.is_suspicious = True
            loc.location_notes.append(f"Regularly visited {d:.1f} miles from home base")


def calculate_travel_radius(observations: list[LocationObservation], home_base: Optional[FrequentLocation]) -> float:
    """Farthest raw observation from home base, in miles."""
    if home_base is None:
        return 0.0
    return max_distance_from(observations, home_base)


def calculate_compliance_score(
    observations: list[LocationObservation],
    frequent_locations: list[FrequentLocation],
    home_base: Optional[FrequentLocation],
) -> int:
    if not observations:
        return 0
    total = len(observations)
    score = 100.0

    unusual_count = total - clustered_visit_total(frequent_locations)
    score -= (unusual_count / total) * 30

    if home_base is not None:
        max_distance = max_distance_from(observations, home_base)
        if max_distance > SUSPICIOUS_RADIUS_MILES:
            score -= min(30.0, (max_distance - SUSPICIOUS_RADIUS_MILES) * 2)

    check_ins = sum(1 for o in observations if o.source == LocationSource.CHECK_IN)
    if check_ins < total * CHECK_IN_SHARE:
        score -= 20

    return max(0, round_half_up(score))


def identify_risk_factors(
    observations: list[LocationObservation],
    frequent_locations: list[FrequentLocation],
    home_base: Optional[FrequentLocation],
    travel_radius: float,
    now: datetime,
) -> list[str]:
    factors: list[str] = []

    if travel_radius > SUSPICIOUS_RADIUS_MILES:
        factors.append(f"Large travel radius: {travel_radius:.1f} miles")

    established_home = home_base is not None and home_base.visit_count >= ESTABLISHED_HOME_VISITS
    if len(frequent_locations) < 2 and not established_home:
        factors.append("Limited location history")

    if home_base is None:
        factors.append("No established home base")

    recent = observations_since(observations, now - timedelta(days=RECENT_DAYS), inclusive=False)
    if len(recent) < MIN_RECENT_OBSERVATIONS:
        factors.append("Insufficient recent location data")

    if home_base is not None:
        far = count_beyond(observations, home_base, LONG_DISTANCE_MILES)
        if far > len(observations) * LONG_DISTANCE_SHARE:
            factors.append("Frequent long-distance travel")

    return factors


def determine_pattern_type(
    compliance_score: int,
    risk_factors: list[str],
    frequent_locations: list[FrequentLocation],
) -> PatternType:
    if compliance_score >= 85 and not risk_factors:
        return PatternType.COMPLIANT
    if compliance_score >= 70 and len(frequent_locations) >= 2:
        return PatternType.ROUTINE
    if compliance_score < 50 or len(risk_factors) >= 3:
        return PatternType.SUSPICIOUS
    return PatternType.IRREGULAR


def predict_next_locations(frequent_locations: list[FrequentLocation]) -> list[PredictedLocation]:
    """Top locations by visit count with a decaying probability."""
    predictions = []
    for i, loc in enumerate(frequent_locations[:MAX_PREDICTIONS]):
        predictions.append(PredictedLocation(
            location=loc.copy(),
            probability=round(max(0.3, 0.9 - 0.2 * i), 2),
            time_window="Next 24 hours" if i == 0 else f"Next {2 + i} days",
        ))
    return predictions


def analyze_pattern(client_id: str, observations: list[LocationObservation], now: datetime) -> LocationPattern:
    """Build a fresh pattern snapshot from the client's compliance-window history."""
    if len(observations) < MIN_OBSERVATIONS:
        logger.info("pattern insufficient data client_id=%s observations=%d", client_id, len(observations))
        return insufficient_data_pattern(client_id, now)

    frequent = identify_frequent_locations(observations)
    home = identify_home_base(frequent)
    work = identify_work_location(frequent, home)
    flag_distant_locations(frequent, home)

    travel_radius = calculate_travel_radius(observations, home)
    unusual = unusual_observations(observations, frequent)
    score = calculate_compliance_score(observations, frequent, home)
    risk_factors = identify_risk_factors(observations, frequent, home, travel_radius, now)
    pattern_type = determine_pattern_type(score, risk_factors, frequent)

    return LocationPattern(
        client_id=client_id,
        pattern_type=pattern_type,
        analysis=PatternAnalysis(
            home_base_location=home.copy() if home else None,
            work_location=work.copy() if work else None,
            frequent_locations=[loc.copy() for loc in frequent],
            unusual_locations=list(unusual),
            travel_radius=travel_radius,
            compliance_score=score,
            risk_factors=risk_factors,
        ),
        last_analysis=now,
        predicted_next_locations=predict_next_locations(frequent),
    )
