"""
Greedy proximity clustering of a client's observations into frequent locations.

Each cluster is anchored at its first member; later observations join the first
cluster (in creation order) whose anchor is within CLUSTER_RADIUS_MILES. The anchor
never moves, so clusters near the radius boundary can fragment. Clusters with fewer
than FREQUENT_THRESHOLD members are dropped, and their observations show up as
unusual locations instead.
"""

import logging

from clustering.geo_proximity import distance_between, is_near_any
from clustering.time_proximity import estimate_stay_minutes, sort_by_time
from core.models import FrequentLocation, LocationObservation, RiskLevel, round_half_up

logger = logging.getLogger("location_api.clustering.assigner")

CLUSTER_RADIUS_MILES = 0.1
FREQUENT_THRESHOLD = 3
# Observations farther than this from every frequent location are "unusual".
UNUSUAL_RADIUS_MILES = CLUSTER_RADIUS_MILES * 2


def assign_clusters(observations: list[LocationObservation]) -> list[list[LocationObservation]]:
    """Group observations by proximity to fixed cluster anchors. Returns clusters in creation order."""
    clusters: list[list[LocationObservation]] = []
    for obs in sort_by_time(observations):
        for members in clusters:
            if distance_between(obs, members[0]) <= CLUSTER_RADIUS_MILES:
                members.append(obs)
                break
        else:
            clusters.append([obs])
    return clusters


def location_risk_level(members: list[LocationObservation]) -> RiskLevel:
    """Risk from the share of externally verified readings in the cluster."""
    verified = sum(1 for m in members if m.verified)
    ratio = verified / len(members)
    if ratio >= 0.8:
        return RiskLevel.LOW
    if ratio >= 0.6:
        return RiskLevel.MEDIUM
    if ratio >= 0.4:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def frequent_location_id(anchor: LocationObservation) -> str:
    return "freq-" + anchor.id


def build_frequent_location(members: list[LocationObservation], stays: dict[str, float]) -> FrequentLocation:
    """Summarize one cluster. stays: per-observation stay estimates (minutes) keyed by observation id."""
    anchor = members[0]
    n = len(members)
    avg_lat = sum(m.latitude for m in members) / n
    avg_lng = sum(m.longitude for m in members) / n
    avg_stay = round_half_up(sum(stays.get(m.id, 0.0) for m in members) / n)
    return FrequentLocation(
        id=frequent_location_id(anchor),
        client_id=anchor.client_id,
        latitude=avg_lat,
        longitude=avg_lng,
        address=anchor.address,
        visit_count=n,
        first_visit=min(m.timestamp for m in members),
        last_visit=max(m.timestamp for m in members),
        average_stay_duration=avg_stay,
        time_spent_total=avg_stay * n,
        risk_level=location_risk_level(members),
    )


def identify_frequent_locations(observations: list[LocationObservation]) -> list[FrequentLocation]:
    """Cluster observations and keep the frequently visited ones, most visited first."""
    clusters = assign_clusters(observations)
    stays = estimate_stay_minutes(observations)
    frequent = [
        build_frequent_location(members, stays)
        for members in clusters
        if len(members) >= FREQUENT_THRESHOLD
    ]
    logger.debug(
        "clustered observations=%d clusters=%d frequent=%d",
        len(observations), len(clusters), len(frequent),
    )
    # sorted() is stable: equal visit counts keep creation order
    return sorted(frequent, key=lambda loc: -loc.visit_count)


def unusual_observations(
    observations: list[LocationObservation],
    frequent_locations: list[FrequentLocation],
    radius_miles: float = UNUSUAL_RADIUS_MILES,
) -> list[LocationObservation]:
    """Observations not within radius_miles of any frequent-location centroid."""
    return [o for o in observations if not is_near_any(o, frequent_locations, radius_miles)]


def clustered_visit_total(frequent_locations: list[FrequentLocation]) -> int:
    """Number of observations captured by frequent locations."""
    return sum(loc.visit_count for loc in frequent_locations)
