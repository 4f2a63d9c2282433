"""Clustering: haversine distance + fixed-anchor proximity grouping → frequent locations."""

from clustering.geo_proximity import haversine_miles, distance_between
from clustering.time_proximity import estimate_stay_minutes, group_into_weeks
from clustering.assigner import (
    CLUSTER_RADIUS_MILES,
    FREQUENT_THRESHOLD,
    assign_clusters,
    identify_frequent_locations,
    unusual_observations,
    clustered_visit_total,
)

__all__ = [
    "haversine_miles",
    "distance_between",
    "estimate_stay_minutes",
    "group_into_weeks",
    "CLUSTER_RADIUS_MILES",
    "FREQUENT_THRESHOLD",
    "assign_clusters",
    "identify_frequent_locations",
    "unusual_observations",
    "clustered_visit_total",
]
