"""Tests for clustering: haversine, stay estimates, weekly windows, fixed-anchor clustering."""

from datetime import timedelta

import pytest

from clustering.geo_proximity import haversine_miles, max_distance_from
from clustering.time_proximity import estimate_stay_minutes, group_into_weeks
from clustering.assigner import (
    FREQUENT_THRESHOLD,
    assign_clusters,
    clustered_visit_total,
    identify_frequent_locations,
    location_risk_level,
    unusual_observations,
)
from core.models import RiskLevel


class TestHaversine:
    def test_same_point(self):
        assert haversine_miles(21.3, -157.8, 21.3, -157.8) == 0

    def test_one_degree_latitude(self):
        assert haversine_miles(0, 0, 1, 0) == pytest.approx(69.0975, abs=0.01)

    def test_symmetric(self):
        a = haversine_miles(21.3, -157.8, 19.7, -155.1)
        b = haversine_miles(19.7, -155.1, 21.3, -157.8)
        assert a == pytest.approx(b)

    def test_max_distance_empty(self, make_obs, now):
        assert max_distance_from([], make_obs(0, 0, now)) == 0.0


class TestStayEstimate:
    def test_gap_to_next_reading_clamped(self, make_obs, now):
        a = make_obs(0, 0, now)
        b = make_obs(0, 0, now + timedelta(minutes=60))
        c = make_obs(0, 0, now + timedelta(minutes=600))
        d = make_obs(0, 0, now + timedelta(minutes=605))
        stays = estimate_stay_minutes([c, a, d, b])
        assert stays[a.id] == 60
        assert stays[b.id] == 150  # capped
        assert stays[c.id] == 30  # floored
        assert stays[d.id] == 30  # latest reading

    def test_deterministic(self, home_history):
        assert estimate_stay_minutes(home_history) == estimate_stay_minutes(list(reversed(home_history)))


class TestGroupIntoWeeks:
    def test_window_closes_after_seven_days(self, make_obs, now):
        obs = [make_obs(0, 0, now + timedelta(days=d)) for d in (0, 3, 7, 8, 9)]
        weeks = group_into_weeks(obs)
        assert [len(w) for w in weeks] == [3, 2]

    def test_new_window_starts_at_out_of_window_reading(self, make_obs, now):
        obs = [make_obs(0, 0, now + timedelta(days=d)) for d in (0, 8, 14, 15)]
        assert [len(w) for w in group_into_weeks(obs)] == [1, 3]

    def test_empty(self):
        assert group_into_weeks([]) == []


class TestAssignClusters:
    def test_anchor_does_not_move(self, make_obs, now):
        # at the equator 0.001 deg of longitude is ~0.069 mi
        a = make_obs(0, 0.000, now)
        b = make_obs(0, 0.001, now + timedelta(hours=1))
        c = make_obs(0, 0.002, now + timedelta(hours=2))  # 0.069 mi from b, 0.138 mi from anchor a
        clusters = assign_clusters([a, b, c])
        assert [[o.id for o in cl] for cl in clusters] == [[a.id, b.id], [c.id]]

    def test_first_matching_cluster_wins(self, make_obs, now):
        a = make_obs(0, 0.000, now)
        b = make_obs(0, 0.0025, now + timedelta(hours=1))
        c = make_obs(0, 0.0012, now + timedelta(hours=2))  # within 0.1 mi of both anchors
        clusters = assign_clusters([a, b, c])
        assert [o.id for o in clusters[0]] == [a.id, c.id]

    def test_processes_in_time_order(self, make_obs, now):
        late = make_obs(0, 0, now + timedelta(days=1))
        early = make_obs(0, 0, now)
        clusters = assign_clusters([late, early])
        assert clusters[0][0].id == early.id


class TestLocationRiskLevel:
    @pytest.mark.parametrize("verified,expected", [
        (5, RiskLevel.LOW),
        (4, RiskLevel.LOW),
        (3, RiskLevel.MEDIUM),
        (2, RiskLevel.HIGH),
        (1, RiskLevel.CRITICAL),
        (0, RiskLevel.CRITICAL),
    ])
    def test_verification_ratio(self, make_obs, now, verified, expected):
        members = [make_obs(0, 0, now + timedelta(hours=i), verified=i < verified) for i in range(5)]
        assert location_risk_level(members) == expected


class TestIdentifyFrequentLocations:
    def test_drops_small_clusters(self, make_obs, now):
        obs = [make_obs(0, 0, now + timedelta(hours=i)) for i in range(FREQUENT_THRESHOLD)]
        obs += [make_obs(1, 1, now + timedelta(hours=10 + i)) for i in range(FREQUENT_THRESHOLD - 1)]
        frequent = identify_frequent_locations(obs)
        assert len(frequent) == 1
        assert all(f.visit_count >= FREQUENT_THRESHOLD for f in frequent)

    def test_sorted_by_visit_count_ties_keep_creation_order(self, make_obs, now):
        a = [make_obs(0, 0, now + timedelta(hours=i)) for i in range(3)]
        b = [make_obs(1, 1, now + timedelta(hours=10 + i)) for i in range(4)]
        c = [make_obs(2, 2, now + timedelta(hours=20 + i)) for i in range(3)]
        frequent = identify_frequent_locations(a + b + c)
        assert [f.visit_count for f in frequent] == [4, 3, 3]
        assert frequent[1].latitude == pytest.approx(0)
        assert frequent[2].latitude == pytest.approx(2)

    def test_summary_fields(self, home_history):
        [home] = identify_frequent_locations(home_history)
        assert home.visit_count == 20
        assert home.risk_level == RiskLevel.LOW
        assert home.first_visit == min(o.timestamp for o in home_history)
        assert home.last_visit == max(o.timestamp for o in home_history)
        assert home.latitude == pytest.approx(sum(o.latitude for o in home_history) / 20)
        assert home.address == "12 Home St"
        assert home.id == "freq-" + min(home_history, key=lambda o: o.timestamp).id
        # daily readings: every gap exceeds the cap, the latest reading gets the floor
        assert home.average_stay_duration == round((19 * 150 + 30) / 20)
        assert home.time_spent_total == home.average_stay_duration * 20

    def test_repeatable(self, home_history):
        first = [f.to_dict() for f in identify_frequent_locations(home_history)]
        second = [f.to_dict() for f in identify_frequent_locations(home_history)]
        assert first == second


class TestUnusualObservations:
    def test_outside_double_radius(self, home_history, far_trip, make_obs, now):
        frequent = identify_frequent_locations(home_history)
        stray = make_obs(0, 0, now)
        unusual = unusual_observations(home_history + far_trip + [stray], frequent)
        assert [o.id for o in unusual] == [o.id for o in far_trip] + [stray.id]

    def test_visit_total(self, home_history, far_trip):
        frequent = identify_frequent_locations(home_history + far_trip)
        assert clustered_visit_total(frequent) == 25
