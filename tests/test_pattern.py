"""Tests for pattern analysis: home/work, travel radius, compliance score, risk factors, pattern type."""

from datetime import timedelta

import pytest

from core.models import PatternType
from core.pattern import (
    INSUFFICIENT_DATA,
    analyze_pattern,
    calculate_compliance_score,
    determine_pattern_type,
    identify_risk_factors,
    predict_next_locations,
)
from clustering.assigner import identify_frequent_locations


@pytest.fixture
def scattered(make_obs, now):
    """Six recent check-ins about 1.4 miles apart: no frequent location."""
    return [make_obs(0, i * 0.02, now - timedelta(days=i)) for i in range(6)]


class TestInsufficientData:
    def test_fewer_than_five_observations(self, home_history, now):
        pattern = analyze_pattern("c1", home_history[:4], now)
        assert pattern.pattern_type == PatternType.IRREGULAR
        assert pattern.analysis.compliance_score == 50
        assert pattern.analysis.frequent_locations == []
        assert pattern.analysis.unusual_locations == []
        assert pattern.analysis.risk_factors == [INSUFFICIENT_DATA]
        assert pattern.analysis.travel_radius == 0
        assert pattern.predicted_next_locations == []

    def test_no_observations(self, now):
        assert analyze_pattern("c1", [], now).pattern_type == PatternType.IRREGULAR


class TestSingleHomeBase:
    def test_compliant_home_client(self, home_history, now):
        pattern = analyze_pattern("c1", home_history, now)
        a = pattern.analysis
        assert len(a.frequent_locations) == 1
        assert a.frequent_locations[0].visit_count == 20
        assert a.frequent_locations[0].is_home_based
        assert a.home_base_location is not None
        assert a.home_base_location.id == a.frequent_locations[0].id
        assert a.work_location is None
        assert a.travel_radius == pytest.approx(0, abs=0.05)
        assert a.compliance_score >= 90
        assert a.risk_factors == []
        assert pattern.pattern_type == PatternType.COMPLIANT

    def test_home_base_is_a_copy(self, home_history, now):
        pattern = analyze_pattern("c1", home_history, now)
        assert pattern.analysis.home_base_location is not pattern.analysis.frequent_locations[0]


class TestFarTrip:
    def test_large_travel_radius(self, home_history, far_trip, now):
        pattern = analyze_pattern("c1", home_history + far_trip, now)
        a = pattern.analysis
        assert a.travel_radius == pytest.approx(80, abs=0.5)
        assert any(f.startswith("Large travel radius:") for f in a.risk_factors)
        assert a.compliance_score == 70  # 30-point cap on the 50-mile excess
        assert pattern.pattern_type != PatternType.COMPLIANT
        assert pattern.pattern_type == PatternType.ROUTINE

    def test_far_cluster_is_work_and_suspicious(self, home_history, far_trip, now):
        a = analyze_pattern("c1", home_history + far_trip, now).analysis
        assert a.work_location is not None
        assert a.work_location.visit_count == 5
        far = a.frequent_locations[1]
        assert far.is_work_based and far.is_suspicious
        assert not a.frequent_locations[0].is_suspicious


class TestWorkLocation:
    def test_needs_more_than_one_mile(self, make_obs, now):
        home = [make_obs(0, 0, now - timedelta(days=i)) for i in range(6)]
        near = [make_obs(0, 0.01, now - timedelta(days=10 + i)) for i in range(3)]  # ~0.7 mi, clustered first
        far = [make_obs(0, 0.03, now - timedelta(days=i, hours=6)) for i in range(3)]  # ~2.1 mi
        a = analyze_pattern("c1", home + near + far, now).analysis
        assert a.work_location is not None
        assert a.work_location.longitude == pytest.approx(0.03)
        assert not a.frequent_locations[1].is_work_based


class TestNoHomeBase:
    def test_scattered_history(self, scattered, now):
        pattern = analyze_pattern("c1", scattered, now)
        a = pattern.analysis
        assert a.home_base_location is None
        assert a.work_location is None
        assert a.travel_radius == 0
        assert len(a.unusual_locations) == 6
        assert a.compliance_score == 70
        assert a.risk_factors == ["Limited location history", "No established home base"]
        assert pattern.pattern_type == PatternType.IRREGULAR


class TestComplianceScore:
    def test_non_check_in_sources_penalized(self, make_obs, now):
        obs = [make_obs(0, 0, now - timedelta(days=i), source="tracking") for i in range(10)]
        frequent = identify_frequent_locations(obs)
        assert calculate_compliance_score(obs, frequent, frequent[0]) == 80

    def test_never_negative(self, make_obs, now):
        obs = [make_obs(0, i * 0.02, now - timedelta(days=i), source="manual") for i in range(5)]
        obs += [make_obs(3, 0, now - timedelta(hours=i), source="manual") for i in range(3)]
        frequent = identify_frequent_locations(obs)
        score = calculate_compliance_score(obs, frequent, frequent[0])
        assert 0 <= score <= 100


class TestRiskFactors:
    def test_stale_history(self, make_obs, now):
        obs = [make_obs(0, 0, now - timedelta(days=10 + i)) for i in range(6)]
        frequent = identify_frequent_locations(obs)
        factors = identify_risk_factors(obs, frequent, frequent[0], 0.0, now)
        assert "Insufficient recent location data" in factors
        assert "Limited location history" in factors

    def test_frequent_long_distance(self, make_obs, now):
        obs = [make_obs(0, 0, now - timedelta(days=i)) for i in range(6)]
        obs += [make_obs(0.5, 0, now - timedelta(days=i, hours=5)) for i in range(3)]  # ~34.5 mi
        frequent = identify_frequent_locations(obs)
        factors = identify_risk_factors(obs, frequent, frequent[0], 34.5, now)
        assert factors == ["Frequent long-distance travel"]


class TestDeterminePatternType:
    def test_order_of_rules(self):
        two = [object(), object()]
        assert determine_pattern_type(85, [], []) == PatternType.COMPLIANT
        assert determine_pattern_type(85, ["x"], two) == PatternType.ROUTINE
        assert determine_pattern_type(70, ["x"], []) == PatternType.IRREGULAR
        assert determine_pattern_type(49, [], []) == PatternType.SUSPICIOUS
        assert determine_pattern_type(60, ["a", "b", "c"], []) == PatternType.SUSPICIOUS
        assert determine_pattern_type(75, ["a", "b", "c"], two) == PatternType.ROUTINE


class TestPredictNextLocations:
    def test_top_three_decreasing(self, make_obs, now):
        obs = []
        for k in range(4):
            obs += [make_obs(k, 0, now - timedelta(hours=10 * k + i)) for i in range(6 - k)]
        preds = predict_next_locations(identify_frequent_locations(obs))
        assert len(preds) == 3
        assert [p.probability for p in preds] == [0.9, 0.7, 0.5]
        assert [p.time_window for p in preds] == ["Next 24 hours", "Next 3 days", "Next 4 days"]
        assert [p.location.visit_count for p in preds] == [6, 5, 4]


class TestIdempotence:
    def test_same_input_same_output(self, home_history, far_trip, now):
        first = analyze_pattern("c1", home_history + far_trip, now).to_dict()
        second = analyze_pattern("c1", home_history + far_trip, now).to_dict()
        assert first == second
