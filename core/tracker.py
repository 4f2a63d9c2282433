"""
Location tracker: records observations and runs clustering → pattern → risk for one client.

Construct once at process start with a store (and optionally a scheduler delay and audit
sinks) and pass it to whatever needs it. Store errors propagate unchanged; nothing here retries.
"""

import logging
import math
import threading
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from analytics.audit_log import assessment_event, pattern_event
from clustering.assigner import identify_frequent_locations
from clustering.time_proximity import observations_since, sort_by_time
from core.errors import MalformedObservationError
from core.models import (
    RISK_RANK,
    FrequentLocation,
    LocationObservation,
    LocationPattern,
    LocationSource,
    RiskLevel,
    SkipBailRiskAssessment,
    utc_now,
)
from core.pattern import COMPLIANCE_WINDOW_DAYS, analyze_pattern
from core.risk import assess_risk
from core.scheduler import AnalysisScheduler
from store.base import LocationStore

logger = logging.getLogger("location_api.core.tracker")

AuditSink = Callable[[str, str, str, dict], None]


def new_observation_id() -> str:
    """Generate a new observation id (e.g. loc-<uuid4>)."""
    return "loc-" + uuid.uuid4().hex[:12]


def validate_observation(client_id, latitude, longitude, accuracy, source) -> LocationSource:
    """Raise MalformedObservationError for anything that must not reach the store."""
    if not isinstance(client_id, str) or not client_id.strip():
        raise MalformedObservationError("client_id is required")
    for name, value, limit in (("latitude", latitude, 90.0), ("longitude", longitude, 180.0)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MalformedObservationError(f"{name} must be a number")
        if not math.isfinite(value) or abs(value) > limit:
            raise MalformedObservationError(f"{name} out of range: {value}")
    if isinstance(accuracy, bool) or not isinstance(accuracy, (int, float)):
        raise MalformedObservationError("accuracy must be a number")
    if not math.isfinite(accuracy) or accuracy < 0:
        raise MalformedObservationError(f"accuracy must be finite and non-negative: {accuracy}")
    try:
        return LocationSource(source)
    except ValueError:
        raise MalformedObservationError(f"unknown source: {source!r}") from None


class LocationTracker:

    def __init__(
        self,
        store: LocationStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        debounce_seconds: float = 0.0,
        audit_sinks: Optional[list[AuditSink]] = None,
    ):
        self.store = store
        self.clock = clock
        self.audit_sinks = list(audit_sinks or [])
        self.scheduler = AnalysisScheduler(self.refresh, debounce_seconds) if debounce_seconds > 0 else None
        self._client_locks: dict[str, threading.RLock] = {}
        self._client_locks_guard = threading.Lock()

    def client_lock(self, client_id: str) -> threading.RLock:
        """Serializes pattern/risk writers for one client (background and on-demand alike)."""
        with self._client_locks_guard:
            lock = self._client_locks.get(client_id)
            if lock is None:
                lock = self._client_locks[client_id] = threading.RLock()
            return lock

    def initialize(self) -> None:
        self.store.initialize()

    def shutdown(self) -> None:
        if self.scheduler is not None:
            self.scheduler.stop()

    def _audit(self, event_type: str, client_id: str, severity: str, details: dict) -> None:
        for sink in self.audit_sinks:
            try:
                sink(event_type, client_id, severity, details)
            except Exception as e:
                logger.warning("audit sink failed event=%s: %s", event_type, e, exc_info=True)

    # ------------------------------------------------------------------
    # Observations
    # ------------------------------------------------------------------
    def record_observation(
        self,
        client_id: str,
        latitude: float,
        longitude: float,
        accuracy: float,
        source,
        verified: bool,
        address: Optional[str] = None,
    ) -> LocationObservation:
        """Validate, append, and schedule a debounced re-analysis for the client."""
        src = validate_observation(client_id, latitude, longitude, accuracy, source)
        obs = LocationObservation(
            id=new_observation_id(),
            client_id=client_id.strip(),
            latitude=float(latitude),
            longitude=float(longitude),
            timestamp=self.clock(),
            accuracy=float(accuracy),
            source=src,
            verified=bool(verified),
            address=address or None,
        )
        self.store.append_observation(obs)
        logger.info("observation recorded client_id=%s id=%s source=%s verified=%s",
                    obs.client_id, obs.id, obs.source.value, obs.verified)
        self._audit("LOCATION_RECORDED", obs.client_id, "MEDIUM", {
            "location_id": obs.id,
            "coordinates": f"{obs.latitude}, {obs.longitude}",
            "accuracy": obs.accuracy,
            "source": obs.source.value,
            "verified": obs.verified,
        })
        if self.scheduler is not None:
            self.scheduler.schedule(obs.client_id)
        return obs

    def get_observations(self, client_id: str, days_back: int = COMPLIANCE_WINDOW_DAYS) -> list[LocationObservation]:
        """Observations from the trailing days_back days, oldest first."""
        cutoff = self.clock() - timedelta(days=days_back)
        return sort_by_time(observations_since(self.store.list_observations(client_id), cutoff))

    def get_frequent_locations(self, client_id: str, days_back: int = COMPLIANCE_WINDOW_DAYS) -> list[FrequentLocation]:
        """Clusters for the window without touching the stored pattern."""
        return identify_frequent_locations(self.get_observations(client_id, days_back))

    # ------------------------------------------------------------------
    # Pattern
    # ------------------------------------------------------------------
    def analyze_patterns(self, client_id: str) -> LocationPattern:
        """Recompute the client's pattern from the compliance window and replace the stored one."""
        with self.client_lock(client_id):
            observations = self.get_observations(client_id, COMPLIANCE_WINDOW_DAYS)
            pattern = analyze_pattern(client_id, observations, self.clock())
            self.store.save_pattern(pattern)
        logger.info(
            "pattern analyzed client_id=%s type=%s compliance=%d frequent=%d radius=%.1f",
            client_id, pattern.pattern_type.value, pattern.analysis.compliance_score,
            len(pattern.analysis.frequent_locations), pattern.analysis.travel_radius,
        )
        severity, details = pattern_event(pattern)
        self._audit("LOCATION_ANALYSIS_COMPLETED", client_id, severity, details)
        return pattern

    def get_pattern(self, client_id: str) -> Optional[LocationPattern]:
        return self.store.get_pattern(client_id)

    # ------------------------------------------------------------------
    # Risk
    # ------------------------------------------------------------------
    def assess_risk(self, client_id: str) -> SkipBailRiskAssessment:
        """
        Assess from the stored pattern (which may be stale if analyze_patterns was not
        called first). Without a pattern, returns a neutral placeholder that is not stored.
        """
        with self.client_lock(client_id):
            pattern = self.store.get_pattern(client_id)
            observations = self.get_observations(client_id, COMPLIANCE_WINDOW_DAYS)
            assessment = assess_risk(client_id, pattern, observations, self.clock())
            if pattern is None:
                return assessment
            self.store.save_assessment(assessment)
        logger.info("risk assessed client_id=%s level=%s score=%d alerts=%d",
                    client_id, assessment.risk_level.value, assessment.risk_score, len(assessment.alerts))
        severity, details = assessment_event(assessment)
        self._audit("SKIP_BAIL_RISK_ASSESSMENT", client_id, severity, details)
        return assessment

    def refresh(self, client_id: str) -> SkipBailRiskAssessment:
        """Full pipeline: pattern, then risk, as one step for the client."""
        with self.client_lock(client_id):
            self.analyze_patterns(client_id)
            return self.assess_risk(client_id)

    def get_risk_assessment(self, client_id: str) -> Optional[SkipBailRiskAssessment]:
        return self.store.get_assessment(client_id)

    def get_all_risk_assessments(self, risk_level: Optional[RiskLevel] = None) -> list[SkipBailRiskAssessment]:
        """Most urgent first (CRITICAL, HIGH, MEDIUM, LOW); optionally only one level."""
        assessments = self.store.list_assessments()
        if risk_level is not None:
            assessments = [a for a in assessments if a.risk_level == risk_level]
        return sorted(assessments, key=lambda a: -RISK_RANK[a.risk_level])
