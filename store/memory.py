"""In-memory store (one process, lost on restart). Used for tests and LOCATION_STORE=memory."""

import threading
from typing import Optional

from core.models import LocationObservation, LocationPattern, SkipBailRiskAssessment
from store.base import LocationStore


class InMemoryLocationStore(LocationStore):

    def __init__(self):
        self._lock = threading.Lock()
        self.observations: dict[str, list[LocationObservation]] = {}
        self.patterns: dict[str, LocationPattern] = {}
        self.assessments: dict[str, SkipBailRiskAssessment] = {}

    def append_observation(self, observation: LocationObservation) -> None:
        with self._lock:
            self.observations.setdefault(observation.client_id, []).append(observation)

    def list_observations(self, client_id: str) -> list[LocationObservation]:
        with self._lock:
            return list(self.observations.get(client_id, []))

    # Snapshots go through to_dict/from_dict so callers never share objects with the store.
    def save_pattern(self, pattern: LocationPattern) -> None:
        with self._lock:
            self.patterns[pattern.client_id] = LocationPattern.from_dict(pattern.to_dict())

    def get_pattern(self, client_id: str) -> Optional[LocationPattern]:
        with self._lock:
            p = self.patterns.get(client_id)
            return LocationPattern.from_dict(p.to_dict()) if p else None

    def save_assessment(self, assessment: SkipBailRiskAssessment) -> None:
        with self._lock:
            self.assessments[assessment.client_id] = SkipBailRiskAssessment.from_dict(assessment.to_dict())

    def get_assessment(self, client_id: str) -> Optional[SkipBailRiskAssessment]:
        with self._lock:
            a = self.assessments.get(client_id)
            return SkipBailRiskAssessment.from_dict(a.to_dict()) if a else None

    def list_assessments(self) -> list[SkipBailRiskAssessment]:
        with self._lock:
            return [SkipBailRiskAssessment.from_dict(a.to_dict()) for a in self.assessments.values()]
