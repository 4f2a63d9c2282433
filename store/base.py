"""Store contract used by the tracker. Implementations raise their own I/O errors; callers do not retry."""

from abc import ABC, abstractmethod
from typing import Optional

from core.models import LocationObservation, LocationPattern, SkipBailRiskAssessment


class LocationStore(ABC):

    def initialize(self) -> None:
        """Prepare backing resources. Called once at process start, never at import."""

    @abstractmethod
    def append_observation(self, observation: LocationObservation) -> None:
        """Append-only: observations are never updated or deleted."""

    @abstractmethod
    def list_observations(self, client_id: str) -> list[LocationObservation]:
        """All observations for the client, in recorded order."""

    @abstractmethod
    def save_pattern(self, pattern: LocationPattern) -> None:
        """Replace the client's pattern snapshot."""

    @abstractmethod
    def get_pattern(self, client_id: str) -> Optional[LocationPattern]:
        ...

    @abstractmethod
    def save_assessment(self, assessment: SkipBailRiskAssessment) -> None:
        """Replace the client's risk assessment."""

    @abstractmethod
    def get_assessment(self, client_id: str) -> Optional[SkipBailRiskAssessment]:
        ...

    @abstractmethod
    def list_assessments(self) -> list[SkipBailRiskAssessment]:
        ...
