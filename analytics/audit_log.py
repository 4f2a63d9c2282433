"""
Audit sink: compliance-relevant location events written to the "location_api.audit" logger.

Events:
- LOCATION_RECORDED: one per accepted observation
- LOCATION_ANALYSIS_COMPLETED: one per pattern recomputation
- SKIP_BAIL_RISK_ASSESSMENT: one per persisted assessment

Severity follows the finding (HIGH for suspicious patterns, CRITICAL/HIGH for risky
assessments, MEDIUM otherwise). Route the logger to a file or collector to retain events.
"""

import json
import logging
from typing import Any

from core.models import LocationPattern, PatternType, RiskLevel, SkipBailRiskAssessment

logger = logging.getLogger("location_api.audit")

SEVERITY_LEVELS = {
    "LOW": logging.INFO,
    "MEDIUM": logging.INFO,
    "HIGH": logging.WARNING,
    "CRITICAL": logging.ERROR,
}


def pattern_event(pattern: LocationPattern) -> tuple[str, dict[str, Any]]:
    severity = "HIGH" if pattern.pattern_type == PatternType.SUSPICIOUS else "MEDIUM"
    return severity, {
        "pattern_type": pattern.pattern_type.value,
        "compliance_score": pattern.analysis.compliance_score,
        "travel_radius": round(pattern.analysis.travel_radius, 2),
        "frequent_location_count": len(pattern.analysis.frequent_locations),
        "risk_factors": list(pattern.analysis.risk_factors),
    }


def assessment_event(assessment: SkipBailRiskAssessment) -> tuple[str, dict[str, Any]]:
    if assessment.risk_level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
        severity = assessment.risk_level.value
    else:
        severity = "MEDIUM"
    return severity, {
        "risk_level": assessment.risk_level.value,
        "risk_score": assessment.risk_score,
        "factors": assessment.factors.to_dict(),
        "alert_count": len(assessment.alerts),
    }


class AuditLogSink:
    """Callable sink: sink(event_type, client_id, severity, details)."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def __call__(self, event_type: str, client_id: str, severity: str, details: dict[str, Any]) -> None:
        self.log.log(
            SEVERITY_LEVELS.get(severity, logging.INFO),
            "audit event=%s client_id=%s severity=%s details=%s",
            event_type, client_id, severity, json.dumps(details, sort_keys=True, default=str),
        )
