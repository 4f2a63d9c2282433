"""Analytics sinks: audit events for location analysis (logging backend)."""

from analytics.audit_log import AuditLogSink, pattern_event, assessment_event

__all__ = ["AuditLogSink", "pattern_event", "assessment_event"]
