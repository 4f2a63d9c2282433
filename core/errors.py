"""Errors raised at the tracker boundary."""


class MalformedObservationError(ValueError):
    """Observation rejected before anything was stored (bad coordinates, accuracy, source or client id)."""
