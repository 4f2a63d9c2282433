"""Time helpers for location history: ordering, trailing windows, stay estimates, weekly grouping."""

import logging
from datetime import datetime, timedelta

logger = logging.getLogger("location_api.clustering.time_proximity")

# Stay estimate bounds (minutes)
MIN_STAY_MINUTES = 30
MAX_STAY_MINUTES = 150

WEEK = timedelta(days=7)


def sort_by_time(observations: list) -> list:
    """Oldest first. Stable, so same-instant readings keep arrival order."""
    return sorted(observations, key=lambda o: o.timestamp)


def observations_since(observations: list, cutoff: datetime, inclusive: bool = True) -> list:
    if inclusive:
        return [o for o in observations if o.timestamp >= cutoff]
    return [o for o in observations if o.timestamp > cutoff]


def estimate_stay_minutes(observations: list) -> dict[str, float]:
    """
    Stay per observation id: minutes until the client's next reading (anywhere),
    clamped to [MIN_STAY_MINUTES, MAX_STAY_MINUTES]. The latest reading gets the floor.
    Deterministic for a given history.
    """
    ordered = sort_by_time(observations)
    stays: dict[str, float] = {}
    for i, obs in enumerate(ordered):
        if i + 1 < len(ordered):
            gap = (ordered[i + 1].timestamp - obs.timestamp).total_seconds() / 60.0
        else:
            gap = MIN_STAY_MINUTES
        stays[obs.id] = max(MIN_STAY_MINUTES, min(MAX_STAY_MINUTES, gap))
    return stays


def group_into_weeks(observations: list) -> list[list]:
    """
    Consecutive 7-day windows. A window starts at its first reading; the first reading
    more than 7 days after that start opens the next window.
    """
    weeks: list[list] = []
    current: list = []
    week_start = None
    for obs in sort_by_time(observations):
        if week_start is None or obs.timestamp - week_start > WEEK:
            if current:
                weeks.append(current)
            current = [obs]
            week_start = obs.timestamp
        else:
            current.append(obs)
    if current:
        weeks.append(current)
    return weeks
