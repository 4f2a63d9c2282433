"""
Seed demo location history into the JSON store and run the analysis pipeline.

Writes backdated observations for a few demo clients (Honolulu area) straight into
LOCATION_DATA_DIR, then computes each client's pattern and risk assessment so the
dashboards have something to show. Stop the API first or point it at the same dir.
Usage: python seed_demo_locations.py
"""

from datetime import timedelta

from dotenv import load_dotenv

from core.config import Settings
from core.models import LocationObservation, LocationSource, utc_now
from core.tracker import LocationTracker, new_observation_id
from store.json_store import JsonFileLocationStore

HOME = (21.3069, -157.8583)  # Honolulu
WORK = (21.2850, -157.8357)  # Waikiki
HILO = (19.7074, -155.0885)  # Big Island, ~200 miles away

# client_id -> list of (days_ago, (lat, lng), source, verified)
DEMO_CLIENTS = {
    "demo-steady": (
        [(d, HOME, "check_in", True) for d in range(0, 28, 2)]
        + [(d, WORK, "check_in", True) for d in range(1, 27, 3)]
    ),
    "demo-drifting": (
        [(d, HOME, "check_in", True) for d in range(10, 29, 3)]
        + [(d, HILO, "tracking", False) for d in range(0, 9, 2)]
    ),
    "demo-sparse": [(2, HOME, "manual", False), (9, WORK, "tracking", False)],
}


def main():
    load_dotenv()
    settings = Settings.from_env()
    store = JsonFileLocationStore(settings.data_dir)
    tracker = LocationTracker(store)
    tracker.initialize()
    now = utc_now()
    print(f"Seeding demo clients into {settings.data_dir}")
    for client_id, readings in DEMO_CLIENTS.items():
        for days_ago, (lat, lng), source, verified in readings:
            store.append_observation(LocationObservation(
                id=new_observation_id(),
                client_id=client_id,
                latitude=lat,
                longitude=lng,
                timestamp=now - timedelta(days=days_ago, hours=days_ago % 5),
                accuracy=10.0,
                source=LocationSource(source),
                verified=verified,
            ))
        assessment = tracker.refresh(client_id)
        pattern = tracker.get_pattern(client_id)
        print(f"  {client_id}: observations={len(readings)} pattern={pattern.pattern_type.value} "
              f"risk={assessment.risk_level.value} score={assessment.risk_score}")
    print("Done.")


if __name__ == "__main__":
    main()
