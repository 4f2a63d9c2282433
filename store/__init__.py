"""Location store: append-only observations plus the latest pattern/assessment per client."""

from store.base import LocationStore
from store.memory import InMemoryLocationStore
from store.json_store import JsonFileLocationStore

__all__ = [
    "LocationStore",
    "InMemoryLocationStore",
    "JsonFileLocationStore",
    "create_store",
]


def create_store(settings) -> LocationStore:
    """Build the store named by settings.store_backend ("json" or "memory")."""
    if settings.store_backend == "memory":
        return InMemoryLocationStore()
    return JsonFileLocationStore(settings.data_dir)
