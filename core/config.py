"""
Runtime settings from the environment (a .env file is loaded by the API module).

- LOCATION_STORE: "json" (default) or "memory".
- LOCATION_DATA_DIR: root directory for the JSON store (default "location-data").
- ANALYSIS_DEBOUNCE_SECONDS: delay before re-analysing a client after a new observation
  (default 1.0; 0 disables background analysis).
- LOG_LEVEL: logging level name (default INFO).
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("location_api.core.config")

DEFAULT_DATA_DIR = "location-data"
DEFAULT_DEBOUNCE_SECONDS = 1.0
STORE_BACKENDS = ("json", "memory")


def _env_str(name: str, default: str) -> str:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    return v.strip()


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    try:
        return max(minimum, float(v.strip()))
    except ValueError:
        logger.warning("invalid %s=%r; using %s", name, v, default)
        return default


def _store_backend() -> str:
    v = _env_str("LOCATION_STORE", "json").lower()
    if v not in STORE_BACKENDS:
        logger.warning("unknown LOCATION_STORE=%r; using json", v)
        return "json"
    return v


@dataclass
class Settings:
    store_backend: str = "json"
    data_dir: str = DEFAULT_DATA_DIR
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            store_backend=_store_backend(),
            data_dir=_env_str("LOCATION_DATA_DIR", DEFAULT_DATA_DIR),
            debounce_seconds=_env_float("ANALYSIS_DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        )
