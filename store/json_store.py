"""
JSON-file store.

Layout under data_dir:
- client-<id>-locations.jsonl   one observation per line, append-only (<id> percent-encoded)
- daily/<YYYY-MM-DD>.jsonl      same observations, partitioned by recording day
- patterns/client-<id>-pattern.json
- analysis/client-<id>-risk.json

Pattern and assessment files are rewritten whole (temp file + os.replace) under a
per-client lock; the last writer wins.
"""

import json
import logging
import os
import threading
from typing import Optional
from urllib.parse import quote

from core.models import LocationObservation, LocationPattern, SkipBailRiskAssessment
from store.base import LocationStore

logger = logging.getLogger("location_api.store.json_store")

RISK_FILE_SUFFIX = "-risk.json"


def _safe_name(client_id: str) -> str:
    """Percent-encode the id so distinct clients never share a file."""
    return quote(client_id, safe="")


class JsonFileLocationStore(LocationStore):

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.daily_dir = os.path.join(data_dir, "daily")
        self.patterns_dir = os.path.join(data_dir, "patterns")
        self.analysis_dir = os.path.join(data_dir, "analysis")
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def initialize(self) -> None:
        for d in (self.data_dir, self.daily_dir, self.patterns_dir, self.analysis_dir):
            os.makedirs(d, exist_ok=True)
        logger.info("location store initialized data_dir=%s", self.data_dir)

    def _client_lock(self, client_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(client_id)
            if lock is None:
                lock = self._locks[client_id] = threading.Lock()
            return lock

    def _locations_file(self, client_id: str) -> str:
        return os.path.join(self.data_dir, f"client-{_safe_name(client_id)}-locations.jsonl")

    def _pattern_file(self, client_id: str) -> str:
        return os.path.join(self.patterns_dir, f"client-{_safe_name(client_id)}-pattern.json")

    def _risk_file(self, client_id: str) -> str:
        return os.path.join(self.analysis_dir, f"client-{_safe_name(client_id)}{RISK_FILE_SUFFIX}")

    @staticmethod
    def _write_json(path: str, data: dict) -> None:
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, path)

    @staticmethod
    def _read_json(path: str) -> Optional[dict]:
        if not os.path.exists(path):
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def append_observation(self, observation: LocationObservation) -> None:
        line = json.dumps(observation.to_dict()) + "\n"
        daily_file = os.path.join(self.daily_dir, observation.timestamp.strftime("%Y-%m-%d") + ".jsonl")
        with self._client_lock(observation.client_id):
            with open(self._locations_file(observation.client_id), "a", encoding="utf-8") as f:
                f.write(line)
        # Daily files are shared by all clients.
        with self._client_lock("__daily__"):
            with open(daily_file, "a", encoding="utf-8") as f:
                f.write(line)

    def list_observations(self, client_id: str) -> list[LocationObservation]:
        path = self._locations_file(client_id)
        if not os.path.exists(path):
            return []
        with self._client_lock(client_id):
            with open(path, encoding="utf-8") as f:
                lines = [ln for ln in f.read().splitlines() if ln.strip()]
        return [LocationObservation.from_dict(json.loads(ln)) for ln in lines]

    def save_pattern(self, pattern: LocationPattern) -> None:
        with self._client_lock(pattern.client_id):
            self._write_json(self._pattern_file(pattern.client_id), pattern.to_dict())

    def get_pattern(self, client_id: str) -> Optional[LocationPattern]:
        with self._client_lock(client_id):
            data = self._read_json(self._pattern_file(client_id))
        return LocationPattern.from_dict(data) if data is not None else None

    def save_assessment(self, assessment: SkipBailRiskAssessment) -> None:
        with self._client_lock(assessment.client_id):
            self._write_json(self._risk_file(assessment.client_id), assessment.to_dict())

    def get_assessment(self, client_id: str) -> Optional[SkipBailRiskAssessment]:
        with self._client_lock(client_id):
            data = self._read_json(self._risk_file(client_id))
        return SkipBailRiskAssessment.from_dict(data) if data is not None else None

    def list_assessments(self) -> list[SkipBailRiskAssessment]:
        if not os.path.isdir(self.analysis_dir):
            return []
        out = []
        for name in sorted(os.listdir(self.analysis_dir)):
            if not name.endswith(RISK_FILE_SUFFIX):
                continue
            data = self._read_json(os.path.join(self.analysis_dir, name))
            if data is not None:
                out.append(SkipBailRiskAssessment.from_dict(data))
        return out
