"""
FastAPI backend: record client location observations, serve location patterns and
skip-bail risk assessments for the back-office dashboards.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from analytics.audit_log import AuditLogSink
from core.config import Settings
from core.errors import MalformedObservationError
from core.models import RiskLevel
from core.pattern import COMPLIANCE_WINDOW_DAYS
from core.tracker import LocationTracker
from store import create_store

load_dotenv(override=True)

logger = logging.getLogger("location_api")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# -----------------------------------------------------------------------------
# Request models
# -----------------------------------------------------------------------------
class RecordLocationRequest(BaseModel):
    client_id: str
    latitude: float
    longitude: float
    accuracy: float = 10.0  # metres; typical GPS fix
    source: str = "check_in"  # check_in | tracking | manual
    verified: bool = False
    address: Optional[str] = None


# -----------------------------------------------------------------------------
# No-cache for dynamic API responses (avoid 304 for stale data)
# -----------------------------------------------------------------------------
NO_CACHE_HEADERS = {"Cache-Control": "no-store, no-cache, must-revalidate", "Pragma": "no-cache"}


def _json(content) -> JSONResponse:
    return JSONResponse(content=content, headers=NO_CACHE_HEADERS)


def _tracker(request: Request) -> LocationTracker:
    return request.app.state.tracker


def create_app(tracker: Optional[LocationTracker] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API around one tracker. Without a tracker, one is built from settings
    (environment by default). The store is initialized in the lifespan hook, not here.
    """
    settings = settings or Settings.from_env()
    _configure_logging(settings.log_level)
    if tracker is None:
        tracker = LocationTracker(
            create_store(settings),
            debounce_seconds=settings.debounce_seconds,
            audit_sinks=[AuditLogSink()],
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.tracker.initialize()
        logger.info("location api started store=%s", type(app.state.tracker.store).__name__)
        yield
        app.state.tracker.shutdown()

    app = FastAPI(title="Location Risk API", lifespan=lifespan)
    app.state.tracker = tracker

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------
    @app.post("/locations")
    def record_location(body: RecordLocationRequest, request: Request):
        """Append one observation; analysis for the client is re-run in the background."""
        try:
            obs = _tracker(request).record_observation(
                body.client_id,
                body.latitude,
                body.longitude,
                body.accuracy,
                body.source,
                body.verified,
                address=body.address,
            )
        except MalformedObservationError as e:
            logger.warning("observation rejected client_id=%s: %s", body.client_id, e)
            return JSONResponse(status_code=400, content={"detail": str(e)}, headers=NO_CACHE_HEADERS)
        return _json(obs.to_dict())

    @app.get("/clients/{client_id}/locations")
    def list_locations(client_id: str, request: Request, days: int = Query(COMPLIANCE_WINDOW_DAYS, ge=1)):
        observations = _tracker(request).get_observations(client_id, days)
        return _json({"client_id": client_id, "locations": [o.to_dict() for o in observations]})

    @app.get("/clients/{client_id}/frequent-locations")
    def list_frequent_locations(client_id: str, request: Request, days: int = Query(COMPLIANCE_WINDOW_DAYS, ge=1)):
        frequent = _tracker(request).get_frequent_locations(client_id, days)
        return _json({"client_id": client_id, "frequent_locations": [f.to_dict() for f in frequent]})

    @app.post("/clients/{client_id}/pattern")
    def analyze_pattern(client_id: str, request: Request):
        return _json(_tracker(request).analyze_patterns(client_id).to_dict())

    @app.get("/clients/{client_id}/pattern")
    def get_pattern(client_id: str, request: Request):
        pattern = _tracker(request).get_pattern(client_id)
        if pattern is None:
            raise HTTPException(status_code=404, detail="Location pattern not found")
        return _json(pattern.to_dict())

    @app.post("/clients/{client_id}/risk")
    def assess_risk(client_id: str, request: Request):
        return _json(_tracker(request).assess_risk(client_id).to_dict())

    @app.get("/clients/{client_id}/risk")
    def get_risk(client_id: str, request: Request):
        assessment = _tracker(request).get_risk_assessment(client_id)
        if assessment is None:
            raise HTTPException(status_code=404, detail="Risk assessment not found")
        return _json(assessment.to_dict())

    @app.get("/risk-assessments")
    def list_risk_assessments(request: Request, risk_level: Optional[str] = None):
        """All stored assessments, most urgent first. risk_level filters to one level."""
        level = None
        if risk_level:
            try:
                level = RiskLevel(risk_level.strip().upper())
            except ValueError:
                raise HTTPException(status_code=400, detail=f"unknown risk_level: {risk_level}") from None
        assessments = _tracker(request).get_all_risk_assessments(level)
        return _json({"assessments": [a.to_dict() for a in assessments]})

    @app.get("/health")
    def health(request: Request):
        t = _tracker(request)
        return _json({
            "status": "ok",
            "store": type(t.store).__name__,
            "background_analysis": t.scheduler is not None,
        })

    return app
