"""FastAPI application entrypoint for the visit analytics API."""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from . import ingest, reporting, schemas
from .config import get_presence_timeout, get_track_rate_limit, get_track_rate_window
from .database import SessionLocal, engine
from .models import Base
from .presence import PresenceTracker

logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Profile Visit Analytics API",
    description="API for recording profile page visits and reading aggregated visit statistics.",
    version="0.1.0",
)


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class RateLimitError(Exception):
    """Raised when a caller exceeds the configured rate limit."""


class FixedWindowRateLimiter:
    """Simple in-memory fixed window rate limiter keyed by identifier."""

    def __init__(
        self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._counters: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._counters)

    def _purge(self, now: float) -> None:
        expired = [
            key for key, (_, window_start) in self._counters.items() if now - window_start >= self._window_seconds
        ]
        for key in expired:
            self._counters.pop(key, None)

    def check(self, key: str) -> None:
        now = self._clock()
        with self._lock:
            self._purge(now)
            count, window_start = self._counters.get(key, (0, now))
            if now - window_start >= self._window_seconds:
                count = 0
                window_start = now
            if count >= self._max_requests:
                raise RateLimitError(f"Rate limit exceeded for key {key}")
            self._counters[key] = (count + 1, window_start)


def _get_rate_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(get_track_rate_limit(), get_track_rate_window())


def _get_presence_tracker() -> PresenceTracker:
    return PresenceTracker(get_presence_timeout())


_track_rate_limiter = _get_rate_limiter()
_presence = _get_presence_tracker()


def client_address(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client:
        return request.client.host or None
    return None


def peer_address(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


def enforce_track_rate_limit(request: Request) -> None:
    # Forwarded headers are caller-controlled; only the socket peer keys the limiter.
    key = peer_address(request)
    try:
        _track_rate_limiter.check(key)
    except RateLimitError:
        logger.warning("Tracking rate limit exceeded for %s", key)
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded")


@app.post("/analytics/visit", response_model=schemas.TrackResult)
def record_visit(
    visit: schemas.VisitIn,
    request: Request,
    _: None = Depends(enforce_track_rate_limit),
    db: Session = Depends(get_db),
) -> schemas.TrackResult:
    return ingest.track_visit(
        db,
        visit.slug,
        device_type=visit.device_type,
        referrer=visit.referrer,
        client_address=client_address(request),
        user_agent=request.headers.get("user-agent"),
    )


@app.post("/analytics/interaction", response_model=schemas.TrackResult)
def record_interaction(
    interaction: schemas.InteractionIn,
    _: None = Depends(enforce_track_rate_limit),
    db: Session = Depends(get_db),
) -> schemas.TrackResult:
    return ingest.track_interaction(db, interaction.slug, interaction.item_id)


@app.post("/analytics/duration", response_model=schemas.TrackResult)
def record_duration(
    heartbeat: schemas.DurationIn,
    _: None = Depends(enforce_track_rate_limit),
    db: Session = Depends(get_db),
) -> schemas.TrackResult:
    return ingest.track_duration(db, heartbeat.slug, heartbeat.seconds)


@app.get("/analytics/profiles/{profile_id}", response_model=schemas.AnalyticsReport)
def read_analytics(
    profile_id: str,
    days: int = Query(7, ge=0, le=3650, description="Window length in days; 0 means all time"),
    db: Session = Depends(get_db),
) -> schemas.AnalyticsReport:
    return reporting.get_analytics(db, profile_id, days)


@app.get("/analytics/online", response_model=schemas.PresenceOut)
def online_count(profile_id: str = Query(..., alias="profileId", min_length=1)) -> schemas.PresenceOut:
    return schemas.PresenceOut(count=_presence.count(profile_id))


@app.post("/analytics/online", response_model=schemas.PresenceOut)
def online_heartbeat(heartbeat: schemas.HeartbeatIn) -> schemas.PresenceOut:
    return schemas.PresenceOut(count=_presence.heartbeat(heartbeat.profile_id, heartbeat.session_id))


@app.delete("/analytics/online", response_model=schemas.PresenceOut)
def online_leave(
    profile_id: str = Query(..., alias="profileId", min_length=1),
    session_id: str = Query(..., alias="sessionId", min_length=1),
) -> schemas.PresenceOut:
    _presence.leave(profile_id, session_id)
    return schemas.PresenceOut(count=_presence.count(profile_id))


def reset_application_state() -> None:
    """Reset mutable globals for test isolation."""

    global _track_rate_limiter, _presence
    _track_rate_limiter = _get_rate_limiter()
    _presence = _get_presence_tracker()
