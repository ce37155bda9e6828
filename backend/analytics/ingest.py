"""Write paths for page visits, item interactions and dwell-time heartbeats.

Each tracker resolves the profile, upserts today's aggregate and applies its
deltas in one transaction. Delivery is at-least-once: a retried call adds
another increment. Failures never escape; callers get ``success=False``.
"""
from __future__ import annotations

import functools
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import schemas
from .config import get_fingerprint_secret
from .days import day_number
from .devices import DeviceClass, classify_device
from .directory import ProfileDirectory, ProfileNotFound
from .fingerprint import fingerprint_visitor
from .models import HistogramField
from .referrer import normalize_referrer
from .store import DailyAggregateStore

logger = logging.getLogger(__name__)

Tracker = Callable[..., schemas.TrackResult]


def best_effort(tracker: Tracker) -> Tracker:
    """Turn every failure of ``tracker`` into a logged ``success=False`` result."""

    @functools.wraps(tracker)
    def wrapper(db: Session, slug: str, *args, **kwargs) -> schemas.TrackResult:
        try:
            return tracker(db, slug, *args, **kwargs)
        except ProfileNotFound:
            logger.info("%s: no profile with slug %r", tracker.__name__, slug)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("%s: analytics store failure for slug %r", tracker.__name__, slug)
        except Exception:
            db.rollback()
            logger.exception("%s: unexpected failure for slug %r", tracker.__name__, slug)
        return schemas.TrackResult(success=False)

    return wrapper


@best_effort
def track_visit(
    db: Session,
    slug: str,
    *,
    device_type: Optional[DeviceClass] = None,
    referrer: Optional[str] = None,
    client_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    now: Optional[datetime] = None,
) -> schemas.TrackResult:
    profile_id = ProfileDirectory(db).resolve_slug(slug)
    fingerprint = fingerprint_visitor(client_address, user_agent, get_fingerprint_secret())
    device = DeviceClass(device_type) if device_type else classify_device(user_agent)
    referrer_key = normalize_referrer(referrer)
    day = day_number(now)

    store = DailyAggregateStore(db)
    store.upsert_baseline(profile_id, day, create={"views": 1}, increment={"views": 1})
    record_id = store.get_record_id(profile_id, day)
    is_new_visitor = store.add_visitor(record_id, fingerprint)
    store.apply_histogram_delta(record_id, HistogramField.DEVICE_STATS, device.value)
    store.apply_histogram_delta(record_id, HistogramField.REFERRER_STATS, referrer_key)
    db.commit()

    return schemas.TrackResult(success=True, is_new_visitor=is_new_visitor)


@best_effort
def track_interaction(
    db: Session,
    slug: str,
    item_id: str,
    *,
    now: Optional[datetime] = None,
) -> schemas.TrackResult:
    """Count a click on ``item_id``. Dropped when the profile has no visit today."""

    profile_id = ProfileDirectory(db).resolve_slug(slug)
    store = DailyAggregateStore(db)
    record_id = store.get_record_id(profile_id, day_number(now))
    if record_id is None:
        logger.debug("Dropping interaction with %r on %r: no visit recorded today", item_id, slug)
        return schemas.TrackResult(success=False)

    store.apply_histogram_delta(record_id, HistogramField.PROJECT_INTERACTIONS, item_id)
    db.commit()
    return schemas.TrackResult(success=True)


@best_effort
def track_duration(
    db: Session,
    slug: str,
    seconds: int,
    *,
    now: Optional[datetime] = None,
) -> schemas.TrackResult:
    if seconds < 0:
        logger.warning("Rejecting negative duration %d for slug %r", seconds, slug)
        return schemas.TrackResult(success=False)

    profile_id = ProfileDirectory(db).resolve_slug(slug)
    # A heartbeat can arrive before the visit was recorded; it seeds the day with one view.
    DailyAggregateStore(db).upsert_baseline(
        profile_id,
        day_number(now),
        create={"views": 1, "total_duration": seconds},
        increment={"total_duration": seconds},
    )
    db.commit()
    return schemas.TrackResult(success=True)
