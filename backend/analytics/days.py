"""UTC calendar-day keys.

Aggregates are keyed by an integer day number (days since 1970-01-01 in UTC)
rather than a timestamp, so the same calendar day maps to the same key no
matter how a driver represents dates.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional

EPOCH = date(1970, 1, 1)


def day_number(moment: Optional[datetime] = None) -> int:
    """Return the UTC day number for ``moment`` (default: now).

    Naive datetimes are taken to be UTC.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return from_date(moment.date())


def from_date(value: date) -> int:
    return (value - EPOCH).days


def to_date(day: int) -> date:
    return EPOCH + timedelta(days=day)
