"""Dashboard report for one profile over a rolling window of days.

The report is rebuilt from the stored daily aggregates on every call:

* every calendar day of the window appears in ``history``, zero-filled when
  nothing was recorded that day;
* unique visitors are the union of the daily fingerprint sets, so a visitor
  seen on two days counts once;
* a day whose average time per view is under ``BOUNCE_THRESHOLD_SECONDS``
  counts all of its views as bounces;
* the trend compares total views with the preceding window of equal length.

Any failure yields ``AnalyticsReport.empty()``.
"""
from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import schemas
from .config import get_all_time_start
from .days import day_number, from_date, to_date
from .directory import ProfileDirectory
from .models import DailyAggregate
from .referrer import DIRECT
from .store import DailyAggregateStore

logger = logging.getLogger(__name__)

ALL_TIME = 0
BOUNCE_THRESHOLD_SECONDS = 10
TOP_PROJECTS_LIMIT = 5
TOP_REFERRERS_LIMIT = 5
UNKNOWN_PROJECT_LABEL = "Unknown Project"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(100 * part / whole)


def returning_rate(total_views: int, unique_visitors: int) -> int:
    return percentage(max(0, total_views - unique_visitors), total_views)


def bounce_rate(bounce_views: int, total_views: int) -> int:
    return percentage(bounce_views, total_views)


def average_seconds(total_duration: int, views: int) -> int:
    if views <= 0:
        return 0
    return round_half_up(total_duration / views)


def view_trend(current_views: int, previous_views: int) -> int:
    if previous_views == 0:
        return 100 if current_views > 0 else 0
    return round_half_up(100 * (current_views - previous_views) / previous_views)


def window_bounds(window_days: Optional[int], today: int) -> Tuple[int, int]:
    """Inclusive ``(start_day, end_day)``; ``N`` days end today and span N days."""

    if window_days is None or window_days <= ALL_TIME:
        return min(from_date(get_all_time_start()), today), today
    return today - (window_days - 1), today


MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def day_label(value: date) -> str:
    return f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.day}"


@dataclass
class WindowTotals:
    views: int = 0
    duration: int = 0
    bounce_views: int = 0
    visitors: Set[str] = field(default_factory=set)
    devices: Counter = field(default_factory=Counter)
    referrers: Counter = field(default_factory=Counter)
    projects: Counter = field(default_factory=Counter)

    def add(self, record: DailyAggregate) -> None:
        self.views += record.views
        self.duration += record.total_duration
        self.visitors.update(record.unique_visitors)
        self.devices.update(record.device_stats)
        self.referrers.update(record.referrer_stats)
        self.projects.update(record.project_interactions)
        if record.views and record.total_duration / record.views < BOUNCE_THRESHOLD_SECONDS:
            self.bounce_views += record.views


def _history_point(day: int, record: Optional[DailyAggregate]) -> schemas.HistoryPoint:
    label = day_label(to_date(day))
    if record is None:
        return schemas.HistoryPoint(date=label)
    return schemas.HistoryPoint(
        date=label,
        views=record.views,
        visitors=len(record.visitors),
        avg_time=average_seconds(record.total_duration, record.views),
    )


def _ranked(counts: Dict[str, int]) -> List[Tuple[str, int]]:
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def device_breakdown(devices: Dict[str, int]) -> List[schemas.BreakdownItem]:
    return [
        schemas.BreakdownItem(name=name[:1].upper() + name[1:], value=value)
        for name, value in _ranked(devices)
    ]


def referrer_breakdown(referrers: Dict[str, int]) -> List[schemas.BreakdownItem]:
    return [
        schemas.BreakdownItem(name="Direct" if name == DIRECT else name, value=value)
        for name, value in _ranked(referrers)[:TOP_REFERRERS_LIMIT]
    ]


def _project_titles(db: Session, profile_id: str, project_ids: Iterable[str]) -> Dict[str, str]:
    try:
        return ProfileDirectory(db).project_titles(profile_id, project_ids)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not resolve project titles; using placeholders")
        return {}


def top_projects(db: Session, profile_id: str, projects: Dict[str, int]) -> List[schemas.TopItem]:
    ranked = _ranked(projects)[:TOP_PROJECTS_LIMIT]
    titles = _project_titles(db, profile_id, [project_id for project_id, _ in ranked])
    return [
        schemas.TopItem(id=project_id, name=titles.get(project_id, UNKNOWN_PROJECT_LABEL), count=count)
        for project_id, count in ranked
    ]


def _build_report(
    db: Session,
    profile_id: str,
    window_days: Optional[int],
    today: int,
) -> schemas.AnalyticsReport:
    store = DailyAggregateStore(db)
    start_day, end_day = window_bounds(window_days, today)
    records = {record.day: record for record in store.query(profile_id, start_day, end_day)}

    totals = WindowTotals()
    history = []
    for day in range(start_day, end_day + 1):
        record = records.get(day)
        if record is not None:
            totals.add(record)
        history.append(_history_point(day, record))

    trend = 0
    if window_days is not None and window_days > ALL_TIME:
        previous_views = store.sum_views(profile_id, start_day - window_days, start_day - 1)
        trend = view_trend(totals.views, previous_views)

    summary = schemas.AnalyticsSummary(
        total_views=totals.views,
        unique_visitors=len(totals.visitors),
        avg_time_on_page=average_seconds(totals.duration, totals.views),
        bounce_rate=bounce_rate(totals.bounce_views, totals.views),
        returning_rate=returning_rate(totals.views, len(totals.visitors)),
        view_trend=trend,
    )
    return schemas.AnalyticsReport(
        history=history,
        summary=summary,
        device_breakdown=device_breakdown(totals.devices),
        referrer_breakdown=referrer_breakdown(totals.referrers),
        top_projects=top_projects(db, profile_id, totals.projects),
    )


def get_analytics(
    db: Session,
    profile_id: str,
    window_days: Optional[int] = 7,
    *,
    today: Optional[date] = None,
) -> schemas.AnalyticsReport:
    """Build the dashboard report; ``window_days <= 0`` or ``None`` means all time."""

    current_day = from_date(today) if today is not None else day_number()
    try:
        return _build_report(db, profile_id, window_days, current_day)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Analytics store failure while reporting on profile %r", profile_id)
    except Exception:
        db.rollback()
        logger.exception("Unexpected failure while reporting on profile %r", profile_id)
    return schemas.AnalyticsReport.empty()
