"""SQLAlchemy models for per-day visit aggregates."""
from __future__ import annotations

import uuid
from datetime import date
from enum import Enum
from typing import Dict, Set

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

from . import days

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


class HistogramField(str, Enum):
    DEVICE_STATS = "device_stats"
    REFERRER_STATS = "referrer_stats"
    PROJECT_INTERACTIONS = "project_interactions"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, default=_new_id)
    slug = Column(String(255), unique=True, index=True, nullable=False)


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(64), primary_key=True, default=_new_id)
    profile_id = Column(String(64), ForeignKey("profiles.id"), index=True, nullable=False)
    title = Column(String(255), nullable=False)


class DailyAggregate(Base):
    __tablename__ = "daily_aggregates"
    __table_args__ = (UniqueConstraint("profile_id", "day", name="uq_daily_aggregates_profile_day"),)

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(String(64), index=True, nullable=False)
    day = Column(Integer, index=True, nullable=False)
    views = Column(Integer, default=0, nullable=False)
    total_duration = Column(Integer, default=0, nullable=False)

    visitors = relationship("DailyVisitor", lazy="selectin")
    counters = relationship("DailyCounter", lazy="selectin")

    @property
    def date(self) -> date:
        return days.to_date(self.day)

    @property
    def unique_visitors(self) -> Set[str]:
        return {visitor.fingerprint for visitor in self.visitors}

    @property
    def device_stats(self) -> Dict[str, int]:
        return self.histogram(HistogramField.DEVICE_STATS)

    @property
    def referrer_stats(self) -> Dict[str, int]:
        return self.histogram(HistogramField.REFERRER_STATS)

    @property
    def project_interactions(self) -> Dict[str, int]:
        return self.histogram(HistogramField.PROJECT_INTERACTIONS)

    def histogram(self, field: HistogramField) -> Dict[str, int]:
        return {
            counter.label: counter.count
            for counter in self.counters
            if counter.histogram == field.value
        }


class DailyVisitor(Base):
    __tablename__ = "daily_visitors"
    __table_args__ = (
        UniqueConstraint("aggregate_id", "fingerprint", name="uq_daily_visitors_aggregate_fingerprint"),
    )

    id = Column(Integer, primary_key=True, index=True)
    aggregate_id = Column(Integer, ForeignKey("daily_aggregates.id"), index=True, nullable=False)
    fingerprint = Column(String(64), nullable=False)


class DailyCounter(Base):
    __tablename__ = "daily_counters"
    __table_args__ = (
        UniqueConstraint("aggregate_id", "histogram", "label", name="uq_daily_counters_aggregate_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    aggregate_id = Column(Integer, ForeignKey("daily_aggregates.id"), index=True, nullable=False)
    histogram = Column(String(32), nullable=False)
    label = Column(String(255), nullable=False)
    count = Column(Integer, default=0, nullable=False)
