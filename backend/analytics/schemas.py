"""Pydantic models for request and response bodies."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .devices import DeviceClass


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VisitIn(CamelModel):
    slug: str = Field(..., min_length=1, description="Public slug of the visited profile")
    device_type: Optional[DeviceClass] = Field(
        None, description="Device class reported by the page; derived from the user agent when omitted"
    )
    referrer: Optional[str] = Field(None, description="document.referrer of the visit, or 'direct'")


class InteractionIn(CamelModel):
    slug: str = Field(..., min_length=1)
    type: Literal["project"] = "project"
    item_id: str = Field(..., min_length=1, description="Identifier of the clicked item, e.g. a project id")


class DurationIn(CamelModel):
    slug: str = Field(..., min_length=1)
    seconds: int = Field(..., ge=0, description="Dwell time measured since the previous heartbeat")


class HeartbeatIn(CamelModel):
    profile_id: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)


class TrackResult(CamelModel):
    success: bool
    is_new_visitor: Optional[bool] = None


class PresenceOut(CamelModel):
    success: bool = True
    count: int = 0


class HistoryPoint(CamelModel):
    date: str
    views: int = 0
    visitors: int = 0
    avg_time: int = 0


class AnalyticsSummary(CamelModel):
    total_views: int = 0
    unique_visitors: int = 0
    avg_time_on_page: int = 0
    bounce_rate: int = 0
    returning_rate: int = 0
    view_trend: int = 0


class BreakdownItem(CamelModel):
    name: str
    value: int


class TopItem(CamelModel):
    id: str
    name: str
    count: int


class AnalyticsReport(CamelModel):
    history: List[HistoryPoint] = Field(default_factory=list)
    summary: AnalyticsSummary = Field(default_factory=AnalyticsSummary)
    device_breakdown: List[BreakdownItem] = Field(default_factory=list)
    referrer_breakdown: List[BreakdownItem] = Field(default_factory=list)
    top_projects: List[TopItem] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "AnalyticsReport":
        return cls()
