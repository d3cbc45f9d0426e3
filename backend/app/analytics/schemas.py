"""Pydantic schemas for page-view tracking."""
from typing import List

from pydantic import BaseModel, Field


class RecordVisitRequest(BaseModel):
    page: str = Field("/", description="Path of the page being viewed")


class RecordVisitResponse(BaseModel):
    success: bool = True
    visitor_id: str
    is_new_visitor: bool


class DailyStats(BaseModel):
    date: str = Field(..., description="UTC date (YYYY-MM-DD)")
    unique_views: int = 0
    total_views: int = 0


class DayCounts(BaseModel):
    unique_views: int = 0
    total_views: int = 0


class TotalStats(BaseModel):
    total_unique_views: int = 0
    total_page_views: int = 0


class PageViewStats(BaseModel):
    """Response body of GET /api/uv-stats."""
    daily_stats: List[DailyStats] = Field(default_factory=list)
    today_stats: DayCounts = Field(default_factory=DayCounts)
    total_stats: TotalStats = Field(default_factory=TotalStats)
