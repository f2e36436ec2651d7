"""
Pydantic schemas for waitlist request/response payloads.

Request fields are loosely typed on purpose: shape rules (length, character
set, email pattern) belong to the admission validators so every rejection
carries the same failure codes regardless of entry point.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel


class WaitlistJoinRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    source: Optional[str] = None
    referral_code: Optional[str] = None


class WaitlistPositionRequest(BaseModel):
    email: Optional[str] = None


class WaitlistEntryData(BaseModel):
    position: int
    status: str
    source: str
    joined_at: datetime

    model_config = {"from_attributes": True}


class WaitlistJoinResponse(BaseModel):
    success: bool = True
    message: str
    data: WaitlistEntryData


class WaitlistPositionResponse(BaseModel):
    success: bool = True
    data: WaitlistEntryData
    days_since_joining: int
    estimated_launch: date


class Milestone(BaseModel):
    target: int
    label: str
    achieved: bool


class WaitlistStatsResponse(BaseModel):
    total_signups: int
    recent_signups_24h: int
    capacity: int
    percentage_full: int
    pending_signups: int
    confirmed_signups: int
    last_updated: datetime
    estimated_launch: date
    milestones: list[Milestone] = []

    model_config = {"from_attributes": True}


class BreakdownRow(BaseModel):
    key: str
    count: int
    percentage: int


class DailyCount(BaseModel):
    day: date
    count: int


class WaitlistAnalyticsData(BaseModel):
    overview: WaitlistStatsResponse
    devices: list[BreakdownRow]
    sources: list[BreakdownRow]
    daily_trend: list[DailyCount]


class WaitlistAnalyticsResponse(BaseModel):
    success: bool = True
    data: WaitlistAnalyticsData
