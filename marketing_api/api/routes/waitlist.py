"""
Waitlist endpoints: join, position lookup, public statistics and analytics.
"""

from dataclasses import asdict
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from marketing_api.api.deps import (
    client_ip,
    get_stats_reporter,
    get_waitlist_admission,
    get_welcome_notifier,
    signup_throttle,
    user_agent,
)
from marketing_api.core.config import get_settings
from marketing_api.schemas.common import ErrorResponse
from marketing_api.schemas.waitlist import (
    WaitlistAnalyticsData,
    WaitlistAnalyticsResponse,
    WaitlistEntryData,
    WaitlistJoinRequest,
    WaitlistJoinResponse,
    WaitlistPositionRequest,
    WaitlistPositionResponse,
    WaitlistStatsResponse,
)
from marketing_api.services.notification_service import WelcomeNotifier
from marketing_api.services.stats_service import (
    StatsReporter,
    WaitlistStats,
    estimated_launch_date,
    milestones,
)
from marketing_api.services.waitlist_service import WaitlistAdmission

router = APIRouter(prefix="/waitlist", tags=["Waitlist"])
# Pre-versioning paths still used by the landing page script
legacy_router = APIRouter(tags=["Legacy"], include_in_schema=False)

JOIN_ERRORS = {code: {"model": ErrorResponse} for code in (400, 409, 429)}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _entry_data(entry, position: int) -> WaitlistEntryData:
    return WaitlistEntryData(
        position=position,
        status=entry.status,
        source=entry.source,
        joined_at=_as_utc(entry.joined_at),
    )


def _stats_response(stats: WaitlistStats) -> WaitlistStatsResponse:
    return WaitlistStatsResponse(
        **asdict(stats),
        estimated_launch=estimated_launch_date(stats.last_updated, get_settings().LAUNCH_ESTIMATE_DAYS),
        milestones=milestones(stats.total_signups),
    )


@router.post("/join", response_model=WaitlistJoinResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(signup_throttle)], responses=JOIN_ERRORS)
@legacy_router.post("/join", response_model=WaitlistJoinResponse, status_code=status.HTTP_201_CREATED,
                    dependencies=[Depends(signup_throttle)])
async def join_waitlist(
    payload: WaitlistJoinRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    admission: WaitlistAdmission = Depends(get_waitlist_admission),
    notifier: WelcomeNotifier = Depends(get_welcome_notifier),
):
    """
    Join the waitlist.

    Rejections: 400 invalid name/email/source/referral code, 409 duplicate
    email, 429 waitlist full or too many signups from this IP in 24h.
    The welcome email goes out after the response.
    """
    result = await admission.admit(
        name=payload.name,
        email=payload.email,
        ip_address=client_ip(request),
        user_agent=user_agent(request),
        source=payload.source,
        referral_code=payload.referral_code,
    )
    background_tasks.add_task(
        notifier.send_welcome_email,
        name=result.entry.name,
        email=result.entry.email,
        position=result.position,
    )
    return WaitlistJoinResponse(
        message=(
            f"Welcome {result.entry.name}! You've been added to the waitlist. "
            f"We'll notify you when {get_settings().APP_NAME} launches!"
        ),
        data=_entry_data(result.entry, result.position),
    )


@router.post("/position", response_model=WaitlistPositionResponse,
             responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def check_position(
    payload: WaitlistPositionRequest,
    admission: WaitlistAdmission = Depends(get_waitlist_admission),
):
    """Look up the position recorded for an email. 404 if not on the list."""
    entry = await admission.lookup_position(payload.email)
    now = datetime.now(timezone.utc)
    return WaitlistPositionResponse(
        data=_entry_data(entry, entry.position),
        days_since_joining=(now - _as_utc(entry.joined_at)).days,
        estimated_launch=estimated_launch_date(now, get_settings().LAUNCH_ESTIMATE_DAYS),
    )


@router.get("/stats", response_model=WaitlistStatsResponse)
@legacy_router.get("/waitlist-stats", response_model=WaitlistStatsResponse)
async def waitlist_stats(reporter: StatsReporter = Depends(get_stats_reporter)):
    """Live waitlist counts. Not cached."""
    return _stats_response(await reporter.get_waitlist_stats())


@router.get("/analytics", response_model=WaitlistAnalyticsResponse)
async def waitlist_analytics(reporter: StatsReporter = Depends(get_stats_reporter)):
    """Device, source and 30-day signup breakdowns. Read-only."""
    analytics = await reporter.get_analytics()
    return WaitlistAnalyticsResponse(
        data=WaitlistAnalyticsData(
            overview=_stats_response(analytics.overview),
            devices=[asdict(row) for row in analytics.devices],
            sources=[asdict(row) for row in analytics.sources],
            daily_trend=[asdict(row) for row in analytics.daily_trend],
        )
    )
