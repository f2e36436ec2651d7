"""
Waitlist statistics and analytics derived from live COUNT queries.
Nothing is cached: each call re-queries the database.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

from marketing_api.db.base import utc_now
from marketing_api.models.waitlist import WaitlistStatus
from marketing_api.repositories.gateway import PersistenceGateway

RECENT_WINDOW = timedelta(hours=24)
TREND_DAYS = 30

MILESTONES = (
    (100, "Early Adopters"),
    (500, "Beta Community"),
    (1000, "Launch Ready"),
    (5000, "Viral Growth"),
    (10000, "Maximum Capacity"),
)


@dataclass
class WaitlistStats:
    total_signups: int
    recent_signups_24h: int
    capacity: int
    percentage_full: int
    last_updated: datetime
    pending_signups: int = 0
    confirmed_signups: int = 0


@dataclass
class BreakdownRow:
    key: str
    count: int
    percentage: int


@dataclass
class DailyCount:
    day: date
    count: int


@dataclass
class WaitlistAnalytics:
    overview: WaitlistStats
    devices: list[BreakdownRow] = field(default_factory=list)
    sources: list[BreakdownRow] = field(default_factory=list)
    daily_trend: list[DailyCount] = field(default_factory=list)


def percentage_of(total: int, capacity: int) -> int:
    """Whole-number percentage, rounding halves up."""
    if capacity <= 0:
        return 0
    ratio = Decimal(total) * 100 / Decimal(capacity)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def milestones(total: int) -> list[dict]:
    return [
        {"target": target, "label": label, "achieved": total >= target}
        for target, label in MILESTONES
    ]


def estimated_launch_date(now: datetime, days_ahead: int) -> date:
    return (now + timedelta(days=days_ahead)).date()


def breakdown(counts: dict[str, int]) -> list[BreakdownRow]:
    """Largest group first; ties broken by key so output is stable."""
    total = sum(counts.values())
    return [
        BreakdownRow(key=key, count=count, percentage=percentage_of(count, total))
        for key, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]


class StatsReporter:

    def __init__(
        self,
        gateway: PersistenceGateway,
        capacity: int,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.gateway = gateway
        self.capacity = capacity
        self.clock = clock

    async def get_waitlist_stats(self) -> WaitlistStats:
        now = self.clock()
        total = await self.gateway.count_waitlist_entries()
        recent = await self.gateway.count_waitlist_entries_since(now - RECENT_WINDOW)
        by_status = await self.gateway.count_waitlist_entries_by_status()
        return WaitlistStats(
            total_signups=total,
            recent_signups_24h=recent,
            capacity=self.capacity,
            percentage_full=percentage_of(total, self.capacity),
            last_updated=now,
            pending_signups=by_status.get(WaitlistStatus.PENDING.value, 0),
            confirmed_signups=by_status.get(WaitlistStatus.CONFIRMED.value, 0),
        )

    async def get_analytics(self, days: int = TREND_DAYS) -> WaitlistAnalytics:
        """
        Overview plus device, source and daily breakdowns.

        The daily trend covers the last `days` calendar days including
        today, with zero-count days filled in.
        """
        overview = await self.get_waitlist_stats()
        today = overview.last_updated.date()
        first_day = today - timedelta(days=days - 1)
        since = datetime.combine(first_day, datetime.min.time(), tzinfo=overview.last_updated.tzinfo)

        per_day = await self.gateway.count_waitlist_entries_per_day_since(since)
        return WaitlistAnalytics(
            overview=overview,
            devices=breakdown(await self.gateway.count_waitlist_entries_by_device()),
            sources=breakdown(await self.gateway.count_waitlist_entries_by_source()),
            daily_trend=[
                DailyCount(day=day, count=per_day.get(day, 0))
                for day in (first_day + timedelta(days=offset) for offset in range(days))
            ],
        )
