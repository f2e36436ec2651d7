"""
Request-scoped dependencies: client identity, throttles and service wiring.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from marketing_api.core.config import AdmissionLimits, get_admission_limits, get_settings
from marketing_api.core.errors import ThrottleExceeded
from marketing_api.db.session import get_db
from marketing_api.infrastructure.redis_client import get_redis
from marketing_api.repositories.gateway import PersistenceGateway
from marketing_api.services.contact_service import ContactAdmission
from marketing_api.services.notification_service import WelcomeNotifier
from marketing_api.services.stats_service import StatsReporter
from marketing_api.services.throttle_service import RequestThrottle
from marketing_api.services.waitlist_service import UNKNOWN, WaitlistAdmission


def client_ip(request: Request) -> str:
    """
    Client address as recorded by the trusted proxy nearest the client.

    Each proxy appends the peer it received from to X-Forwarded-For, so with
    TRUSTED_PROXY_HOPS=N the client is the Nth entry from the right. Entries
    further left are supplied by the client and are never used. With fewer
    entries than hops the leftmost one is taken.
    """
    hops = get_settings().TRUSTED_PROXY_HOPS
    forwarded = request.headers.get("x-forwarded-for")
    if hops and forwarded:
        chain = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        if chain:
            return chain[-min(hops, len(chain))]
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN


def user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or UNKNOWN


def _throttle_dependency(scope: str, limit_setting: str):
    async def enforce(request: Request) -> None:
        settings = get_settings()
        throttle = RequestThrottle(
            scope=scope,
            limit=getattr(settings, limit_setting),
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            client_factory=get_redis,
        )
        decision = await throttle.hit(client_ip(request))
        if not decision.allowed:
            raise ThrottleExceeded(retry_after=decision.retry_after)

    return enforce


general_throttle = _throttle_dependency("general", "RATE_LIMIT_MAX_REQUESTS")
signup_throttle = _throttle_dependency("signup", "RATE_LIMIT_MAX_SIGNUP_REQUESTS")


def get_gateway(db: AsyncSession = Depends(get_db)) -> PersistenceGateway:
    return PersistenceGateway(db)


def get_waitlist_admission(
    gateway: PersistenceGateway = Depends(get_gateway),
    limits: AdmissionLimits = Depends(get_admission_limits),
) -> WaitlistAdmission:
    return WaitlistAdmission(gateway, limits)


def get_contact_admission(
    gateway: PersistenceGateway = Depends(get_gateway),
    limits: AdmissionLimits = Depends(get_admission_limits),
) -> ContactAdmission:
    return ContactAdmission(gateway, limits)


def get_stats_reporter(
    gateway: PersistenceGateway = Depends(get_gateway),
    limits: AdmissionLimits = Depends(get_admission_limits),
) -> StatsReporter:
    return StatsReporter(gateway, capacity=limits.max_waitlist_entries)


def get_welcome_notifier() -> WelcomeNotifier:
    return WelcomeNotifier.from_settings(get_settings())
