"""
Waitlist admission: decides whether a signup joins the waitlist.

CONCURRENCY STRATEGY: Store-derived checks, unique index as the backstop
=======================================================================

Checks, in order (first failure wins, nothing is written on failure):
  1. name shape            -> INVALID_NAME
  2. email shape           -> INVALID_EMAIL
     (then the optional source and referral code -> INVALID_SOURCE, INVALID_REFERRAL_CODE)
  3. total count >= cap    -> WAITLIST_FULL
  4. email already stored  -> DUPLICATE_EMAIL
  5. signups from this IP in the last 24h >= limit -> IP_RATE_LIMITED
  6. INSERT; a unique-index violation on email    -> DUPLICATE_EMAIL

Steps 3-5 are independent round-trips followed by a separate INSERT, with
no lock held in between. Consequences under concurrent load:

  - Duplicate email: two requests for the same new address can both pass
    step 4. The unique index on `email` rejects the slower INSERT and the
    gateway turns that into UniquenessViolation, reported as DUPLICATE_EMAIL.
  - Capacity: requests racing at the boundary can all pass step 3, so the
    cap can be overshot by at most one entry per racing request. It is a
    soft limit.
  - Position: reported as (count seen at step 3) + 1, so racing requests
    can share a position. It is an approximate rank, not a sequence.

There are no in-process counters or locks. Every decision is re-derived
from the database, which stays the single source of truth across restarts
and instances.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from marketing_api.core.config import AdmissionLimits
from marketing_api.core.errors import AdmissionError, AdmissionFailure, UniquenessViolation
from marketing_api.core.logging import get_logger
from marketing_api.core.metrics import admission_latency, record_admission
from marketing_api.db.base import utc_now
from marketing_api.models.waitlist import WaitlistEntry
from marketing_api.repositories.gateway import PersistenceGateway
from marketing_api.services.client_metadata import parse_user_agent
from marketing_api.services.validators import (
    validate_email,
    validate_name,
    validate_referral_code,
    validate_source,
)

logger = get_logger(__name__)

PIPELINE = "waitlist"
RATE_WINDOW = timedelta(hours=24)
UNKNOWN = "unknown"


@dataclass
class AdmissionResult:
    entry: WaitlistEntry
    position: int


class WaitlistAdmission:

    def __init__(
        self,
        gateway: PersistenceGateway,
        limits: AdmissionLimits,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.gateway = gateway
        self.limits = limits
        self.clock = clock

    async def admit(
        self,
        name: Optional[str],
        email: Optional[str],
        ip_address: Optional[str] = UNKNOWN,
        user_agent: Optional[str] = UNKNOWN,
        source: Optional[str] = None,
        referral_code: Optional[str] = None,
    ) -> AdmissionResult:
        """
        Admit a signup or raise AdmissionError.
        Exactly one row is written on success, none on failure.
        """
        ip_address = ip_address or UNKNOWN
        user_agent = user_agent or UNKNOWN
        start_time = time.perf_counter()
        try:
            result = await self._admit(name, email, ip_address, user_agent, source, referral_code)
        except AdmissionError as e:
            record_admission(PIPELINE, e.code)
            logger.warning(
                "waitlist_rejected",
                reason=e.code,
                ip=ip_address,
            )
            raise
        finally:
            admission_latency.labels(pipeline=PIPELINE).observe(time.perf_counter() - start_time)

        record_admission(PIPELINE, "admitted")
        logger.info(
            "waitlist_joined",
            entry_id=result.entry.id,
            email=result.entry.email,
            position=result.position,
            ip=ip_address,
            source=result.entry.source,
            device=result.entry.device,
            browser=result.entry.browser,
        )
        return result

    async def _admit(
        self, name, email, ip_address: str, user_agent: str, source, referral_code
    ) -> AdmissionResult:
        name = validate_name(name)
        email = validate_email(email)
        source = validate_source(source)
        referral_code = validate_referral_code(referral_code)

        current_count = await self.gateway.count_waitlist_entries()
        if current_count >= self.limits.max_waitlist_entries:
            raise AdmissionError(AdmissionFailure.WAITLIST_FULL)

        if await self.gateway.find_waitlist_entry_by_email(email) is not None:
            raise AdmissionError(AdmissionFailure.DUPLICATE_EMAIL)

        since = self.clock() - RATE_WINDOW
        recent_from_ip = await self.gateway.count_waitlist_entries_from_ip_since(ip_address, since)
        if recent_from_ip >= self.limits.max_signups_per_ip_per_24h:
            raise AdmissionError(AdmissionFailure.IP_RATE_LIMITED)

        position = current_count + 1
        try:
            entry = await self.gateway.insert_waitlist_entry(
                name=name,
                email=email,
                ip_address=ip_address,
                user_agent=user_agent,
                position=position,
                source=source,
                referral_code=referral_code,
                client=parse_user_agent(user_agent),
            )
        except UniquenessViolation:
            # Lost the race against a concurrent signup for the same email
            logger.info("waitlist_insert_race", email=email)
            raise AdmissionError(
                AdmissionFailure.DUPLICATE_EMAIL,
                "This email is already on our waitlist.",
            )

        return AdmissionResult(entry=entry, position=position)

    async def lookup_position(self, email: Optional[str]) -> WaitlistEntry:
        """Find the stored entry for an email. Raises NOT_FOUND if absent."""
        email = validate_email(email)
        entry = await self.gateway.find_waitlist_entry_by_email(email)
        if entry is None:
            raise AdmissionError(AdmissionFailure.NOT_FOUND)
        return entry
