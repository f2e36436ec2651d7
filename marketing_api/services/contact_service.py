"""
Contact-form admission.

Same validators as the waitlist, plus subject and message checks, and a
rolling 24h per-IP limit. No capacity or duplicate-email rule applies:
the same address may write in as often as the IP limit allows.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from marketing_api.core.config import AdmissionLimits
from marketing_api.core.errors import AdmissionError, AdmissionFailure
from marketing_api.core.logging import get_logger
from marketing_api.core.metrics import admission_latency, record_admission
from marketing_api.db.base import utc_now
from marketing_api.models.contact import ContactEntry
from marketing_api.repositories.gateway import PersistenceGateway
from marketing_api.services.validators import (
    validate_email,
    validate_message,
    validate_name,
    validate_subject,
)
from marketing_api.services.waitlist_service import RATE_WINDOW, UNKNOWN

logger = get_logger(__name__)

PIPELINE = "contact"


@dataclass
class ContactResult:
    entry: ContactEntry


class ContactAdmission:

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
        subject: Optional[str],
        message: Optional[str],
        ip_address: Optional[str] = UNKNOWN,
        user_agent: Optional[str] = UNKNOWN,
    ) -> ContactResult:
        ip_address = ip_address or UNKNOWN
        user_agent = user_agent or UNKNOWN
        start_time = time.perf_counter()
        try:
            name = validate_name(name)
            email = validate_email(email)
            subject = validate_subject(subject, self.limits.contact_topics)
            message = validate_message(message)

            since = self.clock() - RATE_WINDOW
            recent_from_ip = await self.gateway.count_contact_entries_from_ip_since(ip_address, since)
            if recent_from_ip >= self.limits.max_contacts_per_ip_per_24h:
                raise AdmissionError(AdmissionFailure.IP_RATE_LIMITED)

            entry = await self.gateway.insert_contact_entry(
                name=name,
                email=email,
                subject=subject,
                message=message,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        except AdmissionError as e:
            record_admission(PIPELINE, e.code)
            logger.warning("contact_rejected", reason=e.code, ip=ip_address)
            raise
        finally:
            admission_latency.labels(pipeline=PIPELINE).observe(time.perf_counter() - start_time)

        record_admission(PIPELINE, "admitted")
        logger.info(
            "contact_received",
            entry_id=entry.id,
            email=entry.email,
            subject=entry.subject,
        )
        return ContactResult(entry=entry)
