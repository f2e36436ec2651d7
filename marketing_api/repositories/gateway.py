"""
Persistence gateway for waitlist and contact records.

Every query is a simple COUNT, GROUP BY or single-row lookup against an
indexed column; nothing here caches. The gateway flushes but never
commits: the request-scoped session owns the transaction.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketing_api.core.errors import UniquenessViolation
from marketing_api.core.metrics import record_db_operation
from marketing_api.models.contact import ContactEntry
from marketing_api.models.waitlist import WaitlistEntry, WaitlistStatus
from marketing_api.services.client_metadata import ClientMetadata
from marketing_api.services.validators import DEFAULT_SOURCE, normalize_email

USER_AGENT_MAX_LENGTH = 500
IP_ADDRESS_MAX_LENGTH = 45

EMAIL_UNIQUE_INDEX = "ix_waitlist_entries_email"
# SQLite names the column, not the index
SQLITE_EMAIL_UNIQUE_MESSAGE = "UNIQUE constraint failed: waitlist_entries.email"


def clip_ip(ip_address: str) -> str:
    """IPs are opaque header text; stored and queried at column width."""
    return ip_address[:IP_ADDRESS_MAX_LENGTH]


def violated_constraint(error: IntegrityError) -> Optional[str]:
    """Constraint name reported by the driver, when it reports one."""
    orig = error.orig
    # asyncpg: SQLAlchemy's adapter error wraps the asyncpg exception
    name = getattr(getattr(orig, "__cause__", None), "constraint_name", None)
    if name is None:
        # psycopg2
        name = getattr(getattr(orig, "diag", None), "constraint_name", None)
    return name


def is_email_uniqueness_violation(error: IntegrityError) -> bool:
    constraint = violated_constraint(error)
    if constraint is not None:
        return constraint == EMAIL_UNIQUE_INDEX
    return SQLITE_EMAIL_UNIQUE_MESSAGE in str(error.orig)


class PersistenceGateway:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, query) -> int:
        record_db_operation("read")
        return (await self.db.execute(query)).scalar_one()

    async def _grouped_counts(self, column) -> dict[str, int]:
        record_db_operation("read")
        result = await self.db.execute(
            select(column, func.count(WaitlistEntry.id)).group_by(column)
        )
        return {key: count for key, count in result.all()}

    # Waitlist

    async def insert_waitlist_entry(
        self,
        name: str,
        email: str,
        ip_address: str,
        user_agent: str,
        position: int,
        source: str = DEFAULT_SOURCE,
        referral_code: Optional[str] = None,
        client: Optional[ClientMetadata] = None,
    ) -> WaitlistEntry:
        """
        Insert a waitlist entry.
        Raises UniquenessViolation when the email is already stored.
        """
        client = client or ClientMetadata()
        entry = WaitlistEntry(
            name=name,
            email=email,
            ip_address=clip_ip(ip_address),
            user_agent=user_agent[:USER_AGENT_MAX_LENGTH],
            position=position,
            status=WaitlistStatus.PENDING.value,
            source=source,
            referral_code=referral_code,
            browser=client.browser,
            os=client.os,
            device=client.device,
        )
        self.db.add(entry)
        record_db_operation("write")
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            if is_email_uniqueness_violation(e):
                raise UniquenessViolation("email") from e
            raise
        await self.db.refresh(entry)
        return entry

    async def count_waitlist_entries(self) -> int:
        return await self._count(select(func.count(WaitlistEntry.id)))

    async def count_waitlist_entries_since(self, since: datetime) -> int:
        return await self._count(
            select(func.count(WaitlistEntry.id)).where(WaitlistEntry.joined_at >= since)
        )

    async def count_waitlist_entries_from_ip_since(self, ip_address: str, since: datetime) -> int:
        return await self._count(
            select(func.count(WaitlistEntry.id)).where(
                WaitlistEntry.ip_address == clip_ip(ip_address),
                WaitlistEntry.joined_at >= since,
            )
        )

    async def count_waitlist_entries_by_status(self) -> dict[str, int]:
        return await self._grouped_counts(WaitlistEntry.status)

    async def count_waitlist_entries_by_device(self) -> dict[str, int]:
        return await self._grouped_counts(WaitlistEntry.device)

    async def count_waitlist_entries_by_source(self) -> dict[str, int]:
        return await self._grouped_counts(WaitlistEntry.source)

    async def count_waitlist_entries_per_day_since(self, since: datetime) -> dict[date, int]:
        """Signups per calendar day (UTC) from `since` onwards."""
        record_db_operation("read")
        day = func.date(WaitlistEntry.joined_at)
        result = await self.db.execute(
            select(day, func.count(WaitlistEntry.id))
            .where(WaitlistEntry.joined_at >= since)
            .group_by(day)
        )
        # SQLite returns the day as ISO text, PostgreSQL as a date
        return {
            value if isinstance(value, date) else date.fromisoformat(value): count
            for value, count in result.all()
        }

    async def find_waitlist_entry_by_email(self, email: str) -> Optional[WaitlistEntry]:
        record_db_operation("read")
        result = await self.db.execute(
            select(WaitlistEntry).where(WaitlistEntry.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    # Contact

    async def insert_contact_entry(
        self,
        name: str,
        email: str,
        subject: str,
        message: str,
        ip_address: str,
        user_agent: str,
    ) -> ContactEntry:
        entry = ContactEntry(
            name=name,
            email=email,
            subject=subject,
            message=message,
            ip_address=clip_ip(ip_address),
            user_agent=user_agent[:USER_AGENT_MAX_LENGTH],
        )
        self.db.add(entry)
        record_db_operation("write")
        await self.db.flush()
        await self.db.refresh(entry)
        return entry

    async def count_contact_entries_from_ip_since(self, ip_address: str, since: datetime) -> int:
        return await self._count(
            select(func.count(ContactEntry.id)).where(
                ContactEntry.ip_address == clip_ip(ip_address),
                ContactEntry.created_at >= since,
            )
        )
