"""
Waitlist entry model.

Key design decisions:
- Unique index on email is the enforcement point for de-duplication;
  emails are stored trimmed and lowercased so the index is case-insensitive
- `position` is assigned once at admission (count before insert + 1) and never renumbered
- Index on (ip_address, joined_at) backs the rolling 24h per-IP count
- Index on joined_at backs the "recent signups" stats query and the daily trend
- source and device are low-cardinality columns grouped by the analytics queries
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Index, CheckConstraint

from marketing_api.db.base import Base, TimestampMixin, utc_now


class WaitlistStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    NOTIFIED = "notified"
    CONVERTED = "converted"


class WaitlistEntry(Base, TimestampMixin):
    __tablename__ = "waitlist_entries"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(254), nullable=False, unique=True, index=True)
    ip_address = Column(String(45), nullable=False)
    user_agent = Column(String(500), nullable=False)
    position = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=WaitlistStatus.PENDING.value)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    source = Column(String(20), nullable=False, default="website")
    referral_code = Column(String(20), nullable=True, index=True)
    browser = Column(String(30), nullable=False, default="unknown")
    os = Column(String(30), nullable=False, default="unknown")
    device = Column(String(20), nullable=False, default="desktop")

    __table_args__ = (
        CheckConstraint("position >= 1", name="check_waitlist_position_positive"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'notified', 'converted')",
            name="check_waitlist_status",
        ),
        CheckConstraint(
            "source IN ('website', 'referral', 'social', 'direct')",
            name="check_waitlist_source",
        ),
        CheckConstraint(
            "device IN ('desktop', 'mobile', 'tablet')",
            name="check_waitlist_device",
        ),
        Index("ix_waitlist_entries_ip_joined", "ip_address", "joined_at"),
        Index("ix_waitlist_entries_joined_at", "joined_at"),
        Index("ix_waitlist_entries_position", "position"),
    )

    def __repr__(self) -> str:
        return f"<WaitlistEntry(id={self.id}, position={self.position}, status={self.status})>"
