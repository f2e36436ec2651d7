"""
Contact-form submission model. Email is deliberately not unique.
"""

from sqlalchemy import Column, Integer, String, Index

from marketing_api.db.base import Base, TimestampMixin


class ContactEntry(Base, TimestampMixin):
    __tablename__ = "contact_entries"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(254), nullable=False, index=True)
    subject = Column(String(100), nullable=False)
    message = Column(String(1000), nullable=False)
    ip_address = Column(String(45), nullable=False)
    user_agent = Column(String(500), nullable=False)

    __table_args__ = (
        Index("ix_contact_entries_ip_created", "ip_address", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ContactEntry(id={self.id}, subject={self.subject})>"
