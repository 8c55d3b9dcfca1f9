# cosynq/models/contact.py
"""Minimal CRM contact; bookings only need to check ownership."""

from sqlalchemy import Column, Index, String
import ulid

from ..database import Base
from .types import TimestampMixin


class Contact(Base, TimestampMixin):
    __tablename__ = "contacts"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(String(26), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)

    __table_args__ = (Index("ix_contacts_org_email", "organization_id", "email"),)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
