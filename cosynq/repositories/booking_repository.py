# cosynq/repositories/booking_repository.py
"""Booking Repository for the Cosynq booking backend."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.contact import Contact
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def reference_exists(self, reference: str) -> bool:
        return self.exists(booking_reference=reference)

    def get_contact(self, contact_id: str, organization_id: str) -> Optional[Contact]:
        """Contact owned by the organization, or None."""
        try:
            return (
                self.db.query(Contact)
                .filter(Contact.id == contact_id, Contact.organization_id == organization_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading contact {contact_id}: {str(e)}")
            raise RepositoryException(f"Failed to load contact: {str(e)}")
