# cosynq/repositories/availability_repository.py
"""
Availability Repository for the Cosynq booking backend.

Overlap and resource-unit queries used by the availability engine. Two
windows overlap when ``existing.start < end and existing.end > start``;
only Pending and Confirmed bookings are considered.
"""

from datetime import datetime
import logging
from typing import List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import ACTIVE_BOOKING_STATUSES, ResourceUnitStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.resource_unit import ResourceUnit
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[Booking]):
    """Repository for overlap detection and resource-unit lookups."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _overlap_query(
        self,
        space_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ):
        query = self.db.query(Booking).filter(
            Booking.space_id == space_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.start_time < end,
            Booking.end_time > start,
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return query

    def get_overlapping_bookings(
        self,
        space_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Active bookings on a space that intersect ``[start, end)``.

        Args:
            space_id: Space to check
            start: Window start (UTC)
            end: Window end (UTC)
            exclude_booking_id: Booking to ignore (the one being modified)

        Returns:
            Overlapping bookings ordered by start time
        """
        try:
            return (
                self._overlap_query(space_id, start, end, exclude_booking_id)
                .order_by(Booking.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting overlapping bookings for space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to get overlapping bookings: {str(e)}")

    def count_overlapping_bookings(
        self,
        space_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> int:
        try:
            return self._overlap_query(space_id, start, end, exclude_booking_id).count()
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting overlapping bookings for space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to count overlapping bookings: {str(e)}")

    def get_busy_unit_ids(
        self,
        space_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> Set[str]:
        """Resource units referenced by an active booking overlapping the window."""
        try:
            rows = (
                self._overlap_query(space_id, start, end, exclude_booking_id)
                .filter(Booking.resource_unit_id.isnot(None))
                .with_entities(Booking.resource_unit_id)
                .distinct()
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting busy units for space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to get busy units: {str(e)}")

    def get_active_units(self, space_id: str, organization_id: str) -> List[ResourceUnit]:
        """Active units of a space in assignment order (creation time, then label)."""
        try:
            return (
                self.db.query(ResourceUnit)
                .filter(
                    ResourceUnit.space_id == space_id,
                    ResourceUnit.organization_id == organization_id,
                    ResourceUnit.status == ResourceUnitStatus.ACTIVE,
                )
                .order_by(ResourceUnit.created_at, ResourceUnit.label, ResourceUnit.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting active units for space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to get active units: {str(e)}")

    def get_unit_labels(self, space_id: str, organization_id: str) -> Set[str]:
        """Labels of every unit of a space, whatever its status."""
        try:
            rows = (
                self.db.query(ResourceUnit.label)
                .filter(
                    ResourceUnit.space_id == space_id,
                    ResourceUnit.organization_id == organization_id,
                )
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting unit labels for space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to get unit labels: {str(e)}")

    def count_units(self, space_id: str, organization_id: str) -> int:
        try:
            return (
                self.db.query(ResourceUnit)
                .filter(
                    ResourceUnit.space_id == space_id,
                    ResourceUnit.organization_id == organization_id,
                )
                .count()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting units for space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to count units: {str(e)}")

    def get_unit(
        self, unit_id: str, space_id: str, organization_id: str
    ) -> Optional[ResourceUnit]:
        try:
            return (
                self.db.query(ResourceUnit)
                .filter(
                    ResourceUnit.id == unit_id,
                    ResourceUnit.space_id == space_id,
                    ResourceUnit.organization_id == organization_id,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting unit {unit_id}: {str(e)}")
            raise RepositoryException(f"Failed to get resource unit: {str(e)}")
