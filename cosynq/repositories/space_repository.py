# cosynq/repositories/space_repository.py
"""
Space Repository for the Cosynq booking backend.

Space and location lookups, always scoped by organization, plus the bulk
queries used by the capacity migration command.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.location import Location
from ..models.space import VIRTUAL_SPACE_TYPES, Space
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SpaceRepository(BaseRepository[Space]):
    """Repository for space data access."""

    def __init__(self, db: Session):
        super().__init__(db, Space)

    def _apply_eager_loading(self, query):
        return query.options(joinedload(Space.location).selectinload(Location.operating_hours))

    def get_space_for_booking(
        self, space_id: str, organization_id: str, *, lock: bool = False
    ) -> Optional[Space]:
        """
        Load a space with its location for booking checks.

        Args:
            space_id: Space id
            organization_id: Owning organization; other orgs' spaces are invisible
            lock: Take a row lock on the space (dialects that support it) so
                  concurrent bookings on the same space serialize

        Returns:
            The space or None
        """
        try:
            query = self.db.query(Space).filter(
                Space.id == space_id,
                Space.organization_id == organization_id,
            )
            if lock and self.supports_row_locks:
                query = query.with_for_update(of=Space)
            else:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to load space: {str(e)}")

    # Capacity migration helpers

    def find_unconfigured_spaces(self) -> List[Space]:
        """Legacy spaces whose pooling flag was never set."""
        return self._execute_query(self.db.query(Space).filter(Space.has_pooled_units.is_(None)))

    def find_limited_virtual_spaces(self) -> List[Space]:
        """Virtual products that still carry a numeric capacity."""
        return self._execute_query(
            self.db.query(Space).filter(
                Space.type.in_(VIRTUAL_SPACE_TYPES),
                Space.capacity.isnot(None),
            )
        )

    def capacity_distribution(self) -> Dict[str, int]:
        """Number of spaces per capacity value (``"unlimited"`` for NULL)."""
        try:
            rows = (
                self.db.query(Space.capacity, func.count(Space.id))
                .group_by(Space.capacity)
                .order_by(Space.capacity)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error computing capacity distribution: {str(e)}")
            raise RepositoryException(f"Failed to compute capacity distribution: {str(e)}")
        return {("unlimited" if cap is None else str(cap)): count for cap, count in rows}

    def pooled_distribution(self) -> Dict[str, int]:
        try:
            pooled = self.db.query(Space).filter(Space.has_pooled_units.is_(True)).count()
            not_pooled = (
                self.db.query(Space)
                .filter(or_(Space.has_pooled_units.is_(False), Space.has_pooled_units.is_(None)))
                .count()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error computing pooled distribution: {str(e)}")
            raise RepositoryException(f"Failed to compute pooled distribution: {str(e)}")
        return {"pooled": pooled, "not_pooled": not_pooled}
