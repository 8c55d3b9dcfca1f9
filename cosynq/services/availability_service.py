# cosynq/services/availability_service.py
"""
Availability engine for the Cosynq booking backend.

Decides whether a space can take another booking for a window, based on
the space's capacity policy:

- unlimited: always available, no overlap query
- exclusive: available only with zero overlapping active bookings
- counted(k): available while fewer than k active bookings overlap
- pooled: available while some Active resource unit is free; the first
  free unit (creation order, then label) is assigned

Also owns resource-unit provisioning for pooled spaces.
"""

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import ensure_utc
from ..domain.capacity_policy import (
    CapacityPolicy,
    CountedPolicy,
    ExclusivePolicy,
    PooledPolicy,
    UnlimitedPolicy,
)
from ..models.resource_unit import ResourceUnit
from ..models.space import Space
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

SPACE_NOT_FOUND = "Space not found"
OVER_CAPACITY = "OVER_CAPACITY"


@dataclass
class CapacityCheckResult:
    """Outcome of a capacity check; ``reason`` is set only when unavailable."""

    available: bool
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def assigned_unit_id(self) -> Optional[str]:
        return self.details.get("available_unit_id")

    @property
    def is_not_found(self) -> bool:
        return self.reason == SPACE_NOT_FOUND

    def to_dict(self) -> Dict[str, Any]:
        return {"available": self.available, "reason": self.reason, "details": self.details}


class AvailabilityService(BaseService):
    """
    Capacity checks and resource-unit assignment.

    Read-only apart from ``generate_resource_units`` and the unit
    enable/disable helpers; callers that need check-then-insert atomicity
    run the check inside their own transaction.
    """

    def __init__(
        self,
        db: Session,
        space_repository=None,
        availability_repository=None,
        unit_repository=None,
    ):
        super().__init__(db)
        self.space_repository = space_repository or RepositoryFactory.create_space_repository(db)
        self.availability_repository = (
            availability_repository or RepositoryFactory.create_availability_repository(db)
        )
        self.unit_repository = unit_repository or RepositoryFactory.create_base_repository(
            db, ResourceUnit
        )

    @BaseService.measure_operation("check_capacity")
    def check_capacity(
        self,
        space_id: str,
        start: datetime,
        end: datetime,
        organization_id: str,
        exclude_booking_id: Optional[str] = None,
        *,
        space: Optional[Space] = None,
        preferred_unit_id: Optional[str] = None,
    ) -> CapacityCheckResult:
        """
        Check whether ``space_id`` can take a booking for ``[start, end)``.

        Args:
            space_id: Space to check
            start: Window start
            end: Window end
            organization_id: Caller's organization; other orgs' spaces are not found
            exclude_booking_id: Booking to ignore (when re-checking a modification)
            space: Already-loaded space, skips the lookup
            preferred_unit_id: Unit to keep for a pooled booking when it is still free

        Returns:
            CapacityCheckResult; a missing space is reported as unavailable
            with reason "Space not found" rather than raised
        """
        if space is None:
            space = self.space_repository.get_space_for_booking(space_id, organization_id)
        if space is None or space.organization_id != organization_id:
            prometheus_metrics.record_capacity_check("unknown", "not_found")
            return CapacityCheckResult(available=False, reason=SPACE_NOT_FOUND)

        start, end = ensure_utc(start), ensure_utc(end)
        policy = space.capacity_policy()
        result = self._evaluate_policy(
            policy, space, start, end, exclude_booking_id, preferred_unit_id
        )

        prometheus_metrics.record_capacity_check(
            policy.kind, "available" if result.available else "unavailable"
        )
        self.logger.debug(
            f"Capacity check space={space.id} policy={policy.kind} available={result.available}"
        )
        return result

    def _evaluate_policy(
        self,
        policy: CapacityPolicy,
        space: Space,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str],
        preferred_unit_id: Optional[str] = None,
    ) -> CapacityCheckResult:
        if isinstance(policy, UnlimitedPolicy):
            details = {"capacity": None, "overlapping": 0}
            return CapacityCheckResult(available=True, details=details)

        if isinstance(policy, PooledPolicy):
            return self._check_pooled_units(
                space, start, end, exclude_booking_id, preferred_unit_id
            )

        overlapping = self.availability_repository.count_overlapping_bookings(
            space.id, start, end, exclude_booking_id
        )
        if isinstance(policy, CountedPolicy):
            capacity = policy.capacity
        elif isinstance(policy, ExclusivePolicy):
            capacity = 1
        else:
            raise ValueError(f"Unknown capacity policy: {policy!r}")

        details = {"capacity": capacity, "overlapping": overlapping}
        if overlapping < capacity:
            return CapacityCheckResult(available=True, details=details)
        return CapacityCheckResult(available=False, reason=OVER_CAPACITY, details=details)

    def _check_pooled_units(
        self,
        space: Space,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str],
        preferred_unit_id: Optional[str] = None,
    ) -> CapacityCheckResult:
        units = self.availability_repository.get_active_units(space.id, space.organization_id)
        busy = self.availability_repository.get_busy_unit_ids(
            space.id, start, end, exclude_booking_id
        )
        overlapping = self.availability_repository.count_overlapping_bookings(
            space.id, start, end, exclude_booking_id
        )
        free_units = [unit for unit in units if unit.id not in busy]
        free_unit = next(
            (unit for unit in free_units if unit.id == preferred_unit_id),
            free_units[0] if free_units else None,
        )
        details = {
            "capacity": space.capacity,
            "active_units": len(units),
            "overlapping": overlapping,
            "available_unit_id": free_unit.id if free_unit else None,
        }
        if free_unit is None:
            return CapacityCheckResult(available=False, reason=OVER_CAPACITY, details=details)
        return CapacityCheckResult(available=True, details=details)

    @BaseService.measure_operation("get_overlapping_bookings")
    def get_overlapping_bookings(
        self,
        space_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Any]:
        """Active bookings on the space that intersect the window."""
        return self.availability_repository.get_overlapping_bookings(
            space_id, ensure_utc(start), ensure_utc(end), exclude_booking_id
        )

    @BaseService.measure_operation("assign_resource_unit")
    def assign_resource_unit(
        self,
        space_id: str,
        start: datetime,
        end: datetime,
        organization_id: str,
        exclude_booking_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Pick a free Active unit of a pooled space for the window.

        Returns:
            The unit id, or None when the space is missing, not pooled, or full
        """
        space = self.space_repository.get_space_for_booking(space_id, organization_id)
        if space is None or not isinstance(space.capacity_policy(), PooledPolicy):
            return None
        result = self._check_pooled_units(
            space, ensure_utc(start), ensure_utc(end), exclude_booking_id
        )
        return result.assigned_unit_id

    @BaseService.measure_operation("generate_resource_units")
    def generate_resource_units(
        self,
        space_id: str,
        organization_id: str,
        count: int,
        label_prefix: str = "Unit",
    ) -> List[ResourceUnit]:
        """
        Create units until the space has ``count`` of them.

        New units are labelled ``"{prefix} #{n}"`` continuing from the
        existing total; a label already used in the space is skipped.
        Running it again with the same count creates nothing.

        Raises:
            NotFoundException: Space missing or owned by another organization
            ValidationException: Negative count or blank prefix
        """
        if count < 0:
            raise ValidationException("Unit count cannot be negative", code="INVALID_UNIT_COUNT")
        prefix = (label_prefix or "").strip()
        if not prefix:
            raise ValidationException("Label prefix is required", code="INVALID_LABEL_PREFIX")

        space = self.space_repository.get_space_for_booking(space_id, organization_id)
        if space is None:
            raise NotFoundException("Space not found", code="SPACE_NOT_FOUND")

        existing = self.availability_repository.count_units(space_id, organization_id)
        if existing >= count:
            self.logger.info(
                f"Space {space_id} already has {existing} units (requested {count}); nothing to do"
            )
            return []

        taken = self.availability_repository.get_unit_labels(space_id, organization_id)
        new_units: List[Dict[str, str]] = []
        number = existing
        while existing + len(new_units) < count:
            number += 1
            label = f"{prefix} #{number}"
            if label in taken:
                continue
            taken.add(label)
            new_units.append(
                {"organization_id": organization_id, "space_id": space_id, "label": label}
            )

        with self.transaction():
            created = self.unit_repository.bulk_create(new_units)

        self.log_operation(
            "generate_resource_units",
            space_id=space_id,
            created=len(created),
            total=existing + len(created),
        )
        return created

    def _set_unit_status(
        self, unit_id: str, space_id: str, organization_id: str, enable: bool
    ) -> ResourceUnit:
        unit = self.availability_repository.get_unit(unit_id, space_id, organization_id)
        if unit is None:
            raise NotFoundException("Resource unit not found", code="RESOURCE_UNIT_NOT_FOUND")
        with self.transaction():
            if enable:
                unit.enable()
            else:
                unit.disable()
        return unit

    @BaseService.measure_operation("disable_resource_unit")
    def disable_resource_unit(
        self, unit_id: str, space_id: str, organization_id: str
    ) -> ResourceUnit:
        """Take a unit out of rotation; existing bookings keep their unit."""
        return self._set_unit_status(unit_id, space_id, organization_id, enable=False)

    @BaseService.measure_operation("enable_resource_unit")
    def enable_resource_unit(
        self, unit_id: str, space_id: str, organization_id: str
    ) -> ResourceUnit:
        return self._set_unit_status(unit_id, space_id, organization_id, enable=True)
