# cosynq/services/booking_service.py
"""
Booking Service for the Cosynq booking backend.

Orchestrates booking creation, modification, cancellation and status
transitions on top of the time rules and the availability engine:

1. resolve the space (organization scoped) and its location
2. validate the time window in the location's timezone
3. check ownership, duration bounds and attendee count
4. check capacity (assigning a resource unit for pooled spaces)
5. persist with a unique booking reference

Check and insert run inside one transaction that holds a row lock on the
space where the database supports it. A unique or exclusion violation on
insert surfaces as a booking conflict, not a server error.
"""

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
import logging
import secrets
import string
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core import timezone_utils
from ..core.config import settings
from ..core.constants import BOOKING_REFERENCE_SUFFIX_LENGTH
from ..core.enums import BookingStatus
from ..core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    CapacityConflictException,
    InvalidTransitionException,
    NotFoundException,
    PolicyViolationException,
    ServiceException,
    ValidationException,
)
from ..domain.capacity_policy import (
    CountedPolicy,
    ExclusivePolicy,
    PooledPolicy,
    UnlimitedPolicy,
)
from ..models.booking import Booking
from ..models.location import Location
from ..models.space import Space
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingCreate, BookingUpdate
from .availability_service import AvailabilityService, CapacityCheckResult
from .base import BaseService
from .time_validation import (
    TimeSlot,
    TimeValidationConfig,
    TimeValidationResult,
    can_cancel_booking,
    can_modify_booking,
    format_time_validation_errors,
    generate_available_time_slots,
    validate_booking_time,
)

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_CANCEL_REASON = "Cancelled by user"


def generate_booking_reference(prefix: Optional[str] = None) -> str:
    """Random booking reference like ``BK7Q2M9XKD``."""
    prefix = prefix if prefix is not None else settings.booking_reference_prefix
    return prefix + "".join(
        secrets.choice(REFERENCE_ALPHABET) for _ in range(BOOKING_REFERENCE_SUFFIX_LENGTH)
    )


class BookingService(BaseService):
    """Service layer for booking operations."""

    def __init__(
        self,
        db: Session,
        availability_service: Optional[AvailabilityService] = None,
        booking_repository=None,
        space_repository=None,
    ):
        super().__init__(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(
            db
        )
        self.space_repository = space_repository or RepositoryFactory.create_space_repository(db)
        self.availability_service = availability_service or AvailabilityService(
            db, space_repository=self.space_repository
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        organization_id: str,
        booking_data: BookingCreate,
        created_by: Optional[str] = None,
    ) -> Booking:
        """
        Create a booking after validating time, ownership and capacity.

        Args:
            organization_id: Caller's organization
            booking_data: Validated request payload
            created_by: Acting user id, when known

        Returns:
            The persisted Pending booking

        Raises:
            NotFoundException: Space or contact not found in the organization
            ValidationException: Time rules, duration or attendee count violated
            CapacityConflictException: No capacity left for the window
            BookingConflictException: Concurrent insert won the slot
        """
        start = timezone_utils.ensure_utc(booking_data.start_time)
        end = timezone_utils.ensure_utc(booking_data.end_time)

        with self.transaction():
            space = self._get_space_or_raise(booking_data.space_id, organization_id, lock=True)
            location = space.location
            tz_name = self._timezone_for(location)

            max_days = space.advance_booking_limit or settings.maximum_advance_days
            time_result = validate_booking_time(
                start, end, location, TimeValidationConfig(maximum_advance_days=max_days)
            )
            if not time_result.is_valid:
                raise self._time_validation_error(time_result, location, max_days)

            if booking_data.contact_id:
                contact = self.booking_repository.get_contact(
                    booking_data.contact_id, organization_id
                )
                if contact is None:
                    raise NotFoundException("Contact not found", code="CONTACT_NOT_FOUND")

            self._validate_duration(space, start, end)
            self._validate_attendees(space, booking_data.attendee_count)

            capacity = self.availability_service.check_capacity(
                space.id, start, end, organization_id, space=space
            )
            if not capacity.available:
                raise self._capacity_conflict(
                    space,
                    start,
                    end,
                    capacity,
                    "Space is not available for the requested time slot",
                )

            self._validate_space_rules(space, start, tz_name)

            booking = self._insert_booking(
                organization_id=organization_id,
                space=space,
                start=start,
                end=end,
                resource_unit_id=capacity.assigned_unit_id,
                booking_data=booking_data,
                created_by=created_by,
            )

        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            space_id=space.id,
            reference=booking.booking_reference,
            warnings=time_result.warnings,
        )
        return booking

    def _insert_booking(
        self,
        *,
        organization_id: str,
        space: Space,
        start: datetime,
        end: datetime,
        resource_unit_id: Optional[str],
        booking_data: BookingCreate,
        created_by: Optional[str],
    ) -> Booking:
        try:
            return self.booking_repository.create(
                organization_id=organization_id,
                space_id=space.id,
                resource_unit_id=resource_unit_id,
                contact_id=booking_data.contact_id,
                created_by=created_by,
                start_time=start,
                end_time=end,
                status=BookingStatus.PENDING,
                attendee_count=booking_data.attendee_count,
                booking_reference=self._generate_unique_reference(),
                customer_name=booking_data.customer_name,
                customer_email=booking_data.customer_email,
                customer_phone=booking_data.customer_phone,
                purpose=booking_data.purpose,
                notes=booking_data.notes,
                special_requests=booking_data.special_requests,
                total_amount=self._total_amount(space, start, end, booking_data.total_amount),
                currency=booking_data.currency or space.currency,
                checked_in=False,
            )
        except IntegrityError as exc:
            self.logger.warning(f"Booking insert for space {space.id} lost a race: {exc.orig}")
            prometheus_metrics.record_booking_rejection("BOOKING_CONFLICT")
            raise BookingConflictException(
                "Space is not available for the requested time slot",
                details={"space_id": space.id},
            ) from exc

    def _generate_unique_reference(self) -> str:
        for _ in range(settings.booking_reference_attempts):
            reference = generate_booking_reference()
            if not self.booking_repository.reference_exists(reference):
                return reference
        raise ServiceException("Could not allocate a unique booking reference")

    @staticmethod
    def _total_amount(
        space: Space, start: datetime, end: datetime, requested: Optional[Decimal]
    ) -> Decimal:
        if requested is not None:
            return requested
        if space.hourly_rate is None:
            return Decimal("0")
        hours = Decimal((end - start).total_seconds()) / Decimal(3600)
        return (Decimal(space.hourly_rate) * hours).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    # ------------------------------------------------------------------
    # Modify / cancel
    # ------------------------------------------------------------------

    @BaseService.measure_operation("update_booking")
    def update_booking(
        self,
        organization_id: str,
        booking_id: str,
        update_data: BookingUpdate,
    ) -> Booking:
        """
        Update a booking; a time change must clear the modification window
        and is re-checked against capacity with the booking itself excluded.
        """
        with self.transaction():
            booking = self._get_booking_or_raise(booking_id, organization_id)
            if not booking.holds_capacity:
                raise BusinessRuleException(
                    "Only pending or confirmed bookings can be modified",
                    code="BOOKING_NOT_MODIFIABLE",
                    details={"status": BookingStatus(booking.status).value},
                )

            space = self._get_space_or_raise(booking.space_id, organization_id, lock=True)
            location = space.location
            tz_name = self._timezone_for(location)

            new_start = timezone_utils.ensure_utc(update_data.start_time or booking.start_time)
            new_end = timezone_utils.ensure_utc(update_data.end_time or booking.end_time)
            time_changed = new_start != booking.start_time or new_end != booking.end_time

            if time_changed:
                window = can_modify_booking(booking.start_time, tz_name)
                if not window.allowed:
                    prometheus_metrics.record_booking_rejection("POLICY_WINDOW")
                    raise PolicyViolationException(
                        window.reason,
                        hours_remaining=round(window.hours_remaining, 2),
                        minimum_hours_required=settings.modification_cutoff_hours,
                    )

                max_days = space.advance_booking_limit or settings.maximum_advance_days
                time_result = validate_booking_time(
                    new_start,
                    new_end,
                    location,
                    TimeValidationConfig(maximum_advance_days=max_days),
                )
                if not time_result.is_valid:
                    raise self._time_validation_error(time_result, location, max_days)

                self._validate_duration(space, new_start, new_end)

                capacity = self.availability_service.check_capacity(
                    space.id,
                    new_start,
                    new_end,
                    organization_id,
                    exclude_booking_id=booking.id,
                    space=space,
                    preferred_unit_id=booking.resource_unit_id,
                )
                if not capacity.available:
                    raise self._capacity_conflict(
                        space,
                        new_start,
                        new_end,
                        capacity,
                        "Space is not available for the updated time slot",
                        exclude_booking_id=booking.id,
                    )
                self._validate_space_rules(space, new_start, tz_name)

                booking.start_time = new_start
                booking.end_time = new_end
                if isinstance(space.capacity_policy(), PooledPolicy):
                    booking.resource_unit_id = capacity.assigned_unit_id

            if update_data.attendee_count is not None:
                self._validate_attendees(space, update_data.attendee_count)
                booking.attendee_count = update_data.attendee_count

            for field_name in (
                "customer_name",
                "customer_email",
                "customer_phone",
                "purpose",
                "notes",
                "special_requests",
            ):
                if field_name in update_data.model_fields_set:
                    setattr(booking, field_name, getattr(update_data, field_name))

            try:
                self.booking_repository.flush()
            except IntegrityError as exc:
                raise BookingConflictException(
                    "Space is not available for the updated time slot",
                    details={"space_id": space.id},
                ) from exc

        self.log_operation("update_booking", booking_id=booking.id, time_changed=time_changed)
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        organization_id: str,
        booking_id: str,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Cancel a booking (soft delete) if it is outside the cancellation window.

        Raises:
            NotFoundException: Booking not in the organization
            InvalidTransitionException: Booking already terminal
            PolicyViolationException: Less than the cutoff before start
        """
        with self.transaction():
            booking = self._get_booking_or_raise(booking_id, organization_id)
            if not booking.can_transition_to(BookingStatus.CANCELLED):
                raise InvalidTransitionException(
                    BookingStatus(booking.status).value, BookingStatus.CANCELLED.value
                )

            space = booking.space
            tz_name = self._timezone_for(space.location if space else None)
            window = can_cancel_booking(booking.start_time, tz_name)
            if not window.allowed:
                prometheus_metrics.record_booking_rejection("POLICY_WINDOW")
                raise PolicyViolationException(
                    window.reason,
                    hours_remaining=round(window.hours_remaining, 2),
                    minimum_hours_required=settings.cancellation_cutoff_hours,
                )

            booking.cancel(reason or DEFAULT_CANCEL_REASON)
            self.booking_repository.flush()

        self.log_operation("cancel_booking", booking_id=booking.id, reason=booking.cancel_reason)
        return booking

    def _transition(self, organization_id: str, booking_id: str, action: str) -> Booking:
        with self.transaction():
            booking = self._get_booking_or_raise(booking_id, organization_id)
            getattr(booking, action)()
            self.booking_repository.flush()
        status = BookingStatus(booking.status).value
        self.log_operation(action, booking_id=booking.id, status=status)
        return booking

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(self, organization_id: str, booking_id: str) -> Booking:
        return self._transition(organization_id, booking_id, "confirm")

    @BaseService.measure_operation("complete_booking")
    def complete_booking(self, organization_id: str, booking_id: str) -> Booking:
        return self._transition(organization_id, booking_id, "complete")

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(self, organization_id: str, booking_id: str) -> Booking:
        return self._transition(organization_id, booking_id, "mark_no_show")

    @BaseService.measure_operation("get_booking")
    def get_booking(self, organization_id: str, booking_id: str) -> Booking:
        return self._get_booking_or_raise(booking_id, organization_id)

    # ------------------------------------------------------------------
    # Availability listing
    # ------------------------------------------------------------------

    @BaseService.measure_operation("get_space_availability")
    def get_space_availability(
        self,
        organization_id: str,
        space_id: str,
        target_date: date,
        duration_minutes: int = 60,
    ) -> Dict[str, Any]:
        """
        Bookable slots of a space on a local calendar day.

        Each candidate slot must pass the time rules and have capacity under
        the space's policy. Only the first few unavailable slots are returned.
        """
        if not (
            settings.availability_min_duration_minutes
            <= duration_minutes
            <= settings.availability_max_duration_minutes
        ):
            raise ValidationException(
                "Duration must be between "
                f"{settings.availability_min_duration_minutes} and "
                f"{settings.availability_max_duration_minutes} minutes",
                code="INVALID_DURATION",
            )

        space = self._get_space_or_raise(space_id, organization_id)
        location = space.location
        tz_name = self._timezone_for(location)
        now = timezone_utils.utc_now()
        today = timezone_utils.local_date(now, tz_name)

        if target_date < today:
            raise ValidationException(
                "Cannot check availability for past dates", code="PAST_DATE"
            )
        same_day_allowed = space.allow_same_day_booking and (
            location is None or location.allow_same_day_booking
        )
        if target_date == today and not same_day_allowed:
            raise ValidationException(
                "Same-day bookings are not allowed for this space", code="SAME_DAY_NOT_ALLOWED"
            )

        day_start = timezone_utils.localize_wall_time(target_date, "00:00", tz_name)
        day_end = day_start + timedelta(days=1)
        existing = self.availability_service.get_overlapping_bookings(space.id, day_start, day_end)
        active_units = (
            self.availability_service.availability_repository.get_active_units(
                space.id, organization_id
            )
            if isinstance(space.capacity_policy(), PooledPolicy)
            else []
        )

        candidates = generate_available_time_slots(target_date, duration_minutes, location, now=now)
        max_days = space.advance_booking_limit or settings.maximum_advance_days
        config = TimeValidationConfig(maximum_advance_days=max_days)

        available: List[Dict[str, Any]] = []
        unavailable: List[Dict[str, Any]] = []
        for slot in candidates:
            reasons = validate_booking_time(
                slot.start_time, slot.end_time, location, config, now=now
            ).errors
            if not self._slot_has_capacity(space, slot, existing, active_units):
                reasons = reasons + ["Space is fully booked for this time slot"]
            entry = {
                "start_time": slot.start_time,
                "end_time": slot.end_time,
                "is_available": not reasons,
                "reasons": reasons,
            }
            (unavailable if reasons else available).append(entry)

        return {
            "space": {
                "id": space.id,
                "name": space.name,
                "capacity": space.capacity,
                "has_pooled_units": bool(space.has_pooled_units),
                "minimum_booking_duration": space.minimum_booking_duration,
                "maximum_booking_duration": space.maximum_booking_duration,
            },
            "location": (
                {
                    "id": location.id,
                    "name": location.name,
                    "timezone": tz_name,
                    "timezone_info": timezone_utils.get_timezone_info(tz_name),
                }
                if location is not None
                else None
            ),
            "date": target_date,
            "duration": duration_minutes,
            "available_slots": available,
            "unavailable_slots": unavailable[: settings.unavailable_slot_preview_limit],
            "conflicting_bookings": [self._conflict_summary(b) for b in existing],
            "time_validation": {
                "timezone": tz_name,
                "current_time": timezone_utils.convert_to_timezone(now, tz_name).isoformat(),
                "business_rules": self._business_rules(location, max_days),
            },
            "summary": {
                "total_slots": len(candidates),
                "available_slots": len(available),
                "unavailable_slots": len(unavailable),
                "existing_bookings": len(existing),
            },
        }

    @staticmethod
    def _slot_has_capacity(
        space: Space, slot: TimeSlot, existing: List[Booking], active_units: List[Any]
    ) -> bool:
        overlapping = [
            b for b in existing if b.start_time < slot.end_time and b.end_time > slot.start_time
        ]
        policy = space.capacity_policy()
        if isinstance(policy, UnlimitedPolicy):
            return True
        if isinstance(policy, PooledPolicy):
            busy = {b.resource_unit_id for b in overlapping}
            return any(unit.id not in busy for unit in active_units)
        if isinstance(policy, CountedPolicy):
            return len(overlapping) < policy.capacity
        if isinstance(policy, ExclusivePolicy):
            return not overlapping
        raise ValueError(f"Unknown capacity policy: {policy!r}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_space_or_raise(
        self, space_id: str, organization_id: str, *, lock: bool = False
    ) -> Space:
        space = self.space_repository.get_space_for_booking(space_id, organization_id, lock=lock)
        if space is None:
            raise NotFoundException("Space not found", code="SPACE_NOT_FOUND")
        return space

    def _get_booking_or_raise(self, booking_id: str, organization_id: str) -> Booking:
        booking = self.booking_repository.get_for_organization(booking_id, organization_id)
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    @staticmethod
    def _timezone_for(location: Optional[Location]) -> str:
        return (location.timezone if location is not None else None) or settings.default_timezone

    @staticmethod
    def _business_rules(location: Optional[Location], max_days: int) -> Dict[str, Any]:
        return {
            "minimum_advance_minutes": settings.minimum_advance_minutes,
            "maximum_advance_days": max_days,
            "allow_same_day_booking": location.allow_same_day_booking if location else True,
        }

    def _time_validation_error(
        self,
        result: TimeValidationResult,
        location: Optional[Location],
        max_days: int,
    ) -> ValidationException:
        tz_name = self._timezone_for(location)
        formatted = format_time_validation_errors(result)
        prometheus_metrics.record_booking_rejection("TIME_VALIDATION_FAILED")
        return ValidationException(
            formatted["message"],
            code="TIME_VALIDATION_FAILED",
            details={
                "errors": formatted["details"],
                "warnings": result.warnings,
                "time_until_booking": result.time_until_booking.to_dict(),
                "timezone": tz_name,
                "timezone_info": timezone_utils.get_timezone_info(tz_name),
                "business_rules": self._business_rules(location, max_days),
            },
        )

    @staticmethod
    def _validate_duration(space: Space, start: datetime, end: datetime) -> None:
        minutes = (end - start).total_seconds() / 60
        minimum = space.minimum_booking_duration or settings.default_minimum_booking_minutes
        maximum = space.maximum_booking_duration or settings.default_maximum_booking_minutes
        if minutes < minimum:
            prometheus_metrics.record_booking_rejection("DURATION_TOO_SHORT")
            raise ValidationException(
                f"Minimum booking duration is {minimum} minutes",
                code="DURATION_TOO_SHORT",
                details={"requested_minutes": minutes, "minimum_minutes": minimum},
            )
        if minutes > maximum:
            prometheus_metrics.record_booking_rejection("DURATION_TOO_LONG")
            raise ValidationException(
                f"Maximum booking duration is {maximum} minutes",
                code="DURATION_TOO_LONG",
                details={"requested_minutes": minutes, "maximum_minutes": maximum},
            )

    @staticmethod
    def _validate_attendees(space: Space, attendee_count: int) -> None:
        if space.capacity is not None and attendee_count > space.capacity:
            prometheus_metrics.record_booking_rejection("ATTENDEES_EXCEED_CAPACITY")
            raise ValidationException(
                f"Space capacity is {space.capacity} people, "
                f"but {attendee_count} attendees requested",
                code="ATTENDEES_EXCEED_CAPACITY",
                details={"capacity": space.capacity, "attendee_count": attendee_count},
            )

    @staticmethod
    def _validate_space_rules(space: Space, start: datetime, tz_name: str) -> None:
        """Space-level advance limit and same-day flag (on top of the location's)."""
        now = timezone_utils.utc_now()
        if space.advance_booking_limit:
            days_until = (start - now).total_seconds() / 86400
            if days_until > space.advance_booking_limit:
                raise ValidationException(
                    "Bookings can only be made up to "
                    f"{space.advance_booking_limit} days in advance",
                    code="ADVANCE_LIMIT_EXCEEDED",
                )
        if not space.allow_same_day_booking and timezone_utils.is_same_local_day(
            start, now, tz_name
        ):
            raise ValidationException(
                "Same-day bookings are not allowed for this space", code="SAME_DAY_NOT_ALLOWED"
            )

    @staticmethod
    def _conflict_summary(booking: Booking) -> Dict[str, Any]:
        return {
            "id": booking.id,
            "start_time": booking.start_time,
            "end_time": booking.end_time,
            "reference": booking.booking_reference,
            "status": BookingStatus(booking.status).value,
        }

    def _capacity_conflict(
        self,
        space: Space,
        start: datetime,
        end: datetime,
        capacity: CapacityCheckResult,
        message: str,
        exclude_booking_id: Optional[str] = None,
    ) -> CapacityConflictException:
        conflicts = self.availability_service.get_overlapping_bookings(
            space.id, start, end, exclude_booking_id
        )
        prometheus_metrics.record_booking_rejection("OVER_CAPACITY")
        self.logger.info(
            f"Capacity conflict on space {space.id}: {len(conflicts)} overlapping bookings"
        )
        return CapacityConflictException(
            message,
            capacity=capacity.details.get("capacity"),
            overlapping=capacity.details.get("overlapping", len(conflicts)),
            conflicting_bookings=[
                {
                    "id": b.id,
                    "start_time": b.start_time.isoformat(),
                    "end_time": b.end_time.isoformat(),
                    "reference": b.booking_reference,
                }
                for b in conflicts
            ],
        )
