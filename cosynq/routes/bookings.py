# cosynq/routes/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService and AvailabilityService.

Endpoints:
    POST /check-capacity - Check whether a space can take a booking
    POST / - Create a booking
    GET /{space_id}/availability - Bookable slots of a space on a day
    PUT /{booking_id} - Update a booking (time changes re-check capacity)
    DELETE /{booking_id} - Cancel a booking (soft delete)
    POST /{booking_id}/confirm - Pending -> Confirmed
    POST /{booking_id}/complete - Confirmed -> Completed
    POST /{booking_id}/no-show - Confirmed -> No Show
"""

import asyncio
from datetime import date
import logging
from typing import Any, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from ..api.dependencies import get_availability_service, get_booking_service, get_organization_id
from ..core.exceptions import DomainException
from ..core.ulid_helper import ULID_PATH_PATTERN
from ..schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingResponse,
    BookingUpdate,
    CapacityCheckRequest,
    CapacityCheckResponse,
    SpaceAvailabilityResponse,
)
from ..services.availability_service import AvailabilityService
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _booking_id_path() -> Any:
    return Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    )


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post("/check-capacity", response_model=CapacityCheckResponse)
async def check_capacity(
    payload: CapacityCheckRequest = Body(...),
    organization_id: str = Depends(get_organization_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> CapacityCheckResponse:
    """
    Check whether a space has room for a window.

    Always answers 200; a missing space comes back as unavailable with
    reason "Space not found".
    """
    try:
        result = await asyncio.to_thread(
            availability_service.check_capacity,
            payload.space_id,
            payload.start_time,
            payload.end_time,
            organization_id,
            payload.exclude_booking_id,
        )
        return CapacityCheckResponse(**result.to_dict())
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Time validation, duration or attendee rules failed"},
        404: {"description": "Space or contact not found"},
        409: {"description": "Space is full for the requested window"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    organization_id: str = Depends(get_organization_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Create a Pending booking."""
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking, organization_id, booking_data
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Space-scoped routes
# ============================================================================


@router.get("/{space_id}/availability", response_model=SpaceAvailabilityResponse)
async def get_space_availability(
    space_id: str = Path(..., description="Space ULID", pattern=ULID_PATH_PATTERN),
    target_date: date = Query(..., alias="date", description="Local date, YYYY-MM-DD"),
    duration: int = Query(60, description="Slot length in minutes"),
    organization_id: str = Depends(get_organization_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> SpaceAvailabilityResponse:
    """List bookable and blocked slots of a space on a local calendar day."""
    try:
        availability = await asyncio.to_thread(
            booking_service.get_space_availability,
            organization_id,
            space_id,
            target_date,
            duration,
        )
        return SpaceAvailabilityResponse(**availability)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 3: Booking-scoped routes
# ============================================================================


@router.put(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}, 409: {"description": "Time conflict"}},
)
async def update_booking(
    booking_id: str = _booking_id_path(),
    update_data: BookingUpdate = Body(...),
    organization_id: str = Depends(get_organization_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Update a booking; new times must clear the modification window."""
    try:
        booking = await asyncio.to_thread(
            booking_service.update_booking, organization_id, booking_id, update_data
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def cancel_booking(
    booking_id: str = _booking_id_path(),
    cancel_data: Optional[BookingCancel] = Body(None),
    organization_id: str = Depends(get_organization_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Cancel a booking. The row is kept with status Cancelled."""
    reason = cancel_data.reason if cancel_data else None
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking, organization_id, booking_id, reason
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    booking_id: str = _booking_id_path(),
    organization_id: str = Depends(get_organization_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.confirm_booking, organization_id, booking_id
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: str = _booking_id_path(),
    organization_id: str = Depends(get_organization_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.complete_booking, organization_id, booking_id
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/no-show", response_model=BookingResponse)
async def mark_booking_no_show(
    booking_id: str = _booking_id_path(),
    organization_id: str = Depends(get_organization_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Mark a confirmed booking as a no-show."""
    try:
        booking = await asyncio.to_thread(
            booking_service.mark_no_show, organization_id, booking_id
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)
