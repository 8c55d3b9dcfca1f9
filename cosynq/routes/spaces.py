# cosynq/routes/spaces.py
"""
Space administration routes - API v1

Endpoints:
    POST /{space_id}/resource-units - Provision units for a pooled space
    POST /{space_id}/resource-units/{unit_id}/disable - Take a unit out of rotation
    POST /{space_id}/resource-units/{unit_id}/enable - Put a unit back
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, Path, status

from ..api.dependencies import get_availability_service, get_organization_id
from ..core.exceptions import DomainException
from ..core.ulid_helper import ULID_PATH_PATTERN
from ..schemas.space import (
    ResourceUnitGenerateRequest,
    ResourceUnitGenerateResponse,
    ResourceUnitResponse,
)
from ..services.availability_service import AvailabilityService
from .bookings import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["spaces-v1"])


@router.post(
    "/{space_id}/resource-units",
    response_model=ResourceUnitGenerateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Space not found"}},
)
async def generate_resource_units(
    space_id: str = Path(..., description="Space ULID", pattern=ULID_PATH_PATTERN),
    payload: ResourceUnitGenerateRequest = Body(...),
    organization_id: str = Depends(get_organization_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ResourceUnitGenerateResponse:
    """
    Bring the space up to ``count`` resource units.

    Idempotent: units that already exist are kept and counted.
    """
    try:
        created = await asyncio.to_thread(
            availability_service.generate_resource_units,
            space_id,
            organization_id,
            payload.count,
            payload.label_prefix,
        )
    except DomainException as e:
        handle_domain_exception(e)

    return ResourceUnitGenerateResponse(
        space_id=space_id,
        created=[ResourceUnitResponse(**unit.to_dict()) for unit in created],
        created_count=len(created),
    )


@router.post(
    "/{space_id}/resource-units/{unit_id}/disable",
    response_model=ResourceUnitResponse,
)
async def disable_resource_unit(
    space_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    unit_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    organization_id: str = Depends(get_organization_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ResourceUnitResponse:
    try:
        unit = await asyncio.to_thread(
            availability_service.disable_resource_unit, unit_id, space_id, organization_id
        )
        return ResourceUnitResponse(**unit.to_dict())
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{space_id}/resource-units/{unit_id}/enable",
    response_model=ResourceUnitResponse,
)
async def enable_resource_unit(
    space_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    unit_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    organization_id: str = Depends(get_organization_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ResourceUnitResponse:
    try:
        unit = await asyncio.to_thread(
            availability_service.enable_resource_unit, unit_id, space_id, organization_id
        )
        return ResourceUnitResponse(**unit.to_dict())
    except DomainException as e:
        handle_domain_exception(e)
