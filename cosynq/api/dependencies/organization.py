# cosynq/api/dependencies/organization.py
"""
Tenant resolution.

Every request is scoped to one organization, passed in the
``X-Organization-ID`` header. Authentication happens upstream.
"""

from typing import Optional

from fastapi import Header

from ...core.exceptions import ValidationException
from ...core.ulid_helper import is_valid_ulid

ORGANIZATION_HEADER = "X-Organization-ID"


def get_organization_id(
    x_organization_id: Optional[str] = Header(None, alias=ORGANIZATION_HEADER),
) -> str:
    """Return the caller's organization id or reject the request with 400."""
    if not x_organization_id:
        raise ValidationException(
            f"{ORGANIZATION_HEADER} header is required", code="ORGANIZATION_REQUIRED"
        ).to_http_exception()
    value = x_organization_id.strip()
    if not is_valid_ulid(value):
        raise ValidationException(
            f"{ORGANIZATION_HEADER} must be a valid ULID", code="INVALID_ORGANIZATION_ID"
        ).to_http_exception()
    return value
