"""Space and resource-unit schemas."""

from typing import List

from pydantic import AliasChoices, Field, field_validator

from ._strict_base import StrictModel, StrictRequestModel


class ResourceUnitGenerateRequest(StrictRequestModel):
    count: int = Field(..., ge=0, le=500)
    label_prefix: str = Field(
        "Unit",
        min_length=1,
        max_length=80,
        validation_alias=AliasChoices("label_prefix", "labelPrefix"),
    )

    @field_validator("label_prefix")
    @classmethod
    def _strip_prefix(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("label_prefix cannot be blank")
        return value


class ResourceUnitResponse(StrictModel):
    id: str
    organization_id: str
    space_id: str
    label: str
    status: str


class ResourceUnitGenerateResponse(StrictModel):
    space_id: str
    created: List[ResourceUnitResponse]
    created_count: int
