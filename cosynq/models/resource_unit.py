# cosynq/models/resource_unit.py
"""Individually assignable unit (desk, seat, pod) inside a pooled space."""

from typing import Any, Dict

from sqlalchemy import Column, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import ResourceUnitStatus
from ..database import Base
from .base_enum import create_safe_enum
from .types import TimestampMixin


class ResourceUnit(Base, TimestampMixin):
    """One bookable unit of a pooled space."""

    __tablename__ = "resource_units"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(String(26), nullable=False, index=True)
    space_id = Column(
        String(26), ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False, index=True
    )
    label = Column(String(100), nullable=False)
    status = Column(
        create_safe_enum(ResourceUnitStatus, "resource_unit_status"),
        nullable=False,
        default=ResourceUnitStatus.ACTIVE,
    )

    space = relationship("Space", back_populates="resource_units")
    bookings = relationship("Booking", back_populates="resource_unit")

    __table_args__ = (
        UniqueConstraint("organization_id", "space_id", "label", name="uq_resource_unit_label"),
        Index("ix_resource_units_space_status", "space_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<ResourceUnit {self.id}: {self.label} ({self.status})>"

    @property
    def is_active(self) -> bool:
        return self.status == ResourceUnitStatus.ACTIVE

    def disable(self) -> None:
        self.status = ResourceUnitStatus.DISABLED

    def enable(self) -> None:
        self.status = ResourceUnitStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "space_id": self.space_id,
            "label": self.label,
            "status": self.status.value
            if isinstance(self.status, ResourceUnitStatus)
            else self.status,
        }
