"""
Safe enum helpers for SQLAlchemy.

Enum columns persist the enum VALUE ("No Show") rather than the member NAME
("NO_SHOW"), so raw SQL, seed scripts and ORM queries agree on what is
stored.

Usage:
    status = Column(
        create_safe_enum(BookingStatus, "booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
    )
"""

from enum import Enum
from typing import Sequence, Type

from sqlalchemy import Enum as SAEnum


def create_safe_enum(
    enum_class: Type[Enum],
    name: str,
    *,
    native_enum: bool = False,
    validate_strings: bool = True,
) -> SAEnum:
    """
    Create a SQLAlchemy Enum that stores enum values (not names).

    Args:
        enum_class: The Python Enum class to use
        name: Database type name (used for native enums and constraints)
        native_enum: Whether to use a native database enum type; defaults to
                     VARCHAR storage so SQLite and PostgreSQL behave alike
        validate_strings: Whether to validate string values on assignment

    Returns:
        SQLAlchemy Enum column type configured for value-based storage
    """
    return SAEnum(
        enum_class,
        name=name,
        native_enum=native_enum,
        validate_strings=validate_strings,
        values_callable=_get_enum_values,
    )


def _get_enum_values(enum_class: Type[Enum]) -> Sequence[str]:
    return [member.value for member in enum_class]
