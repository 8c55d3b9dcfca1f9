"""ORM models; importing this package registers every table on ``Base.metadata``."""

from .booking import Booking
from .contact import Contact
from .location import Location, LocationOperatingHours
from .resource_unit import ResourceUnit
from .space import Space

__all__ = [
    "Booking",
    "Contact",
    "Location",
    "LocationOperatingHours",
    "ResourceUnit",
    "Space",
]
