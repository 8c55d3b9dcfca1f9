"""Capacity policies resolved once per space and consumed by the availability engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class UnlimitedPolicy:
    """No capacity limit; never runs an overlap query."""

    kind: str = "unlimited"
    capacity: Optional[int] = None


@dataclass(frozen=True)
class ExclusivePolicy:
    """Single booking at a time (capacity of one, no pooled units)."""

    kind: str = "exclusive"
    capacity: int = 1


@dataclass(frozen=True)
class CountedPolicy:
    """Up to ``capacity`` concurrent bookings, counted without unit identity."""

    capacity: int
    kind: str = "counted"


@dataclass(frozen=True)
class PooledPolicy:
    """Concurrent bookings bounded by Active resource units, one unit each."""

    capacity: Optional[int] = None
    kind: str = "pooled"


CapacityPolicy = Union[UnlimitedPolicy, ExclusivePolicy, CountedPolicy, PooledPolicy]


def resolve_capacity_policy(space: Any) -> CapacityPolicy:
    """
    Pick the capacity policy for a space.

    Precedence: a null capacity is unlimited, pooled units win over the
    counted rule (including a pooled space whose capacity is one), then a
    capacity above one is counted, and everything else is exclusive.
    """
    capacity = getattr(space, "capacity", None)
    if capacity is None:
        return UnlimitedPolicy()
    if getattr(space, "has_pooled_units", False):
        return PooledPolicy(capacity=capacity)
    if capacity > 1:
        return CountedPolicy(capacity=capacity)
    return ExclusivePolicy()
