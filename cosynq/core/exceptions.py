# cosynq/core/exceptions.py
"""
Domain-specific exceptions for the Cosynq booking backend.

Services raise these with business-focused messages; the API layer turns
them into HTTP responses through ``to_http_exception``.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when a booking conflicts with existing bookings."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot conflicts with an existing booking",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class CapacityConflictException(ConflictException):
    """Raised when a space has no remaining capacity for the requested window."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        capacity: Optional[int] = None,
        overlapping: int = 0,
        conflicting_bookings: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(
            message=message or "Space is not available for the requested time slot",
            code="OVER_CAPACITY",
            details={
                "capacity": capacity,
                "overlapping": overlapping,
                "conflicting_bookings": conflicting_bookings or [],
            },
        )


class PolicyViolationException(BusinessRuleException):
    """Raised when a modify/cancel request falls inside the cutoff window."""

    def __init__(self, message: str, *, hours_remaining: float, minimum_hours_required: float):
        super().__init__(
            message=message,
            code="POLICY_WINDOW",
            details={
                "hours_remaining": hours_remaining,
                "minimum_hours_required": minimum_hours_required,
            },
        )


class InvalidTransitionException(BusinessRuleException):
    """Raised when a booking status change is not allowed."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot change booking status from {current} to {target}",
            code="INVALID_STATUS_TRANSITION",
            details={"current_status": current, "requested_status": target},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures, or constraint violations.
    """
