"""
API Base Types and Models Module

This module provides the request/response models, error codes and the
mapping from scheduling exceptions to API errors used by the transport
layer.
"""

import secrets
import time
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from booking_core.scheduling.base import (
    MINUTES_PER_DAY,
    Forbidden,
    InvalidTransition,
    NotFound,
    SchedulingError,
    SlotUnavailable,
    ValidationError,
    parse_hhmm,
    parse_iso_date,
)


# Generic type for response data
T = TypeVar("T")

M = TypeVar("M", bound=BaseModel)


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Authorization errors (1xxx)
    INSUFFICIENT_PERMISSIONS = "AUTH_1004"

    # Validation errors (2xxx)
    VALIDATION_ERROR = "VAL_2001"

    # Resource errors (3xxx)
    RESOURCE_NOT_FOUND = "RES_3001"
    RESOURCE_CONFLICT = "RES_3003"

    # Server errors (5xxx)
    INTERNAL_ERROR = "SRV_5001"

    # Business logic errors (6xxx)
    INVALID_STATE_TRANSITION = "BIZ_6001"
    SLOT_UNAVAILABLE = "BIZ_6005"


# Scheduling exception -> (error code, HTTP-style status)
ERROR_MAPPING: Dict[Type[SchedulingError], Tuple[ErrorCode, int]] = {
    ValidationError: (ErrorCode.VALIDATION_ERROR, 422),
    SlotUnavailable: (ErrorCode.SLOT_UNAVAILABLE, 409),
    InvalidTransition: (ErrorCode.INVALID_STATE_TRANSITION, 409),
    Forbidden: (ErrorCode.INSUFFICIENT_PERMISSIONS, 403),
    NotFound: (ErrorCode.RESOURCE_NOT_FOUND, 404),
}


# =============================================================================
# Request Models
# =============================================================================


def _check_iso_date(value: str) -> str:
    try:
        parse_iso_date(value)
    except ValidationError as exc:
        raise ValueError(exc.message)
    return value


def _check_hhmm(value: str) -> str:
    try:
        minutes = parse_hhmm(value)
    except ValidationError as exc:
        raise ValueError(exc.message)
    if minutes >= MINUTES_PER_DAY:
        raise ValueError(f"Invalid start time {value!r}")
    return value


class ActingUser(BaseModel):
    """The user a request is made on behalf of."""

    id: str = Field(..., min_length=1, description="User ID")
    role: str = Field(..., description="admin, provider or customer")


class SlotQuery(BaseModel):
    """Query for open slots of a provider on a date."""

    provider_id: str = Field(..., min_length=1)
    date: str = Field(..., description="ISO date (YYYY-MM-DD)")
    service_id: Optional[str] = Field(
        default=None,
        description="Only offer slots where this service fits",
    )

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return _check_iso_date(v)

    @property
    def on_date(self):
        return parse_iso_date(self.date)


class SuggestionQuery(SlotQuery):
    """Query for recommended slots."""

    customer_id: str = Field(..., min_length=1)
    limit: Optional[int] = Field(default=None, ge=0, le=48)


class BookingRequest(BaseModel):
    """Request to book an appointment."""

    customer_id: str = Field(..., min_length=1)
    provider_id: str = Field(..., min_length=1)
    service_id: str = Field(..., min_length=1)
    date: str = Field(..., description="ISO date (YYYY-MM-DD)")
    time: str = Field(..., description="Start time (HH:MM)")
    notes: Optional[str] = Field(default=None, max_length=2000)
    recommended: bool = Field(default=False, description="Slot came from a suggestion")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return _check_iso_date(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _check_hhmm(v)

    @property
    def on_date(self):
        return parse_iso_date(self.date)

    @property
    def start_time(self) -> int:
        return parse_hhmm(self.time)


class StatusUpdateRequest(BaseModel):
    """Request to move an appointment to a new status."""

    appointment_id: str = Field(..., min_length=1)
    status: str = Field(..., description="Target status")
    acting_user: ActingUser


def parse_request(model: Type[M], payload: Any) -> M:
    """
    Validate a payload into a request model.

    pydantic failures are reported as the engine's ``ValidationError`` so
    the transport has a single validation error type.
    """
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(
            f"Invalid {model.__name__}: {first.get('msg', 'invalid value')}",
            field=field,
            details={"errors": exc.errors(include_url=False, include_context=False)},
        )


# =============================================================================
# Response Models
# =============================================================================


class APIError(BaseModel):
    """API error response model."""

    model_config = ConfigDict(use_enum_values=True)

    code: ErrorCode = Field(..., description="Error code")
    status_code: int = Field(..., description="HTTP-style status")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details",
    )
    field: Optional[str] = Field(
        default=None,
        description="Field that caused the error (for validation errors)",
    )
    request_id: Optional[str] = Field(
        default=None,
        description="Request ID for tracking",
    )


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool = Field(default=True, description="Whether request succeeded")
    data: Optional[T] = Field(default=None, description="Response data")
    error: Optional[APIError] = Field(default=None, description="Error information")
    request_id: str = Field(
        default_factory=lambda: generate_request_id(),
        description="Unique request identifier",
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="Response timestamp",
    )

    @property
    def status_code(self) -> int:
        return self.error.status_code if self.error else 200


# =============================================================================
# Utility Functions
# =============================================================================


def generate_request_id() -> str:
    """Generate a unique request ID."""
    timestamp = int(time.time() * 1000)
    random_part = secrets.token_hex(8)
    return f"req_{timestamp}_{random_part}"


def to_api_error(exc: SchedulingError, request_id: Optional[str] = None) -> APIError:
    """Convert a scheduling exception to an APIError."""
    code, status_code = ErrorCode.INTERNAL_ERROR, 500
    for exc_type in type(exc).__mro__:
        if exc_type in ERROR_MAPPING:
            code, status_code = ERROR_MAPPING[exc_type]
            break

    return APIError(
        code=code,
        status_code=status_code,
        message=exc.message,
        details=exc.details or None,
        field=getattr(exc, "field", None),
        request_id=request_id,
    )


def success_response(data: Any, request_id: Optional[str] = None) -> APIResponse:
    """Create a success response."""
    return APIResponse(success=True, data=data, request_id=request_id or generate_request_id())


def error_response(exc: SchedulingError, request_id: Optional[str] = None) -> APIResponse:
    """Create an error response."""
    request_id = request_id or generate_request_id()
    return APIResponse(success=False, error=to_api_error(exc, request_id), request_id=request_id)


__all__ = [
    # Enums
    "ErrorCode",
    "ERROR_MAPPING",
    # Request models
    "ActingUser",
    "SlotQuery",
    "SuggestionQuery",
    "BookingRequest",
    "StatusUpdateRequest",
    "parse_request",
    # Response models
    "APIError",
    "APIResponse",
    # Utilities
    "generate_request_id",
    "to_api_error",
    "success_response",
    "error_response",
]
