"""
API Module

Transport-neutral request handling for the scheduling engine: pydantic
request/response models, error codes and the handlers that wrap
``SchedulingService`` in response envelopes.
"""

from .base import (
    ERROR_MAPPING,
    ActingUser,
    APIError,
    APIResponse,
    BookingRequest,
    ErrorCode,
    SlotQuery,
    StatusUpdateRequest,
    SuggestionQuery,
    error_response,
    generate_request_id,
    parse_request,
    success_response,
    to_api_error,
)
from .handlers import SchedulingAPI


__all__ = [
    # Models
    "ActingUser",
    "APIError",
    "APIResponse",
    "BookingRequest",
    "SlotQuery",
    "StatusUpdateRequest",
    "SuggestionQuery",
    # Errors
    "ErrorCode",
    "ERROR_MAPPING",
    "to_api_error",
    # Helpers
    "error_response",
    "generate_request_id",
    "parse_request",
    "success_response",
    # Handlers
    "SchedulingAPI",
]
