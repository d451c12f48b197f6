"""
API Handlers Module

Transport-neutral request handlers over ``SchedulingService``. Each handler
validates its payload, runs the operation inside a request-scoped
``LogContext`` and returns an ``APIResponse`` envelope; scheduling errors
become error envelopes with a stable code and HTTP-style status.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from booking_core.core.logging import LogContext
from booking_core.scheduling.base import SchedulingError, format_hhmm
from booking_core.scheduling.service import SchedulingService

from .base import (
    ActingUser,
    APIResponse,
    BookingRequest,
    SlotQuery,
    StatusUpdateRequest,
    SuggestionQuery,
    error_response,
    generate_request_id,
    parse_request,
    success_response,
)


logger = logging.getLogger(__name__)

# Raw dict or an already-built request model
Payload = Any


class SchedulingAPI:
    """Request handlers for slot queries, booking and appointment updates."""

    def __init__(self, service: SchedulingService):
        self.service = service

    def _handle(
        self,
        operation: str,
        request_id: Optional[str],
        func: Callable[[], Any],
        **context: Any,
    ) -> APIResponse:
        request_id = request_id or generate_request_id()

        with LogContext(request_id=request_id, **context):
            try:
                data = func()
            except SchedulingError as exc:
                response = error_response(exc, request_id)
                logger.info(
                    f"{operation} failed with {response.error.code} "
                    f"({response.error.status_code}): {exc.message}"
                )
                return response

        return success_response(data, request_id)

    # -------------------------------------------------------------------------
    # Slots
    # -------------------------------------------------------------------------

    def query_slots(self, payload: Payload, request_id: Optional[str] = None) -> APIResponse:
        """Open slots as ``"HH:MM"`` strings."""

        def run() -> List[str]:
            query = parse_request(SlotQuery, payload)
            slots = self.service.get_available_slots(
                query.provider_id, query.on_date, query.service_id
            )
            return [format_hhmm(s) for s in slots]

        return self._handle("query_slots", request_id, run)

    def suggest_slots(self, payload: Payload, request_id: Optional[str] = None) -> APIResponse:
        """Recommended slots as ``"HH:MM"`` strings, best first."""

        def run() -> List[str]:
            query = parse_request(SuggestionQuery, payload)
            slots = self.service.suggest_slots(
                query.customer_id,
                query.provider_id,
                query.on_date,
                service_id=query.service_id,
                limit=query.limit,
            )
            return [format_hhmm(s) for s in slots]

        return self._handle("suggest_slots", request_id, run)

    # -------------------------------------------------------------------------
    # Appointments
    # -------------------------------------------------------------------------

    def book(self, payload: Payload, request_id: Optional[str] = None) -> APIResponse:
        def run() -> Dict[str, Any]:
            request = parse_request(BookingRequest, payload)
            appointment = self.service.book_appointment(
                customer_id=request.customer_id,
                provider_id=request.provider_id,
                service_id=request.service_id,
                d=request.on_date,
                start_time=request.start_time,
                notes=request.notes,
                recommended=request.recommended,
            )
            return appointment.to_dict()

        return self._handle("book", request_id, run)

    def update_status(self, payload: Payload, request_id: Optional[str] = None) -> APIResponse:
        def run() -> Dict[str, Any]:
            request = parse_request(StatusUpdateRequest, payload)
            with LogContext(actor_id=request.acting_user.id, appointment_id=request.appointment_id):
                appointment = self.service.update_status(
                    request.appointment_id,
                    request.acting_user.role,
                    request.acting_user.id,
                    request.status,
                )
            return appointment.to_dict()

        return self._handle("update_status", request_id, run)

    def list_appointments(
        self,
        acting_user: Payload,
        request_id: Optional[str] = None,
    ) -> APIResponse:
        def run() -> List[Dict[str, Any]]:
            user = parse_request(ActingUser, acting_user)
            with LogContext(actor_id=user.id):
                appointments = self.service.list_appointments(user.role, user.id)
            return [a.to_dict() for a in appointments]

        return self._handle("list_appointments", request_id, run)


__all__ = [
    "SchedulingAPI",
]
