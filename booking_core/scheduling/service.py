"""
Scheduling Service Module

This module wires availability, slot generation, conflict checking, the
appointment lifecycle and slot recommendations into a single service, and
adds the reporting helpers dashboards build on.
"""

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from booking_core.config import EngineSettings, get_settings

from .availability import AvailabilityManager
from .base import (
    Appointment,
    AppointmentStatus,
    AvailabilityWindow,
    Party,
    Role,
    Service,
    ValidationError,
    as_date,
    format_hhmm,
)
from .conflicts import ConflictChecker
from .lifecycle import LifecycleManager
from .recommendations import RecommendationEngine, RecommendationStrategy, get_strategy
from .slots import SlotGenerator
from .stores import (
    AppointmentStore,
    AvailabilityStore,
    Directory,
    InMemoryAppointmentStore,
    InMemoryAvailabilityStore,
    InMemoryDirectory,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Scheduling Service
# =============================================================================


class SchedulingService:
    """
    Unified scheduling service.

    Provides:
    - Weekly availability management
    - Slot generation and conflict checks
    - Booking and status transitions
    - Slot recommendations
    - Reporting for dashboards
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        directory: Optional[Directory] = None,
        availability_store: Optional[AvailabilityStore] = None,
        appointment_store: Optional[AppointmentStore] = None,
        strategy: Optional[RecommendationStrategy] = None,
    ):
        self.settings = settings or get_settings()
        self.directory = directory or InMemoryDirectory()
        self.availability_store = availability_store or InMemoryAvailabilityStore()
        self.appointment_store = appointment_store or InMemoryAppointmentStore()

        granularity = self.settings.slot_granularity_minutes

        self.availability = AvailabilityManager(self.availability_store)
        self.conflicts = ConflictChecker(self.appointment_store, granularity)
        self.slots = SlotGenerator(self.availability, self.conflicts, granularity)
        self.lifecycle = LifecycleManager(
            self.appointment_store,
            self.directory,
            self.availability,
            self.conflicts,
        )
        self.recommendations = RecommendationEngine(
            self.slots,
            self.appointment_store,
            self.directory,
            strategy=strategy or get_strategy(
                self.settings.recommendation_strategy, self.settings.random_seed
            ),
            max_suggestions=self.settings.max_suggestions,
        )

        logger.debug(
            f"Scheduling service ready: granularity {granularity}m, "
            f"strategy {self.recommendations.strategy.name}"
        )

    # -------------------------------------------------------------------------
    # Availability & slots
    # -------------------------------------------------------------------------

    def set_weekly_availability(
        self,
        provider_id: str,
        windows: Iterable[AvailabilityWindow],
    ) -> List[AvailabilityWindow]:
        return self.availability.set_weekly_availability(provider_id, windows)

    def get_weekly_availability(self, provider_id: str) -> List[AvailabilityWindow]:
        return self.availability.get_weekly_availability(provider_id)

    def get_available_slots(
        self,
        provider_id: str,
        d: date,
        service_id: Optional[str] = None,
    ) -> List[int]:
        """
        Open start times for a provider on a date.

        With a service, only starts where the whole service fits are offered.
        """
        duration = None
        if service_id is not None:
            duration = self._require_service(service_id).duration_minutes
        return self.slots.generate_slots(provider_id, d, duration_minutes=duration)

    def is_free(
        self,
        provider_id: str,
        d: date,
        start_time: int,
        duration_minutes: Optional[int] = None,
    ) -> bool:
        return self.conflicts.is_free(provider_id, d, start_time, duration_minutes)

    def suggest_slots(
        self,
        customer_id: str,
        provider_id: str,
        d: date,
        service_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[int]:
        return self.recommendations.suggest(
            customer_id, provider_id, d, service_id=service_id, limit=limit
        )

    # -------------------------------------------------------------------------
    # Appointments
    # -------------------------------------------------------------------------

    def book_appointment(
        self,
        customer_id: str,
        provider_id: str,
        service_id: str,
        d: date,
        start_time: int,
        notes: Optional[str] = None,
        recommended: bool = False,
    ) -> Appointment:
        """
        Book an appointment.

        This is the main booking entry point.
        """
        return self.lifecycle.book(
            customer_id=customer_id,
            provider_id=provider_id,
            service_id=service_id,
            on_date=d,
            start_time=start_time,
            notes=notes,
            recommended=recommended,
        )

    def update_status(
        self,
        appointment_id: str,
        actor_role: Any,
        actor_id: str,
        new_status: Any,
    ) -> Appointment:
        return self.lifecycle.transition(appointment_id, actor_role, actor_id, new_status)

    def list_appointments(self, actor_role: Any, actor_id: str) -> List[Appointment]:
        return self.lifecycle.list_for_actor(actor_role, actor_id)

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    def get_services(self, provider_id: Optional[str] = None) -> List[Service]:
        return self.directory.list_services(provider_id)

    def get_service_providers(self) -> List[Party]:
        return self.directory.list_parties(Role.PROVIDER)

    def _require_service(self, service_id: str) -> Service:
        service = self.directory.get_service(service_id)
        if service is None:
            raise ValidationError(f"Unknown service {service_id}", field="service_id")
        return service

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def list_upcoming(
        self,
        actor_role: Any,
        actor_id: str,
        today: date,
        limit: Optional[int] = None,
    ) -> List[Appointment]:
        """Visible pending/confirmed appointments from ``today`` on, soonest first."""
        today = as_date(today)
        upcoming = [
            a for a in self.lifecycle.list_for_actor(actor_role, actor_id)
            if a.is_active and a.date >= today
        ]
        return upcoming if limit is None else upcoming[:limit]

    def get_daily_schedule(self, provider_id: str, d: date) -> Dict[str, Any]:
        """Get full daily schedule with windows, open slots and appointments."""
        d = as_date(d)
        provider = self.directory.get_party(provider_id)
        if provider is None or provider.role != Role.PROVIDER:
            raise ValidationError(f"Unknown provider {provider_id}", field="provider_id")

        windows = self.availability.get_windows_for_date(provider_id, d)
        slots = self.slots.generate_slots(provider_id, d)
        appointments = sorted(
            (a for a in self.appointment_store.list_for_provider(provider_id, d) if a.is_active),
            key=lambda a: (a.start_time, a.id),
        )

        return {
            "date": d.isoformat(),
            "provider": provider.to_dict(),
            "windows": [w.to_dict() for w in windows],
            "slots": [format_hhmm(s) for s in slots],
            "appointments": [a.to_dict() for a in appointments],
            "available_count": len(slots),
            "booked_count": len(appointments),
            "booked_minutes": sum(a.duration_minutes for a in appointments),
        }

    def get_booking_statistics(
        self,
        actor_role: Any,
        actor_id: str,
        start_date: date,
        days: int = 7,
    ) -> Dict[str, Any]:
        """Get booking statistics over the appointments the acting user can see."""
        if days <= 0:
            raise ValidationError("Days must be positive", field="days")

        start_date = as_date(start_date)
        end_date = start_date + timedelta(days=days - 1)
        appointments = [
            a for a in self.lifecycle.list_for_actor(actor_role, actor_id)
            if start_date <= a.date <= end_date
        ]

        by_status = Counter(a.status for a in appointments)
        by_day = Counter(a.date for a in appointments)
        total = len(appointments)

        return {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "total": total,
            "by_status": {s.value: by_status.get(s, 0) for s in AppointmentStatus},
            "by_day": [
                {
                    "date": (start_date + timedelta(days=i)).isoformat(),
                    "count": by_day.get(start_date + timedelta(days=i), 0),
                }
                for i in range(days)
            ],
            "recommended": sum(1 for a in appointments if a.recommended),
            "cancellation_rate": by_status[AppointmentStatus.CANCELLED] / total if total else 0,
            "completion_rate": by_status[AppointmentStatus.COMPLETED] / total if total else 0,
        }


# =============================================================================
# Exports
# =============================================================================


__all__ = [
    "SchedulingService",
]
