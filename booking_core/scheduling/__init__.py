"""
Scheduling Module

This module provides appointment scheduling for service providers and their
customers: weekly availability, slot generation, conflict-free booking,
role-scoped status transitions and slot recommendations.

Features:
- Availability: weekly recurring windows per provider, several per day
- Slot Generation: candidate start times where the whole service fits
- Conflict Checking: half-open interval overlap against active appointments
- Lifecycle: pending -> confirmed -> completed, cancellable until terminal
- Recommendations: pluggable ranking strategies over the open slots
- Reporting: upcoming appointments, daily schedules, booking statistics

Example usage:

    from datetime import date
    from booking_core.scheduling import (
        AvailabilityWindow,
        DayOfWeek,
        InMemoryDirectory,
        Party,
        Role,
        SchedulingService,
        Service,
        parse_hhmm,
    )

    directory = InMemoryDirectory(
        parties=[
            Party("2", "Sarah Provider", Role.PROVIDER),
            Party("1", "John Customer", Role.CUSTOMER),
        ],
        services=[Service("srvc1", "2", "Consultation", 60)],
    )
    service = SchedulingService(directory=directory)

    # Mondays 09:00-17:00
    service.set_weekly_availability("2", [
        AvailabilityWindow.create("2", DayOfWeek.MONDAY, parse_hhmm("09:00"), parse_hhmm("17:00")),
    ])

    monday = date(2025, 3, 3)
    slots = service.get_available_slots("2", monday, service_id="srvc1")

    appointment = service.book_appointment("1", "2", "srvc1", monday, slots[0])
    service.update_status(appointment.id, Role.PROVIDER, "2", "confirmed")
"""

from .base import (
    # Constants
    MINUTES_PER_DAY,
    # Enums
    ACTIVE_STATUSES,
    AppointmentStatus,
    DayOfWeek,
    Role,
    # Helpers
    format_hhmm,
    intervals_overlap,
    parse_hhmm,
    parse_iso_date,
    as_date,
    # Types
    Appointment,
    AvailabilityWindow,
    Party,
    Service,
    # Exceptions
    Forbidden,
    InvalidTransition,
    NotFound,
    SchedulingError,
    SlotUnavailable,
    ValidationError,
)
from .stores import (
    AppointmentStore,
    AvailabilityStore,
    Directory,
    InMemoryAppointmentStore,
    InMemoryAvailabilityStore,
    InMemoryDirectory,
)
from .availability import AvailabilityManager
from .conflicts import ConflictChecker
from .slots import SlotGenerator
from .lifecycle import (
    APPOINTMENT_MACHINE,
    ROLE_ALLOWED_TARGETS,
    ROLE_VISIBILITY,
    LifecycleManager,
    build_appointment_machine,
    can_view,
)
from .recommendations import (
    STRATEGIES,
    CustomerPreferenceStrategy,
    EarliestFirstStrategy,
    LoadBalancingStrategy,
    RandomSampleStrategy,
    RecommendationContext,
    RecommendationEngine,
    RecommendationStrategy,
    get_strategy,
)
from .service import SchedulingService


__all__ = [
    "MINUTES_PER_DAY",
    # Enums
    "ACTIVE_STATUSES",
    "AppointmentStatus",
    "DayOfWeek",
    "Role",
    # Helpers
    "format_hhmm",
    "intervals_overlap",
    "parse_hhmm",
    "parse_iso_date",
    "as_date",
    # Types
    "Appointment",
    "AvailabilityWindow",
    "Party",
    "Service",
    # Exceptions
    "Forbidden",
    "InvalidTransition",
    "NotFound",
    "SchedulingError",
    "SlotUnavailable",
    "ValidationError",
    # Stores
    "AppointmentStore",
    "AvailabilityStore",
    "Directory",
    "InMemoryAppointmentStore",
    "InMemoryAvailabilityStore",
    "InMemoryDirectory",
    # Components
    "AvailabilityManager",
    "ConflictChecker",
    "SlotGenerator",
    "LifecycleManager",
    "APPOINTMENT_MACHINE",
    "ROLE_ALLOWED_TARGETS",
    "ROLE_VISIBILITY",
    "build_appointment_machine",
    "can_view",
    # Recommendations
    "STRATEGIES",
    "CustomerPreferenceStrategy",
    "EarliestFirstStrategy",
    "LoadBalancingStrategy",
    "RandomSampleStrategy",
    "RecommendationContext",
    "RecommendationEngine",
    "RecommendationStrategy",
    "get_strategy",
    # Main Service
    "SchedulingService",
]
