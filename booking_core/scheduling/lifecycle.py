"""
Appointment Lifecycle Module

Booking, status transitions and role-scoped access to appointments.

Status graph::

    pending ──> confirmed ──> completed
       │            │
       └────────────┴──────> cancelled

``completed`` and ``cancelled`` are terminal. Who may take which edge, and
who may see which appointment, is decided here and nowhere else.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from booking_core.core.state_machine import State, StateMachine, TransitionContext, TransitionOutcome

from .availability import AvailabilityManager
from .base import (
    MINUTES_PER_DAY,
    Appointment,
    AppointmentStatus,
    Forbidden,
    InvalidTransition,
    NotFound,
    Role,
    SlotUnavailable,
    ValidationError,
    as_date,
    format_hhmm,
)
from .conflicts import ConflictChecker
from .stores import AppointmentStore, Directory


logger = logging.getLogger(__name__)


# =============================================================================
# Access Tables
# =============================================================================


# Which appointments each role can see and act on
ROLE_VISIBILITY: Dict[Role, Callable[[Appointment, str], bool]] = {
    Role.ADMIN: lambda appointment, actor_id: True,
    Role.PROVIDER: lambda appointment, actor_id: appointment.provider_id == actor_id,
    Role.CUSTOMER: lambda appointment, actor_id: appointment.customer_id == actor_id,
}

# Which target statuses each role may move a visible appointment to
ROLE_ALLOWED_TARGETS: Dict[Role, FrozenSet[AppointmentStatus]] = {
    Role.ADMIN: frozenset(AppointmentStatus),
    Role.PROVIDER: frozenset(AppointmentStatus),
    Role.CUSTOMER: frozenset({AppointmentStatus.CANCELLED}),
}

# Initial statuses a booking may be created with
BOOKABLE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})


def can_view(role: Optional[Role], actor_id: str, appointment: Appointment) -> bool:
    if role is None:
        return False
    return ROLE_VISIBILITY[role](appointment, actor_id)


def actor_may_transition(context: TransitionContext) -> bool:
    """Guard: the acting user owns the appointment and may reach the target."""
    role: Optional[Role] = context.get("role")
    appointment: Appointment = context.get("appointment")
    if not can_view(role, context.get("actor_id"), appointment):
        return False
    return AppointmentStatus(context.to_state) in ROLE_ALLOWED_TARGETS[role]


def build_appointment_machine() -> StateMachine:
    """The appointment status graph, every edge guarded by ``actor_may_transition``."""
    machine = StateMachine("appointment")
    machine.add_state(State(AppointmentStatus.PENDING.value, is_initial=True))
    machine.add_state(State(AppointmentStatus.CONFIRMED.value, is_initial=True))
    machine.add_state(State(AppointmentStatus.COMPLETED.value, is_final=True))
    machine.add_state(State(AppointmentStatus.CANCELLED.value, is_final=True))

    guards = [actor_may_transition]
    machine.add_transition(AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value, guards)
    machine.add_transition(AppointmentStatus.PENDING.value, AppointmentStatus.CANCELLED.value, guards)
    machine.add_transition(AppointmentStatus.CONFIRMED.value, AppointmentStatus.COMPLETED.value, guards)
    machine.add_transition(AppointmentStatus.CONFIRMED.value, AppointmentStatus.CANCELLED.value, guards)
    return machine


APPOINTMENT_MACHINE = build_appointment_machine()


def _parse_status(value: Any) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown appointment status {value!r}", field="status")


def _sort_key(appointment: Appointment):
    return (appointment.date, appointment.start_time, appointment.id)


# =============================================================================
# Lifecycle Manager
# =============================================================================


class LifecycleManager:
    """Creates appointments and moves them through their statuses."""

    def __init__(
        self,
        store: AppointmentStore,
        directory: Directory,
        availability: AvailabilityManager,
        conflicts: ConflictChecker,
        machine: StateMachine = APPOINTMENT_MACHINE,
    ):
        self._store = store
        self._directory = directory
        self._availability = availability
        self._conflicts = conflicts
        self._machine = machine

    # -------------------------------------------------------------------------
    # Booking
    # -------------------------------------------------------------------------

    def book(
        self,
        customer_id: str,
        provider_id: str,
        service_id: str,
        on_date: date,
        start_time: int,
        notes: Optional[str] = None,
        recommended: bool = False,
        initial_status: AppointmentStatus = AppointmentStatus.PENDING,
    ) -> Appointment:
        """
        Book an appointment.

        The availability and conflict checks run under the provider's lock
        together with the insert, so two racing requests for overlapping
        time cannot both succeed.

        Raises:
            ValidationError: unknown party/service, customer without the
                customer role, service of another provider, bad date, start
                time or initial status
            SlotUnavailable: outside availability or overlapping an active
                appointment
        """
        on_date = as_date(on_date)
        initial_status = _parse_status(initial_status)
        if initial_status not in BOOKABLE_STATUSES:
            raise ValidationError(
                f"Appointments cannot be created as {initial_status.value}",
                field="status",
            )
        if not isinstance(start_time, int) or not 0 <= start_time < MINUTES_PER_DAY:
            raise ValidationError(f"Invalid start time {start_time!r}", field="start_time")

        provider = self._directory.get_party(provider_id)
        if provider is None or provider.role != Role.PROVIDER:
            raise ValidationError(f"Unknown provider {provider_id}", field="provider_id")

        customer = self._directory.get_party(customer_id)
        if customer is None:
            raise ValidationError(f"Unknown customer {customer_id}", field="customer_id")
        if customer.role != Role.CUSTOMER:
            raise ValidationError(f"Party {customer_id} is not a customer", field="customer_id")

        service = self._directory.get_service(service_id)
        if service is None:
            raise ValidationError(f"Unknown service {service_id}", field="service_id")
        if service.provider_id != provider_id:
            raise ValidationError(
                f"Service {service_id} is not offered by provider {provider_id}",
                field="service_id",
            )

        duration = service.duration_minutes
        details = {
            "provider_id": provider_id,
            "date": on_date.isoformat(),
            "start_time": format_hhmm(start_time),
        }

        with self._store.provider_lock(provider_id):
            if not self._availability.fits(provider_id, on_date, start_time, duration):
                logger.info(
                    f"Rejected booking outside availability: provider {provider_id} "
                    f"{on_date.isoformat()} {format_hhmm(start_time)}"
                )
                raise SlotUnavailable(
                    f"{format_hhmm(start_time)} on {on_date.isoformat()} is outside "
                    f"the provider's availability",
                    details=details,
                )

            conflicts = self._conflicts.find_conflicts(provider_id, on_date, start_time, duration)
            if conflicts:
                logger.info(
                    f"Rejected booking for provider {provider_id} {on_date.isoformat()} "
                    f"{format_hhmm(start_time)}: overlaps {len(conflicts)} appointments"
                )
                raise SlotUnavailable(
                    f"{format_hhmm(start_time)} on {on_date.isoformat()} is no longer available",
                    details=details,
                )

            now = datetime.utcnow()
            appointment = Appointment(
                id=f"appt_{uuid.uuid4().hex[:18]}",
                customer_id=customer.id,
                customer_name=customer.name,
                provider_id=provider.id,
                provider_name=provider.name,
                service_name=service.name,
                date=on_date,
                start_time=start_time,
                end_time=start_time + duration,
                status=initial_status,
                notes=notes,
                recommended=recommended,
                created_at=now,
                updated_at=now,
            )
            self._store.put(appointment)

        logger.info(
            f"Booked appointment {appointment.id} for customer {customer_id} with provider "
            f"{provider_id} on {on_date.isoformat()} at {format_hhmm(start_time)}"
        )

        return appointment

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def transition(
        self,
        appointment_id: str,
        actor_role: Any,
        actor_id: str,
        new_status: Any,
    ) -> Appointment:
        """
        Move an appointment to ``new_status`` on behalf of an acting user.

        Raises:
            NotFound: unknown appointment id
            InvalidTransition: the edge is not in the status graph, or the
                status changed underneath this call
            Forbidden: the acting user may not take this edge
        """
        target = _parse_status(new_status)

        appointment = self._store.get(appointment_id)
        if appointment is None:
            raise NotFound(
                f"Appointment {appointment_id} not found",
                details={"appointment_id": appointment_id},
            )

        role = Role.parse(actor_role)
        result = self._machine.evaluate(
            appointment.status.value,
            target.value,
            {"role": role, "actor_id": actor_id, "appointment": appointment},
        )

        if result.outcome in (TransitionOutcome.NO_SUCH_EDGE, TransitionOutcome.UNKNOWN_STATE):
            logger.warning(
                f"Invalid transition {appointment.status.value} -> {target.value} "
                f"requested for appointment {appointment_id}"
            )
            raise InvalidTransition(
                f"Cannot move appointment from {appointment.status.value} to {target.value}",
                details={"from": appointment.status.value, "to": target.value},
            )

        if result.outcome == TransitionOutcome.GUARD_REJECTED:
            logger.warning(
                f"Forbidden transition {appointment.status.value} -> {target.value} on "
                f"appointment {appointment_id} by {actor_role} {actor_id}"
            )
            raise Forbidden(
                f"Not allowed to move appointment {appointment_id} to {target.value}",
                details={"appointment_id": appointment_id},
            )

        updated = self._store.compare_and_set_status(appointment_id, appointment.status, target)
        if updated is None:
            logger.warning(f"Appointment {appointment_id} changed status concurrently")
            raise InvalidTransition(
                f"Appointment {appointment_id} is no longer {appointment.status.value}",
                details={"from": appointment.status.value, "to": target.value},
            )

        logger.info(
            f"Appointment {appointment_id}: {appointment.status.value} -> {target.value} "
            f"by {role.value} {actor_id}"
        )

        return updated

    def allowed_transitions(
        self,
        appointment_id: str,
        actor_role: Any,
        actor_id: str,
    ) -> List[AppointmentStatus]:
        """Statuses the acting user could move the appointment to right now."""
        appointment = self.get(appointment_id, actor_role, actor_id)
        role = Role.parse(actor_role)
        variables = {"role": role, "actor_id": actor_id, "appointment": appointment}
        return [
            AppointmentStatus(target)
            for target in self._machine.targets(appointment.status.value)
            if self._machine.evaluate(appointment.status.value, target, variables).success
        ]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_for_actor(self, actor_role: Any, actor_id: str) -> List[Appointment]:
        """Appointments visible to the acting user, ordered by date and time."""
        role = Role.parse(actor_role)
        if role is None:
            return []

        if role == Role.ADMIN:
            candidates = self._store.list_all()
        elif role == Role.PROVIDER:
            candidates = self._store.list_for_provider(actor_id)
        else:
            candidates = self._store.list_for_customer(actor_id)

        visible = [a for a in candidates if can_view(role, actor_id, a)]
        return sorted(visible, key=_sort_key)

    def get(self, appointment_id: str, actor_role: Any, actor_id: str) -> Appointment:
        """Single appointment, hidden from users who cannot see it."""
        appointment = self._store.get(appointment_id)
        if appointment is None or not can_view(Role.parse(actor_role), actor_id, appointment):
            raise NotFound(
                f"Appointment {appointment_id} not found",
                details={"appointment_id": appointment_id},
            )
        return appointment
