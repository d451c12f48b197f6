"""
Scheduling Base Types Module

This module defines core types for appointment scheduling: weekly
availability windows, services, parties, appointments, and the exceptions
raised by the scheduling engine.

Times of day are minute-of-day integers (``0`` is midnight, ``1440`` is the
end of the day) so that comparisons are numeric rather than lexicographic.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


MINUTES_PER_DAY = 24 * 60

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


# =============================================================================
# Enums
# =============================================================================


class AppointmentStatus(str, Enum):
    """Status of an appointment."""

    PENDING = "pending"  # Awaiting provider confirmation
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that hold a provider's time
ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})


class Role(str, Enum):
    """Roles an acting user can have."""

    ADMIN = "admin"
    PROVIDER = "provider"
    CUSTOMER = "customer"

    @classmethod
    def parse(cls, value: Any) -> Optional["Role"]:
        """Return the matching role, or None for anything unrecognised."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


class DayOfWeek(IntEnum):
    """Days of the week, numbered from Sunday."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def of(cls, d: date) -> "DayOfWeek":
        # date.weekday() counts from Monday
        return cls((d.weekday() + 1) % 7)


# =============================================================================
# Time helpers
# =============================================================================


def parse_hhmm(value: str) -> int:
    """Convert ``"HH:MM"`` to minutes since midnight."""
    match = _HHMM_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM", field="time")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60 or hours > 24 or (hours == 24 and minutes != 0):
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM", field="time")
    return hours * 60 + minutes


def format_hhmm(minute_of_day: int) -> str:
    """Convert minutes since midnight to ``"HH:MM"``."""
    hours, minutes = divmod(minute_of_day, 60)
    return f"{hours:02d}:{minutes:02d}"


def parse_iso_date(value: str) -> date:
    """Convert ``"YYYY-MM-DD"`` to a date."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD", field="date")


def as_date(value: Any) -> date:
    """Calendar date of ``value``; datetimes are truncated to their date."""
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise ValidationError(f"Invalid date {value!r}, expected a date", field="date")
    return value


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap: ``[start_a, end_a)`` vs ``[start_b, end_b)``."""
    return start_a < end_b and start_b < end_a


# =============================================================================
# Availability
# =============================================================================


@dataclass(frozen=True)
class AvailabilityWindow:
    """A weekly recurring block of time a provider accepts bookings in."""

    id: str
    provider_id: str
    day_of_week: DayOfWeek
    start_time: int
    end_time: int

    @classmethod
    def create(
        cls,
        provider_id: str,
        day_of_week: int,
        start_time: int,
        end_time: int,
    ) -> "AvailabilityWindow":
        """Validate and build a window with a fresh id."""
        try:
            day = DayOfWeek(day_of_week)
        except ValueError:
            raise ValidationError(
                f"Invalid day of week {day_of_week!r}, expected 0-6",
                field="day_of_week",
            )
        if not (0 <= start_time <= MINUTES_PER_DAY and 0 <= end_time <= MINUTES_PER_DAY):
            raise ValidationError(
                "Window times must fall within the day",
                field="start_time",
                details={"start_time": start_time, "end_time": end_time},
            )
        if start_time >= end_time:
            raise ValidationError(
                f"Window start {format_hhmm(start_time)} must be before end {format_hhmm(end_time)}",
                field="start_time",
            )
        return cls(
            id=f"avail_{uuid.uuid4().hex[:12]}",
            provider_id=provider_id,
            day_of_week=day,
            start_time=start_time,
            end_time=end_time,
        )

    @property
    def duration_minutes(self) -> int:
        return self.end_time - self.start_time

    def fits(self, start_time: int, duration_minutes: int) -> bool:
        """Check if ``[start_time, start_time + duration)`` lies inside the window."""
        return self.start_time <= start_time and start_time + duration_minutes <= self.end_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "day_of_week": int(self.day_of_week),
            "start_time": format_hhmm(self.start_time),
            "end_time": format_hhmm(self.end_time),
        }


# =============================================================================
# Directory
# =============================================================================


@dataclass(frozen=True)
class Party:
    """A customer, provider or administrator known to the system."""

    id: str
    name: str
    role: Role
    email: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "email": self.email,
        }


@dataclass(frozen=True)
class Service:
    """A bookable service offered by a provider."""

    id: str
    provider_id: str
    name: str
    duration_minutes: int
    price: float = 0.0
    description: str = ""

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValidationError(
                f"Service {self.id} must have a positive duration",
                field="duration_minutes",
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "name": self.name,
            "duration_minutes": self.duration_minutes,
            "price": self.price,
            "description": self.description,
        }


# =============================================================================
# Appointment Types
# =============================================================================


@dataclass(frozen=True)
class Appointment:
    """An appointment/booking.

    Records are immutable; status changes produce a new record through the
    appointment store's compare-and-swap.
    """

    id: str
    customer_id: str
    customer_name: str
    provider_id: str
    provider_name: str
    service_name: str
    date: date
    start_time: int
    end_time: int
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None
    recommended: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def duration_minutes(self) -> int:
        return self.end_time - self.start_time

    @property
    def is_active(self) -> bool:
        """Check if appointment still holds the provider's time."""
        return self.status in ACTIVE_STATUSES

    def overlaps(self, start_time: int, end_time: int) -> bool:
        return intervals_overlap(self.start_time, self.end_time, start_time, end_time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "provider_id": self.provider_id,
            "provider_name": self.provider_name,
            "service_name": self.service_name,
            "date": self.date.isoformat(),
            "start_time": format_hhmm(self.start_time),
            "end_time": format_hhmm(self.end_time),
            "duration_minutes": self.duration_minutes,
            "status": self.status.value,
            "notes": self.notes,
            "recommended": self.recommended,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


# =============================================================================
# Exceptions
# =============================================================================


class SchedulingError(Exception):
    """Base exception for scheduling errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(SchedulingError):
    """Malformed input or unknown provider/customer/service."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.field = field
        super().__init__(message, details)


class SlotUnavailable(SchedulingError):
    """Requested time is outside availability or already taken."""
    pass


class InvalidTransition(SchedulingError):
    """Status change is not an edge of the appointment state machine."""
    pass


class Forbidden(SchedulingError):
    """Acting user is not allowed to see or change the appointment."""
    pass


class NotFound(SchedulingError):
    """Referenced record does not exist."""
    pass


__all__ = [
    "MINUTES_PER_DAY",
    # Enums
    "AppointmentStatus",
    "ACTIVE_STATUSES",
    "Role",
    "DayOfWeek",
    # Helpers
    "parse_hhmm",
    "format_hhmm",
    "parse_iso_date",
    "as_date",
    "intervals_overlap",
    # Types
    "AvailabilityWindow",
    "Party",
    "Service",
    "Appointment",
    # Exceptions
    "SchedulingError",
    "ValidationError",
    "SlotUnavailable",
    "InvalidTransition",
    "Forbidden",
    "NotFound",
]
