"""
Scheduling Stores Module

Storage interfaces the scheduling engine runs against, plus in-memory
implementations. A durable backend only has to implement the abstract
classes; nothing else in the engine touches storage directly.

Indexes kept by the in-memory stores mirror what a database would need:
availability keyed by ``(provider_id, day_of_week)``, appointments keyed by
``id`` with secondary lookups by ``(provider_id, date)`` and ``customer_id``.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import (
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
)

from .base import (
    Appointment,
    AppointmentStatus,
    AvailabilityWindow,
    DayOfWeek,
    NotFound,
    Party,
    Role,
    Service,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Availability Store
# =============================================================================


class AvailabilityStore(ABC):
    """Weekly recurring availability per provider."""

    @abstractmethod
    def replace_windows(self, provider_id: str, windows: List[AvailabilityWindow]) -> None:
        """Atomically replace every window of a provider."""

    @abstractmethod
    def get_windows(self, provider_id: str, day_of_week: DayOfWeek) -> List[AvailabilityWindow]:
        """Windows for one weekday, sorted by start time."""

    @abstractmethod
    def get_all_windows(self, provider_id: str) -> List[AvailabilityWindow]:
        """Every window of a provider, sorted by day then start time."""


class InMemoryAvailabilityStore(AvailabilityStore):
    """Availability held in a dict keyed by ``(provider_id, day_of_week)``."""

    def __init__(self):
        self._windows: Dict[Tuple[str, DayOfWeek], Tuple[AvailabilityWindow, ...]] = {}
        self._days_by_provider: Dict[str, Set[DayOfWeek]] = defaultdict(set)
        self._lock = threading.Lock()

    def replace_windows(self, provider_id: str, windows: List[AvailabilityWindow]) -> None:
        grouped: Dict[DayOfWeek, List[AvailabilityWindow]] = defaultdict(list)
        for window in windows:
            grouped[window.day_of_week].append(window)

        with self._lock:
            for day in self._days_by_provider.pop(provider_id, set()):
                self._windows.pop((provider_id, day), None)
            for day, day_windows in grouped.items():
                self._windows[(provider_id, day)] = tuple(
                    sorted(day_windows, key=lambda w: w.start_time)
                )
                self._days_by_provider[provider_id].add(day)

    def get_windows(self, provider_id: str, day_of_week: DayOfWeek) -> List[AvailabilityWindow]:
        with self._lock:
            return list(self._windows.get((provider_id, DayOfWeek(day_of_week)), ()))

    def get_all_windows(self, provider_id: str) -> List[AvailabilityWindow]:
        with self._lock:
            days = sorted(self._days_by_provider.get(provider_id, set()))
            result: List[AvailabilityWindow] = []
            for day in days:
                result.extend(self._windows.get((provider_id, day), ()))
            return result


# =============================================================================
# Appointment Store
# =============================================================================


class AppointmentStore(ABC):
    """Appointment records; the source of truth for conflicts and status."""

    @abstractmethod
    def get(self, appointment_id: str) -> Optional[Appointment]:
        """Get appointment by ID."""

    @abstractmethod
    def put(self, appointment: Appointment) -> None:
        """Insert a new appointment. Existing ids are rejected."""

    @abstractmethod
    def compare_and_set_status(
        self,
        appointment_id: str,
        expected: AppointmentStatus,
        new_status: AppointmentStatus,
    ) -> Optional[Appointment]:
        """
        Move an appointment to ``new_status`` only if it is still ``expected``.

        Returns the updated record, or None when the status had changed.
        Raises NotFound when the id is unknown.
        """

    @abstractmethod
    def list_all(self) -> List[Appointment]:
        """Every appointment."""

    @abstractmethod
    def list_for_provider(self, provider_id: str, on_date: Optional[date] = None) -> List[Appointment]:
        """Appointments of a provider, optionally restricted to one date."""

    @abstractmethod
    def list_for_customer(self, customer_id: str) -> List[Appointment]:
        """Appointments of a customer."""

    @abstractmethod
    def provider_lock(self, provider_id: str):
        """Context manager serializing check-and-insert for one provider."""


class InMemoryAppointmentStore(AppointmentStore):
    """Appointments held in dicts with secondary indexes."""

    def __init__(self):
        self._appointments: Dict[str, Appointment] = {}
        self._by_provider_date: Dict[Tuple[str, date], Set[str]] = defaultdict(set)
        self._by_provider: Dict[str, Set[str]] = defaultdict(set)
        self._by_customer: Dict[str, Set[str]] = defaultdict(set)
        self._lock = threading.RLock()
        self._provider_locks: Dict[str, threading.Lock] = {}

    def get(self, appointment_id: str) -> Optional[Appointment]:
        with self._lock:
            return self._appointments.get(appointment_id)

    def put(self, appointment: Appointment) -> None:
        with self._lock:
            if appointment.id in self._appointments:
                raise ValueError(f"Appointment {appointment.id} already exists")
            self._appointments[appointment.id] = appointment
            self._by_provider_date[(appointment.provider_id, appointment.date)].add(appointment.id)
            self._by_provider[appointment.provider_id].add(appointment.id)
            self._by_customer[appointment.customer_id].add(appointment.id)

        logger.debug(f"Stored appointment {appointment.id} for provider {appointment.provider_id}")

    def compare_and_set_status(
        self,
        appointment_id: str,
        expected: AppointmentStatus,
        new_status: AppointmentStatus,
    ) -> Optional[Appointment]:
        with self._lock:
            current = self._appointments.get(appointment_id)
            if current is None:
                raise NotFound(
                    f"Appointment {appointment_id} not found",
                    details={"appointment_id": appointment_id},
                )
            if current.status != expected:
                return None
            updated = replace(current, status=new_status, updated_at=datetime.utcnow())
            self._appointments[appointment_id] = updated
            return updated

    def list_all(self) -> List[Appointment]:
        with self._lock:
            return list(self._appointments.values())

    def list_for_provider(self, provider_id: str, on_date: Optional[date] = None) -> List[Appointment]:
        with self._lock:
            if on_date is not None:
                ids = self._by_provider_date.get((provider_id, on_date), set())
            else:
                ids = self._by_provider.get(provider_id, set())
            return [self._appointments[i] for i in ids]

    def list_for_customer(self, customer_id: str) -> List[Appointment]:
        with self._lock:
            return [self._appointments[i] for i in self._by_customer.get(customer_id, set())]

    @contextmanager
    def provider_lock(self, provider_id: str) -> Iterator[None]:
        with self._lock:
            lock = self._provider_locks.setdefault(provider_id, threading.Lock())
        with lock:
            yield


# =============================================================================
# Directory
# =============================================================================


class Directory(ABC):
    """Read-only lookup of parties and the services providers offer."""

    @abstractmethod
    def get_party(self, party_id: str) -> Optional[Party]:
        """Get a party by ID."""

    @abstractmethod
    def list_parties(self, role: Optional[Role] = None) -> List[Party]:
        """Parties, optionally filtered by role."""

    @abstractmethod
    def get_service(self, service_id: str) -> Optional[Service]:
        """Get a service by ID."""

    @abstractmethod
    def list_services(self, provider_id: Optional[str] = None) -> List[Service]:
        """Services, optionally filtered by provider."""


class InMemoryDirectory(Directory):
    """Parties and services held in dicts."""

    def __init__(
        self,
        parties: Optional[Iterable[Party]] = None,
        services: Optional[Iterable[Service]] = None,
    ):
        self._parties: Dict[str, Party] = {}
        self._services: Dict[str, Service] = {}
        self._services_by_provider: Dict[str, List[str]] = defaultdict(list)

        for party in parties or ():
            self.add_party(party)
        for service in services or ():
            self.add_service(service)

    def add_party(self, party: Party) -> Party:
        self._parties[party.id] = party
        return party

    def add_service(self, service: Service) -> Service:
        previous = self._services.get(service.id)
        if previous is not None and previous.provider_id != service.provider_id:
            self._services_by_provider[previous.provider_id].remove(service.id)
        if previous is None or previous.provider_id != service.provider_id:
            self._services_by_provider[service.provider_id].append(service.id)
        self._services[service.id] = service
        return service

    def get_party(self, party_id: str) -> Optional[Party]:
        return self._parties.get(party_id)

    def list_parties(self, role: Optional[Role] = None) -> List[Party]:
        parties = [p for p in self._parties.values() if role is None or p.role == role]
        return sorted(parties, key=lambda p: p.name)

    def get_service(self, service_id: str) -> Optional[Service]:
        return self._services.get(service_id)

    def list_services(self, provider_id: Optional[str] = None) -> List[Service]:
        if provider_id is None:
            return list(self._services.values())
        return [self._services[i] for i in self._services_by_provider.get(provider_id, [])]


__all__ = [
    "AvailabilityStore",
    "InMemoryAvailabilityStore",
    "AppointmentStore",
    "InMemoryAppointmentStore",
    "Directory",
    "InMemoryDirectory",
]
