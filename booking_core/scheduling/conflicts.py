"""
Conflict Detection Service

Detects scheduling conflicts (overlaps) between a candidate interval and a
provider's existing appointments. Only ``pending`` and ``confirmed``
appointments hold time; completed and cancelled ones never block.
"""

import logging
from datetime import date
from typing import List, Optional

from .base import Appointment, ValidationError, as_date
from .stores import AppointmentStore


logger = logging.getLogger(__name__)


class ConflictChecker:
    """Answers whether a provider is free for an interval on a date."""

    def __init__(self, store: AppointmentStore, default_duration_minutes: int = 30):
        self._store = store
        self._default_duration = default_duration_minutes

    def find_conflicts(
        self,
        provider_id: str,
        on_date: date,
        start_time: int,
        duration_minutes: Optional[int] = None,
        exclude_id: Optional[str] = None,
    ) -> List[Appointment]:
        """
        Active appointments overlapping ``[start_time, start_time + duration)``.

        Overlap is half-open, so back-to-back appointments do not conflict.
        """
        duration = self._default_duration if duration_minutes is None else duration_minutes
        if duration <= 0:
            raise ValidationError("Duration must be positive", field="duration_minutes")
        end_time = start_time + duration
        on_date = as_date(on_date)

        conflicts = []
        for appointment in self._store.list_for_provider(provider_id, on_date):
            if appointment.id == exclude_id or not appointment.is_active:
                continue
            if appointment.overlaps(start_time, end_time):
                conflicts.append(appointment)

        if conflicts:
            logger.debug(
                f"{len(conflicts)} conflicts for provider {provider_id} on {on_date} at {start_time}"
            )

        return sorted(conflicts, key=lambda a: (a.start_time, a.id))

    def is_free(
        self,
        provider_id: str,
        on_date: date,
        start_time: int,
        duration_minutes: Optional[int] = None,
    ) -> bool:
        return not self.find_conflicts(provider_id, on_date, start_time, duration_minutes)
