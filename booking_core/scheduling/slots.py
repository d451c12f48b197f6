"""
Slot Generation Service

Generates discrete candidate start times for a provider on a date from the
provider's availability windows, dropping those that conflict with active
appointments.
"""

import logging
from datetime import date
from typing import List, Optional

from .availability import AvailabilityManager
from .base import ValidationError, as_date
from .conflicts import ConflictChecker


logger = logging.getLogger(__name__)


class SlotGenerator:
    """Generates available time slots."""

    def __init__(
        self,
        availability: AvailabilityManager,
        conflicts: ConflictChecker,
        default_granularity_minutes: int = 30,
    ):
        self._availability = availability
        self._conflicts = conflicts
        self._default_granularity = default_granularity_minutes

    @property
    def default_granularity(self) -> int:
        return self._default_granularity

    def generate_slots(
        self,
        provider_id: str,
        on_date: date,
        granularity_minutes: Optional[int] = None,
        duration_minutes: Optional[int] = None,
    ) -> List[int]:
        """
        Candidate start times (minute-of-day), ascending.

        Algorithm:
            1. Look up the provider's windows for the weekday of ``on_date``
            2. Step through each window every ``granularity_minutes``
            3. Keep a start only if ``start + duration`` still fits the window
            4. Keep a start only if the conflict checker reports it free

        ``duration_minutes`` defaults to the granularity; pass the service
        duration so that a slot is only offered when the whole service fits.
        """
        granularity = self._default_granularity if granularity_minutes is None else granularity_minutes
        duration = granularity if duration_minutes is None else duration_minutes

        if granularity <= 0:
            raise ValidationError("Granularity must be positive", field="granularity_minutes")
        if duration <= 0:
            raise ValidationError("Duration must be positive", field="duration_minutes")

        on_date = as_date(on_date)
        windows = self._availability.get_windows_for_date(provider_id, on_date)
        if not windows:
            return []

        slots: List[int] = []
        for window in windows:
            current = window.start_time
            while current + duration <= window.end_time:
                if self._conflicts.is_free(provider_id, on_date, current, duration):
                    slots.append(current)
                current += granularity

        # Windows never overlap, but keep the output strictly ascending anyway
        slots = sorted(set(slots))

        logger.debug(
            f"Generated {len(slots)} slots for provider {provider_id} on {on_date.isoformat()}"
        )

        return slots
