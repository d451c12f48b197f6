"""
Availability Service

Validates and stores each provider's weekly recurring availability and
answers which windows apply to a given weekday or calendar date.
"""

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from .base import (
    MINUTES_PER_DAY,
    AvailabilityWindow,
    DayOfWeek,
    ValidationError,
    format_hhmm,
    intervals_overlap,
)
from .stores import AvailabilityStore


logger = logging.getLogger(__name__)


def _to_day(day_of_week: Any) -> DayOfWeek:
    try:
        return DayOfWeek(day_of_week)
    except ValueError:
        raise ValidationError(
            f"Invalid day of week {day_of_week!r}, expected 0-6",
            field="day_of_week",
        )


class AvailabilityManager:
    """Manages provider availability windows."""

    def __init__(self, store: AvailabilityStore):
        self._store = store

    def set_weekly_availability(
        self,
        provider_id: str,
        windows: Iterable[AvailabilityWindow],
    ) -> List[AvailabilityWindow]:
        """
        Replace a provider's weekly schedule.

        Every window is validated before anything is written, so a rejected
        schedule leaves the previous one in place.

        Raises:
            ValidationError: empty/inverted window, day outside 0-6, time
                outside the day, window owned by another provider, or two
                windows overlapping on the same day
        """
        normalized: List[AvailabilityWindow] = []
        by_day: Dict[DayOfWeek, List[AvailabilityWindow]] = defaultdict(list)

        for window in windows:
            if window.provider_id != provider_id:
                raise ValidationError(
                    f"Window {window.id} belongs to provider {window.provider_id}, not {provider_id}",
                    field="provider_id",
                )
            day = _to_day(window.day_of_week)
            if not (
                isinstance(window.start_time, int)
                and isinstance(window.end_time, int)
                and 0 <= window.start_time <= MINUTES_PER_DAY
                and 0 <= window.end_time <= MINUTES_PER_DAY
            ):
                raise ValidationError(
                    f"Window {window.id} times must fall within the day",
                    field="start_time",
                )
            if window.start_time >= window.end_time:
                raise ValidationError(
                    f"Window start {format_hhmm(window.start_time)} must be before "
                    f"end {format_hhmm(window.end_time)}",
                    field="start_time",
                )
            if window.day_of_week is not day:
                window = replace(window, day_of_week=day)
            normalized.append(window)
            by_day[day].append(window)

        for day, day_windows in by_day.items():
            day_windows.sort(key=lambda w: w.start_time)
            for previous, current in zip(day_windows, day_windows[1:]):
                if intervals_overlap(
                    previous.start_time, previous.end_time,
                    current.start_time, current.end_time,
                ):
                    raise ValidationError(
                        f"Overlapping availability on {day.name.title()}: "
                        f"{format_hhmm(previous.start_time)}-{format_hhmm(previous.end_time)} and "
                        f"{format_hhmm(current.start_time)}-{format_hhmm(current.end_time)}",
                        field="windows",
                    )

        self._store.replace_windows(provider_id, normalized)

        logger.info(f"Replaced availability for provider {provider_id}: {len(normalized)} windows")

        return self._store.get_all_windows(provider_id)

    def get_window(self, provider_id: str, day_of_week: int) -> Optional[AvailabilityWindow]:
        """Earliest window of the day, or None when the provider is off."""
        windows = self._store.get_windows(provider_id, _to_day(day_of_week))
        return windows[0] if windows else None

    def get_windows(self, provider_id: str, day_of_week: int) -> List[AvailabilityWindow]:
        return self._store.get_windows(provider_id, _to_day(day_of_week))

    def get_windows_for_date(self, provider_id: str, d: date) -> List[AvailabilityWindow]:
        return self._store.get_windows(provider_id, DayOfWeek.of(d))

    def get_weekly_availability(self, provider_id: str) -> List[AvailabilityWindow]:
        return self._store.get_all_windows(provider_id)

    def fits(self, provider_id: str, d: date, start_time: int, duration_minutes: int) -> bool:
        """Check if the interval lies entirely inside one window of that date."""
        return any(
            window.fits(start_time, duration_minutes)
            for window in self.get_windows_for_date(provider_id, d)
        )
