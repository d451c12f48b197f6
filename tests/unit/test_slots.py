"""Unit tests for slot generation and conflict checking."""

from datetime import datetime

import pytest

from booking_core.scheduling import (
    AppointmentStatus,
    Role,
    ValidationError,
    format_hhmm,
    parse_hhmm,
)


def hhmm(slots):
    return [format_hhmm(s) for s in slots]


class TestSlotGeneration:
    """Tests for candidate slot generation."""

    def test_no_window_returns_empty(self, service, tuesday):
        assert service.get_available_slots("2", tuesday, "srvc1") == []

    def test_unknown_provider_returns_empty(self, service, monday):
        assert service.get_available_slots("unknown", monday) == []

    def test_full_day_with_hour_service(self, service, monday):
        slots = service.get_available_slots("2", monday, "srvc1")

        assert hhmm(slots)[0] == "09:00"
        assert hhmm(slots)[-1] == "16:00"
        assert len(slots) == 15

    def test_every_slot_fits_window(self, service, monday):
        end = parse_hhmm("17:00")

        for slot in service.get_available_slots("2", monday, "srvc1"):
            assert slot + 60 <= end

    def test_duration_defaults_to_granularity(self, service, monday):
        slots = service.slots.generate_slots("2", monday)

        assert hhmm(slots)[-1] == "16:30"
        assert len(slots) == 16

    def test_custom_granularity(self, service, monday):
        slots = service.slots.generate_slots("2", monday, granularity_minutes=60)

        assert hhmm(slots) == [
            "09:00", "10:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00",
        ]

    def test_slots_strictly_ascending(self, service, monday):
        slots = service.get_available_slots("2", monday, "srvc2")

        assert slots == sorted(set(slots))

    def test_booking_removes_overlapping_slots(self, service, booked, monday):
        slots = hhmm(service.get_available_slots("2", monday, "srvc1"))

        assert "09:00" not in slots
        # 09:30-10:30 overlaps 09:00-10:00
        assert "09:30" not in slots
        assert "10:00" in slots

    def test_cancelled_appointment_frees_slots(self, service, booked, monday):
        service.update_status(booked.id, Role.CUSTOMER, "1", AppointmentStatus.CANCELLED)

        slots = hhmm(service.get_available_slots("2", monday, "srvc1"))

        assert "09:00" in slots
        assert "09:30" in slots

    def test_split_windows(self, service, monday):
        from booking_core.scheduling import AvailabilityWindow, DayOfWeek

        service.set_weekly_availability(
            "2",
            [
                AvailabilityWindow.create("2", DayOfWeek.MONDAY, 540, 660),
                AvailabilityWindow.create("2", DayOfWeek.MONDAY, 780, 870),
            ],
        )

        assert hhmm(service.get_available_slots("2", monday, "srvc1")) == [
            "09:00", "09:30", "10:00", "13:00", "13:30",
        ]

    @pytest.mark.parametrize("granularity", [0, -15])
    def test_non_positive_granularity_rejected(self, service, monday, granularity):
        with pytest.raises(ValidationError):
            service.slots.generate_slots("2", monday, granularity_minutes=granularity)

    def test_unknown_service_rejected(self, service, monday):
        with pytest.raises(ValidationError):
            service.get_available_slots("2", monday, "nope")


class TestConflictChecker:
    """Tests for interval conflict detection."""

    def test_free_without_appointments(self, service, monday):
        assert service.is_free("2", monday, parse_hhmm("09:00"), 60)

    def test_booked_interval_not_free(self, service, booked, monday):
        assert not service.is_free("2", monday, parse_hhmm("09:00"), 60)
        assert not service.is_free("2", monday, parse_hhmm("09:30"), 30)
        assert not service.is_free("2", monday, parse_hhmm("08:30"), 60)

    def test_back_to_back_is_free(self, service, booked, monday):
        assert service.is_free("2", monday, parse_hhmm("10:00"), 60)
        assert service.is_free("2", monday, parse_hhmm("08:00"), 60)

    def test_other_provider_unaffected(self, service, booked, monday):
        assert service.is_free("4", monday, parse_hhmm("09:00"), 60)

    def test_other_date_unaffected(self, service, booked, tuesday):
        assert service.is_free("2", tuesday, parse_hhmm("09:00"), 60)

    def test_completed_does_not_block(self, service, booked, monday):
        service.update_status(booked.id, Role.PROVIDER, "2", "confirmed")
        service.update_status(booked.id, Role.PROVIDER, "2", "completed")

        assert service.is_free("2", monday, parse_hhmm("09:00"), 60)

    def test_find_conflicts_returns_overlaps(self, service, booked, monday):
        conflicts = service.conflicts.find_conflicts("2", monday, parse_hhmm("09:45"), 30)

        assert [a.id for a in conflicts] == [booked.id]

    def test_find_conflicts_exclude(self, service, booked, monday):
        conflicts = service.conflicts.find_conflicts(
            "2", monday, parse_hhmm("09:00"), 60, exclude_id=booked.id
        )

        assert conflicts == []

    def test_zero_duration_rejected(self, service, monday):
        with pytest.raises(ValidationError):
            service.conflicts.find_conflicts("2", monday, 540, 0)

    def test_datetime_sees_bookings_of_its_date(self, service, booked):
        evening = datetime(2025, 3, 3, 18, 30)

        assert not service.is_free("2", evening, parse_hhmm("09:00"), 60)
        assert parse_hhmm("09:00") not in service.get_available_slots("2", evening, "srvc1")
