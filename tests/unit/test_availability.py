"""Unit tests for weekly availability."""

from datetime import date

import pytest

from booking_core.scheduling import (
    AvailabilityManager,
    AvailabilityWindow,
    DayOfWeek,
    InMemoryAvailabilityStore,
    ValidationError,
    format_hhmm,
    parse_hhmm,
)


def window(day, start, end, provider_id="2"):
    return AvailabilityWindow.create(provider_id, day, parse_hhmm(start), parse_hhmm(end))


@pytest.fixture
def manager():
    return AvailabilityManager(InMemoryAvailabilityStore())


class TestTimeHelpers:
    """Tests for HH:MM and weekday helpers."""

    def test_parse_and_format(self):
        assert parse_hhmm("09:00") == 540
        assert parse_hhmm("9:30") == 570
        assert parse_hhmm("24:00") == 1440
        assert format_hhmm(540) == "09:00"
        assert format_hhmm(1035) == "17:15"

    @pytest.mark.parametrize("value", ["", "9", "09:60", "25:00", "24:30", "ab:cd", None])
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(ValidationError):
            parse_hhmm(value)

    def test_day_of_week_counts_from_sunday(self):
        assert DayOfWeek.of(date(2025, 3, 2)) == DayOfWeek.SUNDAY
        assert DayOfWeek.of(date(2025, 3, 3)) == DayOfWeek.MONDAY
        assert DayOfWeek.of(date(2025, 3, 8)) == DayOfWeek.SATURDAY


class TestAvailabilityWindow:
    """Tests for window construction."""

    def test_create_assigns_id(self):
        w = window(DayOfWeek.MONDAY, "09:00", "17:00")

        assert w.id.startswith("avail_")
        assert w.duration_minutes == 480
        assert w.to_dict()["start_time"] == "09:00"

    def test_start_must_precede_end(self):
        with pytest.raises(ValidationError):
            window(DayOfWeek.MONDAY, "17:00", "09:00")
        with pytest.raises(ValidationError):
            window(DayOfWeek.MONDAY, "09:00", "09:00")

    def test_invalid_day_rejected(self):
        with pytest.raises(ValidationError):
            AvailabilityWindow.create("2", 7, 540, 600)

    def test_fits(self):
        w = window(DayOfWeek.MONDAY, "09:00", "17:00")

        assert w.fits(parse_hhmm("16:00"), 60)
        assert not w.fits(parse_hhmm("16:30"), 60)
        assert not w.fits(parse_hhmm("08:30"), 60)


class TestAvailabilityManager:
    """Tests for setting and reading weekly availability."""

    def test_set_and_get_window(self, manager):
        manager.set_weekly_availability("2", [window(DayOfWeek.MONDAY, "09:00", "17:00")])

        w = manager.get_window("2", DayOfWeek.MONDAY)

        assert w is not None
        assert (w.start_time, w.end_time) == (540, 1020)
        assert manager.get_window("2", DayOfWeek.TUESDAY) is None

    def test_replace_drops_previous_schedule(self, manager):
        manager.set_weekly_availability("2", [window(DayOfWeek.MONDAY, "09:00", "17:00")])
        manager.set_weekly_availability("2", [window(DayOfWeek.FRIDAY, "10:00", "12:00")])

        assert manager.get_window("2", DayOfWeek.MONDAY) is None
        assert manager.get_window("2", DayOfWeek.FRIDAY) is not None

    def test_multiple_windows_per_day(self, manager):
        manager.set_weekly_availability(
            "2",
            [
                window(DayOfWeek.MONDAY, "13:00", "17:00"),
                window(DayOfWeek.MONDAY, "09:00", "12:00"),
            ],
        )

        windows = manager.get_windows("2", DayOfWeek.MONDAY)

        assert [format_hhmm(w.start_time) for w in windows] == ["09:00", "13:00"]
        assert manager.get_window("2", DayOfWeek.MONDAY).start_time == 540

    def test_overlapping_windows_rejected_atomically(self, manager):
        manager.set_weekly_availability("2", [window(DayOfWeek.MONDAY, "09:00", "17:00")])

        with pytest.raises(ValidationError):
            manager.set_weekly_availability(
                "2",
                [
                    window(DayOfWeek.TUESDAY, "09:00", "12:00"),
                    window(DayOfWeek.TUESDAY, "11:00", "13:00"),
                ],
            )

        # Previous schedule untouched
        assert manager.get_window("2", DayOfWeek.MONDAY) is not None
        assert manager.get_window("2", DayOfWeek.TUESDAY) is None

    def test_adjacent_windows_allowed(self, manager):
        manager.set_weekly_availability(
            "2",
            [
                window(DayOfWeek.MONDAY, "09:00", "12:00"),
                window(DayOfWeek.MONDAY, "12:00", "15:00"),
            ],
        )

        assert len(manager.get_windows("2", DayOfWeek.MONDAY)) == 2

    def test_window_of_another_provider_rejected(self, manager):
        with pytest.raises(ValidationError):
            manager.set_weekly_availability(
                "2", [window(DayOfWeek.MONDAY, "09:00", "17:00", provider_id="4")]
            )

    def test_providers_are_independent(self, manager):
        manager.set_weekly_availability("2", [window(DayOfWeek.MONDAY, "09:00", "17:00")])
        manager.set_weekly_availability(
            "4", [window(DayOfWeek.MONDAY, "10:00", "11:00", provider_id="4")]
        )

        assert manager.get_window("2", DayOfWeek.MONDAY).start_time == 540
        assert manager.get_window("4", DayOfWeek.MONDAY).start_time == 600

    def test_weekly_availability_sorted(self, manager):
        manager.set_weekly_availability(
            "2",
            [
                window(DayOfWeek.FRIDAY, "09:00", "12:00"),
                window(DayOfWeek.MONDAY, "09:00", "17:00"),
                window(DayOfWeek.SUNDAY, "10:00", "14:00"),
            ],
        )

        days = [w.day_of_week for w in manager.get_weekly_availability("2")]

        assert days == [DayOfWeek.SUNDAY, DayOfWeek.MONDAY, DayOfWeek.FRIDAY]

    def test_get_window_rejects_bad_day(self, manager):
        with pytest.raises(ValidationError):
            manager.get_window("2", 9)

    @pytest.mark.parametrize(
        "day, start, end",
        [
            (1, 540, 2000),
            (1, -30, 600),
            (9, 540, 600),
            (-1, 540, 600),
            (1, "09:00", 600),
        ],
    )
    def test_raw_windows_validated(self, manager, day, start, end):
        with pytest.raises(ValidationError):
            manager.set_weekly_availability("2", [AvailabilityWindow("w1", "2", day, start, end)])

        assert manager.get_weekly_availability("2") == []

    def test_raw_overlapping_windows_rejected(self, manager):
        with pytest.raises(ValidationError) as exc_info:
            manager.set_weekly_availability(
                "2",
                [
                    AvailabilityWindow("w1", "2", 1, 540, 720),
                    AvailabilityWindow("w2", "2", 1, 660, 780),
                ],
            )

        assert "Monday" in exc_info.value.message

    def test_raw_window_day_normalized(self, manager):
        manager.set_weekly_availability("2", [AvailabilityWindow("w1", "2", 1, 540, 1020)])

        w = manager.get_window("2", DayOfWeek.MONDAY)

        assert w.id == "w1"
        assert w.day_of_week is DayOfWeek.MONDAY
