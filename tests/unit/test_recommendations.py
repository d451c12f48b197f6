"""Unit tests for slot recommendations."""

from datetime import date

import pytest

from booking_core.scheduling import (
    Appointment,
    CustomerPreferenceStrategy,
    EarliestFirstStrategy,
    LoadBalancingStrategy,
    RandomSampleStrategy,
    RecommendationContext,
    RecommendationStrategy,
    SchedulingService,
    ValidationError,
    format_hhmm,
    get_strategy,
    parse_hhmm,
)


def context(history=(), provider_day=(), duration=60):
    return RecommendationContext(
        customer_id="1",
        provider_id="2",
        date=date(2025, 3, 3),
        duration_minutes=duration,
        customer_history=list(history),
        provider_day=list(provider_day),
    )


def appointment(start, end, appointment_id="appt_x"):
    return Appointment(
        id=appointment_id,
        customer_id="1",
        customer_name="John Customer",
        provider_id="2",
        provider_name="Sarah Provider",
        service_name="Consultation",
        date=date(2025, 2, 24),
        start_time=parse_hhmm(start),
        end_time=parse_hhmm(end),
    )


CANDIDATES = [parse_hhmm(t) for t in ("09:00", "10:00", "11:00", "14:00", "16:00")]


class TestStrategies:
    """Tests for the individual ranking strategies."""

    def test_earliest_first(self):
        ranked = EarliestFirstStrategy().rank(list(reversed(CANDIDATES)), context())

        assert ranked == CANDIDATES

    def test_customer_preference_follows_history(self):
        strategy = CustomerPreferenceStrategy()

        ranked = strategy.rank(CANDIDATES, context(history=[appointment("14:00", "15:00")]))

        assert format_hhmm(ranked[0]) == "14:00"
        assert format_hhmm(ranked[1]) == "16:00"

    def test_customer_preference_without_history(self):
        assert CustomerPreferenceStrategy().rank(CANDIDATES, context()) == CANDIDATES

    def test_load_balancing_prefers_distant_slots(self):
        strategy = LoadBalancingStrategy()

        ranked = strategy.rank(
            CANDIDATES, context(provider_day=[appointment("09:00", "10:00")])
        )

        assert format_hhmm(ranked[0]) == "16:00"
        assert format_hhmm(ranked[-1]) in {"09:00", "10:00"}

    def test_random_sample_subset(self):
        strategy = RandomSampleStrategy(seed=42)

        for _ in range(20):
            picked = strategy.rank(CANDIDATES, context())
            assert 1 <= len(picked) <= 3
            assert set(picked) <= set(CANDIDATES)

    def test_random_sample_seeded(self):
        first = RandomSampleStrategy(seed=3).rank(CANDIDATES, context())
        second = RandomSampleStrategy(seed=3).rank(CANDIDATES, context())

        assert first == second

    def test_registry(self):
        assert isinstance(get_strategy("earliest"), EarliestFirstStrategy)
        assert isinstance(get_strategy("load_balancing"), LoadBalancingStrategy)
        assert isinstance(get_strategy("random_sample", seed=1), RandomSampleStrategy)

        with pytest.raises(ValidationError):
            get_strategy("neural")


class TestRecommendationEngine:
    """Tests for the engine that wraps strategies."""

    def test_suggestions_subset_of_slots(self, service, monday):
        slots = service.get_available_slots("2", monday, "srvc1")

        suggestions = service.suggest_slots("1", "2", monday, service_id="srvc1")

        assert suggestions == slots[:3]

    def test_limit(self, service, monday):
        assert len(service.suggest_slots("1", "2", monday, limit=5)) == 5
        assert service.suggest_slots("1", "2", monday, limit=0) == []

    def test_no_availability(self, service, tuesday):
        assert service.suggest_slots("1", "2", tuesday, service_id="srvc1") == []

    def test_booked_slots_never_suggested(self, service, booked, monday):
        suggestions = service.suggest_slots("5", "2", monday, service_id="srvc1", limit=48)

        assert booked.start_time not in suggestions
        assert parse_hhmm("09:30") not in suggestions

    def test_misbehaving_strategy_filtered(self, settings, directory, monday):
        from booking_core.scheduling import AvailabilityWindow, DayOfWeek

        class Noisy(RecommendationStrategy):
            name = "noisy"

            def rank(self, candidates, ctx):
                return [0, candidates[1], candidates[1], candidates[0], 1439]

        svc = SchedulingService(settings=settings, directory=directory, strategy=Noisy())
        svc.set_weekly_availability(
            "2", [AvailabilityWindow.create("2", DayOfWeek.MONDAY, 540, 1020)]
        )

        suggestions = svc.suggest_slots("1", "2", monday, service_id="srvc1")

        assert suggestions == [parse_hhmm("09:30"), parse_hhmm("09:00")]

    def test_history_drives_preference(self, service, monday):
        service.book_appointment("1", "2", "srvc1", date(2025, 2, 24), parse_hhmm("15:00"))
        service.recommendations.strategy = CustomerPreferenceStrategy()

        suggestions = service.suggest_slots("1", "2", monday, service_id="srvc1")

        assert format_hhmm(suggestions[0]) == "15:00"

    def test_unknown_service(self, service, monday):
        with pytest.raises(ValidationError):
            service.suggest_slots("1", "2", monday, service_id="missing")
