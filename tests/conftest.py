"""Shared pytest fixtures for testing."""

from datetime import date

import pytest

from booking_core.config import EngineSettings
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


PROVIDER_ID = "2"
OTHER_PROVIDER_ID = "4"
CUSTOMER_ID = "1"
OTHER_CUSTOMER_ID = "5"
ADMIN_ID = "3"

# 2025-03-03 is a Monday
MONDAY = date(2025, 3, 3)
TUESDAY = date(2025, 3, 4)


# =============================================================================
# Directory Fixtures
# =============================================================================


@pytest.fixture
def settings() -> EngineSettings:
    """Settings independent of the environment."""
    return EngineSettings(
        slot_granularity_minutes=30,
        recommendation_strategy="earliest",
        max_suggestions=3,
        random_seed=7,
        log_level="debug",
        log_format="simple",
    )


@pytest.fixture
def directory() -> InMemoryDirectory:
    """Two providers, two customers, an admin and their services."""
    return InMemoryDirectory(
        parties=[
            Party(CUSTOMER_ID, "John Customer", Role.CUSTOMER, "customer@example.com"),
            Party(OTHER_CUSTOMER_ID, "Jane Customer", Role.CUSTOMER, "jane@example.com"),
            Party(PROVIDER_ID, "Sarah Provider", Role.PROVIDER, "provider@example.com"),
            Party(OTHER_PROVIDER_ID, "Michael Provider", Role.PROVIDER, "michael@example.com"),
            Party(ADMIN_ID, "Admin User", Role.ADMIN, "admin@example.com"),
        ],
        services=[
            Service("srvc1", PROVIDER_ID, "Consultation", 60, 100.0, "Initial consultation"),
            Service("srvc2", PROVIDER_ID, "Follow-up", 30, 50.0, "Follow-up session"),
            Service("srvc3", OTHER_PROVIDER_ID, "Therapy Session", 45, 80.0),
        ],
    )


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def service(settings, directory) -> SchedulingService:
    """Scheduling service with Monday 09:00-17:00 availability for the provider."""
    svc = SchedulingService(settings=settings, directory=directory)
    svc.set_weekly_availability(
        PROVIDER_ID,
        [
            AvailabilityWindow.create(
                PROVIDER_ID, DayOfWeek.MONDAY, parse_hhmm("09:00"), parse_hhmm("17:00")
            ),
        ],
    )
    return svc


@pytest.fixture
def booked(service):
    """Provider's 09:00 Monday consultation, pending."""
    return service.book_appointment(
        CUSTOMER_ID, PROVIDER_ID, "srvc1", MONDAY, parse_hhmm("09:00")
    )


@pytest.fixture
def monday() -> date:
    return MONDAY


@pytest.fixture
def tuesday() -> date:
    return TUESDAY
