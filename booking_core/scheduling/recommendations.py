"""
Slot Recommendation Module

Pluggable ranking of candidate slots for a customer/provider/date.

Strategies only order (and may drop) candidates. ``RecommendationEngine``
re-filters whatever a strategy returns against the candidate list, removes
duplicates and truncates, so callers always get a best-first subset of the
available slots, or an empty list when nothing is free.
"""

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Type

from .base import Appointment, AppointmentStatus, ValidationError, as_date
from .slots import SlotGenerator
from .stores import AppointmentStore, Directory


logger = logging.getLogger(__name__)


# =============================================================================
# Context
# =============================================================================


@dataclass
class RecommendationContext:
    """What a strategy may look at besides the candidate list."""

    customer_id: str
    provider_id: str
    date: date
    duration_minutes: int
    # Customer's earlier non-cancelled bookings, any provider
    customer_history: List[Appointment] = field(default_factory=list)
    # Provider's active appointments on ``date``
    provider_day: List[Appointment] = field(default_factory=list)


# =============================================================================
# Strategies
# =============================================================================


class RecommendationStrategy(ABC):
    """Orders candidate start times best first."""

    name: str = ""

    @abstractmethod
    def rank(self, candidates: List[int], context: RecommendationContext) -> List[int]:
        """Return candidates (or a subset) best first."""


class EarliestFirstStrategy(RecommendationStrategy):
    """Deterministic baseline: earliest available slot first."""

    name = "earliest"

    def rank(self, candidates: List[int], context: RecommendationContext) -> List[int]:
        return sorted(candidates)


class CustomerPreferenceStrategy(RecommendationStrategy):
    """
    Prefers times close to when the customer usually books.

    Each candidate is scored by its distance to the nearest historical start
    time; customers without history get earliest-first.
    """

    name = "customer_preference"

    def rank(self, candidates: List[int], context: RecommendationContext) -> List[int]:
        history = [a.start_time for a in context.customer_history]
        if not history:
            return sorted(candidates)

        def distance(slot: int) -> int:
            return min(abs(slot - previous) for previous in history)

        return sorted(candidates, key=lambda slot: (distance(slot), slot))


class LoadBalancingStrategy(RecommendationStrategy):
    """
    Spreads the provider's day: prefers slots far from existing bookings.

    A candidate's score is the gap between its interval and the nearest
    active appointment; an empty day ranks earliest-first.
    """

    name = "load_balancing"

    def rank(self, candidates: List[int], context: RecommendationContext) -> List[int]:
        booked = [(a.start_time, a.end_time) for a in context.provider_day]
        if not booked:
            return sorted(candidates)

        def gap(slot: int) -> int:
            slot_end = slot + context.duration_minutes
            return min(
                max(start - slot_end, slot - end, 0)
                for start, end in booked
            )

        return sorted(candidates, key=lambda slot: (-gap(slot), slot))


class RandomSampleStrategy(RecommendationStrategy):
    """Picks one to three available slots at random."""

    name = "random_sample"

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def rank(self, candidates: List[int], context: RecommendationContext) -> List[int]:
        if not candidates:
            return []
        count = min(self._random.randint(1, 3), len(candidates))
        return self._random.sample(candidates, count)


STRATEGIES: Dict[str, Type[RecommendationStrategy]] = {
    EarliestFirstStrategy.name: EarliestFirstStrategy,
    CustomerPreferenceStrategy.name: CustomerPreferenceStrategy,
    LoadBalancingStrategy.name: LoadBalancingStrategy,
    RandomSampleStrategy.name: RandomSampleStrategy,
}


def get_strategy(name: str, seed: Optional[int] = None) -> RecommendationStrategy:
    """Instantiate a registered strategy by name."""
    strategy_cls = STRATEGIES.get(name)
    if strategy_cls is None:
        raise ValidationError(
            f"Unknown recommendation strategy {name!r}",
            field="recommendation_strategy",
            details={"available": sorted(STRATEGIES)},
        )
    if strategy_cls is RandomSampleStrategy:
        return RandomSampleStrategy(seed)
    return strategy_cls()


# =============================================================================
# Engine
# =============================================================================


class RecommendationEngine:
    """Runs a strategy over freshly generated slots."""

    def __init__(
        self,
        slots: SlotGenerator,
        store: AppointmentStore,
        directory: Directory,
        strategy: Optional[RecommendationStrategy] = None,
        max_suggestions: int = 3,
    ):
        self._slots = slots
        self._store = store
        self._directory = directory
        self.strategy = strategy or EarliestFirstStrategy()
        self._max_suggestions = max_suggestions

    def suggest(
        self,
        customer_id: str,
        provider_id: str,
        on_date: date,
        service_id: Optional[str] = None,
        granularity_minutes: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[int]:
        """
        Recommended start times, best first.

        Always a subset of ``SlotGenerator.generate_slots`` for the same
        arguments; empty when the provider has nothing free.
        """
        on_date = as_date(on_date)
        duration = None
        if service_id is not None:
            service = self._directory.get_service(service_id)
            if service is None:
                raise ValidationError(f"Unknown service {service_id}", field="service_id")
            duration = service.duration_minutes

        candidates = self._slots.generate_slots(
            provider_id, on_date, granularity_minutes, duration
        )
        if not candidates:
            return []

        context = RecommendationContext(
            customer_id=customer_id,
            provider_id=provider_id,
            date=on_date,
            duration_minutes=duration or granularity_minutes or self._slots.default_granularity,
            customer_history=[
                a for a in self._store.list_for_customer(customer_id)
                if a.status != AppointmentStatus.CANCELLED
            ],
            provider_day=[
                a for a in self._store.list_for_provider(provider_id, on_date)
                if a.is_active
            ],
        )

        allowed = set(candidates)
        ranked: List[int] = []
        for slot in self.strategy.rank(list(candidates), context):
            if slot in allowed and slot not in ranked:
                ranked.append(slot)

        limit = self._max_suggestions if limit is None else limit
        suggestions = ranked[:max(limit, 0)]

        logger.debug(
            f"{self.strategy.name} suggested {len(suggestions)} of {len(candidates)} slots "
            f"for customer {customer_id} with provider {provider_id}"
        )

        return suggestions
