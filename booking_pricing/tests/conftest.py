"""
Fixtures partagées pour les tests.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ajouter la racine du projet au path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from booking_pricing.config import PricingConfig
from booking_pricing.engine import DynamicPricingEngine
from booking_pricing.interfaces.memory import (
    InMemoryOccupancyProvider,
    InMemoryRuleRepository,
    InMemorySpecialDateProvider,
)
from booking_pricing.rules import PricingRule


# Dimanche 18 octobre 2026, 10h00 (heure locale du restaurant)
FIXED_NOW = datetime(2026, 10, 18, 10, 0)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def make_rule():
    """Fabrique de règles à partir d'un dict au format admin (camelCase accepté)."""

    def _make_rule(name, priority=0, conditions=None, adjustment=None, **extra):
        data = {
            "id": extra.pop("id", name.lower().replace(" ", "-")),
            "name": name,
            "description": extra.pop("description", f"{name} description"),
            "priority": priority,
            "conditions": conditions or [],
            "adjustment": adjustment or {"type": "fixed_amount", "value": 0},
        }
        data.update(extra)
        return PricingRule.from_dict(data)

    return _make_rule


@pytest.fixture
def weekend_premium_rule(make_rule):
    return make_rule(
        "Weekend Premium",
        priority=10,
        conditions=[{"type": "day_of_week", "operator": "in", "value": [5, 6]}],
        adjustment={"type": "percentage", "value": 25, "minPrice": 10, "maxPrice": 100},
    )


@pytest.fixture
def prime_time_rule(make_rule):
    return make_rule(
        "Prime Time Surcharge",
        priority=20,
        conditions=[{"type": "time_slot", "operator": "between", "value": ["7:00 PM", "8:00 PM"]}],
        adjustment={"type": "fixed_amount", "value": 10},
    )


@pytest.fixture
def special_dates():
    return InMemorySpecialDateProvider()


@pytest.fixture
def occupancy():
    return InMemoryOccupancyProvider(restaurant_capacity=100)


@pytest.fixture
def build_engine(occupancy, special_dates, fixed_now):
    """Construit un moteur en mémoire avec une horloge figée."""

    def _build_engine(rules=None, **kwargs):
        repository = kwargs.pop("rule_repository", None) or InMemoryRuleRepository(rules or [])
        return DynamicPricingEngine(
            rule_repository=repository,
            occupancy_provider=kwargs.pop("occupancy_provider", occupancy),
            special_date_provider=kwargs.pop("special_date_provider", special_dates),
            config=kwargs.pop("config", PricingConfig()),
            clock=kwargs.pop("clock", lambda: fixed_now),
        )

    return _build_engine
