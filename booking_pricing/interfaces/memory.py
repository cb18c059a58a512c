"""
Collaborateurs en mémoire.

Utilisés par les tests, les scripts de démonstration et le serveur lorsqu'un
fichier de règles JSON est fourni à la place de Supabase.

Format du fichier :

    {
        "rules": [{"name": "...", "priority": 10, "conditions": [...], "adjustment": {...}}],
        "special_dates": [{"date": "2025-02-14", "name": "Valentine's Day"}],
        "occupancy": [{"date": "2025-02-14", "time_slot": "7:00 PM", "booked_seats": 80}]
    }
"""

import json
import logging
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..rules import OccupancyData, PricingRule, SpecialDate, normalize_rule_keys
from .base import (
    OccupancyProvider,
    RuleRepository,
    SpecialDateProvider,
    compute_occupancy_rate,
)

logger = logging.getLogger(__name__)


class InMemoryRuleRepository(RuleRepository):
    """Dépôt de règles conservé en mémoire (ordre d'insertion préservé)."""

    def __init__(self, rules: Optional[Iterable[PricingRule]] = None, timezone: str = "UTC"):
        self.timezone = timezone
        self._rules: Dict[str, PricingRule] = {}
        for rule in rules or []:
            self.create_rule(rule)

    def get_active_rules(self) -> List[PricingRule]:
        return [rule for rule in self._rules.values() if rule.active]

    def get_all_rules(self) -> List[PricingRule]:
        return list(self._rules.values())

    def create_rule(self, rule: PricingRule) -> str:
        rule_id = rule.id or uuid.uuid4().hex
        if rule_id in self._rules:
            raise ValueError(f"Pricing rule {rule_id} already exists")
        self._rules[rule_id] = replace(rule, id=rule_id)
        return rule_id

    def get_rule(self, rule_id: str) -> Optional[PricingRule]:
        return self._rules.get(rule_id)

    def update_rule(self, rule_id: str, updates: Dict[str, Any]) -> None:
        current = self._rules.get(rule_id)
        if current is None:
            raise KeyError(f"Pricing rule {rule_id} not found")
        merged = current.to_dict()
        merged.update(normalize_rule_keys(updates))
        merged["id"] = rule_id
        self._rules[rule_id] = PricingRule.from_dict(merged, timezone=self.timezone)


class InMemoryOccupancyProvider(OccupancyProvider):
    """Occupation par (date, créneau)."""

    def __init__(self, restaurant_capacity: int = 100, records: Optional[Iterable[OccupancyData]] = None):
        self.restaurant_capacity = restaurant_capacity
        self._records: Dict[Tuple[str, str], OccupancyData] = {}
        for record in records or []:
            self.add_record(record)

    def add_record(self, record: OccupancyData) -> None:
        self._records[(record.date, record.time_slot)] = record

    def get_occupancy_rate(self, date: str, time: str) -> float:
        record = self._records.get((date, time))
        return record.occupancy_rate if record else 0.0

    def get_occupancy(self, date: str, time: str) -> Optional[OccupancyData]:
        return self._records.get((date, time))

    def update_occupancy(self, date: str, time: str, booked_seats: int) -> None:
        self._records[(date, time)] = OccupancyData(
            date=date,
            time_slot=time,
            total_capacity=self.restaurant_capacity,
            booked_seats=booked_seats,
            occupancy_rate=compute_occupancy_rate(booked_seats, self.restaurant_capacity),
        )


class InMemorySpecialDateProvider(SpecialDateProvider):
    """Dates spéciales indexées par date ISO."""

    def __init__(self, special_dates: Optional[Iterable[SpecialDate]] = None):
        self._special_dates: Dict[str, SpecialDate] = {sd.date: sd for sd in special_dates or []}

    def add_special_date(self, special_date: SpecialDate) -> None:
        self._special_dates[special_date.date] = special_date

    def is_special_date(self, date: str) -> bool:
        return date in self._special_dates

    def get_special_date(self, date: str) -> Optional[SpecialDate]:
        return self._special_dates.get(date)


def load_collaborators_from_file(
    path: Union[str, Path],
    restaurant_capacity: int = 100,
    timezone: str = "UTC",
) -> Tuple[InMemoryRuleRepository, InMemoryOccupancyProvider, InMemorySpecialDateProvider]:
    """
    Charge règles, dates spéciales et occupation depuis un fichier JSON.

    Les règles mal formées sont ignorées (avec un warning) ; un fichier
    illisible lève l'exception d'origine.
    """
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    if isinstance(payload, list):
        payload = {"rules": payload}

    rules: List[PricingRule] = []
    for raw_rule in payload.get("rules", []):
        try:
            rules.append(PricingRule.from_dict(raw_rule, timezone=timezone))
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping malformed pricing rule {raw_rule.get('name', '?')!r}: {e}")

    occupancy = InMemoryOccupancyProvider(restaurant_capacity=restaurant_capacity)
    for raw in payload.get("occupancy", []):
        if "occupancy_rate" in raw or "occupancyRate" in raw:
            occupancy.add_record(OccupancyData.from_dict({"total_capacity": restaurant_capacity, **raw}))
        else:
            booked = raw.get("booked_seats", raw.get("bookedSeats", 0))
            occupancy.update_occupancy(raw["date"], raw.get("time_slot", raw.get("timeSlot")), int(booked))

    special_dates = InMemorySpecialDateProvider(
        SpecialDate.from_dict(raw) for raw in payload.get("special_dates", [])
    )

    logger.info(f"Loaded {len(rules)} pricing rules from {path}")
    return InMemoryRuleRepository(rules, timezone=timezone), occupancy, special_dates
