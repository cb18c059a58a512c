"""
Modèle de données du moteur de tarification.

Ce module définit :
- les règles de tarification (`PricingRule`) et leurs conditions / ajustements,
- le contexte d'une réservation (`BookingDetails`),
- le résultat immuable d'un calcul (`PricingCalculation`),
- les faits fournis par les collaborateurs (`OccupancyData`, `SpecialDate`).

La forme de `PricingCondition.value` dépend de l'opérateur ; elle est validée
et normalisée à la construction (chargement de la règle), pas à l'évaluation :
- `between` -> tuple ordonné `(bas, haut)`,
- `in` -> `frozenset`,
- autres opérateurs -> scalaire,
- `special_date` -> booléen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from numbers import Number
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dateutil import parser as date_parser

from .config import to_local_naive


class ConditionType(Enum):
    """Attribut de réservation testé par une condition."""
    TIME_SLOT = "time_slot"
    DAY_OF_WEEK = "day_of_week"
    PARTY_SIZE = "party_size"
    ADVANCE_BOOKING = "advance_booking"
    OCCUPANCY = "occupancy"
    SPECIAL_DATE = "special_date"


class Operator(Enum):
    """Opérateurs de comparaison."""
    EQUALS = "equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    BETWEEN = "between"
    IN = "in"


class AdjustmentType(Enum):
    """Nature de l'ajustement appliqué au prix courant."""
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    MULTIPLIER = "multiplier"


NUMERIC_CONDITIONS = {
    ConditionType.DAY_OF_WEEK,
    ConditionType.PARTY_SIZE,
    ConditionType.ADVANCE_BOOKING,
    ConditionType.OCCUPANCY,
}

# Clés camelCase (format JSON / front) -> clés internes
_RULE_KEY_ALIASES = {
    "validFrom": "valid_from",
    "validUntil": "valid_until",
}
_ADJUSTMENT_KEY_ALIASES = {
    "minPrice": "min_price",
    "maxPrice": "max_price",
    "roundTo": "round_to",
}


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _is_finite_number(value: Any) -> bool:
    # NaN / inf passent json.load mais ne peuvent pas être arrondis
    return _is_number(value) and math.isfinite(value)


def _optional_float(value: Any, name: str) -> Optional[float]:
    if value is None:
        return None
    if not _is_finite_number(value):
        raise ValueError(f"{name} must be a finite number, got {value!r}")
    return float(value)


def _parse_timestamp(value: Any, timezone: str = "UTC") -> Optional[datetime]:
    """Convertit une borne de validité (datetime, date ou ISO 8601) en heure locale naïve."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_local_naive(value, timezone)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return to_local_naive(date_parser.isoparse(value), timezone)
    raise ValueError(f"Invalid timestamp: {value!r}")


def normalize_rule_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Ramène les clés camelCase d'une règle (ou d'une mise à jour partielle) en snake_case."""
    normalized = {_RULE_KEY_ALIASES.get(key, key): value for key, value in data.items()}
    adjustment = normalized.get("adjustment")
    if isinstance(adjustment, Mapping):
        normalized["adjustment"] = {
            _ADJUSTMENT_KEY_ALIASES.get(key, key): value for key, value in adjustment.items()
        }
    return normalized


@dataclass(frozen=True)
class PricingCondition:
    """Condition élémentaire d'une règle ; les conditions d'une règle sont combinées par ET."""

    type: ConditionType
    operator: Operator
    value: Any = None

    def __post_init__(self) -> None:
        condition_type = ConditionType(self.type)
        operator = Operator(self.operator)
        object.__setattr__(self, "type", condition_type)
        object.__setattr__(self, "operator", operator)
        object.__setattr__(self, "value", self._narrow_value(condition_type, operator, self.value))

    @staticmethod
    def _check_member(condition_type: ConditionType, member: Any) -> Any:
        if condition_type in NUMERIC_CONDITIONS and not _is_number(member):
            raise ValueError(f"{condition_type.value} expects numeric values, got {member!r}")
        if condition_type == ConditionType.TIME_SLOT and not isinstance(member, str):
            raise ValueError(f"time_slot expects 'H:MM AM|PM' strings, got {member!r}")
        return member

    @classmethod
    def _narrow_value(cls, condition_type: ConditionType, operator: Operator, value: Any) -> Any:
        # Les dates spéciales ne sont pas ordonnées : seule l'égalité booléenne a un sens
        if condition_type == ConditionType.SPECIAL_DATE:
            if value is None:
                return True
            if not isinstance(value, bool):
                raise ValueError(f"special_date expects a boolean value, got {value!r}")
            return value

        if operator == Operator.BETWEEN:
            if isinstance(value, (str, bytes, Mapping)) or not hasattr(value, "__iter__"):
                raise ValueError(f"'between' expects a [low, high] pair, got {value!r}")
            pair = tuple(value)
            if len(pair) != 2:
                raise ValueError(f"'between' expects exactly 2 values, got {len(pair)}")
            return tuple(cls._check_member(condition_type, member) for member in pair)

        if operator == Operator.IN:
            if isinstance(value, (str, bytes, Mapping)) or not hasattr(value, "__iter__"):
                raise ValueError(f"'in' expects a collection of values, got {value!r}")
            return frozenset(cls._check_member(condition_type, member) for member in value)

        if isinstance(value, (list, tuple, set, frozenset, dict)):
            raise ValueError(f"'{operator.value}' expects a scalar value, got {value!r}")
        return cls._check_member(condition_type, value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PricingCondition":
        if "type" not in data or "operator" not in data:
            raise ValueError(f"Condition requires 'type' and 'operator': {dict(data)!r}")
        return cls(type=data["type"], operator=data["operator"], value=data.get("value"))

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if isinstance(value, tuple):
            value = list(value)
        elif isinstance(value, frozenset):
            value = sorted(value, key=str)
        return {"type": self.type.value, "operator": self.operator.value, "value": value}


@dataclass(frozen=True)
class PriceAdjustment:
    """
    Ajustement appliqué quand une règle correspond.

    `min_price` / `max_price` bornent le prix courant juste après le delta de la règle.
    `round_to` est conservé tel quel mais n'est pas utilisé par le composeur.
    """

    type: AdjustmentType
    value: float
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    round_to: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", AdjustmentType(self.type))
        if not _is_finite_number(self.value):
            raise ValueError(f"Adjustment value must be a finite number, got {self.value!r}")
        object.__setattr__(self, "value", float(self.value))
        object.__setattr__(self, "min_price", _optional_float(self.min_price, "min_price"))
        object.__setattr__(self, "max_price", _optional_float(self.max_price, "max_price"))
        object.__setattr__(self, "round_to", _optional_float(self.round_to, "round_to"))
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError(f"min_price ({self.min_price}) is greater than max_price ({self.max_price})")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PriceAdjustment":
        if "type" not in data or "value" not in data:
            raise ValueError(f"Adjustment requires 'type' and 'value': {dict(data)!r}")
        return cls(
            type=data["type"],
            value=data["value"],
            min_price=_pick(data, "min_price", "minPrice"),
            max_price=_pick(data, "max_price", "maxPrice"),
            round_to=_pick(data, "round_to", "roundTo"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "value": self.value,
            "min_price": self.min_price,
            "max_price": self.max_price,
            "round_to": self.round_to,
        }


@dataclass
class PricingRule:
    """
    Règle de tarification configurable.

    Créée / éditée par une interface d'administration externe ;
    en lecture seule pour le moteur.
    """

    id: str
    name: str
    adjustment: PriceAdjustment
    description: str = ""
    active: bool = True
    priority: int = 0
    conditions: List[PricingCondition] = field(default_factory=list)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None

    def __post_init__(self) -> None:
        # Les bornes sont comparées à l'horloge locale naïve du moteur
        self.valid_from = _parse_timestamp(self.valid_from)
        self.valid_until = _parse_timestamp(self.valid_until)
        if not _is_finite_number(self.priority):
            raise ValueError(f"priority must be a finite number, got {self.priority!r}")
        self.priority = int(self.priority)

    def is_valid_at(self, moment: datetime) -> bool:
        """Vrai si `moment` est dans la fenêtre de validité (bornes incluses)."""
        if self.valid_from is not None and moment < self.valid_from:
            return False
        if self.valid_until is not None and moment > self.valid_until:
            return False
        return True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], timezone: str = "UTC") -> "PricingRule":
        """
        Construit une règle depuis un dict (ligne Supabase, JSON d'admin, fichier de règles).

        Lève ValueError si la règle est mal formée.
        """
        data = normalize_rule_keys(data)
        if not data.get("name"):
            raise ValueError("Pricing rule requires a name")
        adjustment = data.get("adjustment")
        if isinstance(adjustment, Mapping):
            adjustment = PriceAdjustment.from_dict(adjustment)
        if not isinstance(adjustment, PriceAdjustment):
            raise ValueError(f"Pricing rule '{data.get('name')}' has no valid adjustment")

        conditions = []
        for condition in data.get("conditions") or []:
            if isinstance(condition, Mapping):
                condition = PricingCondition.from_dict(condition)
            conditions.append(condition)

        return cls(
            id=str(data.get("id") or ""),
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            active=bool(data.get("active", True)),
            priority=data.get("priority", 0),
            conditions=conditions,
            adjustment=adjustment,
            valid_from=_parse_timestamp(data.get("valid_from"), timezone),
            valid_until=_parse_timestamp(data.get("valid_until"), timezone),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "active": self.active,
            "priority": self.priority,
            "conditions": [condition.to_dict() for condition in self.conditions],
            "adjustment": self.adjustment.to_dict(),
            "valid_from": self.valid_from.isoformat() if self.valid_from else None,
            "valid_until": self.valid_until.isoformat() if self.valid_until else None,
        }


@dataclass(frozen=True)
class BookingDetails:
    """Attributs de réservation évalués par les conditions."""

    date: str
    time: str
    party_size: int
    occasion: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BookingDetails":
        booking_date = data.get("date")
        if isinstance(booking_date, date):
            booking_date = booking_date.isoformat()[:10]
        party_size = _pick(data, "party_size", "partySize", default=0)
        if not _is_number(party_size):
            raise ValueError(f"party size must be a number, got {party_size!r}")
        return cls(
            date=str(booking_date or ""),
            time=str(data.get("time") or ""),
            party_size=int(party_size),
            occasion=data.get("occasion"),
        )


@dataclass(frozen=True)
class AppliedAdjustment:
    """Delta signé appliqué par une règle, avec sa justification."""

    rule_name: str
    rule_description: str
    adjustment_amount: float
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleName": self.rule_name,
            "ruleDescription": self.rule_description,
            "adjustmentAmount": self.adjustment_amount,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class PricingCalculation:
    """Résultat immuable d'un calcul de prix."""

    base_price: float
    adjustments: Tuple[AppliedAdjustment, ...]
    final_price: float
    applied_rules: Tuple[str, ...]
    breakdown: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "basePrice": self.base_price,
            "adjustments": [adjustment.to_dict() for adjustment in self.adjustments],
            "finalPrice": self.final_price,
            "appliedRules": list(self.applied_rules),
            "breakdown": self.breakdown,
        }


@dataclass(frozen=True)
class OccupancyData:
    """Occupation d'un créneau (fournie par le collaborateur d'occupation)."""

    date: str
    time_slot: str
    total_capacity: int
    booked_seats: int
    occupancy_rate: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OccupancyData":
        return cls(
            date=str(data.get("date") or ""),
            time_slot=str(_pick(data, "time_slot", "timeSlot", default="")),
            total_capacity=int(_pick(data, "total_capacity", "totalCapacity", default=0)),
            booked_seats=int(_pick(data, "booked_seats", "bookedSeats", default=0)),
            occupancy_rate=float(_pick(data, "occupancy_rate", "occupancyRate", default=0.0)),
        )


@dataclass(frozen=True)
class SpecialDate:
    """Date spéciale (Saint-Valentin, réveillon...)."""

    date: str
    name: str
    price_multiplier: float = 1.0
    description: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SpecialDate":
        return cls(
            date=str(data.get("date") or ""),
            name=str(data.get("name") or ""),
            price_multiplier=float(_pick(data, "price_multiplier", "priceMultiplier", default=1.0)),
            description=str(data.get("description") or ""),
        )
