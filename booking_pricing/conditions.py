"""
Évaluation des conditions de tarification.

Chaque condition compare un attribut de la réservation (heure, jour, taille
du groupe, anticipation, occupation, date spéciale) à la valeur de la règle.

Règle d'or : une donnée illisible ou indisponible ne fait jamais correspondre
une condition (fail-closed). Une source de données défaillante ne doit pas
augmenter les prix silencieusement.
"""

import logging
import math
from datetime import datetime
from typing import Any

from .rules import BookingDetails, ConditionType, Operator, PricingCondition

logger = logging.getLogger(__name__)


def parse_time(time_str: str) -> int:
    """
    Convertit une heure "H:MM AM|PM" en minutes depuis minuit.

    12 AM -> 0h, 12 PM reste 12h, les heures PM (hors 12) prennent +12h.
    Lève ValueError si la chaîne est illisible.
    """
    if not isinstance(time_str, str):
        raise ValueError(f"Invalid time: {time_str!r}")
    parts = time_str.strip().split()
    if len(parts) != 2:
        raise ValueError(f"Invalid time: {time_str!r}")
    clock, period = parts[0], parts[1].upper()
    if period not in ("AM", "PM"):
        raise ValueError(f"Invalid time period: {time_str!r}")

    hour_str, _, minute_str = clock.partition(":")
    hours = int(hour_str)
    minutes = int(minute_str)
    if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
        raise ValueError(f"Time out of range: {time_str!r}")

    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    return hours * 60 + minutes


def parse_booking_date(date_str: str) -> datetime:
    """Date de réservation "YYYY-MM-DD" à minuit."""
    return datetime.strptime(date_str.strip()[:10], "%Y-%m-%d")


def day_of_week(date_str: str) -> int:
    """Jour de la semaine, dimanche = 0 ... samedi = 6."""
    return (parse_booking_date(date_str).weekday() + 1) % 7


def days_in_advance(date_str: str, now: datetime) -> int:
    """
    Nombre de jours entre maintenant et la réservation : ceil((date - now) / 1 jour).

    La date de réservation est prise à minuit.
    """
    delta = parse_booking_date(date_str) - now
    return math.ceil(delta.total_seconds() / 86400)


def compare_values(actual: Any, expected: Any, operator: Operator) -> bool:
    """Compare une valeur observée à la valeur attendue selon l'opérateur."""
    try:
        if operator == Operator.EQUALS:
            return actual == expected
        if operator == Operator.GREATER_THAN:
            return actual > expected
        if operator == Operator.LESS_THAN:
            return actual < expected
        if operator == Operator.BETWEEN:
            low, high = expected
            return low <= actual <= high
        if operator == Operator.IN:
            return actual in expected
    except (TypeError, ValueError):
        return False
    return False


def _time_value(value: Any, operator: Operator) -> Any:
    if operator == Operator.BETWEEN:
        return tuple(parse_time(member) for member in value)
    if operator == Operator.IN:
        return frozenset(parse_time(member) for member in value)
    return parse_time(value)


def condition_matches(
    condition: PricingCondition,
    booking: BookingDetails,
    facts: Any,
    now: datetime,
) -> bool:
    """
    Vrai si la réservation satisfait la condition.

    `facts` expose `occupancy_rate` et `is_special_date` (None = indisponible).
    Les entrées illisibles (heure, date) donnent False au lieu de lever.
    """
    condition_type = condition.type
    operator = condition.operator

    try:
        if condition_type == ConditionType.TIME_SLOT:
            return compare_values(
                parse_time(booking.time), _time_value(condition.value, operator), operator
            )

        if condition_type == ConditionType.DAY_OF_WEEK:
            return compare_values(day_of_week(booking.date), condition.value, operator)

        if condition_type == ConditionType.PARTY_SIZE:
            return compare_values(booking.party_size, condition.value, operator)

        if condition_type == ConditionType.ADVANCE_BOOKING:
            return compare_values(days_in_advance(booking.date, now), condition.value, operator)

        if condition_type == ConditionType.OCCUPANCY:
            occupancy = facts.occupancy_rate
            if occupancy is None:
                return False
            return compare_values(occupancy, condition.value, operator)

        if condition_type == ConditionType.SPECIAL_DATE:
            is_special = facts.is_special_date
            if is_special is None:
                return False
            return is_special == condition.value

    except ValueError as e:
        logger.debug(f"Malformed input for {condition_type.value} condition: {e}")
        return False

    return False
