"""
Justification lisible des règles appliquées et détail du calcul.
"""

from typing import Iterable

from .rules import AppliedAdjustment, BookingDetails, ConditionType, PricingRule


_STATIC_REASONS = {
    ConditionType.TIME_SLOT: "prime time slot",
    ConditionType.DAY_OF_WEEK: "weekend/holiday",
    ConditionType.ADVANCE_BOOKING: "early bird booking",
    ConditionType.OCCUPANCY: "high demand",
    ConditionType.SPECIAL_DATE: "special occasion",
}


def get_rule_reason(rule: PricingRule, booking: BookingDetails) -> str:
    """
    Phrase expliquant pourquoi la règle s'applique.

    Une phrase par condition, jointes par des virgules ; à défaut,
    la description libre de la règle.
    """
    reasons = []
    for condition in rule.conditions:
        if condition.type == ConditionType.PARTY_SIZE:
            reasons.append(f"large party ({booking.party_size} guests)")
        elif condition.type in _STATIC_REASONS:
            reasons.append(_STATIC_REASONS[condition.type])
    return ", ".join(reasons) or rule.description


def format_amount(amount: float, currency_symbol: str = "$", signed: bool = False) -> str:
    """Formate un montant : "$20.00", ou "+$10.00" / "-$3.00" si signé."""
    if amount < 0:
        return f"-{currency_symbol}{abs(amount):.2f}"
    sign = "+" if signed else ""
    return f"{sign}{currency_symbol}{amount:.2f}"


def generate_breakdown(
    base_price: float,
    adjustments: Iterable[AppliedAdjustment],
    final_price: float,
    currency_symbol: str = "$",
    price_label: str = "deposit",
) -> str:
    """Détail du calcul : prix de base, chaque delta avec sa raison, puis le prix final."""
    lines = [f"Base {price_label}: {format_amount(base_price, currency_symbol)}"]
    for adjustment in adjustments:
        amount = format_amount(adjustment.adjustment_amount, currency_symbol, signed=True)
        lines.append(f"{adjustment.rule_name}: {amount} ({adjustment.reason})")
    lines.append("")
    lines.append(f"Final {price_label}: {format_amount(final_price, currency_symbol)}")
    return "\n".join(lines)
