"""
Calcul des ajustements de prix.

Chaque ajustement est exprimé comme un delta signé ajouté au prix courant,
y compris les multiplicateurs, afin que toutes les contributions des règles
soient additives dans le détail du calcul.
"""

import math
from typing import Optional

from .rules import AdjustmentType, PriceAdjustment


def calculate_adjustment(current_price: float, adjustment: PriceAdjustment) -> float:
    """
    Retourne le delta signé à ajouter au prix courant.

    - percentage   : current_price * value / 100
    - fixed_amount : value (négatif pour une remise)
    - multiplier   : current_price * value - current_price
    """
    if adjustment.type == AdjustmentType.PERCENTAGE:
        return current_price * (adjustment.value / 100)
    if adjustment.type == AdjustmentType.FIXED_AMOUNT:
        return adjustment.value
    if adjustment.type == AdjustmentType.MULTIPLIER:
        return current_price * adjustment.value - current_price
    return 0.0


def clamp_price(
    price: float,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> float:
    """Borne le prix à [min_price, max_price] (bornes absentes ignorées)."""
    if min_price is not None and price < min_price:
        price = min_price
    if max_price is not None and price > max_price:
        price = max_price
    return price


def round_price(price: float, round_to: float = 5.0) -> float:
    """
    Arrondit au multiple de `round_to` le plus proche (demi-valeurs vers le haut).

    37.5 -> 40 ; 17 -> 15 ; 32.5 -> 35.
    """
    if round_to <= 0:
        return price
    return float(math.floor(price / round_to + 0.5) * round_to)
