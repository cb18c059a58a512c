"""
Moteur de tarification dynamique des réservations.

Ce package contient :
- le modèle des règles de tarification (conditions, ajustements),
- l'évaluation des conditions et la composition des ajustements,
- le détail lisible du calcul,
- les prévisions et recommandations de créneaux,
- les interfaces vers les sources de données (Supabase, mémoire).
"""

from .config import PricingConfig, get_default_pricing_config
from .engine import DynamicPricingEngine, build_default_engine
from .rules import (
    AdjustmentType,
    AppliedAdjustment,
    BookingDetails,
    ConditionType,
    Operator,
    PriceAdjustment,
    PricingCalculation,
    PricingCondition,
    PricingRule,
    SpecialDate,
)

__all__ = [
    "PricingConfig",
    "get_default_pricing_config",
    "DynamicPricingEngine",
    "build_default_engine",
    "AdjustmentType",
    "AppliedAdjustment",
    "BookingDetails",
    "ConditionType",
    "Operator",
    "PriceAdjustment",
    "PricingCalculation",
    "PricingCondition",
    "PricingRule",
    "SpecialDate",
]
