"""
Configuration centrale pour le moteur de tarification des réservations.

Ce module définit les paramètres globaux utilisés par le moteur :
- acompte de base (prix avant toute règle),
- incrément d'arrondi du prix final,
- capacité totale du restaurant (calcul du taux d'occupation),
- créneaux canoniques utilisés par les prévisions.

Les valeurs sont initialisées avec des defaults raisonnables et
peuvent être surchargées par environnement (voir `settings.py`).
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional

import pytz

from .settings import Settings


DEFAULT_TIME_SLOTS = ["5:00 PM", "6:00 PM", "7:00 PM", "8:00 PM", "9:00 PM"]


@dataclass
class PricingConfig:
    """
    Paramètres de haut niveau pour le moteur de tarification.
    """

    # Acompte de base par réservation (avant application des règles)
    base_deposit: float = 20.0

    # Le prix final est arrondi au multiple le plus proche de cette valeur
    rounding_increment: float = 5.0

    # Nombre total de couverts (sert au calcul du taux d'occupation)
    restaurant_capacity: int = 100

    # Créneaux utilisés par les prévisions et recommandations
    forecast_time_slots: List[str] = field(default_factory=lambda: list(DEFAULT_TIME_SLOTS))
    default_party_size: int = 2

    # Présentation du détail de calcul
    currency_symbol: str = "$"
    price_label: str = "deposit"

    # Fuseau horaire du restaurant
    timezone: str = "UTC"


def get_default_pricing_config() -> PricingConfig:
    """
    Retourne une instance de configuration par défaut.
    """
    return PricingConfig()


def get_pricing_config_from_settings(settings: Optional[Settings] = None) -> PricingConfig:
    """
    Retourne la configuration par défaut surchargée par les variables d'environnement.

    Seules les valeurs effectivement définies (et valides) remplacent les defaults.
    """
    settings = settings or Settings.from_env()
    config = get_default_pricing_config()

    overrides = {"timezone": settings.default_timezone or config.timezone}
    if settings.base_deposit is not None and settings.base_deposit >= 0:
        overrides["base_deposit"] = settings.base_deposit
    if settings.rounding_increment is not None and settings.rounding_increment > 0:
        overrides["rounding_increment"] = settings.rounding_increment
    if settings.restaurant_capacity is not None and settings.restaurant_capacity > 0:
        overrides["restaurant_capacity"] = settings.restaurant_capacity

    return replace(config, **overrides)


def local_now(timezone: str = "UTC") -> datetime:
    """
    Heure locale courante du restaurant, sans information de fuseau.

    Toutes les comparaisons de dates du moteur se font en heure locale "naïve".
    Un fuseau inconnu retombe sur UTC.
    """
    try:
        tz = pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return datetime.now(tz).replace(tzinfo=None)


def to_local_naive(value: datetime, timezone: str = "UTC") -> datetime:
    """Convertit un datetime (avec ou sans fuseau) en heure locale naïve."""
    if value.tzinfo is None:
        return value
    try:
        tz = pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return value.astimezone(tz).replace(tzinfo=None)
