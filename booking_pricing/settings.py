"""
Configuration générale du moteur de tarification des réservations.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Charger .env depuis la racine du projet
project_root = Path(__file__).parent.parent
load_dotenv(dotenv_path=project_root / ".env")


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _env_int(name: str) -> Optional[int]:
    value = _env_float(name)
    return int(value) if value is not None else None


@dataclass
class Settings:
    """Configuration globale du moteur (lue depuis l'environnement)."""

    # Base de données
    supabase_url: str
    supabase_key: str

    # Fuseau horaire du restaurant (calcul de "maintenant" et des fenêtres de validité)
    default_timezone: str = "UTC"

    # Surcharges optionnelles de la config de pricing
    base_deposit: Optional[float] = None
    rounding_increment: Optional[float] = None
    restaurant_capacity: Optional[int] = None

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Crée une instance Settings depuis les variables d'environnement."""
        return cls(
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", os.getenv("SUPABASE_KEY", "")),
            default_timezone=os.getenv("DEFAULT_TIMEZONE", "UTC"),
            base_deposit=_env_float("PRICING_BASE_DEPOSIT"),
            rounding_increment=_env_float("PRICING_ROUNDING_INCREMENT"),
            restaurant_capacity=_env_int("RESTAURANT_CAPACITY"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
