"""
Contrats des collaborateurs consommés par le moteur de tarification.

Le moteur ne connaît que ces interfaces ; les implémentations concrètes
(Supabase, mémoire) sont injectées à la construction du moteur, ce qui
permet de tester l'évaluation sans aucune I/O.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..rules import PricingRule, SpecialDate


class RuleRepository(ABC):
    """
    Source des règles de tarification.

    `get_active_rules` peut renvoyer des règles hors fenêtre de validité :
    le filtrage final est de la responsabilité du moteur.
    """

    @abstractmethod
    def get_active_rules(self) -> List[PricingRule]:
        """Règles marquées actives."""

    @abstractmethod
    def create_rule(self, rule: PricingRule) -> str:
        """Enregistre une nouvelle règle et retourne son identifiant."""

    @abstractmethod
    def get_rule(self, rule_id: str) -> Optional[PricingRule]:
        """Règle par identifiant (None si absente)."""

    @abstractmethod
    def update_rule(self, rule_id: str, updates: Dict[str, Any]) -> None:
        """Mise à jour partielle d'une règle existante."""


class OccupancyProvider(ABC):
    """Taux d'occupation par créneau."""

    @abstractmethod
    def get_occupancy_rate(self, date: str, time: str) -> float:
        """Taux d'occupation (0-100) pour le créneau ; 0 si aucune donnée."""

    @abstractmethod
    def update_occupancy(self, date: str, time: str, booked_seats: int) -> None:
        """Enregistre le nombre de couverts réservés pour le créneau."""


class SpecialDateProvider(ABC):
    """Calendrier des dates spéciales."""

    @abstractmethod
    def is_special_date(self, date: str) -> bool:
        """Vrai si la date est une date spéciale."""

    @abstractmethod
    def get_special_date(self, date: str) -> Optional[SpecialDate]:
        """Détail de la date spéciale (None si la date est ordinaire)."""


def compute_occupancy_rate(booked_seats: int, total_capacity: int) -> float:
    """Taux d'occupation en pourcentage."""
    if total_capacity <= 0:
        return 0.0
    return (booked_seats / total_capacity) * 100
