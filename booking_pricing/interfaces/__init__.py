"""
Sous-package `interfaces` du moteur de tarification.

Responsabilités :
- définir les contrats des collaborateurs (règles, occupation, dates spéciales),
- fournir les implémentations concrètes (Supabase, mémoire),
- faciliter le test (en permettant le mocking de cette couche).

L'implémentation Supabase se trouve dans `interfaces.data_access`.
"""

from .base import OccupancyProvider, RuleRepository, SpecialDateProvider
from .memory import (
    InMemoryOccupancyProvider,
    InMemoryRuleRepository,
    InMemorySpecialDateProvider,
    load_collaborators_from_file,
)

__all__ = [
    "OccupancyProvider",
    "RuleRepository",
    "SpecialDateProvider",
    "InMemoryOccupancyProvider",
    "InMemoryRuleRepository",
    "InMemorySpecialDateProvider",
    "load_collaborators_from_file",
]
