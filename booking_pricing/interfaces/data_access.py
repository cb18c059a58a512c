"""
Accès aux données de tarification stockées dans Supabase/PostgreSQL.

Ce module fournit les implémentations Supabase des collaborateurs du moteur :
- `SupabaseRuleRepository` : table `pricing_rules`,
- `SupabaseOccupancyProvider` : table `occupancy_data`,
- `SupabaseSpecialDateProvider` : table `special_dates`.

IMPORTANT :
- La configuration vient des variables d'environnement `SUPABASE_URL` et
  `SUPABASE_SERVICE_ROLE_KEY` (voir `booking_pricing.settings`).
- Ces classes laissent remonter les erreurs réseau / base : c'est le moteur
  qui les intercepte et applique ses valeurs de repli.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from supabase import Client, create_client  # type: ignore

from ..rules import PricingRule, SpecialDate, normalize_rule_keys
from ..settings import Settings
from .base import (
    OccupancyProvider,
    RuleRepository,
    SpecialDateProvider,
    compute_occupancy_rate,
)

logger = logging.getLogger(__name__)


_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Retourne un client Supabase initialisé (partagé par le processus).
    """
    global _supabase_client

    if _supabase_client is not None:
        return _supabase_client

    settings = Settings.from_env()
    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError(
            "Les variables d'environnement SUPABASE_URL et SUPABASE_SERVICE_ROLE_KEY/SUPABASE_KEY "
            "doivent être configurées pour utiliser le moteur de tarification."
        )

    _supabase_client = create_client(settings.supabase_url, settings.supabase_key)
    return _supabase_client


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _response_data(response: Any) -> Any:
    # Compatible avec différentes versions du client Supabase
    if response is None or not hasattr(response, "data"):
        raise RuntimeError("Réponse Supabase invalide: pas d'attribut 'data'")
    return response.data


def _serialize_rule(data: Dict[str, Any]) -> Dict[str, Any]:
    """Prépare une règle (ou une mise à jour partielle) pour l'écriture en base."""
    data = normalize_rule_keys(data)
    row = dict(data)
    if "conditions" in row:
        row["conditions"] = [
            c.to_dict() if hasattr(c, "to_dict") else dict(c) for c in row["conditions"] or []
        ]
    if "adjustment" in row and hasattr(row["adjustment"], "to_dict"):
        row["adjustment"] = row["adjustment"].to_dict()
    for key in ("valid_from", "valid_until"):
        if key in row and hasattr(row[key], "isoformat"):
            row[key] = row[key].isoformat()
    return row


class SupabaseRuleRepository(RuleRepository):
    """Règles stockées dans la table `pricing_rules` (conditions / adjustment en jsonb)."""

    table_name = "pricing_rules"

    def __init__(self, client: Optional[Client] = None, timezone: str = "UTC"):
        self._client = client
        self.timezone = timezone

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def _to_rule(self, row: Dict[str, Any]) -> Optional[PricingRule]:
        try:
            return PricingRule.from_dict(row, timezone=self.timezone)
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping malformed pricing rule {row.get('id')}: {e}")
            return None

    def get_active_rules(self) -> List[PricingRule]:
        response = (
            self.client.table(self.table_name)
            .select("*")
            .eq("active", True)
            .execute()
        )
        rules = []
        for row in _response_data(response) or []:
            rule = self._to_rule(row)
            if rule is not None:
                rules.append(rule)
        return rules

    def create_rule(self, rule: PricingRule) -> str:
        row = _serialize_rule(rule.to_dict())
        if not row.get("id"):
            row.pop("id", None)
        response = self.client.table(self.table_name).insert(row).execute()
        data = _response_data(response) or []
        if not data:
            raise RuntimeError(f"Insertion de la règle '{rule.name}' sans retour de Supabase")
        return str(data[0]["id"])

    def get_rule(self, rule_id: str) -> Optional[PricingRule]:
        response = (
            self.client.table(self.table_name)
            .select("*")
            .eq("id", rule_id)
            .maybe_single()
            .execute()
        )
        if response is None:
            return None
        data = _response_data(response)
        if not data:
            return None
        return self._to_rule(data)

    def update_rule(self, rule_id: str, updates: Dict[str, Any]) -> None:
        row = _serialize_rule(updates)
        row.pop("id", None)
        response = (
            self.client.table(self.table_name)
            .update(row)
            .eq("id", rule_id)
            .execute()
        )
        _response_data(response)


class SupabaseOccupancyProvider(OccupancyProvider):
    """Occupation par créneau, table `occupancy_data`."""

    table_name = "occupancy_data"

    def __init__(self, client: Optional[Client] = None, restaurant_capacity: int = 100):
        self._client = client
        self.restaurant_capacity = restaurant_capacity

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def _find(self, date: str, time: str) -> List[Dict[str, Any]]:
        response = (
            self.client.table(self.table_name)
            .select("*")
            .eq("date", date)
            .eq("time_slot", time)
            .limit(1)
            .execute()
        )
        return _response_data(response) or []

    def get_occupancy_rate(self, date: str, time: str) -> float:
        rows = self._find(date, time)
        if not rows:
            return 0.0
        rate = _safe_float(rows[0].get("occupancy_rate"))
        return rate if rate is not None else 0.0

    def update_occupancy(self, date: str, time: str, booked_seats: int) -> None:
        occupancy_rate = compute_occupancy_rate(booked_seats, self.restaurant_capacity)
        rows = self._find(date, time)
        if rows:
            self.client.table(self.table_name).update(
                {"booked_seats": booked_seats, "occupancy_rate": occupancy_rate}
            ).eq("id", rows[0]["id"]).execute()
        else:
            self.client.table(self.table_name).insert(
                {
                    "date": date,
                    "time_slot": time,
                    "total_capacity": self.restaurant_capacity,
                    "booked_seats": booked_seats,
                    "occupancy_rate": occupancy_rate,
                }
            ).execute()


class SupabaseSpecialDateProvider(SpecialDateProvider):
    """Dates spéciales, table `special_dates`."""

    table_name = "special_dates"

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def _find(self, date: str) -> List[Dict[str, Any]]:
        response = (
            self.client.table(self.table_name)
            .select("*")
            .eq("date", date)
            .limit(1)
            .execute()
        )
        return _response_data(response) or []

    def is_special_date(self, date: str) -> bool:
        return bool(self._find(date))

    def get_special_date(self, date: str) -> Optional[SpecialDate]:
        rows = self._find(date)
        if not rows:
            return None
        return SpecialDate.from_dict(rows[0])
