"""
Moteur de tarification dynamique des réservations.

Ce module est responsable de :
- récupérer un instantané des règles actives et valides,
- les trier par priorité décroissante (tri stable : à priorité égale,
  l'ordre du dépôt est conservé),
- appliquer les ajustements des règles dont toutes les conditions correspondent,
  en bornant le prix courant après chaque règle,
- arrondir le prix final et produire le détail du calcul.

Le moteur ne doit jamais faire échouer une réservation : toute erreur interne
(dépôt indisponible, donnée illisible, règle défaillante) dégrade en
"pas d'ajustement".
"""

import logging
import math
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .adjustments import calculate_adjustment, clamp_price, round_price
from .breakdown import generate_breakdown, get_rule_reason
from .conditions import condition_matches
from .config import PricingConfig, get_default_pricing_config, local_now
from .forecast import ForecastPoint, Recommendation, build_forecast, build_recommendations
from .interfaces.base import OccupancyProvider, RuleRepository, SpecialDateProvider
from .rules import (
    AppliedAdjustment,
    BookingDetails,
    PricingCalculation,
    PricingRule,
    SpecialDate,
)

logger = logging.getLogger(__name__)


class BookingFacts:
    """
    Faits externes d'une réservation, chargés au plus une fois par calcul.

    Une source indisponible (absente ou en erreur) donne None, ce qui fait
    échouer les conditions qui en dépendent.
    """

    _UNSET = object()

    def __init__(
        self,
        booking: BookingDetails,
        occupancy_provider: Optional[OccupancyProvider] = None,
        special_date_provider: Optional[SpecialDateProvider] = None,
    ):
        self.booking = booking
        self.occupancy_provider = occupancy_provider
        self.special_date_provider = special_date_provider
        self._occupancy_rate: Any = self._UNSET
        self._is_special_date: Any = self._UNSET

    @property
    def occupancy_rate(self) -> Optional[float]:
        if self._occupancy_rate is self._UNSET:
            self._occupancy_rate = self._fetch_occupancy_rate()
        return self._occupancy_rate

    @property
    def is_special_date(self) -> Optional[bool]:
        if self._is_special_date is self._UNSET:
            self._is_special_date = self._fetch_is_special_date()
        return self._is_special_date

    def _fetch_occupancy_rate(self) -> Optional[float]:
        if self.occupancy_provider is None:
            return None
        try:
            return float(self.occupancy_provider.get_occupancy_rate(self.booking.date, self.booking.time))
        except Exception as e:
            logger.warning(
                f"Occupancy unavailable for {self.booking.date} {self.booking.time}: {e}"
            )
            return None

    def _fetch_is_special_date(self) -> Optional[bool]:
        if self.special_date_provider is None:
            return None
        try:
            return bool(self.special_date_provider.is_special_date(self.booking.date))
        except Exception as e:
            logger.warning(f"Special date check unavailable for {self.booking.date}: {e}")
            return None


class DynamicPricingEngine:
    """
    Point d'entrée du calcul de prix.

    Les collaborateurs sont injectés ; le calcul lui-même est synchrone,
    sans état partagé, et peut être appelé en parallèle pour des réservations
    indépendantes.
    """

    def __init__(
        self,
        rule_repository: RuleRepository,
        occupancy_provider: Optional[OccupancyProvider] = None,
        special_date_provider: Optional[SpecialDateProvider] = None,
        config: Optional[PricingConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.rule_repository = rule_repository
        self.occupancy_provider = occupancy_provider
        self.special_date_provider = special_date_provider
        self.config = config or get_default_pricing_config()
        self._clock = clock or (lambda: local_now(self.config.timezone))

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Calcul
    # ------------------------------------------------------------------

    def calculate_price(
        self,
        booking: Union[BookingDetails, Mapping[str, Any]],
        base_price: Optional[float] = None,
    ) -> PricingCalculation:
        """
        Calcule le prix final d'une réservation.

        Étapes :
        1. Instantané des règles actives, filtrées sur leur fenêtre de validité.
        2. Tri stable par priorité décroissante.
        3. Pour chaque règle correspondante : delta, puis bornes min/max de la règle.
        4. Arrondi à l'incrément configuré (l'arrondi propre à chaque règle est ignoré).
        """
        base = self.config.base_deposit if base_price is None else float(base_price)

        try:
            booking = self._coerce_booking(booking)
        except (ValueError, TypeError) as e:
            logger.warning(f"Unreadable booking details, no adjustment applied: {e}")
            return self._build_calculation(base, [], self._finalize_price(base))

        now = self.now()
        rules = self._get_rule_snapshot(now)
        facts = BookingFacts(booking, self.occupancy_provider, self.special_date_provider)

        current_price = base
        adjustments: List[AppliedAdjustment] = []

        for rule in rules:
            try:
                if not self._rule_matches(rule, booking, facts, now):
                    continue
                delta = calculate_adjustment(current_price, rule.adjustment)
                reason = get_rule_reason(rule, booking)
            except Exception as e:
                logger.warning(f"Pricing rule '{rule.name}' skipped after error: {e}")
                continue

            adjustments.append(
                AppliedAdjustment(
                    rule_name=rule.name,
                    rule_description=rule.description,
                    adjustment_amount=delta,
                    reason=reason,
                )
            )
            current_price = clamp_price(
                current_price + delta,
                rule.adjustment.min_price,
                rule.adjustment.max_price,
            )
            logger.debug(f"Applied rule '{rule.name}': {delta:+.2f} -> {current_price:.2f}")

        final_price = self._finalize_price(current_price)
        calculation = self._build_calculation(base, adjustments, final_price)
        logger.info(
            f"Price for {booking.date} {booking.time} (party of {booking.party_size}): "
            f"{base:.2f} -> {final_price:.2f} ({len(adjustments)} rule(s) applied)"
        )
        return calculation

    def _finalize_price(self, price: float) -> float:
        """Arrondi à l'incrément configuré, puis plancher à 0."""
        final_price = round_price(price, self.config.rounding_increment)
        if final_price < 0:
            logger.warning(f"Negative price {final_price:.2f} clamped to 0")
            final_price = 0.0
        return final_price

    @staticmethod
    def _coerce_booking(booking: Union[BookingDetails, Mapping[str, Any]]) -> BookingDetails:
        if isinstance(booking, BookingDetails):
            return booking
        return BookingDetails.from_dict(booking)

    def _get_rule_snapshot(self, now: datetime) -> List[PricingRule]:
        prioritized = []
        for rule in self.get_active_pricing_rules():
            try:
                if not (rule.active and rule.is_valid_at(now)):
                    continue
                priority = float(rule.priority)
                if math.isnan(priority):
                    raise ValueError(f"invalid priority {rule.priority!r}")
            except Exception as e:
                logger.warning(f"Pricing rule '{getattr(rule, 'name', '?')}' skipped from snapshot: {e}")
                continue
            prioritized.append((priority, rule))
        # sorted() est stable : à priorité égale, l'ordre du dépôt est conservé
        prioritized.sort(key=lambda item: item[0], reverse=True)
        return [rule for _, rule in prioritized]

    @staticmethod
    def _rule_matches(
        rule: PricingRule,
        booking: BookingDetails,
        facts: BookingFacts,
        now: datetime,
    ) -> bool:
        return all(condition_matches(condition, booking, facts, now) for condition in rule.conditions)

    def _build_calculation(
        self,
        base_price: float,
        adjustments: List[AppliedAdjustment],
        final_price: float,
    ) -> PricingCalculation:
        breakdown = generate_breakdown(
            base_price,
            adjustments,
            final_price,
            currency_symbol=self.config.currency_symbol,
            price_label=self.config.price_label,
        )
        return PricingCalculation(
            base_price=base_price,
            adjustments=tuple(adjustments),
            final_price=final_price,
            applied_rules=tuple(adjustment.rule_name for adjustment in adjustments),
            breakdown=breakdown,
        )

    # ------------------------------------------------------------------
    # Gestion des règles (délégation au dépôt)
    # ------------------------------------------------------------------

    def get_active_pricing_rules(self) -> List[PricingRule]:
        """Règles actives du dépôt ; liste vide si le dépôt est indisponible."""
        try:
            return list(self.rule_repository.get_active_rules())
        except Exception as e:
            logger.warning(f"Error fetching pricing rules, pricing without rules: {e}")
            return []

    def create_pricing_rule(self, rule: Union[PricingRule, Mapping[str, Any]]) -> str:
        if not isinstance(rule, PricingRule):
            rule = PricingRule.from_dict(rule, timezone=self.config.timezone)
        rule_id = self.rule_repository.create_rule(rule)
        logger.info(f"Created pricing rule '{rule.name}' ({rule_id})")
        return rule_id

    def get_pricing_rule(self, rule_id: str) -> Optional[PricingRule]:
        try:
            return self.rule_repository.get_rule(rule_id)
        except Exception as e:
            logger.warning(f"Error fetching pricing rule {rule_id}: {e}")
            return None

    def update_pricing_rule(self, rule_id: str, updates: Dict[str, Any]) -> None:
        self.rule_repository.update_rule(rule_id, updates)
        logger.info(f"Updated pricing rule {rule_id}: {sorted(updates)}")

    # ------------------------------------------------------------------
    # Collaborateurs exposés
    # ------------------------------------------------------------------

    def get_special_date(self, booking_date: str) -> Optional[SpecialDate]:
        if self.special_date_provider is None:
            return None
        try:
            return self.special_date_provider.get_special_date(booking_date)
        except Exception as e:
            logger.warning(f"Error fetching special date {booking_date}: {e}")
            return None

    def update_occupancy(self, booking_date: str, time: str, booked_seats: int) -> None:
        if self.occupancy_provider is None:
            logger.warning("No occupancy provider configured, occupancy update ignored")
            return
        try:
            self.occupancy_provider.update_occupancy(booking_date, time, booked_seats)
        except Exception as e:
            logger.warning(f"Error updating occupancy for {booking_date} {time}: {e}")

    # ------------------------------------------------------------------
    # Prévisions
    # ------------------------------------------------------------------

    def get_pricing_forecast(
        self,
        start_date: Union[str, date],
        end_date: Union[str, date],
        party_size: Optional[int] = None,
    ) -> List[ForecastPoint]:
        return build_forecast(
            self.calculate_price,
            start_date,
            end_date,
            time_slots=self.config.forecast_time_slots,
            party_size=party_size or self.config.default_party_size,
        )

    def get_recommendations(
        self,
        booking_date: Union[str, date],
        party_size: Optional[int] = None,
    ) -> Recommendation:
        return build_recommendations(
            self.calculate_price,
            booking_date,
            time_slots=self.config.forecast_time_slots,
            party_size=party_size or self.config.default_party_size,
        )


def build_default_engine(settings=None) -> DynamicPricingEngine:
    """
    Construit un moteur branché sur Supabase avec la configuration d'environnement.
    """
    from .config import get_pricing_config_from_settings
    from .interfaces.data_access import (
        SupabaseOccupancyProvider,
        SupabaseRuleRepository,
        SupabaseSpecialDateProvider,
    )
    from .settings import Settings

    settings = settings or Settings.from_env()
    config = get_pricing_config_from_settings(settings)
    return DynamicPricingEngine(
        rule_repository=SupabaseRuleRepository(timezone=config.timezone),
        occupancy_provider=SupabaseOccupancyProvider(restaurant_capacity=config.restaurant_capacity),
        special_date_provider=SupabaseSpecialDateProvider(),
        config=config,
    )
