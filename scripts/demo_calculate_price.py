"""
Script de démonstration pour tester le calcul de prix d'une réservation.

Usage (depuis la racine du projet) :

    python -m scripts.demo_calculate_price --date 2026-06-13 --time "7:00 PM" --party-size 2
    python -m scripts.demo_calculate_price --date 2026-06-13 --time "7:00 PM" --party-size 8 \
        --rules-file scripts/sample_rules.json

Sans `--rules-file`, les règles sont lues dans Supabase.
"""

import argparse
import json
import logging
import sys

from booking_pricing.engine import DynamicPricingEngine, build_default_engine
from booking_pricing.config import get_pricing_config_from_settings
from booking_pricing.interfaces.memory import load_collaborators_from_file

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def build_engine(rules_file=None) -> DynamicPricingEngine:
    if not rules_file:
        return build_default_engine()
    config = get_pricing_config_from_settings()
    repository, occupancy, special_dates = load_collaborators_from_file(
        rules_file,
        restaurant_capacity=config.restaurant_capacity,
        timezone=config.timezone,
    )
    return DynamicPricingEngine(repository, occupancy, special_dates, config=config)


def main() -> None:
    parser = argparse.ArgumentParser(description="Demo: calculate the deposit for a booking.")
    parser.add_argument("--date", required=True, help="Date de réservation (YYYY-MM-DD).")
    parser.add_argument("--time", required=True, help='Heure de réservation ("7:00 PM").')
    parser.add_argument("--party-size", type=int, default=2, help="Nombre de couverts.")
    parser.add_argument("--occasion", help="Occasion (facultatif).")
    parser.add_argument("--rules-file", help="Fichier JSON de règles (sinon Supabase).")
    parser.add_argument("--show-breakdown", action="store_true", help="Affiche le détail en texte.")

    args = parser.parse_args()

    try:
        engine = build_engine(args.rules_file)
        calculation = engine.calculate_price(
            {
                "date": args.date,
                "time": args.time,
                "party_size": args.party_size,
                "occasion": args.occasion,
            }
        )
    except Exception as e:
        # Erreur de configuration (fichier illisible, Supabase non configuré...)
        print(json.dumps({"error": True, "error_type": type(e).__name__, "error_message": str(e)}))
        sys.exit(1)

    if args.show_breakdown:
        print(calculation.breakdown)
    else:
        print(json.dumps(calculation.to_dict(), ensure_ascii=False))


if __name__ == "__main__":
    main()
