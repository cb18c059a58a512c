"""
Script pour afficher la grille de prix d'une période et les recommandations du jour.

Usage :
    python -m scripts.demo_pricing_forecast --start-date 2026-06-08 --end-date 2026-06-14 \
        --rules-file scripts/sample_rules.json [--csv]
"""

import argparse
import json
import sys

from booking_pricing.forecast import forecast_to_dataframe
from scripts.demo_calculate_price import build_engine


def main() -> None:
    parser = argparse.ArgumentParser(description="Prévision des prix par créneau.")
    parser.add_argument("--start-date", required=True, help="Début de période (YYYY-MM-DD).")
    parser.add_argument("--end-date", required=True, help="Fin de période incluse (YYYY-MM-DD).")
    parser.add_argument("--party-size", type=int, default=2, help="Nombre de couverts.")
    parser.add_argument("--rules-file", help="Fichier JSON de règles (sinon Supabase).")
    parser.add_argument("--csv", action="store_true", help="Sortie CSV (dates x créneaux).")

    args = parser.parse_args()

    try:
        engine = build_engine(args.rules_file)
        forecast = engine.get_pricing_forecast(args.start_date, args.end_date, args.party_size)
    except ValueError as e:
        print(f"❌ Erreur: {e}", file=sys.stderr)
        sys.exit(1)

    if args.csv:
        forecast_to_dataframe(forecast).to_csv(sys.stdout)
        return

    output = {
        "forecast": [point.to_dict() for point in forecast],
        "recommendations": {
            day: engine.get_recommendations(day, args.party_size).to_dict()
            for day in dict.fromkeys(point.date for point in forecast)
        },
    }
    print(json.dumps(output, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
