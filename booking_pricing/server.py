"""
Serveur Python persistant pour le moteur de tarification.

Ce script construit le moteur au démarrage et attend les requêtes via stdin.
Il est conçu pour être robuste : si une requête plante, le serveur loggue l'erreur
mais ne s'arrête pas.

Communication :
- Entrée : JSON ligne par ligne sur stdin
- Sortie : JSON ligne par ligne sur stdout
- Logs : stderr

Usage :

    python -m booking_pricing.server [--rules-file rules.json]
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

from .engine import DynamicPricingEngine, build_default_engine
from .settings import Settings

logger = logging.getLogger(__name__)


def process_request(engine: DynamicPricingEngine, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Traite une requête JSON unique.

    Format attendu (action par défaut : "calculate_price") :
    {
        "action": "calculate_price",
        "date": "2025-06-14",
        "time": "7:00 PM",
        "partySize": 2,
        "occasion": "birthday"      # optionnel
    }

    Autres actions :
    - "forecast"        : {"startDate", "endDate", "partySize"?}
    - "recommendations" : {"date", "partySize"?}
    - "list_rules"      : {}
    """
    action = data.get("action", "calculate_price")

    if action == "calculate_price":
        if not data.get("date"):
            raise ValueError("date est requise")
        if not data.get("time"):
            raise ValueError("time est requis")
        calculation = engine.calculate_price(data)
        return {"status": "success", **calculation.to_dict()}

    if action == "forecast":
        start_date = data.get("startDate")
        end_date = data.get("endDate")
        if not start_date or not end_date:
            raise ValueError("startDate et endDate sont requises")
        forecast = engine.get_pricing_forecast(start_date, end_date, data.get("partySize"))
        return {"status": "success", "forecast": [point.to_dict() for point in forecast]}

    if action == "recommendations":
        if not data.get("date"):
            raise ValueError("date est requise")
        recommendation = engine.get_recommendations(data["date"], data.get("partySize"))
        return {"status": "success", **recommendation.to_dict()}

    if action == "list_rules":
        rules = engine.get_active_pricing_rules()
        return {"status": "success", "rules": [rule.to_dict() for rule in rules]}

    raise ValueError(f"Action inconnue: {action}")


def _build_engine(rules_file: Optional[str]) -> DynamicPricingEngine:
    if not rules_file:
        return build_default_engine()

    from .config import get_pricing_config_from_settings
    from .interfaces.memory import load_collaborators_from_file

    config = get_pricing_config_from_settings()
    repository, occupancy, special_dates = load_collaborators_from_file(
        rules_file,
        restaurant_capacity=config.restaurant_capacity,
        timezone=config.timezone,
    )
    return DynamicPricingEngine(repository, occupancy, special_dates, config=config)


def serve(engine: DynamicPricingEngine, stdin=None, stdout=None) -> None:
    """Boucle de lecture : une requête JSON par ligne, une réponse JSON par ligne."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    while True:
        try:
            line = stdin.readline()
            if not line:
                break  # Fin du flux (le processus appelant a fermé stdin)

            line = line.strip()
            if not line:
                continue

            try:
                request_data = json.loads(line)
                if not isinstance(request_data, dict):
                    raise ValueError("La requête doit être un objet JSON")
                response_data = process_request(engine, request_data)
            except Exception as e:
                # Réponse d'erreur pour que l'appelant puisse rejeter la requête proprement
                response_data = {
                    "error": str(e),
                    "status": "error",
                    "type": type(e).__name__,
                }
                logger.exception(f"Erreur traitement requête: {e}")

            stdout.write(json.dumps(response_data) + "\n")
            stdout.flush()

        except KeyboardInterrupt:
            break


def main() -> None:
    parser = argparse.ArgumentParser(description="Serveur JSON-lines du moteur de tarification.")
    parser.add_argument("--rules-file", help="Fichier JSON de règles (sinon Supabase).")
    args = parser.parse_args()

    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )
    logger.info(f"Service Pricing Engine démarré (PID: {os.getpid()})")

    engine = _build_engine(args.rules_file)
    serve(engine)


if __name__ == "__main__":
    main()
