"""
Prévisions de prix et recommandations de créneaux.

Ce module n'ajoute aucune logique d'évaluation : il rejoue le calcul de prix
sur une grille (jours x créneaux canoniques) et en dérive :
- le créneau le moins cher ("best value") et l'économie réalisée,
- les créneaux de pointe (prix > moyenne) et creux (prix <= moyenne).
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Sequence, Union

import pandas as pd  # type: ignore

DateLike = Union[str, date]


@dataclass(frozen=True)
class ForecastPoint:
    date: str
    time: str
    price: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BestValue:
    time: str
    price: float
    savings: float


@dataclass(frozen=True)
class Recommendation:
    best_value: BestValue
    peak_times: List[str]
    off_peak_times: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bestValue": asdict(self.best_value),
            "peakTimes": list(self.peak_times),
            "offPeakTimes": list(self.off_peak_times),
        }


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).strip()[:10], "%Y-%m-%d").date()


def _price_slots(
    calculate: Callable[..., Any],
    booking_date: str,
    time_slots: Sequence[str],
    party_size: int,
) -> List[ForecastPoint]:
    points = []
    for time in time_slots:
        calculation = calculate({"date": booking_date, "time": time, "party_size": party_size})
        points.append(ForecastPoint(date=booking_date, time=time, price=calculation.final_price))
    return points


def build_forecast(
    calculate: Callable[..., Any],
    start_date: DateLike,
    end_date: DateLike,
    time_slots: Sequence[str],
    party_size: int = 2,
) -> List[ForecastPoint]:
    """
    Prix de chaque créneau pour chaque jour de [start_date, end_date] (bornes incluses).

    `calculate` est la fonction de calcul du moteur (`DynamicPricingEngine.calculate_price`).
    Lève ValueError si une date est illisible ; une plage inversée donne une liste vide.
    """
    start = _to_date(start_date)
    end = _to_date(end_date)

    forecast: List[ForecastPoint] = []
    current = start
    while current <= end:
        forecast.extend(_price_slots(calculate, current.isoformat(), time_slots, party_size))
        current += timedelta(days=1)
    return forecast


def build_recommendations(
    calculate: Callable[..., Any],
    booking_date: DateLike,
    time_slots: Sequence[str],
    party_size: int = 2,
) -> Recommendation:
    """
    Recommandations pour une journée.

    Les créneaux sont classés par prix croissant (tri stable : à prix égal,
    l'ordre des créneaux est conservé) ; les listes de pointe / creux suivent
    cet ordre.
    """
    if not time_slots:
        raise ValueError("At least one time slot is required for recommendations")

    day = _to_date(booking_date).isoformat()
    points = _price_slots(calculate, day, time_slots, party_size)

    df = pd.DataFrame([p.to_dict() for p in points])
    df = df.sort_values("price", kind="mergesort").reset_index(drop=True)

    best = df.iloc[0]
    max_price = float(df["price"].max())
    avg_price = float(df["price"].mean())

    return Recommendation(
        best_value=BestValue(
            time=str(best["time"]),
            price=float(best["price"]),
            savings=max_price - float(best["price"]),
        ),
        peak_times=df.loc[df["price"] > avg_price, "time"].tolist(),
        off_peak_times=df.loc[df["price"] <= avg_price, "time"].tolist(),
    )


def forecast_to_dataframe(forecast: Sequence[ForecastPoint]) -> pd.DataFrame:
    """
    Tableau des prix : une ligne par date, une colonne par créneau.

    Les colonnes gardent l'ordre d'apparition des créneaux dans la prévision.
    """
    if not forecast:
        return pd.DataFrame()
    df = pd.DataFrame([p.to_dict() for p in forecast])
    slot_order = list(dict.fromkeys(df["time"]))
    table = df.pivot(index="date", columns="time", values="price")
    table = table[slot_order]
    table.columns.name = None
    return table
