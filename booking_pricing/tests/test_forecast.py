"""
Tests unitaires pour forecast.py
"""

from datetime import date
from unittest.mock import Mock

import pandas as pd
import pytest

from booking_pricing.config import PricingConfig
from booking_pricing.forecast import (
    ForecastPoint,
    build_recommendations,
    forecast_to_dataframe,
)


class TestPricingForecast:
    """Tests pour get_pricing_forecast."""

    def test_forecast_covers_each_day_and_slot(self, build_engine, prime_time_rule):
        engine = build_engine([prime_time_rule])

        forecast = engine.get_pricing_forecast("2026-10-21", "2026-10-22")

        assert len(forecast) == 10
        assert forecast[0] == ForecastPoint(date="2026-10-21", time="5:00 PM", price=20.0)
        assert [p.date for p in forecast[5:]] == ["2026-10-22"] * 5
        prices = {(p.date, p.time): p.price for p in forecast}
        assert prices[("2026-10-21", "7:00 PM")] == 30.0
        assert prices[("2026-10-22", "8:00 PM")] == 30.0
        assert prices[("2026-10-22", "9:00 PM")] == 20.0

    def test_forecast_accepts_date_objects(self, build_engine):
        engine = build_engine([])

        forecast = engine.get_pricing_forecast(date(2026, 10, 21), date(2026, 10, 21))

        assert len(forecast) == 5
        assert all(p.price == 20.0 for p in forecast)

    def test_inverted_range_is_empty(self, build_engine):
        engine = build_engine([])

        assert engine.get_pricing_forecast("2026-10-22", "2026-10-21") == []

    def test_invalid_date_raises(self, build_engine):
        engine = build_engine([])

        with pytest.raises(ValueError):
            engine.get_pricing_forecast("tomorrow", "2026-10-21")

    def test_forecast_uses_party_size(self, build_engine, make_rule):
        rule = make_rule(
            "Large Party Fee",
            conditions=[{"type": "party_size", "operator": "greater_than", "value": 6}],
            adjustment={"type": "fixed_amount", "value": 10},
        )
        engine = build_engine([rule])

        small = engine.get_pricing_forecast("2026-10-21", "2026-10-21")
        large = engine.get_pricing_forecast("2026-10-21", "2026-10-21", party_size=8)

        assert {p.price for p in small} == {20.0}
        assert {p.price for p in large} == {30.0}

    def test_configured_time_slots(self, build_engine):
        engine = build_engine([], config=PricingConfig(forecast_time_slots=["12:00 PM", "1:00 PM"]))

        forecast = engine.get_pricing_forecast("2026-10-21", "2026-10-21")

        assert [p.time for p in forecast] == ["12:00 PM", "1:00 PM"]


class TestRecommendations:
    """Tests pour get_recommendations."""

    def test_best_value_and_peak_times(self, build_engine, prime_time_rule):
        engine = build_engine([prime_time_rule])

        recommendation = engine.get_recommendations("2026-10-21")

        assert recommendation.best_value.time == "5:00 PM"
        assert recommendation.best_value.price == 20.0
        assert recommendation.best_value.savings == 10.0
        assert recommendation.peak_times == ["7:00 PM", "8:00 PM"]
        assert recommendation.off_peak_times == ["5:00 PM", "6:00 PM", "9:00 PM"]

    def test_flat_prices_are_all_off_peak(self, build_engine):
        engine = build_engine([])

        recommendation = engine.get_recommendations("2026-10-21")

        assert recommendation.best_value.savings == 0.0
        assert recommendation.peak_times == []
        assert len(recommendation.off_peak_times) == 5

    def test_to_dict(self, build_engine, prime_time_rule):
        engine = build_engine([prime_time_rule])

        payload = engine.get_recommendations("2026-10-21").to_dict()

        assert payload["bestValue"] == {"time": "5:00 PM", "price": 20.0, "savings": 10.0}
        assert payload["peakTimes"] == ["7:00 PM", "8:00 PM"]

    def test_recommendations_sorted_by_price(self):
        prices = {"5:00 PM": 30.0, "6:00 PM": 20.0, "7:00 PM": 40.0}
        calculate = Mock(side_effect=lambda booking: Mock(final_price=prices[booking["time"]]))

        recommendation = build_recommendations(calculate, "2026-10-21", list(prices))

        assert recommendation.best_value.time == "6:00 PM"
        assert recommendation.best_value.savings == 20.0
        assert recommendation.peak_times == ["7:00 PM"]
        assert recommendation.off_peak_times == ["6:00 PM", "5:00 PM"]

    def test_no_time_slots_rejected(self):
        with pytest.raises(ValueError):
            build_recommendations(Mock(), "2026-10-21", [])


class TestForecastToDataframe:
    """Tests pour forecast_to_dataframe."""

    def test_pivot_dates_by_slot(self, build_engine, prime_time_rule):
        engine = build_engine([prime_time_rule])
        forecast = engine.get_pricing_forecast("2026-10-21", "2026-10-23")

        df = forecast_to_dataframe(forecast)

        assert isinstance(df, pd.DataFrame)
        assert df.shape == (3, 5)
        assert list(df.columns) == ["5:00 PM", "6:00 PM", "7:00 PM", "8:00 PM", "9:00 PM"]
        assert df.loc["2026-10-22", "7:00 PM"] == 30.0

    def test_empty_forecast(self):
        assert forecast_to_dataframe([]).empty
