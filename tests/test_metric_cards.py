"""
Tests for metric_cards module
Tests card view-models for totals and initiatives
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from derived_metrics import calculate_mom_changes, calculate_totals
from diagnostics import MissingDataError
from metric_cards import (
    achievement_percent,
    achievement_status,
    build_initiative_cards,
    build_total_cards,
    variance_percent,
    variance_status,
)


class TestStatusRules:
    """Test card colour thresholds"""

    def test_achievement_thresholds(self):
        assert achievement_status(100) == "positive"
        assert achievement_status(125.5) == "positive"
        assert achievement_status(90) == "warning"
        assert achievement_status(99.9) == "warning"
        assert achievement_status(89.9) == "negative"

    def test_variance_status(self):
        assert variance_status(0) == "positive"
        assert variance_status(-0.1) == "negative"

    def test_zero_targets(self):
        assert variance_percent(50, 0) == 0
        assert achievement_percent(50, 0) == 0
        assert variance_percent(110, 100) == pytest.approx(10.0)


class TestTotalCards:
    """Test site-wide total cards"""

    def test_ytd_cards_come_first(self, multi_dataset):
        totals = calculate_totals(multi_dataset)
        cards = build_total_cards(totals, "February", metrics=["Organic Total Sessions", "Engagement Rate"])

        assert [card["kind"] for card in cards] == ["ytd_total", "ytd_total", "monthly_total", "monthly_total"]
        assert cards[0]["title"] == "YTD Total Organic Total Sessions"

    def test_card_values(self, multi_dataset):
        totals = calculate_totals(multi_dataset)
        ytd_card, monthly_card = build_total_cards(totals, "February", metrics=["Organic Total Sessions"])

        assert ytd_card["raw_value"] == 2550
        assert ytd_card["value"] == "2.5K"
        # 2550 / 2600
        assert ytd_card["stats"][1] == {"label": "YTD Achievement", "value": "98.1%", "status": "warning"}

        assert monthly_card["value"] == "1.3K"
        # 1300 against 1460
        assert monthly_card["stats"][0] == {"label": "vs Forecast", "value": "-11.0%", "status": "negative"}
        assert monthly_card["stats"][1] == {"label": "MoM", "value": "+4.0%", "status": "positive"}

    def test_first_month_mom_is_zero(self, multi_dataset):
        totals = calculate_totals(multi_dataset)
        monthly_card = build_total_cards(totals, "January", metrics=["Organic Total Sessions"])[1]
        assert monthly_card["stats"][1]["value"] == "+0.0%"

    def test_missing_metric_recorded(self, multi_dataset, logs):
        totals = calculate_totals(multi_dataset, target_metrics=["Organic Total Sessions"])
        cards = build_total_cards(totals, "February", metrics=["Pageviews"], logs=logs)

        assert cards == []
        assert logs.anomaly_count(MissingDataError) == 1


class TestInitiativeCards:
    """Test per-series cards"""

    def test_excluded_metrics_skipped(self, multi_dataset):
        cards = build_initiative_cards(multi_dataset, calculate_mom_changes(multi_dataset), "February")

        assert all(card["metric"] != "Engagement Rate" for card in cards)
        assert [card["title"] for card in cards] == [
            "Blog - Organic Total Sessions",
            "Product Pages - Organic Total Sessions",
            "Blog - Organic Total Sessions",
        ]

    def test_filter_by_initiative(self, multi_dataset):
        cards = build_initiative_cards(
            multi_dataset, calculate_mom_changes(multi_dataset), "February", initiative="Partnerships"
        )
        assert len(cards) == 1
        card = cards[0]
        assert card["value"] == "0"
        assert [stat["label"] for stat in card["stats"]] == ["vs Forecast", "MoM", "YTD Achievement"]
        assert card["stats"][1]["value"] == "-100.0%"
        # Zero YTD forecast
        assert card["stats"][2]["value"] == "0.0%"

    def test_missing_mom_recorded(self, multi_dataset, logs):
        cards = build_initiative_cards(multi_dataset, {}, "February", logs=logs)
        assert cards == []
        assert logs.anomaly_count(MissingDataError) == 3
