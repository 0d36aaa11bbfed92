"""
Tests for derived_metrics module
Tests MoM changes, cross-segment totals, and YTD achievement
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data_structurer import TripleKey, structure_data
from derived_metrics import (
    calculate_mom_changes,
    calculate_totals,
    calculate_ytd_achievement,
    mom_series,
    percent_change,
)
from diagnostics import MissingDataError
from conftest import assert_log_contains

BLOG_SESSIONS = TripleKey("Content", "Blog", "Organic Total Sessions")
PRODUCT_SESSIONS = TripleKey("Content", "Product Pages", "Organic Total Sessions")
PARTNER_SESSIONS = TripleKey("Partnerships", "Blog", "Organic Total Sessions")


def _dataset(*monthly_actuals):
    """Single-series dataset from (month, actual) pairs"""
    rows = [
        {"initiative": "A", "sub_initiative": "x", "metric": "m", "month": month,
         "actual": actual, "forecast": 0, "ytd_actual": 0, "ytd_forecast": 0}
        for month, actual in monthly_actuals
    ]
    return structure_data(rows)


class TestPercentChange:
    """Test the MoM boundary rules"""

    def test_drop_to_zero(self):
        assert percent_change(0, 100) == -100

    def test_zero_baseline(self):
        assert percent_change(50, 0) == 100
        assert percent_change(0, 0) == 0
        assert percent_change(-5, 0) == 0

    def test_mom_series_skips_first_month(self):
        changes = mom_series({"January": 10, "February": 15}, ["January", "February"])
        assert changes == {"February": 50}


class TestMomChanges:
    """Test MoM change per series"""

    @pytest.mark.parametrize("january,february,expected", [
        (100, 0, -100),
        (0, 50, 100),
        (0, 0, 0),
    ])
    def test_boundaries(self, january, february, expected):
        dataset = _dataset(("January", january), ("February", february))
        mom = calculate_mom_changes(dataset)
        assert mom[TripleKey("A", "x", "m")]["February"] == expected

    def test_first_month_has_no_entry(self, multi_dataset):
        mom = calculate_mom_changes(multi_dataset)
        assert "January" not in mom[BLOG_SESSIONS]

    def test_calendar_order_not_row_order(self, multi_dataset):
        """February rows come first in the CSV but MoM still compares to January"""
        mom = calculate_mom_changes(multi_dataset)
        assert mom[BLOG_SESSIONS]["February"] == pytest.approx(20.0)
        assert mom[PRODUCT_SESSIONS]["February"] == pytest.approx(-50.0)
        assert mom[PARTNER_SESSIONS]["February"] == -100

    def test_gap_compares_with_previous_reported_month(self):
        dataset = _dataset(("January", 100), ("March", 150))
        mom = calculate_mom_changes(dataset)
        assert mom[TripleKey("A", "x", "m")] == {"March": 50}

    def test_one_entry_per_series(self, multi_dataset, logs):
        mom = calculate_mom_changes(multi_dataset, logs=logs)
        assert list(mom.keys()) == multi_dataset.triples()
        assert_log_contains(logs, "Calculated MoM changes for 5 series.")


class TestTotals:
    """Test site-wide totals"""

    def test_counts_are_summed(self, multi_dataset):
        totals = calculate_totals(multi_dataset)
        sessions = totals["Organic Total Sessions"]

        assert sessions["actual"] == {"January": 1250, "February": 1300}
        assert sessions["ytd_forecast"]["February"] == 2600

    def test_rates_are_averaged(self, multi_dataset):
        totals = calculate_totals(multi_dataset)
        engagement = totals["Engagement Rate"]

        assert engagement["actual"]["January"] == pytest.approx(0.3)
        assert engagement["actual"]["February"] == pytest.approx(0.4)
        assert engagement["forecast"]["January"] == pytest.approx(0.25)

    def test_mom_change_on_totals(self, multi_dataset):
        totals = calculate_totals(multi_dataset)
        sessions = totals["Organic Total Sessions"]
        assert sessions["mom_change"] == {"February": pytest.approx(4.0)}

    def test_every_target_metric_present(self, multi_dataset, logs):
        totals = calculate_totals(multi_dataset, logs=logs)

        assert len(totals) == 6
        unreported = totals["Avg Session Duration"]
        assert unreported["actual"] == {"January": 0, "February": 0}
        assert logs.anomaly_count(MissingDataError) == 4
        assert_log_contains(logs, "No sub-initiative reports 'Avg Session Duration'")

    def test_custom_target_metrics(self, multi_dataset):
        totals = calculate_totals(multi_dataset, target_metrics=["Organic Total Sessions"])
        assert list(totals.keys()) == ["Organic Total Sessions"]

    def test_missing_month_counts_as_zero(self):
        rows = [
            {"initiative": "A", "sub_initiative": "x", "metric": "Organic Total Sessions", "month": month,
             "actual": 10, "forecast": 10, "ytd_actual": 10, "ytd_forecast": 10}
            for month in ["January", "February"]
        ]
        rows.append({"initiative": "A", "sub_initiative": "y", "metric": "Organic Total Sessions",
                     "month": "February", "actual": 5, "forecast": 5, "ytd_actual": 5, "ytd_forecast": 5})
        totals = calculate_totals(structure_data(rows), target_metrics=["Organic Total Sessions"])
        assert totals["Organic Total Sessions"]["actual"] == {"January": 10, "February": 15}


class TestYtdAchievement:
    """Test YTD achievement percent"""

    def test_growth_example(self, growth_csv):
        from csv_parser import parse_csv_data
        dataset = structure_data(parse_csv_data(growth_csv))
        achievement = calculate_ytd_achievement(dataset)
        triple = TripleKey("Growth", "Website", "Engagement Rate")

        assert achievement[triple]["February"] == pytest.approx(93.0)
        assert achievement[triple]["January"] == pytest.approx(90.0)

    def test_zero_forecast_gives_zero(self, multi_dataset):
        achievement = calculate_ytd_achievement(multi_dataset)
        assert achievement[PARTNER_SESSIONS] == {"January": 0, "February": 0}

    def test_over_target(self, multi_dataset):
        achievement = calculate_ytd_achievement(multi_dataset)
        assert achievement[BLOG_SESSIONS]["February"] == pytest.approx(110.0)

    def test_every_month_present(self, multi_dataset, logs):
        achievement = calculate_ytd_achievement(multi_dataset, logs=logs)
        for triple in multi_dataset.triples():
            assert list(achievement[triple].keys()) == ["January", "February"]
        assert logs.anomaly_count(MissingDataError) == 0
