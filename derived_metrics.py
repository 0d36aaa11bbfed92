"""
Derived-Metrics Engine
Three independent calculators over a StructuredDataset:
month-over-month change, cross-segment totals, and YTD achievement.

All values are raw floats; rounding and formatting belong to the UI layer.
"""

import time

from diagnostics import MissingDataError, ensure_log
from kpi_rules import SERIES_FIELDS, TOTALS_TARGET_METRICS, is_averaged_metric, sort_months


def percent_change(current, previous):
    """
    Percent change from previous to current.

    A zero baseline yields 100 when the current value is positive, else 0.
    """
    if previous != 0:
        return (current - previous) / previous * 100
    return 100 if current > 0 else 0


def mom_series(values, months):
    """
    Month-over-month change along an ordered month sequence.

    Args:
        values: {month: actual}
        months: Months in calendar order

    Returns:
        {month: percent} for every month after the first
    """
    changes = {}
    for index in range(1, len(months)):
        changes[months[index]] = percent_change(values[months[index]], values[months[index - 1]])
    return changes


def calculate_mom_changes(dataset, logs=None):
    """
    Month-over-month change of actual values for every triple.

    Returns:
        dict of TripleKey -> {month: percent}; a triple's first month has no entry
    """
    logs = ensure_log(logs)
    start_time = time.time()
    logs.section("MoM Changes")

    mom_changes = {}
    for triple, values in dataset.series.items():
        actual = values["actual"]
        mom_changes[triple] = mom_series(actual, sort_months(actual.keys()))

    logs.info(f"Calculated MoM changes for {len(mom_changes)} series.")
    logs.info(f"MoM Changes finished in {time.time() - start_time:.2f} seconds.")
    return mom_changes


def _empty_totals(months):
    totals = {field: {month: 0 for month in months} for field in SERIES_FIELDS}
    totals["mom_change"] = {}
    return totals


def calculate_totals(dataset, logs=None, target_metrics=None):
    """
    Aggregate the target metrics across every (initiative, sub initiative) pair.

    Counts are summed. Rates and durations (AVERAGED_METRICS) are divided by
    the number of pairs that report the metric, since summing rates across
    segments is meaningless. Months missing from a series contribute 0.

    Args:
        dataset: StructuredDataset
        logs: Optional PipelineLog
        target_metrics: Metric names to aggregate (default TOTALS_TARGET_METRICS)

    Returns:
        dict of metric -> {"actual", "forecast", "ytd_actual", "ytd_forecast", "mom_change"},
        each a {month: value} dict over the union of months in calendar order
    """
    logs = ensure_log(logs)
    start_time = time.time()
    logs.section("Totals")

    if target_metrics is None:
        target_metrics = TOTALS_TARGET_METRICS

    all_months = dataset.months()
    logs.info(f"Found {len(all_months)} months of data: {', '.join(all_months)}")

    totals = {metric: _empty_totals(all_months) for metric in target_metrics}

    for triple, values in dataset.series.items():
        if triple.metric not in totals:
            continue
        metric_totals = totals[triple.metric]
        for month in all_months:
            for field in SERIES_FIELDS:
                metric_totals[field][month] += values[field].get(month, 0)

    for metric in target_metrics:
        pair_count = len(dataset.pairs_reporting(metric))
        if pair_count == 0:
            logs.record(MissingDataError(
                f"No sub-initiative reports '{metric}'; totals default to 0", metric=metric
            ))
            continue
        if is_averaged_metric(metric):
            for field in SERIES_FIELDS:
                for month in all_months:
                    totals[metric][field][month] /= pair_count

    for metric in target_metrics:
        totals[metric]["mom_change"] = mom_series(totals[metric]["actual"], all_months)

    logs.info(f"Calculated totals for {len(totals)} metrics.")
    logs.info(f"Totals finished in {time.time() - start_time:.2f} seconds.")
    return totals


def calculate_ytd_achievement(dataset, logs=None):
    """
    YTD achievement (YTD actual / YTD forecast * 100) for every triple and month.

    A zero YTD forecast yields 0. A month missing from the YTD series yields 0
    and a MissingDataError on the log.

    Returns:
        dict of TripleKey -> {month: percent}
    """
    logs = ensure_log(logs)
    start_time = time.time()
    logs.section("YTD Achievement")

    ytd_achievement = {}
    for triple in dataset.series:
        achievement = {}
        for month in sort_months(dataset.series[triple]["actual"].keys()):
            try:
                ytd_actual = dataset.get_value(triple, "ytd_actual", month)
                ytd_forecast = dataset.get_value(triple, "ytd_forecast", month)
            except MissingDataError as e:
                logs.record(e)
                achievement[month] = 0
                continue
            achievement[month] = ytd_actual / ytd_forecast * 100 if ytd_forecast != 0 else 0
        ytd_achievement[triple] = achievement

    logs.info(f"Calculated YTD achievement for {len(ytd_achievement)} series.")
    logs.info(f"YTD Achievement finished in {time.time() - start_time:.2f} seconds.")
    return ytd_achievement
