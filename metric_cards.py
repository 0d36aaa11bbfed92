"""
Metric Cards
Builds the card view-models shown on the Overview and Initiatives pages.
Pure functions over the pipeline output; rendering lives in ui_components.
"""

from diagnostics import MissingDataError, ensure_log
from kpi_rules import DISPLAY_RULES
from ui_components import format_metric_value, format_signed_percent


def variance_status(variance_pct):
    return "positive" if variance_pct >= 0 else "negative"


def achievement_status(achievement_pct):
    """
    Classify a YTD achievement percent.

    Returns:
        "positive" at or above target, "warning" within 10 points, else "negative"
    """
    thresholds = DISPLAY_RULES["achievement_thresholds"]
    if achievement_pct >= thresholds["positive"]:
        return "positive"
    if achievement_pct >= thresholds["warning"]:
        return "warning"
    return "negative"


def variance_percent(actual, target):
    """(actual - target) / target * 100, or 0 when the target is 0."""
    if target == 0:
        return 0
    return (actual - target) / target * 100


def achievement_percent(actual, target):
    if target == 0:
        return 0
    return actual / target * 100


def _stat(label, value, status):
    return {"label": label, "value": value, "status": status}


def _month_value(values, month):
    return values.get(month, 0) or 0


def build_total_cards(totals, latest_month, metrics=None, logs=None):
    """
    Build the site-wide total cards.

    All YTD cards come first, then the monthly cards, each in metric order.

    Args:
        totals: Output of calculate_totals
        latest_month: Reporting month
        metrics: Metrics to show (default DISPLAY_RULES["total_card_metrics"])
        logs: Optional PipelineLog

    Returns:
        list of card dicts
    """
    logs = ensure_log(logs)
    if metrics is None:
        metrics = DISPLAY_RULES["total_card_metrics"]

    available = []
    for metric in metrics:
        if metric not in totals:
            logs.record(MissingDataError(f"No total data found for metric: {metric}", metric=metric))
            continue
        available.append(metric)

    ytd_cards = []
    monthly_cards = []
    for metric in available:
        metric_totals = totals[metric]
        actual = _month_value(metric_totals["actual"], latest_month)
        forecast = _month_value(metric_totals["forecast"], latest_month)
        ytd_actual = _month_value(metric_totals["ytd_actual"], latest_month)
        ytd_forecast = _month_value(metric_totals["ytd_forecast"], latest_month)
        mom = _month_value(metric_totals["mom_change"], latest_month)

        ytd_variance = variance_percent(ytd_actual, ytd_forecast)
        ytd_achievement = achievement_percent(ytd_actual, ytd_forecast)
        ytd_cards.append({
            "kind": "ytd_total",
            "metric": metric,
            "title": f"YTD Total {metric}",
            "value": format_metric_value(ytd_actual, metric),
            "raw_value": ytd_actual,
            "stats": [
                _stat("vs YTD Forecast", format_signed_percent(ytd_variance), variance_status(ytd_variance)),
                _stat("YTD Achievement", f"{ytd_achievement:.1f}%", achievement_status(ytd_achievement)),
            ],
        })

        variance = variance_percent(actual, forecast)
        monthly_cards.append({
            "kind": "monthly_total",
            "metric": metric,
            "title": f"Monthly Total {metric}",
            "value": format_metric_value(actual, metric),
            "raw_value": actual,
            "stats": [
                _stat("vs Forecast", format_signed_percent(variance), variance_status(variance)),
                _stat("MoM", format_signed_percent(mom), variance_status(mom)),
            ],
        })

    return ytd_cards + monthly_cards


def build_initiative_cards(dataset, mom_changes, latest_month, initiative=None, logs=None):
    """
    Build one card per (initiative, sub initiative, metric).

    Metrics in DISPLAY_RULES["excluded_card_metrics"] are skipped. A series
    missing from the MoM table is skipped and reported as MissingDataError.

    Args:
        dataset: StructuredDataset
        mom_changes: Output of calculate_mom_changes
        latest_month: Reporting month
        initiative: Restrict to one initiative (default all)
        logs: Optional PipelineLog

    Returns:
        list of card dicts in dataset order
    """
    logs = ensure_log(logs)
    excluded = DISPLAY_RULES["excluded_card_metrics"]

    cards = []
    for triple, values in dataset.series.items():
        if initiative is not None and triple.initiative != initiative:
            continue
        if triple.metric in excluded:
            continue
        if triple not in mom_changes:
            logs.record(MissingDataError(
                f"No MoM changes found for {triple.initiative} - {triple.sub_initiative} - {triple.metric}",
                triple=triple,
            ))
            continue

        actual = _month_value(values["actual"], latest_month)
        forecast = _month_value(values["forecast"], latest_month)
        ytd_actual = _month_value(values["ytd_actual"], latest_month)
        ytd_forecast = _month_value(values["ytd_forecast"], latest_month)
        mom = _month_value(mom_changes[triple], latest_month)

        variance = variance_percent(actual, forecast)
        achievement = achievement_percent(ytd_actual, ytd_forecast)
        cards.append({
            "kind": "initiative",
            "triple": triple,
            "metric": triple.metric,
            "title": f"{triple.sub_initiative} - {triple.metric}",
            "value": format_metric_value(actual, triple.metric),
            "raw_value": actual,
            "stats": [
                _stat("vs Forecast", format_signed_percent(variance), variance_status(variance)),
                _stat("MoM", format_signed_percent(mom), variance_status(mom)),
                _stat("YTD Achievement", f"{achievement:.1f}%", achievement_status(achievement)),
            ],
        })

    return cards
