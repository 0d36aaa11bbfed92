"""
KPI Rules Configuration
Centralized definitions for CSV columns, metric families, and display rules.
This file allows rules to be changed in one place without modifying pipeline code.
"""

# ===== CALENDAR =====

MONTH_ORDER = [
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December'
]


# ===== CSV LAYOUT =====

# Header name in the KPI export -> key used on parsed rows
CSV_COLUMNS = {
    "Initiative Cards": "initiative",
    "Sub Initiative": "sub_initiative",
    "Metric": "metric",
    "Month": "month",
    "Actual": "actual",
    "Forecast": "forecast",
    "YTD Actual Totals": "ytd_actual",
    "YTD Forecast Totals": "ytd_forecast",
}

MONTH_COLUMN = "Month"

# Columns coerced to float (percent strings become decimals)
NUMERIC_COLUMNS = ["Actual", "Forecast", "YTD Actual Totals", "YTD Forecast Totals"]

REQUIRED_COLUMNS = list(CSV_COLUMNS.keys())

# The four parallel month series kept for every (initiative, sub initiative, metric)
SERIES_FIELDS = ["actual", "forecast", "ytd_actual", "ytd_forecast"]


# ===== METRIC FAMILIES =====

TOTALS_TARGET_METRICS = [
    "Organic Total Sessions",
    "Organic Total Users",
    "% of users clicking on to further pages",
    "% of users clicking to partner pages",
    "Avg Session Duration",
    "Engagement Rate",
]

# Rates and durations are averaged across segments instead of summed
AVERAGED_METRICS = ["Engagement Rate", "Avg Session Duration"]

PERCENT_METRICS = [
    "Engagement Rate",
    "% of users clicking on to further pages",
    "% of users clicking to partner pages",
]

DURATION_METRICS = ["Avg Session Duration"]


# ===== DISPLAY RULES =====

DISPLAY_RULES = {
    # None = use the last calendar month present in the data
    "latest_reporting_month": None,

    "achievement_thresholds": {
        "positive": 100,
        "warning": 90,
    },

    # Bars above this are drawn at the cap; hover shows the real value
    "achievement_chart_cap": 150,

    "total_card_metrics": [
        "Organic Total Sessions",
        "Organic Total Users",
        "% of users clicking on to further pages",
        "% of users clicking to partner pages",
    ],

    # Site-wide metrics shown only as totals, never as per-initiative cards
    "excluded_card_metrics": [
        "Engagement Rate",
        "Avg Session Duration",
        "Total Sessions",
        "Pageviews",
    ],

    "trend_chart_metrics": [
        "Organic Total Sessions",
        "Organic Total Users",
        "% of users clicking on to further pages",
        "% of users clicking to partner pages",
    ],

    "achievement_chart_metrics": [
        "Organic Total Sessions",
        "Organic Total Users",
        "% of users clicking on to further pages",
        "% of users clicking to partner pages",
    ],
}

CHART_COLORS = {
    "blue": "rgba(54, 162, 235, 1)",
    "light_blue": "rgba(116, 185, 255, 1)",
    "red": "rgba(255, 99, 132, 1)",
    "green": "rgba(75, 192, 192, 1)",
    "purple": "rgba(153, 102, 255, 1)",
    "orange": "rgba(255, 159, 64, 1)",
    "yellow": "rgba(255, 205, 86, 1)",
    "gray": "rgba(201, 203, 207, 1)",
}

METRIC_COLORS = {
    "Total Sessions": CHART_COLORS["blue"],
    "Pageviews": CHART_COLORS["purple"],
    "Avg Session Duration": CHART_COLORS["orange"],
    "Engagement Rate": CHART_COLORS["green"],
}

SUB_INITIATIVE_COLORS = {
    "Website": CHART_COLORS["blue"],
}


# ===== HELPER FUNCTIONS =====

def month_sort_key(month):
    """
    Sort key placing month names in calendar order.

    Names outside MONTH_ORDER get -1, so they sort ahead of January while
    keeping their relative order (sorted() is stable).
    """
    try:
        return MONTH_ORDER.index(month)
    except ValueError:
        return -1


def sort_months(months):
    """Return the months in canonical calendar order."""
    return sorted(months, key=month_sort_key)


def is_averaged_metric(metric):
    return metric in AVERAGED_METRICS


def get_metric_kind(metric):
    """
    Classify a metric for display formatting.

    Returns:
        "percent", "duration", or "count"
    """
    if metric in PERCENT_METRICS:
        return "percent"
    if metric in DURATION_METRICS:
        return "duration"
    return "count"


def with_alpha(rgba, alpha):
    """Swap the alpha channel of an 'rgba(r, g, b, 1)' colour string."""
    return rgba.replace("1)", f"{alpha})", 1)
