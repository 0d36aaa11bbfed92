"""
Chart builders for the Website KPI Dashboard.
Each function returns a Plotly figure (or None when the data is missing);
pages hand the figure to ui_components.render_chart.
"""

import plotly.graph_objects as go

from diagnostics import MissingDataError, ensure_log
from kpi_rules import (
    CHART_COLORS,
    DISPLAY_RULES,
    METRIC_COLORS,
    SUB_INITIATIVE_COLORS,
    get_metric_kind,
    sort_months,
    with_alpha,
)
from ui_components import format_metric_value

PALETTE = list(CHART_COLORS.values())


def _apply_metric_axis(fig, metric):
    """Y-axis tick format by metric kind (percent decimals, seconds, counts)."""
    kind = get_metric_kind(metric)
    if kind == "percent":
        fig.update_yaxes(tickformat=".0%", rangemode="tozero")
    elif kind == "duration":
        fig.update_yaxes(title_text="Seconds", rangemode="tozero")
    else:
        fig.update_yaxes(tickformat="~s", rangemode="tozero")


def _series_color(sub_initiative, index):
    return SUB_INITIATIVE_COLORS.get(sub_initiative, PALETTE[index % len(PALETTE)])


def create_actual_vs_forecast_chart(dataset, triple, months=None, logs=None):
    """
    Line chart of actual (solid) against forecast (dashed grey) for one series.

    Args:
        dataset: StructuredDataset
        triple: TripleKey (or tuple) of initiative, sub initiative, metric
        months: Months to show (default all months of the series), drawn in calendar order
        logs: Optional PipelineLog

    Returns:
        go.Figure, or None when the series does not exist
    """
    logs = ensure_log(logs)
    try:
        series = dataset.get_series(triple)
    except MissingDataError as e:
        logs.record(e)
        return None

    initiative, sub_initiative, metric = triple
    available = series["actual"]
    if months is None:
        months = list(available.keys())
    months = sort_months([m for m in months if m in available])
    if not months:
        logs.warning(f"No monthly data found for {initiative} - {sub_initiative} - {metric}")

    actual = [series["actual"][m] for m in months]
    forecast = [series["forecast"][m] for m in months]
    color = METRIC_COLORS.get(metric, CHART_COLORS["blue"])

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=months,
        y=actual,
        mode='lines+markers',
        name='Actual',
        line=dict(color=color, width=2, shape='spline'),
        marker=dict(size=8),
        text=[format_metric_value(v, metric) for v in actual],
        hovertemplate='<b>Actual</b><br>%{x}: %{text}<extra></extra>'
    ))
    fig.add_trace(go.Scatter(
        x=months,
        y=forecast,
        mode='lines+markers',
        name='Forecast',
        line=dict(color=CHART_COLORS["gray"], width=2, dash='dash', shape='spline'),
        marker=dict(size=8),
        text=[format_metric_value(v, metric) for v in forecast],
        hovertemplate='<b>Forecast</b><br>%{x}: %{text}<extra></extra>'
    ))

    fig.update_layout(
        title=f"{sub_initiative} - {metric}",
        xaxis_title="Month",
        hovermode='x unified',
        legend=dict(orientation='h', y=1.1)
    )
    _apply_metric_axis(fig, metric)
    return fig


def create_monthly_trend_chart(dataset, metric, months):
    """
    Filled line per sub initiative showing one metric's actuals over the months.

    Each sub initiative is read from the first initiative that contains it;
    months without data plot as 0.
    """
    fig = go.Figure()

    for index, sub_initiative in enumerate(dataset.sub_initiatives):
        initiative = dataset.find_initiative(sub_initiative)
        if initiative is None:
            continue
        triple = (initiative, sub_initiative, metric)
        if triple not in dataset.series:
            continue

        actual = dataset.series[triple]["actual"]
        values = [actual.get(m, 0) for m in months]
        color = _series_color(sub_initiative, index)
        fig.add_trace(go.Scatter(
            x=list(months),
            y=values,
            mode='lines+markers',
            name=sub_initiative,
            line=dict(color=color, width=2),
            fill='tozeroy',
            fillcolor=with_alpha(color, 0.2),
            text=[format_metric_value(v, metric) for v in values],
            hovertemplate=f'<b>{sub_initiative}</b><br>%{{x}}: %{{text}}<extra></extra>'
        ))

    period = f"{months[0]}-{months[-1]}" if months else "no data"
    fig.update_layout(
        title=f"Monthly {metric} Trend - {period}",
        xaxis_title="Month",
        hovermode='x unified'
    )
    _apply_metric_axis(fig, metric)
    return fig


def create_totals_chart(totals, metric, months=None):
    """Actual vs forecast of a site-wide total, or None when the metric has no totals."""
    if metric not in totals:
        return None
    metric_totals = totals[metric]
    if months is None:
        months = list(metric_totals["actual"].keys())

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=list(months),
        y=[metric_totals["actual"].get(m, 0) for m in months],
        name='Actual',
        marker_color=METRIC_COLORS.get(metric, CHART_COLORS["blue"]),
        opacity=0.8
    ))
    fig.add_trace(go.Scatter(
        x=list(months),
        y=[metric_totals["forecast"].get(m, 0) for m in months],
        mode='lines+markers',
        name='Forecast',
        line=dict(color=CHART_COLORS["gray"], width=2, dash='dash')
    ))
    fig.update_layout(
        title=f"Total {metric}: Actual vs Forecast",
        xaxis_title="Month",
        hovermode='x unified'
    )
    _apply_metric_axis(fig, metric)
    return fig


def create_ytd_achievement_chart(dataset, ytd_achievement, month, metrics=None, cap=None):
    """
    Grouped bars of YTD achievement % per sub initiative for one month.

    Bars are capped (default DISPLAY_RULES["achievement_chart_cap"]) so a
    single outlier does not flatten the chart; hover shows the real value with
    YTD actual and forecast. Zero or missing achievements are left out.
    """
    if metrics is None:
        metrics = DISPLAY_RULES["achievement_chart_metrics"]
    if cap is None:
        cap = DISPLAY_RULES["achievement_chart_cap"]

    fig = go.Figure()

    for index, sub_initiative in enumerate(dataset.sub_initiatives):
        initiative = dataset.find_initiative(sub_initiative)
        if initiative is None:
            continue

        labels, values, hover = [], [], []
        for metric in metrics:
            triple = (initiative, sub_initiative, metric)
            achievement = ytd_achievement.get(triple, {}).get(month)
            if triple not in dataset.series or not achievement:
                continue
            series = dataset.series[triple]
            ytd_actual = series["ytd_actual"].get(month, 0)
            ytd_forecast = series["ytd_forecast"].get(month, 0)
            shown = f"{cap}%+ ({achievement:.1f}%)" if achievement > cap else f"{achievement:.1f}%"
            labels.append(metric)
            values.append(min(achievement, cap))
            hover.append(f"{shown} (Actual: {format_metric_value(ytd_actual, metric)}, "
                         f"Forecast: {format_metric_value(ytd_forecast, metric)})")

        if not values:
            continue

        color = _series_color(sub_initiative, index)
        fig.add_trace(go.Bar(
            x=labels,
            y=values,
            name=sub_initiative,
            marker_color=color,
            text=hover,
            textposition='none',
            hovertemplate=f'<b>{sub_initiative}</b><br>%{{x}}: %{{text}}<extra></extra>'
        ))

    fig.add_hline(y=100, line_dash='dash', line_color='gray', line_width=2)
    fig.update_layout(
        title=f"YTD Achievement % (as of {month})",
        barmode='group',
        yaxis=dict(range=[0, cap], ticksuffix='%')
    )
    return fig
