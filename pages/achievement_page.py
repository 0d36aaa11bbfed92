"""
YTD Achievement Page
YTD actual against YTD forecast by sub-initiative for the reporting month
"""

import streamlit as st
import pandas as pd
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from ui_components import render_page_header, render_chart, render_data_table, render_info_box, format_metric_value
from charts import create_ytd_achievement_chart
from metric_cards import achievement_status
from kpi_rules import DISPLAY_RULES


def build_achievement_table(dataset, ytd_achievement, month, metrics=None):
    """
    One row per series reporting the month, with YTD values and achievement status.

    Args:
        metrics: Restrict to these metrics (default every metric)
    """
    records = []
    for triple, values in dataset.series.items():
        if metrics is not None and triple.metric not in metrics:
            continue
        if month not in values["actual"]:
            continue
        achievement = ytd_achievement.get(triple, {}).get(month, 0)
        records.append({
            'Initiative': triple.initiative,
            'Sub Initiative': triple.sub_initiative,
            'Metric': triple.metric,
            'YTD Actual': format_metric_value(values["ytd_actual"].get(month), triple.metric),
            'YTD Forecast': format_metric_value(values["ytd_forecast"].get(month), triple.metric),
            'YTD Achievement %': round(achievement, 1),
            'Status': achievement_status(achievement).title(),
        })
    return pd.DataFrame(records, columns=[
        'Initiative', 'Sub Initiative', 'Metric', 'YTD Actual', 'YTD Forecast',
        'YTD Achievement %', 'Status'
    ])


def render_achievement_page(data, latest_month):
    """Render the YTD achievement chart and table"""
    render_page_header(
        "YTD Achievement",
        icon="🏁",
        subtitle=f"YTD actual vs YTD forecast as of {latest_month or 'N/A'}"
    )

    dataset = data['dataset']
    ytd_achievement = data['ytd_achievement']

    if latest_month is None:
        st.warning("⚠️ No reporting month available. Upload KPI data first.")
        return

    cap = DISPLAY_RULES["achievement_chart_cap"]
    render_info_box(
        f"Bars are capped at {cap}%; hover a bar for the exact value. "
        "The dashed line marks 100% of forecast.",
        type="info"
    )

    fig = create_ytd_achievement_chart(dataset, ytd_achievement, latest_month)
    render_chart(fig, height=450)

    st.divider()

    show_all = st.checkbox("Include all metrics in table", value=False, key="achievement_all_metrics")
    metrics = None if show_all else DISPLAY_RULES["achievement_chart_metrics"]
    table = build_achievement_table(dataset, ytd_achievement, latest_month, metrics=metrics)
    render_data_table(
        table,
        title="Achievement Detail",
        max_rows=500,
        download_filename=f"ytd_achievement_{latest_month}.csv"
    )
