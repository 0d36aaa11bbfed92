"""
Overview Page - Website Totals
Site-wide YTD and monthly total cards, monthly trend charts, and the totals table
"""

import streamlit as st
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from ui_components import render_page_header, render_metric_cards, render_chart, render_data_table, render_section_header
from charts import create_monthly_trend_chart, create_totals_chart
from metric_cards import build_total_cards
from kpi_rules import DISPLAY_RULES
from utils import totals_to_frame


def render_overview_page(data, latest_month):
    """Main overview page render function

    Args:
        data: Output of run_kpi_pipeline
        latest_month: Reporting month used by the cards
    """
    render_page_header(
        "Website KPI Overview",
        icon="📊",
        subtitle=f"Site-wide totals as of {latest_month or 'N/A'} · Data loaded {data.get('load_time_str', 'N/A')}"
    )

    dataset = data['dataset']
    totals = data['totals']
    logs = data['logs']

    if not dataset.series:
        st.warning("⚠️ No KPI data loaded. Upload a CSV on the Data Management page.")
        return

    months = dataset.months()

    # ===== TOTAL CARDS =====
    render_section_header("Website Totals", f"YTD and monthly totals for {latest_month}")
    cards = build_total_cards(totals, latest_month, logs=logs)
    render_metric_cards(cards, columns=len(DISPLAY_RULES["total_card_metrics"]))

    st.divider()

    # ===== MONTHLY TRENDS =====
    render_section_header("Monthly Trends", "Actuals per sub-initiative by month")
    trend_metrics = DISPLAY_RULES["trend_chart_metrics"]
    tabs = st.tabs(trend_metrics)
    for tab, metric in zip(tabs, trend_metrics):
        with tab:
            render_chart(create_monthly_trend_chart(dataset, metric, months), height=400)

    st.divider()

    # ===== TOTALS DETAIL =====
    section = render_section_header("📋 Totals Detail", collapsible=True, expanded=False)
    with section:
        selected_metric = st.selectbox(
            "Metric",
            options=list(totals.keys()),
            key="overview_totals_metric"
        )
        render_chart(create_totals_chart(totals, selected_metric, months), height=350)
        render_data_table(
            totals_to_frame(totals),
            max_rows=500,
            download_filename="website_kpi_totals.csv"
        )
