"""
Initiatives Page
Cards and actual vs forecast charts for every initiative and sub-initiative
"""

import streamlit as st
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from ui_components import render_page_header, render_metric_cards, render_chart, render_section_header
from charts import create_actual_vs_forecast_chart
from metric_cards import build_initiative_cards
from kpi_rules import DISPLAY_RULES


def render_initiatives_page(data, latest_month):
    """Render one collapsible section per initiative

    Args:
        data: Output of run_kpi_pipeline
        latest_month: Reporting month used by the cards
    """
    render_page_header(
        "Initiatives",
        icon="🎯",
        subtitle=f"Per-initiative performance for {latest_month or 'N/A'}"
    )

    dataset = data['dataset']
    logs = data['logs']

    if not dataset.initiatives:
        st.warning("⚠️ No initiatives found in the KPI data.")
        return

    # === FILTERS ===
    col1, col2 = st.columns([2, 1])
    with col1:
        selected_initiatives = st.multiselect(
            "Initiatives",
            options=list(dataset.initiatives),
            default=list(dataset.initiatives),
            key="initiatives_filter"
        )
    with col2:
        show_charts = st.toggle("Show charts", value=True, key="initiatives_show_charts")

    excluded = DISPLAY_RULES["excluded_card_metrics"]

    for index, initiative in enumerate(selected_initiatives):
        section = render_section_header(f"📁 {initiative}", collapsible=True, expanded=index == 0)
        with section:
            cards = build_initiative_cards(
                dataset, data['mom_changes'], latest_month, initiative=initiative, logs=logs
            )
            render_metric_cards(cards, columns=3)

            if not show_charts:
                continue

            for sub_initiative in dataset.sub_initiatives_for(initiative):
                triples = [
                    t for t in dataset.series
                    if t.initiative == initiative and t.sub_initiative == sub_initiative
                    and t.metric not in excluded
                ]
                if not triples:
                    continue

                st.markdown(f"**{sub_initiative}**")
                cols = st.columns(2)
                for chart_index, triple in enumerate(triples):
                    with cols[chart_index % 2]:
                        fig = create_actual_vs_forecast_chart(dataset, triple, logs=logs)
                        render_chart(fig, height=320)
