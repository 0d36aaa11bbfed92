"""
Debug & Logs Page
Shows pipeline logs, anomalies, and dataset diagnostics
"""

import streamlit as st
import pandas as pd
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from diagnostics import CatastrophicParseError, MalformedRowError, MissingDataError
from kpi_pipeline import dashboard_data_to_json
from utils import dataset_to_frame, export_tables_to_excel, totals_to_frame


def split_log_sections(logs):
    """
    Group log lines by the '--- Section ---' banners that precede them.

    Returns:
        dict of section title -> list of lines (insertion ordered)
    """
    sections = {}
    current = "General"
    for line in logs:
        if line.startswith("--- ") and line.endswith(" ---"):
            current = line[4:-4]
            sections.setdefault(current, [])
            continue
        sections.setdefault(current, []).append(line)
    return sections


def render_debug_page(debug_info):
    """Render debug and logs page"""

    st.title("🔧 Debug & System Logs")

    if not debug_info:
        st.warning("No debug information available. Data may not have loaded yet.")
        return

    logs = debug_info['logs']
    dataset = debug_info['dataset']

    # System Info
    st.header("📊 System Information")
    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric("Data Load Time", str(debug_info.get('load_time_str', 'N/A')))

    with col2:
        st.metric("Rows Parsed", len(debug_info.get('rows', [])))

    with col3:
        st.metric("Series", len(dataset.series))

    with col4:
        total_anomalies = logs.anomaly_count()
        st.metric("Anomalies", total_anomalies, delta=None if total_anomalies == 0 else "⚠️")

    st.divider()

    # Pipeline Logs
    st.header("📋 Pipeline Logs")

    for section_name, section_logs in split_log_sections(logs).items():
        if not section_logs:
            continue
        with st.expander(f"📄 {section_name} Logs", expanded=False):
            # Categorize logs by type
            info_logs = [log for log in section_logs if log.startswith("INFO:")]
            warning_logs = [log for log in section_logs if log.startswith("WARNING:")]
            error_logs = [log for log in section_logs if log.startswith("ERROR:")]

            col1, col2, col3 = st.columns(3)
            with col1:
                st.metric("Info", len(info_logs))
            with col2:
                st.metric("Warnings", len(warning_logs), delta="⚠️" if len(warning_logs) > 0 else None)
            with col3:
                st.metric("Errors", len(error_logs), delta="❌" if len(error_logs) > 0 else None)

            if error_logs:
                st.error("**Errors:**")
                for log in error_logs:
                    st.text(log)

            if warning_logs:
                st.warning("**Warnings:**")
                for log in warning_logs:
                    st.text(log)

            if info_logs and st.checkbox(f"Show Info logs for {section_name}", key=f"show_info_{section_name}"):
                st.info("**Info:**")
                for log in info_logs:
                    st.text(log)

    st.divider()

    # Anomaly Details
    st.header("❌ Anomaly Details")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Malformed Rows", logs.anomaly_count(MalformedRowError))
    with col2:
        st.metric("Missing Data", logs.anomaly_count(MissingDataError))
    with col3:
        st.metric("Parse Failures", logs.anomaly_count(CatastrophicParseError))

    errors_df = debug_info.get('errors')
    if errors_df is not None and not errors_df.empty:
        st.dataframe(errors_df, hide_index=True, width='stretch')
    else:
        st.success("✅ No anomalies detected in the KPI pipeline!")

    st.divider()

    # Data Shape Info
    st.header("📐 Data Shape Information")

    frame = dataset_to_frame(dataset, debug_info.get('mom_changes'), debug_info.get('ytd_achievement'))
    shape_info = pd.DataFrame([
        {'Item': 'Initiatives', 'Count': len(dataset.initiatives), 'Values': ', '.join(dataset.initiatives)},
        {'Item': 'Sub Initiatives', 'Count': len(dataset.sub_initiatives), 'Values': ', '.join(dataset.sub_initiatives)},
        {'Item': 'Metrics', 'Count': len(dataset.metrics), 'Values': ', '.join(dataset.metrics)},
        {'Item': 'Months', 'Count': len(dataset.months()), 'Values': ', '.join(dataset.months())},
    ])
    st.dataframe(shape_info, hide_index=True, width='stretch')

    st.subheader("Sample Data (First 5 Rows)")
    st.dataframe(frame.head(5), width='stretch', hide_index=True)

    st.divider()

    # Exports
    st.header("💾 Export")

    col1, col2 = st.columns(2)
    with col1:
        excel_bytes = export_tables_to_excel({
            "KPI Data": (frame, False),
            "Totals": (totals_to_frame(debug_info.get('totals', {})), False),
            "Anomalies": (errors_df, False),
        })
        st.download_button(
            label="📥 Download Excel",
            data=excel_bytes,
            file_name="website_kpis.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            width='stretch'
        )
    with col2:
        st.download_button(
            label="📥 Download JSON",
            data=dashboard_data_to_json(debug_info, indent=2),
            file_name="website_kpis.json",
            mime="application/json",
            width='stretch'
        )

    # Clear button
    if st.button("🗑️ Clear Data & Reload"):
        st.session_state.pop('dashboard_data', None)
        st.success("Data cleared! Reloading page...")
        st.rerun()
