"""
Data Upload & Management Page
Upload a Website KPI export with validation and template download
"""

import streamlit as st
import pandas as pd
from datetime import datetime
import os
import sys
from io import BytesIO

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from ui_components import render_page_header
from csv_parser import parse_csv_data, parse_csv_line
from diagnostics import MalformedRowError, PipelineLog
from file_loader import decode_csv_bytes
from kpi_rules import REQUIRED_COLUMNS

# ===== FILE CONFIGURATION =====

KPI_FILE_KEY = "kpis"

FILE_CONFIG = {
    "file_name": "Website KPIs.csv",
    "display_name": "Website KPIs",
    "description": "Monthly actual, forecast and YTD values per initiative, sub-initiative and metric",
    "required_columns": REQUIRED_COLUMNS,
    "sample_data": {
        "Initiative Cards": ["Website", "Website", "Website", "Website"],
        "Sub Initiative": ["Website", "Website", "Website", "Website"],
        "Metric": ["Organic Total Sessions", "Organic Total Sessions", "Engagement Rate", "Engagement Rate"],
        "Month": ["January", "February", "January", "February"],
        "Actual": ["1,000", "1,200", "45.2%", "47.0%"],
        "Forecast": ["900", "1,100", "40.0%", "45.0%"],
        "YTD Actual Totals": ["1,000", "2,200", "45.2%", "46.1%"],
        "YTD Forecast Totals": ["900", "2,000", "40.0%", "42.5%"],
    },
}

# ===== VALIDATION FUNCTIONS =====

def validate_kpi_csv(csv_text):
    """
    Validate an uploaded KPI export before it replaces the dashboard data.

    Missing columns or zero usable rows are errors; malformed lines are
    reported as warnings since the pipeline skips them.

    Returns:
        (is_valid, errors_list, warnings_list, row_count)
    """
    errors = []
    warnings = []

    lines = csv_text.strip().split('\n')
    headers = [field.strip() for field in parse_csv_line(lines[0])] if lines[0] else []
    missing_cols = [col for col in FILE_CONFIG["required_columns"] if col not in headers]
    if missing_cols:
        errors.append(f"Missing required columns: {', '.join(missing_cols)}")

    logs = PipelineLog()
    rows = parse_csv_data(csv_text, logs=logs)

    malformed = logs.anomaly_count(MalformedRowError)
    if malformed:
        warnings.append(f"{malformed} malformed line(s) will be skipped")
    for line in logs:
        if line.startswith("ERROR:"):
            errors.append(line[len("ERROR: "):])

    if not rows and not errors:
        errors.append("File has no data rows")

    is_valid = len(errors) == 0
    return is_valid, errors, warnings, len(rows)


def create_template():
    """Create a CSV template for download"""
    df = pd.DataFrame(FILE_CONFIG["sample_data"])

    output = BytesIO()
    df.to_csv(output, index=False)
    output.seek(0)

    return output


# ===== MAIN RENDER FUNCTION =====

def render_data_upload_page():
    """Main data upload page render function"""

    render_page_header(
        "Data Upload & Management",
        icon="📤",
        subtitle="Upload a Website KPI export with validation and template download"
    )

    # Initialize session state for upload tracking
    if 'uploaded_files' not in st.session_state:
        st.session_state.uploaded_files = {}

    if 'upload_info' not in st.session_state:
        st.session_state.upload_info = {}

    if 'upload_history' not in st.session_state:
        st.session_state.upload_history = []

    # === INSTRUCTIONS ===
    with st.expander("📖 Instructions", expanded=False):
        st.markdown("""
        **How to Upload Data:**

        1. **Download Template**: Click the "Template" button to get the expected layout
        2. **Fill Template**: One row per initiative, sub-initiative, metric and month
        3. **Upload File**: Click "Browse files" to upload your completed export
        4. **Validate**: The file is checked before it replaces the dashboard data
        5. **Refresh**: Click "Refresh Data" in the sidebar to rebuild the dashboard

        **Important Notes:**
        - Month names must be full English names (January ... December)
        - Percent values keep their % sign (e.g. 45.2%); counts may use thousands separators
        - Do not modify column headers in the template
        """)

    st.divider()

    # === KPI FILE ===
    st.subheader("📥 KPI Export")

    is_loaded = KPI_FILE_KEY in st.session_state.uploaded_files
    with st.expander(f"{'✅' if is_loaded else '⭕'} {FILE_CONFIG['display_name']}", expanded=True):
        st.caption(FILE_CONFIG["description"])

        col1, col2 = st.columns([3, 1])

        with col1:
            uploaded_file = st.file_uploader(
                f"Upload {FILE_CONFIG['file_name']}",
                type=['csv'],
                key=f"upload_{KPI_FILE_KEY}",
                label_visibility="collapsed"
            )

        with col2:
            st.download_button(
                label="📥 Template",
                data=create_template(),
                file_name=f"TEMPLATE_{FILE_CONFIG['file_name']}",
                mime="text/csv",
                width='stretch'
            )

        if uploaded_file is not None:
            try:
                raw = uploaded_file.getvalue()
                csv_text = decode_csv_bytes(raw)
                is_valid, errors, warnings, row_count = validate_kpi_csv(csv_text)

                if is_valid:
                    # Stored as a buffer so file_loader reads it like any upload
                    st.session_state.uploaded_files[KPI_FILE_KEY] = BytesIO(raw)
                    st.session_state.upload_info[KPI_FILE_KEY] = {
                        'timestamp': datetime.now(),
                        'rows': row_count,
                    }
                    st.session_state.upload_history.append({
                        'file': FILE_CONFIG['file_name'],
                        'timestamp': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                        'status': 'Success',
                        'rows': row_count
                    })

                    st.success(f"✅ File validated successfully! Loaded {row_count:,} rows")
                    for warning in warnings:
                        st.warning(f"⚠️ {warning}")

                    with st.expander("Preview Data (first 5 rows)", expanded=False):
                        st.text("\n".join(csv_text.strip().split('\n')[:6]))

                else:
                    st.error("❌ Validation failed:")
                    for error in errors:
                        st.error(f"  • {error}")

                    st.session_state.upload_history.append({
                        'file': FILE_CONFIG['file_name'],
                        'timestamp': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                        'status': 'Failed',
                        'rows': 0
                    })

            except UnicodeDecodeError as e:
                st.error(f"❌ Error reading file: {str(e)}")

        elif KPI_FILE_KEY in st.session_state.upload_info:
            file_info = st.session_state.upload_info[KPI_FILE_KEY]
            st.info(f"ℹ️ Currently loaded: {file_info['rows']:,} rows (uploaded {file_info['timestamp'].strftime('%Y-%m-%d %H:%M:%S')})")

    st.divider()

    # === ACTIONS ===
    st.subheader("⚙️ Actions")

    col1, col2 = st.columns(2)

    with col1:
        if st.button("🔄 Refresh Dashboard", width='stretch', help="Rebuild the dashboard from the uploaded data"):
            st.session_state.pop('dashboard_data', None)
            st.success("✅ Data will be rebuilt. Navigate to any page to see your uploaded data.")

    with col2:
        if st.button("🗑️ Clear Upload", width='stretch', help="Go back to the CSV on disk"):
            st.session_state.uploaded_files = {}
            st.session_state.upload_info = {}
            st.session_state.pop('dashboard_data', None)
            st.success("✅ Upload cleared!")
            st.rerun()

    st.divider()

    # === UPLOAD HISTORY ===
    st.subheader("📜 Upload History")
    st.caption("Last 10 upload attempts")

    if st.session_state.upload_history:
        history_df = pd.DataFrame(st.session_state.upload_history[-10:])
        history_df = history_df[['timestamp', 'file', 'status', 'rows']]
        history_df.columns = ['Timestamp', 'File', 'Status', 'Rows']
        st.dataframe(history_df, hide_index=True, width='stretch')
    else:
        st.info("No upload history yet")

    # === FOOTER NOTES ===
    st.divider()
    st.caption("**Note:** Uploaded data is stored in session state and will be cleared when the browser session ends. For permanent data changes, replace the CSV file in the Data directory.")
