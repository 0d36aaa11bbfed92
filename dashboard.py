"""
Website KPI Dashboard
Monthly actual vs forecast, totals, and YTD achievement for website initiatives
"""

import streamlit as st
import os
import traceback

from file_loader import read_csv_text
from kpi_pipeline import run_kpi_pipeline
from ui_components import get_main_navigation, render_info_box

# Import page modules
from pages.overview_page import render_overview_page
from pages.initiatives_page import render_initiatives_page
from pages.achievement_page import render_achievement_page
from pages.data_upload_page import KPI_FILE_KEY, render_data_upload_page
from pages.debug_page import render_debug_page

DEFAULT_DATA_PATH = os.path.join("Data", "Website KPIs.csv")

# ===== PAGE CONFIGURATION =====
st.set_page_config(
    page_title="Website KPI Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded"
)

# ===== CUSTOM CSS =====
st.markdown("""
    <style>
        /* Improve metric cards */
        [data-testid="stMetric"] {
            background-color: #f8f9fa;
            padding: 1rem;
            border-radius: 0.5rem;
            border: 1px solid #e9ecef;
        }

        /* Hide automatic Streamlit page navigation */
        [data-testid="stSidebarNav"] {
            display: none;
        }
    </style>
""", unsafe_allow_html=True)

# ===== DATA LOADING =====
# The dataset is read-only and not picklable, so it is kept in session_state
# instead of st.cache_data.

def load_dashboard_data():
    """Read the KPI CSV (upload first, then disk) and run the pipeline once per session."""
    if 'dashboard_data' not in st.session_state:
        data_path = os.environ.get("KPI_DATA_PATH", DEFAULT_DATA_PATH)
        with st.spinner("Loading KPI data..."):
            csv_text = read_csv_text(KPI_FILE_KEY, data_path)
            st.session_state['dashboard_data'] = run_kpi_pipeline(csv_text)
    return st.session_state['dashboard_data']


def main():
    """Main application entry point"""

    # ===== SIDEBAR: HEADER =====
    st.sidebar.title("📊 Website KPIs")
    st.sidebar.caption("Initiative performance dashboard")
    st.sidebar.divider()

    # ===== SIDEBAR: NAVIGATION =====
    navigation = get_main_navigation()
    page_map = {item["label"]: item["id"] for item in navigation}

    selected_label = st.sidebar.selectbox(
        "Navigate to",
        options=list(page_map.keys()),
        index=0,  # Default to Overview
        key="main_nav"
    )
    selected_page = page_map.get(selected_label, "overview")

    st.sidebar.divider()

    # Data Management works without data so a broken file can be replaced
    if selected_page == "data_upload":
        render_data_upload_page()
        return

    try:
        data = load_dashboard_data()
    except FileNotFoundError as e:
        render_info_box(f"❌ {e}. Upload a KPI export on the Data Management page.", type="error")
        return
    except Exception as e:
        st.error(f"❌ Error loading KPI data: {str(e)}")
        with st.expander("Error details"):
            st.code(traceback.format_exc())
        return

    # ===== SIDEBAR: GLOBAL SETTINGS =====
    st.sidebar.markdown("**⚙️ Data Settings**")

    months = data['dataset'].months()
    latest_month = data['latest_month']
    if months:
        latest_month = st.sidebar.selectbox(
            "Reporting month",
            options=months,
            index=months.index(latest_month) if latest_month in months else len(months) - 1,
            key="reporting_month",
            help="Month used for cards and the YTD achievement chart"
        )

    st.sidebar.divider()

    # ===== SIDEBAR: SYSTEM STATUS =====
    st.sidebar.header("📊 System Status")

    col1, col2 = st.sidebar.columns(2)
    with col1:
        st.metric(
            label="Last Updated",
            value=data['load_time'].strftime('%H:%M'),
            help="Time when data was last loaded"
        )
    with col2:
        st.metric(
            label="Anomalies",
            value=f"{data['logs'].anomaly_count():,}",
            help="Malformed rows and missing data found while loading; see Debug & Logs"
        )

    st.sidebar.divider()

    # ===== SIDEBAR: QUICK ACTIONS =====
    st.sidebar.header("⚡ Quick Actions")
    if st.sidebar.button("🔄 Refresh Data", width='stretch', help="Reload the KPI data from the upload or source file"):
        st.session_state.pop('dashboard_data', None)
        st.rerun()

    # Route to selected page
    if selected_page == "overview":
        render_overview_page(data, latest_month)

    elif selected_page == "initiatives":
        render_initiatives_page(data, latest_month)

    elif selected_page == "achievement":
        render_achievement_page(data, latest_month)

    elif selected_page == "debug":
        render_debug_page(data)


if __name__ == "__main__":
    main()
