"""
UI Components Module
Modular, reusable UI components for the Website KPI Dashboard
Easy to add, edit, and enhance without touching pipeline logic
"""

import math

import streamlit as st

from kpi_rules import get_metric_kind

STATUS_COLORS = {
    "positive": "green",
    "warning": "orange",
    "negative": "red",
}

# ===== UI LAYOUT HELPERS =====

def render_page_header(title, icon="📊", subtitle=None):
    """Render consistent page headers"""
    st.title(f"{icon} {title}")
    if subtitle:
        st.caption(subtitle)
    st.divider()

def render_metric_cards(cards, columns=4):
    """
    Render metric cards in a grid

    Args:
        cards: List of card dicts from metric_cards
            [{"title": "...", "value": "1.2K", "stats": [{"label": "...", "value": "+5.0%", "status": "positive"}]}]
        columns: Cards per row
    """
    if not cards:
        st.info("ℹ️ No metrics available. Please check the data source.")
        return

    for start in range(0, len(cards), columns):
        row_cards = cards[start:start + columns]
        cols = st.columns(columns)
        for idx, card in enumerate(row_cards):
            with cols[idx]:
                stats = card.get("stats", [])
                # First stat becomes the st.metric delta, the rest are captions
                lead = stats[0] if stats else None
                st.metric(
                    label=card["title"],
                    value=card.get("value") or "N/A",
                    delta=f"{lead['value']} {lead['label']}" if lead else None,
                    help=card.get("help")
                )
                for stat in stats[1:]:
                    color = STATUS_COLORS.get(stat.get("status"), "gray")
                    st.caption(f"{stat['label']}: :{color}[{stat['value']}]")

def render_data_table(df, title=None, max_rows=100, downloadable=True, download_filename="data.csv"):
    """
    Render a data table with optional download

    Args:
        df: Pandas DataFrame
        title: Optional section title
        max_rows: Maximum rows to display
        downloadable: Show download button
        download_filename: Name for downloaded file
    """
    if title:
        st.subheader(title)

    if df.empty:
        st.info("No data available")
        return

    st.dataframe(df.head(max_rows), width='stretch', hide_index=True)

    if len(df) > max_rows:
        st.caption(f"Showing first {max_rows} of {len(df)} records")

    if downloadable:
        csv = df.to_csv(index=False).encode('utf-8')
        # id() keeps the key unique when filenames repeat
        unique_key = f"download_{download_filename}_{id(df)}"
        st.download_button(
            label="📥 Download Full Data",
            data=csv,
            file_name=download_filename,
            mime="text/csv",
            key=unique_key
        )

def render_chart(fig, title=None, height=400):
    """
    Render a Plotly chart with consistent styling

    Args:
        fig: Plotly figure object (None renders a warning instead)
        title: Optional chart title
        height: Chart height in pixels
    """
    if title:
        st.subheader(title)

    if fig is None:
        st.warning("Chart unavailable: no data for this selection. Check Debug & Logs for details.")
        return

    fig.update_layout(
        height=height,
        margin=dict(l=20, r=20, t=40, b=20),
        template="plotly_white"
    )

    st.plotly_chart(fig, width='stretch')

def render_info_box(message, type="info"):
    """
    Render an info/warning/error box

    Args:
        message: Message to display
        type: "info", "warning", "error", "success"
    """
    if type == "info":
        st.info(message)
    elif type == "warning":
        st.warning(message)
    elif type == "error":
        st.error(message)
    elif type == "success":
        st.success(message)

def render_section_header(title, description=None, collapsible=False, expanded=True):
    """
    Render a section header with optional description

    Args:
        title: Section title
        description: Optional description text
        collapsible: If True, returns an expander context
        expanded: Initial state of a collapsible section
    """
    if collapsible:
        return st.expander(title, expanded=expanded)
    else:
        st.subheader(title)
        if description:
            st.caption(description)
        return None

# ===== NAVIGATION HELPERS =====

def get_main_navigation():
    """
    Define main navigation menu structure
    Returns list of menu items with page info
    """
    return [
        {
            "id": "overview",
            "label": "📊 Overview",
            "description": "Website totals, YTD cards, and monthly trends"
        },
        {
            "id": "initiatives",
            "label": "🎯 Initiatives",
            "description": "Cards and actual vs forecast charts per initiative"
        },
        {
            "id": "achievement",
            "label": "🏁 YTD Achievement",
            "description": "YTD actual against YTD forecast by sub-initiative"
        },
        {
            "id": "data_upload",
            "label": "📤 Data Management",
            "description": "Upload a KPI export and download the template"
        },
        {
            "id": "debug",
            "label": "🔧 Debug & Logs",
            "description": "Pipeline logs, anomalies, and diagnostics"
        }
    ]

# ===== UTILITY FORMATTERS =====

def format_large_number(number):
    """Abbreviate with B/M/K suffixes (one decimal), else a whole number."""
    if number >= 1_000_000_000:
        return f"{number / 1_000_000_000:.1f}B"
    elif number >= 1_000_000:
        return f"{number / 1_000_000:.1f}M"
    elif number >= 1_000:
        return f"{number / 1_000:.1f}K"
    return f"{number:.0f}"

def format_duration(seconds):
    """Format seconds as m:ss"""
    minutes = math.floor(seconds / 60)
    remainder = math.floor(math.fmod(seconds, 60))
    return f"{minutes}:{remainder:02d}"

def format_metric_value(value, metric=""):
    """
    Format a KPI value for display according to its metric

    Percent metrics are stored as decimals (0.452 -> "45.2%"),
    durations as seconds (95 -> "1:35"), everything else as counts.
    """
    if value is None:
        return "N/A"
    if value == 0:
        return "0"

    kind = get_metric_kind(metric)
    if kind == "percent":
        return f"{value * 100:.1f}%"
    if kind == "duration":
        return format_duration(value)
    return format_large_number(value)

def format_signed_percent(value):
    """Format a percent with an explicit sign: 5 -> '+5.0%'"""
    if value is None:
        return "N/A"
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.1f}%"
