"""
Pytest configuration and shared fixtures for all tests
Centralized mock KPI CSV data and utilities
"""

import pytest
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from csv_parser import parse_csv_data
from data_structurer import structure_data
from diagnostics import PipelineLog

HEADER = ("Initiative Cards,Sub Initiative,Metric,Month,Actual,Forecast,"
          "YTD Actual Totals,YTD Forecast Totals")

# ===== SHARED MOCK DATA FIXTURES =====

@pytest.fixture
def header_line():
    return HEADER


@pytest.fixture
def growth_csv():
    """Two months of one percent metric for Growth / Website"""
    return (
        f"{HEADER}\n"
        "Growth,Website,Engagement Rate,January,45.0%,50.0%,45.0%,50.0%\n"
        "Growth,Website,Engagement Rate,February,48.0%,50.0%,93.0%,100.0%\n"
    )


@pytest.fixture
def multi_initiative_csv():
    """
    Creates mock KPI CSV with:
    - Two initiatives sharing the "Blog" sub initiative
    - Quoted counts with thousands separators
    - Summed (sessions) and averaged (engagement rate) metrics
    - Rows out of calendar order
    - A zero YTD forecast
    """
    return (
        f"{HEADER}\n"
        'Content,Blog,Organic Total Sessions,February,"1,200","1,100","2,200","2,000"\n'
        'Content,Blog,Organic Total Sessions,January,"1,000",900,"1,000",900\n'
        "Content,Blog,Engagement Rate,January,20%,25%,20%,25%\n"
        "Content,Blog,Engagement Rate,February,30%,25%,25%,25%\n"
        "Content,Product Pages,Organic Total Sessions,January,200,300,200,300\n"
        "Content,Product Pages,Organic Total Sessions,February,100,300,300,600\n"
        "Content,Product Pages,Engagement Rate,January,40%,25%,40%,25%\n"
        "Content,Product Pages,Engagement Rate,February,50%,25%,45%,25%\n"
        "Partnerships,Blog,Organic Total Sessions,January,50,60,50,0\n"
        "Partnerships,Blog,Organic Total Sessions,February,0,60,50,0\n"
    )


@pytest.fixture
def malformed_csv():
    """One row missing its trailing field"""
    return (
        f"{HEADER}\n"
        "Growth,Website,Engagement Rate,January,45.0%,50.0%,45.0%\n"
    )


@pytest.fixture
def logs():
    return PipelineLog()


@pytest.fixture
def multi_dataset(multi_initiative_csv):
    """StructuredDataset built from multi_initiative_csv"""
    return structure_data(parse_csv_data(multi_initiative_csv))


@pytest.fixture
def sample_csv_path():
    """The sample export shipped in Data/"""
    return os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "Data", "Website KPIs.csv")

# ===== UTILITY FUNCTIONS FOR TESTS =====

def assert_log_contains(logs, expected_message):
    """
    Helper to assert that a log message contains expected text

    Args:
        logs: List of log messages
        expected_message: Text expected to be in one of the logs
    """
    log_text = " ".join(logs)
    assert expected_message in log_text, f"Expected '{expected_message}' not found in logs: {log_text}"

def assert_columns_exist(df, columns):
    """
    Helper to assert that DataFrame contains required columns

    Args:
        df: Pandas DataFrame
        columns: List of column names that should exist
    """
    missing = set(columns) - set(df.columns)
    assert not missing, f"Missing required columns: {missing}"
