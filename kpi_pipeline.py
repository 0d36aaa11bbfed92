"""
KPI Pipeline
Runs parse -> structure -> derived metrics on one CSV text and returns every
result as a value. The Streamlit pages receive this dict as an argument;
nothing is kept at module level.
"""

import json
import time
from datetime import datetime

from csv_parser import parse_csv_data
from data_structurer import StructuredDataset, TripleKey, structure_data
from derived_metrics import calculate_mom_changes, calculate_totals, calculate_ytd_achievement
from diagnostics import ensure_log
from kpi_rules import DISPLAY_RULES

JSON_FORMAT_VERSION = 1


def resolve_latest_month(dataset, configured=None, logs=None):
    """
    Pick the single reporting month used by cards and the achievement chart.

    Args:
        dataset: StructuredDataset
        configured: Month name chosen by the user or DISPLAY_RULES, or None
        logs: Optional PipelineLog

    Returns:
        The configured month when the data has it, else the last month present
        (calendar order), else None for an empty dataset
    """
    logs = ensure_log(logs)
    months = dataset.months()

    if configured and configured in months:
        return configured

    latest = months[-1] if months else None
    if configured:
        logs.warning(f"Configured reporting month '{configured}' has no data; using '{latest}' instead.")
    return latest


def run_kpi_pipeline(csv_text, logs=None, latest_month=None):
    """
    Build every dashboard data structure from one CSV export.

    Args:
        csv_text: Raw CSV text
        logs: Optional PipelineLog (a new one is created otherwise)
        latest_month: Reporting month override (defaults to DISPLAY_RULES)

    Returns:
        dict with rows, dataset, mom_changes, totals, ytd_achievement,
        latest_month, logs, errors (anomaly DataFrame), load_time, load_time_str
    """
    logs = ensure_log(logs)
    start_time = time.time()
    logs.section("KPI Pipeline")

    rows = parse_csv_data(csv_text, logs=logs)
    dataset = structure_data(rows, logs=logs)

    # The three calculators are independent of each other
    mom_changes = calculate_mom_changes(dataset, logs=logs)
    ytd_achievement = calculate_ytd_achievement(dataset, logs=logs)
    totals = calculate_totals(dataset, logs=logs)

    if latest_month is None:
        latest_month = DISPLAY_RULES.get("latest_reporting_month")
    latest_month = resolve_latest_month(dataset, latest_month, logs=logs)

    logs.info(f"Reporting month: {latest_month}")
    logs.info(f"KPI Pipeline finished in {time.time() - start_time:.2f} seconds "
              f"with {logs.anomaly_count()} anomalies.")

    load_time = datetime.now()
    return {
        'rows': rows,
        'dataset': dataset,
        'mom_changes': mom_changes,
        'totals': totals,
        'ytd_achievement': ytd_achievement,
        'latest_month': latest_month,
        'logs': logs,
        'errors': logs.to_frame(),
        'load_time': load_time,
        'load_time_str': load_time.strftime("%Y-%m-%d %H:%M:%S"),
    }


# ===== JSON ROUND-TRIP =====

def _triple_table_to_records(table):
    return [dict(triple._asdict(), values=dict(values)) for triple, values in table.items()]


def _records_to_triple_table(records):
    return {
        TripleKey(r["initiative"], r["sub_initiative"], r["metric"]): dict(r["values"])
        for r in records
    }


def dashboard_data_to_json(data, indent=None):
    """
    Serialize the pipeline output (dataset and the three derived tables) to JSON.

    TripleKey-keyed tables become lists of records so key order survives.
    """
    payload = {
        "version": JSON_FORMAT_VERSION,
        "latest_month": data.get("latest_month"),
        "dataset": data["dataset"].to_dict(),
        "mom_changes": _triple_table_to_records(data["mom_changes"]),
        "totals": data["totals"],
        "ytd_achievement": _triple_table_to_records(data["ytd_achievement"]),
    }
    return json.dumps(payload, indent=indent, ensure_ascii=False)


def dashboard_data_from_json(text):
    """Rebuild the dataset and derived tables written by dashboard_data_to_json."""
    payload = json.loads(text)
    if payload.get("version") != JSON_FORMAT_VERSION:
        raise ValueError(f"Unsupported dashboard JSON version: {payload.get('version')}")

    dataset = StructuredDataset.from_dict(payload["dataset"])
    return {
        'rows': list(payload["dataset"].get("rows", [])),
        'dataset': dataset,
        'mom_changes': _records_to_triple_table(payload["mom_changes"]),
        'totals': payload["totals"],
        'ytd_achievement': _records_to_triple_table(payload["ytd_achievement"]),
        'latest_month': payload.get("latest_month"),
    }
