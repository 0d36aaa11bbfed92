"""
CSV Parser for the Website KPI export.
Turns the raw CSV text into an ordered list of row dicts with numeric KPI
columns coerced to floats and percentages converted to decimals.
"""

import re
import time

from diagnostics import CatastrophicParseError, MalformedRowError, ensure_log
from kpi_rules import CSV_COLUMNS, MONTH_COLUMN, NUMERIC_COLUMNS, REQUIRED_COLUMNS

# Longest numeric prefix, the way JavaScript's parseFloat reads "12.5abc" as 12.5
_LEADING_FLOAT = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')

# === Value Helpers ===

def _leading_float(text):
    match = _LEADING_FLOAT.match(text.strip())
    if not match:
        return None
    return float(match.group(0))


def parse_percentage(value):
    """
    Parse a percentage string into a decimal.

    Args:
        value: String such as "45.2%"

    Returns:
        Decimal value (0.452), or 0 for empty/unparseable input
    """
    if not value or value.strip() == '':
        return 0
    number = _leading_float(value.replace('%', '', 1))
    if number is None:
        return 0
    return number / 100


def parse_numeric_value(value):
    """
    Parse a numeric string, removing thousands separators and stray quotes.

    Args:
        value: String such as "1,234"

    Returns:
        Float value, or 0 for empty/unparseable input
    """
    if not value or value.strip() == '':
        return 0
    number = _leading_float(re.sub(r'[",]', '', value))
    # parseFloat(...) || 0 also maps -0 to 0
    return number or 0


def clean_field(value):
    """Trim a field and drop one leading and one trailing double quote."""
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def parse_csv_line(line):
    """
    Split one CSV line into raw field strings.

    A double quote toggles quoted mode and is never part of the value; commas
    inside quotes are kept. Escaped quotes ("") are not supported: each quote
    is an independent toggle.
    """
    fields = []
    in_quotes = False
    current = []

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == ',' and not in_quotes:
            fields.append(''.join(current))
            current = []
        else:
            current.append(char)

    fields.append(''.join(current))
    return fields


def convert_field(header, raw_value):
    """Convert one cleaned field according to its column."""
    if header == MONTH_COLUMN:
        return raw_value
    if header in NUMERIC_COLUMNS:
        if '%' in raw_value:
            return parse_percentage(raw_value)
        return parse_numeric_value(raw_value)
    return raw_value


# === Main Parser ===

def parse_csv_data(csv_text, logs=None):
    """
    Parse the KPI CSV export into row dicts.

    Known columns are renamed through CSV_COLUMNS (e.g. "YTD Actual Totals"
    -> "ytd_actual"); any extra columns are passed through as strings under
    their header name.

    Args:
        csv_text: Raw CSV text (header line first)
        logs: Optional PipelineLog receiving progress and anomalies

    Returns:
        list of row dicts; empty list when there is no data or the scan fails
    """
    logs = ensure_log(logs)
    start_time = time.time()
    logs.section("CSV Parser")

    try:
        lines = csv_text.strip().split('\n')
        logs.info(f"CSV has {len(lines)} lines.")

        if len(lines) <= 1:
            logs.warning("CSV data has no data rows.")
            return []

        headers = [field.strip() for field in parse_csv_line(lines[0])]
        missing_cols = [col for col in REQUIRED_COLUMNS if col not in headers]
        if missing_cols:
            logs.warning(f"CSV header is missing expected columns: {', '.join(missing_cols)}")

        rows = []
        for line_index, line in enumerate(lines[1:], start=2):
            values = parse_csv_line(line)
            if len(values) != len(headers):
                logs.record(MalformedRowError(
                    f"Line {line_index} has {len(values)} values, expected {len(headers)}",
                    line_number=line_index,
                ))
                continue

            row = {}
            for header, raw in zip(headers, values):
                row[CSV_COLUMNS.get(header, header)] = convert_field(header, clean_field(raw))
            rows.append(row)

    except Exception as e:
        logs.record(CatastrophicParseError(f"Error parsing CSV data: {e}"))
        return []

    logs.info(f"Successfully parsed {len(rows)} rows of data.")
    logs.info(f"CSV Parser finished in {time.time() - start_time:.2f} seconds.")
    return rows
