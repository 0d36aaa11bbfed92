import pandas as pd
import io # Required for Excel export

from diagnostics import ensure_log
from kpi_rules import SERIES_FIELDS, sort_months

# --- Table Builders ---

DATASET_COLUMNS = [
    'Initiative', 'Sub Initiative', 'Metric', 'Month',
    'Actual', 'Forecast', 'YTD Actual', 'YTD Forecast',
    'MoM Change %', 'YTD Achievement %'
]


def dataset_to_frame(dataset, mom_changes=None, ytd_achievement=None):
    """
    Flatten the structured dataset into one row per (series, month).

    Rows follow series order, then calendar month order. MoM and achievement
    columns are empty where the derived table has no value (e.g. the first
    month has no MoM change).
    """
    mom_changes = mom_changes or {}
    ytd_achievement = ytd_achievement or {}

    records = []
    for triple, values in dataset.series.items():
        for month in sort_months(values["actual"].keys()):
            record = [triple.initiative, triple.sub_initiative, triple.metric, month]
            record.extend(values[field].get(month) for field in SERIES_FIELDS)
            record.append(mom_changes.get(triple, {}).get(month))
            record.append(ytd_achievement.get(triple, {}).get(month))
            records.append(record)

    return pd.DataFrame(records, columns=DATASET_COLUMNS)


def totals_to_frame(totals):
    """One row per (metric, month) of the site-wide totals."""
    records = []
    for metric, metric_totals in totals.items():
        for month in metric_totals["actual"]:
            records.append({
                'Metric': metric,
                'Month': month,
                'Actual': metric_totals["actual"].get(month),
                'Forecast': metric_totals["forecast"].get(month),
                'YTD Actual': metric_totals["ytd_actual"].get(month),
                'YTD Forecast': metric_totals["ytd_forecast"].get(month),
                'MoM Change %': metric_totals["mom_change"].get(month),
            })
    return pd.DataFrame(records, columns=[
        'Metric', 'Month', 'Actual', 'Forecast', 'YTD Actual', 'YTD Forecast', 'MoM Change %'
    ])


# --- Data Export Function ---

def export_tables_to_excel(sheets, logs=None):
    """
    Processes a dictionary of dataframes
    and returns an Excel file as a bytes object for download.
    The dictionary format is { "sheet_name": (dataframe, include_index_bool) }
    """
    logs = ensure_log(logs)
    output = io.BytesIO()

    with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
        for sheet_name, (df, include_index) in sheets.items():

            if not isinstance(df, pd.DataFrame):
                logs.warning(f"Skipping sheet '{sheet_name}': not a DataFrame.")
                continue
            if df.empty:
                logs.info(f"Skipping sheet '{sheet_name}': DataFrame is empty.")
                continue

            # Excel limits sheet names to 31 characters
            sheet_name = sheet_name[:31]
            df.to_excel(writer, sheet_name=sheet_name, index=include_index)

            # Auto-adjust column widths
            worksheet = writer.sheets[sheet_name]
            offset = 1 if include_index else 0
            for idx, col in enumerate(df.columns):
                series = df[col]
                max_len = max(
                    series.map(lambda v: len(str(v))).max(),  # Data max len, None/NaN included
                    len(str(series.name))  # Header len
                ) + 2
                worksheet.set_column(idx + offset, idx + offset, max_len)

            logs.info(f"Exported {len(df)} rows to sheet '{sheet_name}'.")

    return output.getvalue()
