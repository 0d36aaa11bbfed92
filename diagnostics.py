"""
Diagnostics for the KPI pipeline.

Loaders keep the dashboard's logging convention: an optional ``logs`` list
receiving "INFO: ...", "WARNING: ..." and "ERROR: ..." lines. PipelineLog is
that list, plus the structured anomaly objects behind the warnings so callers
can count them by type instead of matching log text.
"""

import pandas as pd


class KpiPipelineError(Exception):
    """Base class for recoverable pipeline anomalies."""

    level = "WARNING"

    def __init__(self, message, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class MalformedRowError(KpiPipelineError):
    """A CSV line or row that cannot be used (field count mismatch, bad month)."""


class MissingDataError(KpiPipelineError, LookupError):
    """A lookup of a triple, metric, or month that is not in the dataset."""


class CatastrophicParseError(KpiPipelineError):
    """Unexpected failure while scanning CSV text; the parse yields no rows."""

    level = "ERROR"


ANOMALY_COLUMNS = [
    "error_type", "level", "message", "line_number",
    "initiative", "sub_initiative", "metric", "month",
]


class PipelineLog(list):
    """
    Log lines for one pipeline run, with the anomalies that produced them.

    Behaves as the plain ``logs`` list used across the dashboard loaders,
    so " ".join(logs) and startswith("WARNING:") filtering keep working.
    When built around a caller's plain list (``sink``), every new line is
    appended to that list too.
    """

    def __init__(self, *args, sink=None):
        super().__init__(*args)
        self.anomalies = []
        self.sink = sink

    def append(self, line):
        super().append(line)
        if self.sink is not None:
            self.sink.append(line)

    def info(self, message):
        self.append(f"INFO: {message}")

    def warning(self, message):
        self.append(f"WARNING: {message}")

    def error(self, message):
        self.append(f"ERROR: {message}")

    def section(self, title):
        self.append(f"--- {title} ---")

    def record(self, anomaly):
        """Keep an anomaly and log it at its level."""
        self.anomalies.append(anomaly)
        self.append(f"{anomaly.level}: {anomaly.message}")
        return anomaly

    def anomaly_count(self, error_type=KpiPipelineError):
        """Count recorded anomalies of a type (default: all)."""
        return sum(1 for anomaly in self.anomalies if isinstance(anomaly, error_type))

    def to_frame(self):
        """Anomalies as a DataFrame, one row each (empty frame with columns if none)."""
        records = []
        for anomaly in self.anomalies:
            triple = anomaly.context.get("triple")
            records.append({
                "error_type": type(anomaly).__name__,
                "level": anomaly.level,
                "message": anomaly.message,
                "line_number": anomaly.context.get("line_number"),
                "initiative": triple[0] if triple else None,
                "sub_initiative": triple[1] if triple else None,
                "metric": triple[2] if triple else anomaly.context.get("metric"),
                "month": anomaly.context.get("month"),
            })
        return pd.DataFrame(records, columns=ANOMALY_COLUMNS)


def ensure_log(logs):
    """
    Return ``logs`` as a PipelineLog.

    None creates a new log; a plain list is wrapped so lines still land in it.
    """
    if logs is None:
        return PipelineLog()
    if isinstance(logs, PipelineLog):
        return logs
    if isinstance(logs, list):
        return PipelineLog(logs, sink=logs)
    raise TypeError("logs must be a list of log lines")
