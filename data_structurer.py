"""
Data Structurer
Groups parsed KPI rows by (initiative, sub initiative, metric) into four
parallel month-keyed series: actual, forecast, YTD actual, YTD forecast.
"""

import time
from collections import namedtuple
from types import MappingProxyType

from diagnostics import MalformedRowError, MissingDataError, ensure_log
from kpi_rules import MONTH_ORDER, SERIES_FIELDS, sort_months

TripleKey = namedtuple('TripleKey', ['initiative', 'sub_initiative', 'metric'])


class StructuredDataset:
    """
    Read-only lookup of KPI series keyed by TripleKey.

    Attributes:
        initiatives: Initiative names in first-seen order
        sub_initiatives: Sub initiative names in first-seen order (across all initiatives)
        metrics: Metric names in first-seen order
        series: TripleKey -> {"actual": {month: value}, "forecast": ..., "ytd_actual": ..., "ytd_forecast": ...}
        rows: The rows the dataset was built from
    """

    def __init__(self, initiatives, sub_initiatives, metrics, series, rows=()):
        self.initiatives = tuple(initiatives)
        self.sub_initiatives = tuple(sub_initiatives)
        self.metrics = tuple(metrics)
        self.series = MappingProxyType({
            TripleKey(*triple): MappingProxyType({
                field: MappingProxyType(dict(values[field])) for field in SERIES_FIELDS
            })
            for triple, values in series.items()
        })
        self.rows = tuple(MappingProxyType(dict(row)) for row in rows)

    def __eq__(self, other):
        if not isinstance(other, StructuredDataset):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"StructuredDataset({len(self.initiatives)} initiatives, "
                f"{len(self.sub_initiatives)} sub initiatives, {len(self.metrics)} metrics, "
                f"{len(self.series)} series)")

    def triples(self):
        return list(self.series.keys())

    def get_series(self, triple):
        """Series for one triple; raises MissingDataError when absent."""
        try:
            return self.series[TripleKey(*triple)]
        except KeyError:
            raise MissingDataError(
                f"No data for {' - '.join(triple)}", triple=TripleKey(*triple)
            ) from None

    def get_value(self, triple, field, month):
        """One month value; raises MissingDataError when the triple or month is absent."""
        values = self.get_series(triple)[field]
        if month not in values:
            raise MissingDataError(
                f"No {field} value for {' - '.join(triple)} in {month}",
                triple=TripleKey(*triple), month=month,
            )
        return values[month]

    def sub_initiatives_for(self, initiative):
        """Sub initiatives that report data under an initiative, in first-seen order."""
        found = []
        for triple in self.series:
            if triple.initiative == initiative and triple.sub_initiative not in found:
                found.append(triple.sub_initiative)
        return found

    def find_initiative(self, sub_initiative):
        """First initiative (in initiative order) containing the sub initiative, or None."""
        for initiative in self.initiatives:
            if sub_initiative in self.sub_initiatives_for(initiative):
                return initiative
        return None

    def pairs_reporting(self, metric):
        """(initiative, sub initiative) pairs that report a metric at all."""
        return [(t.initiative, t.sub_initiative) for t in self.series if t.metric == metric]

    def months(self):
        """Union of months across every series, in calendar order."""
        seen = []
        for values in self.series.values():
            for month in values["actual"]:
                if month not in seen:
                    seen.append(month)
        return sort_months(seen)

    def to_dict(self):
        """Plain-dict form used for JSON export and equality."""
        return {
            "initiatives": list(self.initiatives),
            "sub_initiatives": list(self.sub_initiatives),
            "metrics": list(self.metrics),
            "series": [
                dict(triple._asdict(), **{field: dict(values[field]) for field in SERIES_FIELDS})
                for triple, values in self.series.items()
            ],
            "rows": [dict(row) for row in self.rows],
        }

    @classmethod
    def from_dict(cls, payload):
        series = {}
        for record in payload.get("series", []):
            triple = TripleKey(record["initiative"], record["sub_initiative"], record["metric"])
            series[triple] = {field: record.get(field, {}) for field in SERIES_FIELDS}
        return cls(
            payload.get("initiatives", []),
            payload.get("sub_initiatives", []),
            payload.get("metrics", []),
            series,
            payload.get("rows", []),
        )


def _append_unique(items, seen, value):
    if value not in seen:
        seen.add(value)
        items.append(value)


def structure_data(rows, logs=None):
    """
    Build the StructuredDataset from parsed rows.

    Series are ordered by initiative, then sub initiative, then metric
    (each in first-seen order). When two rows share the same triple and
    month, the later row wins.

    Args:
        rows: Row dicts from parse_csv_data
        logs: Optional PipelineLog receiving progress and anomalies

    Returns:
        StructuredDataset
    """
    logs = ensure_log(logs)
    start_time = time.time()
    logs.section("Data Structurer")

    initiatives, sub_initiatives, metrics = [], [], []
    seen_initiatives, seen_subs, seen_metrics = set(), set(), set()
    grouped = {}
    unknown_months = []

    for index, row in enumerate(rows):
        initiative = row.get("initiative", "")
        sub_initiative = row.get("sub_initiative", "")
        metric = row.get("metric", "")
        _append_unique(initiatives, seen_initiatives, initiative)
        _append_unique(sub_initiatives, seen_subs, sub_initiative)
        _append_unique(metrics, seen_metrics, metric)

        triple = TripleKey(initiative, sub_initiative, metric)
        # The triple exists once any row matches it, even if that row's month is unusable
        values = grouped.setdefault(triple, {field: {} for field in SERIES_FIELDS})

        month = row.get("month")
        if not month or not isinstance(month, str):
            logs.record(MalformedRowError(
                f"Invalid month {month!r} in row {index + 1} ({initiative} - {sub_initiative} - {metric})",
                triple=triple, month=month,
            ))
            continue

        if month not in MONTH_ORDER and month not in unknown_months:
            unknown_months.append(month)
            logs.warning(f"Unrecognized month name '{month}'; it will sort before January.")

        for field in SERIES_FIELDS:
            values[field][month] = row.get(field, 0)

    initiative_pos = {name: i for i, name in enumerate(initiatives)}
    sub_pos = {name: i for i, name in enumerate(sub_initiatives)}
    metric_pos = {name: i for i, name in enumerate(metrics)}
    ordered = sorted(
        grouped.items(),
        key=lambda item: (initiative_pos[item[0].initiative],
                          sub_pos[item[0].sub_initiative],
                          metric_pos[item[0].metric]),
    )

    dataset = StructuredDataset(initiatives, sub_initiatives, metrics, dict(ordered), rows)

    logs.info(f"Found {len(initiatives)} initiatives, {len(sub_initiatives)} sub-initiatives, "
              f"and {len(metrics)} metrics.")
    logs.info(f"Built {len(dataset.series)} series covering months: {', '.join(dataset.months())}")
    logs.info(f"Data Structurer finished in {time.time() - start_time:.2f} seconds.")
    return dataset
