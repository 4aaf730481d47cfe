"""
trafficstats — metrics sampling and export
==========================================

* :mod:`trafficstats.snapshot` – :class:`MetricsSnapshot`
* :mod:`trafficstats.metrics`  – :class:`Metrics` history, DataFrame view, summary
* :mod:`trafficstats.export`   – CSV / JSON writers and readers
"""

from trafficstats.snapshot import MetricsSnapshot
from trafficstats.metrics import Metrics, history_frame, queue_columns
from trafficstats.export import read_csv, read_json, to_csv_string, write_csv, write_json

__all__ = [
    "MetricsSnapshot",
    "Metrics",
    "history_frame",
    "queue_columns",
    "read_csv",
    "read_json",
    "to_csv_string",
    "write_csv",
    "write_json",
]
