#!/usr/bin/env python3
"""
trafficstats/export.py
======================
Writers and readers for metrics histories.

* CSV: header ``time,avgWaiting,completed,active,<sorted road ids>``,
  one row per snapshot, missing per-road counts written as 0.
* JSON: array of ``{time, avgWaiting, completed, active, queues}``.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import os
from typing import List, Sequence

import pandas as pd

from trafficstats.metrics import BASE_COLUMNS, queue_columns
from trafficstats.snapshot import MetricsSnapshot

log = logging.getLogger("export")


def _csv_rows(snapshots: Sequence[MetricsSnapshot]):
    roads = queue_columns(snapshots)
    yield list(BASE_COLUMNS) + roads
    for snap in snapshots:
        row = [snap.time, snap.avg_waiting, snap.completed, snap.active]
        row.extend(snap.queue_lengths.get(r, 0) for r in roads)
        yield row


def _ensure_parent(file_path: str) -> None:
    folder = os.path.dirname(file_path)
    if folder:
        os.makedirs(folder, exist_ok=True)


def to_csv_string(snapshots: Sequence[MetricsSnapshot]) -> str:
    """Render *snapshots* as CSV text, header included."""
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerows(_csv_rows(snapshots))
    return buf.getvalue()


def write_csv(snapshots: Sequence[MetricsSnapshot], file_path: str) -> None:
    """Write *snapshots* to *file_path*; parent folders are created."""
    _ensure_parent(file_path)
    with open(file_path, mode="w", newline="") as fh:
        csv.writer(fh, lineterminator="\n").writerows(_csv_rows(snapshots))
    log.info("Metrics CSV written: %s (%d rows)", file_path, len(snapshots))


def write_json(snapshots: Sequence[MetricsSnapshot], file_path: str) -> None:
    """Write *snapshots* to *file_path* as a JSON array."""
    _ensure_parent(file_path)
    with open(file_path, mode="w") as fh:
        json.dump([s.as_dict() for s in snapshots], fh, indent=2)
        fh.write("\n")
    log.info("Metrics JSON written: %s (%d rows)", file_path, len(snapshots))


def read_csv(source) -> pd.DataFrame:
    """
    Load an exported CSV.

    Args:
        source: Path or file-like object accepted by :func:`pandas.read_csv`.

    Returns:
        pandas.DataFrame: One row per snapshot; every column except ``time``
        and ``avgWaiting`` is integer.

    Raises:
        ValueError: If the header does not start with the base columns.
    """
    df = pd.read_csv(source)
    if tuple(df.columns[: len(BASE_COLUMNS)]) != BASE_COLUMNS:
        raise ValueError(f"unexpected metrics header: {list(df.columns)}")
    int_columns = [c for c in df.columns if c not in ("time", "avgWaiting")]
    return df.astype({c: "int64" for c in int_columns})


def read_json(file_path: str) -> List[MetricsSnapshot]:
    with open(file_path) as fh:
        data = json.load(fh)
    return [MetricsSnapshot.from_dict(item) for item in data]
