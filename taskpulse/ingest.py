# ingest.py
from __future__ import annotations
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from taskpulse.errors import ParseError
from taskpulse.metrics import compute_metrics
from taskpulse.models import Metrics, Snapshot
from taskpulse.normalizer import normalize_rows
from taskpulse.store import SnapshotStore

logger = logging.getLogger(__name__)

CSV_SUFFIXES = {".csv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
PARSE_FAILED_MESSAGE = "Failed to parse file. Please ensure it is a valid Excel/CSV file."


def decode_spreadsheet(path: str | Path) -> List[Dict[Any, Any]]:
    """
    Read the first sheet of a workbook (or a CSV) into ordered rows.

    Args:
        path: Path to the uploaded .csv/.xlsx/.xls file.

    Returns:
        One dict per data row, keyed by the original header; blank cells are None.

    Raises:
        ParseError: If the file is missing, has an unsupported extension, or
            cannot be decoded as tabular data.
    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix not in CSV_SUFFIXES | EXCEL_SUFFIXES:
        raise ParseError(f"Unsupported file type '{suffix or p.name}'")
    try:
        if suffix in CSV_SUFFIXES:
            df = pd.read_csv(p)
        else:
            df = pd.read_excel(p, sheet_name=0)
    except Exception as e:
        raise ParseError(f"Could not read {p.name}: {e}") from e

    # Replace blank cells (NaN/NaT) with None
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def ingest_file(path: str | Path, store: SnapshotStore, now: Optional[datetime] = None) -> Snapshot:
    """Decode, normalise, aggregate, then swap the snapshot in one step.

    A ParseError propagates before the store is touched, so the previous
    snapshot stays in place.
    """
    rows = decode_spreadsheet(path)
    tasks = normalize_rows(rows)
    metrics = compute_metrics(tasks, now=now)
    snapshot = store.replace(tasks, metrics)
    logger.info("Ingested %s: %d rows", Path(path).name, len(tasks))
    return snapshot


def upload_message(metrics: Metrics) -> str:
    return (f"Uploaded {metrics.total} tasks. Open: {metrics.open}, "
            f"Completed: {metrics.completed}, Closed today: {metrics.closed_today}.")
