# fields.py
# =============================================================================
# Header normalizer + field interpreters.
#
# Spreadsheet cells arrive as a loose union:
#   str | int | float | bool | date | datetime | None   (NaN/NaT count as None)
# Every interpreter below is total over that union: malformed input degrades
# to a default (False, None, StatusClass.OPEN) and never raises.
# =============================================================================
from __future__ import annotations
import math
import numbers
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

Cell = Union[str, int, float, bool, date, datetime, None]

TRUTHY_TOKENS = {"true", "yes", "y", "1", "done", "completed", "closed"}
MIN_YEAR = 1900

_WHITESPACE_RE = re.compile(r"\s+")


class StatusClass(str, Enum):
    COMPLETED = "Completed"
    IN_PROGRESS = "InProgress"
    BLOCKED = "Blocked"
    OPEN = "Open"


# Evaluated top to bottom, first match wins. OPEN is the fallback.
STATUS_RULES: Tuple[Tuple[re.Pattern, StatusClass], ...] = (
    (re.compile(r"done|complete|resolved"), StatusClass.COMPLETED),
    (re.compile(r"in.?progress|in.?review|testing"), StatusClass.IN_PROGRESS),
    (re.compile(r"blocked|waiting|on.?hold"), StatusClass.BLOCKED),
)


# ---------------
# Header handling
# ---------------
def normalize_header(header: Any) -> str:
    """'Due Date' -> 'due_date', 'Assigned  To' -> 'assigned_to'."""
    text = "" if header is None else str(header)
    return _WHITESPACE_RE.sub("_", text.lower())


def normalize_row(row: Mapping[Any, Cell]) -> Dict[str, Cell]:
    # Colliding headers: the later column wins.
    return {normalize_header(k): v for k, v in row.items()}


# ---------------
# Cell helpers
# ---------------
def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def cell_text(value: Cell) -> Optional[str]:
    """Render a cell as display text; None for blank cells."""
    if is_blank(value):
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, datetime):
        if value.hour == value.minute == value.second == value.microsecond == 0:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real):
        f = float(value)
        if math.isfinite(f) and f.is_integer():
            return str(int(f))
        return str(f)
    return str(value)


# ---------------
# Interpreters
# ---------------
def detect_bool(value: Cell) -> bool:
    """True for boolean True or a recognised truthy token; False otherwise."""
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    text = cell_text(value)
    if text is None:
        return False
    return text.lower() in TRUTHY_TOKENS


def _to_local_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    try:
        return dt.astimezone().replace(tzinfo=None)
    except (OverflowError, ValueError, OSError):
        return dt.replace(tzinfo=None)


def _coerce_date(value: Cell) -> Optional[datetime]:
    if is_blank(value) or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, pd.Timestamp):
        return _to_local_naive(value.to_pydatetime())
    if isinstance(value, datetime):
        return _to_local_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        # bare numbers are not dates here
        return None
    try:
        ts = pd.to_datetime(value.strip(), errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return _to_local_naive(ts.to_pydatetime())


def parse_date(value: Cell) -> Optional[datetime]:
    """Robustly parse a date-like cell into a naive local datetime, or None.

    Years before MIN_YEAR are placeholders (year-less strings such as "May 5"
    come back as year 1, spreadsheet zero dates as 1899) and count as absent.
    """
    parsed = _coerce_date(value)
    if parsed is None or parsed.year < MIN_YEAR:
        return None
    return parsed


def classify_status(status: Cell) -> StatusClass:
    text = cell_text(status)
    if text is None:
        return StatusClass.OPEN
    lowered = text.lower()
    for pattern, status_class in STATUS_RULES:
        if pattern.search(lowered):
            return status_class
    return StatusClass.OPEN
