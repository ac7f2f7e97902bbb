# normalizer.py
from __future__ import annotations
from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Sequence

from taskpulse.config import DEFAULT_ASSIGNEE, DEFAULT_PRIORITY, DEFAULT_PROJECT
from taskpulse.fields import (
    Cell,
    StatusClass,
    cell_text,
    classify_status,
    detect_bool,
    normalize_row,
    parse_date,
)
from taskpulse.models import Task

# ------------------------------------------------
# Column aliases (keys are post-normalize_header)
# ------------------------------------------------
ID_KEYS = ("id", "task_id", "key", "issue_id")
TITLE_KEYS = ("title", "task", "name", "summary")
DESCRIPTION_KEYS = ("description", "details", "notes")
PROJECT_KEYS = ("project", "project_name")
ASSIGNEE_KEYS = ("assignee", "assigned_to", "owner")
STATUS_KEYS = ("status", "state", "stage", "progress")
PRIORITY_KEYS = ("priority",)

DUE_DATE_KEYS = ("due_date", "deadline", "duedate", "due")
CREATED_KEYS = ("created_at", "createdat", "created", "created_date")
COMPLETED_KEYS = ("completed_at", "completedat", "completed_date", "completion_date")
GENERIC_DATE_KEYS = ("date",)
RESOLVED_KEYS = COMPLETED_KEYS + ("closed_at", "done_at", "updated") + GENERIC_DATE_KEYS


def first_text(row: Mapping[str, Cell], keys: Sequence[str]) -> Optional[str]:
    for k in keys:
        text = cell_text(row.get(k))
        if text is not None:
            return text
    return None


def first_date(row: Mapping[str, Cell], keys: Sequence[str]) -> Optional[datetime]:
    """First alias that actually parses wins; junk in an earlier alias is skipped."""
    for k in keys:
        parsed = parse_date(row.get(k))
        if parsed is not None:
            return parsed
    return None


def normalize_task(raw: Mapping[str, Cell]) -> Task:
    """Turn one raw spreadsheet row into a canonical Task. Never raises."""
    row = normalize_row(raw)
    status = first_text(row, STATUS_KEYS)
    status_class = classify_status(status)
    return Task(
        id=first_text(row, ID_KEYS),
        title=first_text(row, TITLE_KEYS),
        description=first_text(row, DESCRIPTION_KEYS),
        project=first_text(row, PROJECT_KEYS) or DEFAULT_PROJECT,
        assignee=first_text(row, ASSIGNEE_KEYS) or DEFAULT_ASSIGNEE,
        status=status,
        status_class=status_class,
        priority=first_text(row, PRIORITY_KEYS) or DEFAULT_PRIORITY,
        due_date=first_date(row, DUE_DATE_KEYS),
        created_at=first_date(row, CREATED_KEYS),
        completed_at=first_date(row, COMPLETED_KEYS),
        date=first_date(row, GENERIC_DATE_KEYS),
        resolved_at=first_date(row, RESOLVED_KEYS),
        completed_flag=detect_bool(row.get("completed")) or status_class == StatusClass.COMPLETED,
    )


def normalize_rows(rows: Iterable[Mapping[str, Cell]]) -> List[Task]:
    # exactly one Task per row, order preserved
    return [normalize_task(r) for r in rows]
