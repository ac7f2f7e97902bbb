# metrics.py
from __future__ import annotations
from datetime import datetime
from typing import Optional, Sequence

import pandas as pd

from taskpulse.config import DEFAULT_PROJECT
from taskpulse.fields import StatusClass
from taskpulse.models import TREND_DAYS, Metrics, Task

STATUS_ORDER = [StatusClass.COMPLETED, StatusClass.IN_PROGRESS, StatusClass.BLOCKED, StatusClass.OPEN]

PROJECT_COLS = ["project", "task_count", "open_count"]
ASSIGNEE_COLS = ["assignee", "initials", "assigned", "completed", "ongoing", "open", "completion_rate"]
STATUS_COLS = ["status_class", "task_count"]
PRIORITY_COLS = ["priority", "task_count"]


def _pct(part: int, whole: int) -> int:
    return int(round(part / whole * 100)) if whole > 0 else 0


# ----------------
# Headline metrics
# ----------------
def compute_metrics(tasks: Sequence[Task], now: Optional[datetime] = None) -> Metrics:
    """Reduce canonical tasks to a Metrics snapshot.

    Buckets come from status_class so no task lands in two buckets; whatever
    is not Completed/InProgress/Blocked is open. closed_today and trend only
    look at Completed tasks that carry a resolved date. created_trend counts
    every task by its created_at day; undated tasks are skipped.
    """
    today = (now or datetime.now()).date()
    total = len(tasks)
    counts = {c: 0 for c in STATUS_ORDER}
    closed_today = 0
    trend = [0] * TREND_DAYS
    created_trend = [0] * TREND_DAYS

    for t in tasks:
        counts[t.status_class] += 1
        if t.created_at is not None:
            created_ago = (today - t.created_at.date()).days
            if 0 <= created_ago < TREND_DAYS:
                created_trend[TREND_DAYS - 1 - created_ago] += 1
        if t.status_class != StatusClass.COMPLETED or t.resolved_at is None:
            continue
        days_ago = (today - t.resolved_at.date()).days
        if days_ago == 0:
            closed_today += 1
        if 0 <= days_ago < TREND_DAYS:
            trend[TREND_DAYS - 1 - days_ago] += 1

    completed = counts[StatusClass.COMPLETED]
    in_progress = counts[StatusClass.IN_PROGRESS]
    blocked = counts[StatusClass.BLOCKED]
    return Metrics(
        total=total,
        open=max(0, total - completed - in_progress - blocked),
        completed=completed,
        in_progress=in_progress,
        blocked=blocked,
        completion=_pct(completed, total),
        closed_today=closed_today,
        trend=trend,
        created_trend=created_trend,
    )


# ----------------
# Rollups
# ----------------
def tasks_frame(tasks: Sequence[Task]) -> pd.DataFrame:
    if not tasks:
        return pd.DataFrame(columns=list(Task.model_fields.keys()))
    # status_class holds plain strings here, not StatusClass members
    return pd.DataFrame([t.model_dump(mode="json") for t in tasks])


def initials(name: str) -> str:
    """'Ada Grace Lovelace' -> 'AG'."""
    return "".join(part[0] for part in str(name).split()[:2]).upper()


def project_rollup(tasks: Sequence[Task], default: str = DEFAULT_PROJECT) -> pd.DataFrame:
    """Task and open-task counts per exact project string, in first-seen order."""
    t = tasks_frame(tasks)
    if t.empty:
        return pd.DataFrame(columns=PROJECT_COLS)
    t["project"] = t["project"].fillna(default).replace("", default)
    t["is_open"] = ~t["completed_flag"].astype(bool)
    out = t.groupby("project", sort=False).agg(task_count=("is_open", "size"), open_count=("is_open", "sum"))
    out = out.reset_index()
    out["open_count"] = out["open_count"].astype(int)
    return out[PROJECT_COLS]


def assignee_rollup(tasks: Sequence[Task], limit: Optional[int] = None) -> pd.DataFrame:
    """Per-assignee workload, sorted by assigned count (largest first)."""
    t = tasks_frame(tasks)
    if t.empty:
        return pd.DataFrame(columns=ASSIGNEE_COLS)
    done = t["completed_flag"].astype(bool)
    t["completed"] = done.astype(int)
    t["ongoing"] = (~done & (t["status_class"] == StatusClass.IN_PROGRESS.value)).astype(int)
    t["open"] = (~done & (t["status_class"] != StatusClass.IN_PROGRESS.value)).astype(int)
    out = t.groupby("assignee", sort=False).agg(
        assigned=("completed", "size"),
        completed=("completed", "sum"),
        ongoing=("ongoing", "sum"),
        open=("open", "sum"),
    ).reset_index()
    out["initials"] = out["assignee"].apply(initials)
    out["completion_rate"] = [_pct(int(c), int(a)) for c, a in zip(out["completed"], out["assigned"])]
    out = out.sort_values("assigned", ascending=False, kind="stable").reset_index(drop=True)
    if limit is not None:
        out = out.head(limit)
    return out[ASSIGNEE_COLS]


def status_rollup(tasks: Sequence[Task]) -> pd.DataFrame:
    counts = {c: 0 for c in STATUS_ORDER}
    for t in tasks:
        counts[t.status_class] += 1
    return pd.DataFrame([{"status_class": c.value, "task_count": n} for c, n in counts.items()],
                        columns=STATUS_COLS)


def priority_rollup(tasks: Sequence[Task]) -> pd.DataFrame:
    t = tasks_frame(tasks)
    if t.empty:
        return pd.DataFrame(columns=PRIORITY_COLS)
    out = t.groupby("priority", sort=False).size().reset_index(name="task_count")
    return out[PRIORITY_COLS]


def quick_pivot(tasks: Sequence[Task], by: str) -> pd.DataFrame:
    """Pivot counts by project/assignee/status/priority."""
    if by == "project":
        return project_rollup(tasks)
    if by == "assignee":
        return assignee_rollup(tasks)
    if by == "status":
        return status_rollup(tasks)
    if by == "priority":
        return priority_rollup(tasks)
    return pd.DataFrame()
