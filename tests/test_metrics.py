from datetime import datetime, timedelta

import pytest

from taskpulse.metrics import (
    assignee_rollup,
    compute_metrics,
    initials,
    priority_rollup,
    project_rollup,
    quick_pivot,
    status_rollup,
    tasks_frame,
)
from taskpulse.normalizer import normalize_rows


def test_three_row_upload(now):
    tasks = normalize_rows([
        {"status": "Done", "project": "A"},
        {"status": "In Review", "project": "A"},
        {"status": ""},
    ])
    m = compute_metrics(tasks, now=now)
    assert (m.total, m.completed, m.in_progress, m.open, m.blocked) == (3, 1, 1, 1, 0)
    assert m.completion == 33


def test_empty_upload(now):
    m = compute_metrics([], now=now)
    assert m.total == 0
    assert m.completion == 0
    assert m.open == 0
    assert m.trend == [0] * 7


def test_buckets_partition_total(now):
    tasks = normalize_rows([{"status": s} for s in
                            ["Done", "Blocked", "On hold", "testing", "todo", None, "Resolved"]])
    m = compute_metrics(tasks, now=now)
    assert m.completed + m.in_progress + m.blocked + m.open == m.total == 7
    assert m.blocked == 2


def test_closed_today_and_trend(now):
    def day(n):
        return (now - timedelta(days=n)).strftime("%Y-%m-%d")
    tasks = normalize_rows([
        {"status": "Done", "completed_at": day(0)},
        {"status": "Done", "completed_at": day(0)},
        {"status": "Done", "completed_at": day(3)},
        {"status": "Done", "completed_at": day(6)},
        {"status": "Done", "completed_at": day(7)},      # outside the window
        {"status": "Done", "completed_at": day(-1)},     # future
        {"status": "Done"},                              # no date
        {"status": "Open", "completed_at": day(0)},      # not completed
    ])
    m = compute_metrics(tasks, now=now)
    assert m.closed_today == 2
    assert m.trend == [1, 0, 0, 1, 0, 0, 2]


def test_trend_uses_calendar_days(now):
    late_yesterday = (now - timedelta(days=1)).replace(hour=23, minute=59)
    tasks = normalize_rows([{"status": "Done", "completed_at": late_yesterday}])
    m = compute_metrics(tasks, now=datetime(now.year, now.month, now.day, 0, 5))
    assert m.closed_today == 0
    assert m.trend[-2] == 1


def test_project_rollup_counts_open_by_flag():
    tasks = normalize_rows([
        {"project": "A", "status": "Done"},
        {"project": "A", "status": "Open"},
        {"project": "B", "status": "Open", "completed": "yes"},
        {"status": "Open"},
    ])
    df = project_rollup(tasks)
    assert df.to_dict(orient="records") == [
        {"project": "A", "task_count": 2, "open_count": 1},
        {"project": "B", "task_count": 1, "open_count": 0},
        {"project": "Other", "task_count": 1, "open_count": 1},
    ]


def test_assignee_rollup():
    tasks = normalize_rows([
        {"assignee": "Ada Lovelace", "status": "Done"},
        {"assignee": "Ada Lovelace", "status": "In Progress"},
        {"assignee": "Ada Lovelace", "status": "Open"},
        {"assignee": "Bob", "status": "Done"},
        {"status": "Blocked"},
    ])
    df = assignee_rollup(tasks)
    assert list(df["assignee"]) == ["Ada Lovelace", "Bob", "Unassigned"]
    ada = df.iloc[0]
    assert ada["initials"] == "AL"
    assert (ada["assigned"], ada["completed"], ada["ongoing"], ada["open"]) == (3, 1, 1, 1)
    assert ada["completion_rate"] == 33
    assert df.iloc[1]["completion_rate"] == 100
    assert len(assignee_rollup(tasks, limit=2)) == 2


def test_empty_rollups():
    assert project_rollup([]).empty
    assert assignee_rollup([]).empty
    assert priority_rollup([]).empty
    assert list(status_rollup([])["task_count"]) == [0, 0, 0, 0]


def test_quick_pivot_dispatch():
    tasks = normalize_rows([{"priority": "High"}, {"priority": "High"}, {}])
    pivot = quick_pivot(tasks, "priority")
    assert pivot.to_dict(orient="records") == [
        {"priority": "High", "task_count": 2},
        {"priority": "Medium", "task_count": 1},
    ]
    assert quick_pivot(tasks, "nonsense").empty


def test_initials():
    assert initials("Ada Grace Lovelace") == "AG"
    assert initials("bob") == "B"
    assert initials("") == ""


def test_assignee_rollup_counts_in_progress_as_ongoing():
    tasks = normalize_rows([
        {"assignee": "Ada", "status": "In Progress"},
        {"assignee": "Ada", "status": "Open"},
    ])
    row = assignee_rollup(tasks).iloc[0]
    assert (row["assigned"], row["ongoing"], row["open"]) == (2, 1, 1)


def test_tasks_frame_holds_plain_status_strings():
    frame = tasks_frame(normalize_rows([{"status": "testing"}]))
    assert frame["status_class"].tolist() == ["InProgress"]
    assert type(frame["status_class"].iloc[0]) is str


def test_created_trend(now):
    def day(n):
        return (now - timedelta(days=n)).strftime("%Y-%m-%d")
    tasks = normalize_rows([
        {"status": "Open", "created_at": day(0)},
        {"status": "Done", "created_at": day(0)},
        {"status": "Blocked", "created_at": day(6)},
        {"status": "Open", "created_at": day(7)},      # outside the window
        {"status": "Open", "created_at": day(-2)},     # future
        {"status": "Open"},                            # undated
    ])
    m = compute_metrics(tasks, now=now)
    assert m.created_trend == [1, 0, 0, 0, 0, 0, 2]
    assert m.trend == [0] * 7


def test_compute_metrics_is_repeatable(now):
    tasks = normalize_rows([
        {"status": "Done", "completed_at": "2024-05-15", "created_at": "2024-05-10"},
        {"status": "In Progress"},
        {"status": "waiting"},
    ])
    before = [t.model_copy(deep=True) for t in tasks]
    assert compute_metrics(tasks, now=now) == compute_metrics(tasks, now=now)
    assert tasks == before


@pytest.mark.parametrize("statuses", [
    [],
    ["Done"],
    ["Open"],
    ["Done", "Done", "Open"],
    ["Done", "resolved", "complete", "In Progress", "Blocked", None, "", "on hold"],
    ["blocked"] * 9 + ["done"],
])
def test_completion_stays_a_percentage(now, statuses):
    m = compute_metrics(normalize_rows([{"status": s} for s in statuses]), now=now)
    assert 0 <= m.completion <= 100
    assert m.completed + m.in_progress + m.blocked + m.open == m.total
