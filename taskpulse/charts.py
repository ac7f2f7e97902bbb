# charts.py
# Charts use matplotlib only, one figure per chart, default styling/colors.
# Figures are built with matplotlib.figure.Figure so they never enter the
# pyplot registry; gr.Plot renders them and they are garbage collected.
from __future__ import annotations
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

import pandas as pd
from matplotlib.figure import Figure

from taskpulse.models import TREND_DAYS, Metrics

LABEL_WIDTH = 10


def _new_axes():
    fig = Figure()
    return fig, fig.subplots()


def trend_labels(now: Optional[datetime] = None) -> list:
    """Day labels for the trend series, oldest first ('Mon 06', ...)."""
    today = (now or datetime.now()).date()
    return [(today - timedelta(days=TREND_DAYS - 1 - i)).strftime("%a %d") for i in range(TREND_DAYS)]


def bar_labels(names: Iterable[str], width: int = LABEL_WIDTH) -> List[str]:
    """Shorten long names; names whose short form collides stay whole."""
    names = [str(n) for n in names]
    short = [n if len(n) <= width else n[:width] + "..." for n in names]
    counts = Counter(short)
    return [s if counts[s] == 1 else n for n, s in zip(names, short)]


def plot_status_donut(metrics: Metrics) -> Figure:
    fig, ax = _new_axes()
    parts = [("Open", metrics.open), ("In Progress", metrics.in_progress),
             ("Completed", metrics.completed), ("Blocked", metrics.blocked)]
    parts = [(name, n) for name, n in parts if n > 0]
    if not parts:
        ax.set_title("Task Distribution (no data)")
        ax.axis("off")
        return fig
    ax.pie([n for _, n in parts], labels=[name for name, _ in parts],
           autopct="%1.0f%%", wedgeprops={"width": 0.4})
    ax.set_title(f"Task Distribution ({metrics.total})")
    ax.axis("equal")
    return fig


def plot_trend(metrics: Metrics, now: Optional[datetime] = None) -> Figure:
    """Tasks completed and tasks created per day over the last week."""
    fig, ax = _new_axes()
    labels = trend_labels(now)
    ax.plot(labels, metrics.trend, marker="o", label="Tasks Completed")
    ax.plot(labels, metrics.created_trend, marker="o", label="Tasks Created")
    has_data = any(metrics.trend) or any(metrics.created_trend)
    ax.set_title("Weekly Trend (last 7 days)" if has_data else "Weekly Trend (no data)")
    ax.set_ylabel("Tasks")
    ax.set_ylim(bottom=0)
    ax.grid(True, linestyle="--", alpha=0.3)
    ax.legend()
    return fig


def plot_project_share(project_df: pd.DataFrame) -> Figure:
    fig, ax = _new_axes()
    if project_df.empty:
        ax.set_title("Tasks by Project (no data)")
        ax.axis("off")
        return fig
    ax.pie(project_df["task_count"], labels=project_df["project"], autopct="%1.0f%%")
    ax.set_title("Tasks by Project")
    ax.axis("equal")
    return fig


def plot_team_workload(assignee_df: pd.DataFrame) -> Figure:
    """Stacked bars: completed / in progress / open per assignee."""
    fig, ax = _new_axes()
    if assignee_df.empty:
        ax.set_title("Team Workload (no data)")
        return fig
    names = bar_labels(assignee_df["assignee"])
    completed = assignee_df["completed"].astype(int).tolist()
    ongoing = assignee_df["ongoing"].astype(int).tolist()
    open_ = assignee_df["open"].astype(int).tolist()
    ax.bar(names, completed, label="Completed")
    ax.bar(names, ongoing, bottom=completed, label="In Progress")
    ax.bar(names, open_, bottom=[c + o for c, o in zip(completed, ongoing)], label="Open")
    ax.set_title("Team Workload")
    ax.set_ylabel("Tasks")
    ax.legend()
    ax.tick_params(axis="x", labelrotation=30)
    return fig
