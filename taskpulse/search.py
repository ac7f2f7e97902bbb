# search.py
from __future__ import annotations
import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Dict, Generic, List, Optional, Sequence, TypeVar

from taskpulse.config import PAGE_SIZE
from taskpulse.fields import parse_date
from taskpulse.models import Task

T = TypeVar("T")


@dataclass(frozen=True)
class FilterState:
    """Per-view filter settings. Blank fields are inactive."""
    free_text: str = ""
    project: str = ""
    status: str = ""
    assignee: str = ""
    start: Optional[str | date] = None
    end: Optional[str | date] = None

    def date_window(self) -> Optional[tuple]:
        """(start-of-day, end-of-day) when both bounds parse, else None."""
        sd = parse_date(self.start) if self.start else None
        ed = parse_date(self.end) if self.end else None
        if sd is None or ed is None:
            return None
        return datetime.combine(sd.date(), time.min), datetime.combine(ed.date(), time.max)


def _contains(value: Optional[str], term: str) -> bool:
    return bool(value) and term in value.lower()


def _equals(value: Optional[str], term: str) -> bool:
    return bool(value) and value.lower() == term


def matches(task: Task, state: FilterState) -> bool:
    """Logical AND of every active filter."""
    term = state.free_text.strip().lower()
    if term and not any(_contains(v, term) for v in (
        task.title, task.description, task.id, task.project, task.assignee, task.status,
    )):
        return False
    # project is a substring match; status and assignee must match exactly
    if state.project.strip() and not _contains(task.project, state.project.strip().lower()):
        return False
    if state.status.strip() and not _equals(task.status, state.status.strip().lower()):
        return False
    if state.assignee.strip() and not _equals(task.assignee, state.assignee.strip().lower()):
        return False

    window = state.date_window()
    if window is not None:
        task_date = task.filter_date
        if task_date is None:
            return False
        return window[0] <= task_date <= window[1]
    return True


def filter_tasks(tasks: Sequence[Task], state: FilterState) -> List[Task]:
    return [t for t in tasks if matches(t, state)]


def filter_options(tasks: Sequence[Task]) -> Dict[str, List[str]]:
    """Distinct values for the filter dropdowns, first-seen order."""
    def distinct(values) -> List[str]:
        return list(dict.fromkeys(v for v in values if v))
    return {
        "project": distinct(t.project for t in tasks),
        "status": distinct(t.status for t in tasks),
        "assignee": distinct(t.assignee for t in tasks),
    }


# ----------------
# Pagination
# ----------------
@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_items / self.page_size))

    @property
    def first_index(self) -> int:
        """1-based index of the first row shown (0 when nothing is shown)."""
        if not self.items:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        if not self.items:
            return 0
        return (self.page - 1) * self.page_size + len(self.items)


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    page_size = max(1, int(page_size))
    page = max(1, int(page))
    start = (page - 1) * page_size
    return Page(items=list(items[start:start + page_size]), page=page, page_size=page_size,
                total_items=len(items))


@dataclass
class TaskView:
    """Filter + pagination state of one task table.

    Changing any filter or the page size sends the view back to page 1.
    The dashboard also calls reset_page when a new snapshot arrives.
    """
    filters: FilterState = field(default_factory=FilterState)
    page: int = 1
    page_size: int = PAGE_SIZE

    def set_filters(self, **changes) -> None:
        self.filters = replace(self.filters, **changes)
        self.page = 1

    def reset_page(self) -> None:
        """Back to page 1, e.g. after a new snapshot replaced the tasks."""
        self.page = 1

    def clear_filters(self) -> None:
        self.filters = FilterState()
        self.page = 1

    def set_page_size(self, page_size: int) -> None:
        self.page_size = max(1, int(page_size))
        self.page = 1

    def go_to(self, page: int, tasks: Sequence[Task]) -> None:
        total_pages = self.current(tasks).total_pages
        self.page = min(max(1, int(page)), total_pages)

    def current(self, tasks: Sequence[Task]) -> Page[Task]:
        return paginate(filter_tasks(tasks, self.filters), self.page, self.page_size)
