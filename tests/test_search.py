from datetime import date

import pytest

from taskpulse.normalizer import normalize_rows
from taskpulse.search import FilterState, TaskView, filter_options, filter_tasks, paginate


@pytest.fixture
def tasks():
    return normalize_rows([
        {"id": "T-1", "title": "Fix login", "description": "OAuth redirect loop", "project": "Web App",
         "assignee": "Ada", "status": "In Progress", "due_date": "2024-05-10"},
        {"id": "T-2", "title": "Release notes", "project": "Docs", "assignee": "Bob",
         "status": "Done", "created_at": "2024-05-01"},
        {"id": "T-3", "title": "Budget", "project": "Finance", "assignee": "Ada Smith", "status": "Open"},
    ])


def _ids(found):
    return [t.id for t in found]


def test_free_text_searches_description(tasks):
    assert _ids(filter_tasks(tasks, FilterState(free_text="oauth"))) == ["T-1"]


def test_free_text_searches_other_fields(tasks):
    assert _ids(filter_tasks(tasks, FilterState(free_text="t-2"))) == ["T-2"]
    assert _ids(filter_tasks(tasks, FilterState(free_text="ada"))) == ["T-1", "T-3"]


def test_project_is_substring_match(tasks):
    assert _ids(filter_tasks(tasks, FilterState(project="web"))) == ["T-1"]


def test_status_and_assignee_are_exact(tasks):
    assert _ids(filter_tasks(tasks, FilterState(assignee="ada"))) == ["T-1"]
    assert _ids(filter_tasks(tasks, FilterState(status="progress"))) == []
    assert _ids(filter_tasks(tasks, FilterState(status="in progress"))) == ["T-1"]


def test_date_range_excludes_undated_tasks(tasks):
    state = FilterState(start="2024-05-01", end="2024-05-10")
    assert _ids(filter_tasks(tasks, state)) == ["T-1", "T-2"]


def test_date_range_end_is_inclusive_whole_day(tasks):
    state = FilterState(start=date(2024, 5, 10), end=date(2024, 5, 10))
    assert _ids(filter_tasks(tasks, state)) == ["T-1"]


def test_half_open_range_is_inactive(tasks):
    assert len(filter_tasks(tasks, FilterState(start="2024-05-01"))) == 3
    assert len(filter_tasks(tasks, FilterState(end="2024-05-01"))) == 3


def test_filters_combine_with_and(tasks):
    state = FilterState(free_text="ada", project="finance")
    assert _ids(filter_tasks(tasks, state)) == ["T-3"]


def test_filter_options(tasks):
    opts = filter_options(tasks)
    assert opts["project"] == ["Web App", "Docs", "Finance"]
    assert opts["assignee"] == ["Ada", "Bob", "Ada Smith"]


def test_paginate_bounds():
    page = paginate(list(range(23)), page=3, page_size=10)
    assert page.items == [20, 21, 22]
    assert page.total_pages == 3
    assert (page.first_index, page.last_index) == (21, 23)

    empty = paginate([], page=1, page_size=10)
    assert empty.total_pages == 1
    assert (empty.first_index, empty.last_index) == (0, 0)


def test_view_resets_page_on_changes(tasks):
    view = TaskView(page_size=1)
    view.go_to(3, tasks)
    assert view.page == 3

    view.set_filters(free_text="a")
    assert view.page == 1

    view.go_to(2, tasks)
    view.set_page_size(2)
    assert view.page == 1

    view.go_to(2, tasks)
    view.clear_filters()
    assert view.page == 1


def test_view_go_to_is_clamped(tasks):
    view = TaskView(page_size=2)
    view.go_to(99, tasks)
    assert view.page == 2
    view.go_to(-4, tasks)
    assert view.page == 1
    assert [t.id for t in view.current(tasks).items] == ["T-1", "T-2"]


def test_page_past_the_end_shows_nothing():
    page = paginate([1, 2, 3], page=2, page_size=10)
    assert page.items == []
    assert (page.first_index, page.last_index) == (0, 0)


def test_reset_page_after_smaller_snapshot():
    many = normalize_rows([{"title": f"t{i}"} for i in range(25)])
    view = TaskView(page_size=10)
    view.go_to(3, many)
    assert [t.title for t in view.current(many).items] == ["t20", "t21", "t22", "t23", "t24"]

    few = normalize_rows([{"title": "a"}, {"title": "b"}, {"title": "c"}])
    view.reset_page()
    page = view.current(few)
    assert page.page == 1
    assert [t.title for t in page.items] == ["a", "b", "c"]
    assert (page.first_index, page.last_index, page.total_pages) == (1, 3, 1)
