# app.py
# =============================================================================
# README
# =============================================================================
# TaskPulse: spreadsheet-driven productivity dashboard
#
# Run:
#   Create your .env file (OPENAI_API_KEY=..., optional TASKPULSE_* settings)
#   taskpulse            (or: python -m taskpulse.app)
#
# Tabs:
#   - Overview: metric cards, status donut, 7-day completed/created trend,
#               project share and team workload charts
#   - Tasks:    upload an Excel/CSV export, search + filter + paginate,
#               quick pivots by project/assignee/status/priority
#   - Insights: LLM-written summary of the uploaded tasks
#   - Ask:      free-form questions answered from the uploaded tasks
#
# Notes:
#   - The last upload is kept in ./data/storage.json and reloaded on start.
#   - Uploads made by another TaskPulse process sharing the same data dir
#     are picked up by a poll timer.
# =============================================================================
from __future__ import annotations
import logging
from typing import List, Optional

import gradio as gr
import pandas as pd

from taskpulse.charts import plot_project_share, plot_status_donut, plot_team_workload, plot_trend
from taskpulse.config import APP_NAME, PAGE_SIZE, PAGE_SIZE_CHOICES, POLL_SECONDS, STORAGE_FILE
from taskpulse.errors import ParseError
from taskpulse.ingest import PARSE_FAILED_MESSAGE, ingest_file, upload_message
from taskpulse.insights import (
    ChatModelGenerator,
    TextGenerator,
    answer_query,
    generate_insights,
    summarize_metrics,
)
from taskpulse.metrics import assignee_rollup, project_rollup, quick_pivot
from taskpulse.models import Metrics, Task
from taskpulse.search import TaskView, filter_options
from taskpulse.store import KeyValueStorage, SnapshotStore

logger = logging.getLogger(__name__)

TABLE_COLS = ["id", "title", "project", "assignee", "status", "status_class", "priority", "due_date"]
PIVOT_CHOICES = ["status", "project", "assignee", "priority"]


# ----------------
# Render helpers
# ----------------
def _share(part: int, whole: int) -> str:
    return f"{round(part / whole * 100)}% of total" if whole else "n/a"


def render_cards(metrics: Metrics) -> str:
    return (
        "| Open | In Progress | Blocked | Completed | Closed Today | Completion |\n"
        "|---|---|---|---|---|---|\n"
        f"| **{metrics.open}** | **{metrics.in_progress}** | **{metrics.blocked}** | **{metrics.completed}** "
        f"| **{metrics.closed_today}** | **{metrics.completion}%** |\n"
        f"| {_share(metrics.open, metrics.total)} | {_share(metrics.in_progress, metrics.total)} "
        f"| {_share(metrics.blocked, metrics.total)} | {_share(metrics.completed, metrics.total)} "
        f"| | {metrics.total} tasks |"
    )


def tasks_table(tasks: List[Task]) -> pd.DataFrame:
    if not tasks:
        return pd.DataFrame(columns=TABLE_COLS)
    rows = []
    for t in tasks:
        rows.append({
            "id": t.id or "",
            "title": t.title or "",
            "project": t.project,
            "assignee": t.assignee,
            "status": t.status or "",
            "status_class": t.status_class.value,
            "priority": t.priority,
            "due_date": t.due_date.date().isoformat() if t.due_date else "",
        })
    return pd.DataFrame(rows, columns=TABLE_COLS)


def _blank(value: Optional[str]) -> str:
    return (value or "").strip()


# ----------------
# Snapshot -> component values
# ----------------
def overview_outputs(store: SnapshotStore) -> tuple:
    snap = store.read()
    tasks = list(snap.tasks)
    return (
        render_cards(snap.metrics),
        summarize_metrics(snap.metrics),
        plot_status_donut(snap.metrics),
        plot_trend(snap.metrics),
        plot_project_share(project_rollup(tasks)),
        plot_team_workload(assignee_rollup(tasks, limit=5)),
    )


def table_outputs(store: SnapshotStore, view: TaskView) -> tuple:
    page = view.current(list(store.read().tasks))
    summary = (f"{page.total_items} tasks found, showing {page.first_index} to {page.last_index} "
               f"(page {page.page} of {page.total_pages})")
    return view, summary, tasks_table(page.items), page.page


def option_outputs(store: SnapshotStore) -> tuple:
    opts = filter_options(store.read().tasks)
    return (
        gr.update(choices=opts["project"]),
        gr.update(choices=opts["status"]),
        gr.update(choices=opts["assignee"]),
    )


def refresh_outputs(store: SnapshotStore, view: TaskView, pivot_by: Optional[str]) -> tuple:
    """Every snapshot-derived value, in the order of the dashboard's refresh outputs.

    Called whenever the snapshot changed, so the task table goes back to page 1.
    """
    view.reset_page()
    return ((store.read().uploaded_at,) + overview_outputs(store) + table_outputs(store, view)
            + option_outputs(store) + (quick_pivot(store.read().tasks, pivot_by or "status"),))


# ----------------
# Gradio UI build
# ----------------
def build_ui(store: SnapshotStore, generator: TextGenerator) -> gr.Blocks:
    def refresh_all(view: TaskView, by: Optional[str]) -> tuple:
        return refresh_outputs(store, view, by)

    with gr.Blocks(title=APP_NAME) as demo:
        gr.Markdown(f"## 📊 {APP_NAME}\nUpload a task export (Excel/CSV) and get metrics, charts and AI insights.")
        seen_upload = gr.State(store.read().uploaded_at)
        view_state = gr.State(TaskView(page_size=PAGE_SIZE))

        with gr.Tabs():
            # -------------------------
            # Overview Tab
            # -------------------------
            with gr.Tab("Overview"):
                cards_md = gr.Markdown()
                insight_md = gr.Markdown()
                with gr.Row():
                    donut_plot = gr.Plot()
                    trend_plot = gr.Plot()
                with gr.Row():
                    project_plot = gr.Plot()
                    team_plot = gr.Plot()

            # -------------------------
            # Tasks Tab
            # -------------------------
            with gr.Tab("Tasks"):
                upload_file = gr.File(label="Upload tasks (.xlsx / .xls / .csv)",
                                      file_types=[".xlsx", ".xls", ".xlsm", ".csv"], type="filepath")
                upload_msg = gr.Markdown()
                with gr.Row():
                    search_box = gr.Textbox(label="Search (title/description/id/project/assignee/status)")
                    project_filter = gr.Dropdown(choices=[], label="Project", allow_custom_value=True)
                    status_filter = gr.Dropdown(choices=[], label="Status")
                    assignee_filter = gr.Dropdown(choices=[], label="Assignee")
                with gr.Row():
                    start_filter = gr.Textbox(label="Start date (YYYY-MM-DD)")
                    end_filter = gr.Textbox(label="End date (YYYY-MM-DD)")
                    page_size = gr.Dropdown(choices=sorted(set(PAGE_SIZE_CHOICES) | {PAGE_SIZE}), value=PAGE_SIZE,
                                            label="Items per page")
                    clear_btn = gr.Button("Clear all filters")
                table_summary = gr.Markdown()
                task_table = gr.Dataframe(interactive=False)
                with gr.Row():
                    prev_btn = gr.Button("◀ Previous")
                    page_no = gr.Number(value=1, precision=0, label="Page", interactive=False)
                    next_btn = gr.Button("Next ▶")

                gr.Markdown("### Quick Pivot")
                pivot_by = gr.Dropdown(choices=PIVOT_CHOICES, value="status", label="Group by")
                pivot_table = gr.Dataframe(interactive=False)

            # -------------------------
            # Insights Tab
            # -------------------------
            with gr.Tab("Insights"):
                refresh_insights_btn = gr.Button("⟳ Refresh Insights", variant="primary")
                ai_md = gr.Markdown("Upload task data, then press **Refresh Insights** to generate AI-powered insights.")

            # -------------------------
            # Ask Tab
            # -------------------------
            with gr.Tab("Ask"):
                question_box = gr.Textbox(label="Ask a question about your tasks", lines=2)
                ask_btn = gr.Button("Ask", variant="primary")
                answer_md = gr.Markdown()

        overview_cmps = [cards_md, insight_md, donut_plot, trend_plot, project_plot, team_plot]
        table_cmps = [view_state, table_summary, task_table, page_no]
        option_cmps = [project_filter, status_filter, assignee_filter]
        all_cmps = [seen_upload] + overview_cmps + table_cmps + option_cmps + [pivot_table]
        refresh_inputs = [view_state, pivot_by]

        # ---- upload ----
        def on_upload(path):
            if not path:
                return "❌ Please upload an Excel or CSV file"
            try:
                snap = ingest_file(path, store)
            except ParseError as e:
                logger.warning("Upload rejected: %s", e)
                return f"❌ {PARSE_FAILED_MESSAGE}"
            return f"✅ {upload_message(snap.metrics)}"

        upload_file.upload(on_upload, inputs=[upload_file], outputs=[upload_msg]).then(
            refresh_all, inputs=refresh_inputs, outputs=all_cmps
        )

        # ---- filters & paging ----
        filter_inputs = [view_state, search_box, project_filter, status_filter, assignee_filter,
                         start_filter, end_filter]

        def on_filters(view, text, project, status, assignee, start, end):
            view.set_filters(free_text=_blank(text), project=_blank(project), status=_blank(status),
                             assignee=_blank(assignee), start=_blank(start) or None, end=_blank(end) or None)
            return table_outputs(store, view)

        search_box.change(on_filters, inputs=filter_inputs, outputs=table_cmps)
        for cmp in (project_filter, status_filter, assignee_filter):
            cmp.change(on_filters, inputs=filter_inputs, outputs=table_cmps)
        for cmp in (start_filter, end_filter):
            cmp.submit(on_filters, inputs=filter_inputs, outputs=table_cmps)
            cmp.blur(on_filters, inputs=filter_inputs, outputs=table_cmps)

        def on_page_size(view, size):
            view.set_page_size(int(size or PAGE_SIZE))
            return table_outputs(store, view)

        page_size.change(on_page_size, inputs=[view_state, page_size], outputs=table_cmps)

        def on_clear(view):
            view.clear_filters()
            return table_outputs(store, view) + ("", None, None, None, "", "")

        clear_btn.click(on_clear, inputs=[view_state],
                        outputs=table_cmps + [search_box, project_filter, status_filter, assignee_filter,
                                              start_filter, end_filter])

        def step(delta: int):
            def _go(view):
                view.go_to(view.page + delta, store.read().tasks)
                return table_outputs(store, view)
            return _go

        prev_btn.click(step(-1), inputs=[view_state], outputs=table_cmps)
        next_btn.click(step(+1), inputs=[view_state], outputs=table_cmps)

        pivot_by.change(lambda by: quick_pivot(store.read().tasks, by), inputs=[pivot_by], outputs=[pivot_table])

        # ---- insights & questions ----
        def on_refresh_insights():
            tasks = store.read().tasks
            if not tasks:
                return "Upload task data to generate AI-powered insights."
            return generate_insights(generator, tasks)

        refresh_insights_btn.click(lambda: "⏳ Generating...", outputs=[ai_md]).then(
            on_refresh_insights, outputs=[ai_md]
        )

        def on_ask(question):
            answer = answer_query(generator, question, store.read().tasks)
            return f"**Q:** {_blank(question)}\n\n{answer}" if _blank(question) else answer

        ask_btn.click(on_ask, inputs=[question_box], outputs=[answer_md])
        question_box.submit(on_ask, inputs=[question_box], outputs=[answer_md])

        # ---- initial load + cross-process pickup ----
        demo.load(refresh_all, inputs=refresh_inputs, outputs=all_cmps)

        def poll(seen, view, by):
            store.sync()
            if store.read().uploaded_at == seen:
                skip = [gr.update() for _ in all_cmps]
                skip[0] = seen
                skip[all_cmps.index(view_state)] = view
                return tuple(skip)
            return refresh_all(view, by)

        gr.Timer(POLL_SECONDS).tick(poll, inputs=[seen_upload] + refresh_inputs, outputs=all_cmps)

    return demo


# ----------------
# Entrypoint
# ----------------
def main():
    logging.basicConfig(level=logging.INFO)
    store = SnapshotStore(KeyValueStorage(STORAGE_FILE))
    store.subscribe(lambda: logger.info("Snapshot changed: %d tasks", len(store.read().tasks)))
    ui = build_ui(store, ChatModelGenerator())
    ui.launch()


if __name__ == "__main__":
    main()
