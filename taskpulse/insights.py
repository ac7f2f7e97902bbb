# insights.py
# =============================================================================
# Insight text adapter. Formats tasks/metrics into prompts and forwards them
# to a text generator. The returned markdown is never interpreted here.
# =============================================================================
from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from langchain_openai import ChatOpenAI

from taskpulse.config import INSIGHT_TASK_LIMIT, OPENAI_MODEL, openai_api_key
from taskpulse.errors import GenerationError
from taskpulse.models import Metrics, Task

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No task data available to generate insights."
INSIGHTS_FAILED_MESSAGE = "Failed to generate insights. Please try again later."
NO_QUESTION_MESSAGE = "Please provide a question."
QUERY_FAILED_MESSAGE = "Sorry, I encountered an error processing your request."


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str:
        """Return generated text or raise GenerationError."""
        ...


class ChatModelGenerator:
    """LangChain ChatOpenAI behind the TextGenerator interface."""

    def __init__(self, model: str = OPENAI_MODEL, api_key: Optional[str] = None, temperature: float = 0):
        self.model = model
        self.api_key = api_key or openai_api_key()
        self.temperature = temperature
        self._llm = None

    def _client(self):
        if self._llm is None:
            if not self.api_key:
                raise GenerationError("No API key. Set OPENAI_API_KEY in your .env file.")
            self._llm = ChatOpenAI(model=self.model, temperature=self.temperature, api_key=self.api_key)
        return self._llm

    def generate(self, prompt: str) -> str:
        llm = self._client()
        try:
            response = llm.invoke(prompt)
        except Exception as e:
            raise GenerationError(f"{self.model} call failed: {e}") from e
        content = response.content
        if isinstance(content, list):
            content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
        return str(content)


# ----------------
# Prompt building
# ----------------
def _iso(value) -> Optional[str]:
    return value.date().isoformat() if value is not None else None


def tasks_for_prompt(tasks: Sequence[Task], limit: int = INSIGHT_TASK_LIMIT) -> List[Dict[str, Any]]:
    """Only a subset of each task (and of the task list) goes to the model."""
    return [
        {
            "title": t.title,
            "status": t.status,
            "priority": t.priority,
            "project": t.project,
            "assignee": t.assignee,
            "dueDate": _iso(t.due_date),
        }
        for t in list(tasks)[:limit]
    ]


def build_insights_prompt(tasks: Sequence[Task]) -> str:
    data = json.dumps(tasks_for_prompt(tasks), indent=2, ensure_ascii=False)
    return f"""Analyze the following task data and provide key insights and trends.
Focus on completion rates, common issues, and team performance. Be concise and data-driven.
Here's the data: {data}

Provide the response in markdown format with appropriate headings.""".strip()


def build_query_prompt(question: str, tasks: Sequence[Task]) -> str:
    context = json.dumps(tasks_for_prompt(tasks), indent=2, ensure_ascii=False)
    return f"""You are a helpful assistant analyzing task management data.
Answer the following question based on the provided data. If you don't know the answer, say so.

Question: {question}

Data Context: {context}

Provide a clear, concise response.""".strip()


# ----------------
# Entry points
# ----------------
def generate_insights(generator: TextGenerator, tasks: Sequence[Task]) -> str:
    if not tasks:
        return NO_DATA_MESSAGE
    try:
        return generator.generate(build_insights_prompt(tasks))
    except GenerationError as e:
        logger.warning("Insight generation failed: %s", e)
        return INSIGHTS_FAILED_MESSAGE


def answer_query(generator: TextGenerator, question: str, tasks: Sequence[Task]) -> str:
    if not question or not question.strip():
        return NO_QUESTION_MESSAGE
    try:
        return generator.generate(build_query_prompt(question.strip(), tasks))
    except GenerationError as e:
        logger.warning("Query answering failed: %s", e)
        return QUERY_FAILED_MESSAGE


def summarize_metrics(metrics: Metrics) -> str:
    """Deterministic one-paragraph insight for the overview tab."""
    if metrics.total == 0:
        return "No data available. Please upload an Excel/CSV file on the Tasks tab to get started."
    return (f"Your team has completed {metrics.completed} out of {metrics.total} tasks "
            f"({metrics.completion}% completion rate). "
            f"There are currently {metrics.open} open tasks, {metrics.in_progress} in progress "
            f"and {metrics.blocked} blocked; {metrics.closed_today} closed today.")
