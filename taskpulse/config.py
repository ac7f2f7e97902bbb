# config.py
from __future__ import annotations
import os

from dotenv import load_dotenv
load_dotenv()   # this loads variables from .env into os.environ

# --------------------------
# Constants & file locations
# --------------------------
APP_NAME = "TaskPulse"
DATA_DIR = os.path.expandvars(os.path.expanduser(os.getenv("TASKPULSE_DATA_DIR", "./data")))
STORAGE_FILE = os.path.join(DATA_DIR, "storage.json")

# Storage slots written together on every successful upload
TASKS_SLOT = "uploaded_tasks"
METRICS_SLOT = "uploaded_metrics"
UPLOADED_AT_SLOT = "uploaded_at"

# Canonical defaults for absent cells
DEFAULT_PROJECT = os.getenv("TASKPULSE_DEFAULT_PROJECT", "Other")
DEFAULT_ASSIGNEE = "Unassigned"
DEFAULT_PRIORITY = "Medium"

# LLM
OPENAI_MODEL = os.getenv("TASKPULSE_MODEL", "gpt-4o-mini")
INSIGHT_TASK_LIMIT = 100


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


PAGE_SIZE = _int_env("TASKPULSE_PAGE_SIZE", 10)
PAGE_SIZE_CHOICES = [10, 25, 50, 100]
POLL_SECONDS = _int_env("TASKPULSE_POLL_SECONDS", 5)


def openai_api_key() -> str | None:
    return os.getenv("OPENAI_API_KEY") or None
