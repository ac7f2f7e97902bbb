# store.py
# =============================================================================
# Persisted snapshot store.
#
# KeyValueStorage plays the part of the browser's local storage: named string
# slots, kept in one JSON document so a multi-slot write lands atomically.
# SnapshotStore owns the (tasks, metrics, uploaded_at) snapshot built on top
# of it and notifies subscribers after every replacement, whether the upload
# happened in this process (replace) or in another one sharing the data dir
# (picked up by sync).
# =============================================================================
from __future__ import annotations
import json
import logging
import os
import tempfile
import time
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from taskpulse.config import METRICS_SLOT, STORAGE_FILE, TASKS_SLOT, UPLOADED_AT_SLOT
from taskpulse.models import Metrics, Snapshot, Task, TaskList

logger = logging.getLogger(__name__)

Subscriber = Callable[[], None]


class KeyValueStorage:
    def __init__(self, path: str = STORAGE_FILE):
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Storage file %s is unreadable, ignoring it: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s does not hold an object, ignoring it", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def items(self) -> Dict[str, str]:
        """All slots from a single read of the file."""
        return self._load()

    def set_items(self, items: Mapping[str, str]) -> None:
        """Write several slots in one atomic file replace."""
        data = self._load()
        data.update(items)
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".storage-", suffix=".json", dir=folder)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)


class SnapshotStore:
    """Holds the last uploaded snapshot. Construct once per process and inject it."""

    def __init__(self, storage: KeyValueStorage, clock: Callable[[], float] = time.time):
        self._storage = storage
        self._clock = clock
        self._subscribers: List[Subscriber] = []
        self._seen_stamp: Optional[int] = None
        self._snapshot = self._load_persisted()

    # ----------------
    # Persistence
    # ----------------
    def _load_persisted(self) -> Snapshot:
        slots = self._storage.items()
        self._seen_stamp = _parse_timestamp(slots.get(UPLOADED_AT_SLOT))
        raw_tasks = slots.get(TASKS_SLOT)
        raw_metrics = slots.get(METRICS_SLOT)
        if raw_tasks is None or raw_metrics is None:
            return Snapshot()
        try:
            tasks = TaskList.validate_json(raw_tasks)
            metrics = Metrics.model_validate_json(raw_metrics)
        except (ValidationError, ValueError) as e:
            logger.warning("Persisted snapshot is corrupt, starting empty: %s", e)
            return Snapshot()
        return Snapshot(tasks=tuple(tasks), metrics=metrics, uploaded_at=self._seen_stamp or 0)

    # ----------------
    # Public contract
    # ----------------
    def read(self) -> Snapshot:
        return self._snapshot

    def replace(self, tasks: Sequence[Task], metrics: Metrics) -> Snapshot:
        snapshot = Snapshot(tasks=tuple(tasks), metrics=metrics, uploaded_at=int(self._clock() * 1000))
        self._storage.set_items({
            TASKS_SLOT: TaskList.dump_json(list(snapshot.tasks)).decode("utf-8"),
            METRICS_SLOT: snapshot.metrics.model_dump_json(),
            UPLOADED_AT_SLOT: str(snapshot.uploaded_at),
        })
        self._snapshot = snapshot
        self._seen_stamp = snapshot.uploaded_at
        logger.info("Snapshot replaced: %d tasks", len(snapshot.tasks))
        self._notify()
        return snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def sync(self) -> bool:
        """Adopt a snapshot written by another process, if there is one."""
        stamp = _parse_timestamp(self._storage.get_item(UPLOADED_AT_SLOT))
        if stamp is None or stamp == self._seen_stamp:
            return False
        self._snapshot = self._load_persisted()
        logger.info("Picked up snapshot from storage (uploaded_at=%s)", stamp)
        self._notify()
        return True

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception:
                logger.exception("Snapshot subscriber %r failed", callback)


def _parse_timestamp(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None
