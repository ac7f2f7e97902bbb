from datetime import datetime

import pytest

from taskpulse.errors import GenerationError
from taskpulse.store import KeyValueStorage, SnapshotStore

NOW = datetime(2024, 5, 15, 12, 0, 0)


class FakeGenerator:
    """Records prompts; returns canned text or raises GenerationError."""

    def __init__(self, reply="## Insights\n- all good", fail=False):
        self.reply = reply
        self.fail = fail
        self.prompts = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise GenerationError("quota exceeded")
        return self.reply


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def storage_path(tmp_path):
    return str(tmp_path / "data" / "storage.json")


@pytest.fixture
def store(storage_path):
    ticks = iter(range(1_700_000_000, 1_800_000_000))
    return SnapshotStore(KeyValueStorage(storage_path), clock=lambda: float(next(ticks)))


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def failing_generator():
    return FakeGenerator(fail=True)
