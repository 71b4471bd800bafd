"""
Pytest fixtures for the memory graph tests.
"""

from datetime import UTC, datetime, timedelta

import pytest

from brain.config import SearchConfig
from brain.decay import DecayEngine
from brain.manager import KnowledgeGraphManager
from brain.store import GraphStore

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock shared by store, decay engine and manager."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("AI_BRAIN_MEMORY_PATH", "AI_BRAIN_LANGUAGE", "AI_BRAIN_DEBUG"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_path(tmp_path):
    return tmp_path / "memory.jsonl"


@pytest.fixture
def store(memory_path, clock):
    return GraphStore(memory_path, decay=DecayEngine(clock), clock=clock)


@pytest.fixture
def manager(store, clock):
    return KnowledgeGraphManager(store, search=SearchConfig(), clock=clock)


@pytest.fixture
def dave():
    return {
        "name": "Dave_Shell",
        "entityType": "user_preference",
        "observations": ["Dave uses ZSH for all command line work"],
    }
