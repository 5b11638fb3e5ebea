from __future__ import annotations

from pathlib import Path

import pytest

from tests.factories import FakeClock, FakeTornClient, RecordingNotifier
from tornwatch.pollers.base import PollContext
from tornwatch.state.store import StateStore


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def client() -> FakeTornClient:
    return FakeTornClient()


@pytest.fixture
def store(tmp_path: Path, clock: FakeClock) -> StateStore:
    store = StateStore(tmp_path / "store.json", clock=clock)
    store.load()
    return store


@pytest.fixture
def ctx(store: StateStore, client: FakeTornClient, notifier: RecordingNotifier, clock: FakeClock) -> PollContext:
    return PollContext(store=store, client=client, notifier=notifier, clock=clock)
