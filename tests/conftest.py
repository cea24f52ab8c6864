from datetime import date

import pandas as pd
import pytest

from core.cache import TTLCache
from core.config import PlannerConfig
from core.schema import ClientRecord, Goal, StoredEvent, Wallet
from engine.builder import ProjectionBuilder
from advice.suggestions import SuggestionGenerator
from history.service import SimulationHistory
from store.memory import InMemoryStore

TODAY = date(2025, 1, 15)


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StepClock:
    """Returns a timestamp one minute later on every call."""

    def __init__(self, start="2025-01-15 10:00"):
        self._next = pd.Timestamp(start)

    def __call__(self) -> pd.Timestamp:
        ts = self._next
        self._next = ts + pd.Timedelta(minutes=1)
        return ts


def make_clients():
    return [
        ClientRecord(
            id="c-1",
            name="Ana",
            wallet=Wallet(total_value=50_000.0, allocation={"fixed_income": 70.0, "stocks": 30.0}),
            events=(
                StoredEvent(id="e-1", type="Monthly savings", value=500.0, frequency="monthly",
                            date=date(2025, 1, 1)),
            ),
            goals=(Goal(id="g-1", type="Retirement", amount=2_000_000.0, target_at=date(2031, 1, 15)),),
        ),
        ClientRecord(
            id="c-2",
            name="Bruno",
            wallet=Wallet(total_value=100_000.0, allocation={"fixed_income": 50.0, "stocks": 50.0}),
            goals=(Goal(id="g-2", type="Travel", amount=50_000.0, target_at=date(2030, 1, 1)),),
        ),
        ClientRecord(id="c-3", name="Carla"),
    ]


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def config():
    return PlannerConfig()


@pytest.fixture
def store():
    return InMemoryStore(make_clients())


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def cache(fake_clock):
    return TTLCache(clock=fake_clock)


@pytest.fixture
def builder(store, config):
    return ProjectionBuilder(store, config, today=TODAY)


@pytest.fixture
def generator(builder, config):
    return SuggestionGenerator(builder, config)


@pytest.fixture
def history(store, config):
    counter = iter(range(1, 1000))
    return SimulationHistory(
        store,
        config,
        clock=StepClock(),
        id_factory=lambda: f"sim-{next(counter):03d}",
    )
