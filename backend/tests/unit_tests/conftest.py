from collections.abc import Iterator
from typing import Any

import pytest

from prizepool.database import database
from prizepool.logic import events
from prizepool.logic import season as season_logic


class _DummyTransaction:
    async def __aenter__(self) -> "_DummyTransaction":
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        return False


@pytest.fixture(autouse=True)
def dummy_transaction(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(database, "transaction", lambda: _DummyTransaction())


@pytest.fixture(autouse=True)
def fresh_event_bus(monkeypatch: pytest.MonkeyPatch) -> Iterator[events.InMemoryEventBus]:
    bus = events.InMemoryEventBus()
    monkeypatch.setattr(events, "event_bus", bus)
    season_logic.invalidate_season_cache()
    yield bus
    season_logic.invalidate_season_cache()
