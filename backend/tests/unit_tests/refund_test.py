from decimal import Decimal
from typing import Any

import pytest
from heliclockter import datetime_utc, timedelta

from prizepool.logic.payments import refund as refund_logic
from prizepool.logic.payments.provider import PaymentProviderError
from prizepool.logic.payments.refund import can_refund_entry, refund_entry
from prizepool.models.db.entry import Entry, EntryStatus
from prizepool.models.db.ledger import LedgerEntryInput, LedgerEntryType
from prizepool.models.db.tournament import Tournament, TournamentStatus
from prizepool.sql.locks import LockScope
from prizepool.utils.dummy_records import DUMMY_ENTRY, DUMMY_TOURNAMENT
from prizepool.utils.errors import PaymentProviderFailure, PreconditionFailed
from prizepool.utils.id_types import EntryId, TournamentId, UserId


def test_refund_window_closes_at_lock() -> None:
    lock_at = DUMMY_TOURNAMENT.lock_at

    assert can_refund_entry(DUMMY_ENTRY, DUMMY_TOURNAMENT, lock_at - timedelta(seconds=1))
    assert not can_refund_entry(DUMMY_ENTRY, DUMMY_TOURNAMENT, lock_at)
    assert not can_refund_entry(DUMMY_ENTRY, DUMMY_TOURNAMENT, lock_at + timedelta(seconds=1))


def test_refund_requires_registration_and_live_entry() -> None:
    before_lock = DUMMY_TOURNAMENT.lock_at - timedelta(hours=1)
    cancelled = DUMMY_ENTRY.model_copy(update={"status": EntryStatus.CANCELLED})
    started = DUMMY_TOURNAMENT.model_copy(update={"status": TournamentStatus.IN_PROGRESS})

    assert not can_refund_entry(cancelled, DUMMY_TOURNAMENT, before_lock)
    assert not can_refund_entry(DUMMY_ENTRY, started, before_lock)
    assert can_refund_entry(
        DUMMY_ENTRY.model_copy(update={"status": EntryStatus.PENDING}), DUMMY_TOURNAMENT, before_lock
    )


class FakeRefundProvider:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.refunds: list[str] = []

    async def create_refund(self, payment_reference: str) -> None:
        if self.error is not None:
            raise self.error
        self.refunds.append(payment_reference)


class FakeRefundWorld:
    def __init__(self, entry: Entry) -> None:
        self.tournament = DUMMY_TOURNAMENT.model_copy(
            update={
                "lock_at": datetime_utc.now() + timedelta(hours=1),
                "current_players": 5,
            }
        )
        self.entry = entry
        self.ledger: list[LedgerEntryInput] = []
        self.locks: list[LockScope] = []
        self.audit: list[str] = []

    async def acquire_lock(self, scope: LockScope, _: TournamentId) -> None:
        self.locks.append(scope)

    async def get_tournament(self, _: TournamentId) -> Tournament:
        return self.tournament

    async def get_entry_for_user(self, _: TournamentId, __: UserId) -> Entry:
        return self.entry

    async def cancel_entry(self, _: EntryId) -> Entry | None:
        if self.entry.status is EntryStatus.CANCELLED:
            return None
        self.entry = self.entry.model_copy(update={"status": EntryStatus.CANCELLED})
        return self.entry

    async def increment_current_players(self, _: TournamentId, delta: int) -> None:
        self.tournament = self.tournament.model_copy(
            update={"current_players": self.tournament.current_players + delta}
        )

    async def create_ledger_entries(self, _: TournamentId, inputs: list[LedgerEntryInput]) -> list[Any]:
        self.ledger.extend(inputs)
        return []

    async def record_audit_event(self, action: str, *_: Any) -> None:
        self.audit.append(action)


def _install(monkeypatch: pytest.MonkeyPatch, world: FakeRefundWorld) -> None:
    monkeypatch.setattr(refund_logic, "sql_acquire_tournament_lock", world.acquire_lock)
    monkeypatch.setattr(refund_logic, "sql_get_tournament", world.get_tournament)
    monkeypatch.setattr(refund_logic, "sql_get_entry_for_user", world.get_entry_for_user)
    monkeypatch.setattr(refund_logic, "sql_cancel_entry", world.cancel_entry)
    monkeypatch.setattr(
        refund_logic, "sql_increment_current_players", world.increment_current_players
    )
    monkeypatch.setattr(refund_logic, "create_ledger_entries", world.create_ledger_entries)
    monkeypatch.setattr(refund_logic, "record_audit_event", world.record_audit_event)


@pytest.mark.asyncio
async def test_refund_confirmed_entry(monkeypatch: pytest.MonkeyPatch) -> None:
    world = FakeRefundWorld(DUMMY_ENTRY)
    _install(monkeypatch, world)
    provider = FakeRefundProvider()

    cancelled = await refund_entry(TournamentId(1), UserId(1), provider)

    assert cancelled.status is EntryStatus.CANCELLED
    assert world.tournament.current_players == 4
    assert [(entry.type, entry.amount) for entry in world.ledger] == [
        (LedgerEntryType.REFUND, Decimal("-7.50"))
    ]
    assert provider.refunds == ["pi_player_one"]
    assert world.locks == [LockScope.REGISTRATION]
    assert world.audit == ["ENTRY_REFUNDED"]


@pytest.mark.asyncio
async def test_refund_pending_entry_posts_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    world = FakeRefundWorld(
        DUMMY_ENTRY.model_copy(update={"status": EntryStatus.PENDING, "payment_reference": None})
    )
    _install(monkeypatch, world)
    provider = FakeRefundProvider()

    await refund_entry(TournamentId(1), UserId(1), provider)

    assert world.ledger == []
    assert provider.refunds == []
    assert world.tournament.current_players == 4


@pytest.mark.asyncio
async def test_refund_skips_provider_for_free_entries(monkeypatch: pytest.MonkeyPatch) -> None:
    world = FakeRefundWorld(DUMMY_ENTRY.model_copy(update={"payment_reference": "dev-12"}))
    _install(monkeypatch, world)
    provider = FakeRefundProvider()

    await refund_entry(TournamentId(1), UserId(1), provider)

    assert len(world.ledger) == 1
    assert provider.refunds == []


@pytest.mark.asyncio
async def test_refund_after_lock_is_refused(monkeypatch: pytest.MonkeyPatch) -> None:
    world = FakeRefundWorld(DUMMY_ENTRY)
    world.tournament = world.tournament.model_copy(update={"lock_at": datetime_utc.now()})
    _install(monkeypatch, world)

    with pytest.raises(PreconditionFailed) as exc_info:
        await refund_entry(TournamentId(1), UserId(1), FakeRefundProvider())

    assert exc_info.value.reason == "REFUND_WINDOW_CLOSED"
    assert world.entry.status is EntryStatus.CONFIRMED
    assert world.ledger == []
    assert world.audit == []


@pytest.mark.asyncio
async def test_refund_provider_failure_surfaces(monkeypatch: pytest.MonkeyPatch) -> None:
    world = FakeRefundWorld(DUMMY_ENTRY)
    _install(monkeypatch, world)

    with pytest.raises(PaymentProviderFailure):
        await refund_entry(
            TournamentId(1), UserId(1), FakeRefundProvider(PaymentProviderError("card expired"))
        )
