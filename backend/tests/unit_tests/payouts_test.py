import asyncio
from collections.abc import Callable
from decimal import Decimal
from typing import Any

import pytest
from heliclockter import datetime_utc

from prizepool.logic.payments import payouts as payouts_logic
from prizepool.logic.payments.entitlements import PayoutEntitlement, compute_entitlement
from prizepool.logic.payments.payouts import (
    approve_payout,
    has_anti_cheat_hold,
    reject_payout,
    request_payout,
)
from prizepool.logic.payments.provider import PaymentProviderError
from prizepool.models.db.account import KycStatus
from prizepool.models.db.anticheat import AntiCheatCase, AntiCheatCaseStatus
from prizepool.models.db.entry import Entry
from prizepool.models.db.ledger import LedgerEntryInput, LedgerEntryType
from prizepool.models.db.payout import Payout, PayoutInsertable, PayoutScheduleSlot, PayoutStatus
from prizepool.models.db.season import PrizeMode, SeasonConfig, SeasonMode
from prizepool.models.db.tournament import Tournament, TournamentStatus
from prizepool.models.db.user import UserProfile
from prizepool.sql.locks import LockScope
from prizepool.utils.dummy_records import (
    DUMMY_COMPLETED_TOURNAMENT,
    DUMMY_ENTRY,
    DUMMY_MOCK_TIME,
    DUMMY_VERIFIED_PROFILE,
)
from prizepool.utils.errors import (
    EntitlementMismatch,
    PaymentProviderFailure,
    PayoutAlreadyProcessed,
    PreconditionFailed,
)
from prizepool.utils.id_types import AntiCheatCaseId, EntryId, PayoutId, TournamentId, UserId

ADMIN_ID = UserId(100)
WINNER_ID = UserId(1)
RUNNER_UP_ID = UserId(2)


class FakeProvider:
    def __init__(self, error: Exception | None = None, delay: float = 0.0) -> None:
        self.error = error
        self.delay = delay
        self.transfers: list[tuple[str, int, str]] = []

    async def create_transfer(
        self, destination: str, amount_minor_units: int, idempotency_key: str
    ) -> str:
        self.transfers.append((destination, amount_minor_units, idempotency_key))
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return f"tr_{idempotency_key}"


class FakePayoutWorld:
    """In-memory stand-in for the rows the payout lifecycle reads and writes."""

    def __init__(self) -> None:
        self.season = SeasonConfig(
            mode=SeasonMode.PAID, prize_mode=PrizeMode.CASH, free_prize_pool=Decimal("0.00")
        )
        self.tournament = DUMMY_COMPLETED_TOURNAMENT
        self.entries: dict[UserId, Entry] = {WINNER_ID: DUMMY_ENTRY}
        self.profiles: dict[UserId, UserProfile] = {WINNER_ID: DUMMY_VERIFIED_PROFILE}
        self.cases: list[AntiCheatCase] = []
        self.placements: dict[UserId, int] = {WINNER_ID: 1}
        self.schedule = [PayoutScheduleSlot(position=1, percent=Decimal(100))]
        self.payouts: dict[PayoutId, Payout] = {}
        self.ledger: list[LedgerEntryInput] = []
        self.audit: list[str] = []
        self.locks: list[tuple[LockScope, TournamentId]] = []
        self.on_lock: Callable[[], None] | None = None

    async def acquire_lock(self, scope: LockScope, tournament_id: TournamentId) -> None:
        self.locks.append((scope, tournament_id))
        if self.on_lock is not None:
            # a writer that held the lock committed just before we got it
            self.on_lock()
            self.on_lock = None

    async def get_season_config(self) -> SeasonConfig:
        return self.season

    async def get_tournament(self, _: TournamentId) -> Tournament:
        return self.tournament

    async def get_entry_for_user(self, _: TournamentId, user_id: UserId) -> Entry | None:
        return self.entries.get(user_id)

    async def get_anticheat_cases(self, user_id: UserId, _: TournamentId) -> list[AntiCheatCase]:
        return [case for case in self.cases if case.user_id == user_id]

    async def get_user_profile(self, user_id: UserId) -> UserProfile | None:
        return self.profiles.get(user_id)

    async def get_payout_entitlement(
        self, _: TournamentId, user_id: UserId
    ) -> PayoutEntitlement | None:
        return compute_entitlement(self.placements.get(user_id), self.schedule, self.tournament.prize_pool)

    async def get_payout(self, payout_id: PayoutId) -> Payout | None:
        return self.payouts.get(payout_id)

    async def get_payout_for_user(self, user_id: UserId, tournament_id: TournamentId) -> Payout | None:
        return next(
            (
                payout
                for payout in self.payouts.values()
                if payout.user_id == user_id and payout.tournament_id == tournament_id
            ),
            None,
        )

    async def insert_payout(self, payout: PayoutInsertable) -> Payout | None:
        if await self.get_payout_for_user(payout.user_id, payout.tournament_id) is not None:
            return None
        created = Payout(id=PayoutId(len(self.payouts) + 1), **payout.model_dump())
        self.payouts[created.id] = created
        return created

    async def backfill(
        self, payout_id: PayoutId, entitlement_amount: Decimal, placement: int
    ) -> Payout | None:
        payout = self.payouts[payout_id]
        if payout.entitlement_amount is not None or payout.placement is not None:
            return None
        updated = payout.model_copy(
            update={"entitlement_amount": entitlement_amount, "placement": placement}
        )
        self.payouts[payout_id] = updated
        return updated

    async def transition(
        self,
        payout_id: PayoutId,
        from_status: PayoutStatus,
        to_status: PayoutStatus,
        **fields: Any,
    ) -> Payout | None:
        payout = self.payouts[payout_id]
        if payout.status is not from_status:
            return None
        updated = payout.model_copy(
            update={"status": to_status, **{k: v for k, v in fields.items() if v is not None}}
        )
        self.payouts[payout_id] = updated
        return updated

    async def create_ledger_entries(
        self, _: TournamentId, inputs: list[LedgerEntryInput]
    ) -> list[Any]:
        self.ledger.extend(inputs)
        for entry in inputs:
            if entry.affects_balance:
                self.tournament = self.tournament.model_copy(
                    update={"prize_pool": self.tournament.prize_pool + entry.amount}
                )
        return []

    async def record_audit_event(self, action: str, *_: Any) -> None:
        self.audit.append(action)


@pytest.fixture
def world(monkeypatch: pytest.MonkeyPatch) -> FakePayoutWorld:
    fake = FakePayoutWorld()
    for name, replacement in {
        "get_season_config": fake.get_season_config,
        "sql_acquire_tournament_lock": fake.acquire_lock,
        "sql_get_tournament": fake.get_tournament,
        "sql_get_entry_for_user": fake.get_entry_for_user,
        "sql_get_anticheat_cases": fake.get_anticheat_cases,
        "sql_get_user_profile": fake.get_user_profile,
        "get_payout_entitlement": fake.get_payout_entitlement,
        "sql_get_payout": fake.get_payout,
        "sql_get_payout_for_user": fake.get_payout_for_user,
        "sql_insert_payout": fake.insert_payout,
        "sql_backfill_payout_entitlement": fake.backfill,
        "sql_transition_payout": fake.transition,
        "create_ledger_entries": fake.create_ledger_entries,
        "record_audit_event": fake.record_audit_event,
    }.items():
        monkeypatch.setattr(payouts_logic, name, replacement)
    return fake


def _case(status: AntiCheatCaseStatus) -> AntiCheatCase:
    return AntiCheatCase(
        id=AntiCheatCaseId(1),
        user_id=WINNER_ID,
        tournament_id=TournamentId(1),
        status=status,
        created=DUMMY_MOCK_TIME,
    )


def test_anti_cheat_hold_statuses() -> None:
    assert has_anti_cheat_hold([_case(AntiCheatCaseStatus.SOFT_FLAG)])
    assert has_anti_cheat_hold([_case(AntiCheatCaseStatus.HARD_FLAG)])
    assert has_anti_cheat_hold([_case(AntiCheatCaseStatus.APPEALED)])
    assert not has_anti_cheat_hold([_case(AntiCheatCaseStatus.RESOLVED)])
    assert not has_anti_cheat_hold([_case(AntiCheatCaseStatus.DISMISSED)])
    assert not has_anti_cheat_hold([])


@pytest.mark.asyncio
async def test_request_payout_is_idempotent(world: FakePayoutWorld) -> None:
    first = await request_payout(WINNER_ID, TournamentId(1))
    second = await request_payout(WINNER_ID, TournamentId(1))

    assert first.id == second.id
    assert len(world.payouts) == 1
    assert first.status is PayoutStatus.PENDING
    assert first.amount == Decimal("100.00")
    assert first.entitlement_amount == Decimal("100.00")
    assert first.placement == 1
    assert first.kyc_verified_at == DUMMY_MOCK_TIME
    assert world.audit == ["PAYOUT_REQUESTED"]


@pytest.mark.asyncio
async def test_concurrent_requests_create_one_payout(world: FakePayoutWorld) -> None:
    results = await asyncio.gather(
        *(request_payout(WINNER_ID, TournamentId(1)) for _ in range(5))
    )
    assert {payout.id for payout in results} == {PayoutId(1)}
    assert len(world.payouts) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("mutate", "reason"),
    [
        (lambda w: setattr(w.season, "prize_mode", PrizeMode.GIFT_CARD), "PRIZE_MODE"),
        (
            lambda w: setattr(
                w, "tournament", w.tournament.model_copy(update={"status": TournamentStatus.IN_PROGRESS})
            ),
            "TOURNAMENT_NOT_COMPLETED",
        ),
        (lambda w: w.entries.clear(), "NO_ENTRY"),
        (lambda w: w.cases.append(_case(AntiCheatCaseStatus.SOFT_FLAG)), "ANTI_CHEAT_HOLD"),
        (
            lambda w: w.profiles.update(
                {WINNER_ID: DUMMY_VERIFIED_PROFILE.model_copy(update={"kyc_status": KycStatus.PENDING})}
            ),
            "KYC_REQUIRED",
        ),
        (lambda w: w.placements.update({WINNER_ID: 2}), "NO_ENTITLEMENT"),
    ],
)
async def test_request_payout_preconditions(world: FakePayoutWorld, mutate: Any, reason: str) -> None:
    mutate(world)

    with pytest.raises(PreconditionFailed) as exc_info:
        await request_payout(WINNER_ID, TournamentId(1))

    assert exc_info.value.reason == reason
    assert world.payouts == {}
    assert world.audit == []


@pytest.mark.asyncio
async def test_approve_completes_and_drains_pool(world: FakePayoutWorld) -> None:
    payout = await request_payout(WINNER_ID, TournamentId(1))
    provider = FakeProvider()

    completed = await approve_payout(payout.id, ADMIN_ID, provider)

    assert completed.status is PayoutStatus.COMPLETED
    assert completed.provider_transfer_id == "tr_payout-1"
    assert provider.transfers == [("acct_player_one", 10000, "payout-1")]
    assert [(entry.type, entry.amount) for entry in world.ledger] == [
        (LedgerEntryType.PAYOUT, Decimal("-100.00"))
    ]
    assert world.tournament.prize_pool == Decimal("0.00")
    assert world.audit == ["PAYOUT_REQUESTED", "PAYOUT_APPROVED", "PAYOUT_COMPLETED"]


@pytest.mark.asyncio
async def test_concurrent_approvals_transfer_once(world: FakePayoutWorld) -> None:
    payout = await request_payout(WINNER_ID, TournamentId(1))
    provider = FakeProvider(delay=0.01)

    results = await asyncio.gather(
        approve_payout(payout.id, ADMIN_ID, provider),
        approve_payout(payout.id, ADMIN_ID, provider),
        return_exceptions=True,
    )

    completed = [result for result in results if isinstance(result, Payout)]
    conflicts = [result for result in results if isinstance(result, PayoutAlreadyProcessed)]
    assert len(completed) == 1
    assert len(conflicts) == 1
    assert conflicts[0].reason == "ALREADY_PROCESSED"
    assert len(provider.transfers) == 1
    assert len(world.ledger) == 1


@pytest.mark.asyncio
async def test_approve_rejects_changed_entitlement(world: FakePayoutWorld) -> None:
    payout = await request_payout(WINNER_ID, TournamentId(1))
    world.tournament = world.tournament.model_copy(update={"prize_pool": Decimal("107.50")})
    provider = FakeProvider()

    with pytest.raises(EntitlementMismatch) as exc_info:
        await approve_payout(payout.id, ADMIN_ID, provider)

    assert exc_info.value.reason == "ENTITLEMENT_MISMATCH"
    assert provider.transfers == []
    assert world.payouts[payout.id].status is PayoutStatus.PENDING
    assert world.ledger == []


@pytest.mark.asyncio
async def test_approve_backfills_missing_entitlement(world: FakePayoutWorld) -> None:
    payout = await request_payout(WINNER_ID, TournamentId(1))
    world.payouts[payout.id] = payout.model_copy(
        update={"entitlement_amount": None, "placement": None}
    )

    completed = await approve_payout(payout.id, ADMIN_ID, FakeProvider())

    assert completed.entitlement_amount == Decimal("100.00")
    assert completed.placement == 1
    assert "PAYOUT_ENTITLEMENT_BACKFILLED" in world.audit


@pytest.mark.asyncio
async def test_approve_rechecks_holds_and_prize_mode(world: FakePayoutWorld) -> None:
    payout = await request_payout(WINNER_ID, TournamentId(1))
    provider = FakeProvider()

    world.cases.append(_case(AntiCheatCaseStatus.APPEALED))
    with pytest.raises(PreconditionFailed) as exc_info:
        await approve_payout(payout.id, ADMIN_ID, provider)
    assert exc_info.value.reason == "ANTI_CHEAT_HOLD"

    world.cases.clear()
    world.season = world.season.model_copy(update={"prize_mode": PrizeMode.GIFT_CARD})
    with pytest.raises(PreconditionFailed) as exc_info:
        await approve_payout(payout.id, ADMIN_ID, provider)
    assert exc_info.value.reason == "PRIZE_MODE"

    assert provider.transfers == []
    assert world.payouts[payout.id].status is PayoutStatus.PENDING


@pytest.mark.asyncio
async def test_approve_requires_payment_destination(world: FakePayoutWorld) -> None:
    payout = await request_payout(WINNER_ID, TournamentId(1))
    world.profiles[WINNER_ID] = DUMMY_VERIFIED_PROFILE.model_copy(
        update={"payment_destination": None}
    )

    with pytest.raises(PreconditionFailed) as exc_info:
        await approve_payout(payout.id, ADMIN_ID, FakeProvider())

    assert exc_info.value.reason == "NO_PAYMENT_DESTINATION"


@pytest.mark.asyncio
async def test_provider_failure_marks_payout_failed(world: FakePayoutWorld) -> None:
    payout = await request_payout(WINNER_ID, TournamentId(1))
    provider = FakeProvider(error=PaymentProviderError("insufficient platform balance"))

    with pytest.raises(PaymentProviderFailure):
        await approve_payout(payout.id, ADMIN_ID, provider)

    failed = world.payouts[payout.id]
    assert failed.status is PayoutStatus.FAILED
    assert failed.failure_reason == "insufficient platform balance"
    assert world.ledger == []
    assert world.tournament.prize_pool == Decimal("100.00")

    with pytest.raises(PayoutAlreadyProcessed):
        await approve_payout(payout.id, ADMIN_ID, provider)
    assert len(provider.transfers) == 1


@pytest.mark.asyncio
async def test_provider_timeout_marks_payout_failed(
    world: FakePayoutWorld, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(payouts_logic.config, "provider_timeout_seconds", 0.01)
    payout = await request_payout(WINNER_ID, TournamentId(1))

    with pytest.raises(PaymentProviderFailure):
        await approve_payout(payout.id, ADMIN_ID, FakeProvider(delay=1.0))

    assert world.payouts[payout.id].status is PayoutStatus.FAILED


@pytest.mark.asyncio
async def test_reject_only_from_pending(world: FakePayoutWorld) -> None:
    payout = await request_payout(WINNER_ID, TournamentId(1))

    rejected = await reject_payout(payout.id, ADMIN_ID, "duplicate account")
    assert rejected.status is PayoutStatus.REJECTED
    assert rejected.failure_reason == "duplicate account"
    assert world.audit[-1] == "PAYOUT_REJECTED"

    with pytest.raises(PayoutAlreadyProcessed):
        await reject_payout(payout.id, ADMIN_ID, None)
    with pytest.raises(PayoutAlreadyProcessed):
        await approve_payout(payout.id, ADMIN_ID, FakeProvider())


@pytest.mark.asyncio
async def test_processed_at_is_set_on_completion(world: FakePayoutWorld) -> None:
    payout = await request_payout(WINNER_ID, TournamentId(1))
    before = datetime_utc.now()

    completed = await approve_payout(payout.id, ADMIN_ID, FakeProvider())

    assert completed.processed_at is not None
    assert completed.processed_at >= before


@pytest.mark.asyncio
async def test_completed_payout_shifts_later_entitlements(world: FakePayoutWorld) -> None:
    world.schedule = [
        PayoutScheduleSlot(position=1, percent=Decimal(60)),
        PayoutScheduleSlot(position=2, percent=Decimal(40)),
    ]
    world.placements[RUNNER_UP_ID] = 2
    world.entries[RUNNER_UP_ID] = DUMMY_ENTRY.model_copy(
        update={"id": EntryId(2), "user_id": RUNNER_UP_ID}
    )
    world.profiles[RUNNER_UP_ID] = DUMMY_VERIFIED_PROFILE.model_copy(
        update={"user_id": RUNNER_UP_ID, "payment_destination": "acct_player_two"}
    )
    provider = FakeProvider()

    winner = await request_payout(WINNER_ID, TournamentId(1))
    runner_up = await request_payout(RUNNER_UP_ID, TournamentId(1))
    assert winner.amount == Decimal("60.00")
    assert runner_up.amount == Decimal("40.00")

    await approve_payout(winner.id, ADMIN_ID, provider)
    assert world.tournament.prize_pool == Decimal("40.00")

    # 40% of what is left in the pool
    entitlement = compute_entitlement(2, world.schedule, world.tournament.prize_pool)
    assert entitlement is not None
    assert entitlement.amount == Decimal("16.00")

    with pytest.raises(EntitlementMismatch):
        await approve_payout(runner_up.id, ADMIN_ID, provider)

    assert len(provider.transfers) == 1
    assert world.payouts[runner_up.id].status is PayoutStatus.PENDING


@pytest.mark.asyncio
async def test_hold_filed_while_waiting_for_ledger_lock_blocks_request(
    world: FakePayoutWorld,
) -> None:
    world.on_lock = lambda: world.cases.append(_case(AntiCheatCaseStatus.SOFT_FLAG))

    with pytest.raises(PreconditionFailed) as exc_info:
        await request_payout(WINNER_ID, TournamentId(1))

    assert exc_info.value.reason == "ANTI_CHEAT_HOLD"
    assert world.locks == [(LockScope.LEDGER, TournamentId(1))]
    assert world.payouts == {}
    assert world.audit == []


@pytest.mark.asyncio
async def test_refund_posted_while_waiting_for_ledger_lock_blocks_approval(
    world: FakePayoutWorld,
) -> None:
    payout = await request_payout(WINNER_ID, TournamentId(1))
    provider = FakeProvider()
    world.on_lock = lambda: setattr(
        world, "tournament", world.tournament.model_copy(update={"prize_pool": Decimal("92.50")})
    )

    with pytest.raises(EntitlementMismatch):
        await approve_payout(payout.id, ADMIN_ID, provider)

    assert world.locks[-1] == (LockScope.LEDGER, TournamentId(1))
    assert provider.transfers == []
    assert world.payouts[payout.id].status is PayoutStatus.PENDING
    assert world.audit == ["PAYOUT_REQUESTED"]
