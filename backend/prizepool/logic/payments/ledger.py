"""
Prize pool ledger.

The ledger is the authoritative record of every monetary movement of a tournament.
Each row stores a balance snapshot: the sum of all balance-affecting amounts up to and
including that row, in creation (id) order. ``tournaments.prize_pool`` is a projection of
the latest snapshot and is written only here, in the same transaction as the rows.
"""

from collections.abc import Sequence
from decimal import Decimal

from heliclockter import datetime_utc
from pydantic import BaseModel

from prizepool.database import database
from prizepool.models.db.ledger import LedgerEntryInput, LedgerEntryType, PrizePoolLedgerEntry
from prizepool.sql.ledger import sql_get_last_ledger_balance, sql_insert_ledger_entry
from prizepool.sql.locks import LockScope, sql_acquire_tournament_lock
from prizepool.sql.tournaments import sql_set_prize_pool
from prizepool.utils.id_types import PayoutId, TournamentId, UserId
from prizepool.utils.logging import logger
from prizepool.utils.money import percent_of, quantize_money

PRIZE_SHARE_PERCENT = Decimal(75)
PLATFORM_SHARE_PERCENT = Decimal(25)


class EntryAllocation(BaseModel):
    prize_share: Decimal
    platform_share: Decimal


def calculate_entry_allocation(entry_fee: Decimal) -> EntryAllocation:
    """Split an entry fee; the platform share absorbs the rounding remainder."""
    fee = quantize_money(entry_fee)
    prize_share = percent_of(fee, PRIZE_SHARE_PERCENT)
    return EntryAllocation(prize_share=prize_share, platform_share=fee - prize_share)


def apply_ledger_inputs(
    starting_balance: Decimal, inputs: Sequence[LedgerEntryInput]
) -> list[Decimal]:
    balance = quantize_money(starting_balance)
    snapshots = []
    for entry in inputs:
        if entry.affects_balance:
            balance = quantize_money(balance + entry.amount)
        snapshots.append(balance)
    return snapshots


def build_entry_fee_ledger_inputs(
    entry_fee: Decimal, user_id: UserId, provider_fee: Decimal | None = None
) -> list[LedgerEntryInput]:
    allocation = calculate_entry_allocation(entry_fee)
    inputs = [
        LedgerEntryInput(
            type=LedgerEntryType.ENTRY_FEE,
            amount=allocation.prize_share,
            description=f"Entry fee prize share ({PRIZE_SHARE_PERCENT}%)",
            related_user_id=user_id,
        ),
        LedgerEntryInput(
            type=LedgerEntryType.PLATFORM_FEE,
            amount=allocation.platform_share,
            description=f"Platform fee ({PLATFORM_SHARE_PERCENT}%)",
            related_user_id=user_id,
            affects_balance=False,
        ),
    ]
    if provider_fee is not None and provider_fee > 0:
        inputs.append(
            LedgerEntryInput(
                type=LedgerEntryType.STRIPE_FEE,
                amount=-quantize_money(provider_fee),
                description="Payment processing fee",
                related_user_id=user_id,
                affects_balance=False,
            )
        )
    return inputs


def build_refund_ledger_input(entry_fee: Decimal, user_id: UserId) -> LedgerEntryInput:
    return LedgerEntryInput(
        type=LedgerEntryType.REFUND,
        amount=-calculate_entry_allocation(entry_fee).prize_share,
        description="Entry refund",
        related_user_id=user_id,
    )


def build_payout_ledger_input(
    amount: Decimal, user_id: UserId, payout_id: PayoutId
) -> LedgerEntryInput:
    return LedgerEntryInput(
        type=LedgerEntryType.PAYOUT,
        amount=-quantize_money(amount),
        description=f"Prize payout #{payout_id}",
        related_user_id=user_id,
        related_payout_id=payout_id,
    )


def build_seed_ledger_input(amount: Decimal) -> LedgerEntryInput:
    return LedgerEntryInput(
        type=LedgerEntryType.SEED,
        amount=quantize_money(amount),
        description="Free season prize pool",
    )


async def create_ledger_entries(
    tournament_id: TournamentId, inputs: Sequence[LedgerEntryInput]
) -> list[PrizePoolLedgerEntry]:
    if len(inputs) < 1:
        return []

    created = datetime_utc.now()
    async with database.transaction():
        await sql_acquire_tournament_lock(LockScope.LEDGER, tournament_id)
        last_balance = await sql_get_last_ledger_balance(tournament_id)
        snapshots = apply_ledger_inputs(last_balance, inputs)

        ledger_entries = [
            await sql_insert_ledger_entry(tournament_id, entry, balance, created)
            for entry, balance in zip(inputs, snapshots, strict=True)
        ]
        await sql_set_prize_pool(tournament_id, snapshots[-1])

    logger.info(
        f"Ledger for tournament {tournament_id}: {len(inputs)} entries, "
        f"balance {last_balance} -> {snapshots[-1]}"
    )
    return ledger_entries
