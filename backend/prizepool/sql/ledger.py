from decimal import Decimal

from heliclockter import datetime_utc

from prizepool.database import database
from prizepool.models.db.ledger import LedgerEntryInput, PrizePoolLedgerEntry
from prizepool.utils.id_types import TournamentId
from prizepool.utils.types import assert_some


async def sql_get_last_ledger_balance(tournament_id: TournamentId) -> Decimal:
    query = """
        SELECT balance
        FROM prize_pool_ledger
        WHERE tournament_id = :tournament_id
        ORDER BY id DESC
        LIMIT 1
        """
    balance = await database.fetch_val(query=query, values={"tournament_id": tournament_id})
    return Decimal(balance) if balance is not None else Decimal("0.00")


async def sql_get_ledger(tournament_id: TournamentId) -> list[PrizePoolLedgerEntry]:
    query = """
        SELECT *
        FROM prize_pool_ledger
        WHERE tournament_id = :tournament_id
        ORDER BY id ASC
        """
    rows = await database.fetch_all(query=query, values={"tournament_id": tournament_id})
    return [PrizePoolLedgerEntry.model_validate(dict(row._mapping)) for row in rows]


async def sql_insert_ledger_entry(
    tournament_id: TournamentId,
    entry: LedgerEntryInput,
    balance: Decimal,
    created: datetime_utc,
) -> PrizePoolLedgerEntry:
    query = """
        INSERT INTO prize_pool_ledger (
            tournament_id,
            type,
            amount,
            balance,
            description,
            related_user_id,
            related_payout_id,
            created
        )
        VALUES (
            :tournament_id,
            :type,
            :amount,
            :balance,
            :description,
            :related_user_id,
            :related_payout_id,
            :created
        )
        RETURNING *
        """
    row = await database.fetch_one(
        query=query,
        values={
            "tournament_id": tournament_id,
            "type": entry.type.value,
            "amount": entry.amount,
            "balance": balance,
            "description": entry.description,
            "related_user_id": entry.related_user_id,
            "related_payout_id": entry.related_payout_id,
            "created": created,
        },
    )
    return PrizePoolLedgerEntry.model_validate(dict(assert_some(row)._mapping))
