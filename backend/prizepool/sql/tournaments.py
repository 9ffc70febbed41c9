from decimal import Decimal

from heliclockter import datetime_utc

from prizepool.database import database
from prizepool.models.db.tournament import Tournament, TournamentInsertable, TournamentStatus
from prizepool.utils.id_types import TournamentId
from prizepool.utils.types import assert_some


async def sql_get_tournament(tournament_id: TournamentId) -> Tournament | None:
    query = """
        SELECT *
        FROM tournaments
        WHERE id = :tournament_id
        """
    result = await database.fetch_one(query=query, values={"tournament_id": tournament_id})
    return Tournament.model_validate(dict(result._mapping)) if result is not None else None


async def sql_get_tournament_for_update(tournament_id: TournamentId) -> Tournament | None:
    query = """
        SELECT *
        FROM tournaments
        WHERE id = :tournament_id
        FOR UPDATE
        """
    result = await database.fetch_one(query=query, values={"tournament_id": tournament_id})
    return Tournament.model_validate(dict(result._mapping)) if result is not None else None


async def sql_get_tournament_ids_due_for_lock(now: datetime_utc) -> list[TournamentId]:
    query = """
        SELECT id
        FROM tournaments
        WHERE status = 'REGISTRATION'
          AND lock_at <= :now
        ORDER BY lock_at ASC, id ASC
        """
    rows = await database.fetch_all(query=query, values={"now": now})
    return [TournamentId(int(row._mapping["id"])) for row in rows]


async def sql_create_tournament(tournament: TournamentInsertable) -> Tournament:
    query = """
        INSERT INTO tournaments (
            name,
            status,
            entry_fee,
            prize_pool,
            min_players,
            max_players,
            current_players,
            start_date,
            lock_at,
            created_by,
            created
        )
        VALUES (
            :name,
            :status,
            :entry_fee,
            :prize_pool,
            :min_players,
            :max_players,
            :current_players,
            :start_date,
            :lock_at,
            :created_by,
            :created
        )
        RETURNING *
        """
    values = {**tournament.model_dump(), "status": tournament.status.value}
    result = await database.fetch_one(query=query, values=values)
    return Tournament.model_validate(dict(assert_some(result)._mapping))


async def sql_update_tournament_status(
    tournament_id: TournamentId, status: TournamentStatus
) -> None:
    query = """
        UPDATE tournaments
        SET status = :status
        WHERE id = :tournament_id
        """
    await database.execute(
        query=query, values={"tournament_id": tournament_id, "status": status.value}
    )


async def sql_set_current_players(tournament_id: TournamentId, current_players: int) -> None:
    query = """
        UPDATE tournaments
        SET current_players = :current_players
        WHERE id = :tournament_id
        """
    await database.execute(
        query=query, values={"tournament_id": tournament_id, "current_players": current_players}
    )


async def sql_increment_current_players(tournament_id: TournamentId, delta: int) -> None:
    query = """
        UPDATE tournaments
        SET current_players = GREATEST(current_players + :delta, 0)
        WHERE id = :tournament_id
        """
    await database.execute(query=query, values={"tournament_id": tournament_id, "delta": delta})


async def sql_set_prize_pool(tournament_id: TournamentId, prize_pool: Decimal) -> None:
    """Only the ledger writer calls this: prize_pool is a projection of the ledger balance."""
    query = """
        UPDATE tournaments
        SET prize_pool = :prize_pool
        WHERE id = :tournament_id
        """
    await database.execute(
        query=query, values={"tournament_id": tournament_id, "prize_pool": prize_pool}
    )
