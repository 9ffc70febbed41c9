from collections.abc import Sequence

from heliclockter import datetime_utc

from prizepool.database import database
from prizepool.models.db.match import Match, MatchResult, MatchStatus, SwissPairing
from prizepool.utils.id_types import MatchId, TournamentId


async def sql_get_matches(tournament_id: TournamentId) -> list[Match]:
    query = """
        SELECT *
        FROM matches
        WHERE tournament_id = :tournament_id
        ORDER BY round ASC, id ASC
        """
    rows = await database.fetch_all(query=query, values={"tournament_id": tournament_id})
    return [Match.model_validate(dict(row._mapping)) for row in rows]


async def sql_get_match(tournament_id: TournamentId, match_id: MatchId) -> Match | None:
    query = """
        SELECT *
        FROM matches
        WHERE id = :match_id
          AND tournament_id = :tournament_id
        """
    result = await database.fetch_one(
        query=query, values={"tournament_id": tournament_id, "match_id": match_id}
    )
    return Match.model_validate(dict(result._mapping)) if result is not None else None


async def sql_round_exists(tournament_id: TournamentId, round_: int) -> bool:
    query = """
        SELECT EXISTS (
            SELECT 1
            FROM matches
            WHERE tournament_id = :tournament_id
              AND round = :round
        )
        """
    exists = await database.fetch_val(
        query=query, values={"tournament_id": tournament_id, "round": round_}
    )
    return bool(exists)


async def sql_create_matches(
    tournament_id: TournamentId, pairings: Sequence[SwissPairing], scheduled_at: datetime_utc
) -> None:
    query = """
        INSERT INTO matches (
            tournament_id, round, player1_id, player2_id, result, status, scheduled_at, completed_at
        )
        VALUES (
            :tournament_id,
            :round,
            :player1_id,
            :player2_id,
            :result,
            :status,
            :scheduled_at,
            :completed_at
        )
        """
    await database.execute_many(
        query=query,
        values=[
            {
                "tournament_id": tournament_id,
                "round": pairing.round,
                "player1_id": pairing.player1_id,
                "player2_id": pairing.player2_id,
                "result": pairing.result.value if pairing.result is not None else None,
                "status": pairing.status.value,
                "scheduled_at": scheduled_at,
                "completed_at": scheduled_at if pairing.status is MatchStatus.COMPLETED else None,
            }
            for pairing in pairings
        ],
    )


async def sql_delete_matches(tournament_id: TournamentId) -> None:
    query = """
        DELETE FROM matches
        WHERE tournament_id = :tournament_id
        """
    await database.execute(query=query, values={"tournament_id": tournament_id})


async def sql_complete_match(
    match_id: MatchId, result: MatchResult, completed_at: datetime_utc
) -> Match | None:
    """Record a result once; returns ``None`` if the match was already completed."""
    query = """
        UPDATE matches
        SET
            result = :result,
            status = 'COMPLETED',
            completed_at = :completed_at
        WHERE id = :match_id
          AND status = 'SCHEDULED'
        RETURNING *
        """
    row = await database.fetch_one(
        query=query,
        values={"match_id": match_id, "result": result.value, "completed_at": completed_at},
    )
    return Match.model_validate(dict(row._mapping)) if row is not None else None
