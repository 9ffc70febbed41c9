from collections.abc import Sequence

from prizepool.database import database
from prizepool.models.db.payout import PayoutSchedule, PayoutScheduleSlot
from prizepool.utils.id_types import TournamentId


async def sql_get_payout_schedule(tournament_id: TournamentId) -> list[PayoutSchedule]:
    query = """
        SELECT *
        FROM payout_schedules
        WHERE tournament_id = :tournament_id
        ORDER BY position ASC
        """
    rows = await database.fetch_all(query=query, values={"tournament_id": tournament_id})
    return [PayoutSchedule.model_validate(dict(row._mapping)) for row in rows]


async def sql_ensure_default_payout_schedule(tournament_id: TournamentId) -> None:
    """A tournament without a schedule pays 100% to first place."""
    query = """
        INSERT INTO payout_schedules (tournament_id, position, percent)
        SELECT :tournament_id, 1, 100
        WHERE NOT EXISTS (
            SELECT 1
            FROM payout_schedules
            WHERE tournament_id = :tournament_id
        )
        ON CONFLICT (tournament_id, position) DO NOTHING
        """
    await database.execute(query=query, values={"tournament_id": tournament_id})


async def sql_replace_payout_schedule(
    tournament_id: TournamentId, slots: Sequence[PayoutScheduleSlot]
) -> None:
    async with database.transaction():
        await database.execute(
            "DELETE FROM payout_schedules WHERE tournament_id = :tournament_id",
            values={"tournament_id": tournament_id},
        )
        await database.execute_many(
            """
            INSERT INTO payout_schedules (tournament_id, position, percent)
            VALUES (:tournament_id, :position, :percent)
            """,
            values=[
                {"tournament_id": tournament_id, "position": slot.position, "percent": slot.percent}
                for slot in slots
            ],
        )
