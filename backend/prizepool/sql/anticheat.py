from prizepool.database import database
from prizepool.models.db.anticheat import AntiCheatCase
from prizepool.utils.id_types import TournamentId, UserId


async def sql_get_anticheat_cases(user_id: UserId, tournament_id: TournamentId) -> list[AntiCheatCase]:
    query = """
        SELECT *
        FROM anticheat_cases
        WHERE user_id = :user_id
          AND tournament_id = :tournament_id
        ORDER BY created ASC, id ASC
        """
    rows = await database.fetch_all(
        query=query, values={"user_id": user_id, "tournament_id": tournament_id}
    )
    return [AntiCheatCase.model_validate(dict(row._mapping)) for row in rows]
