from enum import IntEnum

from prizepool.database import database
from prizepool.utils.id_types import TournamentId


class LockScope(IntEnum):
    LEDGER = 72001
    ROUND_ADVANCE = 72002
    REGISTRATION = 72003
    SEASON_CONFIG = 72004


async def sql_acquire_tournament_lock(scope: LockScope, tournament_id: TournamentId) -> None:
    """Serialize writers for one tournament until the surrounding transaction ends."""
    await database.execute(
        "SELECT pg_advisory_xact_lock(:lock_scope, :lock_key)",
        values={"lock_scope": int(scope), "lock_key": int(tournament_id)},
    )
