from prizepool.logic.scheduling.lock import enforce_tournament_lock
from prizepool.models.db.tournament import Tournament
from prizepool.sql.tournaments import sql_get_tournament
from prizepool.utils.errors import NotFound
from prizepool.utils.id_types import TournamentId


async def tournament_dependency(tournament_id: TournamentId) -> Tournament:
    """Resolve a tournament, applying its registration lock if it is due."""
    await enforce_tournament_lock(tournament_id)
    tournament = await sql_get_tournament(tournament_id)
    if tournament is None:
        raise NotFound(f"Tournament {tournament_id} does not exist")
    return tournament
