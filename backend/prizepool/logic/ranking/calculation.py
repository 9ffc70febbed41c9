from prizepool.logic.ranking.standings import assign_placements, build_standings
from prizepool.models.db.match import MatchStatus
from prizepool.models.standings import RankedStanding
from prizepool.sql.entries import sql_get_confirmed_user_ids
from prizepool.sql.matches import sql_get_matches
from prizepool.utils.id_types import TournamentId


async def get_tournament_standings(tournament_id: TournamentId) -> list[RankedStanding]:
    """Standings of the confirmed entrants over every resulted match, with placements."""
    user_ids = await sql_get_confirmed_user_ids(tournament_id)
    matches = [
        match
        for match in await sql_get_matches(tournament_id)
        if match.status is MatchStatus.COMPLETED and match.result is not None
    ]
    return assign_placements(build_standings(user_ids, matches))
