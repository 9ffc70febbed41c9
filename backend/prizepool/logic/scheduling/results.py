from heliclockter import datetime_utc

from prizepool.database import database
from prizepool.logic.events import TournamentEventType, publish_tournament_event
from prizepool.logic.scheduling.advance import AdvanceOutcome, maybe_advance_swiss_round
from prizepool.models.db.match import Match, MatchResult
from prizepool.models.db.tournament import TournamentStatus
from prizepool.sql.audit import record_audit_event
from prizepool.sql.matches import sql_complete_match, sql_get_match
from prizepool.sql.tournaments import sql_get_tournament
from prizepool.utils.errors import NotFound, PreconditionFailed
from prizepool.utils.id_types import MatchId, TournamentId, UserId
from prizepool.utils.logging import logger


async def report_match_result(
    tournament_id: TournamentId,
    match_id: MatchId,
    result: MatchResult,
    actor_id: UserId | None = None,
) -> tuple[Match, AdvanceOutcome]:
    tournament = await sql_get_tournament(tournament_id)
    if tournament is None:
        raise NotFound(f"Tournament {tournament_id} does not exist")
    if tournament.status is not TournamentStatus.IN_PROGRESS:
        raise PreconditionFailed("Tournament is not in progress", reason="TOURNAMENT_NOT_IN_PROGRESS")

    match = await sql_get_match(tournament_id, match_id)
    if match is None:
        raise NotFound(f"Match {match_id} does not exist")
    if match.is_bye:
        raise PreconditionFailed("A bye has no result to report", reason="MATCH_IS_BYE")

    async with database.transaction():
        completed = await sql_complete_match(match_id, result, datetime_utc.now())
        if completed is None:
            raise PreconditionFailed("Match already has a result", reason="MATCH_COMPLETED")
        await record_audit_event("MATCH_RESULT_REPORTED", actor_id, "match", match_id, match, completed)

    logger.info(f"Match {match_id} in tournament {tournament_id} finished: {result.value}")
    await publish_tournament_event(
        TournamentEventType.STANDINGS_UPDATED, tournament_id, match_id=match_id
    )
    return completed, await maybe_advance_swiss_round(tournament_id, actor_id)
