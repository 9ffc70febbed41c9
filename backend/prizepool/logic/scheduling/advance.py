from collections.abc import Sequence
from enum import auto

from heliclockter import datetime_utc

from prizepool.database import database
from prizepool.logic.events import TournamentEventType, publish_tournament_event
from prizepool.logic.scheduling.swiss import generate_swiss_round, get_number_of_swiss_rounds
from prizepool.models.db.match import Match, MatchStatus
from prizepool.models.db.tournament import TournamentStatus
from prizepool.sql.audit import record_audit_event
from prizepool.sql.entries import sql_get_confirmed_user_ids
from prizepool.sql.locks import LockScope, sql_acquire_tournament_lock
from prizepool.sql.matches import sql_create_matches, sql_get_matches, sql_round_exists
from prizepool.sql.tournaments import sql_get_tournament_for_update, sql_update_tournament_status
from prizepool.utils.id_types import TournamentId, UserId
from prizepool.utils.logging import logger
from prizepool.utils.types import EnumAutoStr


class AdvanceOutcome(EnumAutoStr):
    NOT_IN_PROGRESS = auto()
    ROUND_INCOMPLETE = auto()
    ALREADY_ADVANCED = auto()
    ROUND_CREATED = auto()
    TOURNAMENT_COMPLETED = auto()


def get_current_round(matches: Sequence[Match]) -> int:
    return max((match.round for match in matches), default=0)


def is_round_complete(matches: Sequence[Match], round_: int) -> bool:
    round_matches = [match for match in matches if match.round == round_]
    return len(round_matches) > 0 and all(
        match.status is MatchStatus.COMPLETED for match in round_matches
    )


async def maybe_advance_swiss_round(
    tournament_id: TournamentId, actor_id: UserId | None = None
) -> AdvanceOutcome:
    """
    Generate the next round once every match of the current round is completed, or complete
    the tournament after its final round. Completion and the absence of the next round are
    re-checked under a per-tournament lock in the same transaction as the insert, so racing
    result reports create a round at most once.
    """
    async with database.transaction():
        await sql_acquire_tournament_lock(LockScope.ROUND_ADVANCE, tournament_id)
        tournament = await sql_get_tournament_for_update(tournament_id)
        if tournament is None or tournament.status is not TournamentStatus.IN_PROGRESS:
            return AdvanceOutcome.NOT_IN_PROGRESS

        matches = await sql_get_matches(tournament_id)
        current_round = get_current_round(matches)
        if not is_round_complete(matches, current_round):
            return AdvanceOutcome.ROUND_INCOMPLETE

        next_round = current_round + 1
        if await sql_round_exists(tournament_id, next_round):
            return AdvanceOutcome.ALREADY_ADVANCED

        user_ids = await sql_get_confirmed_user_ids(tournament_id)
        total_rounds = get_number_of_swiss_rounds(len(user_ids))

        if current_round >= total_rounds:
            await sql_update_tournament_status(tournament_id, TournamentStatus.COMPLETED)
            await record_audit_event(
                "TOURNAMENT_COMPLETED",
                actor_id,
                "tournament",
                tournament_id,
                tournament,
                tournament.model_copy(update={"status": TournamentStatus.COMPLETED}),
            )
            outcome = AdvanceOutcome.TOURNAMENT_COMPLETED
        else:
            resulted = [match for match in matches if match.result is not None]
            pairings = generate_swiss_round(user_ids, resulted, next_round)
            await sql_create_matches(tournament_id, pairings, datetime_utc.now())
            await record_audit_event(
                "ROUND_ADVANCED", actor_id, "tournament", tournament_id, None, None
            )
            outcome = AdvanceOutcome.ROUND_CREATED

    if outcome is AdvanceOutcome.TOURNAMENT_COMPLETED:
        logger.info(f"Tournament {tournament_id} completed after round {current_round}")
        await publish_tournament_event(TournamentEventType.TOURNAMENT_COMPLETED, tournament_id)
    else:
        logger.info(f"Tournament {tournament_id} advanced to round {next_round}/{total_rounds}")
        await publish_tournament_event(
            TournamentEventType.ROUND_STARTED, tournament_id, round=next_round
        )
    return outcome
