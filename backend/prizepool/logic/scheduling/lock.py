from enum import auto

from heliclockter import datetime_utc, timedelta

from prizepool.config import config
from prizepool.database import database
from prizepool.logic.events import TournamentEventType, publish_tournament_event
from prizepool.logic.scheduling.swiss import generate_swiss_round
from prizepool.models.db.entry import EntryStatus
from prizepool.models.db.tournament import Tournament, TournamentStatus
from prizepool.sql.audit import record_audit_event
from prizepool.sql.entries import sql_cancel_entries, sql_get_entries
from prizepool.sql.locks import LockScope, sql_acquire_tournament_lock
from prizepool.sql.matches import sql_create_matches, sql_delete_matches
from prizepool.sql.tournaments import (
    sql_get_tournament_for_update,
    sql_get_tournament_ids_due_for_lock,
    sql_set_current_players,
    sql_update_tournament_status,
)
from prizepool.utils.id_types import TournamentId, UserId
from prizepool.utils.logging import logger
from prizepool.utils.types import EnumAutoStr


class LockOutcome(EnumAutoStr):
    NOT_DUE = auto()
    STARTED = auto()
    CANCELLED = auto()


def compute_lock_at(start_date: datetime_utc) -> datetime_utc:
    """Registration, and with it the refund window, closes a fixed offset before the start."""
    return start_date - timedelta(minutes=config.registration_lock_minutes)


def is_due_for_lock(tournament: Tournament, now: datetime_utc) -> bool:
    return tournament.status is TournamentStatus.REGISTRATION and tournament.lock_at <= now


async def enforce_tournament_lock(
    tournament_id: TournamentId, actor_id: UserId | None = None
) -> LockOutcome:
    """
    At or after ``lock_at`` a tournament in registration either starts with its confirmed
    entries (up to ``max_players``, in registration order) and a generated first round, or
    is cancelled when fewer than ``min_players`` confirmed. Entries that are not selected are
    cancelled. Refunds are not issued automatically.
    """
    now = datetime_utc.now()
    async with database.transaction():
        await sql_acquire_tournament_lock(LockScope.REGISTRATION, tournament_id)
        tournament = await sql_get_tournament_for_update(tournament_id)
        if tournament is None or not is_due_for_lock(tournament, now):
            return LockOutcome.NOT_DUE

        entries = await sql_get_entries(
            tournament_id, [EntryStatus.PENDING, EntryStatus.CONFIRMED]
        )
        confirmed = [entry for entry in entries if entry.status is EntryStatus.CONFIRMED]
        selected = confirmed[: tournament.max_players]
        selected_ids = {entry.id for entry in selected}

        if len(selected) < tournament.min_players:
            await sql_cancel_entries([entry.id for entry in entries])
            await sql_set_current_players(tournament_id, 0)
            await sql_update_tournament_status(tournament_id, TournamentStatus.CANCELLED)
            outcome = LockOutcome.CANCELLED
            new_status = TournamentStatus.CANCELLED
        else:
            await sql_cancel_entries([entry.id for entry in entries if entry.id not in selected_ids])
            pairings = generate_swiss_round([entry.user_id for entry in selected], [], 1)
            await sql_delete_matches(tournament_id)
            await sql_create_matches(tournament_id, pairings, tournament.start_date)
            await sql_set_current_players(tournament_id, len(selected))
            await sql_update_tournament_status(tournament_id, TournamentStatus.IN_PROGRESS)
            outcome = LockOutcome.STARTED
            new_status = TournamentStatus.IN_PROGRESS

        await record_audit_event(
            "TOURNAMENT_LOCKED",
            actor_id,
            "tournament",
            tournament_id,
            tournament,
            tournament.model_copy(update={"status": new_status}),
        )

    if outcome is LockOutcome.STARTED:
        logger.info(f"Tournament {tournament_id} started with {len(selected)} players")
        await publish_tournament_event(
            TournamentEventType.TOURNAMENT_STARTED, tournament_id, players=len(selected)
        )
    else:
        logger.info(
            f"Tournament {tournament_id} cancelled: {len(selected)} of "
            f"{tournament.min_players} required players confirmed"
        )
        await publish_tournament_event(TournamentEventType.TOURNAMENT_CANCELLED, tournament_id)
    return outcome


async def enforce_tournament_locks() -> dict[TournamentId, LockOutcome]:
    return {
        tournament_id: await enforce_tournament_lock(tournament_id)
        for tournament_id in await sql_get_tournament_ids_due_for_lock(datetime_utc.now())
    }
