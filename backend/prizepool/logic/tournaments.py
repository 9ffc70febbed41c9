from heliclockter import datetime_utc

from prizepool.config import config
from prizepool.database import database
from prizepool.logic.payments.ledger import build_seed_ledger_input, create_ledger_entries
from prizepool.logic.payments.provider import DevPaymentProvider
from prizepool.logic.payments.webhook import confirm_entry_payment
from prizepool.logic.scheduling.lock import compute_lock_at, enforce_tournament_lock
from prizepool.logic.season import get_season_config
from prizepool.models.db.entry import Entry, EntryInsertable, EntryStatus
from prizepool.models.db.tournament import Tournament, TournamentBody, TournamentInsertable
from prizepool.sql.audit import record_audit_event
from prizepool.sql.entries import sql_create_entry, sql_get_entry
from prizepool.sql.locks import LockScope, sql_acquire_tournament_lock
from prizepool.sql.payout_schedules import sql_ensure_default_payout_schedule
from prizepool.sql.tournaments import (
    sql_create_tournament,
    sql_get_tournament,
    sql_get_tournament_for_update,
    sql_increment_current_players,
)
from prizepool.utils.errors import AlreadyEntered, NotFound, PreconditionFailed
from prizepool.utils.id_types import TournamentId, UserId
from prizepool.utils.logging import logger
from prizepool.utils.money import ZERO, quantize_money
from prizepool.utils.types import assert_some


async def create_tournament(body: TournamentBody, actor_id: UserId) -> Tournament:
    season = await get_season_config()
    now = datetime_utc.now()

    async with database.transaction():
        tournament = await sql_create_tournament(
            TournamentInsertable(
                name=body.name,
                entry_fee=quantize_money(body.entry_fee),
                min_players=body.min_players,
                max_players=body.max_players,
                start_date=body.start_date,
                lock_at=compute_lock_at(body.start_date),
                created_by=actor_id,
                created=now,
            )
        )
        await sql_ensure_default_payout_schedule(tournament.id)
        if season.is_free and season.free_prize_pool > ZERO:
            await create_ledger_entries(
                tournament.id, [build_seed_ledger_input(season.free_prize_pool)]
            )
            tournament = assert_some(await sql_get_tournament(tournament.id))
        await record_audit_event(
            "TOURNAMENT_CREATED", actor_id, "tournament", tournament.id, None, tournament
        )

    logger.info(f"Tournament {tournament.id} created, registration locks at {tournament.lock_at}")
    return tournament


async def enter_tournament(tournament_id: TournamentId, user_id: UserId) -> Entry:
    """
    Register a user. Free seasons confirm immediately without a ledger movement; paid seasons
    create a PENDING entry that the checkout webhook confirms. Without a configured payment
    provider, paid entries are confirmed right away with a development payment reference.
    """
    await enforce_tournament_lock(tournament_id)
    season = await get_season_config()
    now = datetime_utc.now()

    async with database.transaction():
        await sql_acquire_tournament_lock(LockScope.REGISTRATION, tournament_id)
        tournament = await sql_get_tournament_for_update(tournament_id)
        if tournament is None:
            raise NotFound(f"Tournament {tournament_id} does not exist")
        if not tournament.registration_is_open(now):
            raise PreconditionFailed("Registration is closed", reason="REGISTRATION_CLOSED")
        if tournament.current_players >= tournament.max_players:
            raise PreconditionFailed("Tournament is full", reason="TOURNAMENT_FULL")
        if not season.is_free and tournament.entry_fee <= ZERO:
            raise PreconditionFailed("Tournament entry fee is invalid", reason="INVALID_ENTRY_FEE")

        entry = await sql_create_entry(
            EntryInsertable(
                user_id=user_id,
                tournament_id=tournament_id,
                status=EntryStatus.CONFIRMED if season.is_free else EntryStatus.PENDING,
                payment_reference=f"free-{tournament_id}-{user_id}" if season.is_free else None,
                paid_at=now if season.is_free else None,
                created=now,
            )
        )
        if entry is None:
            raise AlreadyEntered("User already has an entry for this tournament")

        await sql_increment_current_players(tournament_id, 1)
        await record_audit_event("ENTRY_CREATED", user_id, "entry", entry.id, None, entry)

    logger.info(f"User {user_id} entered tournament {tournament_id} ({entry.status.value})")

    if entry.status is EntryStatus.PENDING and config.stripe_secret_key is None:
        await confirm_entry_payment(entry.id, f"dev-{entry.id}", DevPaymentProvider())
        entry = assert_some(await sql_get_entry(entry.id))

    return entry
