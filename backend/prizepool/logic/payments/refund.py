from heliclockter import datetime_utc

from prizepool.database import database
from prizepool.logic.events import TournamentEventType, publish_tournament_event
from prizepool.logic.payments.ledger import build_refund_ledger_input, create_ledger_entries
from prizepool.logic.payments.provider import (
    PaymentProvider,
    PaymentProviderError,
    get_payment_provider,
)
from prizepool.models.db.entry import Entry, EntryStatus
from prizepool.models.db.tournament import Tournament, TournamentStatus
from prizepool.sql.audit import record_audit_event
from prizepool.sql.entries import sql_cancel_entry, sql_get_entry_for_user
from prizepool.sql.locks import LockScope, sql_acquire_tournament_lock
from prizepool.sql.tournaments import sql_get_tournament, sql_increment_current_players
from prizepool.utils.errors import NotFound, PaymentProviderFailure, PreconditionFailed
from prizepool.utils.id_types import TournamentId, UserId
from prizepool.utils.logging import logger


def can_refund_entry(entry: Entry, tournament: Tournament, now: datetime_utc) -> bool:
    """Refunds close at ``lock_at``: the window is open strictly before it."""
    return (
        entry.status is not EntryStatus.CANCELLED
        and tournament.status is TournamentStatus.REGISTRATION
        and now < tournament.lock_at
    )


async def refund_entry(
    tournament_id: TournamentId, user_id: UserId, provider: PaymentProvider | None = None
) -> Entry:
    provider = provider if provider is not None else get_payment_provider()

    async with database.transaction():
        await sql_acquire_tournament_lock(LockScope.REGISTRATION, tournament_id)
        tournament = await sql_get_tournament(tournament_id)
        entry = await sql_get_entry_for_user(tournament_id, user_id)
        if tournament is None or entry is None:
            raise NotFound("No entry for this tournament")

        if not can_refund_entry(entry, tournament, datetime_utc.now()):
            raise PreconditionFailed(
                "Entry can no longer be refunded", reason="REFUND_WINDOW_CLOSED"
            )

        cancelled = await sql_cancel_entry(entry.id)
        if cancelled is None:
            raise PreconditionFailed("Entry is already cancelled", reason="ALREADY_CANCELLED")
        await sql_increment_current_players(tournament_id, -1)

        if entry.status is EntryStatus.CONFIRMED:
            await create_ledger_entries(
                tournament_id, [build_refund_ledger_input(tournament.entry_fee, user_id)]
            )

        await record_audit_event("ENTRY_REFUNDED", user_id, "entry", entry.id, entry, cancelled)

        if entry.status is EntryStatus.CONFIRMED and entry.has_refundable_payment:
            try:
                await provider.create_refund(str(entry.payment_reference))
            except PaymentProviderError as exc:
                logger.error(f"Refund of entry {entry.id} failed at the provider: {exc}")
                raise PaymentProviderFailure(f"Refund failed: {exc}") from exc

    logger.info(f"Entry {entry.id} of user {user_id} in tournament {tournament_id} refunded")
    await publish_tournament_event(
        TournamentEventType.LEDGER_UPDATED, tournament_id, entry_id=entry.id
    )
    return cancelled
