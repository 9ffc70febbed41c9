"""
Checkout webhook handling.

Providers deliver events at least once, so every handler here is idempotent: an entry that
is no longer PENDING is left untouched and the event is acknowledged.
"""

from enum import Enum

from heliclockter import datetime_utc
from pydantic import BaseModel

from prizepool.database import database
from prizepool.logic.events import TournamentEventType, publish_tournament_event
from prizepool.logic.payments.ledger import build_entry_fee_ledger_inputs, create_ledger_entries
from prizepool.logic.payments.provider import PaymentProvider
from prizepool.models.db.entry import Entry, EntryStatus
from prizepool.sql.audit import record_audit_event
from prizepool.sql.entries import sql_cancel_entry, sql_confirm_entry, sql_get_entry
from prizepool.sql.locks import LockScope, sql_acquire_tournament_lock
from prizepool.sql.tournaments import sql_get_tournament, sql_increment_current_players
from prizepool.utils.id_types import EntryId
from prizepool.utils.logging import logger
from prizepool.utils.types import JsonDict, assert_some


class CheckoutEventType(Enum):
    COMPLETED = "checkout.session.completed"
    EXPIRED = "checkout.session.expired"


class CheckoutDetails(BaseModel):
    entry_id: EntryId | None = None
    payment_reference: str | None = None


def extract_checkout_details(session: object) -> CheckoutDetails:
    """Pull the entry id and payment reference out of a checkout session, tolerating junk."""
    if not isinstance(session, dict):
        return CheckoutDetails()

    metadata = session.get("metadata")
    raw_entry_id = metadata.get("entry_id") if isinstance(metadata, dict) else None
    entry_id = None
    if isinstance(raw_entry_id, (str, int)) and str(raw_entry_id).isdigit():
        entry_id = EntryId(int(raw_entry_id))

    raw_reference = session.get("payment_intent")
    payment_reference = str(raw_reference) if isinstance(raw_reference, (str, int)) else None
    return CheckoutDetails(entry_id=entry_id, payment_reference=payment_reference)


async def confirm_entry_payment(
    entry_id: EntryId, payment_reference: str | None, provider: PaymentProvider
) -> Entry | None:
    """Returns the confirmed entry, or ``None`` if there was nothing to confirm."""
    entry = await sql_get_entry(entry_id)
    if entry is None or entry.status is not EntryStatus.PENDING:
        logger.info(f"Ignoring payment confirmation for entry {entry_id}: nothing pending")
        return None

    provider_fee = (
        await provider.get_processing_fee(payment_reference)
        if payment_reference is not None
        else None
    )

    async with database.transaction():
        await sql_acquire_tournament_lock(LockScope.REGISTRATION, entry.tournament_id)
        confirmed = await sql_confirm_entry(entry_id, payment_reference, datetime_utc.now())
        if confirmed is None:
            logger.info(f"Entry {entry_id} was confirmed concurrently")
            return None

        tournament = assert_some(await sql_get_tournament(confirmed.tournament_id))
        await create_ledger_entries(
            confirmed.tournament_id,
            build_entry_fee_ledger_inputs(tournament.entry_fee, confirmed.user_id, provider_fee),
        )
        await record_audit_event(
            "ENTRY_CONFIRMED", confirmed.user_id, "entry", confirmed.id, entry, confirmed
        )

    logger.info(f"Entry {entry_id} confirmed for tournament {confirmed.tournament_id}")
    await publish_tournament_event(
        TournamentEventType.LEDGER_UPDATED, confirmed.tournament_id, entry_id=confirmed.id
    )
    return confirmed


async def expire_checkout(entry_id: EntryId) -> Entry | None:
    async with database.transaction():
        entry = await sql_get_entry(entry_id, for_update=True)
        if entry is None or entry.status is not EntryStatus.PENDING:
            return None

        cancelled = await sql_cancel_entry(entry_id)
        if cancelled is None:
            return None
        await sql_increment_current_players(entry.tournament_id, -1)
        await record_audit_event(
            "ENTRY_CHECKOUT_EXPIRED", entry.user_id, "entry", entry.id, entry, cancelled
        )

    logger.info(f"Checkout for entry {entry_id} expired, seat released")
    return cancelled


async def handle_webhook_event(event: JsonDict, provider: PaymentProvider) -> None:
    data = event.get("data")
    session = data.get("object") if isinstance(data, dict) else None
    details = extract_checkout_details(session)
    if details.entry_id is None:
        return

    match event.get("type"):
        case CheckoutEventType.COMPLETED.value:
            await confirm_entry_payment(details.entry_id, details.payment_reference, provider)
        case CheckoutEventType.EXPIRED.value:
            await expire_checkout(details.entry_id)
        case other:
            logger.debug(f"Ignoring webhook event {other}")
