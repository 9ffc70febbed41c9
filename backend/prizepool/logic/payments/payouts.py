"""
Payout lifecycle.

    PENDING -> PROCESSING -> COMPLETED | FAILED
    PENDING -> REJECTED

Every transition is a conditional UPDATE on the current status, so of any number of
concurrent callers exactly one moves a payout forward. The provider transfer happens only
after the PENDING -> PROCESSING flip has committed; a provider error or timeout ends in
FAILED and is never retried automatically.
"""

import asyncio
from collections.abc import Sequence

from heliclockter import datetime_utc

from prizepool.config import config
from prizepool.database import database
from prizepool.logic.events import TournamentEventType, publish_tournament_event
from prizepool.logic.payments.entitlements import PayoutEntitlement, get_payout_entitlement
from prizepool.logic.payments.ledger import build_payout_ledger_input, create_ledger_entries
from prizepool.logic.payments.provider import (
    PaymentProvider,
    PaymentProviderError,
    get_payment_provider,
)
from prizepool.logic.season import get_season_config
from prizepool.models.db.account import KycStatus
from prizepool.models.db.anticheat import AntiCheatCase
from prizepool.models.db.entry import EntryStatus
from prizepool.models.db.payout import Payout, PayoutInsertable, PayoutStatus
from prizepool.models.db.tournament import Tournament, TournamentStatus
from prizepool.models.db.user import UserProfile
from prizepool.sql.anticheat import sql_get_anticheat_cases
from prizepool.sql.audit import record_audit_event
from prizepool.sql.entries import sql_get_entry_for_user
from prizepool.sql.locks import LockScope, sql_acquire_tournament_lock
from prizepool.sql.payouts import (
    sql_backfill_payout_entitlement,
    sql_get_payout,
    sql_get_payout_for_user,
    sql_insert_payout,
    sql_transition_payout,
)
from prizepool.sql.tournaments import sql_get_tournament
from prizepool.sql.users import sql_get_user_profile
from prizepool.utils.errors import (
    EntitlementMismatch,
    NotFound,
    PaymentProviderFailure,
    PayoutAlreadyProcessed,
    PreconditionFailed,
)
from prizepool.utils.id_types import PayoutId, TournamentId, UserId
from prizepool.utils.logging import logger
from prizepool.utils.money import to_minor_units
from prizepool.utils.types import assert_some


def has_anti_cheat_hold(cases: Sequence[AntiCheatCase]) -> bool:
    return any(case.is_holding for case in cases)


def payout_idempotency_key(payout_id: PayoutId) -> str:
    return f"payout-{payout_id}"


async def get_tournament_or_404(tournament_id: TournamentId) -> Tournament:
    tournament = await sql_get_tournament(tournament_id)
    if tournament is None:
        raise NotFound(f"Tournament {tournament_id} does not exist")
    return tournament


async def ensure_cash_prizes() -> None:
    season = await get_season_config()
    if not season.allows_cash_payouts:
        raise PreconditionFailed("Cash payouts are not enabled this season", reason="PRIZE_MODE")


async def ensure_no_anti_cheat_hold(user_id: UserId, tournament_id: TournamentId) -> None:
    if has_anti_cheat_hold(await sql_get_anticheat_cases(user_id, tournament_id)):
        raise PreconditionFailed("Payout is on anti-cheat hold", reason="ANTI_CHEAT_HOLD")


async def can_request_payout(
    user_id: UserId, tournament_id: TournamentId
) -> tuple[PayoutEntitlement, UserProfile]:
    """Validate every request precondition and return the resolved entitlement."""
    await ensure_cash_prizes()

    tournament = await get_tournament_or_404(tournament_id)
    if tournament.status is not TournamentStatus.COMPLETED:
        raise PreconditionFailed("Tournament is not completed", reason="TOURNAMENT_NOT_COMPLETED")

    entry = await sql_get_entry_for_user(tournament_id, user_id)
    if entry is None or entry.status is not EntryStatus.CONFIRMED:
        raise PreconditionFailed("No confirmed entry for this tournament", reason="NO_ENTRY")

    await ensure_no_anti_cheat_hold(user_id, tournament_id)

    profile = await sql_get_user_profile(user_id)
    if profile is None or profile.kyc_status is not KycStatus.VERIFIED:
        raise PreconditionFailed("Identity verification is required", reason="KYC_REQUIRED")

    entitlement = await get_payout_entitlement(tournament_id, user_id)
    if entitlement is None:
        raise PreconditionFailed("No prize for this placement", reason="NO_ENTITLEMENT")

    return entitlement, profile


async def request_payout(user_id: UserId, tournament_id: TournamentId) -> Payout:
    existing = await sql_get_payout_for_user(user_id, tournament_id)
    if existing is not None:
        return existing

    async with database.transaction():
        await sql_acquire_tournament_lock(LockScope.LEDGER, tournament_id)
        existing = await sql_get_payout_for_user(user_id, tournament_id)
        if existing is not None:
            return existing

        entitlement, profile = await can_request_payout(user_id, tournament_id)
        payout = await sql_insert_payout(
            PayoutInsertable(
                user_id=user_id,
                tournament_id=tournament_id,
                amount=entitlement.amount,
                entitlement_amount=entitlement.amount,
                placement=entitlement.placement,
                status=PayoutStatus.PENDING,
                anti_cheat_hold=False,
                kyc_verified_at=profile.kyc_verified_at,
                created=datetime_utc.now(),
            )
        )
        if payout is None:
            # lost the insert race to a concurrent request by the same user
            return assert_some(await sql_get_payout_for_user(user_id, tournament_id))

        await record_audit_event("PAYOUT_REQUESTED", user_id, "payout", payout.id, None, payout)

    logger.info(
        f"Payout {payout.id} requested by user {user_id} for tournament {tournament_id}: "
        f"{payout.amount} (placement {payout.placement})"
    )
    return payout


async def verify_entitlement(payout: Payout, actor_id: UserId) -> Payout:
    """
    Re-derive the entitlement from current state and require it to match the stored one.
    Entitlement fields that were never set are backfilled first; once set they never change.
    """
    entitlement = await get_payout_entitlement(payout.tournament_id, payout.user_id)
    if entitlement is None:
        raise EntitlementMismatch(
            f"Payout {payout.id} no longer resolves to an entitlement",
        )

    if payout.entitlement_amount is None or payout.placement is None:
        async with database.transaction():
            backfilled = await sql_backfill_payout_entitlement(
                payout.id, entitlement.amount, entitlement.placement
            )
            if backfilled is None:
                raise PayoutAlreadyProcessed(f"Payout {payout.id} was modified concurrently")
            await record_audit_event(
                "PAYOUT_ENTITLEMENT_BACKFILLED", actor_id, "payout", payout.id, payout, backfilled
            )
        payout = backfilled

    if (
        payout.entitlement_amount != entitlement.amount
        or payout.placement != entitlement.placement
        or payout.amount != payout.entitlement_amount
    ):
        logger.error(
            f"Entitlement mismatch for payout {payout.id}: stored "
            f"{payout.entitlement_amount} (placement {payout.placement}), recomputed "
            f"{entitlement.amount} (placement {entitlement.placement})"
        )
        raise EntitlementMismatch(f"Entitlement for payout {payout.id} does not match")

    return payout


async def approve_payout(
    payout_id: PayoutId, actor_id: UserId, provider: PaymentProvider | None = None
) -> Payout:
    """
    Preconditions are re-validated and the payout claimed in one transaction that holds the
    tournament's ledger lock, so no ledger write or hold lands between the checks and the
    PENDING -> PROCESSING flip. The provider is called after that transaction commits.
    """
    payout = await sql_get_payout(payout_id)
    if payout is None:
        raise NotFound(f"Payout {payout_id} does not exist")
    if payout.status is not PayoutStatus.PENDING:
        raise PayoutAlreadyProcessed(f"Payout {payout_id} is {payout.status.value}")

    async with database.transaction():
        await sql_acquire_tournament_lock(LockScope.LEDGER, payout.tournament_id)
        payout = assert_some(await sql_get_payout(payout_id))
        if payout.status is not PayoutStatus.PENDING:
            raise PayoutAlreadyProcessed(f"Payout {payout_id} is {payout.status.value}")

        await ensure_cash_prizes()
        await ensure_no_anti_cheat_hold(payout.user_id, payout.tournament_id)
        payout = await verify_entitlement(payout, actor_id)

        profile = await sql_get_user_profile(payout.user_id)
        if profile is None or not profile.payment_destination:
            raise PreconditionFailed(
                "Recipient has no payment destination", reason="NO_PAYMENT_DESTINATION"
            )
        destination = profile.payment_destination

        tournament = await get_tournament_or_404(payout.tournament_id)
        if payout.amount > tournament.prize_pool:
            raise PreconditionFailed(
                f"Prize pool {tournament.prize_pool} cannot cover payout {payout.amount}",
                reason="INSUFFICIENT_PRIZE_POOL",
            )

        processing = await sql_transition_payout(
            payout.id, PayoutStatus.PENDING, PayoutStatus.PROCESSING
        )
        if processing is None:
            logger.info(f"Payout {payout.id} was claimed by a concurrent approval")
            raise PayoutAlreadyProcessed(f"Payout {payout.id} is already being processed")
        await record_audit_event(
            "PAYOUT_APPROVED", actor_id, "payout", payout.id, payout, processing
        )

    logger.info(f"Payout {payout.id} approved by {actor_id}, transferring {payout.amount}")
    provider = provider if provider is not None else get_payment_provider()
    try:
        transfer_id = await asyncio.wait_for(
            provider.create_transfer(
                destination,
                to_minor_units(processing.amount),
                payout_idempotency_key(processing.id),
            ),
            timeout=config.provider_timeout_seconds,
        )
    except (PaymentProviderError, TimeoutError) as exc:
        failure_reason = str(exc) or type(exc).__name__
        await fail_payout(processing, actor_id, failure_reason)
        raise PaymentProviderFailure(
            f"Transfer for payout {processing.id} failed: {failure_reason}"
        ) from exc

    completed = await complete_payout(processing, actor_id, transfer_id)
    await publish_tournament_event(
        TournamentEventType.PAYOUT_UPDATED,
        completed.tournament_id,
        payout_id=completed.id,
        status=completed.status.value,
    )
    return completed


async def fail_payout(payout: Payout, actor_id: UserId, failure_reason: str) -> Payout:
    async with database.transaction():
        failed = await sql_transition_payout(
            payout.id,
            PayoutStatus.PROCESSING,
            PayoutStatus.FAILED,
            failure_reason=failure_reason[:500],
            processed_at=datetime_utc.now(),
        )
        if failed is None:
            raise PayoutAlreadyProcessed(f"Payout {payout.id} left PROCESSING unexpectedly")
        await record_audit_event("PAYOUT_FAILED", actor_id, "payout", payout.id, payout, failed)

    logger.error(f"Transfer for payout {payout.id} failed: {failure_reason}")
    return failed


async def complete_payout(payout: Payout, actor_id: UserId, transfer_id: str) -> Payout:
    async with database.transaction():
        completed = await sql_transition_payout(
            payout.id,
            PayoutStatus.PROCESSING,
            PayoutStatus.COMPLETED,
            provider_transfer_id=transfer_id,
            processed_at=datetime_utc.now(),
        )
        if completed is None:
            raise PayoutAlreadyProcessed(f"Payout {payout.id} left PROCESSING unexpectedly")
        await create_ledger_entries(
            payout.tournament_id,
            [build_payout_ledger_input(payout.amount, payout.user_id, payout.id)],
        )
        await record_audit_event(
            "PAYOUT_COMPLETED", actor_id, "payout", payout.id, payout, completed
        )

    logger.info(f"Payout {payout.id} completed with transfer {transfer_id}")
    return completed


async def reject_payout(payout_id: PayoutId, actor_id: UserId, reason: str | None) -> Payout:
    async with database.transaction():
        payout = await sql_get_payout(payout_id)
        if payout is None:
            raise NotFound(f"Payout {payout_id} does not exist")

        rejected = await sql_transition_payout(
            payout_id,
            PayoutStatus.PENDING,
            PayoutStatus.REJECTED,
            failure_reason=reason,
            processed_at=datetime_utc.now(),
        )
        if rejected is None:
            raise PayoutAlreadyProcessed(f"Payout {payout_id} is {payout.status.value}")
        await record_audit_event("PAYOUT_REJECTED", actor_id, "payout", payout_id, payout, rejected)

    logger.info(f"Payout {payout_id} rejected by {actor_id}")
    return rejected
